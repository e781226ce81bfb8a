"""
Tests for the web API endpoints.

Each request carries the artifact and its marks; responses are the
redacted exports.
"""

import io
import json

import pytest
from fastapi.testclient import TestClient
from PIL import Image, ImageDraw

from blurify.visual.text_renderer import SENTINEL
from blurify.web import api
from blurify.web.api import app, content_disposition


@pytest.fixture
def client():
    """Create test client for FastAPI app."""
    return TestClient(app)


@pytest.fixture
def striped_png():
    img = Image.new("RGB", (100, 60), "white")
    draw = ImageDraw.Draw(img)
    for x in range(0, 100, 4):
        draw.rectangle([x, 0, x + 1, 60], fill="black")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return img, buf.getvalue()


class TestBasicEndpoints:
    """Test basic API endpoints."""

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "blurify API" in response.json()["message"]

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "blurify-api"


class TestImageRedaction:
    """Test the image endpoint."""

    def test_blurs_scaled_region(self, client, striped_png):
        original, data = striped_png
        response = client.post(
            "/redact/image",
            files={"file": ("photo.png", data, "image/png")},
            data={
                "boxes": json.dumps([{"x": 30, "y": 10, "w": -20, "h": 15}, {"x": 0, "y": 0, "w": 3, "h": 3}]),
                "display_width": "50",
                "display_height": "30",
            },
        )
        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert "redacted-photo.png" in response.headers["content-disposition"]

        exported = Image.open(io.BytesIO(response.content)).convert("RGB")
        assert exported.size == (100, 60)
        # display (10,10,20,15) at scale 2 -> natural (20,20,40,30)
        assert exported.crop((20, 20, 60, 50)).tobytes() != original.crop((20, 20, 60, 50)).tobytes()
        assert exported.crop((0, 0, 20, 60)).tobytes() == original.crop((0, 0, 20, 60)).tobytes()

    def test_no_boxes_returns_copy(self, client, striped_png):
        original, data = striped_png
        response = client.post("/redact/image", files={"file": ("photo.png", data, "image/png")})
        assert response.status_code == 200
        exported = Image.open(io.BytesIO(response.content)).convert("RGB")
        assert exported.tobytes() == original.tobytes()

    def test_invalid_boxes(self, client, striped_png):
        _, data = striped_png
        response = client.post(
            "/redact/image",
            files={"file": ("photo.png", data, "image/png")},
            data={"boxes": json.dumps([{"x": "left"}])},
        )
        assert response.status_code == 422

    def test_half_display_size(self, client, striped_png):
        _, data = striped_png
        response = client.post(
            "/redact/image",
            files={"file": ("photo.png", data, "image/png")},
            data={"display_width": "50"},
        )
        assert response.status_code == 422

    def test_text_sent_to_image_endpoint(self, client):
        response = client.post("/redact/image", files={"file": ("a.txt", b"hello", "text/plain")})
        assert response.status_code == 415

    def test_jpeg_export_named_jpg(self, client, striped_png, monkeypatch):
        monkeypatch.setattr(api.blurify_config.export, "image_format", "JPEG")
        _, data = striped_png
        response = client.post("/redact/image", files={"file": ("photo.png", data, "image/png")})
        assert response.status_code == 200
        assert response.headers["content-type"] == "image/jpeg"
        assert 'filename="redacted-photo.jpg"' in response.headers["content-disposition"]
        assert Image.open(io.BytesIO(response.content)).format == "JPEG"


class TestTextRedaction:
    """Test the text endpoints."""

    def test_redact_text(self, client):
        response = client.post(
            "/redact/text",
            files={"file": ("notes.txt", "secret: AB12-CD34".encode("utf-8"), "text/plain")},
            data={"ranges": json.dumps([{"start": 8, "end": 17}, {"start": 4, "end": 4}])},
        )
        assert response.status_code == 200
        assert "redacted-notes.txt" in response.headers["content-disposition"]
        assert response.content.decode("utf-8") == "secret: " + SENTINEL * 9

    def test_overlapping_ranges(self, client):
        response = client.post(
            "/redact/text",
            files={"file": ("a.txt", b"abcdefghij", "text/plain")},
            data={"ranges": json.dumps([{"start": 0, "end": 5}, {"start": 3, "end": 8}])},
        )
        assert response.content.decode("utf-8") == SENTINEL * 8 + "ij"

    def test_preview(self, client):
        response = client.post(
            "/preview/text",
            files={"file": ("notes.txt", b"pin 8765 ok", "text/plain")},
            data={"ranges": json.dumps([{"start": 4, "end": 8}])},
        )
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert SENTINEL * 4 in response.text
        assert "<textarea" in response.text

    def test_unsupported_upload(self, client):
        response = client.post(
            "/redact/text",
            files={"file": ("archive.zip", b"PK\x03\x04", "application/zip")},
        )
        assert response.status_code == 415
        assert "Unsupported file type" in response.json()["detail"]

    def test_non_ascii_filename(self, client):
        response = client.post(
            "/redact/text",
            files={"file": ("geheimnis-ü€.txt", "geheimnis".encode("utf-8"), "text/plain")},
            data={"ranges": json.dumps([{"start": 0, "end": 6}])},
        )
        assert response.status_code == 200
        disposition = response.headers["content-disposition"]
        assert "filename*=UTF-8''redacted-geheimnis-%C3%BC%E2%82%AC.txt" in disposition
        assert 'filename="redacted-geheimnis-??.txt"' in disposition
        assert response.content.decode("utf-8") == SENTINEL * 6 + "nis"


class TestContentDisposition:
    """Test the attachment header builder."""

    def test_ascii_name(self):
        assert content_disposition("redacted-a.txt") == (
            "attachment; filename=\"redacted-a.txt\"; filename*=UTF-8''redacted-a.txt"
        )

    def test_header_is_latin1_safe(self):
        header = content_disposition("redacted-秘密 \"x\".txt")
        header.encode("latin-1")
        assert 'filename="redacted-?? _x_.txt"' in header
        assert "filename*=UTF-8''redacted-%E7%A7%98%E5%AF%86%20%22x%22.txt" in header
