import pytest
from pydantic import ValidationError

from blurify.config import BlurifyConfig, load_config


def test_defaults():
    cfg = load_config(None)
    assert cfg.export.image_format == "PNG"
    assert ".txt" in cfg.ingest.text_suffixes
    assert cfg.ingest.encoding == "utf-8"
    assert cfg.preview.wrap_width is None


def test_load_yaml(tmp_path):
    path = tmp_path / ".blurify.yaml"
    path.write_text(
        "export:\n"
        "  image_format: JPEG\n"
        "ingest:\n"
        "  text_suffixes: ['.txt', '.log']\n"
        "preview:\n"
        "  wrap_width: 72\n"
    )
    cfg = load_config(path)
    assert cfg.export.image_format == "JPEG"
    assert cfg.ingest.text_suffixes == [".txt", ".log"]
    assert cfg.preview.wrap_width == 72
    # untouched sections keep their defaults
    assert cfg.ingest.max_upload_bytes == BlurifyConfig().ingest.max_upload_bytes


def test_empty_yaml(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_config(path) == BlurifyConfig()


def test_invalid_format_rejected(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("export:\n  image_format: BMP\n")
    with pytest.raises(ValidationError):
        load_config(path)
