"""
FastAPI web application for blurify.

Every request is its own editing session: the client uploads the artifact
together with the marks it collected, and gets the redacted export back.
Nothing is stored between requests.

Endpoints:
- Image redaction (boxes in display coordinates + display size)
- Text redaction (character ranges)
- Two-layer HTML preview for text
"""

from __future__ import annotations

import io
import logging
from urllib.parse import quote
from typing import List, Optional

from fastapi import FastAPI, File, Form, HTTPException, UploadFile, status
from fastapi.responses import HTMLResponse, StreamingResponse
from pydantic import BaseModel, TypeAdapter, ValidationError

from .. import __version__
from ..artifacts import (
    ImageArtifact,
    TextArtifact,
    UnsupportedArtifactError,
    export_bytes,
    image_export_filename,
    load_artifact_bytes,
)
from ..config import BlurifyConfig
from ..engine.session import ImageSession, TextSession
from ..visual.compositor import SourceUnavailableError

logger = logging.getLogger(__name__)


# Pydantic models for mark payloads
class BoxIn(BaseModel):
    """Rectangle in display pixels; w/h may be negative."""
    x: float
    y: float
    w: float
    h: float


class RangeIn(BaseModel):
    """Half-open character range."""
    start: int
    end: int


_boxes_adapter = TypeAdapter(List[BoxIn])
_ranges_adapter = TypeAdapter(List[RangeIn])

_MEDIA_TYPES = {"PNG": "image/png", "JPEG": "image/jpeg", "WEBP": "image/webp"}

app = FastAPI(
    title="blurify API",
    description="Irreversible image and text redaction",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Global configuration
blurify_config = BlurifyConfig()


def _parse_marks(adapter: TypeAdapter, raw: Optional[str]):
    if not raw:
        return []
    try:
        return adapter.validate_json(raw)
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail=f"Invalid marks: {e.errors(include_url=False)}",
        )


async def _read_artifact(file: UploadFile):
    if not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file provided")

    data = await file.read()
    if len(data) > blurify_config.ingest.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File exceeds {blurify_config.ingest.max_upload_bytes} bytes",
        )
    try:
        return load_artifact_bytes(
            file.filename,
            data,
            blurify_config.ingest.text_suffixes,
            blurify_config.ingest.encoding,
        )
    except UnsupportedArtifactError as e:
        raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail=str(e))


async def _text_session(file: UploadFile, ranges: Optional[str]) -> TextSession:
    marks = _parse_marks(_ranges_adapter, ranges)
    artifact = await _read_artifact(file)
    if not isinstance(artifact, TextArtifact):
        raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail="Expected a text document")
    session = TextSession(artifact)
    for r in marks:
        session.ranges.add_range(r.start, r.end)
    return session


def content_disposition(filename: str) -> str:
    """
    Attachment header safe for any file name.

    Header values are latin-1 on the wire, so the real name goes in the
    RFC 5987 `filename*` parameter and `filename` carries an ASCII fallback.
    """
    fallback = filename.encode("ascii", "replace").decode("ascii")
    fallback = fallback.replace("\\", "_").replace("\"", "_")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


def _attachment(payload: bytes, media_type: str, filename: str) -> StreamingResponse:
    return StreamingResponse(
        io.BytesIO(payload),
        media_type=media_type,
        headers={"Content-Disposition": content_disposition(filename)},
    )


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "message": "blurify API - irreversible image and text redaction",
        "version": __version__,
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "blurify-api"}


@app.post("/redact/image")
async def redact_image(
    file: UploadFile = File(...),
    boxes: Optional[str] = Form(None),
    display_width: Optional[float] = Form(None),
    display_height: Optional[float] = Form(None),
):
    """
    Blur regions of an uploaded image.

    Args:
        file: Image to redact
        boxes: JSON list of {x, y, w, h} in display pixels
        display_width, display_height: Size the boxes were drawn at
            (both omitted -> natural size)

    Returns:
        The blurred image as an attachment named "redacted-<name>"
    """
    marks = _parse_marks(_boxes_adapter, boxes)
    artifact = await _read_artifact(file)
    if not isinstance(artifact, ImageArtifact):
        raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail="Expected an image")

    display = None
    if display_width is not None or display_height is not None:
        if display_width is None or display_height is None or display_width <= 0 or display_height <= 0:
            raise HTTPException(
                status_code=422,
                detail="display_width and display_height must both be positive",
            )
        display = (display_width, display_height)

    session = ImageSession(artifact, display_size=display)
    for b in marks:
        session.regions.commit(b.x, b.y, b.w, b.h)

    try:
        result = session.export()
    except SourceUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    fmt = blurify_config.export.image_format
    logger.info("Blurred %d region(s) in %s", result.redacted_count, artifact.name)
    filename = image_export_filename(result.filename, fmt)
    return _attachment(export_bytes(result, image_format=fmt), _MEDIA_TYPES[fmt], filename)


@app.post("/redact/text")
async def redact_text_document(
    file: UploadFile = File(...),
    ranges: Optional[str] = Form(None),
):
    """Replace character ranges with solid blocks and return the new document."""
    session = await _text_session(file, ranges)
    result = session.export()
    logger.info("Redacted %d range(s) in %s", result.redacted_count, session.artifact.name)
    payload = export_bytes(result, encoding=blurify_config.ingest.encoding)
    return _attachment(payload, f"text/plain; charset={blurify_config.ingest.encoding}", result.filename)


@app.post("/preview/text", response_class=HTMLResponse)
async def preview_text_document(
    file: UploadFile = File(...),
    ranges: Optional[str] = Form(None),
):
    """Two-layer HTML preview of a text document with the given ranges blacked out."""
    session = await _text_session(file, ranges)
    return HTMLResponse(session.preview_html())


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
