"""
Loading source artifacts and packaging exports.

An artifact is either an image (decoded bitmap + natural size) or a text
document. Classification follows the file's MIME type, with a few text
suffixes accepted by name. Anything else is rejected here, before an editing
session is created.
"""

from __future__ import annotations

import io
import logging
import mimetypes
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)

EXPORT_PREFIX = "redacted-"
DEFAULT_TEXT_SUFFIXES = (".txt", ".md", ".json")
PASTED_TEXT_PREFIX = "pasted-text-"
UNSUPPORTED_MESSAGE = "Unsupported file type. Please upload an image or text file."


class UnsupportedArtifactError(ValueError):
    """The file is neither an image nor a text document we can read."""


@dataclass
class ImageArtifact:
    name: str
    image: Optional[Image.Image]

    @property
    def natural_size(self) -> Tuple[int, int]:
        if self.image is None:
            return (0, 0)
        return self.image.size


@dataclass
class TextArtifact:
    name: str
    content: str

    @property
    def length(self) -> int:
        return len(self.content)


Artifact = Union[ImageArtifact, TextArtifact]


@dataclass
class ExportResult:
    """What an editing session hands to the export step."""
    filename: str
    redacted_count: int
    image: Optional[Image.Image] = None
    text: Optional[str] = None


def export_filename(name: str) -> str:
    return f"{EXPORT_PREFIX}{name}"


_FORMAT_SUFFIXES = {
    "PNG": (".png",),
    "JPEG": (".jpg", ".jpeg"),
    "WEBP": (".webp",),
}


def image_export_filename(filename: str, fmt: str = "PNG") -> str:
    """
    Filename for an image encoded as `fmt`.

    The suffix is swapped when it does not name the encoded format:
      redacted-x.png, JPEG -> redacted-x.jpg
      redacted-x.jpeg, JPEG -> redacted-x.jpeg
    """
    suffixes = _FORMAT_SUFFIXES.get(fmt.upper())
    if not suffixes:
        return filename
    path = Path(filename)
    if path.suffix.lower() in suffixes:
        return filename
    return path.stem + suffixes[0]


def classify(name: str, text_suffixes: Sequence[str] = DEFAULT_TEXT_SUFFIXES) -> str:
    """Return 'image' or 'text' for a file name, or raise UnsupportedArtifactError."""
    mime, _ = mimetypes.guess_type(name)
    if mime and mime.startswith("image/"):
        return "image"
    if mime == "text/plain" or Path(name).suffix.lower() in text_suffixes:
        return "text"
    raise UnsupportedArtifactError(UNSUPPORTED_MESSAGE)


def load_artifact_bytes(
    name: str,
    data: bytes,
    text_suffixes: Sequence[str] = DEFAULT_TEXT_SUFFIXES,
    encoding: str = "utf-8",
) -> Artifact:
    """
    Decode raw file content into an artifact.

    Images are fully decoded here so the compositor never sees a lazy handle.
    """
    kind = classify(name, text_suffixes)
    if kind == "text":
        return TextArtifact(name=name, content=data.decode(encoding, errors="replace"))

    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        logger.warning("Could not decode image %s: %s", name, e)
        raise UnsupportedArtifactError(f"Could not decode image '{name}'") from e
    # Hosts show EXIF-rotated photos upright, so boxes are drawn on the upright pixels.
    return ImageArtifact(name=name, image=ImageOps.exif_transpose(image))


def pasted_text_artifact(content: str, timestamp_ms: Optional[int] = None) -> TextArtifact:
    """Wrap pasted text as a document named pasted-text-<epoch ms>.txt."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return TextArtifact(name=f"{PASTED_TEXT_PREFIX}{timestamp_ms}.txt", content=content)


def load_artifact(
    path: Union[str, Path],
    text_suffixes: Sequence[str] = DEFAULT_TEXT_SUFFIXES,
    encoding: str = "utf-8",
) -> Artifact:
    path = Path(path)
    return load_artifact_bytes(path.name, path.read_bytes(), text_suffixes, encoding)


def encode_image(image: Image.Image, fmt: str = "PNG") -> bytes:
    buf = io.BytesIO()
    if fmt.upper() in ("JPEG", "JPG") and image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    image.save(buf, format=fmt)
    return buf.getvalue()


def export_bytes(result: ExportResult, image_format: str = "PNG", encoding: str = "utf-8") -> bytes:
    if result.image is not None:
        return encode_image(result.image, image_format)
    return (result.text or "").encode(encoding)


def write_export(
    result: ExportResult,
    out_dir: Union[str, Path],
    image_format: str = "PNG",
    encoding: str = "utf-8",
) -> Path:
    """Write an export into `out_dir` under its filename hint (image suffix matched to the format)."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    filename = result.filename
    if result.image is not None:
        filename = image_export_filename(filename, image_format)
    dest = out_dir / filename
    dest.write_bytes(export_bytes(result, image_format, encoding))
    return dest
