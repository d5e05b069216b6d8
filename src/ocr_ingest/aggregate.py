"""Reduce a page-structured OCR response to one text blob and an image list."""

from dataclasses import asdict, dataclass, field
from typing import Any, Iterable

from ocr_ingest.providers.base import DocumentType

FILE_SOURCE = "mistral_ocr"

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".bmp", ".webp", ".tiff", ".tif")

# Rough size estimate used by downstream consumers; not an encoded byte count.
BYTES_PER_CHAR = 4


@dataclass
class IngestResult:
    filename: str
    bytes: int
    filepath: str
    text: str
    images: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def is_image(filename: str, mimetype: str = "") -> bool:
    """True if the MIME type is ``image/*`` or the extension is a raster image type."""
    if (mimetype or "").lower().startswith("image"):
        return True
    return (filename or "").lower().endswith(IMAGE_EXTENSIONS)


def document_type_for(filename: str, mimetype: str = "") -> DocumentType:
    return DocumentType.IMAGE if is_image(filename, mimetype) else DocumentType.DOCUMENT


def aggregate_pages(pages: Iterable[dict[str, Any]]) -> tuple[str, list[str]]:
    """Concatenate page markdown in reading order and collect embedded images.

    Pages get a ``# PAGE n`` heading only when there is more than one.
    Images without a base64 payload are skipped.
    """
    pages = list(pages)
    numbered = len(pages) > 1

    parts: list[str] = []
    images: list[str] = []
    for index, page in enumerate(pages, start=1):
        if numbered:
            parts.append(f"# PAGE {index}\n")
        parts.append(page["markdown"] + "\n\n")
        for image in page.get("images") or []:
            payload = image.get("image_base64")
            if payload:
                images.append(payload)

    return "".join(parts), images


def build_result(ocr_result: dict[str, Any], filename: str) -> IngestResult:
    text, images = aggregate_pages(ocr_result["pages"])
    return IngestResult(
        filename=filename,
        bytes=len(text) * BYTES_PER_CHAR,
        filepath=FILE_SOURCE,
        text=text,
        images=images,
    )
