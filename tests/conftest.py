"""Shared fixtures for the test suite.

Input files are real (a PNG from Pillow, a PDF from PyMuPDF) so upload code
streams actual bytes from disk. The provider API is never called.
"""

import io
from pathlib import Path
from unittest.mock import MagicMock

import fitz  # PyMuPDF
import pytest
from click.testing import CliRunner
from PIL import Image

from ocr_ingest.providers.base import BaseProvider


# ── CLI runner ─────────────────────────────────────────────────────────────


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


# ── File fixtures ──────────────────────────────────────────────────────────


@pytest.fixture
def png_bytes() -> bytes:
    """A real, valid 10×10 red PNG image as raw bytes."""
    buf = io.BytesIO()
    Image.new("RGB", (10, 10), color=(255, 0, 0)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def png_file(tmp_path: Path, png_bytes: bytes) -> Path:
    path = tmp_path / "scan.png"
    path.write_bytes(png_bytes)
    return path


@pytest.fixture
def pdf_file(tmp_path: Path) -> Path:
    """A real 2-page PDF."""
    path = tmp_path / "report.pdf"
    doc = fitz.open()
    for i in range(2):
        page = doc.new_page(width=595, height=842)  # A4
        page.insert_text((72, 100), f"Page {i + 1} content")
    doc.save(str(path))
    doc.close()
    return path


# ── OCR responses ──────────────────────────────────────────────────────────


@pytest.fixture
def two_page_ocr_result() -> dict:
    return {
        "pages": [
            {"markdown": "First page", "images": [{"image_base64": "img-1a"}]},
            {"markdown": "Second page", "images": [{"image_base64": "img-2a"}, {"id": "no-data"}]},
        ]
    }


@pytest.fixture
def mock_provider(two_page_ocr_result) -> MagicMock:
    provider = MagicMock(spec=BaseProvider)
    provider.upload_document.return_value = {"id": "file-123", "purpose": "ocr"}
    provider.get_signed_url.return_value = {"url": "https://signed.example/file-123"}
    provider.perform_ocr.return_value = two_page_ocr_result
    return provider
