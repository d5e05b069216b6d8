"""Mistral OCR provider: file upload, signed URL, and the /ocr endpoint."""

import os
from typing import Any, Optional

from ocr_ingest.config import DEFAULT_BASE_URL, DEFAULT_MODEL
from ocr_ingest.errors import (
    OCRInvocationError,
    SignedURLError,
    TransportError,
    UploadError,
)
from ocr_ingest.providers.base import BaseProvider, DocumentType
from ocr_ingest.transport import Transport

UPLOAD_PURPOSE = "ocr"
DEFAULT_EXPIRY_HOURS = 24


class MistralProvider(BaseProvider):
    def __init__(self, transport: Optional[Transport] = None) -> None:
        self.transport = transport or Transport()

    def upload_document(
        self,
        file_path: str,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        file_name: str = "",
    ) -> dict[str, Any]:
        name = file_name or os.path.basename(file_path)
        # OSError from open() propagates as-is: a missing file is not an upload failure.
        with open(file_path, "rb") as fh:
            try:
                data = self.transport.post_multipart(
                    f"{base_url.rstrip('/')}/files",
                    api_key,
                    fields={"purpose": UPLOAD_PURPOSE},
                    file_field="file",
                    fileobj=fh,
                    filename=name,
                )
            except TransportError as exc:
                raise UploadError(f"Error uploading document to Mistral: {exc}") from exc

        if not isinstance(data, dict) or not data.get("id"):
            raise UploadError(f"Mistral upload response has no file id: {data!r}")
        return data

    def get_signed_url(
        self,
        api_key: str,
        base_url: str,
        file_id: str,
        expiry: int = DEFAULT_EXPIRY_HOURS,
    ) -> dict[str, Any]:
        try:
            data = self.transport.get_json(
                f"{base_url.rstrip('/')}/files/{file_id}/url",
                api_key,
                params={"expiry": expiry},
            )
        except TransportError as exc:
            raise SignedURLError(f"Error fetching signed URL: {exc}") from exc

        if not isinstance(data, dict) or not data.get("url"):
            raise SignedURLError(f"Signed URL response has no url: {data!r}")
        return data

    def perform_ocr(
        self,
        api_key: str,
        base_url: str,
        url: str,
        model: str = DEFAULT_MODEL,
        document_type: DocumentType = DocumentType.DOCUMENT,
    ) -> dict[str, Any]:
        doc_type = (
            DocumentType.IMAGE if document_type == DocumentType.IMAGE else DocumentType.DOCUMENT
        )
        payload = {
            "model": model,
            "include_image_base64": False,
            "document": {
                "type": doc_type.value,
                doc_type.value: url,
            },
        }
        try:
            return self.transport.post_json(f"{base_url.rstrip('/')}/ocr", api_key, payload)
        except TransportError as exc:
            raise OCRInvocationError(f"Error performing OCR: {exc}") from exc
