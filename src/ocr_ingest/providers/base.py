"""Abstract base for document OCR providers."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any


class DocumentType(str, Enum):
    DOCUMENT = "document_url"
    IMAGE = "image_url"


class BaseProvider(ABC):
    @abstractmethod
    def upload_document(
        self, file_path: str, api_key: str, base_url: str, file_name: str = ""
    ) -> dict[str, Any]:
        """Upload a local file and return the provider's file metadata (with ``id``)."""
        ...

    @abstractmethod
    def get_signed_url(
        self, api_key: str, base_url: str, file_id: str, expiry: int = 24
    ) -> dict[str, Any]:
        """Exchange an uploaded file id for a temporary public ``url``."""
        ...

    @abstractmethod
    def perform_ocr(
        self,
        api_key: str,
        base_url: str,
        url: str,
        model: str,
        document_type: DocumentType = DocumentType.DOCUMENT,
    ) -> dict[str, Any]:
        """Run OCR on a fetchable URL and return the raw ``{pages: [...]}`` result."""
        ...
