"""Error types raised by the ingestion pipeline."""

from typing import Optional


class OCRError(Exception):
    """Base class for every error raised by ocr_ingest."""


class TransportError(OCRError):
    """An HTTP call to the provider failed or returned a non-2xx status."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        detail: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class CredentialResolutionError(OCRError):
    """The API key could not be resolved from config or the secret store."""


class UploadError(OCRError):
    pass


class SignedURLError(OCRError):
    pass


class OCRInvocationError(OCRError):
    pass


class DocumentIngestionError(OCRError):
    """Raised by the pipeline entry point for a failure in any stage.

    The stage-level error is available as ``__cause__``.
    """

    def __init__(self, message: str, stage: str) -> None:
        super().__init__(message)
        self.stage = stage
