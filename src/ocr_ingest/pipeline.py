"""Document ingestion entry point.

The ingestion runs as an ordered list of stages over one shared state object:

    resolve_credentials → upload → signed_url → ocr → aggregate

Each stage reads what earlier stages produced and fills in its own field.
Failures are caught only in :func:`run_stages`, which logs the stage and
raises :class:`DocumentIngestionError`; nothing from a failed run is kept.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from ocr_ingest.aggregate import IngestResult, build_result, document_type_for
from ocr_ingest.config import (
    EnvSecretStore,
    OCRConfig,
    ResolvedCredentials,
    SecretStore,
    resolve_credentials,
    resolve_model,
)
from ocr_ingest.errors import DocumentIngestionError
from ocr_ingest.providers.base import BaseProvider
from ocr_ingest.providers.mistral import MistralProvider

logger = logging.getLogger(__name__)

INGESTION_ERROR_MESSAGE = "Error uploading document to Mistral OCR API"

_default_provider: Optional[BaseProvider] = None
_default_provider_lock = threading.Lock()


@dataclass
class FileDescriptor:
    path: str
    originalname: str = ""
    mimetype: str = ""


@dataclass
class RequesterContext:
    user_id: str
    ocr_config: OCRConfig = field(default_factory=OCRConfig)


@dataclass
class IngestionState:
    req: RequesterContext
    file: FileDescriptor
    provider: BaseProvider
    secret_store: SecretStore
    credentials: Optional[ResolvedCredentials] = None
    uploaded: Optional[dict[str, Any]] = None
    signed_url: Optional[str] = None
    ocr_result: Optional[dict[str, Any]] = None
    result: Optional[IngestResult] = None


@dataclass(frozen=True)
class Stage:
    name: str
    run: Callable[[IngestionState], None]


# ── Stages ─────────────────────────────────────────────────────────────────


def _resolve_credentials(state: IngestionState) -> None:
    state.credentials = resolve_credentials(
        state.req.ocr_config, state.req.user_id, state.secret_store
    )


def _upload(state: IngestionState) -> None:
    state.uploaded = state.provider.upload_document(
        file_path=state.file.path,
        api_key=state.credentials.api_key,
        base_url=state.credentials.base_url,
        file_name=state.file.originalname,
    )


def _fetch_signed_url(state: IngestionState) -> None:
    response = state.provider.get_signed_url(
        api_key=state.credentials.api_key,
        base_url=state.credentials.base_url,
        file_id=state.uploaded["id"],
    )
    state.signed_url = response["url"]


def _perform_ocr(state: IngestionState) -> None:
    state.ocr_result = state.provider.perform_ocr(
        api_key=state.credentials.api_key,
        base_url=state.credentials.base_url,
        url=state.signed_url,
        model=resolve_model(state.req.ocr_config),
        document_type=document_type_for(state.file.originalname, state.file.mimetype),
    )


def _aggregate(state: IngestionState) -> None:
    state.result = build_result(state.ocr_result, state.file.originalname)


STAGES: tuple[Stage, ...] = (
    Stage("resolve_credentials", _resolve_credentials),
    Stage("upload", _upload),
    Stage("signed_url", _fetch_signed_url),
    Stage("ocr", _perform_ocr),
    Stage("aggregate", _aggregate),
)


# ── Runner ─────────────────────────────────────────────────────────────────


def run_stages(
    state: IngestionState, stages: Sequence[Stage] = STAGES, context: str = ""
) -> IngestionState:
    for stage in stages:
        logger.debug("Running stage %s %s", stage.name, context)
        try:
            stage.run(state)
        except Exception as exc:
            logger.error(
                "%s: stage %s failed %s: %s",
                INGESTION_ERROR_MESSAGE,
                stage.name,
                context,
                exc,
            )
            raise DocumentIngestionError(
                f"{INGESTION_ERROR_MESSAGE} ({stage.name}): {exc}", stage=stage.name
            ) from exc
    return state


def _shared_provider() -> BaseProvider:
    """One provider, and so one connection pool, for all default ingestions."""
    global _default_provider
    with _default_provider_lock:
        if _default_provider is None:
            _default_provider = MistralProvider()
    return _default_provider


def upload_mistral_ocr(
    req: RequesterContext,
    file: FileDescriptor,
    file_id: str,
    entity_id: Optional[str] = None,
    *,
    provider: Optional[BaseProvider] = None,
    secret_store: Optional[SecretStore] = None,
) -> IngestResult:
    """Upload ``file`` to Mistral OCR and return the aggregated text and images.

    Raises DocumentIngestionError if any stage fails.
    """
    state = IngestionState(
        req=req,
        file=file,
        provider=provider or _shared_provider(),
        secret_store=secret_store or EnvSecretStore(),
    )
    context = f"[file_id={file_id} entity_id={entity_id} user={req.user_id}]"
    return run_stages(state, context=context).result
