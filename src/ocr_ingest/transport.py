"""HTTP transport shared by all provider calls.

One ``httpx.Client`` is held per Transport, so concurrent ingestions that
share a Transport also share its connection pool. No retries and no size
limits are applied here; every failure is logged once and re-raised as
:class:`~ocr_ingest.errors.TransportError` with the original exception chained.
"""

import logging
from typing import Any, BinaryIO, Mapping, Optional

import httpx

from ocr_ingest.errors import TransportError

logger = logging.getLogger(__name__)

MAX_DETAIL_CHARS = 500


class Transport:
    def __init__(
        self,
        timeout: Optional[float] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.timeout = timeout
        self.client = client or httpx.Client(timeout=timeout)

    def post_multipart(
        self,
        url: str,
        api_key: str,
        fields: Mapping[str, str],
        file_field: str,
        fileobj: BinaryIO,
        filename: str,
    ) -> Any:
        # httpx reads the file object in chunks and sets Content-Length from its size.
        return self._request(
            "POST",
            url,
            api_key,
            data=dict(fields),
            files={file_field: (filename, fileobj)},
        )

    def get_json(
        self, url: str, api_key: str, params: Optional[Mapping[str, Any]] = None
    ) -> Any:
        return self._request("GET", url, api_key, params=params)

    def post_json(self, url: str, api_key: str, payload: Mapping[str, Any]) -> Any:
        return self._request("POST", url, api_key, json=payload)

    def _request(self, method: str, url: str, api_key: str, **kwargs: Any) -> Any:
        headers = {"Authorization": f"Bearer {api_key}"}
        try:
            response = self.client.request(method, url, headers=headers, **kwargs)
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise _normalize_error(exc, method, url) from exc

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "Transport":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def _normalize_error(exc: Exception, method: str, url: str) -> TransportError:
    status = None
    detail = None
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        detail = exc.response.text[:MAX_DETAIL_CHARS]

    message = f"{method} {url} failed"
    if status is not None:
        message += f" with status {status}"
    message += f": {detail or exc}"

    logger.error(message)
    return TransportError(message, status_code=status, detail=detail)
