"""OCR configuration and credential resolution.

Deployment config values come in three forms: a literal (``sk-...``), a
placeholder naming a variable (``${OCR_API_KEY}``), or empty. Each raw string
is classified once by :func:`parse_config_value`; everything downstream works
with the tagged value rather than re-matching the placeholder pattern.
"""

import logging
import os
import re
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Protocol, Union

from ocr_ingest.errors import CredentialResolutionError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.mistral.ai/v1"
DEFAULT_MODEL = "mistral-ocr-latest"

API_KEY_VAR = "OCR_API_KEY"
BASE_URL_VAR = "OCR_BASEURL"
MODEL_VAR = "OCR_MODEL"

ENV_VAR_PATTERN = re.compile(r"^\$\{(.+)\}$")


# ── Tagged config values ───────────────────────────────────────────────────


@dataclass(frozen=True)
class LiteralValue:
    value: str


@dataclass(frozen=True)
class EnvReference:
    name: str


@dataclass(frozen=True)
class EmptyValue:
    pass


ConfigValue = Union[LiteralValue, EnvReference, EmptyValue]


def parse_config_value(raw: Optional[str]) -> ConfigValue:
    """Classify a raw config string as a placeholder, empty, or a literal."""
    raw = raw or ""
    match = ENV_VAR_PATTERN.match(raw)
    if match:
        return EnvReference(match.group(1))
    if not raw.strip():
        return EmptyValue()
    return LiteralValue(raw)


# ── Config ─────────────────────────────────────────────────────────────────


@dataclass
class OCRConfig:
    api_key: str = ""
    base_url: str = ""
    model: str = ""

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[str, str]]) -> "OCRConfig":
        """Build from the hosting application's ``ocr`` config block."""
        mapping = mapping or {}
        return cls(
            api_key=mapping.get("apiKey") or mapping.get("api_key") or "",
            base_url=mapping.get("baseURL") or mapping.get("base_url") or "",
            model=mapping.get("mistralModel") or mapping.get("model") or "",
        )

    @classmethod
    def from_env(
        cls,
        api_key_override: Optional[str] = None,
        base_url_override: Optional[str] = None,
        model_override: Optional[str] = None,
    ) -> "OCRConfig":
        return cls(
            api_key=api_key_override or f"${{{API_KEY_VAR}}}",
            base_url=base_url_override or f"${{{BASE_URL_VAR}}}",
            model=model_override or os.environ.get(MODEL_VAR, DEFAULT_MODEL),
        )


@dataclass(frozen=True)
class ResolvedCredentials:
    api_key: str
    base_url: str

    def __repr__(self) -> str:
        return f"ResolvedCredentials(api_key='***', base_url={self.base_url!r})"


# ── Secret store ───────────────────────────────────────────────────────────


class SecretStore(Protocol):
    def resolve(
        self,
        user_id: str,
        names: Iterable[str],
        optional: Optional[set[str]] = None,
    ) -> dict[str, str]:
        """Return ``{name: value}`` for every name that resolves.

        Raises CredentialResolutionError if a name outside ``optional`` is missing.
        """
        ...


class EnvSecretStore:
    """Looks names up in the process environment, then in per-user secrets."""

    def __init__(
        self,
        user_secrets: Optional[Mapping[str, Mapping[str, str]]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.user_secrets = user_secrets or {}
        self.environ = os.environ if environ is None else environ

    def resolve(
        self,
        user_id: str,
        names: Iterable[str],
        optional: Optional[set[str]] = None,
    ) -> dict[str, str]:
        optional = optional or set()
        per_user = self.user_secrets.get(user_id, {})
        values: dict[str, str] = {}
        missing = []
        for name in names:
            value = self.environ.get(name) or per_user.get(name)
            if value:
                values[name] = value
            elif name not in optional:
                missing.append(name)
        if missing:
            raise CredentialResolutionError(
                f"No value for {', '.join(missing)} (user {user_id}). "
                f"Set it in the environment or the user's stored credentials."
            )
        return values


# ── Resolution ─────────────────────────────────────────────────────────────


def resolve_credentials(
    config: OCRConfig, user_id: str, store: SecretStore
) -> ResolvedCredentials:
    api_key = parse_config_value(config.api_key)
    base_url = parse_config_value(config.base_url)

    if isinstance(api_key, LiteralValue) and isinstance(base_url, LiteralValue):
        return ResolvedCredentials(api_key=api_key.value, base_url=base_url.value)

    api_key_name = api_key.name if isinstance(api_key, EnvReference) else API_KEY_VAR
    base_url_name = base_url.name if isinstance(base_url, EnvReference) else BASE_URL_VAR

    values = store.resolve(
        user_id,
        [base_url_name, api_key_name],
        optional={base_url_name},
    )

    key = (values.get(api_key_name) or "").strip()
    if not key:
        raise CredentialResolutionError(f"No OCR API key found in {api_key_name}.")
    url = (values.get(base_url_name) or "").strip() or DEFAULT_BASE_URL
    return ResolvedCredentials(api_key=key, base_url=url)


def resolve_model(config: OCRConfig) -> str:
    value = parse_config_value(config.model)
    if isinstance(value, LiteralValue):
        return value.value.strip()
    if isinstance(value, EnvReference):
        model = os.environ.get(value.name, "").strip()
        if model:
            return model
        logger.warning("%s is not set; using model %s", value.name, DEFAULT_MODEL)
    return DEFAULT_MODEL
