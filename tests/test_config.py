"""Tests for ocr_ingest.config: config values, secret store, and credential resolution."""

from unittest.mock import MagicMock

import pytest

from ocr_ingest.config import (
    API_KEY_VAR,
    BASE_URL_VAR,
    DEFAULT_BASE_URL,
    DEFAULT_MODEL,
    EmptyValue,
    EnvReference,
    EnvSecretStore,
    LiteralValue,
    OCRConfig,
    ResolvedCredentials,
    parse_config_value,
    resolve_credentials,
    resolve_model,
)
from ocr_ingest.errors import CredentialResolutionError


def _store(values: dict) -> MagicMock:
    store = MagicMock()
    store.resolve.return_value = values
    return store


class TestParseConfigValue:
    def test_placeholder(self):
        assert parse_config_value("${MISTRAL_KEY}") == EnvReference("MISTRAL_KEY")

    def test_empty_string(self):
        assert parse_config_value("") == EmptyValue()

    def test_whitespace_is_empty(self):
        assert parse_config_value("   ") == EmptyValue()

    def test_none_is_empty(self):
        assert parse_config_value(None) == EmptyValue()

    def test_literal(self):
        assert parse_config_value("sk-123") == LiteralValue("sk-123")

    def test_partial_placeholder_is_literal(self):
        # Only a whole-string ${...} counts as a reference.
        assert parse_config_value("prefix-${KEY}") == LiteralValue("prefix-${KEY}")


class TestOCRConfig:
    def test_from_mapping_reads_app_keys(self):
        config = OCRConfig.from_mapping(
            {"apiKey": "${K}", "baseURL": "https://x", "mistralModel": "m"}
        )
        assert config == OCRConfig(api_key="${K}", base_url="https://x", model="m")

    def test_from_mapping_none(self):
        assert OCRConfig.from_mapping(None) == OCRConfig()

    def test_from_env_uses_placeholders(self, monkeypatch):
        monkeypatch.delenv("OCR_MODEL", raising=False)
        config = OCRConfig.from_env()
        assert config.api_key == "${OCR_API_KEY}"
        assert config.base_url == "${OCR_BASEURL}"
        assert config.model == DEFAULT_MODEL

    def test_from_env_overrides(self):
        config = OCRConfig.from_env(api_key_override="sk", base_url_override="https://b")
        assert config.api_key == "sk"
        assert config.base_url == "https://b"

    def test_credentials_repr_hides_key(self):
        assert "sk-secret" not in repr(ResolvedCredentials("sk-secret", "https://b"))


class TestEnvSecretStore:
    def test_reads_environment(self):
        store = EnvSecretStore(environ={"A": "1"})
        assert store.resolve("u1", ["A"]) == {"A": "1"}

    def test_falls_back_to_user_secrets(self):
        store = EnvSecretStore(user_secrets={"u1": {"A": "user-value"}}, environ={})
        assert store.resolve("u1", ["A"]) == {"A": "user-value"}

    def test_user_secrets_are_per_user(self):
        store = EnvSecretStore(user_secrets={"u1": {"A": "v"}}, environ={})
        with pytest.raises(CredentialResolutionError):
            store.resolve("u2", ["A"])

    def test_optional_missing_is_omitted(self):
        store = EnvSecretStore(environ={"A": "1"})
        assert store.resolve("u1", ["B", "A"], optional={"B"}) == {"A": "1"}

    def test_required_missing_names_the_variable(self):
        store = EnvSecretStore(environ={})
        with pytest.raises(CredentialResolutionError, match="OCR_API_KEY"):
            store.resolve("u1", ["OCR_API_KEY"])


class TestResolveCredentials:
    def test_literals_skip_the_store(self):
        store = _store({})
        creds = resolve_credentials(
            OCRConfig(api_key="sk-lit", base_url="https://lit/v1"), "u1", store
        )
        assert creds == ResolvedCredentials("sk-lit", "https://lit/v1")
        store.resolve.assert_not_called()

    def test_placeholder_key_is_looked_up_by_name(self):
        store = _store({"MY_KEY": "sk-from-store"})
        creds = resolve_credentials(
            OCRConfig(api_key="${MY_KEY}", base_url="https://lit/v1"), "u1", store
        )
        assert creds.api_key == "sk-from-store"
        store.resolve.assert_called_once_with(
            "u1", [BASE_URL_VAR, "MY_KEY"], optional={BASE_URL_VAR}
        )

    def test_placeholder_key_missing_fails(self):
        store = EnvSecretStore(environ={})
        with pytest.raises(CredentialResolutionError, match="MY_KEY"):
            resolve_credentials(OCRConfig(api_key="${MY_KEY}"), "u1", store)

    def test_empty_fields_use_fallback_names(self):
        store = _store({API_KEY_VAR: "sk", BASE_URL_VAR: "https://env/v1"})
        creds = resolve_credentials(OCRConfig(), "u1", store)
        assert creds == ResolvedCredentials("sk", "https://env/v1")
        store.resolve.assert_called_once_with(
            "u1", [BASE_URL_VAR, API_KEY_VAR], optional={BASE_URL_VAR}
        )

    def test_placeholder_base_url_is_optional(self):
        store = _store({"KEY": "sk"})
        creds = resolve_credentials(
            OCRConfig(api_key="${KEY}", base_url="${URL}"), "u1", store
        )
        assert creds.base_url == DEFAULT_BASE_URL
        assert store.resolve.call_args.kwargs["optional"] == {"URL"}

    def test_literal_key_with_empty_base_url_still_uses_store(self):
        store = _store({API_KEY_VAR: "sk-store"})
        creds = resolve_credentials(OCRConfig(api_key="sk-lit", base_url=""), "u1", store)
        assert creds.api_key == "sk-store"
        store.resolve.assert_called_once()

    def test_blank_key_from_store_fails(self):
        store = _store({API_KEY_VAR: "  "})
        with pytest.raises(CredentialResolutionError):
            resolve_credentials(OCRConfig(), "u1", store)


class TestResolveModel:
    def test_literal(self):
        assert resolve_model(OCRConfig(model=" custom-ocr ")) == "custom-ocr"

    def test_empty_uses_default(self):
        assert resolve_model(OCRConfig(model="")) == DEFAULT_MODEL

    def test_placeholder_reads_environment(self, monkeypatch):
        monkeypatch.setenv("MODEL_NAME", "mistral-ocr-2505")
        assert resolve_model(OCRConfig(model="${MODEL_NAME}")) == "mistral-ocr-2505"

    def test_unset_placeholder_falls_back_to_default(self, monkeypatch):
        monkeypatch.delenv("MODEL_NAME", raising=False)
        assert resolve_model(OCRConfig(model="${MODEL_NAME}")) == DEFAULT_MODEL
