"""Tests for environment configuration."""

from __future__ import annotations

import pytest

from splitpay.core.config import (
    DEFAULT_MAX_PER_PART,
    SplitpayConfig,
    load_config_from_env,
    require_google_api_key,
    validate_max_per_part,
)
from splitpay.core.currency import Locale

_ENV_VARS = [
    "SPLITPAY_DATABASE_URL",
    "SPLITPAY_LOCALE",
    "SPLITPAY_MAX_PER_PART",
    "SPLITPAY_SETTLEMENT_CURRENCY",
    "SPLITPAY_DEBOUNCE_SECONDS",
    "SPLITPAY_EXTRACTION_MODEL",
]


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for key in _ENV_VARS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


class TestLoadConfigFromEnv:
    def test_defaults(self, clean_env: pytest.MonkeyPatch) -> None:
        assert load_config_from_env() == SplitpayConfig()

    def test_reads_every_variable(self, clean_env: pytest.MonkeyPatch) -> None:
        # Setup
        clean_env.setenv("SPLITPAY_DATABASE_URL", "sqlite:///other.db")
        clean_env.setenv("SPLITPAY_LOCALE", "PT")
        clean_env.setenv("SPLITPAY_MAX_PER_PART", "20000")
        clean_env.setenv("SPLITPAY_SETTLEMENT_CURRENCY", "USD")
        clean_env.setenv("SPLITPAY_DEBOUNCE_SECONDS", "0.25")
        clean_env.setenv("SPLITPAY_EXTRACTION_MODEL", "gemini-2.5-pro")

        # Act
        config = load_config_from_env()

        # Assert
        assert config == SplitpayConfig(
            database_url="sqlite:///other.db",
            locale=Locale.PT,
            max_per_part=20000,
            settlement_currency="USD",
            debounce_seconds=0.25,
            extraction_model="gemini-2.5-pro",
        )

    @pytest.mark.parametrize(
        ("key", "value", "match"),
        [
            ("SPLITPAY_LOCALE", "fr", "SPLITPAY_LOCALE"),
            ("SPLITPAY_MAX_PER_PART", "abc", "SPLITPAY_MAX_PER_PART"),
            ("SPLITPAY_MAX_PER_PART", "14000", "SPLITPAY_MAX_PER_PART"),
            ("SPLITPAY_SETTLEMENT_CURRENCY", "brl", "SPLITPAY_SETTLEMENT_CURRENCY"),
            ("SPLITPAY_DEBOUNCE_SECONDS", "soon", "SPLITPAY_DEBOUNCE_SECONDS"),
            ("SPLITPAY_DEBOUNCE_SECONDS", "-1", "SPLITPAY_DEBOUNCE_SECONDS"),
        ],
    )
    def test_invalid_values_name_the_variable(
        self, clean_env: pytest.MonkeyPatch, key: str, value: str, match: str
    ) -> None:
        clean_env.setenv(key, value)

        with pytest.raises(ValueError, match=match):
            load_config_from_env()


class TestValidateMaxPerPart:
    def test_accepts_values_above_floor(self) -> None:
        assert validate_max_per_part(14001) == 14001
        assert validate_max_per_part(DEFAULT_MAX_PER_PART) == DEFAULT_MAX_PER_PART

    @pytest.mark.parametrize("value", [14000, 100, 0])
    def test_rejects_floor_and_below(self, value: int) -> None:
        with pytest.raises(ValueError, match="greater than 14000"):
            validate_max_per_part(value)


class TestRequireGoogleApiKey:
    def test_returns_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GOOGLE_API_KEY", " key-123 ")

        assert require_google_api_key() == "key-123"

    def test_missing_key_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)

        with pytest.raises(ValueError, match="GOOGLE_API_KEY"):
            require_google_api_key()
