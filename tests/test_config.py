"""Tests for cyro.config — AppConfig frozen dataclass."""

import dataclasses

import pytest

from cyro.config import AppConfig


class TestAppConfig:
    def test_defaults(self) -> None:
        cfg = AppConfig()

        assert cfg.host == "127.0.0.1"
        assert cfg.port == 2772
        assert cfg.reload is False
        assert cfg.strict_routes is False
        assert cfg.log_level == "info"
        assert cfg.server_header is None

    def test_override(self) -> None:
        cfg = AppConfig(host="0.0.0.0", port=3000, reload=True)

        assert cfg.host == "0.0.0.0"
        assert cfg.port == 3000
        assert cfg.reload is True

    def test_frozen(self) -> None:
        cfg = AppConfig()

        with pytest.raises(AttributeError):
            cfg.reload = True  # type: ignore[misc]

    @pytest.mark.parametrize("name", ["debug", "secret_key"])
    def test_no_unused_fields(self, name) -> None:
        assert name not in {f.name for f in dataclasses.fields(AppConfig)}
        with pytest.raises(TypeError):
            AppConfig(**{name: "x"})


class TestFromEnv:
    def test_reads_prefixed_variables(self, monkeypatch) -> None:
        monkeypatch.setenv("CYRO_HOST", "0.0.0.0")
        monkeypatch.setenv("CYRO_PORT", "9000")
        monkeypatch.setenv("CYRO_STRICT_ROUTES", "yes")
        monkeypatch.setenv("CYRO_SERVER_HEADER", "cyro")

        cfg = AppConfig.from_env()

        assert cfg.host == "0.0.0.0"
        assert cfg.port == 9000
        assert cfg.strict_routes is True
        assert cfg.server_header == "cyro"

    @pytest.mark.parametrize(("raw", "expected"), [("1", True), ("On", True), ("0", False), ("no", False)])
    def test_bool_coercion(self, monkeypatch, raw, expected) -> None:
        monkeypatch.setenv("CYRO_RELOAD", raw)
        assert AppConfig.from_env().reload is expected

    def test_missing_variables_keep_defaults(self, monkeypatch) -> None:
        monkeypatch.delenv("CYRO_PORT", raising=False)
        assert AppConfig.from_env().port == 2772

    def test_overrides_win(self, monkeypatch) -> None:
        monkeypatch.setenv("CYRO_PORT", "9000")
        assert AppConfig.from_env(port=4000).port == 4000

    def test_custom_prefix(self, monkeypatch) -> None:
        monkeypatch.setenv("MYAPP_LOG_LEVEL", "debug")
        assert AppConfig.from_env(prefix="MYAPP_").log_level == "debug"

    def test_bad_int_raises(self, monkeypatch) -> None:
        monkeypatch.setenv("CYRO_PORT", "eighty")
        with pytest.raises(ValueError):
            AppConfig.from_env()
