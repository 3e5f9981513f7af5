"""Tests for environment-driven bridge settings."""

import pytest

from orderlink.infra.settings import BridgeSettings, load_settings, truthy_env


class TestLoadSettings:
    def test_secret_required(self):
        with pytest.raises(RuntimeError, match="JWT_SECRET"):
            load_settings()

    def test_defaults(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", "s3cret")
        settings = load_settings()

        assert settings.link_ttl_minutes == 60
        assert settings.link_one_time is False
        assert settings.guest_session_ttl_minutes == 120
        assert settings.customer_session_ttl_days == 30
        assert settings.portal_base_url == "http://localhost:5173"
        assert settings.short_link_base is None
        assert settings.link_store == "memory"
        assert settings.brand_name == "DynLeaf"
        assert not settings.is_production

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", "s3cret")
        monkeypatch.setenv("MAGIC_LINK_TTL_MINUTES", "15")
        monkeypatch.setenv("MAGIC_LINK_ONE_TIME", "yes")
        monkeypatch.setenv("BACKEND_PUBLIC_BASE_URL", "https://api.example/")
        monkeypatch.setenv("CUSTOMER_PORTAL_BASE_URL", "https://order.example/")
        monkeypatch.setenv("APP_ENV", "PRODUCTION")
        settings = load_settings()

        assert settings.link_ttl_minutes == 15
        assert settings.link_one_time is True
        assert settings.short_link_base == "https://api.example"
        assert settings.portal_base_url == "https://order.example"
        assert settings.is_production

    def test_link_short_base_preferred(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", "s3cret")
        monkeypatch.setenv("LINK_SHORT_BASE", "https://go.example")
        monkeypatch.setenv("BACKEND_PUBLIC_BASE_URL", "https://api.example")
        assert load_settings().short_link_base == "https://go.example"

    @pytest.mark.parametrize("value", ["abc", "0", "-5"])
    def test_invalid_ttl(self, monkeypatch, value):
        monkeypatch.setenv("JWT_SECRET", "s3cret")
        monkeypatch.setenv("MAGIC_LINK_TTL_MINUTES", value)
        with pytest.raises(RuntimeError, match="MAGIC_LINK_TTL_MINUTES"):
            load_settings()

    def test_invalid_link_store(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", "s3cret")
        monkeypatch.setenv("LINK_STORE", "redis")
        with pytest.raises(RuntimeError, match="LINK_STORE"):
            load_settings()

    def test_inbound_dispatch(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", "s3cret")
        assert load_settings().inbound_dispatch == "thread"

        monkeypatch.setenv("INBOUND_DISPATCH", "Inline")
        assert load_settings().inbound_dispatch == "inline"

        monkeypatch.setenv("INBOUND_DISPATCH", "celery")
        with pytest.raises(RuntimeError, match="INBOUND_DISPATCH"):
            load_settings()

    def test_secret_not_in_repr(self):
        assert "s3cret" not in repr(BridgeSettings(jwt_secret="s3cret"))


class TestTruthyEnv:
    @pytest.mark.parametrize("value", ["1", "true", "TRUE", " yes ", "on"])
    def test_truthy(self, value):
        assert truthy_env(value) is True

    @pytest.mark.parametrize("value", ["0", "false", "no", ""])
    def test_falsy(self, value):
        assert truthy_env(value) is False

    def test_default(self):
        assert truthy_env(None, default=True) is True
