"""
Tests for settings loaded from the environment.
"""

import pytest

from fintrack.config import (
    DashboardSettings,
    RatesSettings,
    get_settings,
    validate_all_settings,
)


class TestSettings:
    """Tests for pydantic-settings configuration."""

    def test_rate_defaults(self):
        settings = RatesSettings()
        assert settings.api_base_url == "https://api.exchangerate-api.com/v4/latest"
        assert settings.cache_ttl_seconds == 3600

    def test_dashboard_defaults(self):
        settings = DashboardSettings()
        assert settings.window_days == 30
        assert settings.top_n == 5
        assert settings.recent_n == 10
        assert settings.trend_months == 6

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("DASHBOARD_BASE_CURRENCY", "usd")
        monkeypatch.setenv("RATES_API_BASE_URL", "https://rates.test/latest/")
        assert DashboardSettings().base_currency == "USD"
        assert RatesSettings().api_base_url == "https://rates.test/latest"

    def test_invalid_value_rejected(self, monkeypatch):
        monkeypatch.setenv("DASHBOARD_TOP_N", "0")
        with pytest.raises(ValueError):
            DashboardSettings()

    def test_validate_all_settings(self, monkeypatch):
        monkeypatch.setenv("RATES_TIMEOUT_SECONDS", "-1")
        results = validate_all_settings()
        assert results["dashboard"] is True
        assert results["rates"] is False
        assert "rates_error" in results

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
