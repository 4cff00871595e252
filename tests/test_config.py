"""Settings validation."""

import pydantic
import pytest

from tapgo.core.config import EnvironmentMode, Settings


def test_defaults():
    settings = Settings()

    assert settings.order_ceiling == 600
    assert settings.enforce_order_ceiling is True
    assert settings.default_page_size == 50
    assert settings.kitchen_poll_seconds == 30.0
    assert settings.no_data_label == "No data yet"


@pytest.mark.parametrize("raw, expected", [("api", "/api"), ("/api/", "/api"), ("", "")])
def test_api_prefix_normalized(raw, expected):
    assert Settings(api_prefix=raw).api_prefix == expected


def test_env_mode_case_insensitive():
    settings = Settings(env_mode="PRODUCTION")

    assert settings.env_mode is EnvironmentMode.PRODUCTION
    assert settings.is_production


def test_unknown_timezone_rejected():
    with pytest.raises(pydantic.ValidationError):
        Settings(business_timezone="Mars/Olympus")


def test_timezone_property():
    assert str(Settings(business_timezone="Asia/Taipei").tz) == "Asia/Taipei"
