"""
Goal: Config validation and the log scrubber.
"""
import pytest
from pydantic import ValidationError

from webhelper import settings
from webhelper.services.logs import sanitize
from webhelper.settings import WebHelperConfig


def test_defaults():
    cfg = WebHelperConfig()
    assert cfg.port_range == (4370, 4390)
    assert cfg.helper_port is None
    assert cfg.warnings is True
    assert cfg.scheme == "https"


def test_market_is_upper_cased():
    assert WebHelperConfig(market=" de ").market == "DE"
    assert WebHelperConfig(market="").market is None


@pytest.mark.parametrize("kwargs", [{"helper_port": 0}, {"port_range": (4390, 4370)}, {"port_range": (1, 70000)}])
def test_invalid_config(kwargs):
    with pytest.raises(ValidationError):
        WebHelperConfig(**kwargs)


def test_from_env_overrides_win(monkeypatch):
    monkeypatch.setattr(settings, "HELPER_PORT", 4375)
    monkeypatch.setattr(settings, "WARNINGS", False)
    cfg = WebHelperConfig.from_env()
    assert cfg.helper_port == 4375
    assert cfg.warnings is False
    cfg = WebHelperConfig.from_env(helper_port=4380, warnings=None)
    assert cfg.helper_port == 4380
    assert cfg.warnings is False


@pytest.mark.parametrize(
    "value,default,expected",
    [("4371", None, 4371), ("", 5, 5), ("abc", None, None), ("70000", 1, 1)],
)
def test_validate_port(value, default, expected):
    assert settings._validate_port(value, default) == expected


def test_sanitize_redacts_tokens():
    line = "GET https://abc.spotilocal.com:4370/remote/status.json?csrf=deadbeef&oauth=NAowChgYABCD&x=1"
    out = sanitize(line)
    assert "deadbeef" not in out
    assert "NAowChgYABCD" not in out
    assert "csrf=[REDACTED]" in out
    assert "x=1" in out
    assert sanitize("token " + "a" * 40) == "token [REDACTED]"
