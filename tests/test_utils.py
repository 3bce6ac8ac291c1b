import pytest

from sonosctl.config import Settings
from sonosctl.utils import format_hms, parse_hms


@pytest.mark.parametrize('seconds, text', [(0, '0:00:00'), (59, '0:00:59'), (3723, '1:02:03')])
def test_format_hms(seconds, text):
    assert format_hms(seconds) == text


@pytest.mark.parametrize('text, seconds', [
    ('0:04:12', 252),
    ('01:00:00', 3600),
    ('0:00:05.250', 5),
    ('NOT_IMPLEMENTED', None),
    ('', None),
    (None, None),
    ('4:12', None),
    ('a:b:c', None),
])
def test_parse_hms(text, seconds):
    assert parse_hms(text) == seconds


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv('SONOS_DISCOVERY_TIMEOUT', '4.5')
    monkeypatch.setenv('SONOS_HTTP_TIMEOUT', '1')

    settings = Settings()

    assert settings.discovery_timeout == 4.5
    assert settings.http_timeout == 1.0
    assert settings.device_port == 1400
