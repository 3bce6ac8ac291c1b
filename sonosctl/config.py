"""Runtime configuration and protocol constants."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

SSDP_ADDR = "239.255.255.250"
SSDP_PORT = 1900
ZONE_PLAYER = "urn:schemas-upnp-org:device:ZonePlayer:1"
SEARCH_TARGET = ZONE_PLAYER

AVTRANSPORT = "urn:schemas-upnp-org:service:AVTransport:1"
RENDERING_CONTROL = "urn:schemas-upnp-org:service:RenderingControl:1"
REQUIRED_SERVICES = (AVTRANSPORT, RENDERING_CONTROL)

DESCRIPTION_PATH = "/xml/device_description.xml"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SONOS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Discovery
    discovery_timeout: float = 2.0  # seconds to collect SSDP replies
    discovery_mx: int = 1

    # HTTP calls (description fetch and SOAP actions)
    http_timeout: float = 5.0
    http_connect_timeout: float = 3.0

    device_port: int = 1400
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
