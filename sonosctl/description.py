"""
UPnP device description fetching and parsing.

A Sonos ZonePlayer publishes its description at ``/xml/device_description.xml``.
The root device carries the identity fields; the AVTransport and
RenderingControl services live on the embedded MediaRenderer device, so
services are collected from the whole device tree.
"""

import asyncio
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional
from urllib.parse import urljoin, urlparse

import aiohttp

from .config import REQUIRED_SERVICES, ZONE_PLAYER
from .errors import IncompleteDescriptionError, MalformedDescriptionError, UnreachableError
from .utils import client_timeout, ensure_session, get_xml_text, local_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeviceDescription:
    location: str
    friendly_name: str
    udn: str = ''
    room_name: Optional[str] = None
    model_name: str = ''
    model_number: str = ''
    serial_number: str = ''
    software_version: str = ''
    hardware_version: str = ''
    services: Mapping[str, str] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        object.__setattr__(self, 'services', MappingProxyType(dict(self.services)))

    @property
    def host(self):
        return urlparse(self.location).hostname

    @property
    def port(self):
        return urlparse(self.location).port

    @property
    def base_url(self):
        parsed = urlparse(self.location)
        return f"{parsed.scheme}://{parsed.netloc}"


def _text(device, tag):
    return (get_xml_text(device, f'{{*}}{tag}', '') or '').strip()


def parse_description(location, xml_text):
    """Parses a description document fetched from ``location``.

    ``xml_text`` may be str or bytes. Only ZonePlayer root devices are accepted;
    other UPnP renderers answering the search are rejected as malformed.
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise MalformedDescriptionError(location, f"invalid XML: {e}") from e

    device = root.find('{*}device')
    if device is None:
        raise MalformedDescriptionError(location, "no root device element")
    friendly_name = _text(device, 'friendlyName')
    if not friendly_name:
        raise MalformedDescriptionError(location, "no friendlyName")
    device_type = _text(device, 'deviceType')
    if device_type != ZONE_PLAYER:
        raise MalformedDescriptionError(location, f"not a Sonos ZonePlayer: {device_type or 'no deviceType'}")

    base_url = (get_xml_text(root, '{*}URLBase') or '').strip() or location

    services = {}
    for service in (el for el in root.iter() if local_name(el.tag) == 'service'):
        service_type = _text(service, 'serviceType')
        control_url = _text(service, 'controlURL')
        if not service_type or not control_url:
            logger.debug(f"Skipping incomplete service entry in {location}")
            continue
        # first declaration wins; embedded devices may repeat a type
        services.setdefault(service_type, urljoin(base_url, control_url))

    missing = [s for s in REQUIRED_SERVICES if s not in services]
    if missing:
        raise IncompleteDescriptionError(location, missing)

    udn = _text(device, 'UDN')
    if udn.startswith('uuid:'):
        udn = udn[len('uuid:'):]

    return DeviceDescription(
        location=location,
        friendly_name=friendly_name,
        udn=udn,
        room_name=_text(device, 'roomName') or None,
        model_name=_text(device, 'modelName'),
        model_number=_text(device, 'modelNumber'),
        serial_number=_text(device, 'serialNum'),
        software_version=_text(device, 'softwareVersion'),
        hardware_version=_text(device, 'hardwareVersion'),
        services=services,
    )


async def fetch(location, session=None, timeout=None):
    """Gets and parses the description document of one device."""
    try:
        async with ensure_session(session) as http:
            async with http.get(location, timeout=client_timeout(timeout)) as response:
                if response.status != 200:
                    raise UnreachableError(location, f"HTTP status {response.status}")
                # bytes, so the XML declaration decides the encoding
                data = await response.read()
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise UnreachableError(location, repr(e)) from e

    return parse_description(location, data)
