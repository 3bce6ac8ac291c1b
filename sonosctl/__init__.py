"""
Sonos Control Library

Discovers Sonos speakers on the local network and controls them over UPnP:
SSDP for discovery, the device description document for control endpoints,
and SOAP actions for playback, queue and volume commands. All network
operations are async.
"""

from .description import DeviceDescription, fetch, parse_description
from .device import Device, QueueEntry, Track, TransportState
from .discovery import discover
from .errors import (
    ActionError,
    DiscoveryError,
    FaultError,
    FetchError,
    IncompleteDescriptionError,
    MalformedDescriptionError,
    MetadataError,
    SonosError,
    TransportError,
    UnreachableError
)
from .soap import invoke

__version__ = "0.1.0"

__all__ = [
    'discover',
    'fetch',
    'parse_description',
    'invoke',
    'Device',
    'DeviceDescription',
    'Track',
    'TransportState',
    'QueueEntry',
    'SonosError',
    'DiscoveryError',
    'FetchError',
    'UnreachableError',
    'MalformedDescriptionError',
    'IncompleteDescriptionError',
    'ActionError',
    'TransportError',
    'FaultError',
    'MetadataError'
]
