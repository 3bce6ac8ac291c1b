"""
Per-speaker control handle.

Each operation maps onto a single SOAP action on the speaker's AVTransport or
RenderingControl service. A ``Device`` is a snapshot taken at discovery time:
after rooms are added, removed or renamed, discover again.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from . import soap
from .config import AVTRANSPORT, DESCRIPTION_PATH, RENDERING_CONTROL, get_settings
from .description import DeviceDescription, fetch
from .didl import parse_didl
from .errors import ActionError
from .utils import format_hms, parse_hms

logger = logging.getLogger(__name__)

INSTANCE_ID = 0
MASTER_CHANNEL = 'Master'


class TransportState(Enum):
    STOPPED = 'STOPPED'
    PLAYING = 'PLAYING'
    PAUSED_PLAYBACK = 'PAUSED_PLAYBACK'
    PAUSED_RECORDING = 'PAUSED_RECORDING'
    RECORDING = 'RECORDING'
    NO_MEDIA_PRESENT = 'NO_MEDIA_PRESENT'
    TRANSITIONING = 'TRANSITIONING'

    @classmethod
    def from_upnp(cls, value):
        try:
            return cls((value or '').strip().upper())
        except ValueError:
            logger.warning(f"Unknown transport state {value!r}, treating as STOPPED")
            return cls.STOPPED


@dataclass(frozen=True)
class Track:
    title: str = ''
    artist: str = ''
    album: str = ''
    uri: str = ''
    queue_position: Optional[int] = None
    duration: Optional[int] = None  # seconds
    position: Optional[int] = None  # seconds into the track
    album_art: str = ''


@dataclass(frozen=True)
class QueueEntry:
    position: int
    uri: str


def _check_position(position):
    if isinstance(position, bool) or not isinstance(position, int) or position < 1:
        raise ValueError(f"Queue positions start at 1, got {position!r}")


class Device:
    """A Sonos speaker found on the network.

    Commands go to this speaker only. When it is a grouped member rather than
    the group coordinator, AVTransport commands are refused by the speaker and
    surface as ``FaultError`` with the code it reports.
    """

    def __init__(self, description: DeviceDescription, session=None):
        self._description = description
        self._session = session

    @classmethod
    def from_description(cls, description, session=None):
        return cls(description, session=session)

    @classmethod
    async def from_ip(cls, ip, session=None):
        """Builds a handle for a speaker at a known address, without SSDP."""
        port = get_settings().device_port
        description = await fetch(f"http://{ip}:{port}{DESCRIPTION_PATH}", session=session)
        return cls(description, session=session)

    def __repr__(self):
        return f"Device(name={self.name!r}, location={self.location!r})"

    def __eq__(self, other):
        if not isinstance(other, Device):
            return NotImplemented
        return self.location == other.location

    def __hash__(self):
        return hash(self.location)

    @property
    def description(self):
        return self._description

    @property
    def name(self):
        """Room name when the speaker reports one, otherwise its friendly name.

        Names are not unique across speakers; use ``location`` as the key.
        """
        return self._description.room_name or self._description.friendly_name

    @property
    def location(self):
        return self._description.location

    @property
    def ip(self):
        return self._description.host

    @property
    def model(self):
        return self._description.model_name

    @property
    def uuid(self):
        return self._description.udn

    @property
    def endpoints(self):
        return self._description.services

    async def _call(self, service_type, action, arguments):
        return await soap.invoke(
            self.endpoints[service_type],
            service_type,
            action,
            arguments,
            session=self._session
        )

    async def _transport(self, action, **arguments):
        return await self._call(AVTRANSPORT, action, {'InstanceID': INSTANCE_ID, **arguments})

    async def _rendering(self, action, **arguments):
        return await self._call(
            RENDERING_CONTROL,
            action,
            {'InstanceID': INSTANCE_ID, 'Channel': MASTER_CHANNEL, **arguments}
        )

    # Playback

    async def play(self):
        await self._transport('Play', Speed=1)

    async def pause(self):
        await self._transport('Pause')

    async def stop(self):
        await self._transport('Stop')

    async def next(self):
        await self._transport('Next')

    async def previous(self):
        await self._transport('Previous')

    async def seek(self, seconds):
        """Seeks within the current track."""
        if seconds < 0:
            raise ValueError(f"Seek target must not be negative, got {seconds!r}")
        await self._transport('Seek', Unit='REL_TIME', Target=format_hms(seconds))

    async def play_queue_item(self, position):
        """Jumps to a queue entry; positions start at 1."""
        _check_position(position)
        await self._transport('Seek', Unit='TRACK_NR', Target=position)

    async def play_uri(self, uri, metadata=''):
        """Replaces the current source with ``uri``."""
        await self._transport('SetAVTransportURI', CurrentURI=uri, CurrentURIMetaData=metadata)

    async def transport_state(self):
        result = await self._transport('GetTransportInfo')
        return TransportState.from_upnp(result.get('CurrentTransportState'))

    async def track(self):
        """Returns the track currently loaded.

        Raises MetadataError when the embedded DIDL-Lite cannot be parsed.
        """
        result = await self._transport('GetPositionInfo')
        metadata = parse_didl(result.get('TrackMetaData', ''))

        queue_position = None
        try:
            queue_position = int(result.get('Track', ''))
        except ValueError:
            pass

        duration = parse_hms(result.get('TrackDuration'))
        if duration is None:
            duration = parse_hms(metadata['duration'])

        return Track(
            title=metadata['title'],
            artist=metadata['artist'],
            album=metadata['album'],
            uri=result.get('TrackURI') or metadata['uri'],
            queue_position=queue_position,
            duration=duration,
            position=parse_hms(result.get('RelTime')),
            album_art=metadata['album_art'],
        )

    # Rendering

    async def volume(self):
        result = await self._rendering('GetVolume')
        try:
            return int(result['CurrentVolume'])
        except (KeyError, ValueError) as e:
            raise ActionError(f"GetVolume on {self.name} returned no usable CurrentVolume") from e

    async def set_volume(self, volume):
        """Sets the volume; values outside 0..100 are rejected before any request."""
        if isinstance(volume, bool) or not isinstance(volume, int) or not 0 <= volume <= 100:
            raise ValueError(f"Volume must be an integer between 0 and 100, got {volume!r}")
        await self._rendering('SetVolume', DesiredVolume=volume)

    async def muted(self):
        result = await self._rendering('GetMute')
        return result.get('CurrentMute') == '1'

    async def set_mute(self, mute):
        await self._rendering('SetMute', DesiredMute=1 if mute else 0)

    # Queue

    async def enqueue(self, uri, position=0, metadata='', as_next=False):
        """Adds ``uri`` to the queue.

        ``position`` 0 appends to the end; otherwise it is the 1-based slot the
        track should occupy. Returns the entry as placed by the speaker.
        """
        if position != 0:
            _check_position(position)
        result = await self._transport(
            'AddURIToQueue',
            EnqueuedURI=uri,
            EnqueuedURIMetaData=metadata,
            DesiredFirstTrackNumberEnqueued=position,
            EnqueueAsNext=1 if as_next else 0
        )
        try:
            placed = int(result.get('FirstTrackNumberEnqueued', ''))
        except ValueError:
            placed = position
        logger.debug(f"Enqueued {uri} on {self.name} at position {placed}")
        return QueueEntry(position=placed, uri=uri)

    async def dequeue(self, position):
        """Removes the queue entry at ``position`` (starting at 1)."""
        _check_position(position)
        await self._transport('RemoveTrackFromQueue', ObjectID=f'Q:0/{position}', UpdateID=0)

    async def clear_queue(self):
        await self._transport('RemoveAllTracksFromQueue')
