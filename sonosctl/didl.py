"""DIDL-Lite track metadata, as embedded in AVTransport responses.

Parsing here is independent of the SOAP envelope: a bad fragment raises
``MetadataError`` without affecting the outer action result.
"""

import xml.etree.ElementTree as ET
from xml.sax.saxutils import escape, quoteattr

from .errors import MetadataError

DIDL_NS = 'urn:schemas-upnp-org:metadata-1-0/DIDL-Lite/'
DC_NS = 'http://purl.org/dc/elements/1.1/'
UPNP_NS = 'urn:schemas-upnp-org:metadata-1-0/upnp/'

EMPTY_METADATA = {
    'title': '',
    'artist': '',
    'album': '',
    'uri': '',
    'duration': '',
    'album_art': '',
}


def _find_text(item, *paths):
    for path in paths:
        text = item.findtext(path)
        if text and text.strip():
            return text.strip()
    return ''


def parse_didl(text):
    """Extracts title, artist and album from a DIDL-Lite fragment.

    Missing fields come back as empty strings. Devices send ``NOT_IMPLEMENTED``
    or nothing at all when no track is loaded.
    """
    metadata = dict(EMPTY_METADATA)
    if not text or not text.strip() or text.strip() == 'NOT_IMPLEMENTED':
        return metadata

    try:
        root = ET.fromstring(text.strip())
    except ET.ParseError as e:
        raise MetadataError(f"Unparsable DIDL-Lite: {e}") from e

    item = root.find('{*}item')
    if item is None:
        item = root.find('{*}container')
    if item is None:
        return metadata

    metadata['title'] = _find_text(item, f'{{{DC_NS}}}title')
    metadata['artist'] = _find_text(item, f'{{{DC_NS}}}creator', f'{{{UPNP_NS}}}artist')
    metadata['album'] = _find_text(item, f'{{{UPNP_NS}}}album')
    metadata['album_art'] = _find_text(item, f'{{{UPNP_NS}}}albumArtURI')

    res = item.find('{*}res')
    if res is not None:
        metadata['uri'] = (res.text or '').strip()
        metadata['duration'] = res.get('duration', '')
    return metadata


def build_didl(uri, title='', upnp_class='object.item.audioItem.musicTrack'):
    """Returns a minimal DIDL-Lite item describing ``uri``."""
    return (
        f'<DIDL-Lite xmlns="{DIDL_NS}" xmlns:dc="{DC_NS}" xmlns:upnp="{UPNP_NS}">'
        '<item id="-1" parentID="-1" restricted="true">'
        f'<dc:title>{escape(title)}</dc:title>'
        f'<upnp:class>{escape(upnp_class)}</upnp:class>'
        f'<res protocolInfo={quoteattr("http-get:*:*:*")}>{escape(uri)}</res>'
        '</item>'
        '</DIDL-Lite>'
    )
