import logging
from contextlib import asynccontextmanager
from xml.sax.saxutils import escape

import aiohttp

from .config import get_settings

logger = logging.getLogger(__name__)

SOAP_ENVELOPE_NS = "http://schemas.xmlsoap.org/soap/envelope/"
SOAP_ENCODING = "http://schemas.xmlsoap.org/soap/encoding/"


def get_xml_text(element, path, default=None):
    """Helper function to safely get text from an XML element."""
    found = element.find(path)
    if found is None or found.text is None:
        return default
    return found.text


def local_name(tag):
    """Strips the ``{namespace}`` prefix from an ElementTree tag."""
    return tag.rsplit('}', 1)[-1]


def create_soap_body(service_type, action, arguments=None):
    """Helper function to create SOAP request bodies.

    Arguments are emitted in the order given; some actions depend on it.
    """
    args = ''.join(
        f'<{name}>{escape(str(value))}</{name}>'
        for name, value in (arguments or {}).items()
    )
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        f'<s:Envelope xmlns:s="{SOAP_ENVELOPE_NS}" s:encodingStyle="{SOAP_ENCODING}">'
        '<s:Body>'
        f'<u:{action} xmlns:u="{service_type}">{args}</u:{action}>'
        '</s:Body>'
        '</s:Envelope>'
    )


def create_soap_headers(service_type, action):
    """Helper function to create SOAP headers."""
    return {
        'Content-Type': 'text/xml; charset="utf-8"',
        'SOAPACTION': f'"{service_type}#{action}"'
    }


def client_timeout(total=None):
    settings = get_settings()
    return aiohttp.ClientTimeout(
        total=total if total is not None else settings.http_timeout,
        connect=settings.http_connect_timeout,
    )


@asynccontextmanager
async def ensure_session(session=None):
    """Yields the given session, or a fresh one closed on exit."""
    if session is not None:
        yield session
        return
    async with aiohttp.ClientSession() as own_session:
        yield own_session


def format_hms(seconds):
    seconds = int(seconds)
    return f"{seconds // 3600}:{seconds // 60 % 60:02}:{seconds % 60:02}"


def parse_hms(text):
    """Converts ``H:MM:SS`` to seconds, or None when the device reports nothing usable."""
    if not text:
        return None
    parts = text.split('.')[0].split(':')
    if len(parts) != 3:
        return None
    try:
        hours, minutes, seconds = (int(p) for p in parts)
    except ValueError:
        logger.debug(f"Unparsable duration {text!r}")
        return None
    return hours * 3600 + minutes * 60 + seconds
