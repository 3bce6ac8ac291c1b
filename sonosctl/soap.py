"""Generic SOAP action invocation against UPnP control endpoints."""

import asyncio
import logging
import xml.etree.ElementTree as ET

import aiohttp

from .errors import FaultError, TransportError
from .utils import client_timeout, create_soap_body, create_soap_headers, ensure_session, local_name

logger = logging.getLogger(__name__)


def parse_action_response(xml_data, action):
    """Flattens the ``<action>Response`` element into a name -> text mapping.

    Every child is kept, including fields the caller did not ask for.
    """
    root = ET.fromstring(xml_data)
    body = root.find('{*}Body')
    if body is None:
        raise ValueError("SOAP envelope has no Body")
    response = body.find(f'{{*}}{action}Response')
    if response is None:
        raise ValueError(f"SOAP body has no {action}Response element")
    return {local_name(child.tag): child.text or '' for child in response}


def parse_fault(xml_data):
    """Returns ``(code, description)`` from a UPnP fault envelope."""
    root = ET.fromstring(xml_data)
    error = root.find('.//{*}UPnPError')
    if error is None:
        raise ValueError("no UPnPError in fault body")
    code = error.findtext('{*}errorCode')
    if code is None:
        raise ValueError("UPnPError has no errorCode")
    return int(code.strip()), (error.findtext('{*}errorDescription') or '').strip()


async def invoke(endpoint, service_type, action, arguments=None, session=None, timeout=None):
    """Performs one SOAP action and returns its output arguments.

    No retries: skip-track and queue edits are not safe to repeat blindly.
    """
    body = create_soap_body(service_type, action, arguments)
    headers = create_soap_headers(service_type, action)
    logger.debug(f"Invoking {service_type}#{action} on {endpoint}")

    try:
        async with ensure_session(session) as http:
            async with http.post(
                endpoint,
                data=body.encode('utf-8'),
                headers=headers,
                timeout=client_timeout(timeout)
            ) as response:
                status = response.status
                data = await response.read()
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        logger.error(f"{action} on {endpoint} failed: {e!r}")
        raise TransportError(None, message=f"{action} on {endpoint}: {e!r}") from e

    text = data.decode('utf-8', errors='replace')

    if status == 200:
        try:
            return parse_action_response(data, action)
        except (ET.ParseError, ValueError) as e:
            logger.error(f"Unreadable {action} response from {endpoint}: {e}")
            raise TransportError(status, text) from e

    try:
        code, description = parse_fault(data)
    except (ET.ParseError, ValueError):
        logger.error(f"{action} on {endpoint} failed with HTTP status {status}")
        raise TransportError(status, text) from None

    fault = FaultError(code, description)
    logger.error(f"{action} on {endpoint} returned {fault} ({fault.name})")
    raise fault
