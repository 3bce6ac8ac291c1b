import asyncio
import logging
import socket
import time

from .config import SEARCH_TARGET, SSDP_ADDR, SSDP_PORT, get_settings
from .description import fetch
from .device import Device
from .errors import DiscoveryError, FetchError
from .utils import ensure_session

logger = logging.getLogger(__name__)


def build_search_request(search_target=SEARCH_TARGET, mx=1, host=(SSDP_ADDR, SSDP_PORT)):
    return (
        'M-SEARCH * HTTP/1.1\r\n'
        f'HOST: {host[0]}:{host[1]}\r\n'
        'MAN: "ssdp:discover"\r\n'
        f'MX: {mx}\r\n'
        f'ST: {search_target}\r\n'
        '\r\n'
    ).encode('utf-8')


def parse_search_response(data):
    """Parses an SSDP reply into a dict keyed by lowercase header name."""
    text = data.decode('utf-8', errors='ignore')
    headers = {}
    for line in text.split('\r\n')[1:]:
        if ':' in line:
            key, value = line.split(':', 1)
            headers[key.strip().lower()] = value.strip()
    return headers


def collect_locations(timeout, mx=1, search_target=SEARCH_TARGET, address=(SSDP_ADDR, SSDP_PORT)):
    """Sends one M-SEARCH and gathers unique LOCATION headers until ``timeout`` expires.

    Blocking; ``discover`` runs it in a worker thread.
    """
    locations = []
    seen = set()
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
    except OSError as e:
        raise DiscoveryError(f"Cannot open discovery socket: {e}") from e

    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, 2)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_RCVBUF, 65536)
        try:
            sock.bind(('0.0.0.0', 0))
            sock.sendto(build_search_request(search_target, mx), address)
        except OSError as e:
            raise DiscoveryError(f"Cannot send SSDP search to {address[0]}:{address[1]}: {e}") from e

        deadline = time.monotonic() + timeout
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            sock.settimeout(remaining)
            try:
                data, addr = sock.recvfrom(65535)
            except socket.timeout:
                break
            except OSError as e:
                logger.error(f"Error while reading SSDP replies: {e}")
                break

            headers = parse_search_response(data)
            location = headers.get('location')
            if not location:
                logger.debug(f"Ignoring SSDP reply without LOCATION from {addr[0]}")
                continue
            # one reply per advertised service is normal
            if location in seen:
                continue
            seen.add(location)
            locations.append(location)
    finally:
        sock.close()

    logger.debug(f"SSDP search found {len(locations)} location(s)")
    return locations


async def discover(timeout=None, session=None, require_devices=False, address=(SSDP_ADDR, SSDP_PORT)):
    """Discovers Sonos speakers on the local network.

    Returns one ``Device`` per description location, in the order their
    descriptions finished loading. Speakers whose description cannot be
    fetched are logged and left out. Nothing is cached: the result is a
    snapshot and must be refreshed after any room change.
    """
    settings = get_settings()
    if timeout is None:
        timeout = settings.discovery_timeout

    locations = await asyncio.to_thread(
        collect_locations, timeout, settings.discovery_mx, SEARCH_TARGET, address
    )

    devices = []
    if locations:
        async with ensure_session(session) as http:
            tasks = [asyncio.create_task(fetch(location, session=http)) for location in locations]
            try:
                for task in asyncio.as_completed(tasks):
                    try:
                        description = await task
                    except FetchError as e:
                        logger.warning(f"Skipping device: {e}")
                        continue
                    devices.append(Device.from_description(description, session=session))
            finally:
                for task in tasks:
                    task.cancel()

    if not devices and require_devices:
        raise DiscoveryError(f"No Sonos devices answered within {timeout} seconds")

    logger.info(f"Discovered {len(devices)} Sonos device(s)")
    return devices
