import pytest

from fakes import AVT, MEDIA_RENDERER, RC, FakeSpeaker, description_xml, ssdp_reply
from sonosctl import DiscoveryError, discover
from sonosctl.discovery import build_search_request, collect_locations, parse_search_response


def test_build_search_request():
    request = build_search_request(mx=2).decode('utf-8')

    assert request.startswith('M-SEARCH * HTTP/1.1\r\n')
    assert 'HOST: 239.255.255.250:1900\r\n' in request
    assert 'MAN: "ssdp:discover"\r\n' in request
    assert 'MX: 2\r\n' in request
    assert 'ST: urn:schemas-upnp-org:device:ZonePlayer:1\r\n' in request
    assert request.endswith('\r\n\r\n')


def test_parse_search_response():
    headers = parse_search_response(ssdp_reply('http://192.168.1.20:1400/xml/device_description.xml').encode())

    assert headers['location'] == 'http://192.168.1.20:1400/xml/device_description.xml'
    assert headers['st'] == 'urn:schemas-upnp-org:device:ZonePlayer:1'
    assert headers['ext'] == ''
    assert headers['x-rincon-household'] == 'Sonos_abc'


def test_collect_locations_deduplicates(ssdp_responder):
    responder = ssdp_responder([
        ssdp_reply('http://192.168.1.20:1400/xml/device_description.xml'),
        ssdp_reply('http://192.168.1.20:1400/xml/device_description.xml'),
        "HTTP/1.1 200 OK\r\nST: upnp:rootdevice\r\n\r\n",
        ssdp_reply('http://192.168.1.21:1400/xml/device_description.xml'),
    ])

    locations = collect_locations(0.5, address=responder.address)

    assert locations == [
        'http://192.168.1.20:1400/xml/device_description.xml',
        'http://192.168.1.21:1400/xml/device_description.xml',
    ]
    assert len(responder.searches) == 1
    assert b'ST: urn:schemas-upnp-org:device:ZonePlayer:1' in responder.searches[0]


async def test_discover_merges_announcements_for_one_location(speaker, ssdp_responder):
    location = f"{speaker.url}/xml/device_description.xml"
    responder = ssdp_responder([
        ssdp_reply(location, st=AVT, usn_suffix=AVT),
        ssdp_reply(location, st=RC, usn_suffix=RC),
    ])

    devices = await discover(timeout=0.5, address=responder.address)

    assert len(devices) == 1
    assert devices[0].location == location
    assert devices[0].endpoints[AVT] == f"{speaker.url}/MediaRenderer/AVTransport/Control"
    assert devices[0].endpoints[RC] == f"{speaker.url}/MediaRenderer/RenderingControl/Control"


async def test_discover_skips_failing_devices(speaker, aiohttp_server, unused_tcp_port, ssdp_responder):
    broken = FakeSpeaker(description=description_xml(services=(RC,)))
    broken_server = await aiohttp_server(broken.make_app())
    dead_port = unused_tcp_port

    good = f"{speaker.url}/xml/device_description.xml"
    responder = ssdp_responder([
        ssdp_reply(f"http://{broken_server.host}:{broken_server.port}/xml/device_description.xml"),
        ssdp_reply(good),
        ssdp_reply(f"http://127.0.0.1:{dead_port}/xml/device_description.xml"),
        ssdp_reply(good),
    ])

    devices = await discover(timeout=0.5, address=responder.address)

    assert [d.location for d in devices] == [good]


async def test_discover_unique_locations(aiohttp_server, ssdp_responder):
    locations = []
    for _ in range(3):
        server = await aiohttp_server(FakeSpeaker().make_app())
        locations.append(f"http://{server.host}:{server.port}/xml/device_description.xml")
    responder = ssdp_responder([ssdp_reply(loc) for loc in locations + locations[::-1]])

    devices = await discover(timeout=0.5, address=responder.address)

    assert sorted(d.location for d in devices) == sorted(locations)
    assert len({d.location for d in devices}) == len(devices)


async def test_discover_nothing_found_is_empty(ssdp_responder):
    responder = ssdp_responder([])

    assert await discover(timeout=0.2, address=responder.address) == []


async def test_discover_nothing_found_when_required(ssdp_responder):
    responder = ssdp_responder([])

    with pytest.raises(DiscoveryError):
        await discover(timeout=0.2, address=responder.address, require_devices=True)


async def test_discover_send_failure():
    with pytest.raises(DiscoveryError):
        await discover(timeout=0.2, address=('256.256.256.256', 1900))


async def test_discover_survives_undecodable_and_foreign_responders(speaker, aiohttp_server, ssdp_responder):
    garbled = await aiohttp_server(FakeSpeaker(description=b'<root>\xff\xfe</root>').make_app())
    renderer = await aiohttp_server(
        FakeSpeaker(description=description_xml(device_type=MEDIA_RENDERER)).make_app()
    )
    good = f"{speaker.url}/xml/device_description.xml"
    responder = ssdp_responder([
        ssdp_reply(f"http://{garbled.host}:{garbled.port}/xml/device_description.xml"),
        ssdp_reply(f"http://{renderer.host}:{renderer.port}/xml/device_description.xml"),
        ssdp_reply(good),
    ])

    devices = await discover(timeout=0.5, address=responder.address)

    assert [d.location for d in devices] == [good]
