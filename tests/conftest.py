import pytest

from fakes import FakeSpeaker, SSDPResponder
from sonosctl import Device, fetch


@pytest.fixture
async def speaker(aiohttp_server):
    fake = FakeSpeaker()
    server = await aiohttp_server(fake.make_app())
    fake.url = f"http://{server.host}:{server.port}"
    fake.port = server.port
    return fake


@pytest.fixture
async def device(speaker):
    description = await fetch(f"{speaker.url}/xml/device_description.xml")
    return Device.from_description(description)


@pytest.fixture
def ssdp_responder():
    responders = []

    def start(replies):
        responder = SSDPResponder(replies)
        responder.start()
        responders.append(responder)
        return responder

    yield start
    for responder in responders:
        responder.stop()
