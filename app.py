from flask import Flask, jsonify, request
import logging

from sonosctl import (
    Device,
    FaultError,
    FetchError,
    MetadataError,
    SonosError,
    TransportError,
    discover
)
from sonosctl.config import get_settings

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = Flask(__name__)

PLAYBACK_ACTIONS = {
    "Play": "play",
    "Pause": "pause",
    "Stop": "stop",
    "Next": "next",
    "Previous": "previous",
}


def device_to_dict(device):
    return {
        "name": device.name,
        "ip": device.ip,
        "location": device.location,
        "model": device.model,
        "uuid": device.uuid,
    }


def track_to_dict(track):
    return {
        "title": track.title,
        "artist": track.artist,
        "album": track.album,
        "uri": track.uri,
        "queue_position": track.queue_position,
        "duration": track.duration,
        "position": track.position,
        "album_art": track.album_art,
    }


def error_response(error):
    """Turns a library error into the JSON payload returned to clients."""
    if isinstance(error, FaultError):
        return jsonify({
            "success": False,
            "error": error.description,
            "code": error.code,
            "name": error.name
        }), 502
    if isinstance(error, TransportError):
        return jsonify({"success": False, "error": str(error), "status": error.status}), 502
    if isinstance(error, MetadataError):
        return jsonify({"success": False, "error": str(error)}), 502
    if isinstance(error, FetchError):
        return jsonify({"success": False, "error": str(error)}), 404
    if isinstance(error, ValueError):
        return jsonify({"success": False, "error": str(error)}), 400
    return jsonify({"success": False, "error": str(error)}), 500


@app.route("/api/devices")
async def list_devices():
    timeout = request.args.get("timeout", type=float)
    try:
        devices = await discover(timeout=timeout)
    except SonosError as e:
        logger.error(str(e))
        return error_response(e)
    devices = sorted(devices, key=lambda d: d.name.lower())
    return jsonify({"success": True, "devices": [device_to_dict(d) for d in devices]})


@app.route("/api/control/<ip>/<action>")
async def control_device(ip, action):
    """Handle device control requests."""
    try:
        device = await Device.from_ip(ip)
        if action == "GetState":
            state = await device.transport_state()
            return jsonify({"success": True, "state": state.value})
        elif action == "GetTrackInfo":
            track = await device.track()
            return jsonify({"success": True, "track": track_to_dict(track)})
        elif action in PLAYBACK_ACTIONS:
            await getattr(device, PLAYBACK_ACTIONS[action])()
            state = await device.transport_state()
            return jsonify({"success": True, "state": state.value})
        return jsonify({"success": False, "error": f"Unknown action {action}"}), 404
    except (SonosError, ValueError) as e:
        logger.error(str(e))
        return error_response(e)


@app.route("/api/control/<ip>/Seek/<int:seconds>")
async def seek_device(ip, seconds):
    try:
        device = await Device.from_ip(ip)
        await device.seek(seconds)
        return jsonify({"success": True})
    except (SonosError, ValueError) as e:
        logger.error(str(e))
        return error_response(e)


@app.route("/api/volume/<ip>/<action>")
@app.route("/api/volume/<ip>/set/<int:level>")
async def control_volume(ip, action="set", level=None):
    """Handle volume control requests."""
    try:
        device = await Device.from_ip(ip)
        if action == "get":
            volume = await device.volume()
            muted = await device.muted()
            return jsonify({"success": True, "volume": volume, "muted": muted})
        elif action == "mute":
            await device.set_mute(True)
            return jsonify({"success": True})
        elif action == "unmute":
            await device.set_mute(False)
            return jsonify({"success": True})
        elif action == "set":
            await device.set_volume(level)
            return jsonify({"success": True, "volume": await device.volume()})
        elif action in ["up", "down"]:
            current_volume = await device.volume()
            new_volume = current_volume + (2 if action == "up" else -2)
            new_volume = max(0, min(100, new_volume))
            await device.set_volume(new_volume)
            return jsonify({"success": True, "volume": new_volume})
        return jsonify({"success": False, "error": f"Unknown action {action}"}), 404
    except (SonosError, ValueError) as e:
        logger.error(str(e))
        return error_response(e)


@app.route("/api/queue/<ip>/add")
async def queue_add(ip):
    uri = request.args.get("uri")
    if not uri:
        return jsonify({"success": False, "error": "uri is required"}), 400
    position = request.args.get("position", default=0, type=int)
    as_next = request.args.get("next", default="0") in ("1", "true")
    try:
        device = await Device.from_ip(ip)
        entry = await device.enqueue(uri, position=position, as_next=as_next)
        return jsonify({"success": True, "position": entry.position})
    except (SonosError, ValueError) as e:
        logger.error(str(e))
        return error_response(e)


@app.route("/api/queue/<ip>/remove/<int:position>")
async def queue_remove(ip, position):
    try:
        device = await Device.from_ip(ip)
        await device.dequeue(position)
        return jsonify({"success": True})
    except (SonosError, ValueError) as e:
        logger.error(str(e))
        return error_response(e)


@app.route("/api/queue/<ip>/clear")
async def queue_clear(ip):
    try:
        device = await Device.from_ip(ip)
        await device.clear_queue()
        return jsonify({"success": True})
    except (SonosError, ValueError) as e:
        logger.error(str(e))
        return error_response(e)


if __name__ == "__main__":
    import hypercorn.asyncio
    import asyncio

    config = hypercorn.Config()
    config.bind = ["0.0.0.0:5000"]
    asyncio.run(hypercorn.asyncio.serve(app, config))
