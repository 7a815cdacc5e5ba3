"""
REST endpoints for the live emoji overlay session.
"""
from fastapi import APIRouter, HTTPException
import logging

from emoji_fusion.config import Settings
from emoji_fusion.emotions import Emotion, emotion_to_color, emotion_to_description, emotion_to_emoji
from emoji_fusion.errors import CameraPermissionError, DeviceAccessError
from emoji_fusion.live import LiveSession
from emoji_fusion.models import LiveStatus


router = APIRouter()
settings = Settings()
logger = logging.getLogger(__name__)

live_session: LiveSession | None = None


def get_session() -> LiveSession:
    global live_session
    if live_session is None:
        live_session = LiveSession(settings)
    return live_session


def shutdown_session() -> None:
    global live_session
    if live_session is not None:
        logger.info("[api] closing live session")
        live_session.close()
        live_session = None


def _device_http_error(e: DeviceAccessError) -> HTTPException:
    code = 403 if isinstance(e, CameraPermissionError) else 404
    return HTTPException(status_code=code, detail=str(e))


@router.post("/live/start")
async def live_start():
    """
    Open the camera and start the capture -> estimation -> overlay pipeline.

    Returns:
        dict: {"status": "started" | "already_running"}
    """
    session = get_session()
    try:
        started = session.start()
    except DeviceAccessError as e:
        logger.exception("[api] camera start failed")
        raise _device_http_error(e)
    return {"status": "started" if started else "already_running"}

@router.get("/live/status", response_model=LiveStatus)
async def live_status():
    return get_session().status()

@router.post("/live/stop")
async def live_stop():
    stopped = get_session().stop()
    return {"status": "stopped" if stopped else "not_running"}

@router.post("/live/switch")
async def live_switch():
    """
    Toggle between front (user) and back (environment) cameras.
    Restarts the stream when running, so detection pauses briefly.
    """
    session = get_session()
    try:
        facing = session.switch_source()
    except DeviceAccessError as e:
        logger.exception("[api] camera switch failed")
        raise _device_http_error(e)
    return {"status": "switched", "facing": facing}

@router.get("/emotions")
async def emotions():
    """Supported emotions with their emoji, colour tag and description."""
    return [
        {
            "emotion": e.value,
            "emoji": emotion_to_emoji(e),
            "color": emotion_to_color(e),
            "description": emotion_to_description(e),
        }
        for e in Emotion
    ]
