"""Song, streaming data and audio stream endpoints."""

import logging
from collections.abc import AsyncIterator
from typing import Any
from urllib.parse import unquote

import httpx
from fastapi import APIRouter, Query, Request, status
from fastapi.responses import JSONResponse, Response, StreamingResponse

from ytmproxy.api.deps import (
    ConfigDep,
    SessionConfigDep,
    StreamClientDep,
    YouTubeMusicDep,
)
from ytmproxy.api.exceptions import ErrorResponse
from ytmproxy.models.responses import SongVideoInfoResponse
from ytmproxy.services.ytmusic import select_audio_format

logger = logging.getLogger(__name__)

router = APIRouter(tags=["songs"])

_CHUNK_SIZE = 65536


@router.get(
    "/song/{video_id}",
    responses={404: {"model": ErrorResponse, "description": "Missing or private"}},
)
async def get_song(
    video_id: str, ytmusic: YouTubeMusicDep, session: SessionConfigDep
) -> SongVideoInfoResponse:
    """Song or video metadata with streaming data and, when enabled, lyrics."""
    return await ytmusic.get_song_video_info(video_id, session)


@router.get(
    "/streaming/{video_id}",
    responses={404: {"model": ErrorResponse, "description": "Not playable"}},
)
async def get_streaming_data(
    video_id: str, ytmusic: YouTubeMusicDep, session: SessionConfigDep
) -> dict[str, Any]:
    """Streaming formats for a song or video."""
    return await ytmusic.get_streaming_data(video_id, session)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content={"error": "stream_error", "message": message}
    )


@router.get(
    "/stream/{video_id}",
    response_class=StreamingResponse,
    responses={404: {"model": ErrorResponse, "description": "No audio stream"}},
)
# Registered first so the .m4a suffix is not captured as part of the ID
@router.get("/stream/{video_id}.m4a", include_in_schema=False)
async def stream_audio(
    video_id: str,
    request: Request,
    ytmusic: YouTubeMusicDep,
    session: SessionConfigDep,
    config: ConfigDep,
    client: StreamClientDep,
    quality: str | None = Query(None, description="'low' picks the smallest"),
) -> Response:
    """Proxy the best audio stream. Stream URLs are IP-locked to the server."""
    streaming_data = await ytmusic.get_streaming_data(video_id, session)
    audio = select_audio_format(streaming_data, quality)
    if audio is None:
        return _error(status.HTTP_404_NOT_FOUND, "No audio stream available")

    url = unquote(audio.get("url") or "")
    if not url:
        logger.error("Audio stream URL is missing for %s", video_id)
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Audio stream URL is missing"
        )
    if not url.startswith(("http://", "https://")):
        logger.warning("Audio stream URL is not absolute for %s", video_id)
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Invalid audio stream URL format"
        )

    headers = {
        "User-Agent": config.get_user_agent(),
        "Accept": "*/*",
        "Referer": "https://music.youtube.com/",
        "Origin": "https://music.youtube.com",
    }
    if "range" in request.headers:
        headers["Range"] = request.headers["range"]

    try:
        upstream = await client.send(
            client.build_request("GET", url, headers=headers), stream=True
        )
    except httpx.HTTPError as e:
        logger.warning("Failed to open audio stream for %s: %s", video_id, e)
        return _error(status.HTTP_502_BAD_GATEWAY, "Failed to fetch audio stream")
    if upstream.status_code >= 400:
        await upstream.aclose()
        return _error(upstream.status_code, "Failed to fetch audio stream")

    content_type = str(audio.get("mimeType", "audio/mp4")).split(";")[0]
    response_headers = {"Accept-Ranges": "bytes", "Cache-Control": "no-cache"}
    if "content-range" in upstream.headers:
        response_headers["Content-Range"] = upstream.headers["content-range"]

    async def _relay() -> AsyncIterator[bytes]:
        try:
            async for chunk in upstream.aiter_bytes(chunk_size=_CHUNK_SIZE):
                yield chunk
        except httpx.HTTPError as e:
            # End cleanly so the player can retry with a Range request
            logger.warning("Upstream read error while streaming %s: %s", video_id, e)
        finally:
            await upstream.aclose()

    return StreamingResponse(
        _relay(),
        status_code=upstream.status_code,
        media_type=content_type,
        headers=response_headers,
    )
