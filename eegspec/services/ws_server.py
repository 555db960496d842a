"""
WebSocket server for spectrogram requests.

Endpoint: /compute/spectrogram (trailing slash optional)

Incoming text frames:
    {"type": "request_file_spectrogram", "content": {"filename": ..., "duration": hours}}
    {"type": "information", "content": {...}}

Outgoing binary frames:
    uint32 LE header_len | JSON header padded with spaces to header_len | payload

header_len = len(header) + (8 - (len(header) + 4) % 8), so the payload
always starts at an 8-byte aligned offset.

Per montage group (LL, LP, RP, RL) a request produces:
    spectrogram/new            (no payload)
    spectrogram/update         (payload: float32 nfreqs * nblocks)
    spectrogram/change_points  type=change_points  (payload: float32 nblocks)
    spectrogram/change_points  type=summed_signal  (payload: float32 nblocks)
"""

import asyncio
import json
import struct
from typing import Any, Dict, Tuple

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field, ValidationError

from eegspec.common.logging import (
    correlation_scope,
    generate_correlation_id,
    get_logger,
    set_session_id,
)
from eegspec.core.config import get_settings
from eegspec.core.errors import (
    ComputePoolBusyError,
    ErrorKind,
    SpectrogramServiceError,
)
from eegspec.core.monitoring import record_error
from eegspec.modules.spectrogram import MONTAGE_GROUPS, SpectrogramParams
from eegspec.modules.spectrogram.pipelines import FileSpectrogramPipeline, GroupSpectrogram
from eegspec.services.compute_pool import ComputePool

logger = get_logger(__name__)

HEADER_LEN_FORMAT = "<I"
HEADER_LEN_SIZE = struct.calcsize(HEADER_LEN_FORMAT)

SPECTROGRAM = "spectrogram"
ERROR = "error"


# ============== Models ==============

class IncomingMessage(BaseModel):
    type: str
    content: Dict[str, Any] = Field(default_factory=dict)


class FileSpectrogramRequest(BaseModel):
    filename: str
    duration: float = Field(gt=0)


# ============== Framing ==============

def header_length(raw_len: int) -> int:
    """Padded header length for a raw JSON header of raw_len bytes."""
    return raw_len + (8 - (raw_len + HEADER_LEN_SIZE) % 8)


def encode_message(msg_type: str, content: Dict[str, Any], payload: bytes = b"") -> bytes:
    """Frame a message for the wire."""
    header = json.dumps({"type": msg_type, "content": content}).encode("utf-8")
    padded_len = header_length(len(header))
    return struct.pack(HEADER_LEN_FORMAT, padded_len) + header.ljust(padded_len, b" ") + payload


def decode_message(frame: bytes) -> Tuple[Dict[str, Any], bytes]:
    """Split a frame into (header dict, payload)."""
    if len(frame) < HEADER_LEN_SIZE:
        raise ValueError("frame shorter than its length prefix")
    (padded_len,) = struct.unpack_from(HEADER_LEN_FORMAT, frame)
    end = HEADER_LEN_SIZE + padded_len
    if len(frame) < end:
        raise ValueError(f"frame truncated: header needs {end} bytes, got {len(frame)}")
    header = json.loads(frame[HEADER_LEN_SIZE:end].decode("utf-8"))
    return header, frame[end:]


# ============== Session ==============

class SpectrogramSession:
    """One WebSocket connection."""

    def __init__(self, websocket: WebSocket, pipeline: FileSpectrogramPipeline, pool: ComputePool):
        self.websocket = websocket
        self.pipeline = pipeline
        self.pool = pool
        self.session_id = generate_correlation_id()

    async def send(self, msg_type: str, content: Dict[str, Any], payload: bytes = b"") -> None:
        await self.websocket.send_bytes(encode_message(msg_type, content, payload))

    async def send_error(self, message: str, kind: str, **extra) -> None:
        await self.send(ERROR, {"message": message, "kind": kind, **extra})

    async def handle(self, raw: str) -> None:
        """Dispatch one incoming text frame."""
        try:
            message = IncomingMessage(**json.loads(raw))
        except (json.JSONDecodeError, TypeError, ValidationError) as e:
            logger.warning("Malformed message", data={"error": str(e)})
            await self.send_error("Malformed message", ErrorKind.INVALID_PARAMETERS.value)
            return

        if message.type == "request_file_spectrogram":
            await self.on_file_spectrogram(message.content)
        elif message.type == "information":
            logger.info("Client information", data={"content": message.content})
        else:
            logger.warning("Unknown message type", data={"type": message.type, "content": message.content})
            await self.send_error(f"Unknown message type: {message.type}", ErrorKind.UNKNOWN.value)

    async def on_file_spectrogram(self, content: Dict[str, Any]) -> None:
        try:
            request = FileSpectrogramRequest(**content)
            filename = get_settings().resolve_recording_path(request.filename)
        except ValidationError as e:
            logger.warning("Invalid spectrogram request", data={"error": str(e)})
            await self.send_error("Invalid spectrogram request", ErrorKind.INVALID_PARAMETERS.value)
            return
        except SpectrogramServiceError as e:
            logger.warning("Rejected recording path", data={"filename": content.get("filename"), **e.data})
            await self.send_error(e.message, e.kind.value)
            return

        try:
            try:
                params = await self.pool.run(self.pipeline.prepare, filename, request.duration)
            except ComputePoolBusyError:
                await self.send_error("Server busy, retry later", "busy")
                return
            except SpectrogramServiceError as e:
                record_error(e.kind.value, stage="params")
                await self.send_error(e.message, e.kind.value)
                return
            except Exception as e:
                await self.fail_unexpected(e, filename, stage="params")
                return

            if not params.is_valid or params.nblocks < 1:
                await self.send_no_data(params)
                return
            for group in MONTAGE_GROUPS:
                await self.send_new(params, group.name)
                try:
                    computed = await self.pool.run(self.pipeline.compute_group, params, group)
                except ComputePoolBusyError:
                    await self.send_error("Server busy, retry later", "busy", canvasId=group.name)
                    return
                except SpectrogramServiceError as e:
                    record_error(e.kind.value, stage="spectrogram")
                    await self.send_error(e.message, e.kind.value, canvasId=group.name)
                    return
                except Exception as e:
                    await self.fail_unexpected(e, filename, stage="spectrogram", canvasId=group.name)
                    return
                await self.send_update(params, computed)
                await self.send_change_points(computed)
        finally:
            await asyncio.to_thread(self.pipeline.release, filename)

    async def fail_unexpected(self, error: Exception, filename: str, stage: str, **extra) -> None:
        """Report an exception outside the service taxonomy as kind 'unknown'."""
        logger.error("Spectrogram request failed", data={
            "filename": filename,
            "stage": stage,
            "error": str(error),
            "error_type": type(error).__name__,
            **extra,
        }, exc_info=error)
        record_error(ErrorKind.UNKNOWN.value, stage=stage)
        await self.send_error(str(error) or type(error).__name__, ErrorKind.UNKNOWN.value, **extra)

    async def send_no_data(self, params: SpectrogramParams) -> None:
        kind = params.error or ErrorKind.INVALID_PARAMETERS
        record_error(kind.value, stage="params")
        await self.send(SPECTROGRAM, {
            "action": "no_data",
            "filename": params.filename,
            "error": kind.value,
        })

    async def send_new(self, params: SpectrogramParams, canvas_id: str) -> None:
        await self.send(SPECTROGRAM, {
            "action": "new",
            "nblocks": params.nblocks,
            "nfreqs": params.nfreqs,
            "fs": params.fs,
            "length": params.spec_len,
            "canvasId": canvas_id,
        })

    async def send_update(self, params: SpectrogramParams, computed: GroupSpectrogram) -> None:
        await self.send(SPECTROGRAM, {
            "action": "update",
            "nblocks": params.nblocks,
            "nfreqs": params.nfreqs,
            "canvasId": computed.group.name,
        }, computed.payload)

    async def send_change_points(self, computed: GroupSpectrogram) -> None:
        for vector_type, payload in (
            ("change_points", computed.change_points_payload),
            ("summed_signal", computed.summed_signal_payload),
        ):
            await self.send(SPECTROGRAM, {
                "action": "change_points",
                "type": vector_type,
                "canvasId": computed.group.name,
            }, payload)


# ============== Routes ==============

router = APIRouter()


async def spectrogram_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    session = SpectrogramSession(
        websocket,
        pipeline=websocket.app.state.pipeline,
        pool=websocket.app.state.compute_pool,
    )
    set_session_id(session.session_id)
    logger.info("WebSocket opened")
    try:
        while True:
            raw = await websocket.receive_text()
            with correlation_scope():
                await session.handle(raw)
    except WebSocketDisconnect as e:
        logger.info("WebSocket closed", data={"code": e.code})


router.add_api_websocket_route("/compute/spectrogram", spectrogram_endpoint)
router.add_api_websocket_route("/compute/spectrogram/", spectrogram_endpoint)
