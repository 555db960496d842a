"""
Services - Compute pool and WebSocket transport.
"""

from .compute_pool import ComputePool
from .ws_server import (
    SpectrogramSession,
    decode_message,
    encode_message,
    header_length,
    router as ws_router,
)

__all__ = [
    "ComputePool",
    "SpectrogramSession",
    "decode_message",
    "encode_message",
    "header_length",
    "ws_router",
]
