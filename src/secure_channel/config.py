"""
Protocol constants and channel configuration.

Process-wide defaults live here as module constants. The only
environment-driven setting is the default frame size limit, read once at
import time so that a bad value fails loudly before any connection is made.
"""

from __future__ import annotations

import os
from typing import Final

from pydantic import field_validator

from .types import StrictBaseModel

PROTOCOL_VERSION: Final = 1
"""The protocol version spoken by this implementation."""

REPLY_FLAG: Final = 1 << 63
"""Top bit of a version number; set on the responder's reply."""

FRAME_LENGTH_PREFIX_SIZE: Final = 4
"""Size of the little-endian length that prefixes every frame."""

MIN_FRAME_SIZE: Final = 128
"""Smallest accepted frame limit. Every handshake message must fit."""

MAX_FRAME_SIZE_LIMIT: Final = 2**32 - 1
"""Largest length the 4-byte frame prefix can express."""

_MAX_FRAME_SIZE_ENV: Final = "SECURE_CHANNEL_MAX_FRAME_SIZE"


def reply(version: int) -> int:
    """
    Derive the version a responder must answer with.

    The reply flag means a peer that simply echoes bytes back never
    completes a handshake.
    """
    return version | REPLY_FLAG


def _frame_size_from_env() -> int:
    raw = os.environ.get(_MAX_FRAME_SIZE_ENV)
    if raw is None:
        return 2**20
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(
            f"Invalid {_MAX_FRAME_SIZE_ENV} environment variable: '{raw}'. Expected an integer."
        ) from None
    if not MIN_FRAME_SIZE <= value <= MAX_FRAME_SIZE_LIMIT:
        raise ValueError(
            f"Invalid {_MAX_FRAME_SIZE_ENV} environment variable: '{raw}'. "
            f"Supported range: [{MIN_FRAME_SIZE}, {MAX_FRAME_SIZE_LIMIT}]"
        )
    return value


DEFAULT_MAX_FRAME_SIZE: Final = _frame_size_from_env()
"""Default limit on a frame's payload length. 1 MiB unless overridden by the environment."""


class ChannelConfig(StrictBaseModel):
    """Per-connection settings."""

    protocol_version: int = PROTOCOL_VERSION
    """Version sent in ClientHello and required from the peer."""

    max_frame_size: int = DEFAULT_MAX_FRAME_SIZE
    """Largest frame payload accepted or sent, in bytes."""

    @field_validator("protocol_version")
    @classmethod
    def _check_protocol_version(cls, v: int) -> int:
        if not 0 <= v < REPLY_FLAG:
            raise ValueError(f"protocol_version must be in [0, 2**63), got {v}")
        return v

    @field_validator("max_frame_size")
    @classmethod
    def _check_max_frame_size(cls, v: int) -> int:
        if not MIN_FRAME_SIZE <= v <= MAX_FRAME_SIZE_LIMIT:
            raise ValueError(
                f"max_frame_size must be in [{MIN_FRAME_SIZE}, {MAX_FRAME_SIZE_LIMIT}], got {v}"
            )
        return v
