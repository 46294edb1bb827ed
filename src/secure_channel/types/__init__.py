"""Fixed-size wire types used by the handshake messages."""

from .base import StrictBaseModel
from .byte_arrays import BaseBytes, Bytes32, Bytes64
from .container import Container
from .exceptions import (
    WireDecodeError,
    WireError,
    WireSelectorError,
    WireTypeDefinitionError,
)
from .uint import BaseUint, Uint8, Uint32, Uint64
from .union import TaggedUnion
from .wire_base import WireType

__all__ = [
    # Core types
    "Uint8",
    "Uint32",
    "Uint64",
    "BaseUint",
    "BaseBytes",
    "Bytes32",
    "Bytes64",
    "StrictBaseModel",
    "Container",
    "TaggedUnion",
    "WireType",
    # Exceptions
    "WireError",
    "WireTypeDefinitionError",
    "WireDecodeError",
    "WireSelectorError",
]
