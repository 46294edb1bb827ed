"""
Fixed-length byte vector types.

Keys, signatures and derived secrets are all fixed-length byte strings.
Each length gets its own subclass so that a 32-byte key can never be
passed where a 64-byte signature is expected.
"""

from __future__ import annotations

from typing import IO, Any, ClassVar, SupportsIndex

from pydantic.annotated_handlers import GetCoreSchemaHandler
from pydantic_core import core_schema
from typing_extensions import Self

from .exceptions import WireDecodeError, WireTypeDefinitionError
from .wire_base import WireType


def _coerce_to_bytes(value: Any) -> bytes:
    """
    Coerce bytes-like values or hex strings to raw bytes.

    Hex strings may carry a '0x' prefix.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return bytes.fromhex(value.removeprefix("0x"))
    raise TypeError(f"Cannot convert {type(value).__name__} to bytes")


class BaseBytes(bytes, WireType):
    """
    A base class for fixed-length byte types that inherits from `bytes`.

    Subclasses set `LENGTH`, the exact number of bytes an instance holds.
    """

    LENGTH: ClassVar[int]
    """The exact number of bytes (overridden by subclasses)."""

    def __new__(cls, value: Any = b"") -> Self:
        """
        Create and validate a new Bytes instance.

        Raises:
            ValueError: If the resulting byte length differs from `LENGTH`.
        """
        if not hasattr(cls, "LENGTH"):
            raise WireTypeDefinitionError(cls.__name__, "must define LENGTH")

        b = _coerce_to_bytes(value)
        if len(b) != cls.LENGTH:
            raise ValueError(f"{cls.__name__} expects exactly {cls.LENGTH} bytes, got {len(b)}")
        return super().__new__(cls, b)

    @classmethod
    def zero(cls) -> Self:
        """Create a new instance filled with zero bytes."""
        return cls(b"\x00" * cls.LENGTH)

    @classmethod
    def get_byte_length(cls) -> int:
        """Get the byte length of this fixed-size type."""
        return cls.LENGTH

    def serialize(self, stream: IO[bytes]) -> int:
        """Write the raw bytes to `stream`."""
        stream.write(self)
        return len(self)

    @classmethod
    def deserialize(cls, stream: IO[bytes], scope: int) -> Self:
        """Read exactly `LENGTH` bytes from `stream`."""
        if scope != cls.LENGTH:
            raise WireDecodeError(cls.__name__, f"expected {cls.LENGTH} bytes, got scope {scope}")
        data = stream.read(scope)
        if len(data) != scope:
            raise WireDecodeError(cls.__name__, f"stream ended after {len(data)} of {scope} bytes")
        return cls(data)

    def encode_bytes(self) -> bytes:
        """Return the raw bytes."""
        return bytes(self)

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        """
        Hook into Pydantic's validation system.

        Instances of the class pass through untouched; raw bytes of the
        exact length are wrapped. Serialization produces a hex string.
        """
        from_bytes_validator = core_schema.no_info_plain_validator_function(cls)

        python_schema = core_schema.chain_schema(
            [
                core_schema.bytes_schema(min_length=cls.LENGTH, max_length=cls.LENGTH),
                from_bytes_validator,
            ]
        )

        return core_schema.union_schema(
            [
                core_schema.is_instance_schema(cls),
                python_schema,
            ],
            serialization=core_schema.plain_serializer_function_ser_schema(lambda x: x.hex()),
        )

    def __repr__(self) -> str:
        """Return a string representation of the bytes."""
        return f"{type(self).__name__}({self.hex()})"

    def __hash__(self) -> int:
        """Return the hash of the bytes."""
        return hash((type(self), bytes(self)))

    def hex(self, sep: str | bytes | None = None, bytes_per_sep: SupportsIndex = 1) -> str:
        """Return the hexadecimal string representation of the underlying bytes."""
        return bytes(self).hex() if sep is None else bytes(self).hex(sep, bytes_per_sep)


class Bytes32(BaseBytes):
    """Fixed-size byte array of exactly 32 bytes."""

    LENGTH = 32


class Bytes64(BaseBytes):
    """Fixed-size byte array of exactly 64 bytes."""

    LENGTH = 64
