"""Fixed-width unsigned integer wire types."""

from __future__ import annotations

from typing import IO, Any, ClassVar, Literal, SupportsIndex, SupportsInt

from pydantic import GetCoreSchemaHandler
from pydantic_core import core_schema
from typing_extensions import Self

from .exceptions import WireDecodeError
from .wire_base import WireType


class BaseUint(int, WireType):
    """
    A base class for fixed-width unsigned integers that inherits from `int`.

    Values encode as exactly `BITS // 8` little-endian bytes.
    """

    BITS: ClassVar[int]
    """The number of bits in the integer (overridden by subclasses)."""

    def __new__(cls, value: SupportsInt) -> Self:
        """
        Create and validate a new Uint instance.

        Raises:
            TypeError: If `value` is a bool.
            OverflowError: If `value` is outside the allowed range [0, 2**BITS - 1].
        """
        if isinstance(value, bool):
            raise TypeError(f"{cls.__name__} does not accept bool")
        int_value = int(value)
        if not (0 <= int_value < (2**cls.BITS)):
            raise OverflowError(f"{int_value} is out of range for {cls.__name__}")
        return super().__new__(cls, int_value)

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        """Hook into Pydantic's validation system."""

        def validate(value: Any) -> BaseUint:
            if not isinstance(value, int):
                raise ValueError(f"{cls.__name__} expects an int, got {type(value).__name__}")
            try:
                return cls(value)
            except (OverflowError, TypeError) as e:
                raise ValueError(str(e)) from e

        return core_schema.no_info_plain_validator_function(
            validate,
            serialization=core_schema.plain_serializer_function_ser_schema(int),
        )

    @classmethod
    def get_byte_length(cls) -> int:
        """Get the encoded length of this integer type."""
        return cls.BITS // 8

    def to_bytes(
        self,
        length: SupportsIndex | None = None,
        byteorder: Literal["little", "big"] = "little",
        *,
        signed: bool = False,
    ) -> bytes:
        """
        Return an array of bytes representing the integer.

        Defaults to little-endian and a fixed length based on `BITS`.
        """
        actual_length = self.BITS // 8 if length is None else int(length)
        return super().to_bytes(length=actual_length, byteorder=byteorder, signed=signed)

    def serialize(self, stream: IO[bytes]) -> int:
        """Write the little-endian encoding to `stream`."""
        return stream.write(self.to_bytes())

    @classmethod
    def deserialize(cls, stream: IO[bytes], scope: int) -> Self:
        """Read exactly `BITS // 8` bytes from `stream`."""
        length = cls.get_byte_length()
        if scope != length:
            raise WireDecodeError(cls.__name__, f"expected {length} bytes, got scope {scope}")
        data = stream.read(length)
        if len(data) != length:
            raise WireDecodeError(cls.__name__, f"stream ended after {len(data)} of {length} bytes")
        return cls(int.from_bytes(data, "little"))

    def __repr__(self) -> str:
        """Return the official string representation of the object."""
        return f"{type(self).__name__}({int(self)})"

    def __str__(self) -> str:
        """Return the informal, user-friendly string representation."""
        return str(int(self))

    __hash__ = int.__hash__


class Uint8(BaseUint):
    """A type representing an 8-bit unsigned integer (uint8)."""

    BITS = 8


class Uint32(BaseUint):
    """A type representing a 32-bit unsigned integer (uint32)."""

    BITS = 32


class Uint64(BaseUint):
    """A type representing a 64-bit unsigned integer (uint64)."""

    BITS = 64
