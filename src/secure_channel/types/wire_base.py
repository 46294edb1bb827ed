"""Base interface for all wire types."""

from __future__ import annotations

import io
from abc import ABC, abstractmethod
from typing import IO

from typing_extensions import Self


class WireType(ABC):
    """
    Abstract base class for every value that can travel on the wire.

    Every wire type in this package is fixed-size: its encoded length is
    known from the type alone, which keeps decoding free of offsets and
    lets the decoder reject short or over-long input up front.
    """

    @classmethod
    @abstractmethod
    def get_byte_length(cls) -> int:
        """
        Get the exact encoded length of the type in bytes.

        Returns:
            int: The number of bytes.
        """
        ...

    @abstractmethod
    def serialize(self, stream: IO[bytes]) -> int:
        """
        Serializes the object and writes it to a binary stream.

        Args:
            stream (IO[bytes]): The stream to write the serialized data to.

        Returns:
            int: The number of bytes written.
        """
        ...

    @classmethod
    @abstractmethod
    def deserialize(cls, stream: IO[bytes], scope: int) -> Self:
        """
        Deserializes an object from a binary stream within a given scope.

        Args:
            stream (IO[bytes]): The stream to read from.
            scope (int): The number of bytes available to read for this object.

        Returns:
            Self: An instance of the class.

        Raises:
            WireDecodeError: If the scope or the stream contents are invalid.
        """
        ...

    def encode_bytes(self) -> bytes:
        """
        Serializes the object to a byte string.

        This is the canonical encoding: signatures are computed over it.
        """
        with io.BytesIO() as stream:
            self.serialize(stream)
            return stream.getvalue()

    @classmethod
    def decode_bytes(cls, data: bytes) -> Self:
        """Deserializes a byte string into an instance of the class."""
        with io.BytesIO(data) as stream:
            return cls.deserialize(stream, len(data))
