"""
Container type: ordered records of named, fixed-size fields.

Every handshake message body is a container. Fields are encoded back
to back in definition order with no padding, no offsets and no length
prefixes, so the encoded size is simply the sum of the field sizes.
"""

from __future__ import annotations

from typing import IO, Any, Type, cast

from typing_extensions import Self

from .base import StrictBaseModel
from .exceptions import WireDecodeError, WireTypeDefinitionError
from .wire_base import WireType


class Container(StrictBaseModel, WireType):
    """
    A strict, ordered collection of heterogeneous named fields.

    Example:
        >>> class KeyExchange(Container):
        ...     ephemeral_public_key: Bytes32
        ...     nonce: Uint64

    Serialization format:
        [field_1][field_2]...[field_n]
    """

    @classmethod
    def _field_types(cls) -> list[tuple[str, Type[WireType]]]:
        """Return (name, type) pairs in definition order."""
        fields: list[tuple[str, Type[WireType]]] = []
        for name, info in cls.model_fields.items():
            annotation = info.annotation
            if not (isinstance(annotation, type) and issubclass(annotation, WireType)):
                raise WireTypeDefinitionError(
                    cls.__name__, f"field {name!r} is not a wire type: {annotation!r}"
                )
            fields.append((name, cast(Type[WireType], annotation)))
        return fields

    @classmethod
    def get_byte_length(cls) -> int:
        """Total byte length of all fields summed together."""
        return sum(field_type.get_byte_length() for _, field_type in cls._field_types())

    def serialize(self, stream: IO[bytes]) -> int:
        """Write each field in definition order."""
        written = 0
        for name, _ in type(self)._field_types():
            written += cast(WireType, getattr(self, name)).serialize(stream)
        return written

    @classmethod
    def deserialize(cls, stream: IO[bytes], scope: int) -> Self:
        """
        Read each field in definition order.

        Raises:
            WireDecodeError: If `scope` does not match the container size or
                the stream ends early.
        """
        expected = cls.get_byte_length()
        if scope != expected:
            raise WireDecodeError(cls.__name__, f"expected {expected} bytes, got {scope}")

        fields: dict[str, Any] = {}
        position = 0
        for name, field_type in cls._field_types():
            size = field_type.get_byte_length()
            data = stream.read(size)
            if len(data) != size:
                raise WireDecodeError(
                    cls.__name__, f"unexpected end of input reading {name!r}", offset=position
                )
            fields[name] = field_type.decode_bytes(data)
            position += size

        return cls(**fields)
