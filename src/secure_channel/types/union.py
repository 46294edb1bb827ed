"""Tagged union type."""

from __future__ import annotations

from typing import (
    IO,
    Any,
    ClassVar,
    Final,
    Tuple,
    Type,
    cast,
)

from pydantic import Field, field_validator
from typing_extensions import Self

from .base import StrictBaseModel
from .exceptions import WireDecodeError, WireSelectorError, WireTypeDefinitionError
from .wire_base import WireType

MAX_UNION_OPTIONS: Final[int] = 256
"""Maximum number of options allowed in a union (uint8 selector range)."""

SELECTOR_BYTE_SIZE: Final[int] = 1
"""Size in bytes of the selector that prefixes every encoded union."""


class TaggedUnion(StrictBaseModel, WireType):
    """
    Base class for tagged sum types.

    A tagged union holds exactly one value from a fixed tuple of wire
    types. It encodes as a single selector byte (the index of the variant
    in `OPTIONS`) followed by the encoding of the value.

    Subclasses define the variants:

    ```python
    class Message(TaggedUnion):
        OPTIONS = (Ping, Pong)

    msg = Message.wrap(Pong(...))
    assert msg.selector == 1
    ```

    Every variant is fixed-size, so the total encoded length depends only
    on the selector. Decoding rejects any input whose length does not
    match the selected variant exactly.
    """

    OPTIONS: ClassVar[Tuple[Type[WireType], ...]]
    """Tuple of possible types. Each position is a selector value."""

    data: Tuple[int, Any] = Field()
    """The union data stored as a (selector, value) tuple."""

    @field_validator("data", mode="before")
    @classmethod
    def _validate_union_data(cls, v: Any) -> Tuple[int, Any]:
        """Validate union data and coerce the value to the selected type."""
        options = cls.options()

        if not isinstance(v, tuple) or len(v) != 2:
            raise ValueError(f"{cls.__name__} data must be a (selector, value) tuple, got {type(v)}")

        selector, value = v
        if isinstance(selector, bool) or not isinstance(selector, int):
            raise ValueError(f"Selector must be int, got {type(selector)}")
        if not 0 <= selector < len(options):
            raise ValueError(f"Invalid selector {selector} for {len(options)} options")

        selected_type = options[selector]
        if isinstance(value, selected_type):
            return (selector, value)
        if isinstance(value, dict) and issubclass(selected_type, StrictBaseModel):
            return (selector, selected_type.model_validate(value))
        raise ValueError(
            f"Selector {selector} requires {selected_type.__name__}, got {type(value).__name__}"
        )

    @classmethod
    def options(cls) -> Tuple[Type[WireType], ...]:
        """
        Get the tuple of possible types for this union.

        Raises:
            WireTypeDefinitionError: If OPTIONS is missing, empty or too long.
        """
        options = getattr(cls, "OPTIONS", None)
        if not isinstance(options, tuple) or not options:
            raise WireTypeDefinitionError(cls.__name__, "must define a non-empty OPTIONS tuple")
        if len(options) > MAX_UNION_OPTIONS:
            raise WireTypeDefinitionError(
                cls.__name__, f"has {len(options)} options, maximum is {MAX_UNION_OPTIONS}"
            )
        for i, opt in enumerate(options):
            if not (isinstance(opt, type) and issubclass(opt, WireType)):
                raise WireTypeDefinitionError(cls.__name__, f"option {i} is not a wire type")
        return options

    @classmethod
    def wrap(cls, value: WireType) -> Self:
        """
        Build a union from a variant value.

        The selector is the position of `type(value)` in `OPTIONS`.

        Raises:
            TypeError: If the value's type is not one of the variants.
        """
        for selector, option in enumerate(cls.options()):
            if type(value) is option:
                return cls(data=(selector, value))
        raise TypeError(f"{type(value).__name__} is not a variant of {cls.__name__}")

    @property
    def selector(self) -> int:
        """The 0-based index of the currently selected option."""
        return self.data[0]

    @property
    def value(self) -> Any:
        """The value currently stored in this union."""
        return self.data[1]

    @property
    def selected_type(self) -> Type[WireType]:
        """The type class of the currently selected option."""
        return self.options()[self.selector]

    @classmethod
    def get_byte_length(cls) -> int:
        """Unions have no single length; the selector decides it."""
        raise TypeError(f"{cls.__name__} length depends on the selector")

    @classmethod
    def variant_byte_length(cls, selector: int) -> int:
        """Total encoded length of the variant at `selector`, selector byte included."""
        return SELECTOR_BYTE_SIZE + cls.options()[selector].get_byte_length()

    def serialize(self, stream: IO[bytes]) -> int:
        """Write the selector byte followed by the value."""
        stream.write(self.selector.to_bytes(SELECTOR_BYTE_SIZE, byteorder="little"))
        return SELECTOR_BYTE_SIZE + cast(WireType, self.value).serialize(stream)

    @classmethod
    def deserialize(cls, stream: IO[bytes], scope: int) -> Self:
        """
        Read the selector byte, then exactly one variant body.

        Raises:
            WireSelectorError: If the selector is not a known variant.
            WireDecodeError: If the input is empty, truncated or has
                trailing bytes.
        """
        if scope < SELECTOR_BYTE_SIZE:
            raise WireDecodeError(cls.__name__, "empty input, missing selector")

        selector_bytes = stream.read(SELECTOR_BYTE_SIZE)
        if len(selector_bytes) != SELECTOR_BYTE_SIZE:
            raise WireDecodeError(cls.__name__, "stream ended reading selector")

        selector = int.from_bytes(selector_bytes, byteorder="little")
        options = cls.options()
        if selector >= len(options):
            raise WireSelectorError(cls.__name__, selector, len(options))

        selected_type = options[selector]
        remaining = scope - SELECTOR_BYTE_SIZE
        required = selected_type.get_byte_length()
        if remaining < required:
            raise WireDecodeError(
                cls.__name__,
                f"truncated {selected_type.__name__}: need {required} bytes, got {remaining}",
                offset=SELECTOR_BYTE_SIZE,
            )
        if remaining > required:
            raise WireDecodeError(
                cls.__name__,
                f"{remaining - required} trailing bytes after {selected_type.__name__}",
                offset=SELECTOR_BYTE_SIZE + required,
            )

        value = selected_type.deserialize(stream, remaining)
        return cls(data=(selector, value))

    def __repr__(self) -> str:
        """Return a readable string representation of this union."""
        return f"{type(self).__name__}(selector={self.selector}, value={self.value!r})"
