"""Exception hierarchy for the wire type system."""

from __future__ import annotations


class WireError(Exception):
    """
    Base exception for all wire serialization errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class WireTypeDefinitionError(WireError, TypeError):
    """
    Raised when a wire type class is incorrectly defined.

    Attributes:
        type_name: The name of the type with the definition error.
        detail: What is wrong with the definition.
    """

    def __init__(self, type_name: str, detail: str) -> None:
        self.type_name = type_name
        self.detail = detail
        super().__init__(f"{type_name}: {detail}")


class WireDecodeError(WireError):
    """
    Raised when decoding bytes to a value fails.

    Attributes:
        type_name: The type being decoded.
        detail: Description of what went wrong.
        offset: The byte offset where the error occurred (if known).
    """

    def __init__(
        self,
        type_name: str,
        detail: str,
        *,
        offset: int | None = None,
    ) -> None:
        self.type_name = type_name
        self.detail = detail
        self.offset = offset

        msg = f"Failed to decode {type_name}: {detail}"
        if offset is not None:
            msg = f"{msg} (at byte offset {offset})"

        super().__init__(msg)


class WireSelectorError(WireDecodeError):
    """
    Raised when a tagged union selector is not one of the known options.

    Attributes:
        selector: The invalid selector value.
        num_options: The number of valid options.
    """

    def __init__(self, type_name: str, selector: int, num_options: int) -> None:
        self.selector = selector
        self.num_options = num_options

        detail = f"selector {selector} out of range for {num_options} options"
        super().__init__(type_name, detail, offset=0)
