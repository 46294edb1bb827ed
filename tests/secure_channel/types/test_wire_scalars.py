"""Tests for fixed-width unsigned integers and fixed-length byte vectors."""

from __future__ import annotations

import io

import pytest
from hypothesis import given
from hypothesis import strategies as st
from pydantic import ValidationError

from secure_channel.types import (
    BaseBytes,
    Bytes32,
    Bytes64,
    StrictBaseModel,
    Uint8,
    Uint32,
    Uint64,
    WireDecodeError,
    WireTypeDefinitionError,
)


class TestUint:
    """Tests for BaseUint subclasses."""

    @pytest.mark.parametrize(
        "uint_type, max_value",
        [(Uint8, 2**8 - 1), (Uint32, 2**32 - 1), (Uint64, 2**64 - 1)],
    )
    def test_bounds(self, uint_type: type, max_value: int) -> None:
        """Zero and the maximum are accepted, anything outside is not."""
        assert uint_type(0) == 0
        assert uint_type(max_value) == max_value
        with pytest.raises(OverflowError):
            uint_type(max_value + 1)
        with pytest.raises(OverflowError):
            uint_type(-1)

    def test_bool_rejected(self) -> None:
        """Booleans are not integers on the wire."""
        with pytest.raises(TypeError):
            Uint64(True)

    def test_little_endian_encoding(self) -> None:
        """Integers encode little-endian at their full width."""
        assert Uint64(1).encode_bytes() == b"\x01" + b"\x00" * 7
        assert Uint32(0x01020304).encode_bytes() == b"\x04\x03\x02\x01"
        assert Uint8(255).encode_bytes() == b"\xff"

    def test_byte_length(self) -> None:
        """Encoded length follows BITS."""
        assert Uint8.get_byte_length() == 1
        assert Uint32.get_byte_length() == 4
        assert Uint64.get_byte_length() == 8

    @given(st.integers(min_value=0, max_value=2**64 - 1))
    def test_roundtrip(self, value: int) -> None:
        """decode(encode(x)) == x for the whole range."""
        assert Uint64.decode_bytes(Uint64(value).encode_bytes()) == value

    @pytest.mark.parametrize("data", [b"", b"\x00" * 7, b"\x00" * 9])
    def test_decode_wrong_length(self, data: bytes) -> None:
        """Short and long inputs are decode errors."""
        with pytest.raises(WireDecodeError):
            Uint64.decode_bytes(data)

    def test_deserialize_short_stream(self) -> None:
        """A stream that ends early is a decode error, not a short value."""
        with pytest.raises(WireDecodeError, match="stream ended"):
            Uint64.deserialize(io.BytesIO(b"\x01\x02"), 8)

    def test_repr_and_str(self) -> None:
        assert repr(Uint64(5)) == "Uint64(5)"
        assert str(Uint64(5)) == "5"

    def test_hash_matches_int(self) -> None:
        """Uints can be mixed with ints as dict keys."""
        assert {Uint64(3): "x"}[3] == "x"


class TestBytes:
    """Tests for BaseBytes subclasses."""

    def test_exact_length_required(self) -> None:
        """Only exactly LENGTH bytes are accepted."""
        assert len(Bytes32(bytes(32))) == 32
        with pytest.raises(ValueError, match="exactly 32 bytes"):
            Bytes32(bytes(31))
        with pytest.raises(ValueError, match="exactly 64 bytes"):
            Bytes64(bytes(65))

    def test_hex_input(self) -> None:
        """Hex strings, with or without 0x, are accepted."""
        value = "ab" * 32
        assert Bytes32(value) == bytes.fromhex(value)
        assert Bytes32("0x" + value) == bytes.fromhex(value)

    def test_unsupported_input(self) -> None:
        with pytest.raises(TypeError):
            Bytes32(12345)

    def test_zero(self) -> None:
        assert Bytes64.zero() == bytes(64)

    def test_missing_length(self) -> None:
        """A subclass that forgets LENGTH is a definition error."""

        class Broken(BaseBytes):
            pass

        with pytest.raises(WireTypeDefinitionError):
            Broken(b"")

    def test_repr(self) -> None:
        assert repr(Bytes32(bytes(32))) == f"Bytes32({'00' * 32})"

    @given(st.binary(min_size=64, max_size=64))
    def test_roundtrip(self, data: bytes) -> None:
        assert Bytes64.decode_bytes(Bytes64(data).encode_bytes()) == data

    def test_decode_wrong_length(self) -> None:
        with pytest.raises(WireDecodeError):
            Bytes32.decode_bytes(bytes(33))


class _Model(StrictBaseModel):
    count: Uint64
    key: Bytes32


class TestPydanticIntegration:
    """Wire scalars used as pydantic fields."""

    def test_plain_values_are_wrapped(self) -> None:
        """Ints and bytes of the right shape become wire types."""
        model = _Model(count=3, key=bytes(32))
        assert isinstance(model.count, Uint64)
        assert isinstance(model.key, Bytes32)

    def test_out_of_range_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _Model(count=2**64, key=bytes(32))

    def test_wrong_length_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _Model(count=1, key=bytes(31))

    def test_non_int_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _Model(count="1", key=bytes(32))

    def test_dump(self) -> None:
        """Integers dump as ints and byte vectors as hex."""
        model = _Model(count=7, key=bytes(32))
        assert model.model_dump() == {"count": 7, "key": "00" * 32}

    def test_frozen(self) -> None:
        model = _Model(count=7, key=bytes(32))
        with pytest.raises(ValidationError):
            model.count = Uint64(8)  # type: ignore[misc]
