"""Tests for the sans-IO handshake state machine."""

from __future__ import annotations

import pytest

from secure_channel.config import reply
from secure_channel.errors import (
    HandshakeStateError,
    RejectedError,
    UnexpectedMessageError,
    VersionMismatchError,
)
from secure_channel.handshake import Handshake, HandshakeRole, HandshakeState
from secure_channel.identity import create_key_exchange_proof
from secure_channel.messages import ClientHello, KeyExchange, ServerHello, SignedKeyExchange
from secure_channel.types import Bytes32, Bytes64, Uint64
from tests.secure_channel.helpers import SeededRandom, make_identity, run_handshake_until_signed


def _pair(**initiator_kwargs: object) -> tuple[Handshake, Handshake]:
    client = Handshake.initiator(make_identity(1), **initiator_kwargs)  # type: ignore[arg-type]
    server = Handshake.responder(make_identity(2))
    return client, server


class TestHandshakeCreation:
    """Tests for handshake construction."""

    def test_initiator(self) -> None:
        hs = Handshake.initiator(make_identity(1))
        assert hs.role == HandshakeRole.INITIATOR
        assert hs.state == HandshakeState.UNESTABLISHED

    def test_responder(self) -> None:
        hs = Handshake.responder(make_identity(1))
        assert hs.role == HandshakeRole.RESPONDER
        assert hs.state == HandshakeState.UNESTABLISHED


class TestHandshakeFlow:
    """Full message flow between two state machines."""

    def test_states_and_result(self) -> None:
        client, server = _pair()

        hello = client.write_hello()
        assert client.state == HandshakeState.HELLO_SENT
        server.read_client_hello(hello)
        assert server.state == HandshakeState.HELLO_RECEIVED

        server_hello = server.write_server_hello()
        assert server.state == HandshakeState.HELLO_SENT
        announced = client.read_server_hello(server_hello)
        assert announced == make_identity(2).public()
        assert client.state == HandshakeState.HELLO_RECEIVED

        key_exchange = client.write_key_exchange()
        assert client.state == HandshakeState.KEY_EXCHANGE_SENT
        server.read_key_exchange(key_exchange)
        assert server.state == HandshakeState.KEY_EXCHANGE_RECEIVED

        signed = server.write_signed_key_exchange()
        assert server.state == HandshakeState.KEY_EXCHANGE_SENT
        assert signed.key_exchange.nonce == key_exchange.nonce
        client.read_signed_key_exchange(signed)
        assert client.state == HandshakeState.KEY_EXCHANGE_RECEIVED

        client_result = client.finalize()
        server_result = server.finalize()
        assert client.state == server.state == HandshakeState.ESTABLISHED

        assert client_result.shared_secret == server_result.shared_secret
        assert client_result.nonce == server_result.nonce
        assert client_result.other_id == make_identity(2).public()
        assert server_result.other_id is None

        # Directions are crossed.
        assert client_result.send_cipher.key == server_result.recv_cipher.key
        assert client_result.recv_cipher.key == server_result.send_cipher.key
        assert client_result.send_cipher.key != client_result.recv_cipher.key

    def test_server_hello_carries_version_reply(self) -> None:
        client, server = _pair()
        server.read_client_hello(client.write_hello())
        server_hello = server.write_server_hello()
        assert server_hello.version_reply == reply(1)
        assert server_hello.public_signing_key == make_identity(2).public().public_key

    def test_seeded_handshakes_are_reproducible(self) -> None:
        def transcript() -> tuple[KeyExchange, SignedKeyExchange]:
            client = Handshake.initiator(make_identity(1), rng=SeededRandom(10))
            server = Handshake.responder(make_identity(2), rng=SeededRandom(20))
            server.read_client_hello(client.write_hello())
            client.read_server_hello(server.write_server_hello())
            key_exchange = client.write_key_exchange()
            server.read_key_exchange(key_exchange)
            return key_exchange, server.write_signed_key_exchange()

        assert transcript() == transcript()

    def test_pinned_identity_accepted(self) -> None:
        client, server = _pair(pinned=make_identity(2).public())
        signed = run_handshake_until_signed(client, server)
        client.read_signed_key_exchange(signed)
        assert client.finalize().other_id == make_identity(2).public()


class TestVersionChecks:
    """Version negotiation is strict in both directions."""

    def test_responder_rejects_other_version(self) -> None:
        client = Handshake.initiator(make_identity(1), protocol_version=2)
        server = Handshake.responder(make_identity(2), protocol_version=1)
        with pytest.raises(VersionMismatchError) as exc_info:
            server.read_client_hello(client.write_hello())
        assert exc_info.value.expected == 1
        assert exc_info.value.actual == 2
        assert server.state == HandshakeState.ABORTED

    def test_initiator_rejects_echo(self) -> None:
        """A peer that echoes our hello back does not pass."""
        client, _ = _pair()
        client.write_hello()
        echo = ServerHello(version_reply=Uint64(1), public_signing_key=Bytes32.zero())
        with pytest.raises(VersionMismatchError):
            client.read_server_hello(echo)
        assert client.state == HandshakeState.ABORTED

    def test_initiator_rejects_wrong_reply(self) -> None:
        client, _ = _pair()
        client.write_hello()
        wrong = ServerHello(version_reply=Uint64(reply(2)), public_signing_key=Bytes32.zero())
        with pytest.raises(VersionMismatchError) as exc_info:
            client.read_server_hello(wrong)
        assert exc_info.value.expected == reply(1)


class TestPinning:
    """Initiator-side certificate pinning."""

    def test_pin_mismatch_rejected(self) -> None:
        client, server = _pair(pinned=make_identity(3).public())
        server.read_client_hello(client.write_hello())
        with pytest.raises(RejectedError, match="pinned"):
            client.read_server_hello(server.write_server_hello())
        assert client.state == HandshakeState.ABORTED


class TestKeyExchangeVerification:
    """Initiator checks on the signed key exchange."""

    def test_nonce_mismatch_rejected(self) -> None:
        """A validly signed key exchange for another nonce is a replay."""
        client, server = _pair()
        signed = run_handshake_until_signed(client, server)
        inner = signed.key_exchange
        other_nonce = Uint64((int(inner.nonce) + 1) % 2**64)
        replay = create_key_exchange_proof(
            make_identity(2),
            KeyExchange(ephemeral_public_key=inner.ephemeral_public_key, nonce=other_nonce),
        )
        with pytest.raises(UnexpectedMessageError, match="Nonce mismatch"):
            client.read_signed_key_exchange(replay)
        assert client.state == HandshakeState.ABORTED

    def test_replay_from_previous_handshake_rejected(self) -> None:
        first_client, first_server = _pair()
        captured = run_handshake_until_signed(first_client, first_server)

        second_client, second_server = _pair()
        run_handshake_until_signed(second_client, second_server)
        with pytest.raises(UnexpectedMessageError):
            second_client.read_signed_key_exchange(captured)

    def test_every_signature_bit_flip_rejected(self) -> None:
        client, server = _pair()
        signed = run_handshake_until_signed(client, server)
        original = bytes(signed.signature)

        for bit in range(len(original) * 8):
            flipped = bytearray(original)
            flipped[bit // 8] ^= 1 << (bit % 8)
            tampered = SignedKeyExchange(
                key_exchange=signed.key_exchange, signature=Bytes64(bytes(flipped))
            )
            # Fresh state machine per attempt: a failure aborts the handshake.
            attempt = Handshake.initiator(make_identity(1))
            attempt._state = HandshakeState.KEY_EXCHANGE_SENT
            attempt._nonce = client._nonce
            attempt._remote_identity = client._remote_identity
            with pytest.raises(UnexpectedMessageError, match="signature"):
                attempt.read_signed_key_exchange(tampered)

        # The untouched message is still accepted.
        client.read_signed_key_exchange(signed)

    def test_substituted_ephemeral_key_rejected(self) -> None:
        """Swapping the responder's ephemeral key breaks the signature."""
        client, server = _pair()
        signed = run_handshake_until_signed(client, server)
        tampered = SignedKeyExchange(
            key_exchange=KeyExchange(
                ephemeral_public_key=Bytes32(b"\x09" * 32), nonce=signed.key_exchange.nonce
            ),
            signature=signed.signature,
        )
        with pytest.raises(UnexpectedMessageError, match="signature"):
            client.read_signed_key_exchange(tampered)

    def test_low_order_responder_key_rejected(self) -> None:
        """A correctly signed but degenerate ephemeral key is still refused."""
        client, server = _pair()
        signed = run_handshake_until_signed(client, server)
        degenerate = create_key_exchange_proof(
            make_identity(2),
            KeyExchange(ephemeral_public_key=Bytes32.zero(), nonce=signed.key_exchange.nonce),
        )
        with pytest.raises(UnexpectedMessageError, match="Invalid ephemeral key"):
            client.read_signed_key_exchange(degenerate)
        assert client.state == HandshakeState.ABORTED

    def test_low_order_initiator_key_rejected(self) -> None:
        client, server = _pair()
        server.read_client_hello(client.write_hello())
        client.read_server_hello(server.write_server_hello())
        server.read_key_exchange(
            KeyExchange(ephemeral_public_key=Bytes32.zero(), nonce=Uint64(5))
        )
        with pytest.raises(UnexpectedMessageError):
            server.write_signed_key_exchange()
        assert server.state == HandshakeState.ABORTED


class TestStateErrors:
    """Steps called out of order or by the wrong role."""

    def test_wrong_role(self) -> None:
        server = Handshake.responder(make_identity(1))
        with pytest.raises(HandshakeStateError, match="initiator"):
            server.write_hello()
        assert server.state == HandshakeState.ABORTED

    def test_out_of_order(self) -> None:
        client = Handshake.initiator(make_identity(1))
        with pytest.raises(HandshakeStateError, match="Invalid state"):
            client.write_key_exchange()

    def test_finalize_too_early(self) -> None:
        client, server = _pair()
        server.read_client_hello(client.write_hello())
        with pytest.raises(HandshakeStateError):
            server.finalize()

    def test_aborted_is_terminal(self) -> None:
        client = Handshake.initiator(make_identity(1))
        client.abort()
        with pytest.raises(HandshakeStateError):
            client.write_hello()

    def test_finalize_twice(self) -> None:
        client, server = _pair()
        client.read_signed_key_exchange(run_handshake_until_signed(client, server))
        client.finalize()
        with pytest.raises(HandshakeStateError):
            client.finalize()

    def test_client_hello_to_initiator(self) -> None:
        client = Handshake.initiator(make_identity(1))
        with pytest.raises(HandshakeStateError):
            client.read_client_hello(ClientHello(version=Uint64(1)))
