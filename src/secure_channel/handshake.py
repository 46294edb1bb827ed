"""
Handshake state machine.

The handshake authenticates the responder to the initiator and agrees on
a fresh pair of transport keys. The initiator stays anonymous.

Handshake flow:
    -> ClientHello(version)
    <- ServerHello(reply(version), responder identity key)
    -> KeyExchange(initiator ephemeral, nonce)
    <- SignedKeyExchange(KeyExchange(responder ephemeral, nonce), signature)

After handshake:
    - The initiator knows the responder's identity key and has checked
      that the responder signed this handshake's nonce
    - Both parties hold the same X25519 shared secret
    - Two cipher states derived for bidirectional encryption

State progression:
    Initiator: UNESTABLISHED -> HELLO_SENT -> HELLO_RECEIVED
               -> KEY_EXCHANGE_SENT -> KEY_EXCHANGE_RECEIVED -> ESTABLISHED
    Responder: UNESTABLISHED -> HELLO_RECEIVED -> HELLO_SENT
               -> KEY_EXCHANGE_RECEIVED -> KEY_EXCHANGE_SENT -> ESTABLISHED

Any failure moves either role to ABORTED, which is terminal.

This module does no I/O. `Connection` moves the messages it produces
and consumes over a stream.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum, auto

from .config import PROTOCOL_VERSION, reply
from .errors import (
    ChannelError,
    HandshakeStateError,
    RejectedError,
    UnexpectedMessageError,
    VersionMismatchError,
)
from .identity import (
    Identity,
    PeerIdentity,
    create_key_exchange_proof,
    verify_key_exchange_proof,
)
from .kex import (
    CipherState,
    EphemeralKeyPair,
    HandshakeNonce,
    SharedSecret,
    derive_transport_keys,
)
from .messages import ClientHello, KeyExchange, ServerHello, SignedKeyExchange
from .rand import SYSTEM_RANDOM, RandomSource
from .types import Bytes32, Uint64


class HandshakeRole(IntEnum):
    """Role in the handshake - determines message order."""

    INITIATOR = auto()
    """Client/dialer - sends first message."""

    RESPONDER = auto()
    """Server/listener - proves its identity."""


class HandshakeState(IntEnum):
    """State machine states, shared by both roles."""

    UNESTABLISHED = auto()
    """Nothing exchanged yet."""

    HELLO_SENT = auto()
    """Our hello is out."""

    HELLO_RECEIVED = auto()
    """The peer's hello has been accepted."""

    KEY_EXCHANGE_SENT = auto()
    """Our key exchange is out."""

    KEY_EXCHANGE_RECEIVED = auto()
    """The peer's key exchange has been accepted."""

    ESTABLISHED = auto()
    """Handshake finished successfully. Terminal."""

    ABORTED = auto()
    """Handshake failed. Terminal."""


@dataclass(frozen=True, slots=True)
class HandshakeResult:
    """Everything the encrypted transport needs from a finished handshake."""

    shared_secret: SharedSecret = field(repr=False)
    """Raw X25519 output."""

    send_cipher: CipherState = field(repr=False)
    """Cipher for our outbound frames."""

    recv_cipher: CipherState = field(repr=False)
    """Cipher for the peer's frames."""

    other_id: PeerIdentity | None
    """Verified responder identity, or None on the responder side."""

    nonce: HandshakeNonce
    """The initiator's nonce for this handshake."""


@dataclass(slots=True)
class Handshake:
    """
    Sans-IO handshake for one role.

    Usage for initiator:
        hs = Handshake.initiator(identity, pinned=expected_peer)
        send(hs.write_hello())
        hs.read_server_hello(receive())
        send(hs.write_key_exchange())
        hs.read_signed_key_exchange(receive())
        result = hs.finalize()

    Usage for responder:
        hs = Handshake.responder(identity)
        hs.read_client_hello(receive())
        send(hs.write_server_hello())
        hs.read_key_exchange(receive())
        send(hs.write_signed_key_exchange())
        result = hs.finalize()
    """

    role: HandshakeRole
    """Our role in the handshake."""

    identity: Identity = field(repr=False)
    """Our long-term identity. The responder signs with it."""

    protocol_version: int = PROTOCOL_VERSION
    """Version we send (initiator) or require (responder)."""

    rng: RandomSource = field(default=SYSTEM_RANDOM, repr=False)
    """Source for the ephemeral key and the nonce."""

    pinned: PeerIdentity | None = None
    """Initiator only: the responder identity we insist on."""

    _state: HandshakeState = HandshakeState.UNESTABLISHED
    """Current state machine state."""

    _ephemeral: EphemeralKeyPair | None = field(default=None, repr=False)
    """Our ephemeral key pair, once generated."""

    _local_ephemeral_public: Bytes32 | None = None
    """Public half of our ephemeral key, kept after the private half is dropped."""

    _nonce: HandshakeNonce | None = None
    """The initiator's nonce, once known."""

    _remote_identity: PeerIdentity | None = None
    """Initiator only: the identity announced in ServerHello."""

    _remote_ephemeral: Bytes32 | None = None
    """Peer's ephemeral public key, once received."""

    _shared_secret: SharedSecret | None = field(default=None, repr=False)
    """DH output, once computed."""

    @classmethod
    def initiator(
        cls,
        identity: Identity,
        *,
        protocol_version: int = PROTOCOL_VERSION,
        rng: RandomSource | None = None,
        pinned: PeerIdentity | None = None,
    ) -> Handshake:
        """
        Create handshake as initiator (client/dialer).

        Args:
            identity: Our long-term identity (never sent by the initiator).
            protocol_version: Version to announce.
            rng: Randomness for the ephemeral key and nonce.
            pinned: If given, the only responder identity accepted.
        """
        return cls(
            role=HandshakeRole.INITIATOR,
            identity=identity,
            protocol_version=protocol_version,
            rng=rng or SYSTEM_RANDOM,
            pinned=pinned,
        )

    @classmethod
    def responder(
        cls,
        identity: Identity,
        *,
        protocol_version: int = PROTOCOL_VERSION,
        rng: RandomSource | None = None,
    ) -> Handshake:
        """
        Create handshake as responder (server/listener).

        Args:
            identity: Our long-term identity, announced and used to sign.
            protocol_version: The only version accepted from the initiator.
            rng: Randomness for the ephemeral key.
        """
        return cls(
            role=HandshakeRole.RESPONDER,
            identity=identity,
            protocol_version=protocol_version,
            rng=rng or SYSTEM_RANDOM,
        )

    @property
    def state(self) -> HandshakeState:
        """Current state machine state."""
        return self._state

    def abort(self) -> None:
        """Move to ABORTED and drop all ephemeral material."""
        self._state = HandshakeState.ABORTED
        self._ephemeral = None
        self._shared_secret = None

    def _fail(self, error: ChannelError) -> ChannelError:
        self.abort()
        return error

    def _require(self, role: HandshakeRole, state: HandshakeState, step: str) -> None:
        if self.role != role:
            raise self._fail(HandshakeStateError(f"Only the {role.name.lower()} can {step}"))
        if self._state != state:
            raise self._fail(
                HandshakeStateError(f"Invalid state for {step}: {self._state.name}")
            )

    def _compute_shared_secret(self) -> None:
        assert self._ephemeral is not None and self._remote_ephemeral is not None
        try:
            self._shared_secret = self._ephemeral.dh(self._remote_ephemeral)
        except ValueError as e:
            raise self._fail(UnexpectedMessageError(f"Invalid ephemeral key: {e}")) from e
        finally:
            # The private key is gone after dh() either way.
            self._ephemeral = None

    # =========================================================================
    # Initiator
    # =========================================================================

    def write_hello(self) -> ClientHello:
        """Initiator: announce our protocol version."""
        self._require(HandshakeRole.INITIATOR, HandshakeState.UNESTABLISHED, "write_hello")
        self._state = HandshakeState.HELLO_SENT
        return ClientHello(version=Uint64(self.protocol_version))

    def read_server_hello(self, message: ServerHello) -> PeerIdentity:
        """
        Initiator: accept the responder's hello.

        Returns:
            The responder identity announced in the message.

        Raises:
            VersionMismatchError: If the reply does not match our version.
            RejectedError: If a pin was given and the identity differs.
        """
        self._require(HandshakeRole.INITIATOR, HandshakeState.HELLO_SENT, "read_server_hello")

        expected = reply(self.protocol_version)
        if message.version_reply != expected:
            raise self._fail(VersionMismatchError(expected, int(message.version_reply)))

        remote = PeerIdentity(message.public_signing_key)
        if self.pinned is not None and remote != self.pinned:
            raise self._fail(
                RejectedError(
                    f"Responder identity {remote.short_id()} does not match "
                    f"pinned identity {self.pinned.short_id()}"
                )
            )

        self._remote_identity = remote
        self._state = HandshakeState.HELLO_RECEIVED
        return remote

    def write_key_exchange(self) -> KeyExchange:
        """Initiator: send a fresh ephemeral key and nonce, unsigned."""
        self._require(
            HandshakeRole.INITIATOR, HandshakeState.HELLO_RECEIVED, "write_key_exchange"
        )
        self._ephemeral = EphemeralKeyPair.generate(self.rng)
        self._local_ephemeral_public = self._ephemeral.public()
        self._nonce = HandshakeNonce.generate(self.rng)
        self._state = HandshakeState.KEY_EXCHANGE_SENT
        return KeyExchange(ephemeral_public_key=self._local_ephemeral_public, nonce=self._nonce)

    def read_signed_key_exchange(self, message: SignedKeyExchange) -> None:
        """
        Initiator: verify the responder's signed key exchange.

        Raises:
            UnexpectedMessageError: If the nonce differs from ours, the
                signature does not verify, or the ephemeral key is invalid.
        """
        self._require(
            HandshakeRole.INITIATOR,
            HandshakeState.KEY_EXCHANGE_SENT,
            "read_signed_key_exchange",
        )
        assert self._nonce is not None and self._remote_identity is not None

        inner = message.key_exchange
        if inner.nonce != self._nonce:
            raise self._fail(
                UnexpectedMessageError(
                    f"Nonce mismatch: sent {int(self._nonce):#x}, got {int(inner.nonce):#x}"
                )
            )

        if not verify_key_exchange_proof(self._remote_identity, message):
            raise self._fail(UnexpectedMessageError("Invalid key exchange signature"))

        self._remote_ephemeral = inner.ephemeral_public_key
        self._compute_shared_secret()
        self._state = HandshakeState.KEY_EXCHANGE_RECEIVED

    # =========================================================================
    # Responder
    # =========================================================================

    def read_client_hello(self, message: ClientHello) -> None:
        """
        Responder: accept the initiator's hello.

        Raises:
            VersionMismatchError: If the version is not exactly ours.
        """
        self._require(HandshakeRole.RESPONDER, HandshakeState.UNESTABLISHED, "read_client_hello")
        if message.version != self.protocol_version:
            raise self._fail(VersionMismatchError(self.protocol_version, int(message.version)))
        self._state = HandshakeState.HELLO_RECEIVED

    def write_server_hello(self) -> ServerHello:
        """Responder: answer with the version reply and our identity key."""
        self._require(HandshakeRole.RESPONDER, HandshakeState.HELLO_RECEIVED, "write_server_hello")
        self._state = HandshakeState.HELLO_SENT
        return ServerHello(
            version_reply=Uint64(reply(self.protocol_version)),
            public_signing_key=self.identity.public().public_key,
        )

    def read_key_exchange(self, message: KeyExchange) -> None:
        """Responder: record the initiator's ephemeral key and nonce."""
        self._require(HandshakeRole.RESPONDER, HandshakeState.HELLO_SENT, "read_key_exchange")
        self._remote_ephemeral = message.ephemeral_public_key
        self._nonce = HandshakeNonce(message.nonce)
        self._state = HandshakeState.KEY_EXCHANGE_RECEIVED

    def write_signed_key_exchange(self) -> SignedKeyExchange:
        """
        Responder: sign our ephemeral key together with the initiator's nonce.

        The shared secret is computed before the message is returned, so a
        degenerate initiator key is rejected without answering.

        Raises:
            UnexpectedMessageError: If the initiator's ephemeral key is invalid.
        """
        self._require(
            HandshakeRole.RESPONDER,
            HandshakeState.KEY_EXCHANGE_RECEIVED,
            "write_signed_key_exchange",
        )
        assert self._nonce is not None

        self._ephemeral = EphemeralKeyPair.generate(self.rng)
        self._local_ephemeral_public = self._ephemeral.public()
        key_exchange = KeyExchange(
            ephemeral_public_key=self._local_ephemeral_public, nonce=self._nonce
        )
        self._compute_shared_secret()
        self._state = HandshakeState.KEY_EXCHANGE_SENT
        return create_key_exchange_proof(self.identity, key_exchange)

    # =========================================================================
    # Completion
    # =========================================================================

    def finalize(self) -> HandshakeResult:
        """
        Derive transport keys and complete the handshake.

        Returns:
            Shared secret, cipher states in (send, recv) order for our
            role, and the verified peer identity (initiator only).
        """
        final_state = (
            HandshakeState.KEY_EXCHANGE_RECEIVED
            if self.role == HandshakeRole.INITIATOR
            else HandshakeState.KEY_EXCHANGE_SENT
        )
        self._require(self.role, final_state, "finalize")
        assert self._shared_secret is not None
        assert self._nonce is not None and self._remote_ephemeral is not None
        assert self._local_ephemeral_public is not None

        # The initiator's nonce salts the derivation.
        #
        # Both ephemeral keys go in the info string in initiator, responder order.
        local_ephemeral = self._local_ephemeral_public
        if self.role == HandshakeRole.INITIATOR:
            initiator_ephemeral, responder_ephemeral = local_ephemeral, self._remote_ephemeral
        else:
            initiator_ephemeral, responder_ephemeral = self._remote_ephemeral, local_ephemeral

        initiator_key, responder_key = derive_transport_keys(
            self._shared_secret, self._nonce, initiator_ephemeral, responder_ephemeral
        )

        if self.role == HandshakeRole.INITIATOR:
            send_key, recv_key = initiator_key, responder_key
            other_id = self._remote_identity
        else:
            send_key, recv_key = responder_key, initiator_key
            other_id = None

        result = HandshakeResult(
            shared_secret=self._shared_secret,
            send_cipher=CipherState(key=send_key),
            recv_cipher=CipherState(key=recv_key),
            other_id=other_id,
            nonce=self._nonce,
        )
        self._shared_secret = None
        self._state = HandshakeState.ESTABLISHED
        return result
