"""
Unauthenticated connection and its one-shot upgrade.

A `Connection` wraps a raw byte stream together with our identity. It
can be upgraded exactly once, as initiator or as responder. The upgrade
drives the sans-IO `Handshake` over the stream and either returns a
`SecureConnection` or raises; in both cases the `Connection` itself is
spent afterwards.

On any failure (including cancellation and timeouts imposed by the
caller) the handshake is aborted, the stream is closed and the original
exception propagates unchanged.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Collection

from .codec import FrameCodec
from .config import ChannelConfig
from .errors import ConnectionConsumedError, RejectedError
from .handshake import Handshake, HandshakeRole, HandshakeState
from .identity import Identity, PeerIdentity
from .messages import ClientHello, KeyExchange, ServerHello, SignedKeyExchange
from .protocols import StreamReaderProtocol, StreamWriterProtocol
from .rand import SYSTEM_RANDOM, RandomSource
from .session import SecureConnection

logger = logging.getLogger(__name__)


class Connection:
    """
    A raw stream waiting to be upgraded.

    Usage:
        conn = Connection(identity, reader, writer)
        secure = await conn.client_side_upgrade(pinned=expected_peer)
    """

    __slots__ = ("identity", "config", "_codec", "_rng", "_handshake")

    def __init__(
        self,
        identity: Identity,
        reader: StreamReaderProtocol,
        writer: StreamWriterProtocol,
        *,
        config: ChannelConfig | None = None,
        rng: RandomSource | None = None,
    ) -> None:
        """
        Args:
            identity: Our long-term identity.
            reader: Inbound side of the stream.
            writer: Outbound side of the stream.
            config: Protocol version and frame limit. Defaults to `ChannelConfig()`.
            rng: Randomness for ephemeral keys and nonces. Defaults to the OS CSPRNG.
        """
        self.identity = identity
        self.config = config or ChannelConfig()
        self._codec = FrameCodec(reader, writer, self.config.max_frame_size)
        self._rng = rng or SYSTEM_RANDOM
        self._handshake: Handshake | None = None

    @property
    def state(self) -> HandshakeState:
        """Handshake state, UNESTABLISHED until an upgrade starts."""
        if self._handshake is None:
            return HandshakeState.UNESTABLISHED
        return self._handshake.state

    async def client_side_upgrade(self, pinned: PeerIdentity | None = None) -> SecureConnection:
        """
        Run the handshake as initiator.

        Args:
            pinned: If given, the responder must present exactly this identity.

        Returns:
            A secure connection whose `other_id` is the verified responder.

        Raises:
            ConnectionConsumedError: If this connection was already upgraded.
            VersionMismatchError: If the responder answers with a wrong version reply.
            RejectedError: If the responder identity does not match `pinned`.
            UnexpectedMessageError: On a wrong message, nonce or signature.
            DecodeError: If the responder sends malformed data.
            TransportError: If the stream fails.
        """
        handshake = self._claim(
            Handshake.initiator(
                self.identity,
                protocol_version=self.config.protocol_version,
                rng=self._rng,
                pinned=pinned,
            )
        )
        return await self._upgrade(handshake, self._run_initiator)

    async def server_side_upgrade(
        self, allow_list: Collection[PeerIdentity] | None = None
    ) -> SecureConnection:
        """
        Run the handshake as responder.

        The initiator never proves an identity in this protocol, so an
        allow-list cannot be checked. Passing one fails closed with
        `RejectedError` before anything is read from the stream.

        Args:
            allow_list: Must be None.

        Returns:
            A secure connection whose `other_id` is None.

        Raises:
            ConnectionConsumedError: If this connection was already upgraded.
            RejectedError: If an allow-list was given.
            VersionMismatchError: If the initiator speaks another version.
            UnexpectedMessageError: On a wrong message or a degenerate key.
            DecodeError: If the initiator sends malformed data.
            TransportError: If the stream fails.
        """
        handshake = self._claim(
            Handshake.responder(
                self.identity,
                protocol_version=self.config.protocol_version,
                rng=self._rng,
            )
        )

        async def run(hs: Handshake) -> None:
            if allow_list is not None:
                raise RejectedError(
                    "Allow-list cannot be enforced: the initiator is not authenticated"
                )
            await self._run_responder(hs)

        return await self._upgrade(handshake, run)

    def _claim(self, handshake: Handshake) -> Handshake:
        if self._handshake is not None:
            raise ConnectionConsumedError(
                f"Connection already upgraded (state {self._handshake.state.name})"
            )
        self._handshake = handshake
        return handshake

    async def _upgrade(
        self,
        handshake: Handshake,
        steps: Callable[[Handshake], Awaitable[None]],
    ) -> SecureConnection:
        role = handshake.role.name.lower()
        logger.debug("Starting handshake as %s", role)

        try:
            await steps(handshake)
            result = handshake.finalize()
        except BaseException as e:
            # Cancellation and timeouts land here too.
            handshake.abort()
            self._codec.writer.close()
            logger.warning("Handshake as %s aborted: %s", role, str(e) or type(e).__name__)
            raise

        peer = result.other_id.short_id() if result.other_id is not None else "anonymous"
        logger.info("Secure channel established as %s with %s", role, peer)

        return SecureConnection(
            identity=self.identity,
            other_id=result.other_id,
            _codec=self._codec,
            _shared_secret=result.shared_secret,
            _send_cipher=result.send_cipher,
            _recv_cipher=result.recv_cipher,
        )

    def _log_state(self, handshake: Handshake) -> None:
        logger.debug("Handshake %s -> %s", handshake.role.name.lower(), handshake.state.name)

    async def _run_initiator(self, handshake: Handshake) -> None:
        assert handshake.role == HandshakeRole.INITIATOR
        codec = self._codec

        await codec.send(handshake.write_hello())
        self._log_state(handshake)

        remote = handshake.read_server_hello(await codec.recv(ServerHello))
        self._log_state(handshake)
        logger.debug("Responder announced identity %s", remote.short_id())

        await codec.send(handshake.write_key_exchange())
        self._log_state(handshake)

        handshake.read_signed_key_exchange(await codec.recv(SignedKeyExchange))
        self._log_state(handshake)

    async def _run_responder(self, handshake: Handshake) -> None:
        assert handshake.role == HandshakeRole.RESPONDER
        codec = self._codec

        handshake.read_client_hello(await codec.recv(ClientHello))
        self._log_state(handshake)

        await codec.send(handshake.write_server_hello())
        self._log_state(handshake)

        handshake.read_key_exchange(await codec.recv(KeyExchange))
        self._log_state(handshake)

        await codec.send(handshake.write_signed_key_exchange())
        self._log_state(handshake)
