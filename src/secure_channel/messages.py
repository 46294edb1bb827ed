"""
Handshake messages.

Four message kinds travel during a handshake, always in this order:

    Initiator                         Responder
    ClientHello(version)        ->
                                <-    ServerHello(reply(version), signing key)
    KeyExchange(ephemeral, nonce) ->
                                <-    SignedKeyExchange(KeyExchange(ephemeral, nonce), signature)

Each frame carries one `HandshakeMessage`: a selector byte naming the
kind, then that kind's fixed-size fields.
"""

from __future__ import annotations

from typing import Union

from .types import Bytes32, Bytes64, Container, TaggedUnion, Uint64


class ClientHello(Container):
    """First message: the initiator announces its protocol version."""

    version: Uint64
    """Protocol version the initiator speaks."""


class ServerHello(Container):
    """The responder's answer to `ClientHello`."""

    version_reply: Uint64
    """The initiator's version with the reply flag set."""

    public_signing_key: Bytes32
    """The responder's long-term Ed25519 public key."""


class KeyExchange(Container):
    """
    An ephemeral X25519 public key bound to the initiator's nonce.

    Sent bare by the initiator. The responder sends its own inside a
    `SignedKeyExchange`; the signature covers this container's encoding.
    """

    ephemeral_public_key: Bytes32
    """Sender's ephemeral X25519 public key."""

    nonce: Uint64
    """The initiator's handshake nonce."""


class SignedKeyExchange(Container):
    """The responder's key exchange, signed with its long-term identity."""

    key_exchange: KeyExchange
    """Responder's ephemeral key and the echoed nonce."""

    signature: Bytes64
    """Ed25519 signature over `key_exchange.encode_bytes()`."""


Message = Union[ClientHello, ServerHello, KeyExchange, SignedKeyExchange]
"""Any handshake message body."""


class HandshakeMessage(TaggedUnion):
    """Tagged union of every message that can appear in a handshake frame."""

    OPTIONS = (ClientHello, ServerHello, KeyExchange, SignedKeyExchange)
