"""
Key exchange proof.

The responder proves it owns the identity it announced in `ServerHello`
by signing its ephemeral key together with the initiator's nonce:

    message = KeyExchange(responder_ephemeral_public_key, nonce).encode_bytes()
    signature = Ed25519(responder_identity_private_key, message)

Including the nonce ties the signature to one handshake. A signed key
exchange captured from an earlier session carries a different nonce and
is rejected.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..messages import KeyExchange, SignedKeyExchange

if TYPE_CHECKING:
    from .keypair import Identity, PeerIdentity

__all__ = [
    "create_key_exchange_proof",
    "verify_key_exchange_proof",
]


def create_key_exchange_proof(identity: Identity, key_exchange: KeyExchange) -> SignedKeyExchange:
    """
    Sign a key exchange with a long-term identity.

    Args:
        identity: The responder's identity.
        key_exchange: The responder's ephemeral key and the echoed nonce.

    Returns:
        The key exchange together with its signature.
    """
    return SignedKeyExchange(key_exchange=key_exchange, signature=identity.sign(key_exchange))


def verify_key_exchange_proof(peer: PeerIdentity, signed: SignedKeyExchange) -> bool:
    """
    Check that `peer` signed the key exchange in `signed`.

    Args:
        peer: The identity announced in `ServerHello`.
        signed: The message received from the responder.

    Returns:
        True if the signature is valid, False otherwise.
    """
    return peer.verify(signed.key_exchange, signed.signature)
