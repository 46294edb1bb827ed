"""
Long-term identity module.

Provides Ed25519 identities, their public halves, and the proof the
responder attaches to its key exchange.

The identity key is separate from the ephemeral key:
- Identity key (Ed25519): announced in ServerHello, signs the key exchange
- Ephemeral key (X25519): one handshake only, produces the shared secret
"""

from .keypair import Identity, PeerIdentity, verify_signature
from .signature import create_key_exchange_proof, verify_key_exchange_proof

__all__ = [
    "Identity",
    "PeerIdentity",
    "verify_signature",
    "create_key_exchange_proof",
    "verify_key_exchange_proof",
]
