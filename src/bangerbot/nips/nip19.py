"""NIP-19 identifier codec.

Thin wrappers over ``nostr_sdk`` bech32 decoding:

* [decode_identity()][bangerbot.nips.nip19.decode_identity] turns an
  ``npub1...`` string (or a hex key) into a hex public key.
* [decode_event_reference()][bangerbot.nips.nip19.decode_event_reference]
  turns an ``nevent1...`` bundle, optionally prefixed with the NIP-21
  ``nostr:`` scheme, into an
  [EventReference][bangerbot.nips.nip19.EventReference].

Both raise subclasses of ``ValueError`` on failure and never leak
``nostr_sdk`` error types.
"""

from __future__ import annotations

from dataclasses import dataclass

from nostr_sdk import Nip19Event, NostrSdkError, PublicKey

from bangerbot.models import is_hex_key


NOSTR_URI_PREFIX = "nostr:"
NEVENT_PREFIX = "nevent1"


class DecodeError(ValueError):
    """A NIP-19 identifier could not be decoded."""


class IdentityDecodeError(DecodeError):
    """A public key given as npub or hex could not be decoded."""


class ReferenceDecodeError(DecodeError):
    """An ``nevent`` reference could not be decoded."""


@dataclass(frozen=True, slots=True)
class EventReference:
    """Decoded ``nevent`` bundle.

    Attributes:
        event_id: Target event id as hex.
        author: Author public key as hex, when the bundle carries one.
    """

    event_id: str
    author: str | None = None


def decode_identity(value: str) -> str:
    """Decode an ``npub1...`` or 64-character hex key to lowercase hex.

    Raises:
        IdentityDecodeError: If *value* is neither.
    """
    candidate = value.strip()
    if candidate.startswith(NOSTR_URI_PREFIX):
        candidate = candidate[len(NOSTR_URI_PREFIX) :]
    if is_hex_key(candidate.lower()):
        return candidate.lower()
    try:
        return PublicKey.parse(candidate).to_hex()
    except NostrSdkError as e:
        raise IdentityDecodeError(f"invalid public key {value!r}: {e}") from e


def decode_event_reference(token: str) -> EventReference:
    """Decode an ``nevent1...`` bundle, with or without the ``nostr:`` prefix.

    Raises:
        ReferenceDecodeError: If the token is not a valid ``nevent``.
    """
    bech32 = token[len(NOSTR_URI_PREFIX) :] if token.startswith(NOSTR_URI_PREFIX) else token
    if not bech32.startswith(NEVENT_PREFIX):
        raise ReferenceDecodeError(f"not an nevent reference: {token!r}")
    try:
        decoded = Nip19Event.from_bech32(bech32)
    except NostrSdkError as e:
        raise ReferenceDecodeError(f"invalid nevent {token!r}: {e}") from e

    author = decoded.author()
    return EventReference(
        event_id=decoded.event_id().to_hex(),
        author=author.to_hex() if author is not None else None,
    )
