"""NIP-27 inline references in note content.

Notes can quote other notes inline with ``nostr:nevent1...`` tokens.
[parse_content()][bangerbot.nips.nip27.parse_content] finds every such
token, keeps the ones that pass a syntactic pre-check and decode cleanly,
and returns the content with every token removed for display. A malformed
token is dropped silently; this function never raises on content.

Pre-check, applied before decoding:

* the whole token is longer than 20 characters;
* the part after ``nostr:nevent`` is at least 10 characters;
* that part is ASCII letters and digits only.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

from .nip19 import DecodeError, EventReference, decode_event_reference


logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"nostr:nevent\S*")
_TOKEN_PREFIX = "nostr:nevent"
_MIN_TOKEN_LENGTH = 21
_MIN_PAYLOAD_LENGTH = 10
_PAYLOAD_PATTERN = re.compile(r"[a-zA-Z0-9]+")

Decoder = Callable[[str], EventReference]


@dataclass(frozen=True, slots=True)
class ParsedContent:
    """Display text and decoded references of one note.

    Attributes:
        text: Content with every ``nostr:nevent`` token removed, stripped.
        references: Decoded references in order of first appearance,
            without duplicate event ids.
    """

    text: str
    references: tuple[EventReference, ...] = ()

    @property
    def event_ids(self) -> tuple[str, ...]:
        return tuple(reference.event_id for reference in self.references)


def is_candidate(token: str) -> bool:
    """Return ``True`` if *token* passes the syntactic pre-check."""
    if len(token) < _MIN_TOKEN_LENGTH or not token.startswith(_TOKEN_PREFIX):
        return False
    payload = token[len(_TOKEN_PREFIX) :]
    return len(payload) >= _MIN_PAYLOAD_LENGTH and _PAYLOAD_PATTERN.fullmatch(payload) is not None


def parse_content(content: str, *, decoder: Decoder = decode_event_reference) -> ParsedContent:
    """Extract inline event references and the display text from *content*."""
    references: list[EventReference] = []
    seen: set[str] = set()

    for token in TOKEN_PATTERN.findall(content):
        if not is_candidate(token):
            logger.debug("inline_reference_rejected token=%s", token[:32])
            continue
        try:
            reference = decoder(token)
        except DecodeError as e:
            logger.debug("inline_reference_undecodable token=%s error=%s", token[:32], e)
            continue
        if reference.event_id in seen:
            continue
        seen.add(reference.event_id)
        references.append(reference)

    text = TOKEN_PATTERN.sub("", content).strip()
    return ParsedContent(text=text, references=tuple(references))
