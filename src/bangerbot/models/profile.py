"""
Author profile parsed from kind-0 metadata.

Metadata content is free-form JSON published by the author. Only the
display name and avatar URL are kept; a payload that is not a JSON object
degrades to a placeholder profile instead of raising.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

from ._validation import validate_hex_key, validate_timestamp


UNKNOWN_USER = "Unknown User"
_SHORT_KEY_LENGTH = 8


@dataclass(frozen=True, slots=True)
class Profile:
    """Immutable author profile.

    Args:
        author: Author public key as hex.
        display_name: Resolved display name, or ``None``.
        avatar_url: Picture URL, or ``None``.
        created_at: Timestamp of the metadata event this profile came from.
        placeholder: ``True`` when the metadata could not be parsed.
    """

    author: str
    display_name: str | None = None
    avatar_url: str | None = None
    created_at: int = 0
    placeholder: bool = False

    def __post_init__(self) -> None:
        validate_hex_key(self.author, "author")
        validate_timestamp(self.created_at, "created_at")

    @classmethod
    def from_metadata(cls, author: str, content: str, created_at: int = 0) -> Profile:
        """Parse a kind-0 metadata payload.

        The display name is the first non-empty string among ``name`` and
        ``display_name``, falling back to ``"Unknown User"``. Any payload
        that is not a JSON object yields
        [placeholder_for()][bangerbot.models.profile.Profile.placeholder_for].
        """
        try:
            data = json.loads(content)
        except (json.JSONDecodeError, TypeError):
            return cls.placeholder_for(author, created_at)
        if not isinstance(data, dict):
            return cls.placeholder_for(author, created_at)

        name = _first_str(data.get("name"), data.get("display_name")) or UNKNOWN_USER
        return cls(
            author=author,
            display_name=name,
            avatar_url=_first_str(data.get("picture")),
            created_at=created_at,
        )

    @classmethod
    def placeholder_for(cls, author: str, created_at: int = 0) -> Profile:
        return cls(author=author, display_name=UNKNOWN_USER, created_at=created_at, placeholder=True)

    @property
    def label(self) -> str:
        return self.display_name or short_key(self.author)


def short_key(author: str) -> str:
    """Abbreviated key shown before a profile is resolved (``"abcd1234..."``)."""
    return f"{author[:_SHORT_KEY_LENGTH]}..."


def _first_str(*candidates: object) -> str | None:
    for candidate in candidates:
        if isinstance(candidate, str) and candidate:
            return candidate
    return None
