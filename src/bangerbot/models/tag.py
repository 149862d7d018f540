"""
Typed Nostr tag parsed from wire data.

A tag is an ordered, non-empty sequence of strings. Position 0 names the
relation (``"e"``, ``"p"``, ...) and the meaning of the remaining positions
depends on that relation. This module only fixes the shape; relation
semantics live in the NIP modules.

See Also:
    [bangerbot.nips.nip10][]: Interprets ``"e"`` tags carrying the
        ``"mention"`` marker.
    [bangerbot.models.event][]: Holds a tuple of tags per event.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any

from ._validation import validate_instance


@dataclass(frozen=True, slots=True)
class Tag:
    """Immutable tag with positional accessors.

    Args:
        values: Tag positions as strings. Must contain at least one item.

    Raises:
        TypeError: If *values* is not a tuple or an item is not a string.
        ValueError: If *values* is empty.

    Examples:
        ```python
        tag = Tag(("e", "ab" * 32, "wss://relay.example.com", "mention"))
        tag.name       # "e"
        tag.value      # "abab..."
        tag.get(3)     # "mention"
        tag.get(7)     # None
        ```
    """

    values: tuple[str, ...]

    def __post_init__(self) -> None:
        validate_instance(self.values, tuple, "values")
        if not self.values:
            raise ValueError("tag must have at least one position")
        for position, item in enumerate(self.values):
            validate_instance(item, str, f"tag[{position}]")

    @classmethod
    def parse(cls, raw: Any) -> Tag:
        """Build a tag from a decoded JSON array.

        Raises:
            TypeError: If *raw* is not a list or tuple of strings.
            ValueError: If *raw* is empty.
        """
        if not isinstance(raw, list | tuple):
            raise TypeError(f"tag must be a list, got {type(raw).__name__}")
        return cls(tuple(raw))

    @property
    def name(self) -> str:
        return self.values[0]

    @property
    def value(self) -> str | None:
        return self.get(1)

    def get(self, position: int) -> str | None:
        """Return the item at *position*, or ``None`` when the tag is shorter."""
        if 0 <= position < len(self.values):
            return self.values[position]
        return None

    def __len__(self) -> int:
        return len(self.values)

    def __getitem__(self, position: int) -> str:
        return self.values[position]

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)


def parse_tags(raw: Iterable[Any]) -> tuple[Tag, ...]:
    """Parse every raw tag, raising on the first malformed one."""
    return tuple(Tag.parse(item) for item in raw)
