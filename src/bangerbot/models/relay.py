"""
Validated, normalized Nostr relay endpoint URL.

Relay endpoints come from configuration and from relay hints inside
event tags. Both are parsed with RFC 3986 rules so that two spellings of
the same endpoint (``wss://Relay.Example.com:443/`` and
``wss://relay.example.com``) share one identity in the relay pool.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from rfc3986 import uri_reference
from rfc3986.exceptions import UnpermittedComponentError, ValidationError
from rfc3986.validators import Validator


@dataclass(frozen=True, slots=True)
class Relay:
    """Immutable relay endpoint.

    The URL is normalized on construction: scheme and host are lowercased,
    duplicate and trailing slashes are removed from the path, and the port
    is dropped when it is the default for the scheme.

    Args:
        raw_url: WebSocket URL (``ws://`` or ``wss://``).

    Attributes:
        url: Normalized URL, used as the endpoint identity.
        scheme: ``"ws"`` or ``"wss"``.
        host: Hostname or IP address (IPv6 without brackets).
        port: Explicit non-default port, or ``None``.
        path: Normalized path, or ``None``.

    Raises:
        ValueError: If the URL is not a valid ``ws``/``wss`` URL, or carries
            a query string or fragment.

    Examples:
        ```python
        Relay("wss://relay.primal.net/").url       # "wss://relay.primal.net"
        Relay("WSS://Nos.Lol:443").url              # "wss://nos.lol"
        Relay("ws://127.0.0.1:7777").url            # "ws://127.0.0.1:7777"
        ```
    """

    _PORT_WS: ClassVar[int] = 80
    _PORT_WSS: ClassVar[int] = 443

    raw_url: str = field(repr=False)
    url: str = field(init=False)
    scheme: str = field(init=False, repr=False)
    host: str = field(init=False, repr=False)
    port: int | None = field(init=False, repr=False)
    path: str | None = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.raw_url, str):
            raise ValueError(f"relay url must be a str, got {type(self.raw_url).__name__}")

        uri = uri_reference(self.raw_url.strip()).normalize()
        validator = (
            Validator()
            .require_presence_of("scheme", "host")
            .allow_schemes("ws", "wss")
            .check_validity_of("scheme", "host", "port", "path")
        )
        try:
            validator.validate(uri)
        except UnpermittedComponentError:
            raise ValueError("Invalid scheme: must be ws or wss") from None
        except ValidationError as e:
            raise ValueError(f"Invalid URL: {e}") from None

        if uri.query:
            raise ValueError(f"Relay URL must not contain a query string: ?{uri.query}")
        if uri.fragment:
            raise ValueError(f"Relay URL must not contain a fragment: #{uri.fragment}")

        scheme = uri.scheme
        host = uri.host.strip("[]")
        port = int(uri.port) if uri.port else None
        default_port = self._PORT_WSS if scheme == "wss" else self._PORT_WS
        if port == default_port:
            port = None

        path = uri.path or ""
        while "//" in path:
            path = path.replace("//", "/")
        path = path.rstrip("/") or None

        formatted_host = f"[{host}]" if ":" in host else host
        authority = f"{formatted_host}:{port}" if port else formatted_host

        object.__setattr__(self, "url", f"{scheme}://{authority}{path or ''}")
        object.__setattr__(self, "scheme", scheme)
        object.__setattr__(self, "host", host)
        object.__setattr__(self, "port", port)
        object.__setattr__(self, "path", path)

    def __str__(self) -> str:
        return self.url


def normalize_relay_url(raw_url: str) -> str:
    """Return the normalized form of *raw_url*, raising ``ValueError`` if invalid."""
    return Relay(raw_url).url


def is_relay_url(value: str | None) -> bool:
    """Return ``True`` if *value* parses as a ``ws``/``wss`` relay URL."""
    if not value:
        return False
    try:
        Relay(value)
    except ValueError:
        return False
    return True
