"""Utility layer: Nostr relay client and subscription streams.

Modules:
    protocol: [NostrRelayClient][bangerbot.utils.protocol.NostrRelayClient],
        a single-endpoint relay client on ``nostr-sdk``, plus the
        [EventFilter][bangerbot.models.filter.EventFilter] to
        ``nostr_sdk.Filter`` conversion.
    subscription: [Subscription][bangerbot.utils.subscription.Subscription],
        the cancelable multi-consumer notification stream returned by
        ``subscribe()``.

Note:
    The utils layer has **zero** imports from ``bangerbot.core`` or
    ``bangerbot.services``. Failures surface as builtin ``OSError`` and
    ``TimeoutError`` so the diamond DAG stays intact.
"""
