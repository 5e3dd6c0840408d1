# src/subscription/channel.py — v1
"""One open push channel, identified by a generation id.

A store may deliver (or fail) before subscribe() has returned its
unsubscribe function, so closing is allowed before attach(); the
unsubscribe is then invoked as soon as it arrives.
"""

from __future__ import annotations

from livequery.store.base_document_store import Unsubscribe


class Channel:
    def __init__(self, generation: int) -> None:
        self.generation = generation
        self.closed = False
        self._unsubscribe: Unsubscribe | None = None

    def attach(self, unsubscribe: Unsubscribe) -> None:
        if self.closed:
            unsubscribe()
            return
        self._unsubscribe = unsubscribe

    def close(self) -> None:
        """Tear down the channel. Idempotent."""
        if self.closed:
            return
        self.closed = True
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()

    def __repr__(self) -> str:
        return f"Channel(generation={self.generation}, closed={self.closed})"
