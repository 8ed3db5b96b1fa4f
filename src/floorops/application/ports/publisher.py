"""Outbound port for floor events that have already been committed."""

from __future__ import annotations

from typing import Protocol, Sequence


class FloorEventPublisher(Protocol):
    def publish_batch(self, channel: str, messages: Sequence[str]) -> None:
        """Deliver one unit of work's serialized envelopes to ``channel``, in order.

        Raising means none of ``messages`` can be assumed delivered.
        """
        ...
