"""
Document text snapshots and the append-only paste log
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, Iterator, Optional, Tuple

from .models import PasteEvent, TextBuffer

logger = logging.getLogger(__name__)


class PasteLog:
    """
    Ordered, append-only record of paste events for one document.
    Events are never mutated or removed; callers serialize appends.
    """

    def __init__(self, events: Optional[Iterable[PasteEvent]] = None):
        self._events = []
        self._by_id: Dict[str, PasteEvent] = {}
        if events:
            self.extend(events)

    def append(self, pasted_text: str, insertion_offset: int, captured_at_version: int,
               timestamp: Optional[datetime] = None, event_id: Optional[str] = None) -> PasteEvent:
        event = PasteEvent(
            id=event_id or f"paste-{len(self._events) + 1}",
            pasted_text=pasted_text,
            insertion_offset=max(0, int(insertion_offset)),
            captured_at_version=captured_at_version,
            timestamp=timestamp or datetime.now(timezone.utc),
        )
        self._add(event)
        logger.debug(f"Recorded {event.id}: {len(pasted_text)} chars at offset {event.insertion_offset}")
        return event

    def extend(self, events: Iterable[PasteEvent]):
        """Restore previously persisted events, keeping their order and fields verbatim"""
        for event in events:
            self._add(event)

    def _add(self, event: PasteEvent):
        if event.id in self._by_id:
            raise ValueError(f"Duplicate paste event id: {event.id}")
        self._events.append(event)
        self._by_id[event.id] = event

    def get(self, event_id: str) -> Optional[PasteEvent]:
        return self._by_id.get(event_id)

    @property
    def events(self) -> Tuple[PasteEvent, ...]:
        return tuple(self._events)

    def __iter__(self) -> Iterator[PasteEvent]:
        return iter(tuple(self._events))

    def __len__(self) -> int:
        return len(self._events)


def edit_buffer(buffer: TextBuffer, new_text: str) -> TextBuffer:
    """Every edit produces a new snapshot with a bumped version"""
    if new_text is None:
        new_text = ''
    updated = buffer.with_text(new_text)
    logger.debug(f"Buffer edited: version {buffer.version} -> {updated.version}, {len(new_text)} chars")
    return updated
