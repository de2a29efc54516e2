"""
Core data model for paste provenance tracking
Every derived object carries the buffer version it was computed against
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple


@dataclass(frozen=True)
class TextBuffer:
    """Immutable snapshot of the document text at a given version"""
    text: str = ""
    version: int = 0

    def __len__(self) -> int:
        return len(self.text)

    def with_text(self, new_text: str) -> "TextBuffer":
        return TextBuffer(text=new_text, version=self.version + 1)

    def to_dict(self) -> Dict[str, Any]:
        return {'text': self.text, 'version': self.version, 'length': len(self.text)}


@dataclass(frozen=True)
class PasteEvent:
    """A recorded paste action, immutable once created"""
    id: str
    pasted_text: str
    insertion_offset: int
    captured_at_version: int
    timestamp: datetime

    @property
    def is_blank(self) -> bool:
        return not self.pasted_text or not self.pasted_text.strip()

    def to_dict(self, preview_chars: Optional[int] = None) -> Dict[str, Any]:
        text = self.pasted_text
        if preview_chars is not None and len(text) > preview_chars:
            text = text[:preview_chars] + '...'
        return {
            'id': self.id,
            'text': text,
            'length': len(self.pasted_text),
            'insertion_offset': self.insertion_offset,
            'captured_at_version': self.captured_at_version,
            'timestamp': self.timestamp.isoformat(),
        }


class MatchMethod(Enum):
    EXACT_SUBSTRING = 'exact_substring'
    PHRASE_MATCH = 'phrase_match'
    WORD_OVERLAP = 'word_overlap'


@dataclass(frozen=True)
class ProvenanceMatch:
    """Claim that a range of the current text came from a paste event"""
    paste_event_id: str
    start: int
    end: int
    confidence: float
    method: MatchMethod
    buffer_version: int

    @property
    def matched_range(self) -> Tuple[int, int]:
        return (self.start, self.end)

    def overlaps(self, start: int, end: int) -> bool:
        return self.start < end and start < self.end

    def to_dict(self) -> Dict[str, Any]:
        return {
            'paste_event_id': self.paste_event_id,
            'start': self.start,
            'end': self.end,
            'confidence': round(self.confidence, 4),
            'method': self.method.value,
            'buffer_version': self.buffer_version,
        }


@dataclass
class Annotation:
    """Reviewer comment anchored to a text range"""
    id: str
    start_offset: int
    end_offset: int
    anchor_text: str
    body: str
    author: str
    created_at: datetime
    created_version: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'start_offset': self.start_offset,
            'end_offset': self.end_offset,
            'anchor_text': self.anchor_text,
            'body': self.body,
            'author': self.author,
            'created_at': self.created_at.isoformat(),
            'created_version': self.created_version,
        }


class AnchorStatus(Enum):
    ANCHORED = 'anchored'
    ORPHANED = 'orphaned'


@dataclass(frozen=True)
class ResolvedAnnotation:
    """An annotation together with its location in a specific buffer version"""
    annotation: Annotation
    status: AnchorStatus
    buffer_version: int
    start: Optional[int] = None
    end: Optional[int] = None

    @property
    def is_orphaned(self) -> bool:
        return self.status is AnchorStatus.ORPHANED

    def to_dict(self) -> Dict[str, Any]:
        data = self.annotation.to_dict()
        data.update({
            'status': self.status.value,
            'resolved_start': self.start,
            'resolved_end': self.end,
            'buffer_version': self.buffer_version,
        })
        return data


class SpanSourceKind(Enum):
    """Highlight sources, declared from highest to lowest visual priority"""
    ANNOTATION = 'annotation'
    PROVENANCE = 'provenance'
    SPELLING = 'spelling'

    @property
    def priority(self) -> int:
        return _KIND_PRIORITY[self]


_KIND_PRIORITY = {
    SpanSourceKind.ANNOTATION: 3,
    SpanSourceKind.PROVENANCE: 2,
    SpanSourceKind.SPELLING: 1,
}


@dataclass(frozen=True)
class HighlightSpan:
    """A single highlight request from any source, valid for one buffer version"""
    start: int
    end: int
    kind: SpanSourceKind
    buffer_version: int
    source_id: Optional[str] = None
    label: Optional[str] = None
    confidence: Optional[float] = None


@dataclass(frozen=True)
class RenderSegment:
    """One interval of the render plan; segments partition the text exactly"""
    start: int
    end: int
    kinds: FrozenSet[SpanSourceKind] = frozenset()
    style: Optional[SpanSourceKind] = None
    source_ids: Tuple[str, ...] = ()
    labels: Tuple[str, ...] = ()
    confidence: Optional[float] = None

    @property
    def is_plain(self) -> bool:
        return not self.kinds

    def to_dict(self) -> Dict[str, Any]:
        return {
            'start': self.start,
            'end': self.end,
            'kinds': sorted(kind.value for kind in self.kinds),
            'style': self.style.value if self.style else None,
            'source_ids': list(self.source_ids),
            'labels': list(self.labels),
            'confidence': round(self.confidence, 4) if self.confidence is not None else None,
        }


@dataclass(frozen=True)
class DocumentVerdict:
    sentence_match_ratio: float
    word_match_ratio: float
    flagged: bool
    sentence_count: int = 0
    matched_sentence_count: int = 0
    word_count: int = 0
    matched_word_count: float = 0.0
    reasons: Tuple[str, ...] = ()
    buffer_version: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sentence_match_ratio': round(self.sentence_match_ratio, 4),
            'word_match_ratio': round(self.word_match_ratio, 4),
            'flagged': self.flagged,
            'sentence_count': self.sentence_count,
            'matched_sentence_count': self.matched_sentence_count,
            'word_count': self.word_count,
            'matched_word_count': round(self.matched_word_count, 2),
            'reasons': list(self.reasons),
            'buffer_version': self.buffer_version,
        }


@dataclass
class PasteSummary:
    event_count: int
    skipped_count: int
    total_characters: int
    matched_event_count: int
    events: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'event_count': self.event_count,
            'skipped_count': self.skipped_count,
            'total_characters': self.total_characters,
            'matched_event_count': self.matched_event_count,
            'events': self.events,
        }
