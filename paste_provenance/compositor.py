"""
Span compositor
Merges provenance matches, reviewer annotations and third-party highlight spans into a
single ordered list of non-overlapping segments that partitions the whole text.
The full plan is computed before any markup is produced.
"""

import logging
import unicodedata
from typing import Iterable, List, Optional, Sequence

from .annotations import resolve_anchor
from .errors import StaleSnapshotError
from .models import (
    Annotation,
    HighlightSpan,
    ProvenanceMatch,
    RenderSegment,
    SpanSourceKind,
    TextBuffer,
)

logger = logging.getLogger(__name__)

ZERO_WIDTH_JOINER = '\u200d'


class SpanCompositor:

    def compose(self, buffer: TextBuffer, provenance_matches: Sequence[ProvenanceMatch] = (),
                annotations: Sequence[Annotation] = (),
                other_spans: Sequence[HighlightSpan] = ()) -> List[RenderSegment]:
        text = buffer.text
        if not text:
            return []

        spans = self._collect_spans(buffer, provenance_matches, annotations, other_spans)

        cut_points = {0, len(text)}
        for span in spans:
            cut_points.add(span.start)
            cut_points.add(span.end)
        cuts = sorted(cut_points)

        segments = []
        for seg_start, seg_end in zip(cuts, cuts[1:]):
            active = [span for span in spans if span.start <= seg_start and span.end >= seg_end]
            segments.append(_build_segment(seg_start, seg_end, active))

        logger.debug(f"Composed {len(segments)} segment(s) from {len(spans)} span(s) at version {buffer.version}")
        return segments

    def _collect_spans(self, buffer: TextBuffer, provenance_matches: Iterable[ProvenanceMatch],
                       annotations: Iterable[Annotation],
                       other_spans: Iterable[HighlightSpan]) -> List[HighlightSpan]:
        """Bring every source to HighlightSpans valid for this buffer version"""
        text = buffer.text
        spans = []

        for match in provenance_matches:
            if match.buffer_version != buffer.version:
                raise StaleSnapshotError(buffer.version, match.buffer_version)
            spans.append(HighlightSpan(
                start=match.start,
                end=match.end,
                kind=SpanSourceKind.PROVENANCE,
                buffer_version=buffer.version,
                source_id=match.paste_event_id,
                label=f"Pasted content ({match.method.value}, {match.confidence:.0%} confidence)",
                confidence=match.confidence,
            ))

        for annotation in annotations:
            location = resolve_anchor(annotation, buffer)
            if location is None:
                continue
            spans.append(HighlightSpan(
                start=location[0],
                end=location[1],
                kind=SpanSourceKind.ANNOTATION,
                buffer_version=buffer.version,
                source_id=annotation.id,
                label=annotation.body,
            ))

        for span in other_spans:
            if span.buffer_version != buffer.version:
                raise StaleSnapshotError(buffer.version, span.buffer_version)
            spans.append(span)

        clipped = []
        for span in spans:
            start = snap_boundary(text, span.start)
            end = snap_boundary(text, span.end)
            if start >= end:
                continue
            if (start, end) != (span.start, span.end):
                span = HighlightSpan(start, end, span.kind, span.buffer_version,
                                     span.source_id, span.label, span.confidence)
            clipped.append(span)
        return clipped


def snap_boundary(text: str, offset: int) -> int:
    """
    Clamp an offset into the text and move it back until it is a safe cut point:
    not before a combining mark, variation selector or zero-width joiner, not right
    after a joiner, and not inside a CRLF pair.
    """
    offset = max(0, min(offset, len(text)))
    while 0 < offset < len(text) and _joins_previous(text[offset - 1], text[offset]):
        offset -= 1
    return offset


def _joins_previous(before: str, char: str) -> bool:
    if unicodedata.combining(char) or char == ZERO_WIDTH_JOINER or before == ZERO_WIDTH_JOINER:
        return True
    if '\ufe00' <= char <= '\ufe0f' or '\U000e0100' <= char <= '\U000e01ef':
        return True
    return before == '\r' and char == '\n'


def _build_segment(start: int, end: int, active: List[HighlightSpan]) -> RenderSegment:
    if not active:
        return RenderSegment(start, end)

    active = sorted(active, key=lambda span: (-span.kind.priority, span.start))
    kinds = frozenset(span.kind for span in active)

    source_ids = []
    labels = []
    for span in active:
        if span.source_id and span.source_id not in source_ids:
            source_ids.append(span.source_id)
        if span.label and span.label not in labels:
            labels.append(span.label)

    confidences = [span.confidence for span in active
                   if span.kind is SpanSourceKind.PROVENANCE and span.confidence is not None]

    return RenderSegment(
        start=start,
        end=end,
        kinds=kinds,
        style=active[0].kind,
        source_ids=tuple(source_ids),
        labels=tuple(labels),
        confidence=max(confidences) if confidences else None,
    )


def check_partition(segments: Sequence[RenderSegment], length: int) -> Optional[str]:
    """Describe the first partition violation, or None if segments tile [0, length) exactly"""
    if length == 0:
        return None if not segments else "segments given for empty text"
    if not segments:
        return "no segments for non-empty text"

    position = 0
    for segment in segments:
        if segment.start != position:
            return f"gap or overlap at {position} (segment starts at {segment.start})"
        if segment.end <= segment.start:
            return f"empty segment at {segment.start}"
        position = segment.end

    if position != length:
        return f"segments end at {position}, text length is {length}"
    return None
