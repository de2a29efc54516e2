"""
DocumentSession: one editing session over one document
This is the boundary the editing surface, the reviewer UI and any rendering surface talk to.
Everything it derives is recomputed against the current snapshot; the only remembered result
is the last match set, keyed by (buffer version, paste log length).
"""

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from .aggregate import AggregateAnalyzer
from .annotations import AnnotationStore
from .buffer import PasteLog, edit_buffer
from .compositor import SpanCompositor
from .config import DEFAULT_POLICY, MatchPolicy
from .corrections import SpellChecker
from .errors import StaleSnapshotError
from .matcher import ProvenanceMatcher
from .models import (
    Annotation,
    DocumentVerdict,
    PasteEvent,
    PasteSummary,
    ProvenanceMatch,
    RenderSegment,
    ResolvedAnnotation,
    TextBuffer,
)
from .renderer import SafeRenderer

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 100


class DocumentSession:

    def __init__(self, text: str = '', policy: Optional[MatchPolicy] = None,
                 spell_check: bool = True, document_id: Optional[str] = None):
        self.document_id = document_id
        self.policy = policy or DEFAULT_POLICY
        self._buffer = TextBuffer(text or '', 0)
        self.paste_log = PasteLog()
        self.annotations = AnnotationStore()

        self.matcher = ProvenanceMatcher(self.policy)
        self.analyzer = AggregateAnalyzer(self.policy)
        self.compositor = SpanCompositor()
        self.renderer = SafeRenderer()
        self.spell_checker = SpellChecker() if spell_check else None

        self.skipped_pastes = 0
        self._match_cache: Optional[Tuple[Tuple[int, int], List[ProvenanceMatch]]] = None

    @property
    def buffer(self) -> TextBuffer:
        """Read-only snapshot of the current text"""
        return self._buffer

    # ------------------------------------------------------------------
    # Editing surface
    # ------------------------------------------------------------------

    def on_edit(self, new_text: str) -> TextBuffer:
        self._buffer = edit_buffer(self._buffer, new_text)
        return self._buffer

    def on_paste(self, text: str, offset: int, timestamp: Optional[datetime] = None) -> Optional[PasteEvent]:
        """Record a paste; blank pastes are skipped, not errors"""
        if not text or not text.strip():
            self.skipped_pastes += 1
            logger.warning(f"Skipping blank paste at offset {offset} for document {self.document_id}")
            return None
        return self.paste_log.append(text, offset, self._buffer.version, timestamp=timestamp)

    # ------------------------------------------------------------------
    # Reviewer UI
    # ------------------------------------------------------------------

    def create_annotation(self, start: int, end: int, body: str, anchor_text: Optional[str] = None,
                          author: str = 'reviewer') -> Annotation:
        return self.annotations.create(self._buffer, start, end, body, author=author, anchor_text=anchor_text)

    def edit_annotation(self, annotation_id: str, body: str) -> Annotation:
        return self.annotations.edit(annotation_id, body)

    def delete_annotation(self, annotation_id: str) -> bool:
        return self.annotations.delete(annotation_id)

    def resolved_annotations(self) -> List[ResolvedAnnotation]:
        return self.annotations.resolve_all(self._buffer)

    # ------------------------------------------------------------------
    # Rendering surface queries
    # ------------------------------------------------------------------

    def get_matches(self) -> List[ProvenanceMatch]:
        buffer = self._buffer
        key = (buffer.version, len(self.paste_log))
        if self._match_cache is not None and self._match_cache[0] == key:
            return list(self._match_cache[1])

        matches = self.matcher.match(buffer, self.paste_log)
        self._match_cache = (key, matches)
        return list(matches)

    def get_render_segments(self, matches: Optional[List[ProvenanceMatch]] = None) -> List[RenderSegment]:
        """Segment plan for the current snapshot; stale matches force a recompute"""
        buffer = self._buffer
        if matches is None:
            matches = self.get_matches()

        spelling = self.spell_checker.check(buffer) if self.spell_checker else []
        annotations = self.annotations.all()

        try:
            return self.compositor.compose(buffer, matches, annotations, spelling)
        except StaleSnapshotError as e:
            logger.warning(f"Stale snapshot for document {self.document_id}: {e}; recomputing")
            return self.compositor.compose(buffer, self.get_matches(), annotations, spelling)

    def get_document_verdict(self, matches: Optional[List[ProvenanceMatch]] = None) -> DocumentVerdict:
        buffer = self._buffer
        if matches is None:
            matches = self.get_matches()
        try:
            return self.analyzer.analyze(matches, buffer)
        except StaleSnapshotError as e:
            logger.warning(f"Stale snapshot for document {self.document_id}: {e}; recomputing")
            return self.analyzer.analyze(self.get_matches(), buffer)

    def render(self) -> str:
        return self.renderer.render(self._buffer, self.get_render_segments())

    def paste_summary(self) -> PasteSummary:
        matched_ids = {match.paste_event_id for match in self.get_matches()}
        events = []
        for event in self.paste_log:
            entry = event.to_dict(preview_chars=PREVIEW_CHARS)
            entry['matched'] = event.id in matched_ids
            events.append(entry)

        return PasteSummary(
            event_count=len(self.paste_log),
            skipped_count=self.skipped_pastes,
            total_characters=sum(len(event.pasted_text) for event in self.paste_log),
            matched_event_count=len(matched_ids),
            events=events,
        )
