"""
Reviewer annotations anchored to text ranges
Offsets are only trusted for the version they were captured at; after any edit the
anchor text is searched for again, and an annotation whose text is gone is orphaned
rather than guessed at.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from .errors import MalformedInputError, OrphanedAnnotationError
from .models import AnchorStatus, Annotation, ResolvedAnnotation, TextBuffer
from .text_utils import find_all, nearest

logger = logging.getLogger(__name__)


def resolve_anchor(annotation: Annotation, buffer: TextBuffer) -> Optional[Tuple[int, int]]:
    """Location of an annotation's anchor in the given buffer, or None if orphaned"""
    start, end = annotation.start_offset, annotation.end_offset
    anchor = annotation.anchor_text

    if buffer.version == annotation.created_version and buffer.text[start:end] == anchor:
        return (start, end)

    positions = find_all(buffer.text, anchor)
    if not positions:
        return None

    new_start = nearest(positions, start)
    return (new_start, new_start + len(anchor))


def _check_body(body):
    if not isinstance(body, str):
        raise MalformedInputError("Annotation body must be a string")
    if not body.strip():
        raise MalformedInputError("Annotation body is empty")


class AnnotationStore:

    def __init__(self):
        self._annotations: Dict[str, Annotation] = {}

    def create(self, buffer: TextBuffer, start_offset: int, end_offset: int, body: str,
               author: str = 'reviewer', anchor_text: Optional[str] = None,
               annotation_id: Optional[str] = None) -> Annotation:
        if not (0 <= start_offset < end_offset <= len(buffer.text)):
            raise MalformedInputError(
                f"Annotation range ({start_offset}, {end_offset}) is outside a {len(buffer.text)}-char document"
            )
        _check_body(body)
        if anchor_text is not None and not isinstance(anchor_text, str):
            raise MalformedInputError("Annotation anchor text must be a string")

        current_text = buffer.text[start_offset:end_offset]
        if anchor_text is None:
            anchor_text = current_text
        elif anchor_text != current_text:
            logger.warning(
                f"Anchor text does not match document at ({start_offset}, {end_offset}); "
                f"it will be re-located on resolve"
            )

        if not anchor_text.strip():
            raise MalformedInputError("Annotation anchor text is empty")

        annotation = Annotation(
            id=annotation_id or uuid.uuid4().hex[:12],
            start_offset=start_offset,
            end_offset=end_offset,
            anchor_text=anchor_text,
            body=body.strip(),
            author=author or 'reviewer',
            created_at=datetime.now(timezone.utc),
            created_version=buffer.version,
        )
        self._annotations[annotation.id] = annotation
        logger.info(f"Created annotation {annotation.id} on '{anchor_text[:40]}' at version {buffer.version}")
        return annotation

    def edit(self, annotation_id: str, body: str) -> Annotation:
        annotation = self._annotations.get(annotation_id)
        if annotation is None:
            raise KeyError(annotation_id)
        _check_body(body)
        annotation.body = body.strip()
        return annotation

    def delete(self, annotation_id: str) -> bool:
        removed = self._annotations.pop(annotation_id, None)
        if removed is not None:
            logger.info(f"Deleted annotation {annotation_id}")
        return removed is not None

    def get(self, annotation_id: str) -> Optional[Annotation]:
        return self._annotations.get(annotation_id)

    def all(self) -> List[Annotation]:
        return list(self._annotations.values())

    def __len__(self) -> int:
        return len(self._annotations)

    def resolve(self, annotation: Annotation, buffer: TextBuffer) -> Optional[Tuple[int, int]]:
        return resolve_anchor(annotation, buffer)

    def require(self, annotation: Annotation, buffer: TextBuffer) -> Tuple[int, int]:
        """Like resolve, but an orphaned anchor is an error"""
        location = resolve_anchor(annotation, buffer)
        if location is None:
            raise OrphanedAnnotationError(annotation.id)
        return location

    def resolve_all(self, buffer: TextBuffer) -> List[ResolvedAnnotation]:
        resolved = []
        for annotation in self._annotations.values():
            location = resolve_anchor(annotation, buffer)
            if location is None:
                logger.info(f"Annotation {annotation.id} is orphaned at version {buffer.version}")
                resolved.append(ResolvedAnnotation(annotation, AnchorStatus.ORPHANED, buffer.version))
            else:
                resolved.append(ResolvedAnnotation(annotation, AnchorStatus.ANCHORED, buffer.version,
                                                   start=location[0], end=location[1]))
        return resolved
