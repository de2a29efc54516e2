"""
Error taxonomy for provenance matching and annotation overlay
None of these are fatal to the host process
"""


class ProvenanceError(Exception):
    """Base class for all paste provenance errors"""
    pass


class MalformedInputError(ProvenanceError, ValueError):
    """Empty or whitespace-only paste/annotation text, or offsets outside the buffer"""
    pass


class StaleSnapshotError(ProvenanceError):
    """Spans were computed against a different buffer version than the one supplied"""

    def __init__(self, expected_version: int, found_version: int):
        self.expected_version = expected_version
        self.found_version = found_version
        super().__init__(
            f"Span computed for version {found_version}, buffer is at version {expected_version}"
        )


class OrphanedAnnotationError(ProvenanceError, LookupError):
    """Anchor text of an annotation can no longer be found in the document"""

    def __init__(self, annotation_id: str):
        self.annotation_id = annotation_id
        super().__init__(f"Annotation {annotation_id} is orphaned: anchor text not found")
