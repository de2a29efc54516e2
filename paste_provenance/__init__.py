from .models import TextBuffer
from .models import PasteEvent
from .models import MatchMethod
from .models import ProvenanceMatch
from .models import Annotation
from .models import AnchorStatus
from .models import ResolvedAnnotation
from .models import SpanSourceKind
from .models import HighlightSpan
from .models import RenderSegment
from .models import DocumentVerdict
from .models import PasteSummary
from .errors import ProvenanceError, MalformedInputError, StaleSnapshotError, OrphanedAnnotationError
from .config import MatchPolicy, DEFAULT_POLICY, load_policy_from_env
from .buffer import PasteLog
from .matcher import ProvenanceMatcher
from .aggregate import AggregateAnalyzer
from .annotations import AnnotationStore
from .compositor import SpanCompositor
from .renderer import SafeRenderer
from .corrections import SpellChecker
from .session import DocumentSession

__all__ = ["TextBuffer", "PasteEvent", "MatchMethod", "ProvenanceMatch", "Annotation", "AnchorStatus",
           "ResolvedAnnotation", "SpanSourceKind", "HighlightSpan", "RenderSegment", "DocumentVerdict",
           "PasteSummary", "ProvenanceError", "MalformedInputError", "StaleSnapshotError",
           "OrphanedAnnotationError", "MatchPolicy", "DEFAULT_POLICY", "load_policy_from_env", "PasteLog",
           "ProvenanceMatcher", "AggregateAnalyzer", "AnnotationStore", "SpanCompositor", "SafeRenderer",
           "SpellChecker", "DocumentSession"]
