"""
Document-level reuse verdict
Individual spans are matched strictly; this looks at the whole document so that
text assembled from many weaker fragments still raises a warning.
"""

import logging
from typing import List, Optional, Sequence

from .config import DEFAULT_POLICY, MatchPolicy
from .errors import StaleSnapshotError
from .models import DocumentVerdict, ProvenanceMatch, TextBuffer
from .text_utils import split_sentences, tokenize_words

logger = logging.getLogger(__name__)


class AggregateAnalyzer:

    def __init__(self, policy: Optional[MatchPolicy] = None):
        self.policy = policy or DEFAULT_POLICY

    def analyze(self, matches: Sequence[ProvenanceMatch], buffer: TextBuffer) -> DocumentVerdict:
        policy = self.policy

        for match in matches:
            if match.buffer_version != buffer.version:
                raise StaleSnapshotError(buffer.version, match.buffer_version)

        included = [m for m in matches if m.confidence >= policy.aggregate_inclusion_threshold]

        sentences = split_sentences(buffer.text, policy.sentence_min_chars)
        matched_sentences = sum(
            1 for sentence in sentences
            if any(m.overlaps(sentence.start, sentence.end) for m in included)
        )

        words = tokenize_words(buffer.text)
        matched_words = 0.0
        for word in words:
            weights = [m.confidence for m in included if m.overlaps(word.start, word.end)]
            if weights:
                matched_words += max(weights)

        sentence_ratio = matched_sentences / len(sentences) if sentences else 0.0
        word_ratio = matched_words / len(words) if words else 0.0

        reasons = self._flag_reasons(len(sentences), sentence_ratio, len(words), word_ratio, matched_words)
        verdict = DocumentVerdict(
            sentence_match_ratio=sentence_ratio,
            word_match_ratio=word_ratio,
            flagged=bool(reasons),
            sentence_count=len(sentences),
            matched_sentence_count=matched_sentences,
            word_count=len(words),
            matched_word_count=matched_words,
            reasons=tuple(reasons),
            buffer_version=buffer.version,
        )

        logger.info(
            f"Verdict at version {buffer.version}: flagged={verdict.flagged} "
            f"sentences={matched_sentences}/{len(sentences)} words={matched_words:.1f}/{len(words)}"
        )
        return verdict

    def _flag_reasons(self, sentence_count: int, sentence_ratio: float, word_count: int,
                      word_ratio: float, matched_words: float) -> List[str]:
        policy = self.policy
        reasons = []

        if sentence_count >= policy.aggregate_min_sentences and sentence_ratio >= policy.aggregate_sentence_ratio:
            reasons.append('sentence_ratio')
        if word_count >= policy.aggregate_min_words and word_ratio >= policy.aggregate_word_ratio:
            reasons.append('word_ratio')
        if matched_words >= policy.aggregate_matched_words and word_ratio >= policy.aggregate_matched_words_ratio:
            reasons.append('matched_word_volume')

        return reasons
