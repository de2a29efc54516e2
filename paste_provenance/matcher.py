"""
Provenance matching between the paste log and the current document text
Each paste event is tried against three strategies in order of preference:
exact substring, phrase window, then sentence-level word overlap.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .config import DEFAULT_POLICY, MatchPolicy
from .corrections import is_correction_pair
from .models import MatchMethod, PasteEvent, ProvenanceMatch, TextBuffer
from .text_utils import (
    find_all,
    looks_like_citation,
    looks_like_code,
    nearest,
    normalize_whitespace,
    normalize_with_offsets,
    split_sentences,
    tokenize_words,
)

logger = logging.getLogger(__name__)


@dataclass
class MatchCandidate:
    """A match found for one paste event, before cross-event overlap resolution"""
    event_order: int
    paste_event_id: str
    start: int
    end: int
    confidence: float
    method: MatchMethod


class DocumentIndex:
    """Per-cycle lookup structures over a single buffer snapshot"""

    def __init__(self, buffer: TextBuffer, policy: MatchPolicy):
        self.buffer = buffer
        self.text = buffer.text
        self.normalized, self.offsets = normalize_with_offsets(self.text)
        self.words = tokenize_words(self.text)
        self.sentences = split_sentences(self.text, policy.sentence_min_chars)
        self._ngrams: Dict[int, Dict[Tuple[str, ...], List[int]]] = {}

    def ngram_positions(self, size: int) -> Dict[Tuple[str, ...], List[int]]:
        """Word index of every occurrence of every `size`-word sequence"""
        if size not in self._ngrams:
            word_texts = [word.text for word in self.words]
            grams: Dict[Tuple[str, ...], List[int]] = {}
            for i in range(len(word_texts) - size + 1):
                grams.setdefault(tuple(word_texts[i:i + size]), []).append(i)
            self._ngrams[size] = grams
        return self._ngrams[size]


class ProvenanceMatcher:
    """
    Reconciles a paste log against a buffer snapshot.
    Pure function of its inputs: the same buffer and log always yield the same matches.
    """

    def __init__(self, policy: Optional[MatchPolicy] = None):
        self.policy = policy or DEFAULT_POLICY

    def match(self, buffer: TextBuffer, paste_log: Iterable[PasteEvent]) -> List[ProvenanceMatch]:
        if not buffer.text.strip():
            return []

        index = DocumentIndex(buffer, self.policy)

        strategies = [
            (MatchMethod.EXACT_SUBSTRING, self._find_exact_match),
            (MatchMethod.PHRASE_MATCH, self._find_phrase_match),
            (MatchMethod.WORD_OVERLAP, self._find_word_overlap_matches),
        ]

        candidates: List[MatchCandidate] = []
        for order, event in enumerate(paste_log):
            if event.is_blank:
                logger.warning(f"Skipping malformed paste event {event.id}: empty text")
                continue
            if len(event.pasted_text.strip()) < self.policy.min_paste_chars:
                logger.debug(f"Skipping paste event {event.id}: shorter than {self.policy.min_paste_chars} chars")
                continue

            try:
                for method, strategy in strategies:
                    found = strategy(order, event, index)
                    if found:
                        logger.debug(f"{event.id}: strategy '{method.value}' produced {len(found)} candidate(s)")
                        candidates.extend(found)
                        break
            except Exception:
                logger.exception(f"Matching failed for paste event {event.id}; treating as unmatched")

        matches = self._resolve_overlaps(candidates, index.text, buffer.version)
        logger.info(f"Matched {len(matches)} span(s) from {len(candidates)} candidate(s) at version {buffer.version}")
        return matches

    def _find_exact_match(self, order: int, event: PasteEvent, index: DocumentIndex) -> List[MatchCandidate]:
        """Whitespace-normalized verbatim containment"""
        pasted = normalize_whitespace(event.pasted_text)
        positions = find_all(index.normalized, pasted)
        if not positions:
            return []

        # Occurrences ending before the insertion point were typed before the paste
        ranges = {}
        for pos in positions:
            end = index.offsets[pos + len(pasted) - 1] + 1
            if end > event.insertion_offset:
                ranges[index.offsets[pos]] = end
        if not ranges:
            return []

        best_start = nearest(list(ranges), event.insertion_offset)
        return [MatchCandidate(order, event.id, best_start, ranges[best_start], 1.0, MatchMethod.EXACT_SUBSTRING)]

    def _find_phrase_match(self, order: int, event: PasteEvent, index: DocumentIndex) -> List[MatchCandidate]:
        """Longest run of pasted words that still appears verbatim (case-insensitive)"""
        pasted_words = [token.text for token in tokenize_words(event.pasted_text)]
        total = len(pasted_words)
        if total < self.policy.phrase_min_words:
            return []

        largest = min(self.policy.phrase_max_words, total)
        for size in range(largest, self.policy.phrase_min_words - 1, -1):
            grams = index.ngram_positions(size)
            for i in range(total - size + 1):
                positions = grams.get(tuple(pasted_words[i:i + size]))
                if not positions:
                    continue

                ends = {}
                for j in positions:
                    last_word = index.words[j + size - 1]
                    if last_word.end > event.insertion_offset:
                        ends[index.words[j].start] = last_word.end
                if not ends:
                    continue

                start = nearest(list(ends), event.insertion_offset)
                confidence = min(size / total, self.policy.phrase_confidence_cap)

                return [MatchCandidate(order, event.id, start, ends[start], confidence, MatchMethod.PHRASE_MATCH)]

        return []

    def _find_word_overlap_matches(self, order: int, event: PasteEvent,
                                   index: DocumentIndex) -> List[MatchCandidate]:
        """
        Sentence-by-sentence word overlap that tolerates spelling fixes.
        A sentence that differs from the paste only by spell-check corrections
        must still clear the exact-word threshold to match.
        """
        policy = self.policy
        pasted_sentences = [
            [token.text for token in sentence.words]
            for sentence in split_sentences(event.pasted_text, policy.sentence_min_chars)
        ]
        pasted_sentences = [words for words in pasted_sentences if len(words) >= policy.overlap_min_pasted_words]
        if not pasted_sentences:
            return []

        used = set()
        found = []
        for sentence in index.sentences:
            if sentence.end <= event.insertion_offset:
                continue
            if looks_like_code(sentence.text) or looks_like_citation(sentence.text):
                continue

            candidate_words = [token.text for token in sentence.words]
            if len(candidate_words) < policy.overlap_min_candidate_words:
                continue

            best: Optional[Tuple[int, float]] = None
            for k, pasted_words in enumerate(pasted_sentences):
                if k in used:
                    continue
                score, exact = self.score_sentence_pair(pasted_words, candidate_words)
                if not self._passes_overlap_thresholds(score, exact, len(pasted_words)):
                    continue
                if best is None or score > best[1]:
                    best = (k, score)

            if best is not None:
                used.add(best[0])
                confidence = min(best[1], policy.overlap_confidence_cap)
                found.append(MatchCandidate(order, event.id, sentence.start, sentence.end,
                                            confidence, MatchMethod.WORD_OVERLAP))

        return found

    def score_sentence_pair(self, pasted_words: Sequence[str], candidate_words: Sequence[str]) -> Tuple[float, int]:
        """Returns (score, exact match count) for a pasted sentence against a candidate sentence"""
        if not pasted_words:
            return 0.0, 0

        candidate_set = set(candidate_words)
        exact = 0
        corrections = 0
        for word in pasted_words:
            if word in candidate_set:
                exact += 1
            elif any(is_correction_pair(word, other, self.policy) for other in candidate_set):
                corrections += 1

        score = (exact + self.policy.correction_weight * corrections) / len(pasted_words)
        return score, exact

    def _passes_overlap_thresholds(self, score: float, exact: int, pasted_word_count: int) -> bool:
        policy = self.policy
        required_exact = max(policy.overlap_min_exact_words, policy.overlap_min_exact_ratio * pasted_word_count)
        return score >= policy.overlap_score_threshold and exact >= required_exact

    def _resolve_overlaps(self, candidates: List[MatchCandidate], text: str,
                          version: int) -> List[ProvenanceMatch]:
        """Higher confidence keeps its range; overlapping lower-confidence ranges shrink or drop"""
        ordered = sorted(candidates, key=lambda c: (-c.confidence, c.event_order, c.start))
        accepted: List[Tuple[int, int]] = []
        matches = []

        for candidate in ordered:
            fragment = _largest_free_fragment(candidate.start, candidate.end, accepted)
            if fragment is None:
                logger.debug(f"Dropped overlapping match for {candidate.paste_event_id}")
                continue

            start, end = _trim_whitespace(text, *fragment)
            if end - start < self.policy.min_paste_chars:
                logger.debug(f"Dropped sliver left for {candidate.paste_event_id} after overlap removal")
                continue
            if (start, end) != (candidate.start, candidate.end):
                logger.debug(f"Shrunk match for {candidate.paste_event_id} to ({start}, {end})")

            accepted.append((start, end))
            matches.append(ProvenanceMatch(
                paste_event_id=candidate.paste_event_id,
                start=start,
                end=end,
                confidence=candidate.confidence,
                method=candidate.method,
                buffer_version=version,
            ))

        matches.sort(key=lambda m: (m.start, m.end))
        return matches


def _largest_free_fragment(start: int, end: int,
                           taken: Sequence[Tuple[int, int]]) -> Optional[Tuple[int, int]]:
    pieces = [(start, end)]
    for taken_start, taken_end in taken:
        remaining = []
        for piece_start, piece_end in pieces:
            if taken_end <= piece_start or taken_start >= piece_end:
                remaining.append((piece_start, piece_end))
                continue
            if piece_start < taken_start:
                remaining.append((piece_start, taken_start))
            if taken_end < piece_end:
                remaining.append((taken_end, piece_end))
        pieces = remaining

    if not pieces:
        return None
    return max(pieces, key=lambda piece: (piece[1] - piece[0], -piece[0]))


def _trim_whitespace(text: str, start: int, end: int) -> Tuple[int, int]:
    while start < end and text[start].isspace():
        start += 1
    while end > start and text[end - 1].isspace():
        end -= 1
    return start, end
