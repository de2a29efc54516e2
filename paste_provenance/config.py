"""
Matching policy configuration
The thresholds were tuned empirically and are policy, not constants: every one of them
can be overridden from a mapping (Flask config) or from PROVENANCE_* environment variables.
"""

import logging
import os
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

ENV_PREFIX = 'PROVENANCE_'


@dataclass(frozen=True)
class MatchPolicy:
    # Paste events shorter than this (after trimming) are skipped
    min_paste_chars: int = 21

    # Phrase matching
    phrase_min_words: int = 5
    phrase_max_words: int = 15
    phrase_confidence_cap: float = 0.95

    # Sentence-level word overlap
    sentence_min_chars: int = 10
    overlap_score_threshold: float = 0.85
    overlap_min_exact_words: int = 4
    overlap_min_exact_ratio: float = 0.75
    overlap_min_candidate_words: int = 6
    overlap_min_pasted_words: int = 8
    overlap_confidence_cap: float = 0.95
    correction_weight: float = 0.3
    correction_prefix_length: int = 3
    correction_max_length_delta: int = 1

    # Document-level aggregate
    aggregate_inclusion_threshold: float = 0.30
    aggregate_sentence_ratio: float = 0.50
    aggregate_min_sentences: int = 5
    aggregate_word_ratio: float = 0.30
    aggregate_min_words: int = 50
    aggregate_matched_words: int = 80
    aggregate_matched_words_ratio: float = 0.25

    @classmethod
    def from_mapping(cls, overrides: Optional[Mapping[str, Any]] = None,
                     base: Optional["MatchPolicy"] = None) -> "MatchPolicy":
        """Build a policy from a dict of field overrides, rejecting unknown keys"""
        base = base or cls()
        if not overrides:
            return base

        known = {f.name: f for f in fields(cls)}
        unknown = [key for key in overrides if key not in known]
        if unknown:
            raise ValueError(f"Unknown match policy fields: {', '.join(sorted(unknown))}")

        coerced = {}
        for key, value in overrides.items():
            default = getattr(base, key)
            coerced[key] = type(default)(value)

        return replace(base, **coerced)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


DEFAULT_POLICY = MatchPolicy()


def load_policy_from_env(environ: Optional[Mapping[str, str]] = None,
                         base: Optional[MatchPolicy] = None) -> MatchPolicy:
    """Read PROVENANCE_<FIELD> overrides, e.g. PROVENANCE_OVERLAP_SCORE_THRESHOLD=0.9"""
    environ = os.environ if environ is None else environ

    overrides = {}
    for f in fields(MatchPolicy):
        env_key = ENV_PREFIX + f.name.upper()
        if env_key in environ:
            overrides[f.name] = environ[env_key]

    if overrides:
        logger.info(f"Match policy overrides from environment: {sorted(overrides)}")

    return MatchPolicy.from_mapping(overrides, base=base)
