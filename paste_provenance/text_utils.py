"""
Text normalization and segmentation helpers
All helpers report offsets into the original, un-normalized text
"""

import re
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from nltk.tokenize import RegexpTokenizer

# Words are runs of word characters, keeping inner apostrophes ("don't", "student's")
_WORD_TOKENIZER = RegexpTokenizer(r"\w+(?:['’]\w+)*")

_SENTENCE_PATTERN = re.compile(r'[^.!?]+(?:[.!?]+|$)')

_CODE_PATTERN = re.compile(r'[{}]|\bfunction\b|</?[a-zA-Z][^<>]*>')
_CITATION_PATTERN = re.compile(
    r'\(\s*(?:1[5-9]|20)\d{2}[a-z]?\s*\)|\bISBN\b|https?://\S+|\bwww\.\S+',
    re.IGNORECASE,
)


@dataclass(frozen=True)
class Token:
    text: str
    start: int
    end: int


@dataclass(frozen=True)
class Sentence:
    text: str
    start: int
    end: int

    @property
    def words(self) -> List[Token]:
        return tokenize_words(self.text, offset=self.start)


def normalize_with_offsets(text: str) -> Tuple[str, List[int]]:
    """
    Collapse whitespace runs to a single space and trim both ends.
    Returns the normalized text and, for every normalized character,
    its index in the original text.
    """
    chars: List[str] = []
    offsets: List[int] = []
    pending_space = -1

    for index, char in enumerate(text):
        if char.isspace():
            if chars and pending_space < 0:
                pending_space = index
            continue
        if pending_space >= 0:
            chars.append(' ')
            offsets.append(pending_space)
            pending_space = -1
        chars.append(char)
        offsets.append(index)

    return ''.join(chars), offsets


def normalize_whitespace(text: str) -> str:
    return normalize_with_offsets(text)[0]


def find_all(haystack: str, needle: str) -> List[int]:
    """All (possibly overlapping) start positions of needle in haystack"""
    positions = []
    if not needle:
        return positions
    start = 0
    while True:
        pos = haystack.find(needle, start)
        if pos == -1:
            break
        positions.append(pos)
        start = pos + 1
    return positions


def nearest(positions: Sequence[int], target: int) -> int:
    """Position closest to target; the earlier one wins a tie"""
    return min(positions, key=lambda pos: (abs(pos - target), pos))


def tokenize_words(text: str, offset: int = 0) -> List[Token]:
    """Lowercased, punctuation-stripped words with their spans"""
    return [
        Token(text[start:end].lower(), start + offset, end + offset)
        for start, end in _WORD_TOKENIZER.span_tokenize(text)
    ]


def split_sentences(text: str, min_chars: int = 10) -> List[Sentence]:
    """Split on . ! ? boundaries, dropping sentences shorter than min_chars"""
    sentences = []
    for match in _SENTENCE_PATTERN.finditer(text):
        raw = match.group()
        body = raw.strip()
        if len(body) < min_chars:
            continue
        start = match.start() + (len(raw) - len(raw.lstrip()))
        sentences.append(Sentence(body, start, start + len(body)))
    return sentences


def looks_like_code(text: str) -> bool:
    return bool(_CODE_PATTERN.search(text))


def looks_like_citation(text: str) -> bool:
    return bool(_CITATION_PATTERN.search(text))
