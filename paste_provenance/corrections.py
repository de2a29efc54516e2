"""
Known spelling corrections
Shared by the word-overlap matcher (to discount spell-check fixes) and by the
spell-suggestion highlight source.
"""

import logging
from typing import Dict, List, Optional

from .config import DEFAULT_POLICY, MatchPolicy
from .models import HighlightSpan, SpanSourceKind, TextBuffer
from .text_utils import tokenize_words

logger = logging.getLogger(__name__)

KNOWN_CORRECTIONS: Dict[str, str] = {
    'teh': 'the',
    'adn': 'and',
    'hte': 'the',
    'taht': 'that',
    'htis': 'this',
    'thier': 'their',
    'recieve': 'receive',
    'seperate': 'separate',
    'definately': 'definitely',
    'occured': 'occurred',
    'necesary': 'necessary',
    'accomodate': 'accommodate',
    'beleive': 'believe',
    'enviroment': 'environment',
    'developement': 'development',
    'independant': 'independent',
    'existance': 'existence',
    'buisness': 'business',
    'begining': 'beginning',
    'wierd': 'weird',
    'freind': 'friend',
    'goverment': 'government',
    'calender': 'calendar',
    'adress': 'address',
    'comming': 'coming',
    'writting': 'writing',
    'runing': 'running',
    'stoped': 'stopped',
    'planed': 'planned',
    'occassion': 'occasion',
    'profesional': 'professional',
    'recomend': 'recommend',
    'aparent': 'apparent',
    'beginer': 'beginner',
    'sucessful': 'successful',
    'posible': 'possible',
    'diferent': 'different',
    'intresting': 'interesting',
    'anual': 'annual',
    'suport': 'support',
    'comunity': 'community',
    'excelent': 'excellent',
    'knowlege': 'knowledge',
    'langauge': 'language',
    'maintainance': 'maintenance',
    'ocasionally': 'occasionally',
    'parliment': 'parliament',
    'priviledge': 'privilege',
    'responsability': 'responsibility',
    'temperatue': 'temperature',
    'unfortunatly': 'unfortunately',
    'embarassing': 'embarrassing',
    'guaruntee': 'guarantee',
    'harrass': 'harass',
    'millenium': 'millennium',
    'perseverence': 'perseverance',
    'questionaire': 'questionnaire',
    'restaraunt': 'restaurant',
    'schedual': 'schedule',
    'tommorrow': 'tomorrow',
    'untill': 'until',
    'vaccuum': 'vacuum',
    'wellcome': 'welcome',
    'whther': 'whether',
    'yeild': 'yield',
    'fealing': 'feeling',
    'sandwitches': 'sandwiches',
    'promissed': 'promised',
    'probbably': 'probably',
    'perfact': 'perfect',
    'reminde': 'remind',
    'alot': 'a lot',
    'everytime': 'every time',
    'incase': 'in case',
    'infact': 'in fact',
    'nevermind': 'never mind',
}


def suggest(word: str) -> Optional[str]:
    return KNOWN_CORRECTIONS.get(word.lower())


def is_correction_pair(first: str, second: str, policy: MatchPolicy = DEFAULT_POLICY) -> bool:
    """
    True if two different words look like a misspelling and its fix:
    same leading characters and nearly the same length, or a known pair.
    Both words are expected lowercased.
    """
    if first == second:
        return False

    if KNOWN_CORRECTIONS.get(first) == second or KNOWN_CORRECTIONS.get(second) == first:
        return True

    prefix = policy.correction_prefix_length
    if len(first) < prefix or len(second) < prefix:
        return False

    return (first[:prefix] == second[:prefix]
            and abs(len(first) - len(second)) <= policy.correction_max_length_delta)


class SpellChecker:
    """Produces spell-suggestion highlight spans for whole-word dictionary hits"""

    def __init__(self, corrections: Optional[Dict[str, str]] = None):
        self.corrections = corrections if corrections is not None else KNOWN_CORRECTIONS

    def check(self, buffer: TextBuffer) -> List[HighlightSpan]:
        spans = []
        for token in tokenize_words(buffer.text):
            suggestion = self.corrections.get(token.text)
            if suggestion is None:
                continue
            spans.append(HighlightSpan(
                start=token.start,
                end=token.end,
                kind=SpanSourceKind.SPELLING,
                buffer_version=buffer.version,
                source_id=f"spelling:{token.start}",
                label=f"Suggestion: {suggestion}",
            ))

        logger.debug(f"Spell check found {len(spans)} suggestions at version {buffer.version}")
        return spans
