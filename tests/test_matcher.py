#!/usr/bin/env python3
"""
Unit tests for ProvenanceMatcher.
"""

import unittest

from paste_provenance import MatchMethod, MatchPolicy, PasteLog, ProvenanceMatcher, TextBuffer


def run_match(document, pastes, matcher=None):
    """pastes: list of (text, insertion_offset)"""
    log = PasteLog()
    for text, offset in pastes:
        log.append(text, offset, captured_at_version=0)
    matcher = matcher or ProvenanceMatcher()
    return matcher.match(TextBuffer(document, 1), log), log


class TestExactSubstring(unittest.TestCase):

    def test_verbatim_paste_into_empty_document(self):
        text = "The industrial revolution transformed how goods were produced across Europe."
        matches, log = run_match(text, [(text, 0)])

        self.assertEqual(len(matches), 1)
        match = matches[0]
        self.assertEqual(match.confidence, 1.0)
        self.assertEqual(match.method, MatchMethod.EXACT_SUBSTRING)
        self.assertEqual(match.matched_range, (0, len(text)))
        self.assertEqual(match.paste_event_id, log.events[0].id)
        self.assertEqual(match.buffer_version, 1)

    def test_whitespace_differences_are_ignored(self):
        document = "Intro line here. The quick brown fox jumps over the lazy dog."
        matches, _ = run_match(document, [("The  quick\nbrown fox jumps over the lazy dog.", 0)])

        self.assertEqual(len(matches), 1)
        self.assertEqual(matches[0].matched_range, (document.index("The quick"), len(document)))

    def test_nearest_occurrence_to_insertion_offset_wins(self):
        sentence = "Water boils at one hundred degrees at sea level."
        document = sentence + " " + sentence
        matches, _ = run_match(document, [(sentence, len(sentence) + 1)])

        self.assertEqual(matches[0].start, len(sentence) + 1)


class TestPhraseMatch(unittest.TestCase):

    def test_longest_surviving_window(self):
        pasted = "Photosynthesis converts light energy into chemical energy stored in glucose molecules."
        document = "Plants use sunlight. Basically light energy into chemical energy is what happens for plants."
        matches, _ = run_match(document, [(pasted, 0)])

        self.assertEqual(len(matches), 1)
        match = matches[0]
        phrase = "light energy into chemical energy"
        self.assertEqual(match.method, MatchMethod.PHRASE_MATCH)
        self.assertEqual(match.matched_range, (document.index(phrase), document.index(phrase) + len(phrase)))
        self.assertAlmostEqual(match.confidence, 5 / 11)

    def test_confidence_is_capped(self):
        pasted = "Rivers carry sediment downstream, and deltas form where they slow."
        document = "Rivers carry sediment downstream and deltas form where they slow!"
        matches, _ = run_match(document, [(pasted, 0)])

        self.assertEqual(matches[0].method, MatchMethod.PHRASE_MATCH)
        self.assertEqual(matches[0].confidence, 0.95)


class TestWordOverlap(unittest.TestCase):
    """Spell-check fixes must not read as pasted text unless nearly every word is verbatim."""

    def test_single_corrected_word_among_eight_is_flagged(self):
        pasted = "Our team will recieve the final report tomorrow."
        document = "Our team will receive the final report tomorrow."
        matches, _ = run_match(document, [(pasted, 0)])

        self.assertEqual(len(matches), 1)
        match = matches[0]
        self.assertEqual(match.method, MatchMethod.WORD_OVERLAP)
        self.assertAlmostEqual(match.confidence, 7.3 / 8)
        self.assertGreaterEqual(match.confidence, 0.85)
        self.assertEqual(match.matched_range, (0, len(document)))

    def test_two_corrected_words_fall_below_score_threshold(self):
        pasted = "Our team will recieve the finel report tomorrow."
        document = "Our team will receive the final report tomorrow."
        matches, _ = run_match(document, [(pasted, 0)])

        self.assertEqual(matches, [])

    def test_three_corrected_words_are_not_flagged(self):
        pasted = "Our freind will recieve the finel report tomorrow."
        document = "Our friend will receive the final report tomorrow."
        matches, _ = run_match(document, [(pasted, 0)])

        self.assertEqual(matches, [])

    def test_score_components(self):
        matcher = ProvenanceMatcher()
        pasted = "our freind will recieve the finel report tomorrow".split()
        candidate = "our friend will receive the final report tomorrow".split()
        score, exact = matcher.score_sentence_pair(pasted, candidate)
        self.assertEqual(exact, 5)
        self.assertAlmostEqual(score, 5.9 / 8)

    def test_short_pasted_sentence_is_ignored(self):
        matches, _ = run_match("I receive the package today.", [("I reciev the package today.", 0)])
        self.assertEqual(matches, [])

    def test_longer_sentence_with_two_fixes(self):
        pasted = "Students should always check thier sources before writing the finel essay draft."
        document = "Students should always check their sources before writing the final essay draft."
        matches, _ = run_match(document, [(pasted, 0)])

        self.assertEqual(len(matches), 1)
        self.assertAlmostEqual(matches[0].confidence, 10.6 / 12)

    def test_code_like_sentence_is_skipped(self):
        pasted = "Students should always check thier sources before writing the finel essay draft."
        document = "Students should always check their sources before writing the final essay draft {draft}."
        matches, _ = run_match(document, [(pasted, 0)])

        self.assertEqual(matches, [])

    def test_citation_like_sentence_is_skipped(self):
        pasted = "Students should always check thier sources before writing the finel essay draft."
        document = "Students should always check their sources before writing the final essay draft (2019)."
        matches, _ = run_match(document, [(pasted, 0)])

        self.assertEqual(matches, [])

    def test_text_before_the_paste_cannot_come_from_it(self):
        pasted = "Students should always check thier sources before writing the finel essay draft."
        document = "Students should always check their sources before writing the final essay draft."
        matches, _ = run_match(document, [(pasted, len(document) + 1)])

        self.assertEqual(matches, [])

    def test_stricter_policy(self):
        pasted = "Our team will recieve the final report tomorrow."
        document = "Our team will receive the final report tomorrow."
        matcher = ProvenanceMatcher(MatchPolicy(overlap_score_threshold=0.95))
        matches, _ = run_match(document, [(pasted, 0)], matcher=matcher)

        self.assertEqual(matches, [])


class TestMatchCycle(unittest.TestCase):

    def test_blank_paste_is_skipped(self):
        text = "Glaciers carve deep valleys over thousands of years."
        matches, log = run_match(text, [("   ", 0), (text, 0)])

        self.assertEqual(len(matches), 1)
        self.assertEqual(matches[0].paste_event_id, log.events[1].id)

    def test_empty_document_yields_nothing(self):
        matches, _ = run_match("", [("Anything at all pasted here.", 0)])
        self.assertEqual(matches, [])

    def test_duplicate_pastes_do_not_overlap(self):
        text = "Alpha sentence text is here for testing purposes."
        matches, log = run_match(text, [(text, 0), (text, 0)])

        self.assertEqual(len(matches), 1)
        self.assertEqual(matches[0].paste_event_id, log.events[0].id)

    def test_overlapping_range_is_shrunk(self):
        first = "Volcanoes release gas and ash into the atmosphere."
        second = "Some eruptions cool the planet for several years."
        document = first + " " + second
        matches, log = run_match(document, [(first, 0), (document, 0)])

        self.assertEqual(len(matches), 2)
        self.assertEqual(matches[0].paste_event_id, log.events[0].id)
        self.assertEqual(matches[0].matched_range, (0, len(first)))
        self.assertEqual(matches[1].paste_event_id, log.events[1].id)
        self.assertEqual(matches[1].matched_range, (len(first) + 1, len(document)))
        self.assertLessEqual(matches[0].end, matches[1].start)

    def test_short_pastes_are_skipped(self):
        document = "Yesterday the lazy dogs sleeps. Then more of my own text."

        matches, _ = run_match(document, [("lazy dogs sleeps.", 10)])
        self.assertEqual(matches, [])

        matches, _ = run_match(document, [("the lazy dogs sleeps.", 10)])
        self.assertEqual(len(matches), 1)
        self.assertEqual(matches[0].matched_range, (10, 31))

    def test_short_common_phrase_is_not_traced_to_typed_text(self):
        typed = "In the end, I decided it myself. "
        matches, _ = run_match(typed + "in the", [("in the", len(typed)), ("In the", len(typed))])
        self.assertEqual(matches, [])

    def test_min_paste_chars_is_configurable(self):
        document = "Yesterday the lazy dogs sleeps. Then more of my own text."
        matcher = ProvenanceMatcher(MatchPolicy(min_paste_chars=10))
        matches, _ = run_match(document, [("lazy dogs sleeps.", 10)], matcher=matcher)

        self.assertEqual(len(matches), 1)
        self.assertEqual(matches[0].matched_range, (14, 31))

    def test_exact_occurrence_before_the_paste_is_ignored(self):
        sentence = "Water boils at one hundred degrees at sea level."
        document = sentence + " I checked this at home with a thermometer."
        matches, _ = run_match(document, [(sentence, len(sentence) + 1)])

        self.assertEqual(matches, [])

    def test_exact_match_prefers_occurrence_after_the_paste(self):
        sentence = "Water boils at one hundred degrees at sea level."
        document = sentence + " " + sentence
        matches, _ = run_match(document, [(sentence, len(sentence))])

        self.assertEqual(len(matches), 1)
        self.assertEqual(matches[0].start, len(sentence) + 1)

    def test_phrase_occurrence_before_the_paste_is_ignored(self):
        pasted = "Photosynthesis converts light energy into chemical energy stored in glucose molecules."
        phrase = "light energy into chemical energy"
        document = ("Basically " + phrase + " is what happens for most green plants in spring. "
                    "Then " + phrase + " powers growth.")
        first_end = document.index(phrase) + len(phrase)
        matches, _ = run_match(document, [(pasted, first_end)])

        self.assertEqual(len(matches), 1)
        self.assertEqual(matches[0].method, MatchMethod.PHRASE_MATCH)
        self.assertEqual(matches[0].start, document.rindex(phrase))

    def test_matching_is_idempotent(self):
        document = ("Our team will receive the final report tomorrow. "
                    "Plants use sunlight. Basically light energy into chemical energy is what happens.")
        log = PasteLog()
        log.append("Our team will recieve the final report tomorrow.", 0, 0)
        log.append("Photosynthesis converts light energy into chemical energy stored in glucose.", 0, 0)
        buffer = TextBuffer(document, 3)
        matcher = ProvenanceMatcher()

        self.assertEqual(matcher.match(buffer, log), matcher.match(buffer, log))


if __name__ == "__main__":
    unittest.main()
