#!/usr/bin/env python3
"""
Unit tests for AnnotationStore anchoring.
"""

import unittest

from paste_provenance import (
    AnchorStatus,
    AnnotationStore,
    MalformedInputError,
    OrphanedAnnotationError,
    TextBuffer,
)
from paste_provenance.buffer import edit_buffer


class TestAnnotationResolution(unittest.TestCase):

    def setUp(self):
        self.store = AnnotationStore()
        self.buffer = TextBuffer("hello world, this is a test.", 0)

    def test_same_version_uses_stored_offsets(self):
        annotation = self.store.create(self.buffer, 0, 11, "Nice opening.")
        self.assertEqual(annotation.anchor_text, "hello world")
        self.assertEqual(self.store.resolve(annotation, self.buffer), (0, 11))

    def test_prepending_text_relocates_anchor(self):
        annotation = self.store.create(self.buffer, 0, 11, "Nice opening.")
        edited = edit_buffer(self.buffer, "Hey! " + self.buffer.text)

        self.assertEqual(edited.version, 1)
        self.assertEqual(self.store.resolve(annotation, edited), (5, 16))

    def test_deleted_anchor_is_orphaned(self):
        annotation = self.store.create(self.buffer, 0, 11, "Nice opening.")
        edited = edit_buffer(self.buffer, "this is a test.")

        self.assertIsNone(self.store.resolve(annotation, edited))
        resolved = self.store.resolve_all(edited)
        self.assertEqual(resolved[0].status, AnchorStatus.ORPHANED)
        self.assertTrue(resolved[0].is_orphaned)
        with self.assertRaises(OrphanedAnnotationError):
            self.store.require(annotation, edited)

    def test_nearest_occurrence_is_chosen(self):
        buffer = TextBuffer("the cat sat. the cat ran. the cat hid.", 0)
        annotation = self.store.create(buffer, 13, 20, "Which cat?")
        edited = edit_buffer(buffer, "Then, " + buffer.text)

        self.assertEqual(self.store.resolve(annotation, edited), (19, 26))

    def test_explicit_anchor_text_is_relocated(self):
        annotation = self.store.create(self.buffer, 0, 5, "Greeting", anchor_text="world")
        self.assertEqual(self.store.resolve(annotation, self.buffer), (6, 11))


class TestAnnotationLifecycle(unittest.TestCase):

    def setUp(self):
        self.store = AnnotationStore()
        self.buffer = TextBuffer("hello world, this is a test.", 0)

    def test_empty_body_is_malformed(self):
        with self.assertRaises(MalformedInputError):
            self.store.create(self.buffer, 0, 5, "   ")

    def test_non_string_fields_are_malformed(self):
        with self.assertRaises(MalformedInputError):
            self.store.create(self.buffer, 0, 5, 123)
        with self.assertRaises(MalformedInputError):
            self.store.create(self.buffer, 0, 5, "Greeting", anchor_text=["hello"])

        annotation = self.store.create(self.buffer, 0, 5, "Greeting")
        with self.assertRaises(MalformedInputError):
            self.store.edit(annotation.id, None)
        self.assertEqual(self.store.get(annotation.id).body, "Greeting")

    def test_out_of_range_is_malformed(self):
        with self.assertRaises(MalformedInputError):
            self.store.create(self.buffer, 5, 500, "Too far")
        with self.assertRaises(MalformedInputError):
            self.store.create(self.buffer, 5, 5, "Empty range")

    def test_whitespace_anchor_is_malformed(self):
        with self.assertRaises(MalformedInputError):
            self.store.create(self.buffer, 5, 6, "Just a space")

    def test_edit_and_delete(self):
        annotation = self.store.create(self.buffer, 0, 5, "First thought", author="ms.rivera")
        self.assertEqual(annotation.author, "ms.rivera")

        self.store.edit(annotation.id, "Second thought")
        self.assertEqual(self.store.get(annotation.id).body, "Second thought")

        self.assertTrue(self.store.delete(annotation.id))
        self.assertFalse(self.store.delete(annotation.id))
        self.assertEqual(len(self.store), 0)
        with self.assertRaises(KeyError):
            self.store.edit(annotation.id, "Gone")


if __name__ == "__main__":
    unittest.main()
