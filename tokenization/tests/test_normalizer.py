"""
Normalizer Tests
"""

import unicodedata
import unittest

from tokenization.config import NormForm
from tokenization.core import TextView


class TestSimpleNormalizers(unittest.TestCase):
    """Tests for prefix, suffix and replacement normalizers."""

    def setUp(self):
        from tokenization.text import normalizer
        self.n = normalizer

    def test_prepend_append(self):
        self.assertEqual(str(self.n.PrependNormalizer("▁").normalize("hi")), "▁hi")
        self.assertEqual(str(self.n.AppendNormalizer("</s>").normalize("hi")), "hi</s>")

    def test_empty_configuration_rejected(self):
        with self.assertRaises(ValueError):
            self.n.PrependNormalizer("")
        with self.assertRaises(ValueError):
            self.n.AppendNormalizer("")
        with self.assertRaises(ValueError):
            self.n.ReplaceNormalizer("", "x")

    def test_replace_is_literal(self):
        replace = self.n.ReplaceNormalizer(".", "!")
        self.assertEqual(str(replace.normalize("a.b.c")), "a!b!c")

    def test_replace_with_empty_deletes(self):
        self.assertEqual(str(self.n.ReplaceNormalizer("a", "").normalize("banana")), "bnn")

    def test_unchanged_input_returned_as_is(self):
        text = "plain"
        self.assertIs(self.n.ReplaceNormalizer("x", "y").normalize(text), text)
        self.assertIs(self.n.DefaultNormalizer().normalize(text), text)
        self.assertIs(self.n.LowercaseNormalizer().normalize(text), text)
        self.assertIs(self.n.UnicodeNormalizer().normalize(text), text)

    def test_replace_on_view(self):
        view = TextView("xx a b xx", 3, 3)
        self.assertEqual(str(self.n.ReplaceNormalizer(" ", "▁").normalize(view)), "a▁b")


class TestUnicodeNormalizer(unittest.TestCase):
    """Tests for UnicodeNormalizer."""

    def setUp(self):
        from tokenization.text import UnicodeNormalizer
        self.cls = UnicodeNormalizer

    def test_default_is_nfc(self):
        normalizer = self.cls()
        self.assertEqual(normalizer.form, NormForm.NFC)
        self.assertEqual(str(normalizer.normalize("e\u0301")), "\u00e9")

    def test_decomposition(self):
        self.assertEqual(str(self.cls(NormForm.NFD).normalize("\u00e9")), "e\u0301")
        self.assertEqual(str(self.cls("NFKC").normalize("ﬁ")), "fi")

    def test_idempotent(self):
        samples = ["\u00e9", "e\u0301", "ﬁ Å Å ½", "한국어", "plain ascii"]
        for form in NormForm:
            normalizer = self.cls(form)
            for text in samples:
                once = str(normalizer.normalize(text))
                twice = str(normalizer.normalize(once))
                self.assertEqual(once, twice)
                self.assertEqual(once, unicodedata.normalize(form.value, text))


class TestOtherNormalizers(unittest.TestCase):
    """Tests for lowercase, strip, BERT and sequence normalizers."""

    def setUp(self):
        from tokenization.text import normalizer
        self.n = normalizer

    def test_lowercase(self):
        self.assertEqual(str(self.n.LowercaseNormalizer().normalize("HeLLo")), "hello")

    def test_strip(self):
        self.assertEqual(str(self.n.StripNormalizer().normalize("  hi \n")), "hi")
        self.assertEqual(str(self.n.StripNormalizer(right=False).normalize("  hi  ")), "hi  ")
        self.assertEqual(str(self.n.StripNormalizer(left=False).normalize("  hi  ")), "  hi")

    def test_bert_clean_accents_lowercase(self):
        normalizer = self.n.BertNormalizer()
        self.assertEqual(str(normalizer.normalize("Héllo\tWörld\x00")), "hello world")

    def test_bert_cjk_padding(self):
        normalizer = self.n.BertNormalizer(lowercase=False)
        self.assertEqual(str(normalizer.normalize("ab中c")), "ab 中 c")

    def test_bert_keeps_accents_without_lowercase(self):
        normalizer = self.n.BertNormalizer(lowercase=False)
        self.assertEqual(str(normalizer.normalize("Héllo")), "Héllo")

    def test_sequence_order(self):
        sequence = self.n.SequenceNormalizer(
            self.n.ReplaceNormalizer(" ", "▁"),
            self.n.PrependNormalizer("▁"),
        )
        self.assertEqual(str(sequence.normalize("a b")), "▁a▁b")

    def test_sequence_rejects_none(self):
        with self.assertRaises(ValueError):
            self.n.SequenceNormalizer(self.n.LowercaseNormalizer(), None)


if __name__ == "__main__":
    unittest.main()
