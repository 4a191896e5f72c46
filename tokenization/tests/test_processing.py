"""
Post-Processing, Padding and Truncation Tests
"""

import math
import unittest

from tokenization.core import PaddedToken, TokenDefinition
from tokenization.processing import (
    BatchLongestSizeProvider,
    BertPostProcessor,
    ByteLevelPostProcessor,
    DefaultPadding,
    DefaultPostProcessor,
    DefaultTruncator,
    FixedPaddingSizeProvider,
    LeftDirectionRangeGenerator,
    LeftPadding,
    LongestFirstTruncator,
    RightDirectionRangeGenerator,
    RightPadding,
    RobertaPostProcessor,
    TemplatePostProcessor,
)

CLS = TokenDefinition(0, "<s>", special=True)
SEP = TokenDefinition(2, "</s>", special=True)


def process(post_processor, a, b=None, add_special_tokens=True):
    output = []
    post_processor.post_process(a, b, add_special_tokens, output)
    return output


class TestPostProcessors(unittest.TestCase):
    """Tests for post-processors."""

    def test_default_and_byte_level_concatenate(self):
        for post_processor in (DefaultPostProcessor(), ByteLevelPostProcessor(trim_offsets=True)):
            self.assertEqual(process(post_processor, [5, 6], [7]), [5, 6, 7])
            self.assertEqual(process(post_processor, [5, 6]), [5, 6])
            self.assertEqual(post_processor.num_added_tokens(True), 0)

    def test_roberta_layout(self):
        roberta = RobertaPostProcessor(SEP, CLS)
        self.assertEqual(process(roberta, [5, 6]), [0, 5, 6, 2])
        self.assertEqual(process(roberta, [5], [7]), [0, 5, 2, 0, 7, 2])
        self.assertEqual(process(roberta, [5], [7], add_special_tokens=False), [5, 7])

    def test_roberta_added_token_counts(self):
        """num_added_tokens matches what post_process inserts."""
        roberta = RobertaPostProcessor(SEP, CLS)
        a, b = [10, 11, 12], [20, 21]
        self.assertEqual(roberta.num_added_tokens(False), 2)
        self.assertEqual(roberta.num_added_tokens(True), 4)
        self.assertEqual(len(process(roberta, a)) - len(a), roberta.num_added_tokens(False))
        self.assertEqual(
            len(process(roberta, a, b)) - len(a) - len(b), roberta.num_added_tokens(True)
        )

    def test_single_mode_adds_no_second_sequence_tokens(self):
        roberta = RobertaPostProcessor(SEP, CLS)
        self.assertEqual(process(roberta, []), [0, 2])
        self.assertEqual(process(roberta, [], []), [0, 2, 0, 2])

    def test_bert_layout(self):
        bert = BertPostProcessor(TokenDefinition(102, "[SEP]"), TokenDefinition(101, "[CLS]"))
        self.assertEqual(process(bert, [5], [7]), [101, 5, 102, 7, 102])
        self.assertEqual(bert.num_added_tokens(True), 3)
        self.assertEqual(bert.num_added_tokens(False), 2)

    def test_tokens_a_required(self):
        with self.assertRaises(ValueError):
            process(DefaultPostProcessor(), None)

    def test_template(self):
        template = TemplatePostProcessor(
            single="[CLS] $A [SEP]",
            pair="[CLS] $A [SEP] $B:1 [SEP]:1",
            special_tokens={"[CLS]": 101, "[SEP]": 102},
        )
        self.assertEqual(process(template, [5]), [101, 5, 102])
        self.assertEqual(process(template, [5], [7]), [101, 5, 102, 7, 102])
        self.assertEqual(template.num_added_tokens(False), 2)
        self.assertEqual(template.num_added_tokens(True), 3)
        self.assertEqual(
            {t.content for t in template.special_tokens()}, {"[CLS]", "[SEP]"}
        )

    def test_template_validation(self):
        specials = {"[CLS]": 101}
        with self.assertRaises(ValueError):
            TemplatePostProcessor("[CLS] $A $A", special_tokens=specials)
        with self.assertRaises(ValueError):
            TemplatePostProcessor("[X] $A", special_tokens=specials)
        with self.assertRaises(ValueError):
            TemplatePostProcessor("$A", pair="$A [CLS]", special_tokens=specials)
        with self.assertRaises(ValueError):
            TemplatePostProcessor("$A $B", special_tokens=specials)

    def test_template_without_pair(self):
        template = TemplatePostProcessor("$A [CLS]", special_tokens={"[CLS]": 1})
        with self.assertRaises(ValueError):
            process(template, [5], [6])

    def test_windows_paired(self):
        roberta = RobertaPostProcessor(SEP, CLS)
        results = roberta.post_process_windows([[5, 6], [7]], [[8]], True)
        self.assertEqual(results, [[0, 5, 6, 2, 0, 8, 2], [0, 7, 2]])

        single = DefaultPostProcessor().post_process_windows([[5], [6]], None, True)
        self.assertEqual(single, [[5], [6]])

    def test_windows_after_second_sequence_ends(self):
        bert = BertPostProcessor(SEP, CLS)
        results = bert.post_process_windows([[5], [6], [7]], [[8]], True)
        self.assertEqual(results, [[0, 5, 2, 8, 2], [0, 6, 2], [0, 7, 2]])

    def test_windows_after_first_sequence_ends(self):
        roberta = RobertaPostProcessor(SEP, CLS)
        results = roberta.post_process_windows([[5]], [[8], [9]], True)
        self.assertEqual(results, [[0, 5, 2, 0, 8, 2], [0, 2, 0, 9, 2]])

    def test_windows_without_special_tokens(self):
        roberta = RobertaPostProcessor(SEP, CLS)
        results = roberta.post_process_windows([[5, 6], [7]], [[8]], False)
        self.assertEqual(results, [[5, 6, 8], [7]])


class TestPadding(unittest.TestCase):
    """Tests for padding strategies."""

    PAD = TokenDefinition(9, "<pad>", special=True)

    def pad(self, padding, batch):
        output = []
        padding.pad(batch, output)
        return output

    def test_right_padding(self):
        output = self.pad(RightPadding(BatchLongestSizeProvider(), self.PAD), [[1, 2, 3], [4]])
        self.assertEqual(output[0], [PaddedToken(1, 1), PaddedToken(2, 1), PaddedToken(3, 1)])
        self.assertEqual(output[1], [PaddedToken(4, 1), PaddedToken(9, 0), PaddedToken(9, 0)])

    def test_left_padding(self):
        output = self.pad(LeftPadding(BatchLongestSizeProvider(), self.PAD), [[1, 2, 3], [4]])
        self.assertEqual(output[1], [PaddedToken(9, 0), PaddedToken(9, 0), PaddedToken(4, 1)])

    def test_length_and_placement_invariants(self):
        batches = [[[1]], [[1, 2], [], [3, 4, 5, 6]], [[7] * 5, [8] * 2, [9] * 5]]
        providers = [BatchLongestSizeProvider(), FixedPaddingSizeProvider(8)]
        for batch in batches:
            for provider in providers:
                target = provider.get_padding_size([len(s) for s in batch])
                for padding_cls in (RightPadding, LeftPadding):
                    output = self.pad(padding_cls(provider, self.PAD), batch)
                    for sequence, padded in zip(batch, output):
                        self.assertEqual(len(padded), target)
                        flags = [p.attention for p in padded]
                        real = [1] * len(sequence)
                        fill = [0] * (target - len(sequence))
                        expected = real + fill if padding_cls is RightPadding else fill + real
                        self.assertEqual(flags, expected)
                        self.assertEqual([p.id for p in padded if p.attention], sequence)

    def test_fixed_size_never_truncates(self):
        padding = RightPadding(FixedPaddingSizeProvider(2), self.PAD)
        with self.assertRaises(ValueError):
            self.pad(padding, [[1, 2, 3]])

    def test_empty_batch(self):
        self.assertEqual(BatchLongestSizeProvider().get_padding_size([]), 0)
        self.assertEqual(self.pad(RightPadding(BatchLongestSizeProvider(), self.PAD), []), [])

    def test_default_padding(self):
        output = self.pad(DefaultPadding(), [[1, 2], [3]])
        self.assertEqual(output, [[PaddedToken(1, 1), PaddedToken(2, 1)], [PaddedToken(3, 1)]])

    def test_negative_fixed_size_rejected(self):
        with self.assertRaises(ValueError):
            FixedPaddingSizeProvider(-1)


class TestRangeGenerators(unittest.TestCase):
    """Tests for sliding-window range generation."""

    def spans(self, generator, length, window, stride):
        return [(r.start, r.stop) for r in generator.get_ranges(length, window, stride)]

    def test_right_direction(self):
        generator = RightDirectionRangeGenerator()
        self.assertEqual(self.spans(generator, 10, 4, 1), [(0, 4), (3, 7), (6, 10)])
        self.assertEqual(self.spans(generator, 10, 4, 0), [(0, 4), (4, 8), (8, 10)])
        self.assertEqual(self.spans(generator, 3, 4, 1), [(0, 3)])

    def test_left_direction(self):
        generator = LeftDirectionRangeGenerator()
        self.assertEqual(self.spans(generator, 10, 4, 1), [(6, 10), (3, 7), (0, 4)])
        self.assertEqual(self.spans(generator, 10, 4, 0), [(6, 10), (2, 6), (0, 2)])
        self.assertEqual(self.spans(generator, 4, 4, 2), [(0, 4)])

    def test_invalid_arguments(self):
        generator = RightDirectionRangeGenerator()
        for length, window, stride in ((0, 4, 0), (5, 0, 0), (5, 4, -1), (5, 4, 4), (5, 4, 6)):
            with self.assertRaises(ValueError):
                generator.get_ranges(length, window, stride)

    def test_coverage_and_minimality(self):
        """Ranges cover [0, length) exactly with the minimal window count."""
        for generator in (RightDirectionRangeGenerator(), LeftDirectionRangeGenerator()):
            for length in range(1, 25):
                for window in range(1, 8):
                    for stride in range(0, window):
                        ranges = list(generator.get_ranges(length, window, stride))
                        covered = set()
                        for r in ranges:
                            self.assertGreater(r.length, 0)
                            self.assertLessEqual(r.length, window)
                            self.assertGreaterEqual(r.start, 0)
                            self.assertLessEqual(r.stop, length)
                            covered.update(range(r.start, r.stop))
                        self.assertEqual(covered, set(range(length)))

                        step = window - stride
                        expected = 1 + math.ceil(max(length - window, 0) / step)
                        self.assertEqual(len(ranges), expected)

                        ordered = sorted(ranges, key=lambda r: r.start)
                        for left, right in zip(ordered, ordered[1:]):
                            self.assertGreaterEqual(left.stop - right.start, 0)


class TestTruncators(unittest.TestCase):
    """Tests for truncators."""

    def test_default_passes_through(self):
        windows_a, windows_b = DefaultTruncator().truncate([1, 2, 3], None, 2)
        self.assertEqual(windows_a, [[1, 2, 3]])
        self.assertIsNone(windows_b)

    def test_single_sequence_windows(self):
        truncator = LongestFirstTruncator(RightDirectionRangeGenerator(), max_length=6, stride=1)
        windows_a, windows_b = truncator.truncate(list(range(10)), None, 2)
        self.assertEqual(windows_a, [[0, 1, 2, 3], [3, 4, 5, 6], [6, 7, 8, 9]])
        self.assertIsNone(windows_b)

    def test_short_and_empty_sequences_untouched(self):
        truncator = LongestFirstTruncator(RightDirectionRangeGenerator(), max_length=6)
        self.assertEqual(truncator.truncate([1, 2], None, 2), ([[1, 2]], None))
        self.assertEqual(truncator.truncate([], None, 2), ([[]], None))

    def test_split_budget(self):
        split = LongestFirstTruncator.split_budget
        self.assertEqual(split(3, 20, 10), (3, 7))
        self.assertEqual(split(20, 3, 10), (7, 3))
        self.assertEqual(split(8, 8, 10), (5, 5))
        self.assertEqual(split(8, 9, 9), (4, 5))

    def test_pair_windows(self):
        truncator = LongestFirstTruncator(RightDirectionRangeGenerator(), max_length=8)
        windows_a, windows_b = truncator.truncate([1, 2], list(range(10, 20)), 2)
        self.assertEqual(windows_a, [[1, 2]])
        self.assertEqual(windows_b, [[10, 11, 12, 13], [14, 15, 16, 17], [18, 19]])

    def test_pair_that_fits(self):
        truncator = LongestFirstTruncator(RightDirectionRangeGenerator(), max_length=8)
        self.assertEqual(truncator.truncate([1, 2], [3], 4), ([[1, 2]], [[3]]))

    def test_budget_exhausted(self):
        truncator = LongestFirstTruncator(RightDirectionRangeGenerator(), max_length=2)
        with self.assertRaises(ValueError):
            truncator.truncate([1, 2, 3], None, 2)


if __name__ == "__main__":
    unittest.main()
