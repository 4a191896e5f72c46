"""
Pipeline and Configuration Tests
"""

import unittest

from tokenization import (
    PaddingConfig,
    PaddingDirection,
    PaddingStrategy,
    PipelineConfig,
    PreTokenizerConfig,
    TokenizationPipeline,
    TruncationConfig,
    TruncationDirection,
)
from tokenization.config import parse_enum
from tokenization.core import BYTES_TO_CHARS, TokenDefinition
from tokenization.processing import (
    BatchLongestSizeProvider,
    FixedPaddingSizeProvider,
    LeftPadding,
    LongestFirstTruncator,
    RightPadding,
    RobertaPostProcessor,
)
from tokenization.text import BPETokenizer, ByteLevelDecoder, ByteLevelPreTokenizer

BOS = TokenDefinition(258, "<s>", special=True)
EOS = TokenDefinition(259, "</s>", special=True)
PAD = TokenDefinition(260, "<pad>", special=True)


def byte_level_vocab():
    """One token per byte (id = byte value) plus a few merged and special tokens."""
    vocab = {char: value for value, char in BYTES_TO_CHARS.items()}
    vocab.update({"Ġh": 256, "Ġhi": 257, "<s>": 258, "</s>": 259, "<pad>": 260})
    return vocab


def make_pipeline(**stages):
    tokenizer = BPETokenizer(byte_level_vocab(), ["Ġ h", "Ġh i"])
    stages.setdefault("pre_tokenizer", ByteLevelPreTokenizer())
    stages.setdefault("post_processor", RobertaPostProcessor(EOS, BOS))
    stages.setdefault("decoder", ByteLevelDecoder())
    return TokenizationPipeline(tokenizer, **stages)


class TestEncode(unittest.TestCase):
    """Tests for single and pair encoding."""

    def test_encode_single(self):
        encoding = make_pipeline().encode("hi")
        self.assertEqual(encoding.ids, [258, 257, 259])
        self.assertEqual(encoding.tokens, ["<s>", "Ġhi", "</s>"])
        self.assertEqual(encoding.attention_mask, [1, 1, 1])
        self.assertEqual(encoding.overflowing, [])

    def test_encode_without_special_tokens(self):
        self.assertEqual(make_pipeline().encode("hi", add_special_tokens=False).ids, [257])

    def test_encode_pair(self):
        encoding = make_pipeline().encode("hi", "hi")
        self.assertEqual(encoding.ids, [258, 257, 259, 258, 257, 259])

    def test_unmerged_bytes(self):
        encoding = make_pipeline().encode("ab")
        self.assertEqual(encoding.ids, [258, 32, 97, 98, 259])

    def test_encode_none_rejected(self):
        with self.assertRaises(ValueError):
            make_pipeline().encode(None)

    def test_special_tokens_registered(self):
        pipeline = make_pipeline()
        self.assertTrue(pipeline.tokenizer.vocab.is_special("<s>"))
        self.assertTrue(pipeline.tokenizer.vocab.is_special("</s>"))
        self.assertEqual(pipeline.num_added_tokens(False), 2)
        self.assertEqual(pipeline.num_added_tokens(True), 4)

    def test_identity_stages(self):
        pipeline = TokenizationPipeline(BPETokenizer({"a": 0, "b": 1, "ab": 2}, ["a b"]))
        self.assertEqual(pipeline.encode("abba").ids, [2, 1, 0])
        self.assertEqual(pipeline.decode([2, 1, 0]), "abba")
        self.assertEqual(pipeline.vocab_size, 3)


class TestAddedTokens(unittest.TestCase):
    """Tests for tokens matched verbatim in the input."""

    def setUp(self):
        self.pipeline = make_pipeline(added_tokens=[TokenDefinition(261, "<|end|>", special=True)])

    def test_added_token_bypasses_bpe(self):
        encoding = self.pipeline.encode("hi<|end|>")
        self.assertEqual(encoding.ids, [258, 257, 261, 259])
        self.assertEqual(encoding.tokens[2], "<|end|>")

    def test_added_token_only(self):
        self.assertEqual(self.pipeline.encode("<|end|>").ids, [258, 261, 259])

    def test_added_token_in_vocab(self):
        self.assertEqual(self.pipeline.token_to_id("<|end|>"), 261)
        self.assertEqual(self.pipeline.id_to_token(261), "<|end|>")

    def test_decode_with_added_token(self):
        ids = self.pipeline.encode("hi<|end|>").ids
        self.assertEqual(self.pipeline.decode(ids), "<s> hi<|end|></s>")
        self.assertEqual(self.pipeline.decode(ids, skip_special_tokens=True), " hi")


class TestDecode(unittest.TestCase):
    """Tests for decoding."""

    def test_round_trip_skipping_specials(self):
        pipeline = make_pipeline()
        ids = pipeline.encode("hi").ids
        self.assertEqual(pipeline.decode(ids, skip_special_tokens=True), " hi")
        self.assertEqual(pipeline.decode(ids), "<s> hi</s>")

    def test_text_round_trip(self):
        pipeline = make_pipeline(post_processor=None)
        for text in ["héllo wörld", "line\nbreak", "emoji 👋!", "  spaced  "]:
            ids = pipeline.encode(text, add_special_tokens=False).ids
            self.assertEqual(pipeline.decode(ids).lstrip(" "), text.lstrip(" "))

    def test_unknown_ids_skipped(self):
        self.assertEqual(make_pipeline().decode([257, 9999]), " hi")

    def test_decode_batch(self):
        pipeline = make_pipeline()
        self.assertEqual(
            pipeline.decode_batch([[257], [258, 97, 259]], skip_special_tokens=True),
            [" hi", "a"],
        )


class TestTruncationAndPadding(unittest.TestCase):
    """Tests for overflow windows and batch padding."""

    def test_overflow_windows(self):
        truncator = TruncationConfig(max_length=4).build()
        self.assertIsInstance(truncator, LongestFirstTruncator)
        encoding = make_pipeline(truncator=truncator).encode("abcde")
        self.assertEqual(encoding.ids, [258, 32, 97, 259])
        self.assertEqual(
            [window.ids for window in encoding.overflowing],
            [[258, 98, 99, 259], [258, 100, 101, 259]],
        )

    def test_left_direction_windows(self):
        truncator = TruncationConfig(max_length=4, direction="Left").build()
        encoding = make_pipeline(truncator=truncator).encode("abcde")
        self.assertEqual(encoding.ids, [258, 100, 101, 259])
        self.assertEqual(encoding.overflowing[-1].ids, [258, 32, 97, 259])

    def test_stride_overlap(self):
        truncator = TruncationConfig(max_length=5, stride=1).build()
        encoding = make_pipeline(truncator=truncator).encode("abcde")
        windows = [encoding.ids] + [w.ids for w in encoding.overflowing]
        self.assertEqual(
            windows,
            [[258, 32, 97, 98, 259], [258, 98, 99, 100, 259], [258, 100, 101, 259]],
        )

    def test_batch_padding(self):
        padding = RightPadding(BatchLongestSizeProvider(), PAD)
        encodings = make_pipeline(padding=padding).encode_batch(["hi", "abc"])

        self.assertEqual(encodings[0].ids, [258, 257, 259, 260, 260, 260])
        self.assertEqual(encodings[0].attention_mask, [1, 1, 1, 0, 0, 0])
        self.assertEqual(encodings[0].tokens[-1], "<pad>")
        self.assertEqual(encodings[1].ids, [258, 32, 97, 98, 99, 259])
        self.assertEqual(encodings[1].attention_mask, [1] * 6)

    def test_left_padding(self):
        padding = LeftPadding(BatchLongestSizeProvider(), PAD)
        encodings = make_pipeline(padding=padding).encode_batch(["hi", "abc"])
        self.assertEqual(encodings[0].ids, [260, 260, 260, 258, 257, 259])
        self.assertEqual(encodings[0].attention_mask, [0, 0, 0, 1, 1, 1])

    def test_padded_batch_decodes_without_pad(self):
        for padding_cls in (RightPadding, LeftPadding):
            pipeline = make_pipeline(padding=padding_cls(BatchLongestSizeProvider(), PAD))
            self.assertTrue(pipeline.tokenizer.vocab.is_special("<pad>"))

            encodings = pipeline.encode_batch(["hi", "abc"])
            self.assertIn(260, encodings[0].ids, msg=padding_cls.__name__)
            self.assertEqual(
                pipeline.decode_batch([e.ids for e in encodings], skip_special_tokens=True),
                [" hi", " abc"],
                msg=padding_cls.__name__,
            )

    def test_pad_token_kept_when_not_skipping(self):
        pipeline = make_pipeline(padding=RightPadding(BatchLongestSizeProvider(), PAD))
        short, _ = pipeline.encode_batch(["hi", "abc"])
        self.assertEqual(pipeline.decode(short.ids), "<s> hi</s><pad><pad><pad>")

    def test_pair_overflow_after_second_sequence_ends(self):
        truncator = TruncationConfig(max_length=8).build()
        encoding = make_pipeline(truncator=truncator).encode("abcdefgh", "a")

        self.assertEqual(encoding.ids, [258, 32, 97, 259, 258, 32, 97, 259])
        self.assertEqual(
            [window.ids for window in encoding.overflowing],
            [
                [258, 98, 99, 259],
                [258, 100, 101, 259],
                [258, 102, 103, 259],
                [258, 104, 259],
            ],
        )

    def test_overflow_padded_with_batch(self):
        pipeline = make_pipeline(
            truncator=TruncationConfig(max_length=4).build(),
            padding=RightPadding(BatchLongestSizeProvider(), PAD),
        )
        short, long = pipeline.encode_batch(["hi", "abcde"])
        self.assertEqual(short.ids, [258, 257, 259, 260])
        self.assertEqual(len(long.overflowing), 2)
        for encoding in [short, long] + long.overflowing:
            self.assertEqual(len(encoding), 4)

    def test_pairs_in_batch(self):
        encodings = make_pipeline().encode_batch([("hi", "hi"), "hi"])
        self.assertEqual(encodings[0].ids, [258, 257, 259, 258, 257, 259])
        self.assertEqual(encodings[1].ids, [258, 257, 259])

    def test_fixed_padding_overflow_rejected(self):
        padding = RightPadding(FixedPaddingSizeProvider(2), PAD)
        with self.assertRaises(ValueError):
            make_pipeline(padding=padding).encode("hi")

    def test_empty_batch(self):
        self.assertEqual(make_pipeline().encode_batch([]), [])


class TestConfig(unittest.TestCase):
    """Tests for configuration parsing and stage building."""

    def test_parse_enum(self):
        self.assertIs(parse_enum(PaddingDirection, "Left"), PaddingDirection.LEFT)
        self.assertIs(parse_enum(PaddingDirection, "left"), PaddingDirection.LEFT)
        self.assertIs(parse_enum(PaddingDirection, PaddingDirection.RIGHT), PaddingDirection.RIGHT)
        with self.assertRaises(ValueError):
            parse_enum(PaddingDirection, "up")

    def test_padding_config(self):
        config = PaddingConfig.from_dict(
            {"strategy": {"Fixed": 8}, "direction": "Left", "pad_id": 260, "pad_token": "<pad>"}
        )
        self.assertIs(config.strategy, PaddingStrategy.FIXED)
        self.assertEqual(config.size, 8)

        padding = config.build()
        self.assertIsInstance(padding, LeftPadding)
        self.assertIsInstance(padding.size_provider, FixedPaddingSizeProvider)
        self.assertEqual(padding.pad_token, PAD)

    def test_padding_config_defaults(self):
        padding = PaddingConfig.from_dict({"strategy": "BatchLongest"}).build()
        self.assertIsInstance(padding, RightPadding)
        self.assertIsInstance(padding.size_provider, BatchLongestSizeProvider)

    def test_padding_config_validation(self):
        with self.assertRaises(ValueError):
            PaddingConfig(strategy="Fixed")
        with self.assertRaises(ValueError):
            PaddingConfig(direction="Up")

    def test_truncation_config(self):
        config = TruncationConfig.from_dict({"max_length": 16, "stride": 2, "direction": "Left"})
        self.assertIs(config.direction, TruncationDirection.LEFT)
        truncator = config.build()
        self.assertEqual((truncator.max_length, truncator.stride), (16, 2))

    def test_truncation_config_validation(self):
        with self.assertRaises(ValueError):
            TruncationConfig(max_length=0)
        with self.assertRaises(ValueError):
            TruncationConfig(max_length=4, stride=4)
        with self.assertRaises(ValueError):
            TruncationConfig(stride=-1)

    def test_pipeline_config(self):
        config = PipelineConfig.from_dict({
            "pre_tokenizer": {"type": "ByteLevel", "add_prefix_space": False, "use_regex": False},
            "truncation": {"max_length": 4},
        })
        self.assertEqual(config.pre_tokenizer, PreTokenizerConfig(False, False))
        self.assertIsNone(config.padding)
        self.assertEqual(config.truncation.max_length, 4)

    def test_from_config(self):
        config = PipelineConfig(
            truncation=TruncationConfig(max_length=4),
            padding=PaddingConfig(pad_id=260),
        )
        tokenizer = BPETokenizer(byte_level_vocab(), ["Ġ h", "Ġh i"])
        pipeline = TokenizationPipeline.from_config(
            tokenizer, config,
            post_processor=RobertaPostProcessor(EOS, BOS),
            decoder=ByteLevelDecoder(),
        )
        encodings = pipeline.encode_batch(["hi", "abcde"])
        self.assertEqual(encodings[0].ids, [258, 257, 259, 260])
        self.assertEqual(pipeline.decode(encodings[0].ids, skip_special_tokens=True), " hi")


if __name__ == "__main__":
    unittest.main()
