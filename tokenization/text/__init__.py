"""
Text Stages

Normalizers, pre-tokenizers, vocabulary, BPE and WordPiece models and decoders.
"""

from .normalizer import (
    Normalizer,
    DefaultNormalizer,
    PrependNormalizer,
    AppendNormalizer,
    ReplaceNormalizer,
    UnicodeNormalizer,
    LowercaseNormalizer,
    StripNormalizer,
    BertNormalizer,
    SequenceNormalizer,
)
from .pre_tokenizer import (
    PreTokenizer,
    DefaultPreTokenizer,
    ByteLevelPreTokenizer,
    SplitPreTokenizer,
    WhitespaceSplitPreTokenizer,
    BertPreTokenizer,
    SequencePreTokenizer,
    GPT2_PATTERN,
)
from .vocabulary import Vocabulary
from .tokenizer import BPETokenizer, parse_merge
from .wordpiece import WordPieceTokenizer
from .decoder import (
    Decoder,
    DefaultDecoder,
    FuseDecoder,
    ReplaceDecoder,
    ByteFallbackDecoder,
    ByteLevelDecoder,
    WordPieceDecoder,
    StripDecoder,
    SequenceDecoder,
)

__all__ = [
    "Normalizer",
    "DefaultNormalizer",
    "PrependNormalizer",
    "AppendNormalizer",
    "ReplaceNormalizer",
    "UnicodeNormalizer",
    "LowercaseNormalizer",
    "StripNormalizer",
    "BertNormalizer",
    "SequenceNormalizer",
    "PreTokenizer",
    "DefaultPreTokenizer",
    "ByteLevelPreTokenizer",
    "SplitPreTokenizer",
    "WhitespaceSplitPreTokenizer",
    "BertPreTokenizer",
    "SequencePreTokenizer",
    "GPT2_PATTERN",
    "Vocabulary",
    "BPETokenizer",
    "parse_merge",
    "WordPieceTokenizer",
    "Decoder",
    "DefaultDecoder",
    "FuseDecoder",
    "ReplaceDecoder",
    "ByteFallbackDecoder",
    "ByteLevelDecoder",
    "WordPieceDecoder",
    "StripDecoder",
    "SequenceDecoder",
]
