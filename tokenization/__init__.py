"""
Text Tokenization Pipeline

Converts raw text into token-id sequences for neural models and
reconstructs text from model-produced ids.

Architecture:
- Normalizers: prefix/suffix insertion, literal replacement, Unicode forms
- Pre-tokenizers: GPT-2 splitting with reversible byte-level re-encoding
- BPE model: merge-rank segmentation with <0xHH> byte fallback
- WordPiece model: greedy longest-match subwords for BERT vocabularies
- Post-processors: special tokens for single sequences and pairs
- Padding and sliding-window truncation for batches and long inputs
- Decoders: byte-level and byte-fallback reconstruction

Temporary buffers are borrowed from thread-local pools for the duration of
each stage.
"""

from .config import (
    NormForm,
    PaddingDirection,
    PaddingStrategy,
    TruncationDirection,
    SplitDelimiterBehavior,
    PaddingConfig,
    TruncationConfig,
    PreTokenizerConfig,
    PipelineConfig,
)
from .core import TextView, Encoding, Range, PaddedToken, TokenDefinition
from .text import (
    Vocabulary,
    BPETokenizer,
    WordPieceTokenizer,
    ByteLevelPreTokenizer,
    ByteLevelDecoder,
    ByteFallbackDecoder,
)
from .processing import (
    RobertaPostProcessor,
    TemplatePostProcessor,
    LeftPadding,
    RightPadding,
    LongestFirstTruncator,
)
from .pipeline import TokenizationPipeline
from .loader import load_tokenizer
from .integration import ModelInputs

__all__ = [
    # Config
    "NormForm",
    "PaddingDirection",
    "PaddingStrategy",
    "TruncationDirection",
    "SplitDelimiterBehavior",
    "PaddingConfig",
    "TruncationConfig",
    "PreTokenizerConfig",
    "PipelineConfig",
    # Core
    "TextView",
    "Encoding",
    "Range",
    "PaddedToken",
    "TokenDefinition",
    # Stages
    "Vocabulary",
    "BPETokenizer",
    "WordPieceTokenizer",
    "ByteLevelPreTokenizer",
    "ByteLevelDecoder",
    "ByteFallbackDecoder",
    "RobertaPostProcessor",
    "TemplatePostProcessor",
    "LeftPadding",
    "RightPadding",
    "LongestFirstTruncator",
    # Pipeline
    "TokenizationPipeline",
    "load_tokenizer",
    "ModelInputs",
]

__version__ = "1.0.0"
