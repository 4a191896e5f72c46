"""
Tokenizer Loader Module

Builds a TokenizationPipeline from a ``tokenizer.json``-style file or
mapping.

Supported components:
- model: BPE, WordPiece
- normalizer: Sequence, NFC/NFD/NFKC/NFKD, Prepend, Append, Replace,
  Lowercase, Strip, BertNormalizer
- pre_tokenizer: ByteLevel, Split, Sequence, BertPreTokenizer, WhitespaceSplit
- post_processor: ByteLevel, RobertaProcessing, BertProcessing,
  TemplateProcessing, Sequence
- decoder: ByteLevel, ByteFallback, Fuse, Replace, Strip, WordPiece,
  Sequence
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import regex

from .config import PaddingConfig, PipelineConfig, TruncationConfig
from .core.types import TokenDefinition
from .pipeline import TokenizationPipeline, TokenizerModel
from .processing.post_processor import (
    BertPostProcessor,
    ByteLevelPostProcessor,
    PostProcessor,
    RobertaPostProcessor,
    TemplatePostProcessor,
)
from .text.decoder import (
    ByteFallbackDecoder,
    ByteLevelDecoder,
    Decoder,
    FuseDecoder,
    ReplaceDecoder,
    SequenceDecoder,
    StripDecoder,
    WordPieceDecoder,
)
from .text.normalizer import (
    AppendNormalizer,
    BertNormalizer,
    LowercaseNormalizer,
    Normalizer,
    PrependNormalizer,
    ReplaceNormalizer,
    SequenceNormalizer,
    StripNormalizer,
    UnicodeNormalizer,
)
from .text.pre_tokenizer import (
    BertPreTokenizer,
    ByteLevelPreTokenizer,
    PreTokenizer,
    SequencePreTokenizer,
    SplitPreTokenizer,
    WhitespaceSplitPreTokenizer,
)
from .text.tokenizer import BPETokenizer
from .text.vocabulary import Vocabulary
from .text.wordpiece import WordPieceTokenizer

logger = logging.getLogger(__name__)

Section = Optional[Mapping[str, Any]]


def _component_type(section: Mapping[str, Any], kind: str) -> str:
    component_type = section.get("type")
    if component_type is None:
        raise ValueError(f"{kind} section has no type")
    return component_type


def _literal_pattern(pattern: Any, kind: str) -> str:
    """Read a ``{"String": ...}`` pattern (plain strings are accepted as-is)."""
    if isinstance(pattern, str):
        return pattern
    if isinstance(pattern, Mapping) and "String" in pattern:
        return pattern["String"]
    raise ValueError(f"{kind} supports literal patterns only, got {pattern!r}")


def build_normalizer(section: Section) -> Optional[Normalizer]:
    """Create a normalizer from its ``tokenizer.json`` section."""
    if not section:
        return None

    kind = _component_type(section, "normalizer")
    if kind == "Sequence":
        return SequenceNormalizer(*(build_normalizer(s) for s in section["normalizers"]))
    if kind in ("NFC", "NFD", "NFKC", "NFKD"):
        return UnicodeNormalizer(kind)
    if kind == "Prepend":
        return PrependNormalizer(section["prepend"])
    if kind == "Append":
        return AppendNormalizer(section["append"])
    if kind == "Replace":
        return ReplaceNormalizer(
            _literal_pattern(section["pattern"], "Replace normalizer"),
            section.get("content", ""),
        )
    if kind == "Lowercase":
        return LowercaseNormalizer()
    if kind == "Strip":
        return StripNormalizer(section.get("strip_left", True), section.get("strip_right", True))
    if kind == "BertNormalizer":
        return BertNormalizer(
            clean_text=section.get("clean_text", True),
            handle_cjk_chars=section.get("handle_chinese_chars", True),
            strip_accents=section.get("strip_accents"),
            lowercase=section.get("lowercase", True),
        )
    raise ValueError(f"Unsupported normalizer type: {kind}")


def build_pre_tokenizer(section: Section) -> Optional[PreTokenizer]:
    """Create a pre-tokenizer from its ``tokenizer.json`` section."""
    if not section:
        return None

    kind = _component_type(section, "pre_tokenizer")
    if kind == "ByteLevel":
        return ByteLevelPreTokenizer(
            add_prefix_space=section.get("add_prefix_space", True),
            gpt2_regex=section.get("use_regex", True),
        )
    if kind == "Split":
        pattern = section["pattern"]
        if isinstance(pattern, Mapping) and "Regex" in pattern:
            pattern = regex.compile(pattern["Regex"])
        else:
            pattern = _literal_pattern(pattern, "Split pre-tokenizer")
        return SplitPreTokenizer(
            pattern,
            section.get("behavior", "Removed"),
            section.get("invert", False),
        )
    if kind == "Sequence":
        return SequencePreTokenizer(*(build_pre_tokenizer(s) for s in section["pretokenizers"]))
    if kind == "BertPreTokenizer":
        return BertPreTokenizer()
    if kind == "WhitespaceSplit":
        return WhitespaceSplitPreTokenizer()
    raise ValueError(f"Unsupported pre_tokenizer type: {kind}")


def _special_pair(value: Any) -> TokenDefinition:
    """Read a ``["</s>", 2]`` pair."""
    content, token_id = value
    return TokenDefinition(token_id, content, special=True)


def _template_pieces(template: Any) -> Any:
    """Convert the structured template form to ``"$A"``/token pieces."""
    if template is None or isinstance(template, str):
        return template

    pieces: List[str] = []
    for item in template:
        if isinstance(item, str):
            pieces.append(item)
        elif "Sequence" in item:
            pieces.append(f"${item['Sequence']['id']}")
        elif "SpecialToken" in item:
            pieces.append(item["SpecialToken"]["id"])
        else:
            raise ValueError(f"Invalid template piece: {item!r}")
    return pieces


def _template_specials(specials: Mapping[str, Any]) -> Dict[str, int]:
    result = {}
    for name, value in specials.items():
        if isinstance(value, int):
            result[name] = value
            continue
        ids = value.get("ids", ())
        if len(ids) != 1:
            raise ValueError(f"Template special token {name!r} must map to exactly one id")
        result[name] = ids[0]
    return result


def build_post_processor(section: Section) -> Optional[PostProcessor]:
    """Create a post-processor from its ``tokenizer.json`` section."""
    if not section:
        return None

    kind = _component_type(section, "post_processor")
    if kind == "ByteLevel":
        return ByteLevelPostProcessor(section.get("trim_offsets", False))
    if kind == "RobertaProcessing":
        return RobertaPostProcessor(_special_pair(section["sep"]), _special_pair(section["cls"]))
    if kind == "BertProcessing":
        return BertPostProcessor(_special_pair(section["sep"]), _special_pair(section["cls"]))
    if kind == "TemplateProcessing":
        return TemplatePostProcessor(
            single=_template_pieces(section["single"]),
            pair=_template_pieces(section.get("pair")),
            special_tokens=_template_specials(section.get("special_tokens", {})),
        )
    if kind == "Sequence":
        # ByteLevel members insert nothing; at most one other member may remain
        members = [build_post_processor(s) for s in section["processors"]]
        effective = [m for m in members if not isinstance(m, ByteLevelPostProcessor)]
        if len(effective) > 1:
            raise ValueError("Sequence post_processor supports one non-ByteLevel member")
        return effective[0] if effective else members[0] if members else None
    raise ValueError(f"Unsupported post_processor type: {kind}")


def build_decoder(section: Section) -> Optional[Decoder]:
    """Create a decoder from its ``tokenizer.json`` section."""
    if not section:
        return None

    kind = _component_type(section, "decoder")
    if kind == "ByteLevel":
        return ByteLevelDecoder()
    if kind == "ByteFallback":
        return ByteFallbackDecoder()
    if kind == "Fuse":
        return FuseDecoder()
    if kind == "Replace":
        return ReplaceDecoder(
            _literal_pattern(section["pattern"], "Replace decoder"),
            section.get("content", ""),
        )
    if kind == "WordPiece":
        return WordPieceDecoder(section.get("prefix", "##"), section.get("cleanup", True))
    if kind == "Strip":
        return StripDecoder(section.get("content", " "), section.get("start", 0), section.get("stop", 0))
    if kind == "Sequence":
        return SequenceDecoder(*(build_decoder(s) for s in section["decoders"]))
    raise ValueError(f"Unsupported decoder type: {kind}")


def build_model(section: Mapping[str, Any], added_tokens: List[TokenDefinition]) -> TokenizerModel:
    """Create the BPE or WordPiece model; added tokens join the vocabulary first."""
    kind = section.get("type", "BPE")
    if kind not in ("BPE", "WordPiece"):
        raise ValueError(f"Unsupported model type: {kind}")

    vocab = Vocabulary(section.get("vocab", {}))
    for token in added_tokens:
        vocab.add_token(token.content, token.id, special=token.special)

    if kind == "WordPiece":
        return WordPieceTokenizer(
            vocab,
            unk_token=section.get("unk_token", "[UNK]"),
            continuing_subword_prefix=section.get("continuing_subword_prefix", "##"),
            max_input_chars_per_word=section.get("max_input_chars_per_word", 100),
        )

    return BPETokenizer(
        vocab,
        merges=section.get("merges", ()),
        unk_token=section.get("unk_token"),
        fuse_unk=section.get("fuse_unk", False),
        byte_fallback=section.get("byte_fallback", False),
        continuing_subword_prefix=section.get("continuing_subword_prefix") or "",
        end_of_word_suffix=section.get("end_of_word_suffix") or "",
    )


def read_tokenizer_json(path: Union[str, Path]) -> Dict[str, Any]:
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def load_tokenizer(
    source: Union[str, Path, Mapping[str, Any]],
    padding: Optional[PaddingConfig] = None,
    truncation: Optional[TruncationConfig] = None,
) -> TokenizationPipeline:
    """
    Build a pipeline from ``tokenizer.json`` content.

    Args:
        source: Path to a ``tokenizer.json`` file, or its parsed mapping
        padding: Overrides the file's padding section
        truncation: Overrides the file's truncation section

    Returns:
        Configured TokenizationPipeline

    Raises:
        ValueError: On unsupported component types or invalid settings
    """
    data = source if isinstance(source, Mapping) else read_tokenizer_json(source)
    if "model" not in data:
        raise ValueError("tokenizer.json has no model section")

    added_tokens = [
        TokenDefinition(t["id"], t["content"], t.get("special", False))
        for t in data.get("added_tokens") or ()
    ]

    config = PipelineConfig.from_dict(data)
    if padding is not None:
        config.padding = padding
    if truncation is not None:
        config.truncation = truncation

    tokenizer = build_model(data["model"], added_tokens)
    pipeline = TokenizationPipeline(
        tokenizer,
        normalizer=build_normalizer(data.get("normalizer")),
        pre_tokenizer=build_pre_tokenizer(data.get("pre_tokenizer")),
        post_processor=build_post_processor(data.get("post_processor")),
        truncator=config.truncation.build() if config.truncation else None,
        padding=config.padding.build() if config.padding else None,
        decoder=build_decoder(data.get("decoder")),
        added_tokens=added_tokens,
    )

    logger.info(
        "Loaded %s tokenizer: vocab_size=%d, added_tokens=%d",
        data["model"].get("type", "BPE"), tokenizer.vocab_size, len(added_tokens),
    )
    return pipeline
