"""
Tokenization Configuration Module

Dataclass configurations for the tokenization pipeline stages.
Mappings follow the ``tokenizer.json`` layout so a config can be read from
the same file the vocabulary comes from.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Type, TypeVar

E = TypeVar("E", bound=Enum)


class NormForm(Enum):
    """Unicode normalization forms."""
    NFC = "NFC"
    NFKC = "NFKC"
    NFD = "NFD"
    NFKD = "NFKD"


class PaddingDirection(Enum):
    """Side on which padding positions are injected."""
    LEFT = "Left"
    RIGHT = "Right"


class PaddingStrategy(Enum):
    """How the padded length of a batch is chosen."""
    BATCH_LONGEST = "BatchLongest"
    FIXED = "Fixed"


class TruncationDirection(Enum):
    """Anchor of the first sliding window."""
    LEFT = "Left"
    RIGHT = "Right"


class SplitDelimiterBehavior(Enum):
    """What happens to a matched delimiter when splitting."""
    REMOVED = "Removed"
    ISOLATED = "Isolated"
    MERGED_WITH_PREVIOUS = "MergedWithPrevious"
    MERGED_WITH_NEXT = "MergedWithNext"
    CONTIGUOUS = "Contiguous"


def parse_enum(enum_cls: Type[E], value: Any) -> E:
    """
    Resolve an enum member from its value or (case-insensitive) name.

    Raises:
        ValueError: If value names no member of enum_cls
    """
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        pass
    try:
        return enum_cls[str(value).upper()]
    except KeyError:
        raise ValueError(f"Unknown {enum_cls.__name__}: {value!r}") from None


@dataclass
class PaddingConfig:
    """
    Padding configuration.

    Attributes:
        strategy: Batch-longest or fixed target length
        direction: Side receiving the padding positions
        size: Target length, required for the fixed strategy
        pad_id: Id emitted at padding positions
        pad_token: Token string emitted at padding positions
    """
    strategy: PaddingStrategy = PaddingStrategy.BATCH_LONGEST
    direction: PaddingDirection = PaddingDirection.RIGHT
    size: Optional[int] = None
    pad_id: int = 0
    pad_token: str = "<pad>"

    def __post_init__(self):
        """Validate configuration parameters."""
        self.strategy = parse_enum(PaddingStrategy, self.strategy)
        self.direction = parse_enum(PaddingDirection, self.direction)

        if self.strategy is PaddingStrategy.FIXED:
            if self.size is None:
                raise ValueError("size is required for the fixed padding strategy")
            if self.size < 0:
                raise ValueError("size must be >= 0")
        if self.pad_id < 0:
            raise ValueError("pad_id must be >= 0")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PaddingConfig":
        """
        Read a ``padding`` section.

        The strategy is either ``"BatchLongest"`` or ``{"Fixed": size}``.
        """
        strategy = data.get("strategy", PaddingStrategy.BATCH_LONGEST.value)
        size = data.get("size")
        if isinstance(strategy, Mapping):
            (strategy, size), = strategy.items()

        return cls(
            strategy=strategy,
            direction=data.get("direction", PaddingDirection.RIGHT.value),
            size=size,
            pad_id=data.get("pad_id", 0),
            pad_token=data.get("pad_token", "<pad>"),
        )

    def build(self):
        """Create the padding stage described by this config."""
        from .core.types import TokenDefinition
        from .processing.padding import (
            BatchLongestSizeProvider,
            FixedPaddingSizeProvider,
            LeftPadding,
            RightPadding,
        )

        if self.strategy is PaddingStrategy.FIXED:
            provider = FixedPaddingSizeProvider(self.size)
        else:
            provider = BatchLongestSizeProvider()

        pad_token = TokenDefinition(self.pad_id, self.pad_token, special=True)
        if self.direction is PaddingDirection.LEFT:
            return LeftPadding(provider, pad_token)
        return RightPadding(provider, pad_token)


@dataclass
class TruncationConfig:
    """
    Sliding-window truncation configuration.

    Attributes:
        max_length: Window length including special tokens
        stride: Positions shared by consecutive windows
        direction: Right anchors the first window at the start of the
            sequence, left anchors the last window at its end
    """
    max_length: int = 512
    stride: int = 0
    direction: TruncationDirection = TruncationDirection.RIGHT

    def __post_init__(self):
        """Validate configuration parameters."""
        self.direction = parse_enum(TruncationDirection, self.direction)

        if self.max_length < 1:
            raise ValueError("max_length must be >= 1")
        if self.stride < 0:
            raise ValueError("stride must be >= 0")
        if self.stride >= self.max_length:
            raise ValueError("stride must be < max_length")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TruncationConfig":
        """Read a ``truncation`` section."""
        return cls(
            max_length=data.get("max_length", 512),
            stride=data.get("stride", 0),
            direction=data.get("direction", TruncationDirection.RIGHT.value),
        )

    def build(self):
        """Create the truncation stage described by this config."""
        from .processing.truncation import (
            LeftDirectionRangeGenerator,
            LongestFirstTruncator,
            RightDirectionRangeGenerator,
        )

        if self.direction is TruncationDirection.LEFT:
            generator = LeftDirectionRangeGenerator()
        else:
            generator = RightDirectionRangeGenerator()
        return LongestFirstTruncator(generator, self.max_length, self.stride)


@dataclass
class PreTokenizerConfig:
    """
    Byte-level pre-tokenizer configuration.

    Attributes:
        add_prefix_space: Prepend a space to input not starting with one
        gpt2_regex: Split with the GPT-2 pattern instead of keeping the
            input as a single fragment
    """
    add_prefix_space: bool = True
    gpt2_regex: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PreTokenizerConfig":
        """Read a ``ByteLevel`` pre-tokenizer section."""
        return cls(
            add_prefix_space=data.get("add_prefix_space", True),
            gpt2_regex=data.get("use_regex", data.get("gpt2_regex", True)),
        )

    def build(self):
        from .text.pre_tokenizer import ByteLevelPreTokenizer
        return ByteLevelPreTokenizer(
            add_prefix_space=self.add_prefix_space,
            gpt2_regex=self.gpt2_regex,
        )


@dataclass
class PipelineConfig:
    """
    Master configuration for the stages driven by plain settings.

    Attributes:
        pre_tokenizer: Byte-level pre-tokenizer settings
        padding: Padding settings (None disables padding)
        truncation: Truncation settings (None disables truncation)
    """
    pre_tokenizer: PreTokenizerConfig = field(default_factory=PreTokenizerConfig)
    padding: Optional[PaddingConfig] = None
    truncation: Optional[TruncationConfig] = None

    def __post_init__(self):
        """Validate configuration parameters."""
        if self.pre_tokenizer is None:
            raise ValueError("pre_tokenizer config cannot be None")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PipelineConfig":
        """
        Read the plain-settings sections of a ``tokenizer.json`` mapping.

        Only a ``ByteLevel`` pre-tokenizer section is read here; other
        pre-tokenizer types are built by the loader.
        """
        pre_tokenizer = PreTokenizerConfig()
        section = data.get("pre_tokenizer")
        if isinstance(section, Mapping) and section.get("type") == "ByteLevel":
            pre_tokenizer = PreTokenizerConfig.from_dict(section)

        padding = data.get("padding")
        truncation = data.get("truncation")
        return cls(
            pre_tokenizer=pre_tokenizer,
            padding=PaddingConfig.from_dict(padding) if padding else None,
            truncation=TruncationConfig.from_dict(truncation) if truncation else None,
        )
