"""
Sequence Processing

Special-token post-processing, batch padding and sliding-window truncation.
"""

from .post_processor import (
    PostProcessor,
    DefaultPostProcessor,
    ByteLevelPostProcessor,
    RobertaPostProcessor,
    BertPostProcessor,
    TemplatePostProcessor,
)
from .padding import (
    PaddingSizeProvider,
    BatchLongestSizeProvider,
    FixedPaddingSizeProvider,
    Padding,
    DefaultPadding,
    LeftPadding,
    RightPadding,
)
from .truncation import (
    RangeGenerator,
    RightDirectionRangeGenerator,
    LeftDirectionRangeGenerator,
    Truncator,
    DefaultTruncator,
    LongestFirstTruncator,
)

__all__ = [
    "PostProcessor",
    "DefaultPostProcessor",
    "ByteLevelPostProcessor",
    "RobertaPostProcessor",
    "BertPostProcessor",
    "TemplatePostProcessor",
    "PaddingSizeProvider",
    "BatchLongestSizeProvider",
    "FixedPaddingSizeProvider",
    "Padding",
    "DefaultPadding",
    "LeftPadding",
    "RightPadding",
    "RangeGenerator",
    "RightDirectionRangeGenerator",
    "LeftDirectionRangeGenerator",
    "Truncator",
    "DefaultTruncator",
    "LongestFirstTruncator",
]
