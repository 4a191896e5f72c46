"""
Model Integration Module

Converts encodings into the array layout model forward passes expect.
"""

from dataclasses import dataclass
from typing import Dict, Sequence

import numpy as np

try:
    import torch
    HAS_TORCH = True
except ImportError:
    HAS_TORCH = False

from .core.types import Encoding


@dataclass
class ModelInputs:
    """
    Batched model inputs.

    Attributes:
        input_ids: int64 array of shape (batch, seq)
        attention_mask: int64 array of shape (batch, seq)
    """
    input_ids: np.ndarray
    attention_mask: np.ndarray

    @classmethod
    def from_encodings(cls, encodings: Sequence[Encoding]) -> "ModelInputs":
        """
        Stack equal-length encodings.

        Raises:
            ValueError: If encodings differ in length (pad them first)
        """
        lengths = {len(e) for e in encodings}
        if len(lengths) > 1:
            raise ValueError(
                f"Encodings have different lengths {sorted(lengths)}; apply padding first"
            )

        seq_len = lengths.pop() if lengths else 0
        input_ids = np.zeros((len(encodings), seq_len), dtype=np.int64)
        attention_mask = np.zeros((len(encodings), seq_len), dtype=np.int64)
        for i, encoding in enumerate(encodings):
            input_ids[i] = encoding.ids
            attention_mask[i] = encoding.attention_mask

        return cls(input_ids=input_ids, attention_mask=attention_mask)

    @property
    def shape(self):
        return self.input_ids.shape

    def to_dict(self) -> Dict[str, np.ndarray]:
        """Convert to dict for model forward."""
        return {
            "input_ids": self.input_ids,
            "attention_mask": self.attention_mask,
        }

    def to_torch(self, device: str = "cpu") -> Dict[str, "torch.Tensor"]:
        """
        Convert to tensors on device.

        Raises:
            ImportError: If PyTorch is not installed
        """
        if not HAS_TORCH:
            raise ImportError("PyTorch required")

        return {
            name: torch.from_numpy(array).to(device)
            for name, array in self.to_dict().items()
        }
