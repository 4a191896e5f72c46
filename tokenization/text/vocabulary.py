"""
Vocabulary Management Module

Bidirectional token/id lookup over an externally supplied vocabulary table.
Supports special tokens, byte-fallback token detection and JSON
serialization.
"""

import json
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, Iterator, Mapping, Optional, Set, Tuple, Union

from ..core.converters import parse_byte_token
from ..core.text_view import TextLike
from ..core.types import TokenDefinition


class Vocabulary:
    """
    Vocabulary with O(1) lookup in both directions.

    Lookups accept plain strings or TextView instances; views hash and
    compare like the strings they reference.
    """

    __slots__ = ('_token_to_id', '_id_to_token', '_special_tokens')

    def __init__(
        self,
        tokens: Union[Mapping[str, int], Iterable[Tuple[str, int]]],
        special_tokens: Iterable[str] = (),
    ):
        """
        Initialize vocabulary.

        Args:
            tokens: Token to id mapping, or (token, id) pairs
            special_tokens: Tokens (already present) to flag as special

        Raises:
            ValueError: On duplicate tokens or ids, negative ids, or unknown
                special tokens
        """
        self._token_to_id: Dict[str, int] = {}
        self._id_to_token: Dict[int, str] = {}
        self._special_tokens: Set[str] = set()

        items = tokens.items() if isinstance(tokens, Mapping) else tokens
        for token, token_id in items:
            self._add(token, token_id)

        for token in special_tokens:
            if token not in self._token_to_id:
                raise ValueError(f"Special token {token!r} is not in the vocabulary")
            self._special_tokens.add(token)

    def _add(self, token: str, token_id: int) -> None:
        if token_id < 0:
            raise ValueError(f"Token {token!r} has negative id {token_id}")
        if token in self._token_to_id:
            raise ValueError(f"Duplicate token {token!r}")
        if token_id in self._id_to_token:
            raise ValueError(
                f"Duplicate id {token_id} for {token!r} and {self._id_to_token[token_id]!r}"
            )
        self._token_to_id[token] = token_id
        self._id_to_token[token_id] = token

    def add_token(
        self,
        token: str,
        token_id: Optional[int] = None,
        special: bool = False,
    ) -> int:
        """
        Add token to vocabulary (no-op for a token already present).

        Args:
            token: Token string
            token_id: Id for a new token (defaults to the next free id)
            special: Flag the token as special

        Returns:
            Token ID

        Raises:
            ValueError: If token is present under a different id
        """
        existing = self._token_to_id.get(token)
        if existing is not None:
            if token_id is not None and token_id != existing:
                raise ValueError(
                    f"Token {token!r} already has id {existing}, not {token_id}"
                )
            token_id = existing
        else:
            if token_id is None:
                token_id = max(self._id_to_token, default=-1) + 1
            self._add(token, token_id)

        if special:
            self._special_tokens.add(token)
        return token_id

    def add_special_token(self, token: str, token_id: Optional[int] = None) -> int:
        """Flag a token as special, adding it when missing."""
        return self.add_token(token, token_id, special=True)

    def get(self, token: TextLike, default: Optional[int] = None) -> Optional[int]:
        return self._token_to_id.get(token, default)

    def token_to_id(self, token: TextLike) -> Optional[int]:
        """Get ID for token, None if absent."""
        return self._token_to_id.get(token)

    def id_to_token(self, token_id: int) -> Optional[str]:
        """Get token for ID, None if absent."""
        return self._id_to_token.get(token_id)

    def is_special(self, token: TextLike) -> bool:
        return token in self._special_tokens

    @staticmethod
    def is_byte(token: str) -> bool:
        """Check for the exact ``<0xHH>`` byte-fallback form."""
        return parse_byte_token(token) >= 0

    @property
    def specials(self) -> FrozenSet[str]:
        return frozenset(self._special_tokens)

    @property
    def size(self) -> int:
        return len(self._token_to_id)

    def iter_tokens(self) -> Iterator[TokenDefinition]:
        """Iterate token definitions in id order."""
        for token_id in sorted(self._id_to_token):
            token = self._id_to_token[token_id]
            yield TokenDefinition(token_id, token, token in self._special_tokens)

    def __len__(self) -> int:
        return len(self._token_to_id)

    def __contains__(self, token) -> bool:
        return token in self._token_to_id

    def __iter__(self) -> Iterator[str]:
        return iter(self._token_to_id)

    def as_dict(self) -> Dict[str, int]:
        return dict(self._token_to_id)

    def save(self, path: Path) -> None:
        """
        Save vocabulary to JSON.

        Format: {"tokens": {token: id}, "special_tokens": [...]}
        """
        data = {
            "tokens": self._token_to_id,
            "special_tokens": sorted(self._special_tokens, key=self._token_to_id.get),
        }
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False, indent=2)

    @classmethod
    def load(cls, path: Path) -> "Vocabulary":
        """Load vocabulary from JSON."""
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        return cls(data["tokens"], data.get("special_tokens", ()))
