"""Ordered token sequence with boundary-indexed lookups."""

from __future__ import annotations

from typing import Iterator, Protocol

from .errors import invariant
from .location import SourceRange
from .tokens import Token

__all__ = ["Spanned", "TokenStore"]


class Spanned(Protocol):
    """Anything carrying a source ``range`` (nodes and tokens alike)."""

    @property
    def range(self) -> SourceRange: ...


class TokenStore:
    """Append-only, strictly ordered token sequence.

    Two maps index every token by the offset where it starts and the offset
    where it ends. Lookups are anchored on those maps, so a node may only be
    queried when its own start (or end) coincides with a token edge.

    Example:
        >>> from sfcparse.template.location import LineIndex
        >>> from sfcparse.template.tokens import TokenKind
        >>> text = "<p>"
        >>> index = LineIndex(text)
        >>> store = TokenStore()
        >>> store.append(Token.from_source(TokenKind.PUNCTUATOR, text, 0, 1, index=index))
        >>> store.append(Token.from_source(TokenKind.HTML_IDENTIFIER, text, 1, 2, index=index))
        >>> store.append(Token.from_source(TokenKind.PUNCTUATOR, text, 2, 3, index=index))
        >>> from types import SimpleNamespace
        >>> tag = SimpleNamespace(range=SourceRange(0, 3))
        >>> store.first_token(tag, skip=1).raw
        'p'
        >>> store.token_after(store[0]).raw
        'p'
    """

    __slots__ = ("_tokens", "_start_index", "_end_index", "_sealed")

    def __init__(self) -> None:
        self._tokens: list[Token] = []
        self._start_index: dict[int, int] = {}
        self._end_index: dict[int, int] = {}
        self._sealed = False

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def append(self, token: Token) -> None:
        """Record ``token`` after every token already stored."""

        invariant(not self._sealed, "Token store is sealed")
        invariant(isinstance(token, Token), f"Not a token: {token!r}")
        if self._tokens:
            last = self._tokens[-1]
            invariant(
                token.start >= last.end,
                (
                    f"Token {token.raw!r} at {token.start} overlaps "
                    f"{last.raw!r} ending at {last.end}"
                ),
            )

        index = len(self._tokens)
        self._tokens.append(token)
        self._start_index[token.start] = index
        self._end_index[token.end] = index

    def extend(self, tokens: Iterator[Token] | tuple[Token, ...] | list[Token]) -> None:
        """Append each token of ``tokens`` in order."""

        for token in tokens:
            self.append(token)

    def seal(self) -> None:
        """Reject any further :meth:`append`."""

        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    # ------------------------------------------------------------------
    # Sequence protocol
    # ------------------------------------------------------------------
    @property
    def tokens(self) -> tuple[Token, ...]:
        return tuple(self._tokens)

    def __len__(self) -> int:
        return len(self._tokens)

    def __iter__(self) -> Iterator[Token]:
        return iter(self._tokens)

    def __getitem__(self, index: int) -> Token:
        return self._tokens[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TokenStore):
            return NotImplemented
        return self._tokens == other._tokens

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"TokenStore(tokens={len(self._tokens)}, sealed={self._sealed})"

    # ------------------------------------------------------------------
    # Boundary queries
    # ------------------------------------------------------------------
    def first_token(
        self,
        node: Spanned,
        *,
        skip: int = 0,
        include_comments: bool = False,
    ) -> Token | None:
        """Return the first token inside ``node`` after skipping ``skip``."""

        span = node.range
        offset = self._lookup(self._start_index, span.start, "start")
        invariant(skip >= 0, f"skip must be >= 0, got {skip}")

        tokens = self._tokens
        if include_comments:
            i = offset + skip
            if i < len(tokens) and tokens[i].end <= span.end:
                return tokens[i]
            return None

        for i in range(offset, len(tokens)):
            token = tokens[i]
            if token.end > span.end:
                break
            if token.kind.is_comment:
                continue
            if skip > 0:
                skip -= 1
                continue
            return token
        return None

    def last_token(
        self,
        node: Spanned,
        *,
        skip: int = 0,
        include_comments: bool = False,
    ) -> Token | None:
        """Return the last token inside ``node`` after skipping ``skip``."""

        span = node.range
        offset = self._lookup(self._end_index, span.end, "end")
        invariant(skip >= 0, f"skip must be >= 0, got {skip}")

        tokens = self._tokens
        if include_comments:
            i = offset - skip
            if i >= 0 and tokens[i].start >= span.start:
                return tokens[i]
            return None

        for i in range(offset, -1, -1):
            token = tokens[i]
            if token.start < span.start:
                break
            if token.kind.is_comment:
                continue
            if skip > 0:
                skip -= 1
                continue
            return token
        return None

    def token_before(
        self,
        node: Spanned,
        *,
        skip: int = 0,
        include_comments: bool = False,
    ) -> Token | None:
        """Return the token preceding ``node`` after skipping ``skip``."""

        offset = self._lookup(self._start_index, node.range.start, "start")
        invariant(skip >= 0, f"skip must be >= 0, got {skip}")
        return self._scan(offset - 1, -1, skip, include_comments)

    def token_after(
        self,
        node: Spanned,
        *,
        skip: int = 0,
        include_comments: bool = False,
    ) -> Token | None:
        """Return the token following ``node`` after skipping ``skip``."""

        offset = self._lookup(self._end_index, node.range.end, "end")
        invariant(skip >= 0, f"skip must be >= 0, got {skip}")
        return self._scan(offset + 1, 1, skip, include_comments)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _lookup(index: dict[int, int], offset: int, edge: str) -> int:
        position = index.get(offset)
        invariant(
            position is not None,
            f"No token {edge}s at offset {offset}",
        )
        return position  # type: ignore[return-value]

    def _scan(
        self,
        i: int,
        step: int,
        skip: int,
        include_comments: bool,
    ) -> Token | None:
        tokens = self._tokens
        while 0 <= i < len(tokens):
            token = tokens[i]
            i += step
            if not include_comments and token.kind.is_comment:
                continue
            if skip > 0:
                skip -= 1
                continue
            return token
        return None
