"""Marker codec: swap protected substrings for placeholder tokens and back.

A token is built only from Private Use Area code points::

    OPEN  <session suffix>  <index digits>  CLOSE

The session suffix is random and checked against the text being protected:
if ``OPEN + suffix`` already occurs there, a wider suffix is drawn. Tokens of
one table therefore never match anything that was in the original text, and
the regex passes never see a digit, letter or space inside a token.
"""

from __future__ import annotations

import logging
import re
import secrets
from typing import Iterable, Iterator, Pattern

from typo_correct.core.errors import MarkerCollisionError

_log = logging.getLogger(__name__)

OPEN = "\ue000"
CLOSE = "\ue001"

# Index digits 0-9 live at U+E010..U+E019, suffix alphabet at U+E100..U+E1FF.
_DIGIT_BASE = 0xE010
_SUFFIX_BASE = 0xE100
_SUFFIX_ALPHABET = 256

DEFAULT_SUFFIX_WIDTH = 2
MAX_SUFFIX_WIDTH = 32

_DIGITS = "".join(chr(_DIGIT_BASE + i) for i in range(10))
_TO_MARKER_DIGITS = str.maketrans("0123456789", _DIGITS)


def _random_suffix(width: int) -> str:
    return "".join(chr(_SUFFIX_BASE + secrets.randbelow(_SUFFIX_ALPHABET)) for _ in range(width))


class MarkerTable:
    """Token -> original substring mapping for one pipeline invocation."""

    def __init__(self, prefix: str) -> None:
        self._prefix = prefix
        self._entries: dict[str, str] = {}
        self._by_original: dict[str, str] = {}
        self._token_re = re.compile(re.escape(prefix) + f"[{_DIGITS}]+" + CLOSE)

    @classmethod
    def for_text(cls, text: str, width: int = DEFAULT_SUFFIX_WIDTH) -> "MarkerTable":
        """Allocate a table whose token prefix does not occur in ``text``.

        The suffix doubles in width on every collision.

        Raises:
            MarkerCollisionError: if no free prefix is found up to
                ``MAX_SUFFIX_WIDTH``.
        """
        while width <= MAX_SUFFIX_WIDTH:
            prefix = OPEN + _random_suffix(width)
            if prefix not in text:
                return cls(prefix)
            _log.debug("Marker prefix collision at width %d, widening", width)
            width *= 2
        raise MarkerCollisionError(OPEN, "no collision-free token prefix available")

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def token_re(self) -> Pattern[str]:
        return self._token_re

    def allocate(self, original: str) -> str:
        """Return the token standing for ``original``, creating it if needed."""
        token = self._by_original.get(original)
        if token is None:
            index = str(len(self._entries)).translate(_TO_MARKER_DIGITS)
            token = f"{self._prefix}{index}{CLOSE}"
            self._entries[token] = original
            self._by_original[original] = token
        return token

    def lookup(self, token: str) -> str | None:
        return self._entries.get(token)

    def items(self) -> Iterator[tuple[str, str]]:
        return iter(self._entries.items())

    def __contains__(self, token: object) -> bool:
        return token in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"MarkerTable({len(self._entries)} entries)"


class MarkerCodec:
    """Protect regex matches or literals behind tokens, then restore them.

    Args:
        patterns: Regexes whose matches :meth:`encode` protects, in order.
        literals: Exact substrings :meth:`encode` protects after the patterns.
    """

    def __init__(
        self,
        patterns: Iterable[str | Pattern[str]] = (),
        literals: Iterable[str] = (),
    ) -> None:
        self._patterns = [re.compile(p) if isinstance(p, str) else p for p in patterns]
        self._literals = sorted({lit for lit in literals if lit}, key=len, reverse=True)

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------

    def encode(self, text: str, table: MarkerTable | None = None) -> tuple[str, MarkerTable]:
        """Return ``(protected_text, table)``."""
        if table is None:
            table = MarkerTable.for_text(text)
        for pattern in self._patterns:
            text = self.protect(text, pattern, table)
        if self._literals:
            text = self.protect_literals(text, self._literals, table)
        return text, table

    @staticmethod
    def protect(
        text: str,
        pattern: str | Pattern[str],
        table: MarkerTable,
        group: int | str = 0,
    ) -> str:
        """Replace ``group`` of every match of ``pattern`` by a token."""
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern

        def _sub(m: re.Match[str]) -> str:
            piece = m.group(group)
            if not piece:
                return m.group(0)
            start = m.start(group) - m.start(0)
            whole = m.group(0)
            return whole[:start] + table.allocate(piece) + whole[start + len(piece):]

        return regex.sub(_sub, text)

    @staticmethod
    def protect_literals(text: str, literals: Iterable[str], table: MarkerTable) -> str:
        words = sorted({w for w in literals if w}, key=len, reverse=True)
        if not words:
            return text
        regex = re.compile("|".join(re.escape(w) for w in words))
        return regex.sub(lambda m: table.allocate(m.group(0)), text)

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    @staticmethod
    def decode(text: str, table: MarkerTable) -> str:
        """Restore every token of ``table`` in ``text``.

        Tokens protected inside other tokens are restored too, one level per
        round.

        Raises:
            MarkerCollisionError: for a token carrying the table's prefix but
                absent from the table, or a truncated token.
        """

        def _restore(m: re.Match[str]) -> str:
            original = table.lookup(m.group(0))
            if original is None:
                raise MarkerCollisionError(m.group(0), "token not in marker table")
            return original

        for _ in range(len(table) + 1):
            if table.prefix not in text:
                return text
            if not table.token_re.search(text):
                raise MarkerCollisionError(table.prefix, "truncated marker token")
            text = table.token_re.sub(_restore, text)

        if table.prefix in text:
            raise MarkerCollisionError(table.prefix, "marker tokens nested too deeply")
        return text


def encode(text: str, patterns: Iterable[str | Pattern[str]] = ()) -> tuple[str, MarkerTable]:
    """Protect every match of ``patterns`` in ``text``."""
    return MarkerCodec(patterns).encode(text)


def decode(text: str, table: MarkerTable) -> str:
    return MarkerCodec.decode(text, table)
