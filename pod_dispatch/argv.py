"""Tokenized command-line arguments with consuming accessors.

Tokens are classified once:

- ``--name`` / ``--no-name``  → switch (True / False)
- ``--name=value``            → value option
- anything else               → positional argument

A bare ``--`` ends flag parsing; every later token is positional.
Accessors *consume* what they match so that whatever is left over at the
end of leaf construction can be reported as unknown.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Sequence


class _TokenKind(Enum):
    ARG = auto()
    SWITCH = auto()
    VALUE = auto()


@dataclass
class _Token:
    kind: _TokenKind
    key: str
    value: str | bool
    raw: str


def _tokenize(tokens: Sequence[str]) -> list[_Token]:
    result: list[_Token] = []
    literal = False
    for raw in tokens:
        if literal:
            result.append(_Token(_TokenKind.ARG, raw, raw, raw))
        elif raw == "--":
            literal = True
        elif raw.startswith("--") and len(raw) > 2:
            body = raw[2:]
            if "=" in body:
                key, _, value = body.partition("=")
                result.append(_Token(_TokenKind.VALUE, key, value, raw))
            elif body.startswith("no-"):
                result.append(_Token(_TokenKind.SWITCH, body[3:], False, raw))
            else:
                result.append(_Token(_TokenKind.SWITCH, body, True, raw))
        elif raw.startswith("-") and len(raw) > 1:
            # Short flags are not supported but must still be reported as options.
            result.append(_Token(_TokenKind.SWITCH, raw[1:], True, raw))
        else:
            result.append(_Token(_TokenKind.ARG, raw, raw, raw))
    return result


class Argv:
    """Mutable view over the tokens a command has not consumed yet."""

    def __init__(self, tokens: Sequence[str] = ()) -> None:
        self._tokens = _tokenize(tokens)

    def __repr__(self) -> str:
        return f"Argv({self.remainder!r})"

    @property
    def is_empty(self) -> bool:
        return not self._tokens

    @property
    def remainder(self) -> list[str]:
        """Raw spelling of every unconsumed token, in original order."""
        return [t.raw for t in self._tokens]

    @property
    def arguments(self) -> list[str]:
        return [t.raw for t in self._tokens if t.kind is _TokenKind.ARG]

    @property
    def flags(self) -> list[str]:
        """Raw spelling of every unconsumed switch or value option."""
        return [t.raw for t in self._tokens if t.kind is not _TokenKind.ARG]

    def peek_argument(self) -> str | None:
        for token in self._tokens:
            if token.kind is _TokenKind.ARG:
                return token.raw
        return None

    def shift_argument(self) -> str | None:
        """Remove and return the first positional argument."""
        for i, token in enumerate(self._tokens):
            if token.kind is _TokenKind.ARG:
                del self._tokens[i]
                return token.raw
        return None

    def shift_arguments(self) -> list[str]:
        """Remove and return every positional argument."""
        args = self.arguments
        self._tokens = [t for t in self._tokens if t.kind is not _TokenKind.ARG]
        return args

    def flag(self, name: str, default: bool | None = None) -> bool | None:
        """Consume every ``--name`` / ``--no-name``; the last occurrence wins."""
        return self._consume(_TokenKind.SWITCH, name, default)  # type: ignore[return-value]

    def option(self, name: str, default: str | None = None) -> str | None:
        """Consume every ``--name=value``; the last occurrence wins."""
        return self._consume(_TokenKind.VALUE, name, default)  # type: ignore[return-value]

    def has_flag(self, name: str) -> bool:
        """Non-consuming check for an affirmative ``--name``."""
        return any(
            t.kind is _TokenKind.SWITCH and t.key == name and t.value is True
            for t in self._tokens
        )

    def _consume(self, kind: _TokenKind, name: str, default: str | bool | None) -> str | bool | None:
        value = default
        kept: list[_Token] = []
        for token in self._tokens:
            if token.kind is kind and token.key == name:
                value = token.value
            else:
                kept.append(token)
        self._tokens = kept
        return value
