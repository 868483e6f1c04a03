'''
Lexer
=====

This uses the ``PLY`` package to define the lexer for the model definition
language (MDL). "Lexing" is the process of breaking a string into tokens.
This is the first step in the process of parsing a model definition.

Function rules are tried in the order they are defined, which gives the
precedence: comments, integers, the raw-literal marker, the edge arrows,
then identifiers (keywords are looked up in ``reserved``). Punctuation is
matched last.

The lexer itself is defined at the end of the file (``lexer = lex.lex()``).
Use ``Lexer`` or ``tokenize`` rather than the module-level lexer, which
keeps state between calls.
'''

from __future__ import annotations

from typing import Any, Iterator, List

import ply.lex as lex

from mdlquery.exceptions import LexError
from mdlquery.logger import LOGGER

tokens = [
    "COMMA",
    "GREATERTHAN",
    "ID",
    "INCOMING",
    "INTEGER",
    "LCURLY",
    "LESSTHAN",
    "LPAREN",
    "OUTGOING",
    "RAW",
    "RCURLY",
    "RPAREN",
]

reserved = {
    "as": "AS",
    "pub": "PUB",
    "with": "WITH",
}

tokens = tokens + list(reserved.values())


def t_LINE_COMMENT(t: lex.LexToken) -> None:
    r"//[^\n]*"


def t_BLOCK_COMMENT(t: lex.LexToken) -> None:
    r"/\*(.|\n)*?\*/"
    t.lexer.lineno += t.value.count("\n")


def t_INTEGER(t: lex.LexToken) -> Any:
    r"\d+\b"
    return t


def t_RAW(t: lex.LexToken) -> Any:
    r"r\#"
    return t


def t_OUTGOING(t: lex.LexToken) -> Any:
    r"->"
    return t


def t_INCOMING(t: lex.LexToken) -> Any:
    r"<-"
    return t


def t_newline(t: lex.LexToken) -> None:
    r"\n+"
    t.lexer.lineno += len(t.value)


def t_ID(t: lex.LexToken) -> Any:
    r"\w+"
    t.type = reserved.get(t.value, "ID")  # Check for reserved words
    return t


t_COMMA = r","
t_GREATERTHAN = r">"
t_LCURLY = r"\{"
t_LESSTHAN = r"<"
t_LPAREN = r"\("
t_RCURLY = r"\}"
t_RPAREN = r"\)"

t_ignore = " \t\r"


def column(source: str, position: int) -> int:
    """1-based column of ``position`` within its line of ``source``."""
    return position - source.rfind("\n", 0, position)


def t_error(t: lex.LexToken):
    """Stop at the first character no rule accepts."""
    raise LexError(
        t.value[0],
        t.lexpos,
        t.lexer.lineno,
        column(t.lexer.lexdata, t.lexpos),
    )


lexer = lex.lex()


class Lexer:
    """A lazy, restartable token sequence over one MDL source text.

    Every call to ``iter()`` starts from the beginning of the source with a
    fresh copy of the module lexer, so the same ``Lexer`` can be walked any
    number of times.
    """

    def __init__(self, source: str):
        self.source = source

    def __iter__(self) -> Iterator[lex.LexToken]:
        scanner = lexer.clone()
        scanner.lineno = 1
        scanner.input(self.source)
        while True:
            token = scanner.token()
            if token is None:
                return
            yield token

    def __repr__(self) -> str:
        return f"Lexer({self.source!r})"


def tokenize(source: str) -> List[lex.LexToken]:
    """Return every token of ``source`` as a list."""
    token_list = list(Lexer(source))
    LOGGER.debug("Tokenized %s characters into %s tokens", len(source), len(token_list))
    return token_list
