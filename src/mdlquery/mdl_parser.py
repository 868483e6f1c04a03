"""
Parser
======

LALR grammar for the model definition language, built with ``ply.yacc``.

The ``p_*`` functions below are the grammar rules; each one's docstring is the
production it reduces. ``field_list`` and ``identifier_list`` share one rule
factory, ``_trailing_comma_list``, which accepts zero or more items with an
optional trailing comma.

A field is tried as an incoming relation, then an outgoing relation, then a
foreign node, and falls back to a plain property. The edge arrows and the
``<`` after the field name are what tell them apart, so the grammar is
unambiguous and needs a single token of lookahead.
"""

from __future__ import annotations

import sys
from typing import Any, Callable, Iterable, Optional, Tuple

import ply.lex as lex
import ply.yacc as yacc  # type: ignore

from mdlquery.ast_nodes import (
    Direction,
    ForeignNode,
    Identifier,
    Model,
    Property,
    Relation,
)
from mdlquery.exceptions import DuplicateFieldError, ParseError
from mdlquery.logger import LOGGER
from mdlquery.mdl_lexer import Lexer, lexer, tokens  # pylint: disable=unused-import

start = "model"


class _UnexpectedToken(Exception):
    """Raised from ``p_error`` so that ``Parser`` can build the ``ParseError``."""

    def __init__(self, token: Optional[lex.LexToken]):
        self.token = token
        super().__init__(token)


def p_model(p: yacc.YaccProduction):
    """model : identifier model_alias model_options LCURLY field_list RCURLY"""
    p[0] = Model(
        name=p[1],
        alias=p[2],
        options=frozenset(option.value for option in p[3]),
        fields=p[5],
    )


def p_model_alias(p: yacc.YaccProduction):
    """model_alias : AS identifier
    | empty"""
    p[0] = p[2] if len(p) == 3 else None


def p_model_options(p: yacc.YaccProduction):
    """model_options : WITH LPAREN identifier_list RPAREN
    | empty"""
    p[0] = p[3] if len(p) == 5 else []


def p_field(p: yacc.YaccProduction):
    """field : foreign_relation
    | outgoing_relation
    | foreign_node
    | property"""
    p[0] = p[1]


def p_foreign_relation(p: yacc.YaccProduction):
    """foreign_relation : visibility INCOMING identifier INCOMING identifier AS identifier"""
    p[0] = Relation(
        name=p[3],
        foreign_type=p[5],
        alias=p[7],
        direction=Direction.INCOMING,
        is_public=p[1],
    )


def p_outgoing_relation(p: yacc.YaccProduction):
    """outgoing_relation : visibility OUTGOING identifier OUTGOING identifier AS identifier"""
    p[0] = Relation(
        name=p[3],
        foreign_type=p[5],
        alias=p[7],
        direction=Direction.OUTGOING,
        is_public=p[1],
    )


def p_foreign_node(p: yacc.YaccProduction):
    """foreign_node : visibility identifier LESSTHAN identifier GREATERTHAN"""
    p[0] = ForeignNode(name=p[2], foreign_type=p[4], is_public=p[1])


def p_property(p: yacc.YaccProduction):
    """property : visibility identifier"""
    p[0] = Property(name=p[2], is_public=p[1])


def p_visibility(p: yacc.YaccProduction):
    """visibility : PUB
    | empty"""
    p[0] = p[1] is not None


def p_identifier(p: yacc.YaccProduction):
    """identifier : ID
    | RAW ID
    | RAW AS
    | RAW WITH
    | RAW PUB"""
    if len(p) == 2:
        p[0] = Identifier(value=p[1])
    else:
        p[0] = Identifier(value=p[2], is_raw_literal=True)


def p_empty(p: yacc.YaccProduction):
    """empty :"""
    p[0] = None


def _trailing_comma_list(symbol: str, item: str) -> Tuple[Callable, Callable]:
    """Make the two rules for a comma separated list of ``item``.

    The list may be empty and may end with a comma. It reduces to a Python
    list under the name ``symbol``; ``symbol_items`` is the helper
    nonterminal for the non-empty part.
    """
    items = f"{symbol}_items"

    def p_list(p: yacc.YaccProduction):
        p[0] = [] if p[1] is None else p[1]

    def p_items(p: yacc.YaccProduction):
        if len(p) == 2:
            p[0] = [p[1]]
        else:
            p[0] = p[1]
            p[0].append(p[3])

    p_list.__doc__ = f"""{symbol} : empty
    | {items}
    | {items} COMMA"""
    p_items.__doc__ = f"""{items} : {item}
    | {items} COMMA {item}"""
    return p_list, p_items


p_field_list, p_field_list_items = _trailing_comma_list("field_list", "field")
p_identifier_list, p_identifier_list_items = _trailing_comma_list(
    "identifier_list", "identifier"
)


def p_error(p: Optional[lex.LexToken]):
    raise _UnexpectedToken(p)


def _check_unique_fields(model: Model) -> None:
    seen = set()
    for field in model.fields:
        if field.attribute in seen:
            raise DuplicateFieldError(model.name.value, field.attribute.value)
        seen.add(field.attribute)


class Parser:
    """LALR parser for one start symbol of the grammar.

    The default start symbol is ``model``. Other nonterminals, such as
    ``identifier_list``, can be used as the start symbol to parse a fragment
    on its own.
    """

    def __init__(self, start: str = start):  # pylint: disable=redefined-outer-name
        self.start = start
        self._lr: yacc.LRParser = yacc.yacc(
            module=sys.modules[__name__],
            start=start,
            debug=False,
            write_tables=False,
            errorlog=yacc.NullLogger(),
        )

    def __repr__(self) -> str:
        return f"Parser(start={self.start!r})"

    def parse(self, token_stream: Iterable[lex.LexToken]) -> Any:
        """Parse a token sequence into the AST of the start symbol.

        Raises ``ParseError`` at the first token the grammar cannot accept,
        and ``DuplicateFieldError`` when a parsed model repeats a field name.
        """
        iterator = iter(token_stream)
        consumed = []

        def next_token() -> Optional[lex.LexToken]:
            token = next(iterator, None)
            if token is not None:
                consumed.append(token)
            return token

        try:
            result = self._lr.parse(lexer=lexer, tokenfunc=next_token)
        except _UnexpectedToken as error:
            raise self._parse_error(error.token, consumed[-1] if consumed else None) from None
        if isinstance(result, Model):
            _check_unique_fields(result)
            LOGGER.debug(
                "Parsed model %s with %s fields", result.name.value, len(result.fields)
            )
        return result

    def expected_tokens(self) -> frozenset:
        """Token names the failing parser state would have accepted."""
        state = getattr(self._lr, "state", None)
        actions = self._lr.action.get(state, {}) if state is not None else {}
        return frozenset(actions.keys())

    def _parse_error(
        self, token: Optional[lex.LexToken], last: Optional[lex.LexToken]
    ) -> ParseError:
        expected = self.expected_tokens()
        if token is None:
            position = 0 if last is None else last.lexpos + len(str(last.value))
            return ParseError(None, None, position, expected)
        return ParseError(token.type, token.value, token.lexpos, expected)


MDL_PARSER = Parser()


def parse_model(source: str) -> Model:
    """Lex and parse one MDL model definition."""
    return MDL_PARSER.parse(Lexer(source))

