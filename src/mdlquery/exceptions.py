"""Custom exceptions for the mdlquery package.

This module defines the exception classes raised while lexing and parsing
model definitions, while flattening filter objects into query conditions,
and while converting foreign references to and from their wire form.
"""

from __future__ import annotations

from typing import Iterable, Optional


class MdlQueryError(Exception):
    """Base class for every error raised by mdlquery.

    Attributes:
        message: Human-readable error message.
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class LexError(MdlQueryError):
    """Exception raised when the lexer meets a character it does not know.

    Attributes:
        message: Human-readable error message.
        position: Offset of the offending character in the source.
        line: 1-based line of the offending character.
        column: 1-based column of the offending character.
    """

    def __init__(self, character: str, position: int, line: int, column: int):
        """Initialize the exception from the offending character.

        Args:
            character: The character that could not be tokenized.
            position: Offset of the character in the source text.
            line: 1-based line number.
            column: 1-based column number.
        """
        self.character = character
        self.position = position
        self.line = line
        self.column = column
        super().__init__(
            f"Illegal character {character!r} at line {line}, column {column}"
        )


class ParseError(MdlQueryError):
    """Exception raised when the parser meets a token the grammar rejects.

    Attributes:
        message: Human-readable error message.
        token: Type of the offending token, ``None`` at end of input.
        value: Source text of the offending token, ``None`` at end of input.
        position: Offset of the offending token in the source.
        expected: Token types that would have been accepted instead.
    """

    def __init__(
        self,
        token: Optional[str],
        value: Optional[str],
        position: int,
        expected: Iterable[str] = (),
        message: Optional[str] = None,
    ):
        self.token = token
        self.value = value
        self.position = position
        self.expected = frozenset(expected)
        if message is None:
            found = "end of input" if token is None else f"{token} {value!r}"
            message = f"Unexpected {found} at position {position}"
            if self.expected:
                message += f", expected one of: {', '.join(sorted(self.expected))}"
        super().__init__(message)


class DuplicateFieldError(ParseError):
    """Exception raised when a model declares two fields with the same name."""

    def __init__(self, model_name: str, field_name: str):
        self.model_name = model_name
        self.field_name = field_name
        super().__init__(
            token="ID",
            value=field_name,
            position=-1,
            message=f"Field {field_name!r} is declared twice in model {model_name!r}",
        )


class KeyDerivationError(MdlQueryError):
    """Exception raised when a loaded foreign value cannot produce its key.

    This happens when a referenced record has no identifier yet, or when
    its type offers no way to turn itself into a key.
    """


class FilterShapeError(MdlQueryError, ValueError):
    """Exception raised when a filter object holds an unsupported key or leaf."""


class DeserializationShapeError(MdlQueryError, ValueError):
    """Exception raised when a foreign reference's wire value has the wrong shape.

    A reference accepts a bare key, a nested object, or (only where the field
    allows it) a null value.
    """


class SchemaError(MdlQueryError):
    """Exception raised when a schema refers to a model or field it cannot find."""
