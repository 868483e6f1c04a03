"""Model definitions, query building and foreign references for SurrealQL-style queries."""

from mdlquery.ast_nodes import (
    Direction,
    ForeignNode,
    Identifier,
    Model,
    OptionFlag,
    Property,
    Relation,
)
from mdlquery.exceptions import (
    DeserializationShapeError,
    DuplicateFieldError,
    FilterShapeError,
    KeyDerivationError,
    LexError,
    MdlQueryError,
    ParseError,
    SchemaError,
)
from mdlquery.filters import flatten_filter, param_name
from mdlquery.foreign import (
    ForeignReference,
    Keyed,
    KeyedRecord,
    MaybeForeign,
    allow_value_serialize,
    derive_key,
)
from mdlquery.injecters import (
    And,
    Bind,
    Cmp,
    Content,
    Create,
    Delete,
    Equal,
    Fetch,
    From,
    Greater,
    GroupBy,
    Injecter,
    Limit,
    Lower,
    Or,
    OrderBy,
    Pagination,
    PlusEqual,
    Raw,
    Relate,
    Select,
    Set,
    Sql,
    StartAt,
    Update,
    Where,
)
from mdlquery.mdl_lexer import Lexer, tokenize
from mdlquery.mdl_parser import Parser, parse_model
from mdlquery.queries import bindings, create, delete, query, select, update
from mdlquery.querybuilder import ClauseKind, QueryBuilder, QuerySegment
from mdlquery.schema import Schema, SchemaField, SchemaRegistry, SetObject

__version__ = "0.1.0"
