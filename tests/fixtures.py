"""
Fixtures for the unit tests.
"""
# pylint: disable=redefined-outer-name,too-few-public-methods

from typing import Optional

import pytest
from pydantic import BaseModel, Field

from mdlquery.foreign import ForeignReference, KeyedRecord, MaybeForeign
from mdlquery.mdl_parser import parse_model
from mdlquery.schema import SchemaRegistry

ACCOUNT_SOURCE = "Account { id, pub handle, ->manage->Project as projects }"

PROJECT_SOURCE = "Project as project { id, pub name }"

USER_SOURCE = """
User as user with(partial) {
  id,
  pub name,
  pub email,
}
"""

POST_SOURCE = """
// a blog post
Post {
  id,
  pub title,
  pub author<User>,
  /* edges */
  <-like<-User as likers,
}
"""

ROUND_TRIP_SOURCES = [
    "Empty {}",
    "Empty as empty with() {}",
    ACCOUNT_SOURCE,
    PROJECT_SOURCE,
    USER_SOURCE,
    POST_SOURCE,
    "r#as as r#with with(partial, audited,) { r#pub, pub r#as<r#with>, }",
    "Mixed { a, pub b<B>, ->c->C as cs, pub <-d<-D as ds, e }",
]


class User(KeyedRecord, BaseModel):
    id: Optional[str] = None
    name: str


class Post(BaseModel):
    id: Optional[str] = None
    title: str
    author: ForeignReference[User]
    editor: MaybeForeign[User] = Field(default_factory=ForeignReference)


@pytest.fixture
def account_model():
    """The parsed ``Account`` model."""
    return parse_model(ACCOUNT_SOURCE)


@pytest.fixture
def registry():
    """A registry holding every sample model."""
    schemas = SchemaRegistry()
    for source in (ACCOUNT_SOURCE, PROJECT_SOURCE, USER_SOURCE, POST_SOURCE):
        schemas.define(source)
    return schemas


@pytest.fixture
def john():
    """A user record with a key."""
    return User(id="user:john", name="John")
