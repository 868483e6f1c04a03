"""Tests for the injecters module."""

import pytest

from mdlquery.injecters import (
    And,
    Bind,
    Cmp,
    Content,
    Create,
    Equal,
    Fetch,
    From,
    Greater,
    GroupBy,
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
from mdlquery.queries import query
from mdlquery.querybuilder import ClauseKind


class TestInjectProtocol:
    """What a single injecter returns and binds."""

    def test_where_contributions(self):
        """Test what a Where injecter contributes."""
        bindings = {}
        contributions = Where(("name", "John"), "age > 18").inject(bindings)
        assert contributions == [
            (ClauseKind.WHERE, "name = $name"),
            (ClauseKind.WHERE, "age > 18"),
        ]
        assert bindings == {"name": "John"}

    def test_clause_injecters(self):
        """Test what the plain clause injecters contribute."""
        assert Select("a", "b").inject({}) == [
            (ClauseKind.SELECT, "a"),
            (ClauseKind.SELECT, "b"),
        ]
        assert From("user").inject({}) == [(ClauseKind.FROM, "user")]

    def test_when(self):
        """Test disabling an injecter with when."""
        assert Fetch("friends").when(False).inject({}) == []
        assert Fetch("friends").when(True).inject({}) == [(ClauseKind.FETCH, "friends")]

    def test_bind(self):
        """Test binding a value without any clause."""
        bindings = {}
        assert Bind("limit", 5).inject(bindings) == []
        assert bindings == {"limit": 5}


class TestConditions:
    """The forms a ``Where`` condition can take."""

    def test_pair(self):
        """Test a key and value pair."""
        assert query(Where(("name", "John"))) == (
            "WHERE name = $name",
            {"name": "John"},
        )

    def test_pair_with_dotted_key(self):
        """Test a pair on a nested field."""
        assert query(Where(("author.name", "John"))) == (
            "WHERE author.name = $author_name",
            {"author_name": "John"},
        )

    def test_sql_value_is_not_bound(self):
        """Test that raw text on the right is not bound."""
        assert query(Where(("created", Sql("time::now()")))) == (
            "WHERE created = time::now()",
            {},
        )

    def test_sql_condition(self):
        """Test a raw condition."""
        assert query(Where(Sql("count() > 1"))) == ("WHERE count() > 1", {})

    def test_mapping(self):
        """Test a filter mapping as condition."""
        assert query(Where({"name": "John", "address": {"city": "Paris"}})) == (
            "WHERE name = $name AND address.city = $address_city",
            {"name": "John", "address_city": "Paris"},
        )

    def test_comparisons(self):
        """Test the comparison shorthands."""
        assert query(
            Where(Greater("age", 18), Lower("score", 10), Equal("city", "Paris"))
        ) == (
            "WHERE age > $age AND score < $score AND city = $city",
            {"age": 18, "score": 10, "city": "Paris"},
        )

    def test_custom_operator(self):
        """Test a comparison with any operator."""
        assert query(Where(Cmp(">=", "age", 18))) == ("WHERE age >= $age", {"age": 18})

    def test_named_placeholder(self):
        """Test that two comparisons on one key can keep separate bindings."""
        assert query(Where(Greater("age", 18), Lower("age", 65, name="max_age"))) == (
            "WHERE age > $age AND age < $max_age",
            {"age": 18, "max_age": 65},
        )

    def test_same_key_shares_placeholder(self):
        """Test that without a name both comparisons bind ``$age``."""
        assert query(Where(Greater("age", 18), Lower("age", 65))) == (
            "WHERE age > $age AND age < $age",
            {"age": 65},
        )

    def test_or_is_parenthesized(self):
        """Test that Or is wrapped in parentheses."""
        assert query(Where(Or(("a", 1), ("b", 2)), ("c", 3))) == (
            "WHERE (a = $a OR b = $b) AND c = $c",
            {"a": 1, "b": 2, "c": 3},
        )

    def test_or_with_one_member(self):
        """Test that a single-member Or is not wrapped."""
        assert query(Where(Or(("a", 1)))) == ("WHERE a = $a", {"a": 1})

    def test_and_inside_or(self):
        """Test nesting And inside Or."""
        assert query(Where(Or(And(("a", 1), ("b", 2)), "c = 3"))) == (
            "WHERE (a = $a AND b = $b OR c = 3)",
            {"a": 1, "b": 2},
        )

    def test_none_condition(self):
        """Test that a None condition is skipped."""
        assert query(Select("*"), Where(None)) == ("SELECT *", {})

    def test_unsupported_condition(self):
        """Test that an unknown condition raises."""
        with pytest.raises(TypeError):
            query(Where(42))


class TestStatements:
    """Injecters for the other clauses."""

    def test_set(self):
        """Test SET with a pair and an append."""
        assert query(Update("user:1"), Set(("name", "John"), PlusEqual("tags", "new"))) == (
            "UPDATE user:1 SET name = $name , tags += $tags",
            {"name": "John", "tags": "new"},
        )

    def test_set_mapping(self):
        """Test SET from a mapping."""
        assert query(Update("user:1"), Set({"name": "John", "age": 3})) == (
            "UPDATE user:1 SET name = $name , age = $age",
            {"name": "John", "age": 3},
        )

    def test_content(self):
        """Test CONTENT with a bound value."""
        assert query(Create("user"), Content({"name": "John"})) == (
            "CREATE user CONTENT $content",
            {"content": {"name": "John"}},
        )

    def test_content_text(self):
        """Test CONTENT with raw text."""
        assert query(Create("user"), Content("{ name: 'John' }")) == (
            "CREATE user CONTENT { name: 'John' }",
            {},
        )

    def test_relate(self):
        """Test RELATE."""
        assert query(Relate("user:1->like->post:2")) == (
            "RELATE user:1->like->post:2",
            {},
        )

    def test_order_by(self):
        """Test ordering in both directions."""
        assert query(OrderBy.desc("age"), OrderBy.asc("name")) == (
            "ORDER BY age DESC , name ASC",
            {},
        )

    def test_group_by(self):
        """Test GROUP BY."""
        assert query(GroupBy("city", "country")) == ("GROUP BY city , country", {})

    def test_limit_and_start_at(self):
        """Test LIMIT and START AT."""
        assert query(Limit(5), StartAt(10)) == ("LIMIT 5 START AT 10", {})

    def test_raw(self):
        """Test raw clause text."""
        assert query(Raw(ClauseKind.FETCH, "friends"), Raw(ClauseKind.FETCH, None)) == (
            "FETCH friends",
            {},
        )


class TestPagination:
    """``Pagination(start, end)`` covers the rows ``start`` to ``end - 1``."""

    def test_first_page(self):
        """Test a page starting at zero."""
        assert query(Pagination(0, 10)) == ("LIMIT 10", {})

    def test_later_page(self):
        """Test a page further in."""
        assert query(Pagination(10, 30)) == ("LIMIT 20 START AT 10", {})

    def test_from_range(self):
        """Test a page from a range."""
        assert query(Pagination.from_range(range(5, 10))) == ("LIMIT 5 START AT 5", {})

    def test_end_before_start(self):
        """Test that a page cannot end before it starts."""
        with pytest.raises(ValueError):
            Pagination(10, 5)
