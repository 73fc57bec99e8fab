"""
Unit tests for data.condition module.

Tests:
- Condition evaluation with type coercion
- Relation comparisons by primary value
- ConditionList left-to-right AND/OR chaining
- ConditionParser expressions and rejected input
"""

from typing import Any

import pytest

from snapweb.data.condition import Condition, ConditionList, ConditionParser, Operator
from snapweb.data.entity import Entity
from snapweb.data.row import Row


@pytest.fixture
def bob(memory_site: Any, person_entity: Entity) -> Row:
    row = Row(memory_site, person_entity)
    row.init_values({"id": 1, "name": "Bob", "age": 42})
    return row


# ============================================================================
# Condition Tests
# ============================================================================


class TestCondition:
    """Single comparisons against a row."""

    @pytest.mark.parametrize(
        ("property_name", "op", "value", "expected"),
        [
            ("name", Operator.EQUALS, "Bob", True),
            ("name", Operator.NOT_EQUALS, "Bob", False),
            ("age", Operator.GREATER_THAN, "30", True),
            ("age", Operator.LESS_THAN, 42, False),
            ("age", Operator.LESS_THAN_OR_EQUAL, 42, True),
            ("age", Operator.GREATER_THAN_OR_EQUAL, 43, False),
            ("name", Operator.LESS_THAN, "Carol", True),
        ],
    )
    def test_evaluate(
        self, bob: Row, property_name: str, op: Operator, value: Any, expected: bool
    ) -> None:
        assert Condition(property_name, op, value).evaluate(bob) is expected

    def test_missing_value_never_orders(self, bob: Row) -> None:
        assert Condition("friend", Operator.GREATER_THAN, 3).evaluate(bob) is False

    @pytest.mark.parametrize("op", [Operator.EQUALS, Operator.NOT_EQUALS, Operator.GREATER_THAN])
    def test_unconvertible_value_never_matches(self, bob: Row, op: Operator) -> None:
        assert Condition("age", op, "unknown").evaluate(bob) is False

    def test_unconvertible_relation_key_never_matches(
        self, memory_site: Any, stored_person: Entity, bob: Row
    ) -> None:
        alice = Row(memory_site, stored_person)
        alice.init_values({"id": 7})
        bob.put("friend", alice)

        assert Condition("friend", Operator.EQUALS, "seven").evaluate(bob) is False

    def test_unknown_property_compares_raw(self, bob: Row) -> None:
        assert Condition("nickname", Operator.EQUALS, None).evaluate(bob) is True

    def test_rejects_logical_operator(self) -> None:
        with pytest.raises(ValueError, match="comparison"):
            Condition("a", Operator.AND, 1)

    def test_accepts_operator_name(self) -> None:
        assert Condition("a", "NotEquals", 1).operator is Operator.NOT_EQUALS  # type: ignore[arg-type]

    def test_equality(self) -> None:
        assert Condition("a", Operator.EQUALS, 1) == Condition("a", Operator.EQUALS, 1)
        assert Condition("a", Operator.EQUALS, 1) != Condition("a", Operator.EQUALS, 2)

    def test_relation_compares_primary_value(
        self, memory_site: Any, stored_person: Entity, bob: Row
    ) -> None:
        alice = Row(memory_site, stored_person)
        alice.init_values({"id": 7, "name": "Alice"})
        bob.put("friend", alice)

        assert Condition("friend", Operator.EQUALS, "7").evaluate(bob) is True
        assert Condition("friend", Operator.EQUALS, 8).evaluate(bob) is False


# ============================================================================
# ConditionList Tests
# ============================================================================


def _chain(*items: tuple[Operator, bool]) -> ConditionList:
    """Build a list of constant conditions on ``id`` (which is 1)."""
    conditions = ConditionList()
    for op, result in items:
        conditions.add_condition(op, Condition("id", Operator.EQUALS, 1 if result else 2))
    return conditions


class TestConditionList:
    """AND/OR chains."""

    def test_empty_is_true(self, bob: Row) -> None:
        assert ConditionList().evaluate(bob) is True

    def test_and(self, bob: Row) -> None:
        assert _chain((Operator.AND, True), (Operator.AND, True)).evaluate(bob) is True
        assert _chain((Operator.AND, True), (Operator.AND, False)).evaluate(bob) is False

    def test_or(self, bob: Row) -> None:
        assert _chain((Operator.OR, False), (Operator.OR, True)).evaluate(bob) is True

    def test_left_to_right(self, bob: Row) -> None:
        # (True or False) and False
        chain = _chain((Operator.AND, True), (Operator.OR, False), (Operator.AND, False))
        assert chain.evaluate(bob) is False

    def test_rejects_comparison_operator(self) -> None:
        with pytest.raises(ValueError, match="And or Or"):
            ConditionList().add_condition(Operator.EQUALS, Condition("a", Operator.EQUALS, 1))

    def test_accessors(self) -> None:
        chain = _chain((Operator.AND, True), (Operator.OR, False))
        assert len(chain) == 2
        assert chain.operators == [Operator.AND, Operator.OR]
        assert chain.conditions[1] == Condition("id", Operator.EQUALS, 2)


# ============================================================================
# Parser Tests
# ============================================================================


class TestConditionParser:
    """Key-chain expression parsing."""

    def test_single_comparison(self) -> None:
        assert ConditionParser.parse("name == 'Bob'") == Condition("name", Operator.EQUALS, "Bob")

    def test_and_expression(self) -> None:
        parsed = ConditionParser.parse("name == 'Bob' and age > 30")
        assert isinstance(parsed, ConditionList)
        assert parsed.operators == [Operator.AND, Operator.AND]
        assert parsed.conditions == [
            Condition("name", Operator.EQUALS, "Bob"),
            Condition("age", Operator.GREATER_THAN, 30),
        ]

    def test_symbolic_connectives_and_single_equals(self) -> None:
        parsed = ConditionParser.parse("Age >= 18 && Country = 'NZ' || x != 1")
        assert isinstance(parsed, ConditionList)
        assert parsed.operators == [Operator.OR, Operator.OR]
        first = parsed.conditions[0]
        assert isinstance(first, ConditionList)
        assert first.conditions == [
            Condition("Age", Operator.GREATER_THAN_OR_EQUAL, 18),
            Condition("Country", Operator.EQUALS, "NZ"),
        ]
        assert parsed.conditions[1] == Condition("x", Operator.NOT_EQUALS, 1)

    def test_parentheses(self) -> None:
        parsed = ConditionParser.parse("(a = 1 or b = 2) and c <= 3")
        assert isinstance(parsed, ConditionList)
        assert isinstance(parsed.conditions[0], ConditionList)
        assert parsed.conditions[1] == Condition("c", Operator.LESS_THAN_OR_EQUAL, 3)

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("address.city == Paris", Condition("address.city", Operator.EQUALS, "Paris")),
            ("x > -5", Condition("x", Operator.GREATER_THAN, -5)),
            ("ok == True", Condition("ok", Operator.EQUALS, True)),
            ("ratio < 0.5", Condition("ratio", Operator.LESS_THAN, 0.5)),
            ("note != null", Condition("note", Operator.NOT_EQUALS, None)),
            ('title == "x y"', Condition("title", Operator.EQUALS, "x y")),
            ("AND_count >= 2", Condition("AND_count", Operator.GREATER_THAN_OR_EQUAL, 2)),
        ],
    )
    def test_operands(self, text: str, expected: Condition) -> None:
        assert ConditionParser.parse(text) == expected

    def test_parsed_condition_evaluates(self, bob: Row) -> None:
        assert ConditionParser.parse("name = 'Bob' && age > 40").evaluate(bob) is True
        assert ConditionParser.parse("name = 'Bob' && age > 50").evaluate(bob) is False

    @pytest.mark.parametrize(
        ("text", "message"),
        [
            ("a in [1]", "unexpected 'in'"),
            ("a < b < c", "unexpected '<'"),
            ("not a == 1", "unexpected 'a'"),
            ("1 == a", "unexpected 1"),
            ("a == b + 1", "illegal character '\\+'"),
            ("a ==", "unexpected end of expression"),
            ("(a == 1", "unexpected end of expression"),
        ],
    )
    def test_rejected(self, text: str, message: str) -> None:
        with pytest.raises(ValueError, match=message):
            ConditionParser.parse(text)
