"""
Row predicates and a parser for boolean key-chain expressions.

A [Condition][snapweb.data.condition.Condition] compares one property of a
row against a value. A [ConditionList][snapweb.data.condition.ConditionList]
chains conditions with AND/OR, evaluated left to right.
[ConditionParser][snapweb.data.condition.ConditionParser] turns text such
as ``name == 'Bob' and age > 30`` into these objects with a PLY grammar.

Examples:
    ```python
    cond = ConditionParser.parse("Age >= 18 && Country = 'NZ'")
    cond.evaluate(row)
    ```
"""

from __future__ import annotations

import operator
import re
import threading
from collections.abc import Callable
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from ply.lex import lex
from ply.yacc import NullLogger, yacc


if TYPE_CHECKING:
    from ply.lex import Lexer, LexToken
    from ply.yacc import LRParser, YaccProduction

    from .row import Row


class Operator(StrEnum):
    """Comparison and logical operators."""

    EQUALS = "Equals"
    NOT_EQUALS = "NotEquals"
    LESS_THAN = "LessThan"
    LESS_THAN_OR_EQUAL = "LessThanOrEqual"
    GREATER_THAN = "GreaterThan"
    GREATER_THAN_OR_EQUAL = "GreaterThanOrEqual"
    AND = "And"
    OR = "Or"


_COMPARATORS: dict[Operator, Callable[[Any, Any], bool]] = {
    Operator.EQUALS: operator.eq,
    Operator.NOT_EQUALS: operator.ne,
    Operator.LESS_THAN: operator.lt,
    Operator.LESS_THAN_OR_EQUAL: operator.le,
    Operator.GREATER_THAN: operator.gt,
    Operator.GREATER_THAN_OR_EQUAL: operator.ge,
}

_SYMBOLS: dict[Operator, str] = {
    Operator.EQUALS: "==",
    Operator.NOT_EQUALS: "!=",
    Operator.LESS_THAN: "<",
    Operator.LESS_THAN_OR_EQUAL: "<=",
    Operator.GREATER_THAN: ">",
    Operator.GREATER_THAN_OR_EQUAL: ">=",
}


class Condition:
    """``property_name <operator> value`` evaluated against a row."""

    def __init__(self, property_name: str, op: Operator, value: Any) -> None:
        if op not in _COMPARATORS:
            raise ValueError(f"Condition operator must be a comparison, got {op}")
        self.property_name = property_name
        self.operator = Operator(op)
        self.value = value

    def __repr__(self) -> str:
        return f"Condition({self.property_name} {_SYMBOLS[self.operator]} {self.value!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Condition):
            return NotImplemented
        return (self.property_name, self.operator, self.value) == (
            other.property_name,
            other.operator,
            other.value,
        )

    __hash__ = None  # type: ignore[assignment]

    def evaluate(self, row: Row) -> bool:
        """Return whether *row* satisfies this condition.

        The expected value is coerced to the property's type. Related rows
        compare by their primary value. Incomparable values never match.
        """
        prop = row.entity.get_property(self.property_name)
        actual = row.get_storage_value(self.property_name)
        expected = self.value
        try:
            if prop is not None and prop.is_relation:
                target = prop.get_relation_entity()
                if target is not None and target.primary is not None:
                    expected = target.primary.convert_value(expected)
            elif prop is not None:
                expected = prop.convert_value(expected)
            return bool(_COMPARATORS[self.operator](actual, expected))
        except (TypeError, ValueError):
            return False


class ConditionList:
    """Conditions chained with AND/OR, evaluated left to right."""

    def __init__(self) -> None:
        self._items: list[tuple[Operator, Condition | ConditionList]] = []

    def __repr__(self) -> str:
        parts: list[str] = []
        for index, (op, cond) in enumerate(self._items):
            if index:
                parts.append(op.lower())
            parts.append(repr(cond))
        return f"ConditionList({' '.join(parts)})"

    def __len__(self) -> int:
        return len(self._items)

    @property
    def conditions(self) -> list[Condition | ConditionList]:
        return [cond for _, cond in self._items]

    @property
    def operators(self) -> list[Operator]:
        """Operator joining each condition to the ones before it."""
        return [op for op, _ in self._items]

    def add_condition(self, op: Operator, condition: Condition | ConditionList) -> None:
        if op not in (Operator.AND, Operator.OR):
            raise ValueError(f"ConditionList operator must be And or Or, got {op}")
        self._items.append((Operator(op), condition))

    def evaluate(self, row: Row) -> bool:
        result = True
        for index, (op, cond) in enumerate(self._items):
            value = cond.evaluate(row)
            if index == 0:
                result = value
            elif op is Operator.AND:
                result = result and value
            else:
                result = result or value
        return result


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

_RESERVED: dict[str, str] = {
    "and": "AND",
    "or": "OR",
    "true": "TRUE",
    "false": "FALSE",
    "null": "NULL",
    "none": "NULL",
}

_ESCAPE = re.compile(r"\\(.)")


class _ConditionLexer:
    """PLY lexer for key-chain expressions."""

    tokens = (
        "KEY",
        "STRING",
        "FLOAT",
        "NUM",
        "TRUE",
        "FALSE",
        "NULL",
        "AND",
        "OR",
        "LPAREN",
        "RPAREN",
        "EQ",
        "NEQ",
        "LT",
        "LTE",
        "GT",
        "GTE",
    )

    t_AND = r"&&"
    t_OR = r"\|\|"
    t_LPAREN = r"\("
    t_RPAREN = r"\)"
    t_EQ = r"==|="
    t_NEQ = r"!="
    t_LTE = r"<="
    t_LT = r"<"
    t_GTE = r">="
    t_GT = r">"
    t_ignore = " \t\r\n"

    def t_KEY(self, token: LexToken) -> LexToken:
        r"[A-Za-z_]\w*(\.[A-Za-z_]\w*)*"
        token.type = _RESERVED.get(token.value.lower(), "KEY")
        if token.type in ("TRUE", "FALSE", "NULL"):
            token.value = {"TRUE": True, "FALSE": False, "NULL": None}[token.type]
        return token

    def t_STRING(self, token: LexToken) -> LexToken:
        r"'([^'\\]|\\.)*'|\"([^\"\\]|\\.)*\""
        token.value = _ESCAPE.sub(r"\1", token.value[1:-1])
        return token

    def t_FLOAT(self, token: LexToken) -> LexToken:
        r"-?(\d+\.\d*|\.\d+)([eE][-+]?\d+)?"
        token.value = float(token.value)
        return token

    def t_NUM(self, token: LexToken) -> LexToken:
        r"-?\d+"
        token.value = int(token.value)
        return token

    def t_error(self, token: LexToken) -> None:
        raise ValueError(f"illegal character {token.value[0]!r}")


class _ConditionGrammar:
    """PLY grammar building conditions; AND binds tighter than OR."""

    tokens = _ConditionLexer.tokens
    start = "statement"

    def p_statement(self, production: YaccProduction) -> None:
        """statement : disjunction"""
        production[0] = _chain(Operator.OR, production[1])

    def p_disjunction_or(self, production: YaccProduction) -> None:
        """disjunction : disjunction OR conjunction"""
        production[0] = [*production[1], _chain(Operator.AND, production[3])]

    def p_disjunction(self, production: YaccProduction) -> None:
        """disjunction : conjunction"""
        production[0] = [_chain(Operator.AND, production[1])]

    def p_conjunction_and(self, production: YaccProduction) -> None:
        """conjunction : conjunction AND term"""
        production[0] = [*production[1], production[3]]

    def p_conjunction(self, production: YaccProduction) -> None:
        """conjunction : term"""
        production[0] = [production[1]]

    def p_term_group(self, production: YaccProduction) -> None:
        """term : LPAREN disjunction RPAREN"""
        production[0] = _chain(Operator.OR, production[2])

    def p_term_comparison(self, production: YaccProduction) -> None:
        """
        term : KEY EQ value
             | KEY NEQ value
             | KEY LT value
             | KEY LTE value
             | KEY GT value
             | KEY GTE value
        """
        op = _TOKEN_OPERATORS[production.slice[2].type]
        production[0] = Condition(production[1], op, production[3])

    def p_value(self, production: YaccProduction) -> None:
        """
        value : STRING
              | FLOAT
              | NUM
              | TRUE
              | FALSE
              | NULL
              | KEY
        """
        production[0] = production[1]

    def p_error(self, production: YaccProduction | None) -> None:
        if production is None:
            raise ValueError("unexpected end of expression")
        raise ValueError(f"unexpected {production.value!r}")


_TOKEN_OPERATORS: dict[str, Operator] = {
    "EQ": Operator.EQUALS,
    "NEQ": Operator.NOT_EQUALS,
    "LT": Operator.LESS_THAN,
    "LTE": Operator.LESS_THAN_OR_EQUAL,
    "GT": Operator.GREATER_THAN,
    "GTE": Operator.GREATER_THAN_OR_EQUAL,
}


def _chain(op: Operator, items: list[Condition | ConditionList]) -> Condition | ConditionList:
    if len(items) == 1:
        return items[0]
    conditions = ConditionList()
    for item in items:
        conditions.add_condition(op, item)
    return conditions


class ConditionParser:
    """Parse key-chain expressions into conditions.

    Supports the comparisons ``== = != < <= > >=`` and the connectives
    ``and``/``&&`` and ``or``/``||`` with parentheses. Operands are a
    dotted key on the left and a literal (or bare word) on the right.
    """

    _lock = threading.Lock()
    _lexer: Lexer | None = None
    _parser: LRParser | None = None

    @classmethod
    def parse(cls, text: str) -> Condition | ConditionList:
        """Parse *text*.

        Raises:
            ValueError: If the expression is malformed.
        """
        # PLY lexers and parsers keep per-parse state on the instance
        with cls._lock:
            if cls._parser is None:
                cls._lexer = lex(module=_ConditionLexer(), errorlog=NullLogger())
                cls._parser = yacc(
                    module=_ConditionGrammar(),
                    debug=False,
                    write_tables=False,
                    errorlog=NullLogger(),
                )
            try:
                return cls._parser.parse(text, lexer=cls._lexer.clone())
            except ValueError as e:
                raise ValueError(f"Invalid condition {text!r}: {e}") from None
