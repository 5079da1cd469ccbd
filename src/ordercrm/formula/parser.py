"""Formula parser for order formulas.

Tokenizes and structurally validates formula text, then parses it into an
AST using Lark.
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache
from typing import Any

from lark import Lark, Transformer, v_args
from lark.exceptions import UnexpectedInput

from ordercrm.core.exceptions import (
    MisplacedOperatorError,
    UnbalancedParenthesesError,
    UnresolvedReferenceError,
)
from ordercrm.formula.grammar import FORMULA_GRAMMAR

NAME = "NAME"
NUMBER = "NUMBER"
OPERATOR = "OPERATOR"
LPAREN = "LPAREN"
RPAREN = "RPAREN"

_TOKEN_RE = re.compile(
    r"""
      (?P<NAME>[A-Za-z_][A-Za-z0-9_]*)
    | (?P<NUMBER>\d+\.?\d*|\.\d+)
    | (?P<OPERATOR>[+\-*/])
    | (?P<LPAREN>\()
    | (?P<RPAREN>\))
    | (?P<WS>\s+)
    | (?P<MISMATCH>.)
    """,
    re.VERBOSE | re.DOTALL,
)

# Lark names for the anonymous operator terminals
_OPERATOR_TERMINALS = frozenset({"PLUS", "MINUS", "STAR", "SLASH"})


@dataclass(frozen=True)
class Token:
    type: str
    value: str
    position: int


# AST Node types
@dataclass(frozen=True)
class NumberNode:
    value: Decimal


@dataclass(frozen=True)
class FieldRefNode:
    field_name: str


@dataclass(frozen=True)
class BinaryOpNode:
    operator: str
    left: Any
    right: Any


class FormulaTransformer(Transformer):
    """Transform Lark parse tree into AST nodes."""

    @v_args(inline=True)
    def number(self, token):
        return NumberNode(Decimal(str(token)))

    @v_args(inline=True)
    def field_ref(self, token):
        return FieldRefNode(str(token))

    @v_args(inline=True)
    def add(self, left, right):
        return BinaryOpNode("+", left, right)

    @v_args(inline=True)
    def sub(self, left, right):
        return BinaryOpNode("-", left, right)

    @v_args(inline=True)
    def mul(self, left, right):
        return BinaryOpNode("*", left, right)

    @v_args(inline=True)
    def div(self, left, right):
        return BinaryOpNode("/", left, right)


class FormulaParser:
    """
    Parser for order formulas.

    ``parse`` runs the full pipeline: tokenize, check parentheses and
    operator placement, then build the AST. Each stage raises its own
    ``FormulaError`` subclass so callers can tell the failures apart.
    """

    def __init__(self) -> None:
        self._parser = Lark(
            FORMULA_GRAMMAR,
            parser="lalr",
            transformer=FormulaTransformer(),
        )

    def tokenize(self, formula: str) -> list[Token]:
        """
        Split a formula into tokens, dropping whitespace.

        Raises:
            UnresolvedReferenceError: If the formula holds characters that
                are not part of any token
        """
        tokens: list[Token] = []
        stray: list[str] = []
        for match in _TOKEN_RE.finditer(formula):
            kind = match.lastgroup
            if kind == "WS":
                continue
            if kind == "MISMATCH":
                stray.append(match.group())
                continue
            tokens.append(Token(kind, match.group(), match.start()))

        if stray:
            raise UnresolvedReferenceError(
                formula,
                stray,
                error=f"Invalid characters: {' '.join(dict.fromkeys(stray))}",
            )
        return tokens

    def check_structure(self, formula: str, tokens: list[Token]) -> None:
        """
        Validate parenthesis nesting and operator placement.

        Raises:
            UnbalancedParenthesesError: If nesting goes negative or does not
                return to zero
            MisplacedOperatorError: If an operator starts or ends the
                formula, or touches another operator or a parenthesis on
                its inner side
        """
        depth = 0
        for token in tokens:
            if token.type == LPAREN:
                depth += 1
            elif token.type == RPAREN:
                depth -= 1
                if depth < 0:
                    raise UnbalancedParenthesesError(formula)
        if depth != 0:
            raise UnbalancedParenthesesError(formula)

        last = len(tokens) - 1
        for i, token in enumerate(tokens):
            if token.type != OPERATOR:
                continue
            if i == 0 or i == last:
                raise MisplacedOperatorError(formula, token.position)
            prev, nxt = tokens[i - 1], tokens[i + 1]
            if prev.type in (OPERATOR, LPAREN) or nxt.type in (OPERATOR, RPAREN):
                raise MisplacedOperatorError(formula, token.position)

    def parse(self, formula: str) -> Any:
        """
        Parse a formula string into an AST.

        Args:
            formula: Formula string to parse

        Returns:
            AST root node

        Raises:
            FormulaError: If the formula is malformed
        """
        tokens = self.tokenize(formula)
        self.check_structure(formula, tokens)
        return self.build_ast(formula)

    def build_ast(self, formula: str) -> Any:
        """Run the Lark parser on already validated formula text."""
        try:
            return self._parser.parse(formula)
        except UnexpectedInput as e:
            token = getattr(e, "token", None)
            position = max(getattr(e, "column", 1) - 1, 0)
            if token is not None and token.type in _OPERATOR_TERMINALS:
                raise MisplacedOperatorError(formula, position) from e
            raise UnresolvedReferenceError(
                formula,
                [],
                error=f"Malformed expression near position {position}",
            ) from e

    def validate(self, formula: str) -> tuple[bool, str | None]:
        """
        Validate formula syntax without evaluating it.

        Returns:
            Tuple of (is_valid, error_message)
        """
        try:
            self.parse(formula)
            return True, None
        except (
            UnresolvedReferenceError,
            UnbalancedParenthesesError,
            MisplacedOperatorError,
        ) as e:
            return False, e.message

    def get_field_references(self, formula: str) -> list[str]:
        """
        Extract the identifiers a formula references, in order of first use.

        Unlike ``parse`` this never raises; stray characters are ignored.
        """
        names = (m.group() for m in _TOKEN_RE.finditer(formula) if m.lastgroup == NAME)
        return list(dict.fromkeys(names))


@lru_cache(maxsize=1)
def get_parser() -> FormulaParser:
    """Shared parser instance; building the LALR tables is not free."""
    return FormulaParser()


@lru_cache(maxsize=512)
def parse_formula(formula: str) -> Any:
    """Parse ``formula`` with the shared parser, caching the AST by text."""
    return get_parser().parse(formula)
