"""Lark grammar definition for order formulas.

Formulas are plain arithmetic over numeric field names:
- Arithmetic: +, -, *, / with the usual precedence, left associative
- Grouping: ( ... )
- Field references: bare identifiers (field names)
- Literals: non-negative decimal numbers

There is no unary minus: an operator always sits between two operands.
"""

FORMULA_GRAMMAR = r"""
    ?start: sum

    ?sum: product
        | sum "+" product -> add
        | sum "-" product -> sub

    ?product: atom
        | product "*" atom -> mul
        | product "/" atom -> div

    ?atom: NUMBER -> number
        | NAME -> field_ref
        | "(" sum ")"

    NAME: /[A-Za-z_][A-Za-z0-9_]*/
    NUMBER: /\d+\.?\d*|\.\d+/

    %import common.WS
    %ignore WS
"""
