"""
Numeric argument expressions.

Grammar, tried in this order on the trimmed text:

    123, -4     integer literal
    A           numeric binding of parameter A (0 if unbound or an instruction)
    X+Y+...     sum of the terms
    X-Y         difference; three or more terms evaluate to 0
    other       0

There is no precedence: ``A-1+B`` is ``A-1`` plus ``B`` because ``+`` is
split first. Values are Python ints and never wrap.
"""

from __future__ import annotations

import re
from typing import Mapping

INT_RE = re.compile(r"[+-]?\d+")
PARAM_RE = re.compile(r"[A-Z]")
# arguments made only of these characters are numeric
NUMERIC_ARG_RE = re.compile(r"[0-9A-Z+\-]+")


def is_numeric_arg(text: str) -> bool:
    return NUMERIC_ARG_RE.fullmatch(text) is not None


def evaluate(expr: str, bindings: Mapping[str, object]) -> int:
    expr = expr.strip()

    if INT_RE.fullmatch(expr):
        return int(expr)

    if PARAM_RE.fullmatch(expr):
        value = bindings.get(expr)
        # bool is an int subclass but never a valid binding
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        return 0

    if "+" in expr:
        return sum(evaluate(term, bindings) for term in expr.split("+"))

    if "-" in expr:
        terms = expr.split("-")
        if len(terms) == 2:
            return evaluate(terms[0], bindings) - evaluate(terms[1], bindings)

    return 0
