"""
Macro expansion of h-language programs into primitive instructions.

The result is a string over ``s``, ``l`` and ``r``: one character per
instruction, in execution order. Calls are expanded with an explicit frame
stack rather than Python recursion, so deep recursion is bounded by the
depth limit and not by the interpreter stack.
"""

from __future__ import annotations

import logging
import string
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Union

from config import MAX_DEPTH
from definitions import FunctionDef, parse_program
from errors import RecursionDepthExceeded
from expression import evaluate, is_numeric_arg

logger = logging.getLogger(__name__)

PRIMITIVES = frozenset("slr")
UPPER = frozenset(string.ascii_uppercase)
LOWER = frozenset(string.ascii_lowercase)


@dataclass(frozen=True)
class Fragment:
    """Instruction argument: unexpanded text plus the context that passed it."""

    text: str
    context: "ExecutionContext"


Value = Union[int, Fragment]


@dataclass(frozen=True)
class ExecutionContext:
    functions: Mapping[str, FunctionDef]
    bindings: Mapping[str, Value]

    def derive(self, new: Mapping[str, Value]) -> "ExecutionContext":
        merged: Dict[str, Value] = dict(self.bindings)
        merged.update(new)
        return ExecutionContext(self.functions, merged)


@dataclass
class _Frame:
    text: str
    context: ExecutionContext
    depth: int
    pos: int = 0


def split_args(args_text: str) -> List[str]:
    """Split on every comma. Not paren-aware: ``f(g(a,b))`` passes ``g(a`` and ``b)``."""
    if not args_text:
        return []
    return [a.strip() for a in args_text.split(",")]


def closing_paren(text: str, open_pos: int) -> int:
    """Index of the ``)`` matching ``text[open_pos]``, or len(text) if unterminated."""
    depth = 0
    for i in range(open_pos, len(text)):
        if text[i] == "(":
            depth += 1
        elif text[i] == ")":
            depth -= 1
            if depth == 0:
                return i
    return len(text)


def bind_arguments(fn: FunctionDef, args: List[str], caller: ExecutionContext) -> Optional[ExecutionContext]:
    """
    Bind ``args`` to the parameters of ``fn`` by position.

    Returns None when the guard drops the call, i.e. some numeric argument is
    zero or negative. Extra arguments are ignored, missing ones stay unbound.
    """
    new: Dict[str, Value] = {}
    for param, arg in zip(fn.params, args):
        if is_numeric_arg(arg):
            value = evaluate(arg, caller.bindings)
            if value <= 0:
                return None
            new[param] = value
        else:
            new[param] = Fragment(arg, caller)
    return caller.derive(new)


def expand_instructions(
    text: str,
    context: ExecutionContext,
    depth: int = 0,
    max_depth: int = MAX_DEPTH,
    limit: Optional[int] = None,
) -> str:
    """Expand ``text`` in ``context``; with ``limit``, stop once that many instructions are out."""
    out: List[str] = []
    stack = [_Frame(text, context, depth)]

    while stack:
        if limit is not None and len(out) >= limit:
            break
        frame = stack[-1]
        if frame.pos >= len(frame.text):
            stack.pop()
            continue

        ch = frame.text[frame.pos]
        frame.pos += 1

        if ch in PRIMITIVES:
            out.append(ch)
        elif ch in UPPER:
            value = frame.context.bindings.get(ch)
            if isinstance(value, Fragment):
                stack.append(_Frame(value.text, value.context, frame.depth))
        elif ch in LOWER:
            args_text = ""
            if frame.pos < len(frame.text) and frame.text[frame.pos] == "(":
                end = closing_paren(frame.text, frame.pos)
                args_text = frame.text[frame.pos + 1 : end]
                frame.pos = end + 1

            if frame.depth > max_depth:
                raise RecursionDepthExceeded(ch, frame.depth, max_depth)
            fn = frame.context.functions.get(ch)
            if fn is None:
                continue
            callee = bind_arguments(fn, split_args(args_text), frame.context)
            if callee is not None:
                stack.append(_Frame(fn.body, callee, frame.depth + 1))
        # anything else is skipped

    return "".join(out)


def expand(
    main: str,
    functions: Mapping[str, FunctionDef],
    max_depth: int = MAX_DEPTH,
    limit: Optional[int] = None,
) -> str:
    return expand_instructions(main, ExecutionContext(functions, {}), 0, max_depth, limit)


def expand_program(text: str, max_depth: int = MAX_DEPTH, limit: Optional[int] = None) -> str:
    """Parse ``text`` and expand its main lines; the function table is rebuilt every call."""
    program = parse_program(text)
    result = expand(program.main, program.functions, max_depth, limit)
    logger.debug("expanded %d byte(s) of program into %d instruction(s)", len(text), len(result))
    return result
