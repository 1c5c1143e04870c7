"""
Static, non-fatal checks over program text.

Nothing here changes how a program runs; it only explains the cases where
the language silently does something surprising.
"""

from __future__ import annotations

import re
from typing import Dict, Iterator, List, Tuple

from definitions import FunctionDef, parse_definition
from diagnostic import Diagnostic, Label, Span
from expander import LOWER, PRIMITIVES, closing_paren
from expression import is_numeric_arg

# looser than the definition grammar: anything that starts like one
LOOKS_LIKE_DEFINITION_RE = re.compile(r"[a-z]\s*(\([^)]*\))?\s*:")


def _indent(raw: str) -> int:
    return len(raw) - len(raw.lstrip())


def _args(text: str, open_pos: int, end: int) -> List[Tuple[str, int]]:
    """Arguments between ``text[open_pos]`` and ``end`` with their 0-based offsets."""
    if end <= open_pos + 1:
        return []
    args: List[Tuple[str, int]] = []
    pos = open_pos + 1
    for piece in text[open_pos + 1 : end].split(","):
        args.append((piece.strip(), pos + _indent(piece)))
        pos += len(piece) + 1
    return args


def _calls(text: str) -> Iterator[Tuple[str, int, int, List[Tuple[str, int]]]]:
    """
    (name, start, end, args) for every call in ``text``; offsets are 0-based,
    end exclusive. Argument lists are not scanned: an argument only expands
    if the callee's body refers to it.
    """
    i = 0
    while i < len(text):
        ch = text[i]
        if ch not in LOWER or ch in PRIMITIVES:
            i += 1
            continue
        if i + 1 < len(text) and text[i + 1] == "(":
            end = closing_paren(text, i + 1)
            yield ch, i, min(end + 1, len(text)), _args(text, i + 1, end)
            i = end + 1
        else:
            yield ch, i, i + 1, []
            i += 1



def check_program(text: str) -> List[Diagnostic]:
    diags: List[Diagnostic] = []
    functions: Dict[str, FunctionDef] = {}
    # (line, first column, text) of everything that gets expanded
    segments: List[Tuple[int, int, str]] = []

    for lineno, raw in enumerate(text.splitlines(), start=1):
        stripped = raw.strip()
        if not stripped:
            continue
        start = _indent(raw) + 1
        fn = parse_definition(raw, lineno)

        if fn is None:
            if LOOKS_LIKE_DEFINITION_RE.match(stripped):
                diags.append(
                    Diagnostic(
                        severity="warning",
                        message="malformed definition runs as part of the main program",
                        labels=[Label(Span(lineno, start, start + len(stripped)), "not a definition", "primary")],
                        notes=[
                            "definitions look like 'f:body' or 'f(A,B):body'",
                            "parameters are single uppercase letters, each used once",
                        ],
                    )
                )
            segments.append((lineno, start, stripped))
            continue

        prev = functions.get(fn.name)
        if prev is not None:
            diags.append(
                Diagnostic(
                    severity="warning",
                    message=f"function '{fn.name}' is defined more than once",
                    labels=[
                        Label(Span(lineno, fn.col, fn.col + 1), "redefined here; this definition wins", "primary"),
                        Label(Span(prev.line, prev.col, prev.col + 1), "previous definition is here", "secondary"),
                    ],
                )
            )
        functions[fn.name] = fn
        segments.append((lineno, start + len(stripped) - len(fn.body), fn.body))

    # instruction arguments join the scan once a callee body refers to them
    n = 0
    while n < len(segments):
        lineno, col, seg = segments[n]
        n += 1
        for name, i, end, args in _calls(seg):
            span = Span(lineno, col + i, col + end)
            fn = functions.get(name)
            if fn is None:
                diags.append(
                    Diagnostic(
                        severity="warning",
                        message=f"call to undefined function '{name}'",
                        labels=[Label(span, "expands to nothing", "primary")],
                    )
                )
                continue

            for param, (arg, offset) in zip(fn.params, args):
                if arg and not is_numeric_arg(arg) and param in fn.body:
                    segments.append((lineno, col + offset, arg))

            if len(args) < len(fn.params):
                missing = ", ".join(fn.params[len(args):])
                diags.append(
                    Diagnostic(
                        severity="note",
                        message=f"'{name}' takes {len(fn.params)} argument(s) but {len(args)} given",
                        labels=[
                            Label(span, f"{missing} left unbound", "primary"),
                            Label(Span(fn.line, fn.col, fn.col + 1), "defined here", "secondary"),
                        ],
                    )
                )

    return diags
