"""
Splits h-language program text into function definitions and main lines.

    f(A,B):body     definition with parameters
    g:body          definition without parameters
    anything else   part of the main program
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

DEFINITION_RE = re.compile(
    r"""
    (?P<name>[a-z])
    (?:\((?P<params>[A-Z](?:,[A-Z])*)\))?
    :
    (?P<body>.*)
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class FunctionDef:
    name: str
    params: Tuple[str, ...]
    body: str
    line: int = 0  # 1-based source line, 0 when built by hand
    col: int = 1


@dataclass
class Program:
    functions: Dict[str, FunctionDef]
    main: str
    # (line, col, text) of every main fragment, in order
    main_lines: List[Tuple[int, int, str]] = field(default_factory=list)


def parse_definition(line: str, lineno: int = 0) -> Optional[FunctionDef]:
    """Return the definition on ``line`` or None if it is not one."""
    stripped = line.strip()
    m = DEFINITION_RE.fullmatch(stripped)
    if m is None:
        return None
    params = tuple(m.group("params").split(",")) if m.group("params") else ()
    if len(set(params)) != len(params):
        return None
    col = len(line) - len(line.lstrip()) + 1
    return FunctionDef(m.group("name"), params, m.group("body"), lineno, col)


def parse_program(text: str) -> Program:
    functions: Dict[str, FunctionDef] = {}
    main_lines: List[Tuple[int, int, str]] = []

    for lineno, raw in enumerate(text.splitlines(), start=1):
        fn = parse_definition(raw, lineno)
        if fn is not None:
            # later definitions win
            functions[fn.name] = fn
            continue
        stripped = raw.strip()
        if stripped:
            col = len(raw) - len(raw.lstrip()) + 1
            main_lines.append((lineno, col, stripped))

    main = "".join(t for _, _, t in main_lines)
    logger.debug("parsed %d definition(s), %d main line(s)", len(functions), len(main_lines))
    return Program(functions, main, main_lines)
