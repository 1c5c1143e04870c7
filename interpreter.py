"""
h-language maze runner

Loads a level, expands a program and animates the robot in the terminal:

    hlang levels/level3.txt solution.h --delay 0.1
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from checks import check_program
from config import LOG_LEVEL_DEFAULT, MAX_DEPTH, MAX_STEPS
from definitions import parse_program
from diagnostic import Diagnostic, Label, RenderOptions, Span, TerminalRenderer, TerminalTheme
from errors import RecursionDepthExceeded
from level import GameState, Outcome
from session import Session, program_size
from storage import FileSystemLevelProvider, FileSystemSolutionStore

logger = logging.getLogger(__name__)

renderer = TerminalRenderer(RenderOptions(context_lines=1))
_SOURCE = ""
_SOURCE_NAME = "<program>"

ICON = {"up": "↑", "right": "→", "down": "↓", "left": "←"}
SHOWN = {".": " ", "*": "x"}


def _report(diag: Diagnostic):
    """Render diagnostic and abort."""
    renderer.render(diag, _SOURCE, name=_SOURCE_NAME)
    sys.exit(1)


def _diagnose(diag: Diagnostic):
    """Render diagnostic but do not abort."""
    renderer.render(diag, _SOURCE, name=_SOURCE_NAME)


def draw(state: GameState) -> str:
    rx, ry = state.robot.position
    out = []
    for y, row in enumerate(state.grid):
        line = []
        for x, code in enumerate(row):
            line.append(ICON[state.robot.direction.value] if (x, y) == (rx, ry) else SHOWN.get(code, code))
        out.append("".join(line).rstrip())
    return "\n".join(out)


def tick(state: GameState):
    title = "initial board" if state.steps == 0 else f"step {state.steps}"
    print(
        f"\n{title}: facing {state.robot.direction.value} at {state.robot.position}"
        f"   points {state.points_collected}/{state.total_points}"
    )
    print(draw(state))
    if state.message:
        print(state.message)


def _depth_diagnostic(err: RecursionDepthExceeded) -> Diagnostic:
    fn = parse_program(_SOURCE).functions.get(err.function)
    labels = []
    if fn is not None and fn.line:
        labels.append(Label(Span(fn.line, fn.col, fn.col + 1), f"'{fn.name}' still recursing at depth {err.depth}", "primary"))
    return Diagnostic(
        severity="error",
        message=err.original_message,
        labels=labels,
        notes=[
            "recursion only stops when a numeric argument reaches 0",
            "e.g. 'f(A):sf(A-1)' then 'f(5)' steps five times",
        ],
    )


def run_source(
    src: str,
    level_text: str,
    *,
    file: str = "<program>",
    max_depth: int = MAX_DEPTH,
    max_steps: int = MAX_STEPS,
    delay: float = 0.0,
    quiet: bool = False,
) -> GameState:
    """
    Expand and run ``src`` on the level. Returns the final state for assertions.
    """
    global _SOURCE, _SOURCE_NAME
    _SOURCE, _SOURCE_NAME = src, file

    for diag in check_program(src):
        _diagnose(diag)

    session = Session(level_text, max_depth=max_depth, max_steps=max_steps)
    if not quiet:
        print(f"program: {program_size(src)} bytes")

    final = session.play(src, on_snapshot=None if quiet else tick, delay=delay)

    sim = session.simulation
    if sim is not None and isinstance(sim.error, RecursionDepthExceeded):
        _diagnose(_depth_diagnostic(sim.error))

    print("\n=== program finished ===")
    if quiet:
        print(draw(final))
    if final.outcome is Outcome.won:
        print(final.message)
    elif final.is_game_over:
        print(f"{final.message} ({final.outcome.value})")
    else:
        print(f"Program ended with {final.points_collected}/{final.total_points} points collected.")
    return final


def _read(path: str, what: str) -> str:
    try:
        if path == "-":
            return sys.stdin.read()
        with open(path, "r", encoding="utf-8") as fh:
            return fh.read()
    except OSError as e:
        _report(Diagnostic(severity="error", message=f"cannot read {what}: {e}"))
        return ""


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="hlang", description="Run an h-language program on a robot maze level.")
    p.add_argument("level", help="level file (rows of . * o u A-K)")
    p.add_argument("program", nargs="?", help="program file, '-' for stdin; omitted: saved solution")
    p.add_argument("--solutions", metavar="DIR", help="directory of saved solutions to load from / save to")
    p.add_argument("--delay", type=float, default=0.0, help="seconds between frames")
    p.add_argument("--max-steps", type=int, default=MAX_STEPS)
    p.add_argument("--max-depth", type=int, default=MAX_DEPTH)
    p.add_argument("--quiet", action="store_true", help="only print the final board")
    p.add_argument("--check", action="store_true", help="report program diagnostics and exit")
    p.add_argument("--no-color", action="store_true")
    p.add_argument("--log-level", default=LOG_LEVEL_DEFAULT, choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return p


def main(argv: Optional[List[str]] = None) -> int:
    global renderer, _SOURCE, _SOURCE_NAME
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")
    if args.no_color:
        renderer = TerminalRenderer(RenderOptions(context_lines=1), TerminalTheme(use_color=False))

    level_path = Path(args.level)
    key = level_path.stem
    store = FileSystemSolutionStore(args.solutions) if args.solutions else None

    if args.program is not None:
        src, name = _read(args.program, "program"), args.program
        if store is not None:
            store.put(key, src)
    elif store is not None:
        src, name = store.get(key), f"{key} (saved)"
    else:
        _report(Diagnostic(severity="error", message="no program given", notes=["pass a program file or --solutions DIR"]))
        return 1

    if args.check:
        _SOURCE, _SOURCE_NAME = src, name
        diags = check_program(src)
        for diag in diags:
            _diagnose(diag)
        return 1 if any(d.severity in ("error", "warning") for d in diags) else 0

    level_text = FileSystemLevelProvider(level_path.parent).get(key) if level_path.suffix == ".txt" else None
    if level_text is None:
        level_text = _read(args.level, "level")

    started = time.monotonic()
    final = run_source(
        src,
        level_text,
        file=name,
        max_depth=args.max_depth,
        max_steps=args.max_steps,
        delay=args.delay,
        quiet=args.quiet,
    )
    logger.info("run took %.3fs", time.monotonic() - started)
    return 0 if final.is_won else 1


if __name__ == "__main__":
    sys.exit(main())
