"""
Code-frame diagnostics for h-language programs.

Statements never span lines, so a span is a column range on one line of
the program text. Rendering looks like:

warning: function 'f' is defined more than once
  --> level3.h:4:1
   |
 3 | f:ss
   | ~    previous definition is here
 4 | f:sl
   | ^    redefined here; this definition wins
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, TextIO, Tuple

Severity = Literal["error", "warning", "note", "help"]
LabelKind = Literal["primary", "secondary"]


@dataclass(frozen=True)
class Span:
    """1-based columns on a 1-based line, end exclusive."""

    line: int
    start_col: int
    end_col: int

    def normalized(self) -> Span:
        if self.end_col < self.start_col:
            return Span(self.line, self.end_col, self.start_col)
        return self


@dataclass(frozen=True)
class Label:
    span: Span
    message: Optional[str] = None
    kind: LabelKind = "primary"


@dataclass
class Diagnostic:
    severity: Severity
    message: str
    labels: List[Label] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)

    @property
    def primary(self) -> Optional[Label]:
        return next((l for l in self.labels if l.kind == "primary"), self.labels[0] if self.labels else None)


class TerminalTheme:
    _PALETTE = {
        "reset": "\x1b[0m",
        "error": "\x1b[31m",
        "warning": "\x1b[33m",
        "note": "\x1b[34m",
        "help": "\x1b[36m",
        "primary": "\x1b[31m",
        "secondary": "\x1b[35m",
        "gutter": "\x1b[90m",
    }

    def __init__(self, use_color: Optional[bool] = None):
        self.use_color = sys.stdout.isatty() if use_color is None else use_color

    def c(self, key: str, text: str) -> str:
        if not self.use_color:
            return text
        return f"{self._PALETTE.get(key, '')}{text}{self._PALETTE['reset']}"


@dataclass
class RenderOptions:
    tab_width: int = 4
    context_lines: int = 1
    show_gutter: bool = True


class TerminalRenderer:
    """Formats `Diagnostic` objects against the program text they point into."""

    def __init__(self, options: Optional[RenderOptions] = None, theme: Optional[TerminalTheme] = None):
        self.opt = options or RenderOptions()
        self.theme = theme or TerminalTheme()

    def render(
        self, diag: Diagnostic, source: str = "", *, name: str = "<program>", out: Optional[TextIO] = None
    ) -> None:
        if out is None:
            out = sys.stdout
        out.write(self.format(diag, source, name=name) + "\n")

    def format(self, diag: Diagnostic, source: str = "", *, name: str = "<program>") -> str:
        parts = [self._header(diag, name)]
        if diag.labels:
            parts.append(self._frame(diag.labels, source.splitlines()))
        for note in diag.notes:
            parts.append(f"  = {self.theme.c('note', 'note')} {note}")
        return "\n".join(parts)

    def _header(self, diag: Diagnostic, name: str) -> str:
        head = f"{self.theme.c(diag.severity, diag.severity)}: {diag.message}"
        anchor = diag.primary
        if anchor is None:
            return head
        s = anchor.span.normalized()
        return f"{head}\n  --> {name}:{s.line}:{s.start_col}"

    def _frame(self, labels: List[Label], lines: List[str]) -> str:
        by_line: Dict[int, List[Label]] = {}
        for lab in labels:
            by_line.setdefault(lab.span.line, []).append(lab)

        shown = sorted(
            {
                ln + d
                for ln in by_line
                for d in range(-self.opt.context_lines, self.opt.context_lines + 1)
                if 1 <= ln + d <= len(lines)
            }
        )
        width = len(str(shown[-1])) if shown else 1
        bar = "   |" if self.opt.show_gutter else ""
        out = [bar]

        prev = None
        for ln in shown:
            if prev is not None and ln != prev + 1:
                out.append(f"{self.theme.c('gutter', '…'.rjust(width))} |" if self.opt.show_gutter else "…")
            prev = ln

            text, col_map = _expand_tabs_with_map(lines[ln - 1], self.opt.tab_width)
            if self.opt.show_gutter:
                out.append(f" {self.theme.c('gutter', str(ln).rjust(width))} | {text}")
            else:
                out.append(text)

            # primary labels first
            for lab in sorted(by_line.get(ln, []), key=lambda l: l.kind != "primary"):
                s = lab.span.normalized()
                x0 = col_map[min(s.start_col, len(col_map)) - 1]
                x1 = col_map[min(s.end_col, len(col_map)) - 1]
                marks = _underline(text, x0, x1, "^" if lab.kind == "primary" else "~")
                pad = self.theme.c("gutter", " " * (width + 1) + " | ") if self.opt.show_gutter else ""
                row = pad + self.theme.c(lab.kind, marks)
                if lab.message:
                    row += " " + lab.message
                out.append(row)

        for ln, labs in sorted(by_line.items()):
            if 1 <= ln <= len(lines):
                continue
            for lab in labs:
                msg = f" {lab.message}" if lab.message else ""
                out.append(f"{bar} (line {ln} not in source){msg}")

        return "\n".join(out)


def _expand_tabs_with_map(s: str, tabw: int) -> Tuple[str, List[int]]:
    """Expand tabs; ``mapping[i]`` is the display column of character ``i + 1``."""
    chars: List[str] = []
    mapping: List[int] = []
    col = 1
    for ch in s:
        mapping.append(col)
        if ch == "\t":
            n = tabw - (col - 1) % tabw
            chars.append(" " * n)
            col += n
        else:
            chars.append(ch)
            col += 1
    mapping.append(col)
    return "".join(chars), mapping


def _underline(line: str, x0: int, x1: int, ch: str) -> str:
    n = len(line)
    a = max(1, min(x0, n))
    b = max(a + 1, min(x1, n + 1))
    return " " * (a - 1) + ch * (b - a) + " " * (n - (b - 1))
