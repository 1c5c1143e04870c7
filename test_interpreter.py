import pytest

import interpreter
from diagnostic import RenderOptions, TerminalRenderer, TerminalTheme
from level import initialize_game


@pytest.fixture(autouse=True)
def plain_renderer(monkeypatch):
    monkeypatch.setattr(
        interpreter, "renderer", TerminalRenderer(RenderOptions(context_lines=1), TerminalTheme(use_color=False))
    )


@pytest.fixture
def files(tmp_path):
    def write(name, text):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return str(path)

    return write


def test_draw_marks_robot_and_cells():
    rows = interpreter.draw(initialize_game("o*A\n.u")).splitlines()
    assert rows[0] == "oxA"
    assert rows[1] == " ↑"


def test_run_source_animates_each_step(capsys):
    final = interpreter.run_source("rl\ns", "o\nu")
    out = capsys.readouterr().out
    assert final.is_won
    assert "initial board: facing up" in out
    assert "step 3: facing up" in out
    assert "=== program finished ===" in out
    assert "You collected all points! You won!" in out


def test_run_source_reports_recursion_with_code_frame(capsys):
    final = interpreter.run_source("f:sf\nf", "u", file="loop.h", max_depth=3, quiet=True)
    out = capsys.readouterr().out
    assert final.is_game_over and not final.is_won
    assert "error: Maximum recursion depth (3) exceeded while calling 'f'" in out
    assert "--> loop.h:1:1" in out
    assert "recursion only stops when a numeric argument reaches 0" in out
    assert "(error)" in out


def test_run_source_prints_checker_warnings(capsys):
    interpreter.run_source("sg", ".\nu", quiet=True)
    out = capsys.readouterr().out
    assert "warning: call to undefined function 'g'" in out
    assert "Program ended with 0/0 points collected." in out


def test_main_exit_codes(files):
    level = files("level1.txt", "o\n.\nu")
    assert interpreter.main([level, files("win.h", "ss"), "--quiet"]) == 0
    assert interpreter.main([level, files("lost.h", "rs"), "--quiet"]) == 1


def test_main_saves_and_reloads_solution(files, tmp_path, capsys):
    level = files("level2.txt", "o\nu")
    saves = str(tmp_path / "saves")
    assert interpreter.main([level, files("p.h", "s"), "--solutions", saves, "--quiet"]) == 0
    assert (tmp_path / "saves" / "level2_solution.txt").read_text(encoding="utf-8") == "s"
    assert interpreter.main([level, "--solutions", saves, "--quiet"]) == 0


def test_main_check_only(files, capsys):
    level = files("level3.txt", "u")
    assert interpreter.main([level, files("bad.h", "f:s\nf:l\nf"), "--check"]) == 1
    assert "defined more than once" in capsys.readouterr().out
    assert interpreter.main([level, files("good.h", "f:s\nf"), "--check"]) == 0


def test_main_missing_program_file(files, tmp_path, capsys):
    level = files("level4.txt", "u")
    with pytest.raises(SystemExit) as exc:
        interpreter.main([level, str(tmp_path / "missing.h")])
    assert exc.value.code == 1
    assert "error: cannot read program" in capsys.readouterr().out


def test_main_without_program_or_solutions(files):
    with pytest.raises(SystemExit) as exc:
        interpreter.main([files("level5.txt", "u")])
    assert exc.value.code == 1
