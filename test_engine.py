import pytest

from engine import (
    MSG_HIT_BOMB,
    MSG_HIT_WALL,
    MSG_WON,
    Simulation,
    apply_instruction,
    run_to_end,
    simulate,
    start,
)
from errors import RecursionDepthExceeded
from level import EMPTY, Direction, Outcome, initialize_game


def _final(level_text, program, **kwargs):
    return run_to_end(program, initialize_game(level_text), **kwargs)


def test_first_snapshot_is_the_start_position():
    initial = initialize_game("o\nu")
    snaps = list(simulate("", initial))
    assert len(snaps) == 1
    assert snaps[0].robot == initial.robot
    assert snaps[0].steps == 0
    assert not snaps[0].is_game_over


def test_collecting_the_only_point_wins():
    final = _final("o\nu", "s")
    assert final.points_collected == final.total_points == 1
    assert final.is_won and final.is_game_over
    assert final.outcome is Outcome.won
    assert final.message == MSG_WON
    assert final.robot.position == (0, 0)
    assert final.grid[0][0] == EMPTY


def test_partial_collection_keeps_running():
    final = _final("o\no\nu", "s")
    assert final.points_collected == 1
    assert final.total_points == 2
    assert not final.is_game_over
    assert final.grid[1][0] == EMPTY

    assert _final("o\no\nu", "ss").is_won


def test_bomb_ends_the_run_on_the_bomb():
    final = _final("*\nu", "s")
    assert final.is_game_over
    assert not final.is_won
    assert final.outcome is Outcome.hit_bomb
    assert final.message == MSG_HIT_BOMB
    assert final.robot.position == (0, 0)


def test_leaving_the_grid_hits_the_wall():
    final = _final("u", "s")
    assert final.outcome is Outcome.hit_wall
    assert final.message == MSG_HIT_WALL
    assert final.is_game_over and not final.is_won
    assert final.robot.position == (0, 0)
    assert final.steps == 1


def test_wall_cell_blocks_without_ending():
    initial = initialize_game("A\nu")
    snaps = list(simulate("s", initial))
    after = snaps[-1]
    assert after.robot.position == (0, 1)
    assert after.grid[0][0] == "A"
    assert not after.is_game_over
    assert after.steps == 1

    moved = run_to_end("srs", initial)
    assert moved.robot.position == (1, 1)
    assert moved.robot.direction is Direction.right


def test_turns_do_not_move():
    final = _final(".\n.u", "l")
    assert final.robot.direction is Direction.left
    assert final.robot.position == (1, 1)
    assert _final("u", "r").robot.direction is Direction.right
    assert _final("u", "llll").robot.direction is Direction.up


def test_nothing_runs_after_a_terminal_state():
    snaps = list(simulate("ssss", initialize_game("*\nu")))
    assert len(snaps) == 2
    assert snaps[-1].steps == 1


def test_one_snapshot_per_instruction():
    snaps = list(simulate("f:sr\nff", initialize_game("..\n..\n..\n.u")))
    assert [s.steps for s in snaps] == [0, 1, 2, 3, 4]


def test_step_cap_is_a_terminal_snapshot():
    initial = initialize_game("u")
    snaps = list(Simulation("r" * 5, initial, max_steps=3))
    assert len(snaps) == 5
    final = snaps[-1]
    assert final.outcome is Outcome.max_steps
    assert final.is_game_over and not final.is_won
    assert final.steps == 3
    assert "Maximum steps (3)" in final.message


def test_exactly_reaching_the_cap_is_not_an_error():
    snaps = list(Simulation("rrr", initialize_game("u"), max_steps=3))
    assert len(snaps) == 4
    assert not snaps[-1].is_game_over


def test_step_cap_through_simulate():
    final = _final("u", "f(A):rf(A-1)\nf(60)", max_steps=50, max_depth=100)
    assert final.outcome is Outcome.max_steps
    assert final.steps == 50


def test_expansion_error_yields_failed_start_state():
    initial = initialize_game("o\nu")
    sim = start("f:sf\nf", initial, max_depth=5)
    assert isinstance(sim.error, RecursionDepthExceeded)
    snaps = list(sim)
    assert len(snaps) == 1
    failed = snaps[0]
    assert failed.outcome is Outcome.error
    assert failed.is_game_over and not failed.is_won
    assert "Maximum recursion depth (5)" in failed.message
    assert failed.robot == initial.robot
    assert failed.steps == 0


def test_run_does_not_touch_the_initial_state():
    initial = initialize_game("o\nu")
    run_to_end("s", initial)
    assert initial.grid[0][0] == "o"
    assert initial.points_collected == 0
    assert not initial.is_game_over


def test_snapshots_are_independent():
    snaps = list(simulate("s", initialize_game("o\no\nu")))
    snaps[0].grid[1][0] = "*"
    assert snaps[1].grid[1][0] == EMPTY
    assert snaps[0].points_collected == 0
    assert snaps[1].points_collected == 1


@pytest.mark.parametrize("k", range(1, 9))
def test_cancelling_leaves_a_consistent_snapshot(k):
    level = "....\n.o..\n.u.o"
    program = "srsrrsslsl"
    full = list(simulate(program, initialize_game(level)))

    sim = start(program, initialize_game(level))
    taken = [next(sim) for _ in range(k)]
    sim.cancel()
    with pytest.raises(StopIteration):
        next(sim)
    assert sim.cancelled

    last, reference = taken[-1], full[k - 1]
    assert last.steps == k - 1
    assert last.robot == reference.robot
    assert last.grid == reference.grid
    assert last.points_collected == reference.points_collected


def test_apply_instruction_rejects_non_primitives():
    with pytest.raises(ValueError):
        apply_instruction(initialize_game("u"), "x")


def test_apply_instruction_ignores_terminal_state():
    state = _final("*\nu", "s")
    apply_instruction(state, "r")
    assert state.robot.direction is Direction.up
    assert state.steps == 1


def test_level_without_points_never_wins():
    final = _final("u", "rsss")
    assert final.total_points == 0
    assert not final.is_won
    assert final.robot.position == (3, 0)


def test_step_cap_bounds_exponential_expansion():
    final = _final("u", "f(A):rf(A-1)f(A-1)\nf(60)", max_steps=50)
    assert final.outcome is Outcome.max_steps
    assert final.steps == 50


def test_depth_error_past_the_step_cap_is_never_reached():
    sim = start("f:rf\nf", initialize_game("u"), max_depth=100, max_steps=20)
    assert sim.error is None
    final = list(sim)[-1]
    assert final.outcome is Outcome.max_steps
    assert final.steps == 20
