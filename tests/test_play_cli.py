import pytest

from game import Direction, Game2048
from logger import SessionLogger
from play_cli import QUIT, RESTART, UNDO, format_grid, parse_key, render_board, run
from storage import MemoryBestScoreStore


@pytest.mark.parametrize(
    "key, expected",
    [
        ("w", Direction.UP),
        ("S", Direction.DOWN),
        ("\x1b[D", Direction.LEFT),
        ("\x1b[C", Direction.RIGHT),
        ("r", RESTART),
        ("u", UNDO),
        ("q", QUIT),
        ("x", None),
        ("\x1b[Z", None),
    ],
)
def test_parse_key(key, expected):
    assert parse_key(key) == expected


def test_format_grid(sample_grid):
    text = format_grid(sample_grid, indent="")
    lines = text.splitlines()
    assert len(lines) == 9
    assert lines[0].startswith("┌")
    assert " 2  " in lines[1]
    assert "." in lines[3]


def test_render_board_shows_scores_and_undo(sample_grid, scripted):
    game = Game2048(state=sample_grid, rng=scripted(), best_store=MemoryBestScoreStore(90))
    text = render_board(game, "hello")
    assert "Score: 0    Best: 90" in text
    assert "hello" in text
    assert "Undo (unavailable)" in text

    game.move(Direction.LEFT)
    assert "Undo (unavailable)" not in render_board(game)


def test_run_plays_scripted_keys(capsys, scripted, tmp_path):
    keys = iter(["a", "d", "u", "x", "q"])
    game = Game2048(rng=scripted())
    with SessionLogger(log_dir=tmp_path, session="human") as logger:
        run(game, logger=logger, read_key=lambda: next(keys))
        assert logger.records_written == 2

    out = capsys.readouterr().out
    assert "Move undone." in out
    assert "Thanks for playing!" in out


def test_run_reports_win(capsys, scripted):
    state = Game2048.empty_grid()
    state[0][0] = 1024
    state[0][1] = 1024
    keys = iter(["a", "q"])
    game = Game2048(state=state, rng=scripted())

    run(game, read_key=lambda: next(keys), start_new=False)

    assert game.grid[0][0] == 2048
    assert "You reached 2048!" in capsys.readouterr().out


def test_run_reports_game_over(capsys, scripted, locked_grid):
    keys = iter(["a", "w", "q"])
    game = Game2048(state=locked_grid, rng=scripted())

    run(game, read_key=lambda: next(keys), start_new=False)

    out = capsys.readouterr().out
    assert "Can't move left!" in out
    assert "Can't move up!" in out
    assert "GAME OVER! Final Score: 0." in out
    assert game.grid == locked_grid


def test_run_restart_resets_score(capsys, scripted, sample_grid):
    keys = iter(["a", "r", "q"])
    store = MemoryBestScoreStore()
    game = Game2048(state=sample_grid, rng=scripted(), best_store=store)

    run(game, read_key=lambda: next(keys), start_new=False)

    out = capsys.readouterr().out
    assert "Score: 24" in out
    assert "Game restarted!" in out
    assert game.score == 0
    assert not game.can_undo
    assert game.best_score == 24
