import json
import random

from typer.testing import CliRunner

from cli import app, play_random_game
from game import Game2048, GameConfig, GameStatus
from storage import DEFAULT_KEY

runner = CliRunner()


def test_play_random_game_runs_to_the_end():
    rng = random.Random(11)
    result = play_random_game(Game2048(rng=rng), rng)
    assert result["status"] in (GameStatus.LOST.value, GameStatus.WON.value)
    assert result["moves"] > 0
    assert result["score"] == result["best"]


def test_play_random_game_max_moves():
    rng = random.Random(11)
    result = play_random_game(Game2048(rng=rng), rng, max_moves=5)
    assert result["moves"] == 5
    assert result["status"] == GameStatus.IN_PROGRESS.value


def test_play_random_game_small_target_wins():
    rng = random.Random(5)
    game = Game2048(config=GameConfig(target_value=16), rng=rng)
    result = play_random_game(game, rng)
    assert result["status"] == GameStatus.WON.value
    assert result["max_tile"] == 16


def test_simulate_is_deterministic(tmp_path):
    args = ["simulate", "--games", "3", "--seed", "7", "--no-progress"]
    first = runner.invoke(app, args)
    second = runner.invoke(app, args)
    assert first.exit_code == 0, first.output
    assert "--- Summary ---" in first.output
    assert "games: 3" in first.output
    assert first.output == second.output


def test_simulate_writes_logs_and_best(tmp_path):
    best_file = tmp_path / "best.json"
    result = runner.invoke(
        app,
        [
            "simulate",
            "--games", "2",
            "--seed", "1",
            "--max-moves", "20",
            "--no-progress",
            "--log-dir", str(tmp_path / "logs"),
            "--best-file", str(best_file),
        ],
    )
    assert result.exit_code == 0, result.output

    (log_file,) = (tmp_path / "logs").glob("simulate_*.jsonl")
    records = [json.loads(line) for line in log_file.read_text().splitlines()]
    assert len(records) == 3  # two games and the summary
    assert records[-1]["best"] == json.loads(best_file.read_text())[DEFAULT_KEY]
    assert records[-1]["best"] == max(r["score"] for r in records[:2])


def test_simulate_rejects_bad_config():
    result = runner.invoke(app, ["simulate", "--games", "1", "--size", "1", "--no-progress"])
    assert result.exit_code != 0


def test_best_show_and_reset(tmp_path):
    best_file = tmp_path / "best.json"
    best_file.write_text(json.dumps({DEFAULT_KEY: 512}))

    result = runner.invoke(app, ["best", "--best-file", str(best_file)])
    assert result.exit_code == 0
    assert "Best Score: 512" in result.output

    result = runner.invoke(app, ["best", "--best-file", str(best_file), "--reset"])
    assert result.exit_code == 0
    assert "Best Score: 0" in result.output


def test_play_random_game_counts_only_changed_moves():
    rng = random.Random(3)
    game = Game2048(rng=rng)
    result = play_random_game(game, rng, max_moves=10)
    assert result["moves"] == 10
    assert game.can_undo
