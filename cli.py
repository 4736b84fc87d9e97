"""
Command line interface for the 2048 engine.
Run with: python cli.py [command]
"""

import random
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from tqdm import tqdm

from game import Game2048, GameConfig, GameStatus
from logger import SessionLogger
from storage import JsonBestScoreStore, MemoryBestScoreStore

app = typer.Typer(help="Play and simulate 2048")

DEFAULT_BEST_FILE = Path.home() / ".2048" / "best.json"


def build_config(size: int, target: int, four_probability: float) -> GameConfig:
    try:
        return GameConfig(
            grid_size=size, target_value=target, four_probability=four_probability
        )
    except ValidationError as e:
        raise typer.BadParameter(str(e))


def play_random_game(
    game: Game2048, rng: random.Random, max_moves: int | None = None
) -> dict:
    """
    Play one game with a uniform random agent that only picks moves which
    change the grid. Stops on a win, a loss or after `max_moves`.
    """
    game.new_game()
    moves = 0

    while game.get_status() == GameStatus.IN_PROGRESS:
        if max_moves is not None and moves >= max_moves:
            break

        valid_directions = game.valid_directions()
        if not valid_directions:
            break

        outcome = game.move(rng.choice(valid_directions))
        if not outcome.changed:
            break
        moves += 1

    return {
        "score": game.score,
        "moves": moves,
        "max_tile": game.max_tile,
        "status": game.get_status().value,
        "best": game.best_score,
    }


@app.command()
def human(
    size: int = typer.Option(4, "--size", help="Grid size"),
    target: int = typer.Option(2048, "--target", help="Tile value that wins"),
    best_file: Path = typer.Option(
        DEFAULT_BEST_FILE, "--best-file", help="JSON file holding the best score"
    ),
    log_dir: Optional[str] = typer.Option(
        None, "--log-dir", help="Directory for JSONL move logs (disabled if not set)"
    ),
):
    """Play 2048 yourself! Controls: WASD or Arrow keys, U to undo, Q to quit."""
    from play_cli import clear_screen, run

    config = build_config(size, target, 0.2)
    game = Game2048(config=config, best_store=JsonBestScoreStore(best_file))

    with SessionLogger(log_dir=log_dir, session="human") as logger:
        try:
            run(game, logger=logger)
        except KeyboardInterrupt:
            clear_screen()
            typer.echo("Game interrupted. Goodbye!")

    typer.echo(f"Final Score: {game.score}")
    typer.echo(f"Best Score: {game.best_score}")


@app.command()
def simulate(
    games: int = typer.Option(100, "--games", "-g", help="Number of games to play"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed"),
    max_moves: Optional[int] = typer.Option(
        None, "--max-moves", help="Stop each game after this many moves"
    ),
    size: int = typer.Option(4, "--size", help="Grid size"),
    target: int = typer.Option(2048, "--target", help="Tile value that wins"),
    four_probability: float = typer.Option(
        0.2, "--four-prob", help="Probability that a spawned tile is a 4"
    ),
    best_file: Optional[Path] = typer.Option(
        None, "--best-file", help="JSON file holding the best score (in-memory if not set)"
    ),
    log_dir: Optional[str] = typer.Option(
        None, "--log-dir", help="Directory for JSONL logs (disabled if not set)"
    ),
    progress: bool = typer.Option(True, "--progress/--no-progress"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print every game"),
):
    """Play games with a seeded random agent and report score statistics."""
    config = build_config(size, target, four_probability)
    rng = random.Random(seed)
    store = JsonBestScoreStore(best_file) if best_file else MemoryBestScoreStore()

    results = []
    with SessionLogger(log_dir=log_dir, session="simulate") as logger:
        for index in tqdm(range(games), desc="Simulating", disable=not progress):
            game = Game2048(config=config, rng=rng, best_store=store)
            result = play_random_game(game, rng, max_moves=max_moves)
            results.append(result)
            logger.record(result, step=index, echo=verbose)

        if not results:
            logger.echo("No games played.")
            return

        scores = [r["score"] for r in results]
        logger.record(
            {
                "games": len(results),
                "mean_score": sum(scores) / len(scores),
                "max_score": max(scores),
                "highest_tile": max(r["max_tile"] for r in results),
                "wins": sum(r["status"] == GameStatus.WON.value for r in results),
                "best": store.load(),
            },
            header="--- Summary ---",
        )


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind"),
    port: int = typer.Option(5050, "--port", help="Port to run server on"),
    size: int = typer.Option(4, "--size", help="Grid size"),
    target: int = typer.Option(2048, "--target", help="Tile value that wins"),
    best_file: Path = typer.Option(
        DEFAULT_BEST_FILE, "--best-file", help="JSON file holding the best score"
    ),
):
    """Serve the JSON game API for a browser front end."""
    from server import create_app

    config = build_config(size, target, 0.2)
    game = Game2048(config=config, best_store=JsonBestScoreStore(best_file))

    typer.echo("Starting game server...")
    typer.echo(f"  Best score file: {best_file.absolute()}")
    typer.echo(f"  Open http://{host}:{port}/api/state in your browser")

    create_app(game).run(host=host, port=port, debug=False)


@app.command()
def best(
    best_file: Path = typer.Option(
        DEFAULT_BEST_FILE, "--best-file", help="JSON file holding the best score"
    ),
    reset: bool = typer.Option(False, "--reset", help="Reset the best score to 0"),
):
    """Show (or reset) the stored best score."""
    store = JsonBestScoreStore(best_file)
    if reset:
        store.reset()
        typer.echo("Best score reset.")
    typer.echo(f"Best Score: {store.load()}")


if __name__ == "__main__":
    app()
