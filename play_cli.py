"""
Terminal 2048 client.
Run with: python cli.py human
"""
import sys

import typer

from game import Direction, Game2048, GameStatus, Grid
from logger import SessionLogger

QUIT = "quit"
RESTART = "restart"
UNDO = "undo"

# arrow keys send 3 characters: ESC [ A/B/C/D
KEY_MAP = {
    "\x1b[A": Direction.UP,
    "\x1b[B": Direction.DOWN,
    "\x1b[C": Direction.RIGHT,
    "\x1b[D": Direction.LEFT,
    "w": Direction.UP,
    "s": Direction.DOWN,
    "a": Direction.LEFT,
    "d": Direction.RIGHT,
    "r": RESTART,
    "u": UNDO,
    "q": QUIT,
    "\x03": QUIT,  # ctrl-c in raw mode
}


def parse_key(key: str):
    """Map a keypress to a Direction or a command name; None if unbound."""
    if len(key) == 1:
        key = key.lower()
    return KEY_MAP.get(key)


def get_key() -> str:
    """Get a single keypress from the terminal."""
    import termios
    import tty

    fd = sys.stdin.fileno()
    old_settings = termios.tcgetattr(fd)
    try:
        tty.setraw(sys.stdin.fileno())
        ch = sys.stdin.read(1)
        if ch == "\x1b":
            ch += sys.stdin.read(2)
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)
    return ch


def clear_screen():
    typer.echo("\033[2J\033[H", nl=False)


def format_grid(grid: Grid, indent: str = "  ") -> str:
    """Format a grid of tile values (None = empty) as a boxed table."""
    size = len(grid)
    max_val = max((cell for row in grid for cell in row if cell), default=0)
    cell_width = max(4, len(str(max_val)) + 1)
    inner = cell_width * size + size - 1

    lines = [indent + "┌" + "─" * inner + "┐"]
    for i, row in enumerate(grid):
        cells = [
            (str(cell) if cell else ".").center(cell_width) for cell in row
        ]
        lines.append(indent + "│" + "│".join(cells) + "│")
        if i < size - 1:
            lines.append(indent + "├" + "─" * inner + "┤")
    lines.append(indent + "└" + "─" * inner + "┘")

    return "\n".join(lines)


def render_board(game: Game2048, message: str = "") -> str:
    lines = [
        "=" * 30,
        "         2048 GAME",
        "=" * 30,
        f"Score: {game.score}    Best: {game.best_score}",
        "",
        format_grid(game.grid, indent=""),
        "",
    ]
    if message:
        lines.append(message)

    undo_hint = "U: Undo" if game.can_undo else "U: Undo (unavailable)"
    lines.extend(
        [
            "",
            "Controls:",
            "  ↑/W: Up    ↓/S: Down",
            "  ←/A: Left  →/D: Right",
            f"  R: Restart  {undo_hint}  Q: Quit",
        ]
    )
    return "\n".join(lines)


def draw_board(game: Game2048, message: str = ""):
    clear_screen()
    typer.echo(render_board(game, message))


def status_message(game: Game2048) -> str:
    status = game.get_status()
    if status == GameStatus.WON:
        return f"You reached {game.config.target_value}! Keep going or press R."
    if status == GameStatus.LOST:
        return f"GAME OVER! Final Score: {game.score}. Press R to restart."
    return ""


def run(
    game: Game2048,
    logger: SessionLogger | None = None,
    read_key=get_key,
    start_new: bool = True,
):
    """
    Main game loop. Returns the game when the player quits.
    With start_new=False the game continues from its current grid.
    """
    if start_new:
        game.new_game()
    move_count = 0
    draw_board(game, "Welcome! Use arrow keys or WASD to play.")

    while True:
        action = parse_key(read_key())

        if action == QUIT:
            clear_screen()
            typer.echo("Thanks for playing!")
            return game

        if action == RESTART:
            game.new_game()
            move_count = 0
            draw_board(game, "Game restarted!")
            continue

        if action == UNDO:
            if game.can_undo:
                game.undo()
                draw_board(game, "Move undone.")
            else:
                draw_board(game, "Nothing to undo.")
            continue

        if action is None:
            continue

        outcome = game.move(action)
        if not outcome.changed:
            draw_board(game, f"Can't move {action.value}! " + status_message(game))
            continue

        move_count += 1
        if logger is not None:
            logger.record_move(move_count, outcome, game.score)

        message = status_message(game)
        if not message and outcome.score_delta > 0:
            message = f"+{outcome.score_delta}"
        draw_board(game, message)
