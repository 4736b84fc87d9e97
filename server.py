"""
JSON API for a browser front end.
Exposes one game instance; requests are serialized so only one move is
resolved at a time.

Usage: python cli.py serve [--port PORT] [--best-file FILE]
"""

import threading

from flask import Flask, jsonify

from game import Game2048


def create_app(game: Game2048 | None = None) -> Flask:
    app = Flask(__name__)
    game = game if game is not None else Game2048()
    lock = threading.Lock()

    # start a game unless one was handed in already populated
    if game.max_tile == 0:
        game.new_game()

    app.config["GAME"] = game

    @app.route("/api/state")
    def state():
        """Return the current grid, score, best, status and undo flag."""
        with lock:
            return jsonify(game.snapshot())

    @app.route("/api/tiles")
    def tiles():
        """Occupied cells with the new/merged flags from the last move."""
        with lock:
            return jsonify({"tiles": [tile.to_dict() for tile in game.tiles()]})

    @app.route("/api/new", methods=["POST"])
    def new_game():
        with lock:
            game.new_game()
            return jsonify(game.snapshot())

    @app.route("/api/move/<direction>", methods=["POST"])
    def move(direction):
        """Play a move. An unknown direction is a no-op, not an error."""
        with lock:
            outcome = game.move(direction)
            return jsonify({"outcome": outcome.to_dict(), "state": game.snapshot()})

    @app.route("/api/undo", methods=["POST"])
    def undo():
        with lock:
            game.undo()
            return jsonify(game.snapshot())

    return app


if __name__ == "__main__":
    create_app().run(host="127.0.0.1", port=5050, debug=False)
