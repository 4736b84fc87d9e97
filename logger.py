"""Session logging: console lines via typer plus an optional JSONL trail."""

import itertools
import json
from datetime import date, datetime
from pathlib import Path
from typing import Any

import typer

from game import MoveOutcome


class SessionLogger:
    """
    Records game events.

    Every call to `record` can echo "  key: value" lines to the console and,
    when a log directory was given, appends one JSON object to
    `<session>_<YYYYMMDD>_<NNN>.jsonl` in that directory.

        with SessionLogger(log_dir="./logs", session="human") as log:
            log.record({"direction": "left", "score": 120}, step=14)
    """

    def __init__(self, log_dir: str | Path | None = None, session: str = "game"):
        self.path: Path | None = None
        self.records_written = 0
        self._stream = None

        if log_dir is not None:
            directory = Path(log_dir)
            directory.mkdir(parents=True, exist_ok=True)
            self.path = self.next_log_path(directory, session)
            self._stream = self.path.open("a")
            typer.echo(f"Logging to: {self.path}")

    @staticmethod
    def next_log_path(directory: Path, session: str) -> Path:
        day = date.today().strftime("%Y%m%d")
        for n in itertools.count(1):
            candidate = directory / f"{session}_{day}_{n:03d}.jsonl"
            if not candidate.exists():
                return candidate

    @staticmethod
    def render(value: Any) -> str:
        if isinstance(value, float):
            if value and (abs(value) < 0.01 or abs(value) >= 10000):
                return f"{value:.2e}"
            return f"{value:.2f}"
        return str(value)

    def record(
        self,
        fields: dict[str, Any],
        step: int | None = None,
        header: str | None = None,
        echo: bool = True,
    ) -> None:
        if echo:
            title = header or (f"--- Step {step} ---" if step is not None else None)
            if title:
                typer.echo(title)
            for key, value in fields.items():
                typer.echo(f"  {key}: {self.render(value)}")

        if self._stream is None:
            return

        entry = {"step": step, "timestamp": datetime.now().isoformat(), **fields}
        self._stream.write(json.dumps(entry) + "\n")
        self._stream.flush()
        self.records_written += 1

    def record_move(self, step: int, outcome: MoveOutcome, score: int) -> None:
        """Write one changed move to the trail without echoing it."""
        self.record(
            {
                "direction": outcome.direction.value if outcome.direction else None,
                "score_delta": outcome.score_delta,
                "score": score,
                "merged": len(outcome.merged),
                "spawned_value": outcome.spawned_value,
                "status": outcome.status.value if outcome.status else None,
            },
            step=step,
            echo=False,
        )

    def echo(self, message: str = "") -> None:
        typer.echo(message)

    def close(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
