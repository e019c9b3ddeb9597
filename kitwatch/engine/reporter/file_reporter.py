"""Append candidate outcomes to a JSON-lines file."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from ..results import CandidateResult, RunSummary
from .base import BaseReporter


class JsonlReporter(BaseReporter):
    """Write one JSON object per outcome, plus a trailing summary line."""

    def __init__(self, output_dir: Path, run_tag: str | None = None) -> None:
        self.output_dir = output_dir
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.run_tag = run_tag or datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        self.path = self.output_dir / f"run-{self.run_tag}.jsonl"
        self._file = self.path.open("a", encoding="utf-8")

    def report(self, result: CandidateResult) -> None:
        json.dump(result.to_dict(), self._file, ensure_ascii=False)
        self._file.write("\n")

    def summarize(self, summary: RunSummary) -> None:
        json.dump({"summary": summary.to_dict()}, self._file, ensure_ascii=False)
        self._file.write("\n")

    def flush(self) -> None:
        self._file.flush()

    def close(self) -> None:
        self._file.close()


__all__ = ["JsonlReporter"]
