"""Result sinks for persisting session results."""

from __future__ import annotations

import contextlib
import json
import logging
import os
import time
from abc import ABC, abstractmethod
from pathlib import Path

from slo.contracts import SessionResult

logger = logging.getLogger(__name__)


class ResultSink(ABC):
    """Durably records a session result."""

    @abstractmethod
    def save(self, result: SessionResult) -> None:
        """Persist a result.

        Raises:
            Exception: Any persistence failure, surfaced to the caller
        """


class JsonFileSink(ResultSink):
    """Writes a session result as pretty-printed JSON with an atomic replace.

    The full document is written to ``<path>.tmp.<pid>.<ns>`` next to the
    destination, flushed and closed, then renamed over the destination. A
    failure at any step leaves the destination untouched and removes the
    temporary file. Non-finite values (NaN, Infinity) are not valid JSON
    and fail the save with ``ValueError``. An empty path disables the sink.
    """

    def __init__(self, path: str | Path | None) -> None:
        self.path = Path(path) if path else None

    def save(self, result: SessionResult) -> None:
        if self.path is None:
            return

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(
            f"{self.path.name}.tmp.{os.getpid()}.{time.time_ns()}"
        )

        try:
            with tmp_path.open("w", encoding="utf-8") as fh:
                json.dump(result.to_dict(), fh, indent=2, allow_nan=False)
                fh.write("\n")
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            with contextlib.suppress(OSError):
                tmp_path.unlink()
            raise

        logger.debug(
            "slo.sink.saved",
            extra={"path": str(self.path), "test_case": result.meta.test_case},
        )
