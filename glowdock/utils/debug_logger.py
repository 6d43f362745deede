"""Logger de debug estruturado (JSONL) com overhead mínimo."""

from __future__ import annotations

import json
import logging
import os
import threading
from datetime import datetime, timezone
from typing import Any


class DebugLogger:
    """Levelled JSONL event log for a swarm run.

    Writing is best effort: I/O failures turn into warnings and disable the
    logger instead of aborting the optimisation.
    """

    _LEVELS = {"DEBUG": 10, "INFO": 20, "WARN": 30}

    def __init__(self, enabled: bool, path: str, level: str = "INFO", flush_every: int = 50) -> None:
        self.enabled = bool(enabled)
        self.path = path
        self.level = self._normalize_level(level)
        self.flush_every = max(1, int(flush_every))
        self.run_id: str | None = None
        self._handle = None
        self._events_since_flush = 0
        self._lock = threading.Lock()

        if not self.enabled:
            return
        try:
            os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
            self._handle = open(path, "a", encoding="utf-8")
        except OSError:
            logging.getLogger(__name__).warning("Could not open debug log at %s", path)
            self.enabled = False

    def _normalize_level(self, level: str) -> int:
        if not isinstance(level, str):
            return self._LEVELS["INFO"]
        return self._LEVELS.get(level.upper(), self._LEVELS["INFO"])

    def _should_log(self, level: str) -> bool:
        return self._normalize_level(level) >= self.level

    def log(self, event: dict[str, Any], level: str = "INFO") -> None:
        if not self.enabled or self._handle is None:
            return
        if not self._should_log(level):
            return
        payload = dict(event)
        payload.setdefault("ts_utc", datetime.now(timezone.utc).isoformat())
        if "run_id" not in payload and self.run_id:
            payload["run_id"] = self.run_id
        payload.setdefault("level", level.upper())
        payload.setdefault("pid", os.getpid())
        payload.setdefault("thread", threading.get_ident())
        # PT-BR: o lock evita linhas intercaladas quando a avaliação roda em threads.
        with self._lock:
            try:
                self._handle.write(json.dumps(payload, ensure_ascii=False) + "\n")
                self._events_since_flush += 1
                if self._events_since_flush >= self.flush_every:
                    self._handle.flush()
                    self._events_since_flush = 0
            except OSError:
                logging.getLogger(__name__).warning("Could not write debug event.")

    def close(self) -> None:
        if not self.enabled or self._handle is None:
            return
        try:
            self._handle.flush()
            self._handle.close()
        except OSError:
            logging.getLogger(__name__).warning("Could not close debug log.")
        finally:
            self._handle = None
            self._events_since_flush = 0
