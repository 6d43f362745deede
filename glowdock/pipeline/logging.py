"""Utilitários de logging de métricas para o glowdock."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class RunLogger:
    """In-memory metric log with optional live JSONL writing.

    PT-BR: com live_write=True cada métrica é anexada ao metrics.jsonl no
    momento em que é registrada, então quem acompanha o swarm vê o progresso
    durante a execução; o flush final reescreve o arquivo completo.
    """

    records: List[Dict[str, Any]] = field(default_factory=list)
    out_dir: str | None = None
    live_write: bool = False

    def __post_init__(self) -> None:
        # PT-BR: métricas de uma execução anterior no mesmo diretório são descartadas.
        if self.live_write and self.out_dir:
            open(os.path.join(self.out_dir, "metrics.jsonl"), "w", encoding="utf-8").close()

    def log_metric(self, name: str, value: float, step: int, extra: Optional[Dict[str, Any]] = None) -> None:
        """Record one metric value for a step."""

        payload = {"name": name, "value": value, "step": step}
        if extra:
            payload.update(extra)
        self.records.append(payload)
        self._append_record(payload)

    def log_step(self, step: int, metrics: Dict[str, float], extra: Optional[Dict[str, Any]] = None) -> None:
        """Record every metric of one GSO step."""

        for name, value in metrics.items():
            self.log_metric(name, float(value), step=step, extra=extra)

    def _append_record(self, payload: Dict[str, Any]) -> None:
        if not self.live_write or not self.out_dir:
            return
        path = os.path.join(self.out_dir, "metrics.jsonl")
        with open(path, "a", encoding="utf-8") as handle:
            handle.write(json.dumps(payload) + "\n")

    def flush(self, out_dir: str) -> None:
        """Write metrics to disk."""

        path = os.path.join(out_dir, "metrics.jsonl")
        with open(path, "w", encoding="utf-8") as handle:
            for record in self.records:
                handle.write(json.dumps(record) + "\n")

    def flush_timeseries(self, out_dir: str, scoring: str | None = None) -> None:
        """Write one row per step with every metric of that step."""

        steps: Dict[int, Dict[str, Any]] = {}
        for record in self.records:
            step = record.get("step")
            name = record.get("name")
            if step is None or name is None:
                continue
            entry = steps.setdefault(int(step), {"step": int(step)})
            entry[name] = record.get("value")

        if scoring:
            for entry in steps.values():
                entry["scoring"] = scoring

        path = os.path.join(out_dir, "metrics.timeseries.jsonl")
        with open(path, "w", encoding="utf-8") as handle:
            for step in sorted(steps):
                handle.write(json.dumps(steps[step]) + "\n")
