"""Per-swarm trajectory output."""

from __future__ import annotations

import glob
import json
import logging
import os
from typing import Any, Iterable

from glowdock.constants import DEFAULT_SAVE_EVERY, TRAJECTORY_FILE

logger = logging.getLogger(__name__)

SNAPSHOT_HEADER = "#Coordinates  RecID  LigID  Luciferin  Neighbor's number  Vision Range  Scoring"


class TrajectoryWriter:
    """Append-only writer for per-step glowworm records.

    Every evaluated step appends one JSON line per glowworm to
    ``trajectory.jsonl``. Snapshots in the classic ``gso_<step>.out`` column
    layout are written at step 1, every ``save_every`` steps and at
    ``last_step``. Creating a writer truncates the trajectory and removes
    snapshots left in the directory by an earlier run.
    """

    def __init__(
        self,
        out_dir: str,
        save_every: int = DEFAULT_SAVE_EVERY,
        last_step: int | None = None,
        filename: str = TRAJECTORY_FILE,
    ) -> None:
        if save_every < 1:
            raise ValueError(f"save_every must be >= 1, got {save_every}")
        if not os.path.isdir(out_dir):
            logger.info("Creating output directory %s", out_dir)
        os.makedirs(out_dir, exist_ok=True)
        self.out_dir = out_dir
        self.save_every = int(save_every)
        self.last_step = last_step
        self.path = os.path.join(out_dir, filename)
        # PT-BR: cada execução recomeça a saída; uma reexecução no mesmo swarm não mistura passos.
        for stale in glob.glob(os.path.join(out_dir, "gso_*.out")):
            os.remove(stale)
        self._handle = open(self.path, "w", encoding="utf-8")

    def __enter__(self) -> "TrajectoryWriter":
        return self

    def __exit__(self, *_exc: Any) -> None:
        self.close()

    def append_step(self, step: int, glowworms: Iterable[Any]) -> None:
        """Append the evaluated pose and energy of every glowworm."""

        for glowworm in glowworms:
            pose = glowworm.pose
            record = {
                "step": int(step),
                "glowworm": int(glowworm.index),
                "translation": pose.translation.tolist(),
                "rotation": pose.rotation.as_array().tolist(),
                "rec_extents": pose.rec_extents.tolist(),
                "lig_extents": pose.lig_extents.tolist(),
                "energy": float(glowworm.energy),
            }
            self._handle.write(json.dumps(record) + "\n")
        self._handle.flush()

    def should_snapshot(self, step: int) -> bool:
        return step == 1 or step % self.save_every == 0 or step == self.last_step

    def save_snapshot(self, step: int, glowworms: Iterable[Any]) -> str:
        """Write ``gso_<step>.out``; ``Scoring`` is the fitness (higher is better)."""

        path = os.path.join(self.out_dir, f"gso_{step}.out")
        with open(path, "w", encoding="utf-8") as handle:
            handle.write(SNAPSHOT_HEADER + "\n")
            for glowworm in glowworms:
                coordinates = ", ".join(f"{value:.7f}" for value in glowworm.pose.as_list())
                handle.write(
                    f"({coordinates})    0    0   {glowworm.luciferin:.8f}  "
                    f"{len(glowworm.neighbors)} {glowworm.vision_range:.3f} {glowworm.fitness:.8f}\n"
                )
        return path

    def close(self) -> None:
        if self._handle is not None and not self._handle.closed:
            self._handle.close()
