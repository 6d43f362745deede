"""Glowworm Swarm Optimization over docking poses.

Each step runs five phases over the whole swarm, each one finishing for every
glowworm before the next starts:

1. evaluate the energy of every pose (optionally on a thread pool),
2. update luciferin ``L = (1 - rho) L + gamma * fitness`` with ``fitness = -energy``,
3. find brighter neighbours inside each vision range,
4. pick one neighbour with probability proportional to the luciferin gap,
5. move a fixed step towards it and adapt the vision range towards ``nt`` neighbours.

Phases 3-5 read frozen snapshots of positions and luciferin, and every glowworm
draws from its own random stream, so the result does not depend on the order in
which glowworms are processed.
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

import numpy as np

from glowdock import constants
from glowdock.data.structs import Pose
from glowdock.errors import ConfigurationError, ParseError, ScoringLookupError
from glowdock.scoring.base import DockingModel, ScoringFunction
from glowdock.scoring.restraints import ResolvedRestraints
from glowdock.utils.geometry import pairwise_dist

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GSOParameters:
    """Run-wide GSO constants."""

    luciferin_init: float = constants.DEFAULT_LUCIFERIN
    vision_range_init: float = constants.DEFAULT_VISION_RANGE
    max_vision_range: float = constants.DEFAULT_MAX_VISION_RANGE
    rho: float = constants.DEFAULT_RHO
    gamma: float = constants.DEFAULT_GAMMA
    beta: float = constants.DEFAULT_BETA
    max_neighbors: int = constants.DEFAULT_MAX_NEIGHBORS
    translation_step: float = constants.DEFAULT_TRANSLATION_STEP
    rotation_step: float = constants.DEFAULT_ROTATION_STEP
    nmodes_step: float = constants.DEFAULT_NMODES_STEP

    @classmethod
    def from_config(cls, cfg: Any) -> "GSOParameters":
        return cls(**{name: getattr(cfg, name) for name in cls.__dataclass_fields__})

    def validate(self) -> None:
        checks = [
            (0.0 <= self.rho <= 1.0, f"rho must be in [0, 1], got {self.rho}"),
            (self.gamma > 0.0, f"gamma must be positive, got {self.gamma}"),
            (self.beta >= 0.0, f"beta must be non-negative, got {self.beta}"),
            (self.max_neighbors >= 0, f"max_neighbors must be non-negative, got {self.max_neighbors}"),
            (self.max_vision_range > 0.0, f"max_vision_range must be positive, got {self.max_vision_range}"),
            (
                0.0 <= self.vision_range_init <= self.max_vision_range,
                f"vision_range_init must be in [0, {self.max_vision_range}], got {self.vision_range_init}",
            ),
            (math.isfinite(self.luciferin_init), f"luciferin_init must be finite, got {self.luciferin_init}"),
            (self.translation_step > 0.0, f"translation_step must be positive, got {self.translation_step}"),
            (0.0 < self.rotation_step <= 1.0, f"rotation_step must be in (0, 1], got {self.rotation_step}"),
            (self.nmodes_step > 0.0, f"nmodes_step must be positive, got {self.nmodes_step}"),
        ]
        for ok, message in checks:
            if not ok:
                raise ConfigurationError(message)


@dataclass
class Glowworm:
    """One pose with its luciferin, vision range and best energy seen."""

    index: int
    pose: Pose
    luciferin: float
    vision_range: float
    energy: float = math.nan
    best_energy: float = math.inf
    best_pose: Optional[Pose] = None
    neighbors: List[int] = field(default_factory=list)
    moved: bool = True

    @property
    def fitness(self) -> float:
        return -self.energy

    def record_energy(self, energy: float) -> None:
        self.energy = energy
        self.moved = False
        if energy < self.best_energy:
            self.best_energy = energy
            self.best_pose = self.pose

    def update_luciferin(self, rho: float, gamma: float) -> None:
        self.luciferin = (1.0 - rho) * self.luciferin + gamma * self.fitness

    def update_vision_range(self, beta: float, max_neighbors: int, max_vision_range: float) -> None:
        self.vision_range = min(
            max_vision_range,
            max(0.0, self.vision_range + beta * (max_neighbors - len(self.neighbors))),
        )


@dataclass
class SwarmResult:
    """Final swarm state after the last step."""

    glowworms: List[Glowworm]
    steps: int

    @property
    def best(self) -> Glowworm:
        return min(self.glowworms, key=lambda glowworm: glowworm.energy)

    @property
    def energies(self) -> np.ndarray:
        return np.array([glowworm.energy for glowworm in self.glowworms], dtype=float)

    @property
    def luciferins(self) -> np.ndarray:
        return np.array([glowworm.luciferin for glowworm in self.glowworms], dtype=float)


class GSO:
    """Swarm of glowworms driven towards low-energy poses."""

    def __init__(
        self,
        poses: Sequence[Pose],
        scoring: ScoringFunction,
        receptor: DockingModel,
        ligand: DockingModel,
        params: GSOParameters,
        seed: int = constants.DEFAULT_SEED,
        restraints: Optional[ResolvedRestraints] = None,
        workers: int = 1,
        writer: Any = None,
        run_logger: Any = None,
        debug_logger: Any = None,
    ) -> None:
        params.validate()
        if not poses:
            raise ConfigurationError("A swarm needs at least one starting pose.")
        if workers < 1:
            raise ConfigurationError(f"workers must be >= 1, got {workers}")
        for idx, pose in enumerate(poses):
            self._check_pose(idx, pose, receptor, ligand)

        self.scoring = scoring
        self.receptor = receptor
        self.ligand = ligand
        self.params = params
        self.restraints = restraints
        self.workers = int(workers)
        self.writer = writer
        self.run_logger = run_logger
        self.debug_logger = debug_logger
        self.glowworms = [
            Glowworm(
                index=idx,
                pose=pose,
                luciferin=params.luciferin_init,
                vision_range=params.vision_range_init,
            )
            for idx, pose in enumerate(poses)
        ]
        # One independent stream per glowworm, derived from the run seed.
        child_seqs = np.random.SeedSequence(seed).spawn(len(poses))
        self._rngs = [np.random.default_rng(child) for child in child_seqs]
        self.step_count = 0

    @staticmethod
    def _check_pose(idx: int, pose: Pose, receptor: DockingModel, ligand: DockingModel) -> None:
        for label, extents, model in (("receptor", pose.rec_extents, receptor), ("ligand", pose.lig_extents, ligand)):
            if extents.size != model.num_modes:
                raise ParseError(
                    f"Starting pose {idx}: {extents.size} {label} extents, {model.num_modes} modes loaded"
                )
            if model.modes is not None and np.any(np.abs(extents) > model.modes.extent):
                raise ConfigurationError(
                    f"Starting pose {idx}: {label} extents outside +/-{model.modes.extent}"
                )

    def __len__(self) -> int:
        return len(self.glowworms)

    def evaluate_pose(self, pose: Pose) -> float:
        """Energy of one pose against the shared, read-only structures and table."""

        receptor_coords = self.receptor.structure.flexed(pose, self.receptor.modes)
        ligand_coords = self.ligand.structure.transformed(pose, self.ligand.modes)
        return self.scoring.score(
            self.receptor, self.ligand, receptor_coords, ligand_coords, self.restraints
        )

    def run(self, steps: int) -> SwarmResult:
        """Run exactly ``steps`` steps and return the final swarm."""

        if steps < 1:
            raise ConfigurationError(f"steps must be >= 1, got {steps}")
        logger.info("Starting GSO: %d glowworms, %d steps", len(self.glowworms), steps)
        if self.workers > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as executor:
                for _ in range(steps):
                    self.step(executor)
        else:
            for _ in range(steps):
                self.step()
        return SwarmResult(glowworms=self.glowworms, steps=self.step_count)

    def step(self, executor: Optional[Executor] = None) -> None:
        """Run one full step (all five phases)."""

        self.step_count += 1
        step = self.step_count
        n_evaluated = self.evaluate(executor)
        if self.writer is not None:
            self.writer.append_step(step, self.glowworms)

        self.update_luciferin()
        neighbors = self.find_neighbors()
        selected = self.select_neighbors(neighbors)
        n_moved = self.move(selected, neighbors)

        if self.writer is not None and self.writer.should_snapshot(step):
            self.writer.save_snapshot(step, self.glowworms)
        self._log_step(step, n_evaluated, n_moved)

    def evaluate(self, executor: Optional[Executor] = None) -> int:
        """Phase 1: score every glowworm whose pose changed since its last evaluation."""

        pending = [glowworm for glowworm in self.glowworms if glowworm.moved]
        poses = [glowworm.pose for glowworm in pending]
        if executor is not None:
            energies = list(executor.map(self.evaluate_pose, poses))
        else:
            energies = [self.evaluate_pose(pose) for pose in poses]
        for glowworm, energy in zip(pending, energies):
            if not math.isfinite(energy):
                raise ScoringLookupError(
                    f"Glowworm {glowworm.index}: non-finite energy {energy} at step {self.step_count}"
                )
            glowworm.record_energy(energy)
        return len(pending)

    def update_luciferin(self) -> None:
        """Phase 2."""

        for glowworm in self.glowworms:
            glowworm.update_luciferin(self.params.rho, self.params.gamma)

    def find_neighbors(self) -> List[np.ndarray]:
        """Phase 3: brighter glowworms with ``distance <= vision_range``."""

        positions = np.array([glowworm.pose.translation for glowworm in self.glowworms])
        luciferin = np.array([glowworm.luciferin for glowworm in self.glowworms])
        ranges = np.array([glowworm.vision_range for glowworm in self.glowworms])
        distances = pairwise_dist(positions, positions)
        eligible = (distances <= ranges[:, None]) & (luciferin[None, :] > luciferin[:, None])
        neighbors = [np.flatnonzero(row) for row in eligible]
        for glowworm, found in zip(self.glowworms, neighbors):
            glowworm.neighbors = found.tolist()
        return neighbors

    def select_neighbors(self, neighbors: List[np.ndarray]) -> List[int]:
        """Phase 4: weighted draw among neighbours; a glowworm without any selects itself."""

        luciferin = np.array([glowworm.luciferin for glowworm in self.glowworms])
        selected: List[int] = []
        for idx, found in enumerate(neighbors):
            if found.size == 0:
                selected.append(idx)
                continue
            gaps = luciferin[found] - luciferin[idx]
            selected.append(int(self._rngs[idx].choice(found, p=gaps / gaps.sum())))
        return selected

    def move(self, selected: List[int], neighbors: List[np.ndarray]) -> int:
        """Phase 5: move towards the selected neighbour, then adapt the vision range."""

        params = self.params
        snapshot = [glowworm.pose for glowworm in self.glowworms]
        n_moved = 0
        for glowworm, target in zip(self.glowworms, selected):
            if target != glowworm.index:
                glowworm.pose = snapshot[glowworm.index].move_towards(
                    snapshot[target],
                    params.translation_step,
                    params.rotation_step,
                    params.nmodes_step,
                    rec_modes=self.receptor.modes,
                    lig_modes=self.ligand.modes,
                )
                glowworm.moved = True
                n_moved += 1
            glowworm.update_vision_range(params.beta, params.max_neighbors, params.max_vision_range)
        return n_moved

    def _log_step(self, step: int, n_evaluated: int, n_moved: int) -> None:
        energies = np.array([glowworm.energy for glowworm in self.glowworms])
        luciferin = np.array([glowworm.luciferin for glowworm in self.glowworms])
        ranges = np.array([glowworm.vision_range for glowworm in self.glowworms])
        logger.debug("Step %d: best energy %.6f, %d moved", step, float(np.min(energies)), n_moved)
        if self.run_logger is not None:
            self.run_logger.log_step(
                step,
                {
                    "best_energy": float(np.min(energies)),
                    "mean_energy": float(np.mean(energies)),
                    "mean_luciferin": float(np.mean(luciferin)),
                    "mean_vision_range": float(np.mean(ranges)),
                    "n_moved": float(n_moved),
                    "n_evaluated": float(n_evaluated),
                },
            )
        if self.debug_logger is not None:
            self.debug_logger.log(
                {
                    "type": "gso_step",
                    "step": int(step),
                    "n_evaluated": int(n_evaluated),
                    "n_moved": int(n_moved),
                    "best_energy": float(np.min(energies)),
                    "max_luciferin": float(np.max(luciferin)),
                    "min_vision_range": float(np.min(ranges)),
                    "max_vision_range": float(np.max(ranges)),
                },
                level="DEBUG",
            )
