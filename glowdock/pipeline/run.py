"""Pipeline entrypoints."""

from __future__ import annotations

import json
import logging
import os
from typing import Dict, List, Literal, Optional

import numpy as np
from pydantic import BaseModel, Field, ValidationError

from glowdock import constants
from glowdock.data.io import load_config, load_normal_modes, load_poses, load_structures
from glowdock.data.structs import NormalModeSet, Structure
from glowdock.errors import ConfigurationError
from glowdock.pipeline.logging import RunLogger
from glowdock.pipeline.trajectory import TrajectoryWriter
from glowdock.scoring import build_scoring_function
from glowdock.scoring.restraints import RestraintSet
from glowdock.search.gso import GSO, GSOParameters, SwarmResult
from glowdock.utils.debug_logger import DebugLogger
from glowdock.utils.topk import topk_indices

logger = logging.getLogger(__name__)


class Config(BaseModel):
    """Configuration model for a glowdock swarm run."""

    seed: int = constants.DEFAULT_SEED
    scoring: Literal["dfire", "dna"] = "dfire"
    steps: int = Field(constants.DEFAULT_STEPS, ge=1)
    workers: int = Field(1, ge=1)

    luciferin_init: float = constants.DEFAULT_LUCIFERIN
    vision_range_init: float = Field(constants.DEFAULT_VISION_RANGE, ge=0.0)
    max_vision_range: float = Field(constants.DEFAULT_MAX_VISION_RANGE, gt=0.0)
    rho: float = Field(constants.DEFAULT_RHO, ge=0.0, le=1.0)
    gamma: float = Field(constants.DEFAULT_GAMMA, gt=0.0)
    beta: float = Field(constants.DEFAULT_BETA, ge=0.0)
    max_neighbors: int = Field(constants.DEFAULT_MAX_NEIGHBORS, ge=0)
    translation_step: float = Field(constants.DEFAULT_TRANSLATION_STEP, gt=0.0)
    rotation_step: float = Field(constants.DEFAULT_ROTATION_STEP, gt=0.0, le=1.0)
    nmodes_step: float = Field(constants.DEFAULT_NMODES_STEP, gt=0.0)

    use_anm: bool = False
    anm_rec: int = Field(0, ge=0)
    anm_lig: int = Field(0, ge=0)
    anm_extent: float = Field(constants.DEFAULT_NMODES_EXTENT, gt=0.0)
    receptor_nm_file: str = constants.DEFAULT_REC_NM_FILE
    ligand_nm_file: str = constants.DEFAULT_LIG_NM_FILE

    receptor_pdb: Optional[str] = None
    ligand_pdb: Optional[str] = None
    receptor_restraints: Optional[Dict[str, List[str]]] = None
    ligand_restraints: Optional[Dict[str, List[str]]] = None
    restraints_min_satisfied: int = Field(1, ge=0)
    restraints_penalty: float = Field(constants.DEFAULT_RESTRAINTS_PENALTY, gt=0.0)
    interface_cutoff: float = Field(constants.INTERFACE_CUTOFF, gt=0.0)

    save_every: int = Field(constants.DEFAULT_SAVE_EVERY, ge=1)
    data_dir: Optional[str] = None
    debug: bool = False
    debug_level: str = "INFO"

    class Config:
        extra = "allow"


def build_config(raw: Dict[str, object]) -> Config:
    """Validate raw settings, reporting every problem as a ``ConfigurationError``."""

    if not isinstance(raw, dict):
        raise ConfigurationError("Configuration must be a mapping of option names to values")
    try:
        return Config(**raw)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc


def load_run_config(path: str) -> Config:
    """Load and validate a YAML/JSON setup file."""

    return build_config(load_config(path))


def _resolve(base_dir: str, path: str) -> str:
    return path if os.path.isabs(path) else os.path.join(base_dir, path)


def _load_modes(
    cfg: Config, base_dir: str, structure: Structure, filename: str, num_modes: int
) -> Optional[NormalModeSet]:
    if not cfg.use_anm or num_modes == 0:
        return None
    return load_normal_modes(_resolve(base_dir, filename), num_modes, structure.num_atoms, cfg.anm_extent)


def _write_result(out_dir: str, cfg: Config, result: SwarmResult, topk: int = 10) -> None:
    energies = result.energies
    best = topk_indices(energies, topk, largest=False)
    payload = {
        "steps": result.steps,
        "glowworms": len(result.glowworms),
        "best_energy": float(energies[best[0]]),
        "best": [
            {
                "glowworm": int(idx),
                "energy": float(energies[idx]),
                "luciferin": float(result.glowworms[idx].luciferin),
                "pose": result.glowworms[idx].pose.as_list(),
            }
            for idx in best
        ],
        "config": {
            "seed": cfg.seed,
            "scoring": cfg.scoring,
            "rho": cfg.rho,
            "gamma": cfg.gamma,
            "beta": cfg.beta,
            "max_neighbors": cfg.max_neighbors,
            "max_vision_range": cfg.max_vision_range,
            "use_anm": cfg.use_anm,
        },
    }
    with open(os.path.join(out_dir, "result.json"), "w", encoding="utf-8") as handle:
        handle.write(json.dumps(payload, indent=2))


def run_simulation(
    cfg: Config,
    swarm_path: str,
    out_dir: str,
    base_dir: str = ".",
    steps: Optional[int] = None,
) -> SwarmResult:
    """Run one swarm: load inputs, validate, optimise and write the outputs.

    Every input is loaded and validated before the first step, so a failure
    never leaves a partial trajectory behind.
    """

    steps = int(steps if steps is not None else cfg.steps)
    if steps < 1:
        raise ConfigurationError(f"steps must be >= 1, got {steps}")
    if not cfg.receptor_pdb or not cfg.ligand_pdb:
        raise ConfigurationError("receptor_pdb and ligand_pdb must be configured")

    data_dir = _resolve(base_dir, cfg.data_dir) if cfg.data_dir else None
    scoring = build_scoring_function(cfg.scoring, data_dir, interface_cutoff=cfg.interface_cutoff)
    receptor, ligand = load_structures(
        _resolve(base_dir, cfg.receptor_pdb), _resolve(base_dir, cfg.ligand_pdb), scoring
    )
    rec_modes = _load_modes(cfg, base_dir, receptor, cfg.receptor_nm_file, cfg.anm_rec)
    lig_modes = _load_modes(cfg, base_dir, ligand, cfg.ligand_nm_file, cfg.anm_lig)
    receptor_model = scoring.prepare(receptor, rec_modes)
    ligand_model = scoring.prepare(ligand, lig_modes)

    restraint_set = RestraintSet.from_config(
        cfg.receptor_restraints,
        cfg.ligand_restraints,
        min_satisfied=cfg.restraints_min_satisfied,
        penalty=cfg.restraints_penalty,
    )
    restraints = restraint_set.resolve(receptor, ligand) if restraint_set is not None else None

    poses = load_poses(
        swarm_path,
        receptor_model.num_modes,
        ligand_model.num_modes,
        rec_modes=rec_modes,
        lig_modes=lig_modes,
    )
    params = GSOParameters.from_config(cfg)
    params.validate()

    # PT-BR: o diretório só é criado depois de validar todas as entradas; uma
    # execução abortada não deixa trajetória parcial.
    os.makedirs(out_dir, exist_ok=True)
    run_logger = RunLogger(out_dir=out_dir, live_write=True)
    debug_logger = DebugLogger(
        enabled=cfg.debug, path=os.path.join(out_dir, "debug.jsonl"), level=cfg.debug_level
    )
    debug_logger.log(
        {
            "type": "run_start",
            "scoring": cfg.scoring,
            "glowworms": len(poses),
            "steps": steps,
            "receptor_atoms": receptor.num_atoms,
            "ligand_atoms": ligand.num_atoms,
            "restraints": restraints is not None,
        }
    )
    logger.info("Creating GSO with %d glowworms (%s)", len(poses), cfg.scoring)
    try:
        with TrajectoryWriter(out_dir, save_every=cfg.save_every, last_step=steps) as writer:
            gso = GSO(
                poses,
                scoring,
                receptor_model,
                ligand_model,
                params,
                seed=cfg.seed,
                restraints=restraints,
                workers=cfg.workers,
                writer=writer,
                run_logger=run_logger,
                debug_logger=debug_logger,
            )
            result = gso.run(steps)
    finally:
        debug_logger.close()

    _write_result(out_dir, cfg, result)
    run_logger.flush(out_dir)
    run_logger.flush_timeseries(out_dir, scoring=cfg.scoring)
    logger.info("Swarm finished: best energy %.6f", float(np.min(result.energies)))
    return result
