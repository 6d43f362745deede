"""Teste smoke para integração do debug logger no pipeline."""

from __future__ import annotations

from typing import Any

from conftest import random_poses, write_swarm
from glowdock.data.io import load_config
from glowdock.pipeline import run as run_module


def test_debug_integration_smoke(tmp_path, monkeypatch, receptor_pdb, ligand_pdb, data_dir):
    """PT-BR: valida emissão de eventos principais no pipeline."""

    events: list[dict[str, Any]] = []

    class DummyDebugLogger:
        def __init__(self, enabled: bool, path: str, level: str = "INFO") -> None:
            self.enabled = enabled
            self.path = path
            self.level = level
            self.run_id = None

        def log(self, event: dict[str, Any], level: str = "INFO") -> None:
            events.append(event)

        def close(self) -> None:
            return None

    monkeypatch.setattr(run_module, "DebugLogger", DummyDebugLogger)

    cfg_data = load_config("configs/default.yaml")
    cfg_data.update({"steps": 2, "debug": True, "debug_level": "DEBUG"})
    cfg = run_module.build_config(cfg_data)
    swarm = write_swarm(tmp_path / "initial_positions_0.dat", random_poses(3))
    run_module.run_simulation(cfg, swarm, str(tmp_path / "swarm_0"), base_dir=str(tmp_path))

    event_types = [event.get("type") for event in events]
    assert event_types[0] == "run_start"
    assert event_types.count("gso_step") == 2


def test_debug_log_written_when_enabled(tmp_path, receptor_pdb, ligand_pdb, data_dir):
    cfg_data = load_config("configs/default.yaml")
    cfg_data.update({"steps": 1, "debug": True})
    cfg = run_module.build_config(cfg_data)
    swarm = write_swarm(tmp_path / "initial_positions_0.dat", random_poses(2))
    run_module.run_simulation(cfg, swarm, str(tmp_path / "swarm_0"), base_dir=str(tmp_path))

    # PT-BR: no nível INFO só o evento de início é gravado.
    lines = (tmp_path / "swarm_0" / "debug.jsonl").read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
