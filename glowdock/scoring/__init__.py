"""Scoring functions, selected once per run by name."""

from __future__ import annotations

from typing import Dict, Optional, Type

from glowdock.constants import INTERFACE_CUTOFF
from glowdock.errors import ConfigurationError
from glowdock.scoring.base import DockingModel, ScoringFunction
from glowdock.scoring.dfire import DFIRE
from glowdock.scoring.dna import DNA

SCORING_FUNCTIONS: Dict[str, Type[ScoringFunction]] = {
    DFIRE.name: DFIRE,
    DNA.name: DNA,
}


def get_scoring_class(name: str) -> Type[ScoringFunction]:
    try:
        return SCORING_FUNCTIONS[name.lower()]
    except KeyError:
        supported = ", ".join(sorted(SCORING_FUNCTIONS))
        raise ConfigurationError(f"Scoring function '{name}' not supported (use {supported})") from None


def build_scoring_function(
    name: str, data_dir: Optional[str] = None, interface_cutoff: float = INTERFACE_CUTOFF
) -> ScoringFunction:
    """Load the named potential and its table."""

    return get_scoring_class(name).load(data_dir, interface_cutoff=interface_cutoff)


__all__ = [
    "DFIRE",
    "DNA",
    "DockingModel",
    "SCORING_FUNCTIONS",
    "ScoringFunction",
    "build_scoring_function",
    "get_scoring_class",
]
