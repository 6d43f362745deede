"""Glowworm swarm optimisation for macromolecular docking."""

__version__ = "0.1.0"
