"""Error taxonomy for glowdock."""

from __future__ import annotations


class GlowdockError(ValueError):
    """Base class for fatal run errors."""


class ParseError(GlowdockError):
    """Malformed structure, pose, normal mode or table file."""


class ConfigurationError(GlowdockError):
    """Invalid run configuration, detected before the first step."""


class ScoringLookupError(GlowdockError):
    """Atom type or distance bin outside the loaded scoring table."""
