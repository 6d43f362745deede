"""Run-wide default values."""

from __future__ import annotations

DEFAULT_SEED = 324_324

# GSO
DEFAULT_STEPS = 100
DEFAULT_LUCIFERIN = 5.0
DEFAULT_VISION_RANGE = 0.2
DEFAULT_MAX_VISION_RANGE = 5.0
DEFAULT_RHO = 0.5
DEFAULT_GAMMA = 0.4
DEFAULT_BETA = 0.08
DEFAULT_MAX_NEIGHBORS = 5

# Movement
DEFAULT_TRANSLATION_STEP = 0.5
DEFAULT_ROTATION_STEP = 0.5
DEFAULT_NMODES_STEP = 0.5
DEFAULT_NMODES_EXTENT = 3.0

# Quaternion SLERP falls back to linear interpolation above this dot product
LINEAR_THRESHOLD = 0.9995

# Scoring
INTERFACE_CUTOFF = 3.9
MEMBRANE_PENALTY_SCORE = 999.0
DEFAULT_RESTRAINTS_PENALTY = 1.0

# Files
DEFAULT_DATA_DIR = "data"
DATA_DIR_ENV = "GLOWDOCK_DATA"
DEFAULT_REC_NM_FILE = "rec_nm.npy"
DEFAULT_LIG_NM_FILE = "lig_nm.npy"
DEFAULT_SAVE_EVERY = 10
TRAJECTORY_FILE = "trajectory.jsonl"
