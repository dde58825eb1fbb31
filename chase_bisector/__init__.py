"""
Bisector LOS Velocity Analysis for Solar Spectral Cubes - CHASE/RSM

Main modules:
- bisector: 10-level line bisector of a single profile
- velocity_los: Line-of-sight (LOS) velocity cube from bisectors
- config: Computation tunables
- datamodel: Spectral cube and velocity cube containers
- pipeline: Batch processing of FITS files
"""

from . import bisector
from . import config
from . import datamodel
from . import errors
from . import logger_config
from . import pipeline
from . import utils
from . import velocity_los

from .bisector import Bisector, extract_bisector
from .config import BisectorConfig
from .velocity_los import compute_los_velocity, compute_los_velocity_cube

__version__ = "1.0.0"
__all__ = [
    "bisector",
    "config",
    "datamodel",
    "errors",
    "logger_config",
    "pipeline",
    "utils",
    "velocity_los",
    "Bisector",
    "BisectorConfig",
    "compute_los_velocity",
    "compute_los_velocity_cube",
    "extract_bisector",
]
