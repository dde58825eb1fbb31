from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

import numpy as np
import astropy.units as u

from .bisector import LEVELS, N_LEVELS
from .errors import CubeShapeError, SpectralAxisMismatchError
from .utils import get_wavelength_axis


def _ensure_yxl(a: np.ndarray, name: str) -> np.ndarray:
    a = np.asarray(a)
    if a.ndim != 3:
        raise CubeShapeError(f"{name} must be 3D. Got shape: {a.shape}")
    return a


def _ensure_levels(a: np.ndarray, name: str) -> np.ndarray:
    a = _ensure_yxl(a, name)
    if a.shape[-1] != N_LEVELS:
        raise CubeShapeError(f"{name} must have {N_LEVELS} levels on the last axis. Got shape: {a.shape}")
    return a


def _ensure_same_shape(a: np.ndarray, b: np.ndarray, name_a: str, name_b: str) -> None:
    if a.shape != b.shape:
        raise CubeShapeError(f"{name_a} shape {a.shape} does not match {name_b} shape {b.shape}")


@dataclass
class SpecCube:
    cube: np.ndarray          # (x, y, lambda)
    wavelength: np.ndarray    # (lambda,)
    unit: Optional[u.Unit] = None
    name: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.cube = _ensure_yxl(self.cube, "SpecCube.cube")
        self.wavelength = np.asarray(self.wavelength, dtype=np.float64)
        if self.wavelength.ndim != 1 or self.cube.shape[-1] != self.wavelength.shape[0]:
            raise SpectralAxisMismatchError(
                f"SpecCube wavelength shape {self.wavelength.shape} does not match cube shape {self.cube.shape}"
            )
        if self.meta is None:
            self.meta = {}

    @property
    def shape(self) -> Tuple[int, int, int]:
        return self.cube.shape

    @property
    def spatial_shape(self) -> Tuple[int, int]:
        return self.cube.shape[:2]

    @property
    def n_lambda(self) -> int:
        return self.cube.shape[-1]

    @classmethod
    def from_hdu(cls, hdr: Mapping, data: np.ndarray, name: Optional[str] = None) -> SpecCube:
        """
        Build a cube from a CHASE/RSM style HDU stored as (lambda, ny, nx).

        The image row axis becomes x and the column axis y, giving (x, y, lambda).
        """
        data = _ensure_yxl(data, "HDU data")
        cube = np.moveaxis(np.asarray(data, dtype=np.float64), 0, -1)
        meta = {k: hdr.get(k) for k in ("DATE_OBS", "WAVE_LEN", "BUNIT") if k in hdr}
        return cls(cube=cube, wavelength=get_wavelength_axis(hdr), name=name, meta=meta)


@dataclass
class LOSVelocityCube:
    velocity: np.ndarray          # (x, y, 10) km/s
    bisector: np.ndarray          # (x, y, 10) fractional sample index
    ref_index: float
    ref_wavelength: float
    spectral_sampling: float
    mean_profile: Optional[np.ndarray] = None
    unit: u.Unit = (u.km / u.s)
    meta: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.velocity = _ensure_levels(self.velocity, "LOSVelocityCube.velocity")
        self.bisector = _ensure_levels(self.bisector, "LOSVelocityCube.bisector")
        _ensure_same_shape(self.velocity, self.bisector, "velocity", "bisector")
        if self.meta is None:
            self.meta = {}

    @property
    def shape(self) -> Tuple[int, int, int]:
        return self.velocity.shape

    @property
    def levels(self) -> np.ndarray:
        """Normalized intensity of each level; 0.0 marks the line-core fit."""
        return LEVELS.copy()

    def level(self, k: int) -> np.ndarray:
        if not 0 <= k < N_LEVELS:
            raise IndexError(f"level must be in [0, {N_LEVELS - 1}]. Got: {k}")
        return self.velocity[..., k]

    def to_quantity(self) -> u.Quantity:
        return self.velocity * self.unit
