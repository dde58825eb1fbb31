"""
Bisector extraction for a single absorption-line profile.

The line core is located with a parabolic fit around the deepest sample, the
profile is split at the fitted center into a blue and a red wing, and at each
intensity level 0.1, 0.2, ..., 0.9 (measured from the core toward the
continuum) the midpoint of the two wing crossings is taken as the bisector.
All positions are fractional sample indices; conversion to wavelength and
velocity happens in ``velocity_los``.
"""

import logging
from dataclasses import dataclass, field

import numpy as np

from .errors import InvalidProfileError

logger = logging.getLogger(__name__)

N_LEVELS = 10
LEVELS = np.arange(N_LEVELS) / N_LEVELS  # index 0 is the line core


def _frozen(a, name: str) -> np.ndarray:
    a = np.array(a, dtype=np.float64)
    if a.shape != (N_LEVELS,):
        raise ValueError(f"{name} must have shape ({N_LEVELS},). Got shape: {a.shape}")
    a.setflags(write=False)
    return a


@dataclass(frozen=True)
class Bisector:
    """
    Bisector table of one profile.

    Index 0 holds the parabolic line-core fit (position, fitted minimum);
    index k (1..9) the bisector at normalized intensity k/10. Unset entries
    are 0. ``blue`` and ``red`` keep the two wing crossings the positions
    were averaged from.
    """
    position: np.ndarray
    depth: np.ndarray
    blue: np.ndarray = field(default_factory=lambda: np.zeros(N_LEVELS))
    red: np.ndarray = field(default_factory=lambda: np.zeros(N_LEVELS))
    center_found: bool = False

    def __post_init__(self):
        for name in ("position", "depth", "blue", "red"):
            object.__setattr__(self, name, _frozen(getattr(self, name), f"Bisector.{name}"))

    @classmethod
    def empty(cls) -> "Bisector":
        zeros = np.zeros(N_LEVELS)
        return cls(position=zeros, depth=zeros)

    @property
    def n_levels(self) -> int:
        """Number of defined levels above the line core."""
        return int(np.count_nonzero(self.depth[1:]))


def normalize_profile(profile) -> np.ndarray:
    """
    Divide a profile by its maximum.

    Parameters
    ----------
    profile : array-like
        1D intensity profile

    Returns
    -------
    norm : np.ndarray
        New float64 array whose maximum is exactly 1.0
    """
    prof = np.asarray(profile, dtype=np.float64)
    if prof.ndim != 1 or prof.size == 0:
        raise InvalidProfileError(f"profile must be a non-empty 1D array. Got shape: {prof.shape}")
    peak = np.max(prof)
    if not np.isfinite(peak) or peak <= 0:
        raise InvalidProfileError(f"profile maximum must be finite and positive. Got: {peak}")
    return prof / peak


def fit_line_core(norm: np.ndarray, fit_half_width: int = 2):
    """
    Fit a parabola around the profile minimum.

    The minimum index is clamped into ``[fit_half_width, N-1-fit_half_width]``
    so the window always stays inside the profile, even when that moves it
    off the true minimum.

    Returns
    -------
    (center, depth) : tuple of float, or None
        Vertex of the parabola in sample units, None when the parabola does
        not open upward or its vertex lies outside the sampled range
    """
    n = norm.size
    hw = fit_half_width
    m = int(np.argmin(norm))
    m = min(max(m, hw), n - 1 - hw)

    x = np.arange(m - hw, m + hw + 1, dtype=np.float64)
    coeffs = np.polyfit(x, norm[m - hw:m + hw + 1], 2)
    a, b = coeffs[0], coeffs[1]
    if not a > 0:
        return None

    center = -b / (2.0 * a)
    if not 0.0 <= center <= n - 1:
        return None
    return float(center), float(np.polyval(coeffs, center))


def split_wings(norm: np.ndarray, center: float, depth: float):
    """
    Insert the fitted core into the profile and split it at the center.

    Intensities of the augmented sequence are rescaled to span [0, 1].

    Returns
    -------
    blue, red : tuple of (positions, intensities)
        Both wings ordered from the core outward; each includes the core point
    """
    pos = np.arange(norm.size, dtype=np.float64)
    if float(center).is_integer():
        ic = int(center)
        inten = norm.copy()
    else:
        ic = int(np.searchsorted(pos, center))
        pos = np.insert(pos, ic, center)
        inten = np.insert(norm, ic, depth)

    inten = inten - inten.min()
    top = inten.max()
    if top > 0:
        inten = inten / top

    blue = (pos[:ic + 1][::-1], inten[:ic + 1][::-1])
    red = (pos[ic:], inten[ic:])
    return blue, red


def wing_position(positions: np.ndarray, intensities: np.ndarray, level: float) -> float:
    """
    Position where a wing first reaches ``level``, walking outward from the core.

    Linear interpolation between the two bracketing samples; NaN if the wing
    never crosses the level.
    """
    diff = intensities - level
    cross = np.nonzero(diff[:-1] * diff[1:] <= 0)[0]
    if cross.size == 0:
        return np.nan
    j = cross[0]
    y0, y1 = intensities[j], intensities[j + 1]
    if y1 == y0:
        return float(positions[j])
    return float(positions[j] + (level - y0) * (positions[j + 1] - positions[j]) / (y1 - y0))


def extract_bisector(profile, fit_half_width: int = 2, verbose: bool = False) -> Bisector:
    """
    Compute the 10-level bisector of one absorption-line profile.

    Parameters
    ----------
    profile : array-like
        1D intensity profile with a positive maximum
    fit_half_width : int, default=2
        Half-width of the parabolic core fit window
    verbose : bool, default=False
        Log the fit and the bisector table at DEBUG level

    Returns
    -------
    bisector : Bisector
        All zeros when the profile has non-finite samples or no
        upward-opening core fit exists; levels the shallower wing does not
        reach stay zero
    """
    if fit_half_width < 1:
        raise InvalidProfileError(f"fit_half_width must be >= 1. Got: {fit_half_width}")
    prof = np.asarray(profile, dtype=np.float64)
    if prof.ndim == 1 and prof.size and not np.isfinite(prof).all():
        if verbose:
            logger.debug("Profile has non-finite samples; bisector left empty")
        return Bisector.empty()
    norm = normalize_profile(prof)
    n = norm.size
    if n < 2 * fit_half_width + 1:
        raise InvalidProfileError(
            f"profile length {n} is shorter than the fit window {2 * fit_half_width + 1}"
        )

    core = fit_line_core(norm, fit_half_width)
    if core is None:
        if verbose:
            logger.debug("No upward parabolic core fit; bisector left empty")
        return Bisector.empty()

    center, depth = core
    position = np.zeros(N_LEVELS)
    depths = np.zeros(N_LEVELS)
    blue_pos = np.zeros(N_LEVELS)
    red_pos = np.zeros(N_LEVELS)
    position[0] = center
    depths[0] = depth
    blue_pos[0] = red_pos[0] = center

    if 0.0 < center < n - 1:
        (bx, by), (rx, ry) = split_wings(norm, center, depth)
        m1 = min(int(np.floor(N_LEVELS * min(by.max(), ry.max()))), N_LEVELS)
        # the table stops at 0.9, a continuum-level crossing has no slot
        for k in range(1, min(m1, N_LEVELS - 1) + 1):
            level = LEVELS[k]
            left = wing_position(bx, by, level)
            right = wing_position(rx, ry, level)
            if not (np.isfinite(left) and np.isfinite(right)):
                continue
            blue_pos[k] = left
            red_pos[k] = right
            position[k] = 0.5 * (left + right)
            depths[k] = level

    bis = Bisector(position=position, depth=depths, blue=blue_pos, red=red_pos, center_found=True)
    if verbose:
        logger.debug(
            "Core fit: center=%.4f depth=%.4f, %d levels; bisector=%s",
            center, depth, bis.n_levels, np.array2string(bis.position, precision=3),
        )
    return bis
