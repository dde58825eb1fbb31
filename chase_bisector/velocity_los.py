"""
Line-of-sight (LOS) velocity calculation module.

This module computes LOS velocities from line bisectors: every pixel of an
intensity cube gets a 10-level bisector, the mean bisector position over the
whole field of view sets the reference wavelength, and each pixel's offset
from it is converted to a Doppler velocity.
"""

import logging
import time
import concurrent.futures as _futures

import numpy as np

from .bisector import N_LEVELS, extract_bisector
from .config import BisectorConfig
from .datamodel import LOSVelocityCube
from .errors import CubeShapeError, ReferenceRangeError, SpectralAxisMismatchError

logger = logging.getLogger(__name__)

C_KMS = 299792.458  # km/s


def _prepare_inputs(cube, wavelengths, config: BisectorConfig):
    cube = np.asarray(cube, dtype=np.float64)
    wvl = np.asarray(wavelengths, dtype=np.float64)
    if cube.ndim == 1:
        cube = cube.reshape(1, 1, -1)
    if cube.ndim != 3:
        raise CubeShapeError(f"cube must be 1D or 3D (x, y, lambda). Got shape: {cube.shape}")
    if wvl.ndim != 1 or wvl.shape[0] != cube.shape[-1]:
        raise SpectralAxisMismatchError(
            f"wavelength length {wvl.shape} does not match cube spectral length {cube.shape[-1]}"
        )
    if cube.shape[-1] < config.fit_window:
        raise CubeShapeError(
            f"spectral length {cube.shape[-1]} is shorter than the fit window {config.fit_window}"
        )
    return cube, wvl


def mean_profile(cube: np.ndarray) -> np.ndarray:
    """Field-of-view mean profile, scaled to a unit maximum."""
    prof = np.nansum(np.asarray(cube, dtype=np.float64), axis=(0, 1))
    peak = prof.max()
    if not np.isfinite(peak) or peak <= 0:
        return prof
    return prof / peak


def compute_bisector_cube(cube: np.ndarray, config: BisectorConfig = None) -> np.ndarray:
    """
    Extract the bisector of every pixel.

    Parameters
    ----------
    cube : np.ndarray
        3D intensity cube (x, y, lambda)
    config : BisectorConfig, optional
        Fit window, verbosity, delay and worker count

    Returns
    -------
    bisector : np.ndarray
        (x, y, 10) raw bisector positions (not yet cleaned)
    """
    if config is None:
        config = BisectorConfig()
    nx, ny = cube.shape[:2]
    pixels = list(np.ndindex(nx, ny))

    def _worker(pix):
        if config.delay > 0:
            time.sleep(config.delay)
        i, j = pix
        return extract_bisector(cube[i, j], config.fit_half_width, config.verbose).position

    if config.num_workers > 1:
        with _futures.ThreadPoolExecutor(max_workers=config.num_workers) as executor:
            results = list(executor.map(_worker, pixels))
    else:
        results = [_worker(pix) for pix in pixels]

    bisector = np.zeros((nx, ny, N_LEVELS), dtype=np.float64)
    for (i, j), pos in zip(pixels, results):
        bisector[i, j] = pos
    return bisector


def clean_bisector_cube(bisector: np.ndarray) -> np.ndarray:
    """Copy of ``bisector`` with every non-finite entry set to 0.0."""
    bisector = np.asarray(bisector, dtype=np.float64)
    return np.where(np.isfinite(bisector), bisector, 0.0)


def reference_wavelength(ref: float, wavelengths: np.ndarray):
    """
    Convert the fractional reference index into a wavelength.

    Returns
    -------
    refid : int
        Integer part of ``ref``
    specsamp : float
        Local spectral sampling |wvl[refid+1] - wvl[refid]|
    waveref : float
        Linearly interpolated wavelength at ``ref``
    """
    wvl = np.asarray(wavelengths, dtype=np.float64)
    if not np.isfinite(ref):
        raise ReferenceRangeError(f"reference index is not finite: {ref}")
    refid = int(np.floor(ref))
    if refid < 0 or refid + 1 >= wvl.shape[0]:
        raise ReferenceRangeError(
            f"reference index {ref:.4f} needs samples {refid} and {refid + 1}, "
            f"wavelength axis has {wvl.shape[0]}"
        )
    specsamp = abs(float(wvl[refid + 1] - wvl[refid]))
    waveref = (ref - refid) * specsamp + float(wvl[refid])
    return refid, specsamp, waveref


def doppler_velocity(bisector, ref: float, specsamp: float, waveref: float) -> np.ndarray:
    """First-order Doppler velocity (km/s) of bisector positions relative to ``ref``."""
    return specsamp * (np.asarray(bisector, dtype=np.float64) - ref) / waveref * C_KMS


def velocity_from_bisector_cube(bisector: np.ndarray, wavelengths, mean_profile: np.ndarray = None) -> LOSVelocityCube:
    """
    Turn a raw bisector cube into velocities.

    Non-finite entries are zeroed first. The reference index is the mean of
    every entry of the cleaned cube, unset (zero) levels and failed fits
    included. ``mean_profile`` is passed through to the result untouched.
    """
    cleaned = clean_bisector_cube(bisector)
    n_bad = int(np.count_nonzero(~np.isfinite(np.asarray(bisector, dtype=np.float64))))
    if n_bad:
        logger.debug(f"Zeroed {n_bad} non-finite bisector values")

    ref = float(np.mean(cleaned))
    refid, specsamp, waveref = reference_wavelength(ref, wavelengths)
    velocity = doppler_velocity(cleaned, ref, specsamp, waveref)
    return LOSVelocityCube(
        velocity=velocity,
        bisector=cleaned,
        ref_index=ref,
        ref_wavelength=waveref,
        spectral_sampling=specsamp,
        mean_profile=mean_profile,
    )


def compute_los_velocity_cube(cube, wavelengths, config: BisectorConfig = None) -> LOSVelocityCube:
    """
    Bisector LOS velocities of a whole cube, with the reference diagnostics.

    Parameters
    ----------
    cube : array-like
        Intensity cube (x, y, lambda), or a single 1D profile
    wavelengths : array-like
        Wavelength of each spectral sample
    config : BisectorConfig, optional
        Computation tunables; defaults to ``BisectorConfig()``

    Returns
    -------
    result : LOSVelocityCube
        Velocities (km/s) and cleaned bisectors, both (x, y, 10)
    """
    if config is None:
        config = BisectorConfig()
    cube, wvl = _prepare_inputs(cube, wavelengths, config)

    prof = mean_profile(cube)
    logger.debug(f"FOV mean profile minimum at sample {int(np.argmin(prof))}")

    bisector = compute_bisector_cube(cube, config)
    result = velocity_from_bisector_cube(bisector, wvl, mean_profile=prof)
    logger.info(
        f"LOS velocity for {cube.shape[0]}x{cube.shape[1]} pixels: "
        f"ref index {result.ref_index:.3f}, ref wavelength {result.ref_wavelength:.4f}"
    )
    return result


def compute_los_velocity(cube, wavelengths, config: BisectorConfig = None):
    """
    Bisector LOS velocities of a cube.

    Returns
    -------
    velocity : np.ndarray
        (x, y, 10) velocities (km/s); unset levels still get a value
    bisector : np.ndarray
        (x, y, 10) cleaned bisector positions (fractional sample index)
    """
    result = compute_los_velocity_cube(cube, wavelengths, config)
    return result.velocity, result.bisector
