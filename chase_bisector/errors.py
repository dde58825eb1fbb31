"""
Exceptions raised by the bisector velocity code.

Shape problems derive from ValueError and the reference range problem from
IndexError so callers catching the builtin types keep working.
"""


class BisectorError(Exception):
    """Base class for all chase_bisector errors."""


class InvalidProfileError(BisectorError, ValueError):
    """A single profile cannot be processed (non-positive maximum, too short)."""


class CubeShapeError(BisectorError, ValueError):
    """Intensity cube has an unsupported number of axes."""


class SpectralAxisMismatchError(CubeShapeError):
    """Wavelength axis length differs from the cube spectral length."""


class ReferenceRangeError(BisectorError, IndexError):
    """Reference index falls outside the wavelength axis."""
