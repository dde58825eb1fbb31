import numpy as np
import pytest


def absorption_line(n=41, center=20.0, width=4.0, depth=0.8, continuum=1.0):
    """Gaussian absorption line on a flat continuum."""
    x = np.arange(n, dtype=np.float64)
    return continuum * (1.0 - depth * np.exp(-((x - center) / width) ** 2))


@pytest.fixture
def make_line():
    return absorption_line


@pytest.fixture
def wavelengths():
    # H-alpha sampling, line center at index 20
    return 6562.8 + (np.arange(41, dtype=np.float64) - 20.0) * 0.05


@pytest.fixture
def uniform_cube():
    line = absorption_line()
    return np.tile(line, (3, 4, 1))
