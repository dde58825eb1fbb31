import logging

import numpy as np
import pytest

from chase_bisector.bisector import (
    N_LEVELS,
    Bisector,
    extract_bisector,
    fit_line_core,
    normalize_profile,
    wing_position,
)
from chase_bisector.errors import InvalidProfileError


def test_normalize_profile_has_unit_maximum(make_line):
    profile = make_line() * 250.0
    norm = normalize_profile(profile)
    assert norm.max() == 1.0
    assert profile.max() == pytest.approx(250.0, rel=1e-9)


@pytest.mark.parametrize("profile", [np.zeros(11), -np.ones(11)])
def test_normalize_rejects_bad_maximum(profile):
    with pytest.raises(InvalidProfileError):
        normalize_profile(profile)
    with pytest.raises(ValueError):
        extract_bisector(profile)


def test_normalize_rejects_nan_maximum():
    with pytest.raises(InvalidProfileError):
        normalize_profile(np.full(11, np.nan))


@pytest.mark.parametrize("bad", [np.nan, np.inf])
def test_non_finite_sample_gives_empty_bisector(make_line, bad):
    profile = make_line()
    profile[5] = bad
    bis = extract_bisector(profile)
    assert not bis.center_found
    assert np.all(bis.position == 0)
    assert np.all(bis.depth == 0)


def test_short_profile_raises():
    with pytest.raises(InvalidProfileError):
        extract_bisector([1.0, 0.5, 0.4, 1.0], fit_half_width=2)


def test_symmetric_line_has_vertical_bisector(make_line):
    bis = extract_bisector(make_line())

    assert bis.center_found
    assert bis.position[0] == pytest.approx(20.0, abs=1e-8)
    assert 0.15 < bis.depth[0] < 0.25
    assert bis.n_levels == N_LEVELS - 1
    np.testing.assert_allclose(bis.depth[1:], np.arange(1, N_LEVELS) / 10.0)
    np.testing.assert_allclose(bis.position, 20.0, atol=1e-6)
    # wider at higher levels
    widths = bis.red[1:] - bis.blue[1:]
    assert np.all(np.diff(widths) > 0)


def test_shifted_line_follows_center(make_line):
    bis = extract_bisector(make_line(center=23.3))
    assert bis.position[0] == pytest.approx(23.3, abs=0.15)
    np.testing.assert_allclose(bis.position[1:], 23.3, atol=0.15)


def test_asymmetric_line_wings_are_ordered(make_line):
    profile = make_line(center=18.0, width=3.0, depth=0.6) - 0.3 * np.exp(-((np.arange(41) - 23.0) / 3.0) ** 2)
    bis = extract_bisector(profile)

    defined = bis.depth[1:] > 0
    assert defined.sum() >= 2
    assert np.all(bis.red[1:][defined] >= bis.blue[1:][defined])
    assert np.all((bis.position >= 0) & (bis.position <= profile.size - 1))
    # red component drags the upper bisector redward of the core
    assert bis.depth[9] > 0
    assert bis.position[9] > bis.position[0] + 0.5


@pytest.mark.parametrize(
    "profile",
    [
        1.0 - 0.5 * (np.arange(21) / 20.0) ** 2,
        np.linspace(1.0, 0.5, 21),
    ],
)
def test_downward_profile_gives_empty_bisector(profile):
    bis = extract_bisector(profile)
    assert not bis.center_found
    assert np.all(bis.position == 0)
    assert np.all(bis.depth == 0)


def test_edge_minimum_is_fit_inside_bounds(make_line):
    profile = make_line(n=21, center=1.0)
    bis = extract_bisector(profile)
    assert bis.center_found
    assert 0.0 < bis.position[0] < 2.5
    assert np.all((bis.position >= 0) & (bis.position <= 20))


def test_shallow_wing_limits_levels(make_line):
    # blue wing ends at ~0.9 of the continuum
    bis = extract_bisector(make_line(center=6.0))
    assert bis.n_levels == 8
    assert bis.position[9] == 0.0
    assert bis.depth[9] == 0.0
    assert bis.depth[8] == pytest.approx(0.8)


def test_wing_position_interpolates_outward():
    positions = np.array([5.0, 6.0, 7.0])
    intensities = np.array([0.0, 0.5, 1.0])
    assert wing_position(positions, intensities, 0.25) == pytest.approx(5.5)
    assert wing_position(positions[::-1], intensities, 0.75) == pytest.approx(5.5)
    assert np.isnan(wing_position(positions, intensities, 2.0))


def test_empty_bisector_is_read_only():
    bis = Bisector.empty()
    assert bis.n_levels == 0
    with pytest.raises(ValueError):
        bis.position[0] = 1.0


def test_verbose_logs_fit(make_line, caplog):
    caplog.set_level(logging.DEBUG, logger="chase_bisector")
    extract_bisector(make_line(), verbose=True)
    assert "Core fit" in caplog.text


def test_fit_line_core_recovers_parabola_vertex():
    x = np.arange(15, dtype=np.float64)
    center, depth = fit_line_core(0.5 + 0.01 * (x - 7.3) ** 2, 2)
    assert center == pytest.approx(7.3, abs=1e-9)
    assert depth == pytest.approx(0.5, abs=1e-9)


def test_vertex_left_of_profile_gives_empty_bisector():
    # convex everywhere, lowest point at sample -3
    x = np.arange(21, dtype=np.float64)
    bis = extract_bisector(0.5 + 0.01 * (x + 3.0) ** 2)
    assert not bis.center_found
    assert np.all(bis.position == 0)
    assert np.all(bis.depth == 0)
