"""Knockback arc."""
import pytest
from conftest import make_unit
from game.animation import (arc, displacement, knockback_progress, main_view_amplitude,
                            widget_amplitude)


def test_arc_endpoints_and_peak():
    assert arc(0.0, 16.0) == 0.0
    assert arc(1.0, 16.0) == pytest.approx(0.0, abs=1e-12)
    assert arc(0.5, 16.0) == 16.0


@pytest.mark.parametrize("p", [0.05, 0.1, 0.25, 0.4, 0.49])
def test_arc_symmetric(p):
    assert arc(p, 12.0) == pytest.approx(arc(1.0 - p, 12.0))


def test_amplitude_grows_with_unit_size():
    assert main_view_amplitude("Small") < main_view_amplitude("Medium") < main_view_amplitude("Large")
    assert widget_amplitude("Small", 6) < widget_amplitude("Medium", 6) < widget_amplitude("Large", 6)
    assert main_view_amplitude("Large") == 20.0
    assert widget_amplitude("Medium", 6) == 9.0


@pytest.mark.parametrize("time_left,total", [
    (None, None),
    (0.3, None),
    (None, 0.6),
    (0.3, 0.0),
    (0.3, -1.0),
    (0.0, 0.6),
])
def test_no_knockback_means_no_displacement(time_left, total):
    unit = make_unit(1, "Large", knockback_time=time_left, knockback_total=total)
    assert knockback_progress(time_left, total) is None
    assert displacement(unit, main_view_amplitude) == 0.0


def test_midpoint_reaches_amplitude():
    unit = make_unit(1, "Medium", knockback_velocity=-200.0, knockback_time=0.4, knockback_total=0.8)
    assert displacement(unit, main_view_amplitude) == pytest.approx(16.0)


def test_arc_is_duration_independent():
    """A short and a long knockback at the same progress sit at the same height."""
    short = make_unit(1, "Small", knockback_time=0.1, knockback_total=0.4)
    long = make_unit(2, "Small", knockback_time=0.2, knockback_total=0.8)
    assert displacement(short, main_view_amplitude) == pytest.approx(displacement(long, main_view_amplitude))
