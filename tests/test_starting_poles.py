"""Tests for the starting pole generation."""
import numpy as np
import pytest

from starting_poles import (frequency_range, generate_starting_poles, linear_complex_poles,
                            linlog_complex_poles, log_complex_poles)
from utils import PoleType, check_conjugate_pairs


def test_frequency_range_ignores_sample_order():
    s = 1j * np.array([30.0, 10.0, 50.0, 20.0])
    assert frequency_range(s) == (10.0, 50.0)


def test_linear_complex_poles():
    s = 1j * np.linspace(10, 1000, 50)
    poles = linear_complex_poles(s, 4, nu=1e-2)
    expected = np.array([-0.1 - 10j, -0.1 + 10j, -10 - 1000j, -10 + 1000j])
    np.testing.assert_allclose(poles, expected)


def test_log_complex_poles():
    s = 1j * np.logspace(1, 3, 50)
    poles = log_complex_poles(s, 6, nu=1e-3)
    np.testing.assert_allclose(-poles[::2].imag, [10, 100, 1000])
    np.testing.assert_allclose(poles[::2].real, [-1e-2, -1e-1, -1])
    check_conjugate_pairs(poles)


@pytest.mark.parametrize("N", [6, 8, 10, 12, 50])
def test_linlog_complex_poles_count(N):
    s = 1j * np.logspace(0, 4, 100)
    poles = linlog_complex_poles(s, N)
    assert poles.shape[0] == N
    check_conjugate_pairs(poles)


def test_log_spacing_needs_positive_frequencies():
    s = 1j * np.linspace(0, 100, 10)
    with pytest.raises(ValueError):
        log_complex_poles(s, 4)
    with pytest.raises(ValueError):
        generate_starting_poles(s, 10, 'linlogcmplx')


@pytest.mark.parametrize("poletype", list(PoleType))
def test_generate_starting_poles_odd_order_adds_real_pole(poletype):
    s = 1j * np.logspace(1, 3, 40)
    poles = generate_starting_poles(s, 7, poletype)
    assert poles.shape[0] == 7
    assert poles[-1].imag == 0
    assert poles[-1].real < 0
    check_conjugate_pairs(poles)


def test_generate_starting_poles_midpoints():
    s = 1j * np.array([10.0, 1000.0])
    assert generate_starting_poles(s, 1, 'lincmplx')[-1] == pytest.approx(-505)
    assert generate_starting_poles(s, 1, 'logcmplx')[-1] == pytest.approx(-100)


def test_generate_starting_poles_rejects_bad_input():
    s = 1j * np.logspace(1, 3, 40)
    with pytest.raises(ValueError):
        generate_starting_poles(s, 0)
    with pytest.raises(ValueError):
        generate_starting_poles(s, 4, 'quadcmplx')


def test_linear_spacing_rejects_band_starting_at_dc():
    s = 1j * np.linspace(0, 1000, 50)
    with pytest.raises(ValueError):
        linear_complex_poles(s, 4)
    with pytest.raises(ValueError):
        generate_starting_poles(s, 5, 'lincmplx')
    with pytest.raises(ValueError):
        generate_starting_poles(1j * np.array([-10.0, 10.0]), 1, 'lincmplx')
