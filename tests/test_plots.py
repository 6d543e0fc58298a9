"""Tests for the diagnostic plots."""
import numpy as np

from plots import plot_magnitude_and_phase, plot_sigma
from vectfit3 import VectorFit3


def test_plot_magnitude_and_phase(ex1_s, ex1_f):
    f = np.vstack((ex1_f, 2 * ex1_f))
    figures = plot_magnitude_and_phase(ex1_s, f, 1.01 * f)
    assert len(figures) == 2
    figures = plot_magnitude_and_phase(ex1_s, f, 1.01 * f, phaseplot=True)
    assert len(figures) == 4


def test_plot_magnitude_and_phase_saves_figures(ex1_s, ex1_f, tmp_path):
    prefix = str(tmp_path / "fit")
    plot_magnitude_and_phase(ex1_s, ex1_f, ex1_f, phaseplot=True, save_prefix=prefix)
    assert (tmp_path / "fit_magnitude_0.png").exists()
    assert (tmp_path / "fit_phase_0.png").exists()


def test_plot_sigma(ex1_s):
    fig = plot_sigma(ex1_s, np.array([-1 - 10j, -1 + 10j]), np.array([1 + 1j, 1 - 1j]), 1.0)
    assert len(fig.axes) == 1


def test_fit_with_plots(ex1_samples, real_starting_poles):
    fitter = VectorFit3(ex1_samples, poles=real_starting_poles, spy1=True, spy2=True, phaseplot=True)
    fitter.fit()
    assert fitter.fitted
