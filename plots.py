""" plots.py

Diagnostic plots for Vector Fitting, loosely based on the plotting in vectfit3.m from [1].

plot_magnitude_and_phase compares the sampled data with the fitted model for every port.
plot_sigma shows the magnitude of the weighting function sigma found during pole identification.

[1] B. Gustavsen, VFIT3, The Vector Fitting Website. March 20, 2013. Accessed on:
    Feb. 22, 2020. [Online]. Available: https://www.sintef.no/projectweb/vectfit/downloads/vfut3/.

"""

from math import pi

import numpy as np
from matplotlib import pyplot as plt


def set_plot_style():
    plt.rcParams['font.size'] = 12
    plt.rcParams['grid.color'] = 'gray'
    plt.rcParams['grid.linestyle'] = 'dotted'


def set_scale_legend_options(ax, logx=True, logy=True, legend=True):
    """
    This sets the logarithmic scaling and legend options.
    """
    if logx:
        ax.set_xscale('log')
    if logy:
        ax.set_yscale('log')
    if legend:
        ax.legend()


def plot_magnitude_and_phase(s, f, fit, logx=True, logy=True, errplot=True, phaseplot=False, legend=True,
                             save_prefix=None):
    """
    Plot the magnitude and the phase (if desired) of input f data and new fit data across the input frequencies.
    Repeat for each port.
    :param s: Complex frequencies. 1D array with length number_of_data_points
    :param f: Sampled data. Array of size number_of_ports x number_of_data_points
    :param fit: This is created from the new poles and the calculated residues. Same size as f
    :param save_prefix: If given, each figure is saved as '<save_prefix>_magnitude_<port>' (and '_phase_<port>')
    :return: list of the created figures
    """
    f = np.atleast_2d(f)
    fit = np.atleast_2d(fit)
    freq = (s / (2 * pi * 1j)).real
    set_plot_style()

    figures = []
    for port in range(f.shape[0]):
        fig, ax = plt.subplots(figsize=(8, 7))
        ax.plot(freq, np.abs(f[port]), color='b', linewidth=1, label=f'Data {port}')
        ax.plot(freq, np.abs(fit[port]), color='r', linewidth=1, label=f'FRVF {port}')
        if errplot:
            ax.plot(freq, np.abs(f[port] - fit[port]), color='g', linewidth=1, label='Deviation')
        ax.set_xlim(freq.min(), freq.max())
        ax.set_xlabel('Frequency [Hz]')
        ax.set_ylabel('Magnitude')
        set_scale_legend_options(ax, logx, logy, legend)
        fig.tight_layout()
        if save_prefix is not None:
            fig.savefig(f'{save_prefix}_magnitude_{port}')
        figures.append(fig)

    if phaseplot:
        for port in range(f.shape[0]):
            fig, ax = plt.subplots(figsize=(8, 7))
            phase_data = 180 / pi * np.unwrap(np.angle(f[port]))
            phase_fit = 180 / pi * np.unwrap(np.angle(fit[port]))
            ax.plot(freq, phase_data, color='b', linewidth=1, label=f'Data {port}')
            ax.plot(freq, phase_fit, color='r', linewidth=1, label=f'FRVF {port}')
            if errplot:
                ax.plot(freq, np.abs(phase_data - phase_fit), color='g', linewidth=1, label='Deviation')
            ax.set_xlim(freq.min(), freq.max())
            ax.set_xlabel('Frequency [Hz]')
            ax.set_ylabel('Phase Angle [deg]')
            set_scale_legend_options(ax, logx, False, legend)  # Phase is always on a linear scale
            fig.tight_layout()
            if save_prefix is not None:
                fig.savefig(f'{save_prefix}_phase_{port}')
            figures.append(fig)
    return figures


def plot_sigma(s, poles, C, D, logx=True, logy=True, legend=True):
    """
    This plots sigma(s) = SUM(Cm/(s-am)) + D, evaluated with the starting poles
    :param s: Complex frequencies
    :param poles: Poles used during pole identification
    :param C: Complex sigma residues, one per pole
    :param D: Constant term of sigma
    :return: the created figure
    """
    Dk = 1 / (s.reshape(-1, 1) - np.asarray(poles).reshape(1, -1))
    sigma = D + Dk @ np.asarray(C).ravel()
    freq = (s / (2 * pi * 1j)).real
    set_plot_style()

    fig, ax = plt.subplots(figsize=(8, 7))
    ax.plot(freq, np.abs(sigma), color='k', linewidth=1, label='sigma')
    ax.set_xlim(freq.min(), freq.max())
    ax.set_xlabel('Frequency [Hz]')
    ax.set_ylabel('Magnitude')
    set_scale_legend_options(ax, logx, logy, legend)
    fig.tight_layout()
    return fig
