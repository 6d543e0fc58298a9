""" fitcalc.py

This program is based off fitcalcABCDE.m from [2]. The purpose is to evaluate the pole-residue model

        f(s) = SUM(Cm/(s-am)) + D + s*E
                m

at a set of frequencies, and to measure how far the evaluated model is from the sampled data.

[1] B. Gustavsen and A. Semlyen, "Rational approximation of frequency
    domain responses by Vector Fitting", IEEE Trans. Power Delivery,
    vol. 14, no. 3, pp. 1052-1061, July 1999.

[2] B. Gustavsen, Matrix Fitting Toolbox, The Vector Fitting Website.
    March 20, 2013. Accessed on: Feb. 25, 2020. [Online]. Available:
    https://www.sintef.no/projectweb/vectorfitting/downloads/matrix-fitting-toolbox/.

"""

import numpy as np


def fitcalc(s, poles, C, D=None, E=None):
    """
    Calculate the fit from the state space model as in Eq. (4) in [2] of vectfit3.py
    :param s: frequencies. 1D array with length number_of_data_points
    :param poles: poles. 1D array with length number_of_poles
    :param C: residues. Array of size number_of_ports x number_of_poles
    :param D: D values, one per port (omitted when the model has no constant term)
    :param E: E values, one per port (omitted when the model has no proportional term)
    :return: fit. Array of size number_of_ports x number_of_data_points
    """
    s = np.asarray(s, dtype=complex).ravel()
    poles = np.asarray(poles, dtype=complex).ravel()
    C = np.atleast_2d(C)

    Dk = 1 / (s.reshape(-1, 1) - poles.reshape(1, -1))   # Ns x N
    fit = C @ Dk.T
    if D is not None:
        fit = fit + np.asarray(D).reshape(-1, 1)
    if E is not None:
        fit = fit + s.reshape(1, -1) * np.asarray(E).reshape(-1, 1)
    return fit


def rms_error(f, fit):
    """
    RMS error of fit compared with the data f, taken over all ports and data points
    """
    diff = np.atleast_2d(fit) - np.atleast_2d(f)
    return np.sqrt(np.sum(np.abs(diff) ** 2)) / np.sqrt(diff.size)


def max_deviation(f, fit):
    """
    Largest absolute deviation of fit from the data f over all ports and data points
    """
    diff = np.atleast_2d(fit) - np.atleast_2d(f)
    return np.max(np.abs(diff))
