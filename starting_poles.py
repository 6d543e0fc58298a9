""" starting_poles.py

This program generates the starting poles for Vector Fitting, based on the pole generation in VFdriver.m from [2].

The imaginary parts b of the starting poles are spread over the frequency band covered by the samples, and each
pair is placed at -nu*b -/+ 1j*b. Starting poles with a small damping ratio nu spread over the band are
recommended in [1] to avoid ill-conditioning of the least squares problem.

[1] B. Gustavsen and A. Semlyen, "Rational approximation of frequency
    domain responses by Vector Fitting", IEEE Trans. Power Delivery,
    vol. 14, no. 3, pp. 1052-1061, July 1999.

[2] B. Gustavsen, Matrix Fitting Toolbox, The Vector Fitting Website.
    March 20, 2013. Accessed on: Feb. 25, 2020. [Online]. Available:
    https://www.sintef.no/projectweb/vectorfitting/downloads/matrix-fitting-toolbox/.

"""
import logging
from math import ceil, floor, log10

import numpy as np

from utils import PoleType

logger = logging.getLogger(__name__)


def frequency_range(s):
    """
    :param s: Complex frequencies of the samples, in any order
    :return: (lowest, highest) imaginary part of s
    """
    s = np.asarray(s)
    return s.imag.min(), s.imag.max()


def complex_pairs(bet, nu):
    """
    Places one complex conjugate pair at -nu*b -/+ 1j*b for every b in bet.
    """
    if np.any(bet == 0):
        raise ValueError("Starting poles need nonzero frequencies, the band must not include DC")
    poles = np.zeros(bet.shape[0] * 2, dtype=complex)
    for n in range(bet.shape[0]):
        alf = -nu * bet[n]
        poles[n * 2] = alf - 1j * bet[n]
        poles[n * 2 + 1] = alf + 1j * bet[n]
    return poles


def linear_complex_poles(s, N, nu=1e-3):
    """
    N // 2 complex conjugate pairs with linearly spaced imaginary parts
    """
    lo, hi = frequency_range(s)
    bet = np.linspace(lo, hi, N // 2)
    return complex_pairs(bet, nu)


def log_complex_poles(s, N, nu=1e-3):
    """
    N // 2 complex conjugate pairs with logarithmically spaced imaginary parts
    """
    lo, hi = frequency_range(s)
    if lo <= 0:
        raise ValueError(f"Logarithmic pole spacing needs a positive lowest frequency, got {lo}")
    bet = np.logspace(log10(lo), log10(hi), N // 2)
    return complex_pairs(bet, nu)


def linlog_complex_poles(s, N, nu=1e-3):
    """
    Complex conjugate pairs where about half the imaginary parts are linearly spaced over the band, and the rest
    are logarithmically spaced inside it (the end points of the logarithmic set are dropped).
    """
    lo, hi = frequency_range(s)
    if lo <= 0:
        raise ValueError(f"Logarithmic pole spacing needs a positive lowest frequency, got {lo}")
    bet = np.linspace(lo, hi, ceil((N - 1) / 4))
    poles1 = complex_pairs(bet, nu)
    bet = np.logspace(log10(lo), log10(hi), 2 + floor(N / 4))
    bet = bet[1:-1]
    poles2 = complex_pairs(bet, nu)
    return np.append(poles1, poles2)


def generate_starting_poles(s, N, poletype=PoleType.lincmplx, nu=1e-3):
    """
    Generates N starting poles over the frequency band of s
    :param s: Complex frequencies of the samples
    :param N: Number of poles. For odd N a single real pole is placed at the middle of the band.
    :param poletype: PoleType (or its string value) selecting the spacing of the imaginary parts
    :param nu: Ratio between the real and imaginary part of each pole
    :return: 1D array of N starting poles, complex conjugate pairs adjacent
    """
    if N < 1:
        raise ValueError(f"Number of poles must be positive, got {N}")
    poletype = PoleType(poletype)
    if N < 6 and poletype == PoleType.linlogcmplx:
        poletype = PoleType.logcmplx

    if poletype == PoleType.lincmplx:
        poles = linear_complex_poles(s, N, nu)
    elif poletype == PoleType.logcmplx:
        poles = log_complex_poles(s, N, nu)
    else:
        poles = linlog_complex_poles(s, N, nu)

    if poles.shape[0] < N:
        lo, hi = frequency_range(s)
        if poletype == PoleType.lincmplx:
            pole_extra = -(lo + hi) / 2  # Placing surplus pole in midpoint
        else:
            pole_extra = -10 ** ((log10(lo) + log10(hi)) / 2)  # Placing surplus pole at geometric midpoint
        if pole_extra == 0:
            raise ValueError("Starting poles need nonzero frequencies, the band must not include DC")
        poles = np.append(poles, pole_extra)

    logger.debug(f"Starting poles ({poletype.value}): {poles}")
    return poles
