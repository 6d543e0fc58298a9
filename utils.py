""" utils.py

This program contains supporting functions and classes for vectfit3.py, starting_poles.py and VFdriver.py.

PoleTypes, AsympOptions, WeightParam and PoleType are classes defining the options of the fitting engine and
its driver, based on [1] and [2].

chop, find_which_poles_are_complex, check_conjugate_pairs and sort_poles keep the bookkeeping of complex
conjugate pole pairs consistent between the pole identification and residue identification stages.

[1] B. Gustavsen, VFIT3, The Vector Fitting Website. March 20, 2013. Accessed on:
    Feb. 22, 2020. [Online]. Available: https://www.sintef.no/projectweb/vectfit/downloads/vfut3/.

[2] B. Gustavsen, Matrix Fitting Toolbox, The Vector Fitting Website.
    March 20, 2013. Accessed on: Feb. 25, 2020. [Online]. Available:
    https://www.sintef.no/projectweb/vectorfitting/downloads/matrix-fitting-toolbox/.

"""

from enum import Enum, auto

import numpy as np


class NumericalConsistencyError(RuntimeError):
    """
    Raised when the real block-diagonal form of the poles or the sigma residues keeps an imaginary part.
    This means a complex pole was not stored next to its conjugate.
    """


class PoleTypes(Enum):
    """
    This class contains the different pole types used for indexing matrices in VFIT3
    """
    REAL = auto()               # 0 in MATLAB
    COMPLEX_FIRST = auto()      # 1 in MATLAB
    COMPLEX_SECOND = auto()     # 2 in MATLAB


class AsympOptions(Enum):
    """
    This class contains the options for asymp. This can include D only, include D and E, or include neither D nor E
    See Eq. (4) in [2] of vectfit3.py.
    """
    NONE = 'NONE'
    D = 'D'
    DE = 'DE'


class WeightParam(Enum):
    """
    common_1    --> weight=1 for all elements in Least Sq. problem, at all freq.
    indiv_norm  --> weight(s)=1/abs(Hij(s))      ; indvidual element weight
    indiv_sqrt  --> weight(s)=1/sqrt(abs(Hij(s))); indvidual element weight
    common_norm --> weight(s)=1/norm(H(s))       ; common weight for all matrix elements
    common_sqrt --> weight(s)=1/sqrt(norm(H(s))  ; common weight for all matrix elements
    """
    common_1 = 'common_1'       # 1 in MATLAB
    indiv_norm = 'indiv_norm'   # 2 in MATLAB
    indiv_sqrt = 'indiv_sqrt'   # 3 in MATLAB
    common_norm = 'common_norm' # 4 in MATLAB
    common_sqrt = 'common_sqrt' # 5 in MATLAB


class PoleType(Enum):
    """
    This class contains the options for poletype.
    'lincmplx' : linearly spaced, complex conjugate pairs
    'logcmplx' : logarithmically spaced, complex conjugate pairs
    'linlogcmplx' : half linearly, half logarithmically spaced complex conjugate pairs
    """
    lincmplx = 'lincmplx'
    logcmplx = 'logcmplx'
    linlogcmplx = 'linlogcmplx'


def chop(arr, tol=1e-8):
    """
    Replaces imaginary parts in arr that are negligible compared with the magnitude of the entry with exactly zero.
    This minimizes the chance a solution pole will be mistaken for complex when it should be real.
    """
    arr = np.array(arr, dtype=complex)
    near_zero_imag = np.abs(arr.imag) <= tol * np.abs(arr)
    arr[near_zero_imag] = arr[near_zero_imag].real
    return arr


def find_which_poles_are_complex(poles):
    """
    :param poles: 1D array of poles. Complex conjugate pairs must be together.
    :return: cindex - list of the types of poles (real, complex_first, complex_second) for poles
    """
    cindex = []
    first = True
    for pole in poles:
        if pole.imag == 0:
            cindex.append(PoleTypes.REAL)
        elif first:
            cindex.append(PoleTypes.COMPLEX_FIRST)
            first = False
        else:
            cindex.append(PoleTypes.COMPLEX_SECOND)
            first = True
    return cindex


def check_conjugate_pairs(poles, rtol=1e-12):
    """
    Raises a ValueError unless every complex pole is directly followed by its complex conjugate.
    :param poles: 1D array of poles
    """
    m = 0
    N = poles.shape[0]
    while m < N:
        if poles[m].imag == 0:
            m += 1
            continue
        if m + 1 >= N:
            raise ValueError(f"Complex pole {poles[m]} at index {m} is missing its complex conjugate")
        if not np.isclose(poles[m + 1], np.conj(poles[m]), rtol=rtol, atol=0):
            raise ValueError(f"Pole {poles[m + 1]} at index {m + 1} is not the complex conjugate of "
                             f"pole {poles[m]} at index {m}")
        m += 2


def sort_poles(poles):
    """
    Puts the poles in canonical order: sorted by (|imag|, |real|), with real poles first. Each complex pair is
    stored with the negative imaginary part first, followed by its exact conjugate.
    :param poles: 1D array of poles where complex poles occur in conjugate pairs
    :return: sorted 1D array of poles
    """
    poles = chop(poles)
    poles = poles[np.lexsort((poles.real, np.abs(poles.real), np.abs(poles.imag)))]

    sorted_poles = []
    m = 0
    while m < poles.shape[0]:
        pole = poles[m]
        if pole.imag == 0:
            sorted_poles.append(pole)
            m += 1
        else:
            sorted_poles.append(complex(pole.real, -abs(pole.imag)))
            sorted_poles.append(complex(pole.real, abs(pole.imag)))
            m += 2
    return np.array(sorted_poles, dtype=complex)
