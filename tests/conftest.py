"""
Shared data for the Vector Fitting tests.

The test response is the first example of vectfit3.m: a real pole at -5, a complex conjugate pair at
-100 -/+ 500j and a constant term of 0.5, sampled at 101 logarithmically spaced frequencies between 1 Hz
and 10 kHz.
"""
import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest
from matplotlib import pyplot as plt

EX1_POLES = np.array([-5, -100 - 500j, -100 + 500j])
EX1_RESIDUES = np.array([2, 30 - 40j, 30 + 40j])
EX1_D = 0.5


def ex1_response(s):
    return np.sum(EX1_RESIDUES / (s.reshape(-1, 1) - EX1_POLES), axis=1) + EX1_D


@pytest.fixture
def ex1_s():
    return 2j * np.pi * np.logspace(0, 4, 101)


@pytest.fixture
def ex1_f(ex1_s):
    return ex1_response(ex1_s)


@pytest.fixture
def ex1_samples(ex1_s, ex1_f):
    return [(s, [f]) for s, f in zip(ex1_s, ex1_f)]


@pytest.fixture
def real_starting_poles():
    return -2 * np.pi * np.logspace(0, 4, 3)


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close('all')
