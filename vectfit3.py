""" vectfit3.py
This is based directly off the program vectfit3.m (details below)
This implements the VFIT 3 algorithm.

B. Gustavsen, VFIT3, The Vector Fitting Website. March 20, 2013. Accessed on:
Feb. 22, 2020. [Online]. Available: https://www.sintef.no/projectweb/vectfit/downloads/vfut3/.

PURPOSE : Approximate one or more sampled frequency responses f(s) (the ports, or channels) with a rational
          function on pole-residue form with a common set of poles

             f(s)=SUM(Cm/(s-am)) +D +s*E
                   m

APPROACH:
The identification is done using the pole relocating method known as Vector Fitting [1],
with relaxed non-triviality constraint for faster convergence and smaller fitting errors [2],
and utilization of matrix structure for fast solution of the pole identification step [3].

Each call to fit() relocates the poles once, starting from the current pole estimate, and then identifies the
residues with the new poles fixed. Calling fit() repeatedly iterates the algorithm.

********************************************************************************
NOTE: The use of this program is limited to NON-COMMERCIAL usage only.
If the program code (or a modified version) is used in a scientific work,
then reference should be made to the following:

[1] B. Gustavsen and A. Semlyen, "Rational approximation of frequency
    domain responses by Vector Fitting", IEEE Trans. Power Delivery,
    vol. 14, no. 3, pp. 1052-1061, July 1999.

[2] B. Gustavsen, "Improving the pole relocating properties of vector
    fitting", IEEE Trans. Power Delivery, vol. 21, no. 3, pp. 1587-1592,
    July 2006.

[3] D. Deschrijver, M. Mrozowski, T. Dhaene, and D. De Zutter,
    "Macromodeling of Multiport Systems Using a Fast Implementation of
    the Vector Fitting Method", IEEE Microwave and Wireless Components
    Letters, vol. 18, no. 6, pp. 383-385, June 2008.
********************************************************************************
"""
import logging
from math import sqrt

import numpy as np
from numpy import linalg as LA
from scipy.linalg import block_diag

from fitcalc import fitcalc, rms_error, max_deviation
from plots import plot_magnitude_and_phase, plot_sigma
from starting_poles import linear_complex_poles
from utils import (PoleTypes, AsympOptions, NumericalConsistencyError, chop, check_conjugate_pairs,
                   find_which_poles_are_complex, sort_poles)

logger = logging.getLogger(__name__)


def samples_to_arrays(samples):
    """
    :param samples: Sequence of (s, response) pairs
    :return: s - 1D array with length number_of_data_points,
             f - array of size number_of_ports x number_of_data_points
    """
    samples = list(samples)
    if not samples:
        raise ValueError("At least one sample is needed for Vector Fitting")
    s = np.array([sample[0] for sample in samples], dtype=complex)
    f = np.array([np.atleast_1d(sample[1]) for sample in samples], dtype=complex).T
    return s, f


class VectorFit3:
    """
    This implements the Vector Fitting algorithm
    """
    DEFAULT_OPTIONS = dict(
        stable=True,
        asymp=AsympOptions.D,
        skip_pole=False,
        skip_res=False,
        relax=True,
        cmplx_ss=True,
        spy1=False,
        spy2=False,
        logx=True,
        logy=True,
        errplot=True,
        phaseplot=False,
        legend=True
    )

    # Accepted range of |D| for sigma in the relaxed solution, see Eq. (8) in [2]
    TOLLOW = 1e-18
    TOLHIGH = 1e18

    # Ratio between the real and imaginary part of the default starting poles
    NU = 1e-2

    def __init__(self, samples, poles=None, order=None, weight=None, **options):
        """
        :param samples: Sequence of (s, response) pairs. s is a complex frequency and response holds one complex
        value per port. Every sample must have the same number of ports.
        :param poles: Starting poles. Complex conjugate pairs must be adjacent.
        :param order: Number of starting poles to generate when poles is not given. Must be even, since the
        starting poles are complex conjugate pairs linearly spaced over the sampled frequency band.
        :param weight: Optional weighting of the least squares problems. Array of size
        number_of_data_points x number_of_ports; all 1's if not given.
        :param options: Overrides for DEFAULT_OPTIONS
        """
        self.s, self.f = samples_to_arrays(samples)

        self.Ns = self.s.shape[0]   # Number of data points for frequency and response
        self.Nc = self.f.shape[0]   # Number of ports

        self.set_options(**options)

        if poles is not None:
            poles = np.array(poles, dtype=complex).ravel()
            if poles.shape[0] == 0:
                raise ValueError("At least one starting pole is needed")
            check_conjugate_pairs(poles)
        elif order is not None:
            if order <= 0 or order % 2 != 0:
                raise ValueError(f"The order must be a positive even number to generate complex conjugate "
                                 f"starting poles, got {order}")
            poles = linear_complex_poles(self.s, order, nu=self.NU)
        else:
            raise ValueError("Either the starting poles or the order must be given")

        self.poles = poles
        self.N = self.poles.shape[0]    # Number of poles
        if self.N >= self.Ns:
            logger.warning(f"Number of poles ({self.N}) is not smaller than the number of samples ({self.Ns})")

        if weight is None:
            self.weight = np.ones((self.Ns, self.Nc))
        else:
            self.weight = np.array(weight, dtype=float)
            if self.weight.shape != (self.Ns, self.Nc):
                raise ValueError(f"Dimension of weight {self.weight.shape} is not equal to "
                                 f"number_of_data_points x number_of_ports ({self.Ns}, {self.Nc})")

        self.SER = self.zero_model(self.poles)
        self.fitted = False

    @classmethod
    def from_arrays(cls, s, f, poles=None, order=None, weight=None, **options):
        """
        Set up the fit from arrays instead of (s, response) pairs
        :param s: Frequency data. 1D array with length number_of_data_points
        :param f: Data for the frequency response. 1D array with length number_of_data_points, or
        Number_of_ports x number_of_data_points
        """
        s = np.asarray(s, dtype=complex).ravel()
        f = np.asarray(f, dtype=complex)
        if f.ndim == 1:
            # This converts an array of dimensions (points,) to (1, points) to allow matrix math
            f = f.reshape(1, -1)
        if s.shape[0] != f.shape[1]:
            raise ValueError(f"Dimension of s ({s.shape[0]}) is not equal to dimension of f ({f.shape[1]})")
        return cls(zip(s, f.T), poles=poles, order=order, weight=weight, **options)

    def set_options(self, **options):
        """
        Sets up the options by merging the default options with any the user selects.
        User selected options have priority. The options replace any set earlier.
        """
        unknown = set(options) - set(self.DEFAULT_OPTIONS)
        if unknown:
            raise ValueError(f"Unknown options: {', '.join(sorted(unknown))}")
        if 'asymp' in options and not isinstance(options['asymp'], AsympOptions):
            options['asymp'] = AsympOptions(options['asymp'])
        self.options = {**self.DEFAULT_OPTIONS, **options}

    def fit(self):
        """
        This is the main method for vector fitting, implementing [1], [2], and [3]

        The poles are relocated starting from the current poles (unless skip_pole is set), then the residues
        are identified with the new poles (unless skip_res is set). The state-space model is replaced only
        when both stages succeed.
        :return: self
        """
        poles = self.poles

        # Pole Identification
        if not self.options['skip_pole']:
            logger.info("Pole identification")
            poles = self.find_pole(poles)

        # Residue Identification
        if not self.options['skip_res']:
            logger.info("Residue identification")
            C, D, E = self.find_residue(poles)
            SER = self.convert_to_state_space_model(poles, C, D, E)
        else:
            SER = self.convert_to_state_space_model(poles, *self.zero_residues(poles))

        self.poles = poles
        self.SER = SER
        self.fitted = True

        if self.options['skip_res']:
            return self

        fit = self.evaluate()
        logger.info(f"RMS error: {rms_error(self.f, fit)}")
        if self.options['spy2']:
            plot_magnitude_and_phase(self.s, self.f, fit,
                                     logx=self.options['logx'],
                                     logy=self.options['logy'],
                                     errplot=self.options['errplot'],
                                     phaseplot=self.options['phaseplot'],
                                     legend=self.options['legend'])
        return self

    def offset(self):
        """
        Number of columns added after the pole columns to make room for the D and E coefficients in Eq. (1) in [2]
        """
        if self.options['asymp'] == AsympOptions.NONE:
            return 0
        elif self.options['asymp'] == AsympOptions.D:
            return 1
        return 2

    def build_system_matrix(self, cindex, poles):
        """
        This creates the Dk matrix, which is then used to create A in Eq. (A.3) in [1].
        This is the 1/(sk-a1) ... 1/(sk-aN) part of that equation; the weights are applied per port later.
        For a complex conjugate pair the two columns are the sum and the (1j scaled) difference of
        1/(sk-a) and 1/(sk-conj(a)), so the unknowns of the pair are real, see Eq. (A.6) in [1].
        :param cindex: List of the types of poles (real, complex_first, complex_second)
        :param poles: 1D array of the poles. Complex conjugate pairs must be together.
        :return: Dk - Dimensions are (number_of_data_points x number_of_poles)
        """
        N = poles.shape[0]
        Dk = np.zeros((self.Ns, N), dtype=complex)
        for m in range(N):
            if cindex[m] == PoleTypes.REAL:
                Dk[:, m] = 1 / (self.s - poles[m])
            elif cindex[m] == PoleTypes.COMPLEX_FIRST:
                Dk[:, m] = 1 / (self.s - poles[m]) + 1 / (self.s - np.conj(poles[m]))
                Dk[:, m + 1] = 1j / (self.s - poles[m]) - 1j / (self.s - np.conj(poles[m]))
        return Dk

    @staticmethod
    def calculate_x(AA, bb):
        """
        Calculate x, which is the least squares solution to AA*x=bb, Eq. (6), Eq. (A.8) in [1]
        The columns of AA are normalized before the solution for better conditioning.
        :param AA: Matrix corresponding to Eq. (A.3), (A.6) in [1].
        :param bb: Vector corresponding to Eq. (A.4), (A.8) in [1].
        :return: x: Least squares solution corresponding to Eq. (6), Eq. (A.8) in [1].
        """
        Escale = 1 / LA.norm(AA, axis=0)
        x, *_ = LA.lstsq(AA * Escale, bb, rcond=None)  # We only care about x as an output
        return x * Escale.reshape(-1, 1)  # Undo the normalization

    @staticmethod
    def combine_complex_residues(cindex, C):
        """
        The residues of a complex conjugate pair are solved for as their real and imaginary parts.
        We now change back to make C complex.
        :param C: Array whose last axis runs over the poles
        """
        C = C.astype(complex)
        for m in range(len(cindex)):
            if cindex[m] == PoleTypes.COMPLEX_FIRST:
                r1 = C[..., m].copy()
                r2 = C[..., m + 1].copy()
                C[..., m] = r1 + 1j * r2
                C[..., m + 1] = r1 - 1j * r2
        return C

    def find_pole(self, poles):
        """
        This function is used to find the poles of f by finding the zeros of sigma using the method described in [3].
        :param poles: 1D array of the current poles.
        :return: roetter: The zeros of the sigma function (the new poles of f), in canonical order
        """
        if not self.options['relax']:
            raise NotImplementedError("Pole identification without the relaxed non-triviality constraint "
                                      "is not implemented")

        N = poles.shape[0]
        offs = self.offset()
        if 2 * self.Ns < 2 * N + offs + 1:
            raise ValueError(f"Too few data points ({self.Ns}) to identify {N} poles")

        # Finding out which starting poles are complex
        cindex = find_which_poles_are_complex(poles)

        # Building system matrix
        Dk = self.build_system_matrix(cindex, poles)

        # Use the Dk matrix to create something closer to Eq. (A.1) in [1] for each port entry.
        if self.options['asymp'] == AsympOptions.DE:
            # Add a column of 1's after the Dk data and a column of the s data as in Eq. (A.3) in [1]
            Dk = np.column_stack((Dk, np.ones(self.Ns), self.s))
        else:
            # Add a column of 1's after the Dk data; sigma always has a constant term
            Dk = np.column_stack((Dk, np.ones(self.Ns)))

        # Scaling for last row of LS-problem (pole identification). Calculate Eq. (9) in [2]
        scale = 0
        for m in range(self.Nc):
            scale = scale + (LA.norm(self.weight[:, m] * self.f[m])) ** 2
        scale = sqrt(scale) / self.Ns

        # Use relaxed nontriviality constraint
        AA = np.zeros((self.Nc * (N + 1), N + 1))  # Set up AA to be used in Eq. (6), (A.8) in [1]
        bb = np.zeros((self.Nc * (N + 1), 1))      # Set up bb to be used in Eq. (6), (A.8) in [1]
        ind1 = N + offs
        ind2 = N + offs + N + 1

        for n in range(self.Nc):
            weig = self.weight[:, n].reshape(-1, 1)

            A = np.hstack((weig * Dk[:, :N + offs],                           # Left Block in Eq. (10) in [3]
                           -weig * Dk[:, :N + 1] * self.f[n].reshape(-1, 1)))  # Right block in Eq. (10) in [3]
            A = np.vstack((A.real, A.imag))  # Stack the real and imaginary components as in Eq. (7) in [3]

            # Integral criterion for sigma (this takes care of Eq. (8) in [2])
            if n + 1 == self.Nc:
                A_temp = np.zeros((1, A.shape[1]))
                A_temp[0, ind1:] = np.real(scale * np.sum(Dk[:, :N + 1], axis=0))
                # A is called [X -HvX] in Eq. (10) in [3]. The extra row avoids the null solution.
                A = np.vstack((A, A_temp))

            Q, R = LA.qr(A)  # Solve as in Eq. (10) in [3] to implement the fast implementation of VF
            AA[n * (N + 1):(n + 1) * (N + 1), :] = R[ind1:ind2, ind1:ind2]  # R22 is used in Eq. (11) in [3]

            if n + 1 == self.Nc:
                # Right side of Eq. (11) in [3], with scale taking care of Eq. (8), (9) in [2].
                bb[n * (N + 1):(n + 1) * (N + 1), 0] = Q[-1, ind1:ind2] * self.Ns * scale

        x = self.calculate_x(AA, bb)  # Calculate the C tilda residues in Eq. (11) in [3]

        D = x[-1, 0]  # The last entry in the x vector becomes D in Eq. (9) in [3]
        if abs(D) < self.TOLLOW or abs(D) > self.TOLHIGH:
            raise NotImplementedError(f"D of sigma ({D}) is outside [{self.TOLLOW}, {self.TOLHIGH}]; the "
                                      f"non-relaxed pole identification needed here is not implemented")

        C = self.combine_complex_residues(cindex, x[:-1, 0])  # C sigma in Eq. (9) in [3]

        if self.options['spy1']:
            plot_sigma(self.s, poles, C, D,
                       logx=self.options['logx'],
                       logy=self.options['logy'],
                       legend=self.options['legend'])

        LAMBD, B, C = self.real_block_diagonal(cindex, poles, C)

        ZER = LAMBD - B * C.reshape(1, -1) / D  # Eq. (9) in [3]
        roetter = LA.eigvals(ZER)  # The rest of Eq. (9) in [3] to find the zeros of sigma (called roetter)
        roetter = chop(roetter)    # Get rid of tiny imaginary numbers so reals are not taken as complex

        unstables = roetter.real > 0
        if self.options['stable'] and np.any(unstables):
            # Forcing unstable poles to be stable...
            logger.debug(f"Flipping {np.count_nonzero(unstables)} unstable poles")
            roetter[unstables] = roetter[unstables] - 2 * roetter[unstables].real

        roetter = sort_poles(roetter)
        logger.debug(f"New poles: {roetter}")
        return roetter

    def real_block_diagonal(self, cindex, poles, C, rtol=1e-12):
        """
        LAMBD is calculated using the A hat for complex numbers in Eq. (B.2) in [1],
        which is A sigma in Eq. (9) in [3]: a 2x2 block [[re, im], [-im, re]] for every complex pair.
        B is changed to [[2],[0]] according to Eq. (B.2) in [1] for complex pairs (1 for real poles).
        C tilda prime is also adjusted for complex pairs according to Eq. (B.2) in [1].
        :return: LAMBD, B, C - all real
        """
        N = poles.shape[0]
        blocks = []
        B = np.ones((N, 1))
        C = C.copy()
        for m in range(N):
            if cindex[m] == PoleTypes.REAL:
                blocks.append(np.array([[poles[m]]]))
            elif cindex[m] == PoleTypes.COMPLEX_FIRST:
                if m + 1 == N or cindex[m + 1] != PoleTypes.COMPLEX_SECOND:
                    raise NumericalConsistencyError(f"Complex pole {poles[m]} at index {m} is not followed by "
                                                    f"its conjugate")
                blocks.append(np.array([[poles[m].real, poles[m].imag],
                                        [-poles[m].imag, poles[m].real]]))
                B[m, 0] = 2
                B[m + 1, 0] = 0
                koko = C[m]
                C[m] = koko.real
                C[m + 1] = koko.imag
        LAMBD = block_diag(*blocks)

        if np.max(np.abs(LAMBD.imag)) > rtol * max(1.0, np.max(np.abs(LAMBD))):
            raise NumericalConsistencyError("The block diagonal pole matrix is not real")
        if np.max(np.abs(C.imag)) > rtol * max(1.0, np.max(np.abs(C))):
            raise NumericalConsistencyError("The sigma residues are not real after the block diagonal transform")
        return LAMBD.real, B, C.real

    def find_residue(self, poles):
        """
        This finds the residues with the new poles. The ports are solved one at a time, each with its own weight.
        :param poles: Vector of the new poles
        :return: The components of Eq. (1) in [2]
            C: Matrix containing the residues for each port's data
            D: Vector of the d values for each port's data (zero unless asymp is D or DE)
            E: Vector of the e values for each port's data (zero unless asymp is DE)
        """
        N = poles.shape[0]
        cindex = find_which_poles_are_complex(poles)

        # Building system matrix
        Dk = self.build_system_matrix(cindex, poles)
        if self.options['asymp'] == AsympOptions.D:
            Dk = np.column_stack((Dk, np.ones(self.Ns)))
        elif self.options['asymp'] == AsympOptions.DE:
            Dk = np.column_stack((Dk, np.ones(self.Ns), self.s))

        C = np.zeros((self.Nc, N))
        D = np.zeros(self.Nc)
        E = np.zeros(self.Nc)

        for n in range(self.Nc):
            A = self.weight[:, n].reshape(-1, 1) * Dk
            A = np.vstack((A.real, A.imag))
            BB = self.weight[:, n] * self.f[n]
            BB = np.hstack((BB.real, BB.imag)).reshape(-1, 1)

            x = self.calculate_x(A, BB)[:, 0]  # This calculates the residues using Eq. (6) in [1]

            C[n] = x[:N]  # Contains the residues c1 to cN in Eq. (A.4) in [1]
            # If applicable, D and E are pulled out as shown in Eq. (4) in [2]
            if self.options['asymp'] in (AsympOptions.D, AsympOptions.DE):
                D[n] = x[N]
            if self.options['asymp'] == AsympOptions.DE:
                E[n] = x[N + 1]

        C = self.combine_complex_residues(cindex, C)
        return C, D, E

    def zero_residues(self, poles):
        C = np.zeros((self.Nc, poles.shape[0]), dtype=complex)
        D = np.zeros(self.Nc)
        E = np.zeros(self.Nc)
        return C, D, E

    def zero_model(self, poles):
        """
        State-space model with all residues, D and E set to zero
        """
        C, D, E = self.zero_residues(poles)
        return dict(A=np.diag(poles), B=np.ones((poles.shape[0], 1)), C=C, D=D, E=E)

    def convert_to_state_space_model(self, poles, C, D, E):
        """
        :return: SER: State-space model. Dictionary containing A, B, C, D, and E. See Eq. (1) and (5) in [2]
        """
        if not self.options['cmplx_ss']:
            raise NotImplementedError("Conversion into a real-only state-space model is not implemented")
        SER = dict(
            A=np.diag(poles),
            B=np.ones((poles.shape[0], 1)),
            C=C,
            D=D,
            E=E
        )
        return SER

    def evaluate(self, s=None):
        """
        Evaluate the current model at s (the sample frequencies if not given)
        :return: fit. Array of size number_of_ports x number_of_data_points
        """
        if s is None:
            s = self.s
        return fitcalc(s, self.poles, self.SER['C'], self.SER['D'], self.SER['E'])

    def get_poles(self):
        return self.poles.copy()

    def get_residues(self):
        return self.SER['C'].copy()

    def get_state_space(self):
        return {key: value.copy() for key, value in self.SER.items()}

    def get_fitted_samples(self, s=None):
        """
        :param s: Frequencies to evaluate the model at. The sample frequencies are used if not given.
        :return: List of (s, response) pairs, one per frequency, in the order of s
        """
        if s is None:
            s = self.s
        else:
            s = np.asarray(s, dtype=complex).ravel()
        fit = self.evaluate(s)
        return [(s[k], fit[:, k]) for k in range(s.shape[0])]

    def get_rmse(self):
        return rms_error(self.f, self.evaluate())

    def get_max_deviation(self):
        return max_deviation(self.f, self.evaluate())
