""" VFdriver.py

This program is based off VFdriver.m from [4]. From [4],

PURPOSE : Calculate a rational model of frequency domain data (s,f(s)) on pole-residue form, and on
          state space form

             f(s)=SUM(Cm/(s-am)) +D +s*E    %pole-residue
                   m

             f(s)=C*(s*I-A)^(-1)*B +D +s*E  %state-space

APPROACH: All ports are fitted with a common pole set using the Fast implementation of the Relaxed version of
          Vector Fitting (FRVF) as implemented in vectfit3.py. Starting poles and least squares weights are
          generated from the options. The poles are relocated until they stop moving, and the residues are
          identified once at the end with the final poles.

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

[4] B. Gustavsen, Matrix Fitting Toolbox, The Vector Fitting Website.
    March 20, 2013. Accessed on: Feb. 25, 2020. [Online]. Available:
    https://www.sintef.no/projectweb/vectorfitting/downloads/matrix-fitting-toolbox/.

"""
import logging

import numpy as np
import numpy.linalg as LA

from starting_poles import generate_starting_poles
from utils import AsympOptions, PoleType, WeightParam, sort_poles
from vectfit3 import VectorFit3, samples_to_arrays

logger = logging.getLogger(__name__)


class VFdriver:
    """
    This iterates the Vector Fitting algorithm until the poles converge
    """
    DEFAULT_OPTIONS = dict(
        N=10,
        poletype=PoleType.lincmplx,
        nu=1e-3,
        Niter=10,
        tol=1e-6,
        weight=None,
        weightparam=WeightParam.common_1,
        asymp=AsympOptions.D,
        stable=True,
        relaxed=True,
        plot=False,
    )

    def __init__(self, **options):
        """
        Sets up the options by merging the default options with any the user selects.
        User selected options have priority
        """
        unknown = set(options) - set(self.DEFAULT_OPTIONS)
        if unknown:
            raise ValueError(f"Unknown options: {', '.join(sorted(unknown))}")
        if 'poletype' in options:
            options['poletype'] = PoleType(options['poletype'])
        if 'weightparam' in options:
            options['weightparam'] = WeightParam(options['weightparam'])
        if 'asymp' in options:
            options['asymp'] = AsympOptions(options['asymp'])
        self.options = {**self.DEFAULT_OPTIONS, **options}

    def vfdriver(self, samples, poles=None):
        """
        :param samples: Sequence of (s, response) pairs, as for VectorFit3
        :param poles: Starting poles. Generated from N, poletype and nu if not given.
        :return:
            fitter: VectorFit3 holding the final poles and state-space model
            rmserr: RMS error of the final fit
        """
        samples = list(samples)
        s, f = samples_to_arrays(samples)

        if poles is None:
            poles = generate_starting_poles(s, self.options['N'], self.options['poletype'], self.options['nu'])

        if self.options['weight'] is None:
            weight = self.build_weight(f)
        else:
            weight = self.options['weight']

        fitter = VectorFit3(samples, poles=poles, weight=weight,
                            stable=self.options['stable'],
                            asymp=self.options['asymp'],
                            relax=self.options['relaxed'],
                            skip_res=True)

        logger.info("Relocating poles")
        for iteration in range(self.options['Niter']):
            old_poles = fitter.get_poles()
            fitter.fit()
            change = self.pole_change(old_poles, fitter.get_poles())
            logger.info(f"\tIteration {iteration}: relative pole change {change:.3e}")
            if change < self.options['tol']:
                logger.info(f"Poles converged after {iteration + 1} iterations")
                break
        else:
            if self.options['Niter'] > 0:
                logger.warning(f"Poles did not converge to {self.options['tol']} within "
                               f"{self.options['Niter']} iterations")

        logger.info("Identifying residues")
        fitter.set_options(stable=self.options['stable'],
                           asymp=self.options['asymp'],
                           relax=self.options['relaxed'],
                           skip_pole=True,
                           spy2=self.options['plot'])
        fitter.fit()
        rmserr = fitter.get_rmse()
        logger.info(f"Final RMS error: {rmserr}")
        return fitter, rmserr

    def build_weight(self, f):
        """
        Creating LS weight from weightparam
        :param f: Array of size number_of_ports x number_of_data_points
        :return: weight. Array of size number_of_data_points x number_of_ports
        """
        Nc, Ns = f.shape
        weightparam = self.options['weightparam']
        if weightparam == WeightParam.common_1:
            weight = np.ones((Nc, Ns))
        elif weightparam == WeightParam.indiv_norm:
            weight = 1 / np.abs(f)
        elif weightparam == WeightParam.indiv_sqrt:
            weight = 1 / np.sqrt(np.abs(f))
        elif weightparam == WeightParam.common_norm:
            weight = np.tile(1 / LA.norm(f, axis=0), (Nc, 1))
        else:
            weight = np.tile(1 / np.sqrt(LA.norm(f, axis=0)), (Nc, 1))
        return weight.T

    @staticmethod
    def pole_change(old_poles, new_poles):
        """
        Largest movement of a pole between two iterations, relative to the largest pole magnitude
        """
        old_poles = sort_poles(old_poles)
        change = np.max(np.abs(new_poles - old_poles))
        scale = np.max(np.abs(old_poles))
        if scale == 0:
            return change  # Poles at the origin, use the absolute change
        return change / scale
