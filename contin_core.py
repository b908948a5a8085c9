# Copyright 2014, Jerome Fung
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.
'''
contin_core

Define objects for working with regularized inversion of an integral
transform, y(t) = \\int K(t, tau) s(tau) dtau + b.

.. moduleauthor:: Jerome Fung <jfung@brandeis.edu>
'''

import numpy as np

from numpy import log, exp
from yaml_serialize import Serializable

# outcomes of an inversion run
INITIALIZED = 'initialized'
ITERATING = 'iterating'
CONVERGED = 'converged'
MAX_ITERATIONS = 'max_iterations'
FAILED = 'failed'


class ContinError(Exception):
    pass


class InvalidProblemConfig(ContinError, ValueError):
    '''
    Bad grid, variances, or other inputs, detected before any
    optimization is done.
    '''
    pass


class InvalidBounds(ContinError, ValueError):
    '''
    Box constraints with a lower bound above the upper bound.
    '''
    pass


class NumericalInstability(ContinError, ArithmeticError):
    '''
    A non-finite value appeared in the objective, its gradient, or
    its Hessian-vector product.
    '''
    pass


class Observations(Serializable):
    '''
    Measured samples (t_i, y_i) with their variances.

    Parameters
    ----------
    t : array_like
        Sample positions (e.g. delay times)
    y : array_like
        Measured values at t
    variance : array_like, optional
        Variance of each y. Default: unit variance.
    '''
    def __init__(self, t, y, variance = None):
        self.t = np.asarray(t, dtype = float)
        self.y = np.asarray(y, dtype = float)
        if variance is None:
            variance = np.ones(len(self.t))
        self.variance = np.asarray(variance, dtype = float)

    @classmethod
    def from_triples(cls, triples):
        '''
        Make Observations from a sequence of (t, y, variance) triples.
        '''
        arr = np.asarray(triples, dtype = float)
        if arr.ndim != 2 or arr.shape[1] != 3:
            raise InvalidProblemConfig('Expected a sequence of (t, y, '
                                       'variance) triples, got shape '
                                       '{0}'.format(arr.shape))
        return cls(arr[:, 0], arr[:, 1], arr[:, 2])

    def __len__(self):
        return len(self.t)


class SPGParameters(Serializable):
    '''
    Tuning parameters of the spectral projected gradient minimizer.

    Parameters
    ----------
    fmin : float
        Stop when the objective falls below this value
    tol : float
        Stop when the sup-norm of the projected gradient falls below this
    M : int
        Length of the non-monotone line search memory (M = 1 is monotone)
    alphamin, alphamax : float
        Safeguards on the spectral step length
    gamma : float
        Sufficient decrease parameter of the line search
    sigma1, sigma2 : float
        Safeguards on the quadratic interpolation in the line search
    lambda_min : float
        Give up the line search below this step fraction
    '''
    def __init__(self, fmin = -1e99, tol = 1e-4, M = 10, alphamin = 1e-30,
                 alphamax = 1e30, gamma = 1e-4, sigma1 = 0.1, sigma2 = 0.9,
                 lambda_min = 1e-20):
        self.fmin = fmin
        self.tol = tol
        self.M = M
        self.alphamin = alphamin
        self.alphamax = alphamax
        self.gamma = gamma
        self.sigma1 = sigma1
        self.sigma2 = sigma2
        self.lambda_min = lambda_min


class ContinInputs(Serializable):
    def __init__(self, n_grid = None, grid_bounds = None, grid_type = 'linear',
                 kernel_type = 'exp', quadrature_type = 'trapezoidal',
                 bounds = (0., 100.), background_bounds = (0., 100.),
                 max_iterations = 100000, spg_params = None, verbose = False,
                 echo_every = 100):
        '''
        n_grid : number of grid points
        grid_bounds : (tau0, tau1)
        bounds : box on the spectral weights
        background_bounds : box on the background, None for unbounded
        '''
        self.n_grid = n_grid
        self.grid_bounds = grid_bounds
        self.grid_type = grid_type
        self.kernel_type = kernel_type
        self.quadrature_type = quadrature_type
        self.bounds = bounds
        self.background_bounds = background_bounds
        self.max_iterations = max_iterations
        if spg_params is None:
            spg_params = SPGParameters()
        self.spg_params = spg_params
        self.verbose = verbose
        self.echo_every = echo_every

    @property
    def grid(self):
        return setup_grid(self.grid_bounds[0], self.grid_bounds[1],
                          self.n_grid, type = self.grid_type)[0]

    @property
    def grid_props(self):
        dh, dhdx = setup_grid(self.grid_bounds[0], self.grid_bounds[1],
                              self.n_grid, type = self.grid_type)[1:]
        return dh, dhdx

    @property
    def quad_weights(self):
        return setup_quadrature(self.grid, self.grid_props[0],
                                self.grid_props[1], self.quadrature_type)


class ContinResult(Serializable):
    def __init__(self, grid = None, spectrum = None, background = None,
                 status = None, n_iter = None, alpha = None, message = None,
                 objective = None, chisq = None, regularizer_contrib = None,
                 y_soln = None, residuals = None,
                 projected_gradient_norm = None, n_fev = None, n_gev = None,
                 kernel_type = None):
        '''
        grid: tau grid points
        spectrum: spectral weights at the grid points
        background: additive background term
        status: one of 'converged', 'max_iterations', 'failed'
        objective: chisq + alpha**2 * regularizer_contrib
        '''
        self.grid = grid
        self.spectrum = spectrum
        self.background = background
        self.status = status
        self.n_iter = n_iter
        self.alpha = alpha
        self.message = message
        self.objective = objective
        self.chisq = chisq
        self.regularizer_contrib = regularizer_contrib
        self.y_soln = y_soln
        self.residuals = residuals
        self.projected_gradient_norm = projected_gradient_norm
        self.n_fev = n_fev
        self.n_gev = n_gev
        self.kernel_type = kernel_type

    @property
    def converged(self):
        return self.status == CONVERGED

    @property
    def x(self):
        return np.append(self.spectrum, self.background)


class SolutionSeries(Serializable):
    def __init__(self, solutions = None, alphas = None):
        self.solutions = solutions
        self.alphas = alphas

    def __len__(self):
        return len(self.solutions)

    def __getitem__(self, i):
        return self.solutions[i]

# Arguably the following functions belong in problem_setup
# rather than here, but avoid a circular import situation.

def setup_grid(grid_min, grid_max, n_grid, type = 'linear'):
    '''
    Set up grid of points over which solution is computed.
    '''
    if type == 'log':
        grid = np.logspace(log(grid_min), log(grid_max), n_grid,
                           base = exp(1))
        dh = (np.log(grid_max) - np.log(grid_min)) / (n_grid - 1)
        dhdx = 1. / grid
    elif type == 'linear':
        grid = np.linspace(grid_min, grid_max, n_grid)
        dh = (grid_max - grid_min) / (n_grid - 1.)
        dhdx = np.ones(n_grid)
    else:
        raise InvalidProblemConfig('Unknown grid type {0}'.format(type))

    return grid, dh, dhdx


def setup_quadrature(grid_x, dh, dhdx, type = 'trapezoidal'):
    n_pts = len(grid_x)
    if type == 'simpson':
        if n_pts % 2 == 0: # even number of points
            # n-1 pts like odd case
            weights = np.ones(n_pts - 1) * 2/3. + \
                np.arange(n_pts - 1) % 2 * 2./3.
            weights[0] = 1./3.
            weights[-1] = 5./6.
            # do last point by trapezoidal
            weights = np.append(weights, 0.5)
        else: # odd, regular "extended Simpson's rule"
            # [1/3, 4/3, 2/3, 4/3, 2/3, ..., 4/3, 1/3]
            weights = np.ones(n_pts) * 2./3. + np.arange(n_pts) % 2 * 2./3.
            weights[0] = 1./3.
            weights[-1] = 1./3.
    elif type == 'trapezoidal':
        weights = np.ones(n_pts)
        weights[0] = 0.5
        weights[-1] = 0.5
    else:
        raise InvalidProblemConfig('Unknown quadrature type {0}'.format(type))

    return dh * weights / dhdx # approximate dx ~ dh / (dh/dx)
