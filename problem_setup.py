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
problem_setup

Functions for setting up the regularized inversion problem.

References:
Provencher Comp. Phys. Comm, 1982

"Matrices" and "vectors" refer to 2 and 1-dimensional ndarrays.
'''

import numpy as np
from numpy import exp

from contin_core import InvalidProblemConfig, setup_grid, setup_quadrature
from contin_kernels import get_kernel
from optimization import BoxConstraints


class ProblemInstance(object):
    '''
    Discretized problem: everything the objective needs, fixed for the
    duration of a minimization. All arrays are read-only and may be
    shared between runs.

    Attributes
    ----------
    t, y : sample positions and values (n)
    grid : tau grid (m)
    kernel_matrix : K[i, j] = kernel(t_i, tau_j) (n x m)
    quad_weights : quadrature weights c (m)
    data_weights : w_i = 1 / variance_i (n)
    coeff_matrix : [K diag(c) | 1] (n x m+1), last column for background
    alpha : strength of regularizer
    kernel_type : name of kernel
    '''
    def __init__(self, t, y, grid, kernel_matrix, quad_weights, data_weights,
                 alpha = 0., kernel_type = None):
        self.t = _readonly(t)
        self.y = _readonly(y)
        self.grid = _readonly(grid)
        self.kernel_matrix = _readonly(kernel_matrix)
        self.quad_weights = _readonly(quad_weights)
        self.data_weights = _readonly(data_weights)
        self.coeff_matrix = _readonly(
            setup_coefficient_matrix(kernel_matrix, quad_weights))
        self.alpha = alpha
        self.kernel_type = kernel_type

    @property
    def n_data(self):
        return len(self.y)

    @property
    def n_grid(self):
        return len(self.grid)

    def with_alpha(self, alpha):
        '''
        Same discretization, different regularization strength.
        '''
        _check_alpha(alpha)
        return ProblemInstance(self.t, self.y, self.grid, self.kernel_matrix,
                               self.quad_weights, self.data_weights, alpha,
                               self.kernel_type)


def _readonly(arr):
    if isinstance(arr, np.ndarray) and not arr.flags.writeable:
        return arr
    arr = np.array(arr, dtype = float)
    arr.flags.writeable = False
    return arr


def _check_alpha(alpha):
    if not np.isfinite(alpha) or alpha < 0:
        raise InvalidProblemConfig('alpha must be finite and >= 0, '
                                   'got {0}'.format(alpha))


def build_problem(t, y, variance, tau0, tau1, n_grid, kernel_type = 'exp',
                  alpha = 0., grid_type = 'linear',
                  quadrature_type = 'trapezoidal'):
    '''
    Discretize y(t) = \\int K(t, tau) s(tau) dtau + b on a grid of n_grid
    points between tau0 and tau1.

    Parameters
    ----------
    t, y, variance:
        observed data; all variances must be positive
    tau0, tau1:
        grid bounds, tau0 < tau1
    n_grid:
        number of grid points, at least 3
    kernel_type:
        'exp', 'lorentz', a Kernel, or a function func(tau, t)
    alpha:
        strength of regularizer
    grid_type:
        'linear' (equispaced) or 'log'
    quadrature_type:
        'trapezoidal' or 'simpson'

    Returns
    -------
    ProblemInstance
    '''
    t = np.asarray(t, dtype = float)
    y = np.asarray(y, dtype = float)
    variance = np.asarray(variance, dtype = float)

    if t.ndim != 1 or len(t) == 0:
        raise InvalidProblemConfig('need a nonempty vector of sample points')
    if y.shape != t.shape or variance.shape != t.shape:
        raise InvalidProblemConfig('t, y, and variance must have equal '
                                   'lengths')
    if not (np.all(np.isfinite(t)) and np.all(np.isfinite(y))):
        raise InvalidProblemConfig('t and y must be finite')
    if not np.all(variance > 0) or not np.all(np.isfinite(variance)):
        raise InvalidProblemConfig('all variances must be positive and '
                                   'finite')
    if int(n_grid) != n_grid or n_grid < 3:
        raise InvalidProblemConfig('need at least 3 grid points, '
                                   'got {0}'.format(n_grid))
    n_grid = int(n_grid)
    if not tau1 > tau0:
        raise InvalidProblemConfig('grid bounds must satisfy tau0 < tau1, '
                                   'got ({0}, {1})'.format(tau0, tau1))
    if grid_type == 'log' and tau0 <= 0:
        raise InvalidProblemConfig('log grid needs tau0 > 0')
    _check_alpha(alpha)

    kernel = get_kernel(kernel_type)
    grid, dh, dhdx = setup_grid(tau0, tau1, n_grid, type = grid_type)
    quad_weights = setup_quadrature(grid, dh, dhdx, type = quadrature_type)

    with np.errstate(divide = 'ignore', invalid = 'ignore',
                     over = 'ignore'):
        kernel_matrix = setup_kernel_matrix(grid, t, kernel)
    if not np.all(np.isfinite(kernel_matrix)):
        raise InvalidProblemConfig('kernel {0!r} is not finite on the grid '
                                   '[{1}, {2}]'.format(kernel.name, tau0,
                                                       tau1))

    return ProblemInstance(t, y, grid, kernel_matrix, quad_weights,
                           setup_weights(variance), alpha, kernel.name)


def setup_kernel_matrix(grid, tbase, kernel):
    '''
    n_ts x n_grid matrix of kernel values.
    '''
    return get_kernel(kernel).matrix(grid, tbase)


def setup_coefficient_matrix(kernel_matrix, quadrature_weights):
    '''
    Kernel matrix with columns scaled by the quadrature weights, plus
    a column of ones for the background term.
    '''
    n_ts, n_grid = kernel_matrix.shape
    A = np.zeros((n_ts, n_grid + 1))
    A[:, :-1] = kernel_matrix * quadrature_weights
    A[:, -1] = np.ones(n_ts)
    return A


def setup_weights(variance):
    '''
    Inverse variances, multiplying each squared residual.
    '''
    return 1. / np.asarray(variance, dtype = float)


def setup_bounds(n_grid, bounds = (0., 100.), background_bounds = (0., 100.)):
    '''
    Box on (g, b): the same bounds on every spectral weight, and
    background_bounds on the background. background_bounds = None
    leaves the background unbounded.
    '''
    if background_bounds is None:
        background_bounds = (-np.inf, np.inf)
    lower = np.append(np.ones(n_grid) * bounds[0], background_bounds[0])
    upper = np.append(np.ones(n_grid) * bounds[1], background_bounds[1])
    return BoxConstraints(lower, upper)


def setup_initial_guess(n_grid, weight = 1., background = 0.):
    return np.append(np.ones(n_grid) * weight, background)


def simulate_multi_exponential(intensities, taus, n_points, t0, t_end):
    '''
    Noise-free y(t) = sum_k I_k exp(-t / tau_k) at n_points equispaced
    times between t0 and t_end, with unit variance.

    Returns
    -------
    t, y, variance
    '''
    t = np.linspace(t0, t_end, n_points)
    y = np.zeros(n_points)
    for intensity, tau in zip(intensities, taus):
        y += intensity * exp(-t / tau)
    return t, y, np.ones(n_points)
