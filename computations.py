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
computations

Objective function for the regularized inversion and its derivatives.

With x = (g, b), z = A x the predicted data, and D2 the discrete second
difference acting on g, minimize

f(x) = sum_i w_i (y_i - z_i)^2 + alpha^2 ||D2 g||^2

References:
Provencher Comp. Phys. Comm, 1982

"Matrices" and "vectors" refer to 2 and 1-dimensional ndarrays.
'''

import numpy as np
import scipy.sparse

from contin_core import NumericalInstability
from optimization import DifferentiableObjective


def second_difference_matrix(n_grid):
    '''
    Sparse n_grid x n_grid matrix of the discrete second difference.

    Rows are [1, -2, 1] centered on the diagonal. The first and last rows
    are the one-sided [-2, 1] and [1, -2]; this boundary convention is
    part of the regularizer and not a padding choice.
    '''
    return scipy.sparse.diags([np.ones(n_grid - 1), -2. * np.ones(n_grid),
                               np.ones(n_grid - 1)], [-1, 0, 1],
                              shape = (n_grid, n_grid), format = 'csr')


def diff2(g):
    '''
    Discrete second difference of g, same length as g.
    '''
    g = np.asarray(g, dtype = float)
    d2g = np.empty_like(g)
    d2g[1:-1] = g[:-2] - 2. * g[1:-1] + g[2:]
    d2g[0] = -2. * g[0] + g[1]
    d2g[-1] = g[-2] - 2. * g[-1]
    return d2g


def _check_finite(name, value):
    if not np.all(np.isfinite(value)):
        raise NumericalInstability('non-finite {0} encountered'.format(name))
    return value


def predicted(problem, x):
    '''
    z_i = b + sum_j c_j K_ij g_j
    '''
    return np.dot(problem.coeff_matrix, x)


def objective_value(problem, x):
    x = np.asarray(x, dtype = float)
    with np.errstate(over = 'ignore', invalid = 'ignore'):
        residuals = problem.y - predicted(problem, x)
        chisq = np.dot(problem.data_weights, residuals**2)
        reg = np.sum(diff2(x[:-1])**2)
        f = chisq + problem.alpha**2 * reg
    return _check_finite('objective value', f)


def objective_gradient(problem, x):
    '''
    df/dg_j = 2 sum_i w_i (z_i - y_i) c_j K_ij + 2 alpha^2 (D2 D2 g)_j
    df/db = 2 sum_i w_i (z_i - y_i)
    '''
    return objective_value_and_gradient(problem, x)[1]


def objective_value_and_gradient(problem, x):
    x = np.asarray(x, dtype = float)
    with np.errstate(over = 'ignore', invalid = 'ignore'):
        r = predicted(problem, x) - problem.y
        wr = problem.data_weights * r
        d2g = diff2(x[:-1])
        f = np.dot(wr, r) + problem.alpha**2 * np.dot(d2g, d2g)
        grad = 2. * np.dot(problem.coeff_matrix.T, wr)
        grad[:-1] += 2. * problem.alpha**2 * diff2(d2g)
    _check_finite('objective value', f)
    return f, _check_finite('gradient', grad)


def hessian_vector(problem, x, v):
    '''
    Product of the (constant) Hessian of f with v:

    H v = 2 A^T W A v + 2 alpha^2 [D2^T D2 v_g, 0]

    H is never formed; the cost is that of two matrix-vector products
    with A.
    '''
    v = np.asarray(v, dtype = float)
    with np.errstate(over = 'ignore', invalid = 'ignore'):
        hv = 2. * np.dot(problem.coeff_matrix.T,
                         problem.data_weights * np.dot(problem.coeff_matrix,
                                                       v))
        hv[:-1] += 2. * problem.alpha**2 * diff2(diff2(v[:-1]))
    return _check_finite('Hessian-vector product', hv)


class ContinObjective(DifferentiableObjective):
    '''
    Regularized weighted least squares objective over a ProblemInstance.
    '''
    has_hessian = True

    def __init__(self, problem):
        self.problem = problem

    def value(self, x):
        return objective_value(self.problem, x)

    def gradient(self, x):
        return objective_gradient(self.problem, x)

    def value_and_gradient(self, x):
        return objective_value_and_gradient(self.problem, x)

    def hessian_vector(self, x, v):
        return hessian_vector(self.problem, x, v)

    def hessian(self):
        '''
        Dense Hessian, for testing and small problems.
        '''
        A = self.problem.coeff_matrix
        n_x = A.shape[1]
        D2 = second_difference_matrix(n_x - 1)
        H = 2. * np.dot(A.T * self.problem.data_weights, A)
        H[:-1, :-1] += 2. * self.problem.alpha**2 * D2.T.dot(D2).toarray()
        return H


def solution_statistics(problem, x):
    '''
    Returns
    -------
    y_soln : predicted data
    residuals : y - y_soln
    chisq : weighted sum of squared residuals
    regularizer_contrib : ||D2 g||^2
    Valpha : chisq + alpha^2 * regularizer_contrib
    '''
    y_soln = predicted(problem, x)
    residuals = problem.y - y_soln
    chisq = np.dot(problem.data_weights, residuals**2)
    regularizer_contrib = np.sum(diff2(x[:-1])**2)
    Valpha = chisq + problem.alpha**2 * regularizer_contrib
    return y_soln, residuals, chisq, regularizer_contrib, Valpha


def check_gradient(objective, x, h = 1e-5):
    '''
    Compare the analytic gradient with forward differences
    (f(x + h e_k) - f(x)) / h.

    Returns
    -------
    analytic, numerical : ndarrays
    '''
    x = np.array(x, dtype = float)
    f = objective.value(x)
    numerical = np.zeros(len(x))
    for k in np.arange(len(x)):
        xh = x.copy()
        xh[k] += h
        numerical[k] = (objective.value(xh) - f) / h
    return objective.gradient(x), numerical


def calculate_moments(grid, quad_weights, soln, moment_range = (-1, 4)):
    '''
    Calculate moments of solution by quadrature.

    grid: grid points
    quad_weights: quadrature weights corresponding to grid points
    soln: spectral weights at grid points
    moment_range: range of moments to calculate

    See p. 237 of Provencher 1982 for discussion of physical
    interpretation of moments.
    '''
    def moment_j(j):
        return (quad_weights * grid ** float(j) * soln).sum()

    return np.array([moment_j(power) for power in np.arange(*moment_range)])
