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
optimization

Minimization of a smooth function subject to box constraints
L <= x <= U by the nonmonotone spectral projected gradient method.

References:
Birgin, Martinez & Raydan, SIAM J. Optim. 10, 1196 (2000)
Barzilai & Borwein, IMA J. Numer. Anal. 8, 141 (1988)

"Matrices" and "vectors" refer to 2 and 1-dimensional ndarrays.
'''

import numpy as np

from contin_core import SPGParameters, InvalidBounds, NumericalInstability, \
    INITIALIZED, ITERATING, CONVERGED, MAX_ITERATIONS, FAILED


class DifferentiableObjective(object):
    '''
    Interface the minimizer needs from an objective function.

    Subclasses provide value and gradient; value_and_gradient may be
    overridden when the two share work. Set has_hessian and provide
    hessian_vector if the Hessian-vector product is available.
    '''
    has_hessian = False

    def value(self, x):
        raise NotImplementedError

    def gradient(self, x):
        raise NotImplementedError

    def value_and_gradient(self, x):
        return self.value(x), self.gradient(x)

    def hessian_vector(self, x, v):
        raise NotImplementedError


class QuadraticObjective(DifferentiableObjective):
    '''
    f(x) = 1/2 x^T H x - c^T x + constant
    '''
    has_hessian = True

    def __init__(self, hessian, linear, constant = 0.):
        self.hessian = np.asarray(hessian, dtype = float)
        self.linear = np.asarray(linear, dtype = float)
        self.constant = constant

    @classmethod
    def from_least_squares(cls, A, b):
        '''
        f(x) = ||A x - b||^2
        '''
        A = np.asarray(A, dtype = float)
        b = np.asarray(b, dtype = float)
        return cls(2. * np.dot(A.T, A), 2. * np.dot(A.T, b), np.dot(b, b))

    def value(self, x):
        return 0.5 * np.dot(x, np.dot(self.hessian, x)) - \
            np.dot(self.linear, x) + self.constant

    def gradient(self, x):
        return np.dot(self.hessian, x) - self.linear

    def hessian_vector(self, x, v):
        return np.dot(self.hessian, v)


class BoxConstraints(object):
    '''
    Coordinate-wise bounds lower <= x <= upper. Infinite bounds are
    allowed.
    '''
    def __init__(self, lower, upper):
        lower = np.array(lower, dtype = float)
        upper = np.array(upper, dtype = float)
        if lower.shape != upper.shape or lower.ndim != 1:
            raise InvalidBounds('lower and upper bounds must be vectors of '
                                'equal length')
        if np.isnan(lower).any() or np.isnan(upper).any():
            raise InvalidBounds('bounds may not be NaN')
        bad = np.where(lower > upper)[0]
        if len(bad) > 0:
            raise InvalidBounds('lower bound exceeds upper bound at '
                                'coordinates {0}'.format(bad.tolist()))
        lower.flags.writeable = False
        upper.flags.writeable = False
        self.lower = lower
        self.upper = upper

    def __len__(self):
        return len(self.lower)

    def project(self, x):
        return np.clip(x, self.lower, self.upper)

    def contains(self, x):
        return bool(np.all(x >= self.lower) and np.all(x <= self.upper))

    def projected_gradient(self, x, g):
        '''
        P(x - g) - x; vanishes at a first-order stationary point.
        '''
        return self.project(x - g) - x


class OptimizerState(object):
    '''
    Everything the minimizer carries from one iteration to the next.
    x is updated in place. x_best, f_best and g_best hold the accepted
    point with the lowest objective so far; with a nonmonotone line
    search this need not be the current one.
    '''
    def __init__(self, objective, box, params, x, f, g, alpha):
        self.objective = objective
        self.box = box
        self.params = params
        self.x = x
        self.f = f
        self.g = g
        self.alpha = alpha
        self.f_history = [f]
        self.x_best = x.copy()
        self.f_best = f
        self.g_best = g
        self.pg_norm = np.abs(box.projected_gradient(x, g)).max()
        self.n_iter = 0
        self.n_fev = 1
        self.n_gev = 1
        self.status = INITIALIZED
        self.message = None


def _check_finite(name, value):
    if not np.all(np.isfinite(value)):
        raise NumericalInstability('non-finite {0} encountered'.format(name))
    return value


def _clip_step(alpha, params):
    return min(params.alphamax, max(params.alphamin, alpha))


def initialize(objective, box, x0, params = None):
    '''
    Set up a minimization of objective over box starting from x0.

    x0 is copied and projected onto the box. The initial spectral step
    is the exact line minimizer along the projected gradient when the
    objective provides Hessian-vector products and has positive curvature
    there, otherwise the reciprocal sup-norm of the projected gradient.

    Returns
    -------
    OptimizerState
    '''
    if params is None:
        params = SPGParameters()
    x0 = np.array(x0, dtype = float)
    if x0.shape != box.lower.shape:
        raise InvalidBounds('x0 has length {0} but the box has length '
                            '{1}'.format(len(x0), len(box)))
    x = box.project(x0)
    f, g = objective.value_and_gradient(x)
    _check_finite('objective value', f)
    _check_finite('gradient', g)

    d = box.projected_gradient(x, g)
    d_norm = np.abs(d).max()
    alpha = params.alphamax
    if d_norm > 0:
        alpha = 1. / d_norm
        if objective.has_hessian:
            dHd = np.dot(d, _check_finite('Hessian-vector product',
                                          objective.hessian_vector(x, d)))
            if dHd > 0:
                alpha = np.dot(d, d) / dHd
    alpha = _clip_step(alpha, params)

    return OptimizerState(objective, box, params, x, f, g, alpha)


def step(state):
    '''
    Do one iteration of the spectral projected gradient method.

    The search direction d = P(x - alpha g) - x is scaled by a step
    fraction lambda until the nonmonotone Armijo condition

    f(x + lambda d) <= max(last M values of f) + gamma lambda g.d

    holds. Step fractions are chosen by safeguarded quadratic
    interpolation. The spectral step alpha is then updated from the
    Barzilai-Borwein quotient s.s / s.y.

    Raises NumericalInstability if a trial point gives a non-finite
    value; state then still holds the last accepted iterate.
    '''
    params = state.params
    box = state.box
    objective = state.objective
    x, f, g = state.x, state.f, state.g

    d = box.projected_gradient(x, state.alpha * g)
    gtd = np.dot(g, d)
    fmax = max(state.f_history)

    lam = 1.
    x_trial = box.project(x + d)
    f_trial = _check_finite('objective value', objective.value(x_trial))
    state.n_fev += 1
    while f_trial > fmax + params.gamma * lam * gtd:
        if lam <= params.sigma1:
            lam = lam / 2.
        else:
            # minimizer of quadratic through f, g.d, and f_trial
            lam_new = -0.5 * gtd * lam**2 / (f_trial - f - lam * gtd)
            if lam_new < params.sigma1 * lam or lam_new > params.sigma2 * lam:
                lam_new = lam / 2.
            lam = lam_new
        if lam < params.lambda_min:
            state.status = FAILED
            state.message = 'line search failed to find a sufficient ' \
                'decrease (projected gradient norm {0:.3e})'.format(
                state.pg_norm)
            return state
        x_trial = box.project(x + lam * d)
        f_trial = _check_finite('objective value', objective.value(x_trial))
        state.n_fev += 1

    g_trial = _check_finite('gradient', objective.gradient(x_trial))
    state.n_gev += 1

    s = x_trial - x
    y = g_trial - g
    sty = np.dot(s, y)
    if sty <= 0:
        state.alpha = params.alphamax
    else:
        state.alpha = _clip_step(np.dot(s, s) / sty, params)

    state.x[:] = x_trial
    state.f = f_trial
    state.g = g_trial
    state.f_history.append(f_trial)
    if len(state.f_history) > params.M:
        del state.f_history[0]
    state.pg_norm = np.abs(box.projected_gradient(state.x, state.g)).max()
    if f_trial < state.f_best:
        state.x_best[:] = x_trial
        state.f_best = f_trial
        state.g_best = g_trial
    state.n_iter += 1
    state.status = ITERATING
    return state


def _restore_best(state):
    if state.f_best < state.f:
        state.x[:] = state.x_best
        state.f = state.f_best
        state.g = state.g_best
        state.pg_norm = np.abs(
            state.box.projected_gradient(state.x, state.g)).max()
    return state


def is_optimal(state):
    '''
    True when the sup-norm of the projected gradient is below tolerance
    (or the objective has dropped below fmin).
    '''
    return state.pg_norm <= state.params.tol or state.f <= state.params.fmin


def minimize(objective, box, x0, params = None, max_iterations = 100000,
             callback = None):
    '''
    Minimize objective over box starting from x0.

    Parameters
    ----------
    objective:
        DifferentiableObjective
    box:
        BoxConstraints
    x0:
        starting point, projected onto box if outside
    params:
        SPGParameters
    max_iterations:
        iteration budget. Running out is not an error; the returned state
        has status 'max_iterations' and holds the best iterate found.
    callback:
        called as callback(state) after every iteration

    Returns
    -------
    OptimizerState with status 'converged', 'max_iterations' or 'failed'
    '''
    state = initialize(objective, box, x0, params)
    return iterate(state, max_iterations, callback)


def iterate(state, max_iterations = 100000, callback = None):
    '''
    Step an initialized state until it is optimal, the line search fails,
    or state.n_iter reaches max_iterations.

    Unless converged, state is moved back to the best iterate found
    before returning.
    '''
    while not is_optimal(state) and state.n_iter < max_iterations:
        step(state)
        if state.status == FAILED:
            return _restore_best(state)
        if callback is not None:
            callback(state)

    if is_optimal(state):
        state.status = CONVERGED
        return state
    state.status = MAX_ITERATIONS
    return _restore_best(state)
