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
contin

Recover a spectral distribution s(tau) and a background b from data
y(t) = \\int K(t, tau) s(tau) dtau + b by minimizing the regularized
weighted residual over nonnegative, bounded s.

.. moduleauthor:: Jerome Fung <jfung@brandeis.edu>
'''

import logging

import numpy as np

from contin_core import Observations, ContinInputs, ContinResult, \
    SolutionSeries, InvalidProblemConfig, NumericalInstability, CONVERGED, \
    FAILED
from problem_setup import build_problem, setup_bounds, setup_initial_guess
from computations import ContinObjective, solution_statistics
from optimization import initialize, iterate

logger = logging.getLogger(__name__)


def invert(observations, tau0, tau1, n_grid, alpha, kernel_type = 'exp',
           max_iterations = 100000, bounds = (0., 100.),
           background_bounds = (0., 100.), x0 = None, verbose = False,
           **kwargs):
    '''
    Invert observations on n_grid points equispaced between tau0 and tau1.

    Parameters
    ----------
    observations:
        Observations, or a sequence of (t, y, variance) triples
    alpha:
        strength of regularizer
    kernel_type:
        'exp' (multi-exponential) or 'lorentz' (multi-Lorentzian)
    bounds, background_bounds:
        box on spectral weights and on the background
    x0:
        starting point (g, b). Default: all weights 1, background 0.
    kwargs:
        passed on to ContinInputs

    Returns
    -------
    ContinResult
    '''
    contin_inputs = ContinInputs(n_grid = n_grid, grid_bounds = (tau0, tau1),
                                 kernel_type = kernel_type,
                                 bounds = bounds,
                                 background_bounds = background_bounds,
                                 max_iterations = max_iterations,
                                 verbose = verbose, **kwargs)
    return solve_alpha(observations, contin_inputs, alpha, x0)


def solve_alpha(observations, contin_inputs, alpha, x0 = None):
    '''
    observations: Observations or sequence of (t, y, variance)
    contin_inputs: instance of contin_core.ContinInputs

    Returns:
    solution: instance of contin_core.ContinResult
    '''
    problem = _setup_problem(observations, contin_inputs, alpha)
    return _solve_problem(problem, contin_inputs, x0)


def solve_series(observations, contin_inputs, alphas, warm_start = True):
    '''
    Solve for each regularization strength in alphas, reusing one
    discretization. With warm_start, each solution starts from the
    previous one.

    Returns:
    series: instance of contin_core.SolutionSeries
    '''
    alphas = np.asarray(alphas, dtype = float)
    problem = _setup_problem(observations, contin_inputs, 0.)
    solutions = []
    x0 = None
    for alpha in alphas:
        soln = _solve_problem(problem.with_alpha(alpha), contin_inputs, x0)
        solutions.append(soln)
        if warm_start and soln.status != FAILED:
            x0 = soln.x
    return SolutionSeries(solutions, alphas)


def _setup_problem(observations, contin_inputs, alpha):
    if not isinstance(observations, Observations):
        observations = Observations.from_triples(observations)
    if contin_inputs.grid_bounds is None or contin_inputs.n_grid is None:
        raise InvalidProblemConfig('n_grid and grid_bounds must be given')
    tau0, tau1 = contin_inputs.grid_bounds
    return build_problem(observations.t, observations.y,
                         observations.variance, tau0, tau1,
                         contin_inputs.n_grid, contin_inputs.kernel_type,
                         alpha, contin_inputs.grid_type,
                         contin_inputs.quadrature_type)


def _solve_problem(problem, contin_inputs, x0 = None):
    box = setup_bounds(problem.n_grid, contin_inputs.bounds,
                       contin_inputs.background_bounds)
    if x0 is None:
        x0 = setup_initial_guess(problem.n_grid)
    x0 = np.array(x0, dtype = float)
    if x0.shape != (problem.n_grid + 1,):
        raise InvalidProblemConfig('x0 must have n_grid + 1 = {0} '
                                   'elements'.format(problem.n_grid + 1))

    objective = ContinObjective(problem)
    state = None
    try:
        state = initialize(objective, box, x0, contin_inputs.spg_params)
        callback = None
        if contin_inputs.verbose:
            _echo(state)
            callback = _echo_every(contin_inputs.echo_every)
        iterate(state, contin_inputs.max_iterations, callback)
    except NumericalInstability as err:
        # report the last accepted iterate, without statistics
        logger.warning('Inversion failed: %s', err)
        if state is None:
            x, n_iter = box.project(x0), 0
        else:
            x, n_iter = state.x.copy(), state.n_iter
        return ContinResult(grid = problem.grid.copy(), spectrum = x[:-1],
                            background = float(x[-1]), status = FAILED,
                            n_iter = n_iter, alpha = problem.alpha,
                            message = str(err),
                            kernel_type = problem.kernel_type)

    if state.status == CONVERGED:
        logger.info('Convergence in %d iterations', state.n_iter)
    elif state.status == FAILED:
        logger.warning('Inversion failed after %d iterations: %s',
                       state.n_iter, state.message)
    else:
        logger.info('Stopped with %d iterations', state.n_iter)

    x = state.x.copy()
    y_soln, residuals, chisq, reg_contrib, Valpha = \
        solution_statistics(problem, x)
    return ContinResult(grid = problem.grid.copy(), spectrum = x[:-1],
                        background = float(x[-1]), status = state.status,
                        n_iter = state.n_iter, alpha = problem.alpha,
                        message = state.message, objective = Valpha,
                        chisq = chisq, regularizer_contrib = reg_contrib,
                        y_soln = y_soln, residuals = residuals,
                        projected_gradient_norm = state.pg_norm,
                        n_fev = state.n_fev, n_gev = state.n_gev,
                        kernel_type = problem.kernel_type)


def _echo(state):
    logger.info('%6d f( %s, ... ) = %+6.3e', state.n_iter,
                ', '.join('%+6.3e' % xi for xi in state.x[:3]), state.f)


def _echo_every(every):
    def callback(state):
        if state.n_iter % every == 0:
            _echo(state)
    return callback
