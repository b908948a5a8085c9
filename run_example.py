'''
Invert a noise-free double exponential,

y(t) = exp(-t / 0.4) + 2 exp(-t / 1.6), 0 <= t <= 4,

print the analytic gradient at the starting point next to its forward
difference estimate, and write the data and the recovered spectrum to
in.txt and out.txt.
'''

import logging
import os

import numpy as np

from contin_core import Observations
from problem_setup import build_problem, setup_initial_guess, \
    simulate_multi_exponential
from computations import ContinObjective, check_gradient
from contin import invert
from data_io import save_data

# generating model
intensities = [1.0, 2.0]
taus = [0.4, 1.6]


def run_example(outdir = '.', n_points = 1000, n_grid = 10, alpha = 0.01,
                tau_bounds = (0.1, 4.0), max_iterations = 100000,
                verbose = False):
    t, y, variance = simulate_multi_exponential(intensities, taus, n_points,
                                                0.0, 4.0)

    problem = build_problem(t, y, variance, tau_bounds[0], tau_bounds[1],
                            n_grid, 'exp', alpha)
    analytic, numerical = check_gradient(ContinObjective(problem),
                                         np.ones(n_grid + 1))
    for i in np.arange(n_grid + 1):
        print('G[%d] = (%f, %f)' % (i, analytic[i], numerical[i]))

    result = invert(Observations(t, y, variance), tau_bounds[0],
                    tau_bounds[1], n_grid, alpha, 'exp', max_iterations,
                    x0 = setup_initial_guess(n_grid), verbose = verbose)
    print('%s after %d iterations, background %f' % (result.status,
                                                     result.n_iter,
                                                     result.background))

    save_data(t, y, os.path.join(outdir, 'in.txt'))
    save_data(result.grid, result.spectrum, os.path.join(outdir, 'out.txt'))
    return result


if __name__ == '__main__':
    logging.basicConfig(level = logging.INFO)
    run_example(verbose = True)
