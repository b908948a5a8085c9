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
Test the objective function and its derivatives.
'''

import numpy as np
import pytest
from numpy.testing import assert_allclose

from contin_core import NumericalInstability, setup_grid, setup_quadrature
from problem_setup import build_problem, simulate_multi_exponential
from computations import diff2, second_difference_matrix, predicted, \
    objective_value, objective_gradient, objective_value_and_gradient, \
    hessian_vector, ContinObjective, solution_statistics, check_gradient, \
    calculate_moments


def test_diff2():
    g = np.array([1., 2., 4., 7., 11.])
    # one-sided at the ends: -2 g0 + g1 and g3 - 2 g4
    assert_allclose(diff2(g), np.array([0., 1., 1., 1., -15.]))


def test_second_difference_matrix():
    g = np.random.RandomState(3).randn(8)
    D2 = second_difference_matrix(8)
    assert_allclose(D2.dot(g), diff2(g))
    assert_allclose(D2.toarray()[0, :3], [-2., 1., 0.])
    assert_allclose(D2.toarray()[-1, -3:], [0., 1., -2.])


class TestClass():
    def setup_method(self):
        t, y, variance = simulate_multi_exponential([1., 2.], [0.4, 1.6],
                                                    50, 0., 4.)
        self.random = np.random.RandomState(7)
        variance = 0.5 + self.random.rand(50)
        self.problem = build_problem(t, y, variance, 0.1, 4.0, 10, 'exp',
                                     0.3)
        self.objective = ContinObjective(self.problem)
        self.x = self.random.uniform(0., 2., 11)

    def test_predicted(self):
        p = self.problem
        z = np.zeros(p.n_data)
        for i in np.arange(p.n_data):
            z[i] = self.x[-1]
            for j in np.arange(p.n_grid):
                z[i] += p.quad_weights[j] * p.kernel_matrix[i, j] * self.x[j]
        assert_allclose(predicted(p, self.x), z)

    def test_value(self):
        p = self.problem
        z = predicted(p, self.x)
        gold = (p.data_weights * (p.y - z)**2).sum() + \
            p.alpha**2 * (diff2(self.x[:-1])**2).sum()
        assert_allclose(objective_value(p, self.x), gold)

    def test_value_nonnegative(self):
        for alpha in [0., 0.3, 100.]:
            problem = self.problem.with_alpha(alpha)
            for k in np.arange(20):
                x = self.random.uniform(0., 100., 11)
                assert objective_value(problem, x) >= 0

    def test_gradient_central_difference(self):
        h = 1e-4
        grad = objective_gradient(self.problem, self.x)
        numerical = np.zeros(11)
        for k in np.arange(11):
            e_k = np.zeros(11)
            e_k[k] = h
            numerical[k] = (objective_value(self.problem, self.x + e_k) -
                            objective_value(self.problem, self.x - e_k)) / \
                            (2. * h)
        assert_allclose(numerical, grad, rtol = 1e-6, atol = 1e-6)

    def test_gradient_forward_difference(self):
        # f is quadratic, so the forward difference is off by exactly
        # h/2 times the diagonal of the Hessian
        grad = objective_gradient(self.problem, self.x)
        hess_diag = np.diag(self.objective.hessian())
        f = objective_value(self.problem, self.x)
        for h in [1e-2, 1e-3, 1e-4, 1e-5]:
            numerical = np.zeros(11)
            for k in np.arange(11):
                xh = self.x.copy()
                xh[k] += h
                numerical[k] = (objective_value(self.problem, xh) - f) / h
            assert_allclose(numerical, grad + 0.5 * h * hess_diag,
                            rtol = 1e-6, atol = 1e-5)
            assert np.all(np.abs(numerical - grad) <= h * hess_diag + 1e-5)

    def test_value_and_gradient(self):
        f, grad = objective_value_and_gradient(self.problem, self.x)
        assert_allclose(f, objective_value(self.problem, self.x))
        assert_allclose(grad, objective_gradient(self.problem, self.x))

    def test_hessian_vector(self):
        v = self.random.randn(11)
        eps = 1e-3
        numerical = (objective_gradient(self.problem, self.x + eps * v) -
                     objective_gradient(self.problem, self.x)) / eps
        hv = hessian_vector(self.problem, self.x, v)
        assert_allclose(hv, numerical, rtol = 1e-6, atol = 1e-6)
        assert_allclose(hv, np.dot(self.objective.hessian(), v), rtol = 1e-10,
                        atol = 1e-10)

    def test_hessian_vector_independent_of_x(self):
        v = self.random.randn(11)
        assert_allclose(hessian_vector(self.problem, self.x, v),
                        hessian_vector(self.problem, np.zeros(11), v))

    def test_hessian_vector_regularizer(self):
        v = self.random.randn(11)
        unregularized = self.problem.with_alpha(0.)
        difference = hessian_vector(self.problem, self.x, v) - \
            hessian_vector(unregularized, self.x, v)
        gold = np.append(2. * 0.3**2 * diff2(diff2(v[:-1])), 0.)
        assert_allclose(difference, gold, atol = 1e-12)

    def test_objective_interface(self):
        f, grad = self.objective.value_and_gradient(self.x)
        assert_allclose(self.objective.value(self.x), f)
        assert_allclose(self.objective.gradient(self.x), grad)
        assert self.objective.has_hessian

    def test_nonfinite(self):
        x = self.x.copy()
        x[3] = np.nan
        with pytest.raises(NumericalInstability):
            objective_value(self.problem, x)
        with pytest.raises(NumericalInstability):
            objective_value_and_gradient(self.problem, x)
        v = np.zeros(11)
        v[0] = np.inf
        with pytest.raises(NumericalInstability):
            hessian_vector(self.problem, self.x, v)

    def test_overflow(self):
        p = self.problem
        huge = build_problem(p.t, 1e200 * np.ones(p.n_data),
                             np.ones(p.n_data), 0.1, 4.0, 10)
        with pytest.raises(NumericalInstability):
            objective_value(huge, self.x)
        with pytest.raises(NumericalInstability):
            ContinObjective(huge).value_and_gradient(self.x)

    def test_solution_statistics(self):
        y_soln, residuals, chisq, reg, Valpha = \
            solution_statistics(self.problem, self.x)
        assert_allclose(y_soln + residuals, self.problem.y)
        assert_allclose(chisq, (self.problem.data_weights *
                                residuals**2).sum())
        assert_allclose(reg, (diff2(self.x[:-1])**2).sum())
        assert_allclose(Valpha, objective_value(self.problem, self.x))

    def test_check_gradient(self):
        analytic, numerical = check_gradient(self.objective, self.x)
        assert_allclose(numerical, analytic, rtol = 1e-3, atol = 1e-2)


def test_moments():
    grid, dh, dhdx = setup_grid(1., 2., 101, type = 'linear')
    quad_weights = setup_quadrature(grid, dh, dhdx, type = 'trapezoidal')
    moments = calculate_moments(grid, quad_weights, np.ones(101))
    # powers -1 through 3 of x over [1, 2]
    assert_allclose(moments, [np.log(2.), 1., 1.5, 7./3., 15./4.],
                    rtol = 1e-4)
