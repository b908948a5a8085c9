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

import numpy as np
import pytest
import yaml
from numpy.testing import assert_allclose

import yaml_serialize
from contin_core import Observations, ContinInputs, ContinResult, \
    SPGParameters, SolutionSeries
from problem_setup import simulate_multi_exponential
from contin import invert
from data_io import save_data, load_data


def test_inputs():
    inputs = ContinInputs(n_grid = 31, grid_bounds = (5e2, 5e6),
                          grid_type = 'log', kernel_type = 'lorentz',
                          background_bounds = None,
                          spg_params = SPGParameters(tol = 1e-6, M = 5))
    text = yaml_serialize.dumps(inputs)
    assert text.startswith('!ContinInputs')
    loaded = yaml_serialize.loads(text)
    assert isinstance(loaded, ContinInputs)
    assert loaded.n_grid == 31
    assert list(loaded.grid_bounds) == [5e2, 5e6]
    assert loaded.kernel_type == 'lorentz'
    assert loaded.background_bounds is None
    assert isinstance(loaded.spg_params, SPGParameters)
    assert loaded.spg_params.tol == 1e-6
    assert loaded.spg_params.M == 5
    assert_allclose(loaded.grid, inputs.grid)


def test_result(tmp_path):
    t, y, variance = simulate_multi_exponential([1., 2.], [0.4, 1.6], 50,
                                                0., 4.)
    res = invert(Observations(t, y, variance), 0.1, 4.0, 10, 0.01, 'exp', 20)
    fname = str(tmp_path / 'result.yaml')
    yaml_serialize.save(fname, res)
    loaded = yaml_serialize.load(fname)
    assert isinstance(loaded, ContinResult)
    assert isinstance(loaded.spectrum, np.ndarray)
    assert_allclose(loaded.spectrum, res.spectrum)
    assert_allclose(loaded.residuals, res.residuals)
    assert loaded.background == res.background
    assert loaded.status == res.status
    assert loaded.n_iter == 20
    assert loaded.chisq == res.chisq

    series = SolutionSeries([res], np.array([0.01]))
    with open(str(tmp_path / 'series.yaml'), 'w') as f:
        yaml_serialize.save(f, series)
    with open(str(tmp_path / 'series.yaml')) as f:
        loaded = yaml_serialize.load(f)
    assert isinstance(loaded[0], ContinResult)
    assert_allclose(loaded.alphas, [0.01])


def test_observations_repr():
    obs = Observations([0., 1.], [1., 0.5])
    assert repr(obs).startswith('Observations(')
    loaded = yaml_serialize.loads(yaml_serialize.dumps(obs))
    assert_allclose(loaded.variance, [1., 1.])


def test_unknown_tag():
    with pytest.raises(yaml.constructor.ConstructorError):
        yaml_serialize.loads('!NotAContinObject {a: 1}')


def test_two_column_file(tmp_path):
    fname = str(tmp_path / 'out.txt')
    save_data([1., 2.], [3., 0.25], fname)
    with open(fname) as f:
        assert f.read() == '1.000000\t3.000000\n2.000000\t0.250000\n'
    x, y = load_data(fname)
    assert_allclose(x, [1., 2.])
    assert_allclose(y, [3., 0.25])
    with pytest.raises(ValueError):
        save_data([1., 2.], [3.], fname)
