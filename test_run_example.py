import numpy as np

from contin_core import CONVERGED, MAX_ITERATIONS
from data_io import load_data
from run_example import run_example


def test_run_example(tmp_path, capsys):
    result = run_example(outdir = str(tmp_path), n_points = 100,
                         max_iterations = 200)
    assert result.status in (CONVERGED, MAX_ITERATIONS)

    out = capsys.readouterr().out
    assert 'G[0] = (' in out
    assert 'G[10] = (' in out

    t, y = load_data(str(tmp_path / 'in.txt'))
    assert len(t) == 100
    assert np.allclose(y[0], 3., atol = 1e-6)
    grid, spectrum = load_data(str(tmp_path / 'out.txt'))
    assert np.allclose(grid, np.linspace(0.1, 4.0, 10), atol = 1e-6)
    assert len(spectrum) == 10
