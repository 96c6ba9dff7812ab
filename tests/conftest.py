"""Shared fixtures for dem-gmrf tests."""

import matplotlib
matplotlib.use("Agg")

import math
from pathlib import Path

import numpy as np
import pytest

from demgmrf.core.field_estimator import FieldEstimator, Interpolation
from demgmrf.errors import OutOfBounds


class FakeFieldEstimator(FieldEstimator):
    """
    Deterministic stand-in for the GMRF solver.

    Nearest predicts ``(x + y) / 100``, bilinear adds 0.5 to that. Every
    call is recorded so tests can check how the pipeline drives it.
    """

    def __init__(self):
        self.configured = None
        self.resized = None
        self.observations = []
        self.solve_calls = 0
        self.predict_calls = []
        self._extent = (0.0, 1.0, 0.0, 1.0)
        self._shape = (1, 1)

    def configure(self, prior_strength, obs_strength, skip_variance=False):
        self.configured = (prior_strength, obs_strength, skip_variance)

    def resize(self, min_x, max_x, min_y, max_y, resolution, default_cell=(0.0, 0.0)):
        self.resized = (min_x, max_x, min_y, max_y, resolution, default_cell)
        self._extent = (min_x, max_x, min_y, max_y)
        self._shape = (int(math.ceil((max_y - min_y) / resolution)),
                       int(math.ceil((max_x - min_x) / resolution)))

    def insert_observation(self, z, x, y, update_now=False, time_invariant=True, stddev=None):
        self.observations.append((z, x, y, update_now, time_invariant, stddev))

    def solve(self):
        self.solve_calls += 1

    def predict(self, x, y, interpolation=Interpolation.NEAREST):
        x_min, x_max, y_min, y_max = self._extent
        if not (x_min <= x <= x_max and y_min <= y <= y_max):
            raise OutOfBounds(x, y, self._extent)
        self.predict_calls.append((x, y, Interpolation(interpolation)))
        z = (x + y) / 100.0
        if Interpolation(interpolation) is Interpolation.BILINEAR:
            z += 0.5
        return z, 0.1

    def size(self):
        return self._shape

    @property
    def mean(self):
        return np.zeros(self._shape)

    @property
    def std(self):
        return np.zeros(self._shape)

    @property
    def extent(self):
        return self._extent

    def export_representation(self, prefix):
        path = Path(str(prefix) + '_mean.txt')
        np.savetxt(path, self.mean)
        return {'mean_txt': str(path)}

    def export_render_script(self, path):
        path = Path(path)
        path.write_text('% fake render script\n')
        return path


@pytest.fixture
def fake_estimator():
    return FakeFieldEstimator()


def write_points(path, data, delimiter=' '):
    """Write an (N, C) array as a plain-text point file."""
    with open(path, 'w') as f:
        for row in np.atleast_2d(data):
            f.write(delimiter.join(repr(float(v)) for v in row) + '\n')
    return path


@pytest.fixture
def point_file_writer(tmp_path):
    """Return ``write(name, data, delimiter=' ')`` creating files under tmp_path."""
    def _write(name, data, delimiter=' '):
        return write_points(tmp_path / name, data, delimiter)
    return _write


@pytest.fixture
def grid_points_file(tmp_path):
    """100 points on a 10 x 10 lattice spanning [0, 100]^2, z = x / 10 in [0, 10]."""
    xs = np.linspace(0.0, 100.0, 10)
    X, Y = np.meshgrid(xs, xs)
    Z = X / 10.0
    data = np.column_stack((X.ravel(), Y.ravel(), Z.ravel()))
    return write_points(tmp_path / 'points.txt', data)
