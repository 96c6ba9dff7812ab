"""
Tests for output files and grid I/O
"""

import numpy as np
import pytest

from demgmrf.core.statistics import compute_residual_stats
from demgmrf.core.validation import CheckpointResiduals
from demgmrf.errors import InputError
from demgmrf.io.grid_io import GridIO
from demgmrf.io.output_writer import (OutputWriter, STATS_HEADER, SUFFIX_POINTS_MAP,
                                      SUFFIX_RESIDUALS, SUFFIX_STATS)
from demgmrf.io.point_reader import PointReader


class TestOutputWriter:
    """Test the plain-text artifacts of a run."""

    def setup_method(self):
        self.residuals = np.array([0.5, -1.25, 2.0])

    def test_creates_parent_directory(self, tmp_path):
        writer = OutputWriter(tmp_path / 'results' / 'run1')

        assert (tmp_path / 'results').is_dir()
        assert writer.path_for('_x.txt') == tmp_path / 'results' / 'run1_x.txt'

    def test_points_readable_as_input(self, tmp_path):
        writer = OutputWriter(tmp_path / 'out')
        xyz = np.array([[1.0, 2.0, 3.0], [4.5, 5.5, 6.5]])

        path = writer.write_points(xyz, SUFFIX_POINTS_MAP)

        assert path.read_text().splitlines()[0] == '1.000000, 2.000000, 3.000000'
        points = PointReader().read_points(path)
        np.testing.assert_allclose(points.xyz(), xyz)

    def test_empty_points_file(self, tmp_path):
        writer = OutputWriter(tmp_path / 'out')

        path = writer.write_points(np.empty((0, 3)), SUFFIX_POINTS_MAP)

        assert path.read_text() == ''

    def test_residuals_one_per_line(self, tmp_path):
        writer = OutputWriter(tmp_path / 'out')

        path = writer.write_residuals(self.residuals, 'nearest')

        assert path.name == 'out' + SUFFIX_RESIDUALS['nearest']
        lines = path.read_text().splitlines()
        assert len(lines) == 3
        np.testing.assert_allclose([float(v) for v in lines], self.residuals)

    def test_stats_header_and_values(self, tmp_path):
        writer = OutputWriter(tmp_path / 'out')
        stats = compute_residual_stats(self.residuals)

        path = writer.write_stats(stats, 'bilinear')

        assert path.name == 'out' + SUFFIX_STATS['bilinear']
        lines = path.read_text().splitlines()
        assert len(lines) == 7
        assert lines[0] == '% ' + STATS_HEADER
        # one statistic per line, in header order
        assert all(len(line.split()) == 1 for line in lines[1:])
        np.testing.assert_allclose([float(v) for v in lines[1:]],
                                   stats.as_array(), rtol=1e-6)

    def test_checkpoint_results_both_policies(self, tmp_path):
        writer = OutputWriter(tmp_path / 'out')
        residuals = CheckpointResiduals(nearest=self.residuals, bilinear=self.residuals * 2)

        saved = writer.write_checkpoint_results(residuals, residuals.stats())

        assert set(saved) == {'residuals_nearest', 'stats_nearest',
                              'residuals_bilinear', 'stats_bilinear'}
        assert (tmp_path / 'out_chkpt_residuals_Bi.txt').exists()
        assert (tmp_path / 'out_chkpt_residuals_NN_stats.txt').exists()


class TestGridIO:
    """Test grid round trips."""

    def setup_method(self):
        self.grid_io = GridIO()
        self.data = np.arange(6, dtype=float).reshape(2, 3)

    @pytest.mark.parametrize("suffix", ['.txt', '.npy'])
    def test_matrix_formats(self, tmp_path, suffix):
        path = tmp_path / f'grid{suffix}'
        self.grid_io.write_grid(self.data, path)

        data, metadata = self.grid_io.read_grid(path)

        np.testing.assert_allclose(data, self.data)
        assert metadata['shape'] == (2, 3)

    def test_ascii_grid_nodata_and_extent(self, tmp_path):
        path = tmp_path / 'grid.asc'
        data = self.data.copy()
        data[0, 1] = np.nan
        self.grid_io.write_grid(data, path, extent=(100.0, 106.0, 50.0, 54.0))

        read, metadata = self.grid_io.read_grid(path)

        assert np.isnan(read[0, 1])
        assert read[1, 2] == 5.0
        assert metadata['header']['cellsize'] == 2.0
        assert metadata['extent'] == (100.0, 106.0, 50.0, 54.0)

    def test_missing_grid(self, tmp_path):
        with pytest.raises(InputError):
            self.grid_io.read_grid(tmp_path / 'missing.txt')

    def test_unsupported_write_format(self, tmp_path):
        with pytest.raises(ValueError):
            self.grid_io.write_grid(self.data, tmp_path / 'grid.tif')
