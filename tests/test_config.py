"""
Tests for run configuration
"""

import json

import pytest

from demgmrf.config.settings import DEMConfig
from demgmrf.errors import InvalidConfiguration


class TestDEMConfig:
    """Test defaults, overrides, persistence and validation."""

    def setup_method(self):
        self.config = DEMConfig(input_path='points.txt')

    def test_defaults(self):
        config = DEMConfig.create_default()

        assert config.resolution == 1.0
        assert config.output_prefix == 'demgmrf_out'
        assert config.checkpoint_ratio == 0.01
        assert config.std_prior == 1.0
        assert config.std_obs == 0.20
        assert config.skip_variance is False
        assert config.no_gui is False
        assert config.seed is None

    def test_precisions(self):
        config = self.config.replace(std_prior=2.0, std_obs=0.5)

        assert config.lambda_prior == pytest.approx(0.25)
        assert config.lambda_obs == pytest.approx(4.0)

    def test_replace_ignores_none(self):
        config = self.config.replace(resolution=None, std_obs=0.1, seed=None)

        assert config.resolution == 1.0
        assert config.std_obs == 0.1
        assert config.input_path == 'points.txt'

    def test_save_and_load(self, tmp_path):
        config = self.config.replace(resolution=0.5, seed=12, skip_variance=True)
        path = tmp_path / 'cfg' / 'run.json'

        config.save_to_file(path)

        assert DEMConfig.from_file(path) == config

    def test_partial_file_uses_defaults(self, tmp_path):
        path = tmp_path / 'run.json'
        path.write_text(json.dumps({'resolution': 2.5}))

        config = DEMConfig.from_file(path)

        assert config.resolution == 2.5
        assert config.std_obs == 0.20

    def test_unknown_key(self, tmp_path):
        path = tmp_path / 'run.json'
        path.write_text(json.dumps({'resolutoin': 2.5}))

        with pytest.raises(InvalidConfiguration, match='resolutoin'):
            DEMConfig.from_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(InvalidConfiguration):
            DEMConfig.from_file(tmp_path / 'missing.json')

    def test_malformed_json(self, tmp_path):
        path = tmp_path / 'run.json'
        path.write_text('{"resolution": ')

        with pytest.raises(InvalidConfiguration):
            DEMConfig.from_file(path)

    def test_valid_config_passes(self):
        self.config.validate()

    @pytest.mark.parametrize("overrides", [
        {'checkpoint_ratio': -0.01},
        {'checkpoint_ratio': 1.01},
        {'resolution': 0.0},
        {'std_prior': 0.0},
        {'std_obs': -1.0},
        {'border': -1.0},
        {'z_nodata_threshold': 0.0},
        {'variance_batch_size': 0},
        {'obs_loss': -0.1},
    ])
    def test_out_of_range_values(self, overrides):
        with pytest.raises(InvalidConfiguration):
            self.config.replace(**overrides).validate()

    def test_input_required(self):
        with pytest.raises(InvalidConfiguration):
            DEMConfig().validate()
