"""
Tests for checkpoint validation
"""

import numpy as np
import pytest

from demgmrf.core.field_estimator import Interpolation
from demgmrf.core.validation import CheckpointResiduals, CheckpointValidator
from demgmrf.errors import OutOfBounds


class TestCheckpointValidator:
    """Test residual computation against a deterministic estimator."""

    def setup_method(self):
        self.x = np.array([10.0, 20.0, 30.0])
        self.y = np.array([0.0, 10.0, 20.0])
        self.z = np.array([1.0, 1.0, 1.0])

    def test_residuals_are_truth_minus_prediction(self, fake_estimator):
        fake_estimator.resize(0.0, 100.0, 0.0, 100.0, 1.0)

        residuals = CheckpointValidator(fake_estimator).evaluate(self.x, self.y, self.z)

        # nearest predicts (x + y) / 100, bilinear adds 0.5
        np.testing.assert_allclose(residuals.nearest, [0.9, 0.7, 0.5])
        np.testing.assert_allclose(residuals.bilinear, [0.4, 0.2, 0.0], atol=1e-12)
        np.testing.assert_allclose(residuals.predicted_std_nearest, 0.1)
        assert len(residuals) == 3

    def test_both_policies_queried(self, fake_estimator):
        fake_estimator.resize(0.0, 100.0, 0.0, 100.0, 1.0)

        CheckpointValidator(fake_estimator).evaluate(self.x, self.y, self.z)

        policies = [call[2] for call in fake_estimator.predict_calls]
        assert policies.count(Interpolation.NEAREST) == 3
        assert policies.count(Interpolation.BILINEAR) == 3

    def test_out_of_bounds_propagates(self, fake_estimator):
        fake_estimator.resize(0.0, 15.0, 0.0, 15.0, 1.0)

        with pytest.raises(OutOfBounds):
            CheckpointValidator(fake_estimator).evaluate(self.x, self.y, self.z)

    def test_no_checkpoints(self, fake_estimator):
        residuals = CheckpointValidator(fake_estimator).evaluate(
            np.array([]), np.array([]), np.array([]))

        assert len(residuals) == 0
        assert residuals.stats()['nearest'].rmse == 0.0


def test_residual_stats_per_policy():
    residuals = CheckpointResiduals(nearest=np.array([1.0, -1.0]),
                                    bilinear=np.array([0.5, 0.5]))
    stats = residuals.stats()

    assert set(stats) == {'nearest', 'bilinear'}
    assert stats['nearest'].mean == 0.0
    assert stats['bilinear'].rmse == pytest.approx(0.5)


def test_mean_predicted_std_per_policy():
    residuals = CheckpointResiduals(nearest=np.array([0.0, 0.0]),
                                    bilinear=np.array([0.0, 0.0]),
                                    predicted_std_nearest=np.array([0.1, 0.3]),
                                    predicted_std_bilinear=np.array([0.2, 0.2]))

    assert residuals.mean_predicted_std() == pytest.approx({'nearest': 0.2, 'bilinear': 0.2})


def test_mean_predicted_std_without_values():
    residuals = CheckpointResiduals(nearest=np.array([1.0]), bilinear=np.array([1.0]))

    assert residuals.mean_predicted_std() == {'nearest': 0.0, 'bilinear': 0.0}
