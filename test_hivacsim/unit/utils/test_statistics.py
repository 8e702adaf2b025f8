import numpy as np
import pytest

from hivacsim.utils.statistics import DataSummary


class TestDataSummary:
    def test__descriptive_statistics(self):
        summary = DataSummary.from_values([1.0, 2.0, 3.0, 4.0])
        assert summary.count == 4
        assert summary.sum == pytest.approx(10.0)
        assert summary.range == pytest.approx(3.0)
        assert summary.amean == pytest.approx(2.5)
        assert summary.median == pytest.approx(2.5)
        assert summary.variance == pytest.approx(5.0 / 3.0)
        assert summary.gmean == pytest.approx(24 ** 0.25)
        assert summary.hmean == pytest.approx(4 / (1 + 1 / 2 + 1 / 3 + 1 / 4))

    def test__non_positive_values_have_no_harmonic_mean(self):
        summary = DataSummary.from_values([0.0, 1.0, 2.0])
        assert np.isnan(summary.hmean)
        assert np.isnan(summary.gmean)

    def test__non_finite_values_are_ignored(self):
        summary = DataSummary.from_values([1.0, np.inf, 3.0])
        assert summary.count == 2
        assert summary.amean == pytest.approx(2.0)

    def test__empty(self):
        summary = DataSummary.from_values([])
        assert summary.count == 0
        assert np.isnan(summary.amean)

    def test__single_value_has_no_spread(self):
        summary = DataSummary.from_values([5.0])
        assert summary.amean == 5.0
        assert np.isnan(summary.variance)
        assert "amean" in summary.to_dict()
