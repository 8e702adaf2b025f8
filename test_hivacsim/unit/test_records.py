import numpy as np
import pytest

from hivacsim.ids import IdAllocator
from hivacsim.records import SimData, SimulationResults, SWNInfo


@pytest.fixture(name="results")
def make_results():
    results = SimulationResults(trials=3, duration=2, group_names=["A", "B"])
    for trial in range(3):
        for clock in range(3):
            results.result(trial, clock, 1).std_prevalence = 0.1 * (trial + clock)
        results.network[trial, 0] = SWNInfo(vertices=10, path_length=float(trial + 1))
    return results


class TestSimulationResults:
    def test__shape(self, results):
        assert results.trials == 3
        assert results.data.shape == (3, 3, 2)
        assert isinstance(results.result(2, 2, 0), SimData)
        assert not results.is_empty

    def test__cells_are_independent(self, results):
        results.result(0, 0, 0).partners = 5
        assert results.result(0, 1, 0).partners == 0

    def test__series_and_summary(self, results):
        series = results.series("std_prevalence", 1)
        assert series.shape == (3, 3)
        assert np.allclose(series[:, -1], [0.2, 0.3, 0.4])
        summary = results.summary("std_prevalence", 1)
        assert summary.amean == pytest.approx(0.3)
        assert results.summary("std_prevalence", 1, clock=0).min == pytest.approx(0.0)

    def test__network_summary_skips_missing(self, results):
        summary = results.network_summary("path_length", 0)
        assert summary.count == 3
        assert summary.amean == pytest.approx(2.0)
        assert results.network_summary("path_length", 1).count == 0

    def test__clear(self, results):
        results.clear()
        assert results.is_empty
        assert results.to_dataframe().empty


def test__id_allocator():
    ids = IdAllocator()
    assert [ids.next_id("person") for _ in range(3)] == [0, 1, 2]
    assert ids.next_id("group") == 0
    ids.reset("person")
    assert ids.next_id("person") == 0
    assert ids.next_id("group") == 1
    ids.reset()
    assert ids.next_id("group") == 0
