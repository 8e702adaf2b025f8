import pytest

from hivacsim.exc import ScenarioError, SimulationError
from hivacsim.epidemiology import InterventionScope, Strategy, Vaccine
from hivacsim.groups import Group, Population, Topology
from hivacsim.simulator import Scenario, WarmupType
from hivacsim.time import ClockUnit


class TestDefaultScenario:
    def test__from_file(self):
        scenario = Scenario.from_file()
        assert [group.name for group in scenario.population] == ["Heterosexuals", "Sex workers"]
        assert scenario.population.mixing.tolist() == [[0.0, 1.0], [1.0, 0.0]]
        assert scenario.warmup == WarmupType.TRADITIONAL
        assert scenario.clock == ClockUnit.MONTH
        assert scenario.start_date.year == 2000
        assert scenario.strategies[0].vaccine is scenario.vaccines[0]
        assert scenario.vaccines[0].used_by == [scenario.strategies[0].id]
        assert scenario.validate() == []

    def test__groups_share_the_id_counter(self):
        scenario = Scenario.from_file()
        assert all(group.ids is scenario.ids for group in scenario.population)


class TestValidation:
    def test__small_group(self, make_scenario):
        scenario = make_scenario()
        scenario.population[0].size = 1
        assert scenario.validate() == ["Invalid population size for Group [Circle]."]

    def test__check_raises(self, make_scenario):
        scenario = make_scenario()
        scenario.population.mixing[0, 1] = 0.5
        with pytest.raises(ScenarioError) as error:
            scenario.check()
        assert "Adj. Matrix invalid sum at row [0]" in str(error.value)

    def test__sphere_distance(self, make_scenario):
        scenario = make_scenario()
        scenario.population.add_group(
            Group(
                name="Tiny sphere",
                size=10,
                topology=Topology.SPHERE,
                radius=0.1,
                distance=0.0,
                ids=scenario.ids,
            )
        )
        scenario.population.mixing[:] = 0.0
        problems = scenario.validate()
        assert problems == ["Invalid sphere searching distance for population group [Tiny sphere]"]

    @pytest.mark.parametrize(
        "settings", [{"runs": 0}, {"duration": 0}, {"warmup_length": -1}, {"speed": 101}, {"pl_sample": 5}]
    )
    def test__invalid_settings(self, make_scenario, settings):
        with pytest.raises(ValueError):
            make_scenario(**settings)

    def test__warmup_concurrency(self, make_scenario):
        scenario = make_scenario()
        with pytest.raises(SimulationError):
            scenario.wmax_concurrent = 0
        with pytest.raises(SimulationError):
            scenario.wpr_concurrent = 0.0
        scenario.wpr_concurrent = 1.0
        assert scenario.wpr_concurrent == 1.0


@pytest.mark.parametrize("speed, delay", [(0, 2000), (50, 1000), (100, 0)])
def test__delay_follows_speed(make_scenario, speed, delay):
    scenario = make_scenario(speed=speed, max_delay=2000)
    assert scenario.delay == delay


class TestGroupIds:
    def test__groups_built_apart_get_distinct_ids(self):
        first = Group(name="A", size=10, topology=Topology.FREE)
        second = Group(name="B", size=10, topology=Topology.FREE)
        assert first.id == second.id
        scenario = Scenario(
            population=Population([first, second], mixing=[[0, 1], [1, 0]])
        )
        assert first.id != second.id
        assert first.ids is scenario.ids and second.ids is scenario.ids
        assert scenario.validate() == []

    def test__custom_strategy_targets_only_its_group(self):
        first = Group(name="A", size=10, topology=Topology.FREE)
        second = Group(name="B", size=10, topology=Topology.FREE)
        scenario = Scenario(population=Population([first, second], mixing=[[0, 1], [1, 0]]))
        strategy = Strategy(
            Vaccine("V", ids=scenario.ids),
            intervention=InterventionScope.CUSTOM,
            groups=[second.id],
            ids=scenario.ids,
        )
        assert strategy.targets(second)
        assert not strategy.targets(first)

    def test__shared_allocator_ids_are_kept(self, make_scenario):
        scenario = make_scenario()
        assert [group.id for group in scenario.population] == [0, 1]

    def test__duplicate_ids_are_reported(self, make_scenario):
        scenario = make_scenario()
        scenario.population.add_group(Group(name="Late", size=10, topology=Topology.FREE))
        assert "Duplicate id 0 for Group [Late]." in scenario.validate()
