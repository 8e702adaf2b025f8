from glob import glob
from os import remove

import numpy as np
import pytest

from hivacsim.epidemiology import Disease
from hivacsim.groups import Group, Population, Topology
from hivacsim.ids import IdAllocator
from hivacsim.records import SimulationResults
from hivacsim.simulator import Scenario, TrialState, WarmupType


@pytest.fixture(autouse=True, scope="session")
def remove_log_files():
    yield
    for file in glob("*.log*"):
        remove(file)


@pytest.fixture(name="rng")
def make_rng():
    return np.random.default_rng(1234)


@pytest.fixture(name="ids")
def make_ids():
    return IdAllocator()


@pytest.fixture(name="disease")
def make_disease():
    return Disease(
        "Test", male_to_female=0.5, female_to_male=0.5, male_to_male=0.5
    )


@pytest.fixture(name="make_scenario")
def scenario_factory():
    """
    Small two group scenario, fast enough to be simulated in unit tests.
    """

    def make(**settings):
        ids = IdAllocator()
        groups = [
            Group(
                name="Circle",
                size=30,
                topology=Topology.CIRCLE,
                beta=2.0,
                age=200,
                life_expectancy=800,
                pr_concurrent=0.2,
                pr_new_partner=0.6,
                pr_casual=0.5,
                std_prevalence=0.2,
                ids=ids,
            ),
            Group(
                name="Free",
                size=20,
                topology=Topology.FREE,
                beta=2.0,
                age=200,
                life_expectancy=800,
                pr_new_partner=0.6,
                pr_casual=0.8,
                pr_internal=0.2,
                std_prevalence=0.1,
                ids=ids,
            ),
        ]
        population = Population(groups, mixing=[[0.0, 1.0], [1.0, 0.0]])
        config = dict(
            disease=Disease("Test", 0.3, 0.3, 0.3),
            population=population,
            runs=2,
            duration=6,
            start_date="2000-01-01",
            warmup=WarmupType.TRADITIONAL,
            warmup_length=3,
            max_delay=0,
            auto_seed=False,
            seed=7,
            ids=ids,
        )
        config.update(settings)
        return Scenario(**config)

    return make


@pytest.fixture(name="state")
def make_state(make_scenario, rng):
    """
    Trial state of a populated scenario, ready for the per tick procedures.
    """
    scenario = make_scenario()
    state = TrialState(scenario, rng)
    state.results = SimulationResults(
        scenario.runs, scenario.duration, [group.name for group in scenario.population]
    )
    state.index_groups()
    scenario.population.create_population(scenario.disease, rng, set_std=False)
    return state
