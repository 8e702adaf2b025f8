import numpy as np
import pytest

from hivacsim.demography import MAX_INT, Person, STDStatus
from hivacsim.epidemiology import (
    HIVTest,
    InterventionScope,
    Strategies,
    Strategy,
    Vaccine,
    Vaccines,
)
from hivacsim.exc import SimulationError
from hivacsim.groups import Group, Population, Topology


@pytest.fixture(name="vaccine")
def make_vaccine(ids):
    return Vaccine("Full", effectiveness=1.0, length=12, ids=ids)


@pytest.fixture(name="population")
def make_population(ids, rng, disease):
    groups = [
        Group(name="A", size=50, topology=Topology.FREE, ids=ids),
        Group(name="B", size=20, topology=Topology.FREE, ids=ids),
    ]
    population = Population(groups)
    population.create_population(disease, rng, set_std=False)
    return population


class TestVaccine:
    @pytest.mark.parametrize("effectiveness", [0.0, 1.5])
    def test__invalid_effectiveness(self, effectiveness):
        with pytest.raises(ValueError):
            Vaccine(effectiveness=effectiveness)

    def test__invalid_length(self):
        with pytest.raises(ValueError):
            Vaccine(length=0)

    def test__default_name(self, ids):
        Vaccine(ids=ids)
        assert Vaccine(ids=ids).name == "Vaccine 1"

    def test__temporary_protection(self, vaccine, rng):
        person = Person(id=0)
        assert vaccine.protect(person, clock=5, duration=100, rng=rng)
        assert person.std_status == STDStatus.PROTECTED
        assert person.std_duration == 17

    def test__lifetime_protection(self, ids, rng):
        vaccine = Vaccine(lifetime=True, ids=ids)
        person = Person(id=0)
        vaccine.protect(person, clock=5, duration=100, rng=rng)
        assert person.std_duration == 100

    def test__only_susceptibles_are_protected(self, vaccine, rng):
        person = Person(id=0, std_status=STDStatus.INFECTED)
        assert not vaccine.protect(person, clock=1, duration=10, rng=rng)
        assert person.is_infected
        assert person.std_duration == MAX_INT


class TestCollections:
    def test__vaccine_in_use_cannot_be_removed(self, vaccine, ids):
        vaccines = Vaccines([vaccine])
        strategies = Strategies([Strategy(vaccine, ids=ids)])
        assert vaccine.used_by == [strategies[0].id]
        with pytest.raises(SimulationError):
            vaccines.remove(vaccine)
        strategies.clear()
        assert vaccine.used_by == []
        vaccines.remove(vaccine)
        assert len(vaccines) == 0

    def test__lookups(self, vaccine, ids):
        vaccines = Vaccines([vaccine])
        assert vaccines.get_from_name("Full") is vaccine
        assert vaccines.index_of(vaccine) == 0
        with pytest.raises(KeyError):
            vaccines.get_from_name("Missing")
        strategies = Strategies(
            [Strategy(vaccine, ids=ids), Strategy(vaccine, active=False, ids=ids)]
        )
        assert len(strategies.active) == 1
        assert strategies.index_of(strategies[1]) == 1


class TestStrategy:
    @pytest.mark.parametrize("settings", [{"population": 0.0}, {"population": 1.2}, {"clock": 0}])
    def test__invalid_settings(self, vaccine, settings):
        with pytest.raises(ValueError):
            Strategy(vaccine, **settings)

    def test__from_dict(self, vaccine, population, ids):
        strategy = Strategy.from_dict(
            {
                "name": "Targeted",
                "vaccine": "Full",
                "intervention": "custom",
                "groups": ["B"],
                "hiv_result": "hiv_negative",
                "clock": 3,
            },
            {"Full": vaccine},
            {group.name: group.id for group in population},
            ids=ids,
        )
        assert strategy.intervention == InterventionScope.CUSTOM
        assert strategy.hiv_result == HIVTest.HIV_NEGATIVE
        assert not strategy.targets(population[0])
        assert strategy.targets(population[1])

    def test__execute_at_its_clock(self, vaccine, population, rng, ids):
        strategies = Strategies([Strategy(vaccine, clock=3, population=1.0, ids=ids)])
        assert strategies.execute(population, 2, 10, rng) == {}
        protected = strategies.execute(population, 3, 10, rng)
        assert protected == {0: 50, 1: 20}
        assert all(person.std_status == STDStatus.PROTECTED for person in population.people)

    def test__skipped_groups_are_untouched(self, vaccine, population, rng, ids):
        strategies = Strategies([Strategy(vaccine, clock=1, population=0.5, ids=ids)])
        protected = strategies.execute(
            population, 1, 10, rng, skip_group=lambda group: group.name == "A"
        )
        assert protected == {1: 10}
        assert not any(person.std_status == STDStatus.PROTECTED for person in population[0])

    def test__newcomers_are_vaccinated(self, vaccine, population, ids, rng):
        strategy = Strategy(vaccine, clock=3, population=1.0, ids=ids)
        strategies = Strategies([strategy])
        newcomer = population[0][0]
        assert strategies.vaccinate_person(newcomer, 2, 10, rng) is None
        assert strategies.vaccinate_person(newcomer, 4, 10, rng) is strategy
        assert newcomer.std_status == STDStatus.PROTECTED

    def test__later_strategies_skipped_once_protected(self, population, ids):
        first = Strategy(Vaccine("First", effectiveness=1.0, ids=ids), population=1.0, ids=ids)
        second = Strategy(Vaccine("Second", effectiveness=0.5, ids=ids), population=0.5, ids=ids)
        alone = np.random.default_rng(11)
        both = np.random.default_rng(11)
        assert Strategies([first]).vaccinate_person(population[0][0], 2, 10, alone) is first
        assert Strategies([first, second]).vaccinate_person(population[0][1], 2, 10, both) is first
        assert alone.bit_generator.state == both.bit_generator.state
