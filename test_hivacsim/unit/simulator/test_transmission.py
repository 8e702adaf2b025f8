import pytest

from hivacsim.demography import Gender, PartnershipKind
from hivacsim.groups import Topology
from hivacsim.simulator.transmission import Transmission
from hivacsim.utils.distributions import ConstantDistribution


@pytest.fixture(name="transmission")
def make_transmission(state):
    return Transmission(state)


@pytest.fixture(name="couple")
def make_couple(state):
    group = state.population[0]
    source, target = group[0], group[1]
    source.gender = Gender.MALE
    target.gender = Gender.FEMALE
    source.infect(state.rng, state.disease)
    source.add_partnership(target, PartnershipKind.CASUAL, 10)
    state.disease.male_to_female = 1.0
    state.clock = 1
    return source, target


class TestUpdateTransmission:
    def test__certain_transmission(self, transmission, state, couple):
        source, target = couple
        transmission.update_transmission()
        assert target.is_infected
        assert target.std_age == 0
        data = state.results.result(0, 1, 0)
        assert data.std_incidence == 1
        assert data.std_female == 1
        assert data.std_male2female == 1
        assert data.std_casual == 1
        assert data.std_internal == 1
        assert data.std_external == 0
        assert source.partners.get(target).visited == 1
        assert target.partners.get(source).visited == 1

    def test__safe_sex_prevents_transmission(self, transmission, state, couple):
        _, target = couple
        for group in state.population:
            group.csl_safe_sex = 1.0
        transmission.update_transmission()
        assert target.is_susceptible

    def test__no_contacts_no_transmission(self, transmission, state, couple):
        _, target = couple
        state.population[0].csl_contacts = ConstantDistribution(0)
        transmission.update_transmission()
        assert target.is_susceptible

    def test__external_stable_transmission(self, transmission, state):
        first, second = state.population
        source, target = first[0], second[0]
        source.gender = Gender.FEMALE
        target.gender = Gender.MALE
        source.infect(state.rng, state.disease)
        source.add_partnership(target, PartnershipKind.STABLE, 10)
        state.disease.female_to_male = 1.0
        state.clock = 1
        transmission.update_transmission()
        assert target.is_infected
        data = state.results.result(0, 1, 1)
        assert data.std_male == 1
        assert data.std_female2male == 1
        assert data.std_stable == 1
        assert state.results.result(0, 1, 0).std_incidence == 0


class TestInitialInfection:
    def test__circle_seeds_a_contiguous_run(self, transmission, state):
        transmission.initialise_std_infection()
        circle, free = state.population
        infected = {idx for idx, person in enumerate(circle) if person.is_infected}
        assert len(infected) == 6
        assert any(
            all((start + offset) % 30 in infected for offset in range(6))
            for start in infected
        )
        assert sum(person.is_infected for person in free) == 2

    def test__uniform_seeding(self, transmission, state):
        state.scenario.uinfect = True
        transmission.initialise_std_infection()
        assert state.population[0].prevalence() == pytest.approx(0.2)
        assert state.population[1].prevalence() == pytest.approx(0.1)

    def test__sphere_seeds_a_neighbourhood(self, transmission, state):
        group = state.population[0]
        group.topology = Topology.SPHERE
        group.create_population(state.disease, state.rng, set_std=False)
        transmission.initialise_std_infection()
        assert 1 <= sum(person.is_infected for person in group) <= 6

    def test__infection_age_is_sampled(self, transmission, state):
        state.population[1].std_age = ConstantDistribution(7)
        transmission.initialise_std_infection()
        assert all(person.std_age == 7 for person in state.population[1] if person.is_infected)


class TestSeedGroup:
    def test__seeds_warmup_infected(self, transmission, state):
        state.scenario.warmup_infected = ConstantDistribution(3)
        assert transmission.seed_group(state.population[0]) == 3
        assert state.population[0].prevalence() == pytest.approx(0.1)

    def test__bounded_by_group_size(self, transmission, state):
        state.scenario.warmup_infected = ConstantDistribution(100)
        group = state.population[1]
        assert transmission.seed_group(group) == 20
        assert transmission.seed_group(group) == 0

    def test__at_least_one(self, transmission, state):
        state.scenario.warmup_infected = ConstantDistribution(0)
        assert transmission.seed_group(state.population[1]) == 1
