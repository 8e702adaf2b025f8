import pytest

from hivacsim.demography import Gender, PartnershipKind, PartnershipState
from hivacsim.simulator.partnerships import PartnershipFormation
from hivacsim.utils.distributions import ConstantDistribution


@pytest.fixture(name="formation")
def make_formation(state):
    return PartnershipFormation(state)


def man(group, index, homosexual=False):
    person = group[index]
    person.gender = Gender.MALE
    person.homosexual = homosexual
    return person


def woman(group, index):
    person = group[index]
    person.gender = Gender.FEMALE
    return person


class TestCompatibility:
    @pytest.fixture(autouse=True)
    def willing(self, state):
        for group in state.population:
            group.pr_new_partner = 1.0
            group.pr_casual = 1.0

    def test__opposite_sex(self, formation, state):
        group = state.population[0]
        assert formation.can_be_partners(man(group, 0), woman(group, 1), PartnershipKind.CASUAL)
        # the target wants a casual partner, not a stable one
        assert not formation.can_be_partners(man(group, 0), woman(group, 1), PartnershipKind.STABLE)

    def test__same_sex(self, formation, state):
        group = state.population[0]
        assert not formation.can_be_partners(woman(group, 0), woman(group, 1), PartnershipKind.CASUAL)
        assert not formation.can_be_partners(man(group, 0), man(group, 1), PartnershipKind.CASUAL)
        assert not formation.can_be_partners(man(group, 0, True), man(group, 1), PartnershipKind.CASUAL)
        assert formation.can_be_partners(man(group, 0, True), man(group, 1, True), PartnershipKind.CASUAL)

    def test__not_twice(self, formation, state):
        group = state.population[0]
        a, b = man(group, 0), woman(group, 1)
        assert not formation.can_be_partners(a, a, PartnershipKind.CASUAL)
        a.add_partnership(b, PartnershipKind.CASUAL, 5)
        assert not formation.can_be_partners(a, b, PartnershipKind.CASUAL)


class TestAllowPartnership:
    def test__concurrency_limits(self, formation, state):
        group = state.population[0]
        group.max_concurrent = 2
        group.pr_concurrent = 1.0
        person = group[0]
        assert formation.allow_partnership(person, PartnershipKind.CASUAL)
        person.add_partnership(group[1], PartnershipKind.CASUAL, 5)
        assert formation.allow_partnership(person, PartnershipKind.CASUAL)
        person.add_partnership(group[2], PartnershipKind.CASUAL, 5)
        assert not formation.allow_partnership(person, PartnershipKind.CASUAL)

    def test__no_concurrency(self, formation, state):
        group = state.population[0]
        group.pr_concurrent = 0.0
        person = group[0]
        person.add_partnership(group[1], PartnershipKind.CASUAL, 5)
        assert not formation.allow_partnership(person, PartnershipKind.CASUAL)

    def test__stable_needs_availability(self, formation, state):
        person = state.population[0][0]
        person.partnership = PartnershipState.TRANSITORY
        assert not formation.allow_partnership(person, PartnershipKind.STABLE)
        assert formation.allow_partnership(person, PartnershipKind.CASUAL)


class TestCreatePartnership:
    def test__stable(self, formation, state):
        state.clock = 2
        group = state.population[0]
        group.stb_duration = ConstantDistribution(10)
        a, b = man(group, 0), woman(group, 1)
        assert formation.create_partnership(a, b, PartnershipKind.STABLE)
        assert a.partners.get(b).duration == 12
        assert a.partnership == PartnershipState.ENGAGED
        assert b.partnership == PartnershipState.ENGAGED
        data = state.results.result(0, 2, 0)
        assert data.partners == 2 and data.stable == 2
        assert not formation.create_partnership(a, b, PartnershipKind.STABLE)

    def test__external_casual(self, formation, state):
        state.clock = 1
        first, second = state.population
        first.csl_duration = ConstantDistribution(4)
        second.csl_duration = ConstantDistribution(9)
        a, b = man(first, 0), woman(second, 0)
        assert formation.create_partnership(a, b, PartnershipKind.CASUAL)
        assert a.partners.get(b).duration == 1 + 6
        for index in (0, 1):
            data = state.results.result(0, 1, index)
            assert data.partners == 1 and data.casual == 1 and data.external == 1

    def test__warmup_counters_are_discarded(self, formation, state):
        state.warming_up = True
        group = state.population[0]
        formation.create_partnership(man(group, 0), woman(group, 1), PartnershipKind.CASUAL)
        assert state.results.result(0, 0, 0).partners == 0


class TestCreatePartners:
    def test__partnerships_form(self, formation, state):
        state.clock = 1
        for group in state.population:
            group.pr_new_partner = 1.0
        formation.create_partners()
        partnered = sum(person.partners_count > 0 for person in state.population.people)
        assert partnered > 0
        for person in state.population.people:
            assert person.partners_count <= person.group.max_concurrent
            for relation in person.partners:
                assert relation.person.partners.get(person) is not None

    def test__friendships_form(self, formation, state):
        for group in state.population:
            group.pr_new_partner = 0.0
        formation.create_partners()
        assert sum(person.friends_count for person in state.population.people) > 0
        assert sum(person.partners_count for person in state.population.people) == 0

    def test__no_external_partners_without_mixing(self, formation, state):
        state.population.mixing[:] = 0.0
        for group in state.population:
            group.pr_new_partner = 1.0
            group.pr_casual = 1.0
            group.pr_internal = 0.0
        formation.create_partners()
        for person in state.population.people:
            assert all(relation.person.group is person.group for relation in person.partners)


class TestAcquaintances:
    def test__friend_of_friend_becomes_partner(self, formation, state):
        group = state.population[0]
        group.pr_new_partner = 1.0
        group.pr_casual = 0.0
        group.degrees = 2
        a, b, c = man(group, 0), man(group, 1), woman(group, 2)
        a.add_friend(b)
        b.add_friend(c)
        assert formation.search_acquaintances(a, partner=True) is c

    def test__without_friends(self, formation, state):
        assert formation.search_acquaintances(state.population[0][0], partner=False) is None

    def test__more_friends_decays(self, formation, state):
        group = state.population[0]
        group.alpha = 50.0
        person = group[0]
        person.add_friend(group[1])
        assert not any(formation.more_friends(person) for _ in range(50))
