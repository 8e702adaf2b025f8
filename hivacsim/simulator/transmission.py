from hivacsim.demography import PartnershipKind, Person
from hivacsim.groups import Group, Topology
from hivacsim.utils.distances import (
    cos_distance_threshold,
    spherical_cap,
    within_distance,
)
from hivacsim.utils.sampling import IndexSampler
from hivacsim.utils.stochastic import (
    bernoulli,
    floor_mod,
    gmean,
    infection_probability,
)

from .state import TrialState


class Transmission:
    """
    Spread of the disease along sexual partnerships, and the seeding of the
    initial infections.
    """

    def __init__(self, state: TrialState):
        self.state = state

    def _transmission_probability(self, infected: Person, susceptible: Person):
        """
        Per contact probability for the direction of the pair, and the
        direction counter it feeds.
        """
        disease = self.state.disease
        if infected.is_male and not susceptible.is_male:
            return disease.male_to_female, "std_male2female"
        if not infected.is_male and susceptible.is_male:
            return disease.female_to_male, "std_female2male"
        return disease.male_to_male, "std_male2male"

    def update_transmission(self):
        """
        Every partnership between an infected and a susceptible person is
        visited once per tick. Unless the pair has safe sex this tick, the
        infection passes with probability 1 - (1 - p)^contacts.
        """
        state = self.state
        for group in state.population:
            if state.skips(group):
                continue
            for person in group:
                for relation in person.partners:
                    if relation.visited == state.clock:
                        continue
                    partner = relation.person
                    if person.is_infected and partner.is_susceptible:
                        infected, susceptible = person, partner
                    elif person.is_susceptible and partner.is_infected:
                        infected, susceptible = partner, person
                    else:
                        infected = None
                    if infected is not None:
                        self._transmit(relation, person, partner, infected, susceptible)
                    relation.visited = state.clock
                    partner.partners.get(person).visited = state.clock

    def _transmit(self, relation, person, partner, infected, susceptible):
        state = self.state
        rng = state.rng
        if relation.kind == PartnershipKind.STABLE:
            safe_sex = person.group.stb_safe_sex
        else:
            safe_sex = gmean(person.group.csl_safe_sex, partner.group.csl_safe_sex)
        if bernoulli(rng, safe_sex):
            return False
        if relation.kind == PartnershipKind.STABLE:
            contacts = int(person.group.stb_contacts.sample(rng))
        else:
            contacts = int(
                gmean(
                    person.group.csl_contacts.sample(rng),
                    partner.group.csl_contacts.sample(rng),
                )
            )
        probability, direction = self._transmission_probability(infected, susceptible)
        if not bernoulli(rng, infection_probability(probability, contacts)):
            return False

        susceptible.infect(rng, state.disease, std_age=0)
        data = state.data(state.group_index(susceptible.group))
        data.std_incidence += 1
        setattr(data, direction, getattr(data, direction) + 1)
        if direction == "std_male2female":
            data.std_female += 1
        elif direction == "std_female2male":
            data.std_male += 1
        else:
            data.std_male += 1
            data.std_homosexual += 1
        if relation.kind == PartnershipKind.STABLE:
            data.std_stable += 1
            data.std_internal += 1
        else:
            data.std_casual += 1
            if person.group is partner.group:
                data.std_internal += 1
            else:
                data.std_external += 1
        return True

    def _infect(self, person: Person, group: Group):
        state = self.state
        person.infect(state.rng, state.disease, std_age=int(group.std_age.sample(state.rng)))

    def initialise_std_infection(self):
        """
        Infect int(size * prevalence) persons of every group. Unless uniform
        seeding is requested, circle groups get a contiguous run of vertices
        and sphere groups the vertices closest to a random one.
        """
        state = self.state
        rng = state.rng
        uniform = state.scenario.uinfect
        for group in state.population:
            size = len(group)
            count = int(size * group.std_prevalence)
            if count <= 0:
                continue
            if not uniform and group.topology == Topology.CIRCLE:
                start = int(rng.integers(size))
                for offset in range(count):
                    self._infect(group[floor_mod(start + offset, size)], group)
            elif not uniform and group.topology == Topology.SPHERE:
                origin = group[int(rng.integers(size))].location
                distance = max(spherical_cap(size, count, group.radius), group.distance)
                threshold = cos_distance_threshold(distance, group.radius)
                infected = 0
                for person in group:
                    if within_distance(origin, person.location, threshold):
                        self._infect(person, group)
                        infected += 1
                        if infected >= count:
                            break
            else:
                sampler = IndexSampler(size, rng)
                for _ in range(count):
                    self._infect(group[sampler.next()], group)

    def seed_group(self, group: Group) -> int:
        """
        Infect a number of distinct susceptible persons of a group, drawn
        from the warm-up infected distribution (at least 1, at most the
        group size). Returns how many were infected.
        """
        state = self.state
        rng = state.rng
        target = state.scenario.warmup_infected.sample(rng)
        target = min(max(1, int(target)), len(group))
        seeded = 0
        sampler = IndexSampler(len(group), rng)
        while seeded < target and sampler.remaining > 0:
            person = group[sampler.next()]
            if person.is_susceptible:
                person.infect(rng, state.disease, std_age=0)
                seeded += 1
        return seeded
