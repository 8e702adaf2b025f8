import logging

from hivacsim.demography import (
    MAX_INT,
    PartnershipKind,
    PartnershipState,
    STDStatus,
)

from .state import TrialState

logger = logging.getLogger("simulator")


class PopulationDynamics:
    """
    Ageing, recovery, death and replacement of persons, the expiry of
    partnerships, the vaccination campaigns and the bookkeeping that turns
    the population into per tick counters.
    """

    def __init__(self, state: TrialState, strategies):
        self.state = state
        self.strategies = strategies

    def update_population(self):
        state = self.state
        disease = state.disease
        for index, group in enumerate(state.population):
            if state.skips(group):
                continue
            data = state.data(index)
            data.date = state.date
            data.size = len(group)
            for position in range(len(group)):
                person = group[position]
                person.age += 1
                if person.is_infected:
                    person.std_age += 1
                    if not disease.life_infection and person.std_age > person.std_duration:
                        if disease.allow_reinfection:
                            person.std_status = STDStatus.SUSCEPTIBLE
                        else:
                            person.std_status = STDStatus.PROTECTED
                            data.std_protected += 1
                        person.clear_infection()
                        data.std_recovered += 1
                elif person.std_status == STDStatus.PROTECTED:
                    if person.std_duration < state.clock:
                        person.std_status = STDStatus.SUSCEPTIBLE
                        person.std_duration = MAX_INT
                        data.std_protected -= 1

                if person.age > person.life_expectancy or person.std_age > person.std_death:
                    data.deaths += 1
                    if person.age <= person.life_expectancy:
                        data.std_deaths += 1
                    location = person.location
                    person.say_goodbye()
                    person = group.create_person(disease, state.rng, set_std=True)
                    person.location = location
                    if self.vaccinate_person(person):
                        data.std_protected += 1
                    group[position] = person

                if person.is_male:
                    data.male += 1
                    if person.homosexual:
                        data.homosexual += 1
                else:
                    data.female += 1

    def vaccinate_person(self, person) -> bool:
        state = self.state
        strategy = self.strategies.vaccinate_person(
            person, state.clock, state.scenario.duration, state.rng
        )
        return strategy is not None

    def update_partners(self):
        """
        End the partnerships whose time is over. Former stable partners go
        through a transitory period before they can engage again.
        """
        state = self.state
        for group in state.population:
            if state.skips(group):
                continue
            for person in group:
                for relation in person.partners.to_list():
                    if relation.duration > state.clock:
                        continue
                    partner = relation.person
                    if not person.end_partnership(partner):
                        continue
                    if relation.kind == PartnershipKind.STABLE:
                        for one in (person, partner):
                            one.partnership = PartnershipState.TRANSITORY
                            one.transitory = state.clock + int(
                                one.group.stb_transitory.sample(state.rng)
                            )
                    else:
                        for one in (person, partner):
                            if one.partners_count == 0:
                                one.partnership = PartnershipState.AVAILABLE
                if (
                    person.partnership == PartnershipState.TRANSITORY
                    and person.transitory <= state.clock
                ):
                    person.partnership = PartnershipState.AVAILABLE
                    person.transitory = 0

    def execute_intervention(self):
        state = self.state
        protected = self.strategies.execute(
            state.population,
            state.clock,
            state.scenario.duration,
            state.rng,
            skip_group=state.skips,
        )
        for index, count in protected.items():
            state.data(index).std_protected += count

    def update_prevalence(self) -> float:
        """
        Recompute the prevalence of every group and return their mean.
        """
        state = self.state
        total = 0.0
        for index, group in enumerate(state.population):
            group.std_prevalence = group.prevalence()
            total += group.std_prevalence
            state.data(index).std_prevalence = group.std_prevalence
        if len(state.population) == 0:
            return total
        return total / len(state.population)

    def clock_zero_data(self):
        """
        Snapshot of the population at tick 0: sizes, partnerships already
        formed (during the warm-up) and prevalent infections.
        """
        state = self.state
        if state.clock != 0:
            return
        for index, group in enumerate(state.population):
            data = state.data(index)
            data.date = state.date
            data.size = len(group)
            for person in group:
                if person.is_male:
                    data.male += 1
                    if person.homosexual:
                        data.homosexual += 1
                else:
                    data.female += 1
                if person.partners_count > 1:
                    data.concurrent += 1
                for relation in person.partners:
                    if relation.visited == state.clock:
                        continue
                    partner = relation.person
                    relation.visited = state.clock
                    partner.partners.get(person).visited = state.clock
                    if relation.kind == PartnershipKind.STABLE:
                        data.partners += 2
                        data.stable += 2
                        data.internal += 2
                    elif partner.group is group:
                        data.partners += 2
                        data.casual += 2
                        data.internal += 2
                    else:
                        other = state.data(state.group_index(partner.group))
                        for counters in (data, other):
                            counters.partners += 1
                            counters.casual += 1
                            counters.external += 1
                if person.is_infected:
                    data.std_incidence += 1
                    if person.is_male:
                        data.std_male += 1
                        if person.homosexual:
                            data.std_homosexual += 1
                    else:
                        data.std_female += 1
            data.std_prevalence = group.prevalence()

    def calculate_network(self):
        """
        End every partnership (partners of the same group stay friends) and
        store the small world properties of each group for this run.
        """
        state = self.state
        scenario = state.scenario
        for group in state.population:
            for person in group:
                for partner in person.partners.persons():
                    person.end_partnership(partner)
        for index, group in enumerate(state.population):
            exact = len(group) <= scenario.pl_numeric
            state.results.network[state.run, index] = group.swn_properties(
                scenario.pl_algorithm,
                exact=exact,
                sample_size=0 if exact else scenario.pl_sample,
                rng=state.rng,
            )
            logger.debug(f"Run {state.run + 1}: network properties of {group.name} computed")
