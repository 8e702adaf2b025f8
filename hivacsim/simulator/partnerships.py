from collections import deque
from math import exp, log
from typing import Iterator, Optional

from hivacsim.demography import (
    MAX_INT,
    Gender,
    PartnershipKind,
    PartnershipState,
    Person,
)
from hivacsim.groups import Group, Topology
from hivacsim.utils.distances import cos_distance_threshold, within_distance
from hivacsim.utils.sampling import IndexSampler, PersonSampler
from hivacsim.utils.stochastic import (
    bernoulli,
    choice_from_row,
    floor_mod,
    gmean,
    uniform_index,
)

from .state import TrialState


class PartnershipFormation:
    """
    Every tick each person either looks for a sexual partner (stable or
    casual) or for a new friend. Stable partners and friends are searched
    first among acquaintances (friends up to three degrees away), then
    through the spatial structure of the group. Casual partners are drawn at
    random inside the group or, following the mixing matrix, in another
    group.
    """

    def __init__(self, state: TrialState):
        self.state = state

    @property
    def rng(self):
        return self.state.rng

    def create_partners(self):
        state = self.state
        groups = state.population
        n_groups = len(groups)
        if n_groups == 0:
            return
        group_index = 0 if n_groups == 1 else int(self.rng.integers(n_groups))
        for _ in range(n_groups):
            group = groups[group_index]
            if not state.skips(group):
                self._create_partners_in_group(group, group_index)
            group_index = floor_mod(group_index + 1, n_groups)

    def _create_partners_in_group(self, group: Group, group_index: int):
        rng = self.rng
        for index in IndexSampler(len(group), rng):
            person = group[index]
            if bernoulli(rng, group.pr_new_partner):
                if bernoulli(rng, group.pr_casual):
                    self._look_for_casual_partner(person, index, group_index)
                else:
                    self._look_for_stable_partner(person, index, group_index)
            elif self.more_friends(person):
                self._look_for_friend(person, index, group_index)

    def _external_search_allowed(self) -> bool:
        return len(self.state.population) > 1 and not self.state.conditional_warmup

    def _look_for_casual_partner(self, person: Person, index: int, group_index: int):
        if not self.allow_partnership(person, PartnershipKind.CASUAL):
            return False
        if bernoulli(self.rng, person.group.pr_internal):
            found = self.casual_internal(person, index)
            if not found and self._external_search_allowed():
                found = self.casual_external(person, group_index)
        else:
            found = False
            if self._external_search_allowed():
                found = self.casual_external(person, group_index)
            if not found:
                found = self.casual_internal(person, index)
        return found

    def _look_for_stable_partner(self, person: Person, index: int, group_index: int):
        if not self.allow_partnership(person, PartnershipKind.STABLE):
            return False
        if person.friends_count > 0:
            partner = self.search_acquaintances(person, partner=True)
            if partner is not None and self.create_partnership(
                person, partner, PartnershipKind.STABLE
            ):
                self.state.data(group_index).stb_from_list += 2
                return True
        for candidate in self._neighbourhood(person.group, index):
            if (
                self.allow_partnership(candidate, PartnershipKind.STABLE)
                and self.can_be_partners(person, candidate, PartnershipKind.STABLE)
                and self.create_partnership(person, candidate, PartnershipKind.STABLE)
            ):
                return True
        return False

    def _look_for_friend(self, person: Person, index: int, group_index: int):
        data = self.state.data(group_index)
        if person.friends_count > 0:
            friend = self.search_acquaintances(person, partner=False)
            if friend is not None and person.add_friend(friend):
                data.friends += 2
                data.from_friends += 2
                return True
        for candidate in self._neighbourhood(person.group, index):
            if self.more_friends(candidate) and person.add_friend(candidate):
                data.friends += 2
                return True
        return False

    def _neighbourhood(self, group: Group, index: int) -> Iterator[Person]:
        """
        Candidates met through the spatial structure of the group, in the
        order they are tried.

        circle: alternately the next and previous vertices, the trial count
        rounded up to an even number
        free: max_trials vertices drawn at random, never the person
        sphere: every vertex within the search distance, in index order,
        stopping after max_trials + 1 candidates
        """
        size = len(group)
        max_trials = group.max_trials
        if group.topology == Topology.CIRCLE:
            trials = max_trials + floor_mod(max_trials, 2)
            step = 0
            for trial in range(trials):
                if trial % 2 == 0:
                    step += 1
                    yield group[floor_mod(index + step, size)]
                else:
                    yield group[floor_mod(index - step, size)]
        elif group.topology == Topology.FREE:
            for _ in range(max_trials):
                yield group[uniform_index(self.rng, size, exclude=index)]
        else:
            threshold = cos_distance_threshold(group.distance, group.radius)
            origin = group[index].location
            trials = 0
            for position in range(size):
                if position == index:
                    continue
                candidate = group[position]
                if within_distance(origin, candidate.location, threshold):
                    yield candidate
                    trials += 1
                    if trials > max_trials:
                        return

    def allow_partnership(self, person: Person, kind: PartnershipKind) -> bool:
        """
        Whether a person may take one more partner of the given kind.
        """
        count = person.partners_count
        if count >= person.group.max_concurrent:
            return False
        if count >= 1 and not bernoulli(self.rng, person.group.pr_concurrent):
            return False
        if kind == PartnershipKind.STABLE:
            return person.partnership == PartnershipState.AVAILABLE
        return True

    def can_be_partners(self, source: Person, target: Person, kind: PartnershipKind) -> bool:
        """
        Compatibility of two persons: different persons, not two women, a
        same sex pair only when both are homosexual, not already partners,
        and the target must be looking for a partner of the same kind.
        """
        if source is target:
            return False
        if source.gender == Gender.FEMALE and target.gender == Gender.FEMALE:
            return False
        if source.gender == target.gender and not (source.homosexual and target.homosexual):
            return False
        if source.is_partner(target):
            return False
        if not bernoulli(self.rng, target.group.pr_new_partner):
            return False
        wants_casual = bernoulli(self.rng, target.group.pr_casual)
        if kind == PartnershipKind.STABLE:
            return not wants_casual
        return wants_casual

    def casual_internal(self, person: Person, index: int) -> bool:
        group = person.group
        for _ in range(group.max_trials):
            candidate = group[uniform_index(self.rng, len(group), exclude=index)]
            if (
                self.allow_partnership(candidate, PartnershipKind.CASUAL)
                and self.can_be_partners(person, candidate, PartnershipKind.CASUAL)
                and self.create_partnership(person, candidate, PartnershipKind.CASUAL)
            ):
                return True
        return False

    def casual_external(self, person: Person, group_index: int) -> bool:
        """
        Pick another group following the mixing matrix row of the person's
        group, then try random persons of that group.
        """
        population = self.state.population
        target_index = choice_from_row(
            population.mixing[group_index], group_index, self.rng.random()
        )
        if target_index < 0:
            return False
        target_group = population[target_index]
        trials = min(target_group.max_trials, len(target_group))
        for _ in range(trials):
            candidate = target_group[int(self.rng.integers(len(target_group)))]
            if not bernoulli(self.rng, target_group.pr_new_partner):
                continue
            if not bernoulli(self.rng, target_group.pr_casual):
                continue
            if (
                self.allow_partnership(candidate, PartnershipKind.CASUAL)
                and self.can_be_partners(person, candidate, PartnershipKind.CASUAL)
                and self.create_partnership(person, candidate, PartnershipKind.CASUAL)
            ):
                return True
        return False

    def create_partnership(
        self, source: Person, target: Person, kind: PartnershipKind
    ) -> bool:
        """
        Add the partnership on both sides, with an end tick sampled from the
        duration distribution(s), and count it.
        """
        state = self.state
        rng = self.rng
        source_index = state.group_index(source.group)
        target_index = source_index
        external = False
        if kind == PartnershipKind.STABLE:
            length = source.group.stb_duration.sample(rng)
        elif source.group is target.group:
            length = source.group.csl_duration.sample(rng)
        else:
            external = True
            target_index = state.group_index(target.group)
            length = gmean(
                source.group.csl_duration.sample(rng),
                target.group.csl_duration.sample(rng),
            )
        duration = min(state.clock + int(length), MAX_INT)
        if not source.add_partnership(target, kind, duration):
            return False

        if kind == PartnershipKind.STABLE:
            source.partnership = PartnershipState.ENGAGED
            target.partnership = PartnershipState.ENGAGED
        source_data = state.data(source_index)
        target_data = state.data(target_index)
        if kind == PartnershipKind.STABLE:
            source_data.partners += 2
            source_data.stable += 2
        elif external:
            for data in (source_data, target_data):
                data.partners += 1
                data.casual += 1
                data.external += 1
        else:
            source_data.partners += 2
            source_data.casual += 2
            source_data.internal += 2
        if source.partners_count > 1:
            source_data.concurrent += 1
        if target.partners_count > 1:
            target_data.concurrent += 1
        return True

    def more_friends(self, person: Person) -> bool:
        """
        Willingness to make a new friend, decaying exponentially with the
        number of friends already made.
        """
        group = person.group
        return self.rng.random() <= log(len(group)) * exp(
            -group.alpha * person.friends_count
        )

    def _accepts_stable(self, person: Person, candidate: Person) -> bool:
        return (
            bernoulli(self.rng, candidate.group.pr_new_partner)
            and not bernoulli(self.rng, candidate.group.pr_casual)
            and self.allow_partnership(candidate, PartnershipKind.STABLE)
            and self.can_be_partners(person, candidate, PartnershipKind.STABLE)
        )

    def _accepts_friend(self, person: Person, candidate: Person) -> bool:
        return self.more_friends(candidate) and not person.is_friend(candidate)

    def _sample_friends(self, person: Person, trials: int) -> Iterator[Person]:
        sampler = PersonSampler(person.friends.persons(), self.rng)
        for _ in range(min(trials, len(sampler))):
            yield sampler.next()

    def _next_degree(self, queue: deque, trials: int, visit: int) -> Iterator[Person]:
        """
        Unvisited friends of the persons in queue (max trials of each),
        marked visited as they are produced.
        """
        while queue:
            current = queue.popleft()
            for candidate in self._sample_friends(current, trials):
                if candidate.visited != visit:
                    candidate.visited = visit
                    yield candidate

    def search_acquaintances(self, person: Person, partner: bool) -> Optional[Person]:
        """
        Breadth first search through the person's friends (and their
        friends, up to the group's degrees of separation) for a stable
        partner or, with partner=False, for a new friend.

        Every search advances the visit mark, so persons reached twice in the
        same search are examined once.
        """
        state = self.state
        state.visit = floor_mod(state.visit + 1, MAX_INT)
        visit = state.visit
        person.visited = visit
        degrees = person.group.degrees
        trials = person.group.max_trials
        if person.friends_count < 1 or degrees < 1:
            return None

        first = deque()
        second = deque()
        if partner:
            for candidate in self._sample_friends(person, trials):
                candidate.visited = visit
                if self._accepts_stable(person, candidate):
                    return candidate
                first.append(candidate)
            if degrees > 1:
                for candidate in self._next_degree(first, trials, visit):
                    if self._accepts_stable(person, candidate):
                        return candidate
                    second.append(candidate)
            if degrees > 2:
                for candidate in self._next_degree(second, trials, visit):
                    if self._accepts_stable(person, candidate):
                        return candidate
            return None

        for candidate in self._sample_friends(person, trials):
            candidate.visited = visit
            first.append(candidate)
        for candidate in self._next_degree(first, trials, visit):
            if self._accepts_friend(person, candidate):
                return candidate
            second.append(candidate)
        if degrees > 1:
            for candidate in self._next_degree(second, trials, visit):
                if self._accepts_friend(person, candidate):
                    return candidate
        return None
