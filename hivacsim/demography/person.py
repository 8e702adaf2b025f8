from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, Optional

import numpy as np

from hivacsim.utils.stochastic import bernoulli

from .containers import FriendList, PartnerList
from .relation import PartnershipKind

if TYPE_CHECKING:
    from hivacsim.groups.group import Group

MAX_INT = 2 ** 31 - 1


class Gender(IntEnum):
    FEMALE = 0
    MALE = 1


class STDStatus(IntEnum):
    SUSCEPTIBLE = 0
    INFECTED = 1
    PROTECTED = 2


class PartnershipState(IntEnum):
    AVAILABLE = 0
    ENGAGED = 1
    TRANSITORY = 2


@dataclass(slots=True, eq=False)
class Person:
    """
    A vertex of the sexual/social network.

    std_age counts ticks since infection, std_death is the infection age at
    which the disease kills and std_duration either the infection age at
    which a non lifelong infection clears or, for protected persons, the
    tick their protection ends. MAX_INT marks "never".
    """

    id: int
    group: "Group" = None
    age: int = 0
    life_expectancy: int = MAX_INT
    gender: Gender = Gender.FEMALE
    homosexual: bool = False
    std_status: STDStatus = STDStatus.SUSCEPTIBLE
    std_age: int = 0
    std_death: int = MAX_INT
    std_test: bool = False
    std_duration: int = MAX_INT
    partnership: PartnershipState = PartnershipState.AVAILABLE
    transitory: int = 0
    location: Optional[np.ndarray] = None
    visited: int = -1
    distance: int = 0
    partners: PartnerList = field(init=False, repr=False)
    friends: FriendList = field(init=False, repr=False)

    def __post_init__(self):
        self.partners = PartnerList(self)
        self.friends = FriendList(self)

    def __hash__(self):
        return self.id

    def __eq__(self, other):
        if not isinstance(other, Person):
            return NotImplemented
        return self.id == other.id

    @property
    def is_infected(self) -> bool:
        return self.std_status == STDStatus.INFECTED

    @property
    def is_susceptible(self) -> bool:
        return self.std_status == STDStatus.SUSCEPTIBLE

    @property
    def is_male(self) -> bool:
        return self.gender == Gender.MALE

    @property
    def partners_count(self) -> int:
        return len(self.partners)

    @property
    def friends_count(self) -> int:
        return len(self.friends)

    def is_partner(self, person: "Person") -> bool:
        return person in self.partners

    def is_friend(self, person: "Person") -> bool:
        return person in self.friends

    def add_partnership(
        self, partner: "Person", kind: PartnershipKind, duration: int
    ) -> bool:
        return self.partners.add_partner(partner, kind, duration)

    def end_partnership(self, partner: "Person", add_friend: bool = True) -> bool:
        """
        End the partnership with partner on both sides. Former partners of
        the same group become friends unless add_friend is False.
        """
        if not self.partners.remove(partner):
            return False
        if add_friend and self.group is partner.group:
            self.add_friend(partner)
        return True

    def add_friend(self, friend: "Person") -> bool:
        return self.friends.add(friend)

    def end_friend(self, friend: "Person") -> bool:
        return self.friends.remove(friend)

    def say_goodbye(self):
        """
        Remove this person from the network: every partnership and every
        friendship is closed on both sides.
        """
        for partner in self.partners.persons():
            self.end_partnership(partner, add_friend=False)
        for friend in self.friends.persons():
            self.end_friend(friend)

    def infect(self, rng, disease, std_age: int = 0):
        """
        Mark the person infected at the given infection age, sampling the
        infection age at death (mortality) and, for diseases that clear, the
        infection duration.
        """
        self.std_status = STDStatus.INFECTED
        self.std_age = std_age
        if bernoulli(rng, disease.mortality):
            self.std_death = int(disease.life_expectancy.sample(rng))
            if self.std_age >= self.std_death:
                self.std_age = 0
        if not disease.life_infection:
            self.std_duration = int(disease.duration.sample(rng))
            if self.std_age >= self.std_duration:
                self.std_duration += self.std_age

    def clear_infection(self):
        self.std_age = 0
        self.std_death = MAX_INT
        self.std_duration = MAX_INT
