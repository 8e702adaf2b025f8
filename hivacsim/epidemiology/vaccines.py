import logging
from enum import IntEnum
from typing import Dict, List, Optional, TYPE_CHECKING

from hivacsim.demography import STDStatus
from hivacsim.exc import SimulationError
from hivacsim.ids import IdAllocator
from hivacsim.utils.sampling import IndexSampler
from hivacsim.utils.stochastic import bernoulli

if TYPE_CHECKING:
    from hivacsim.demography import Person
    from hivacsim.groups import Group, Population

logger = logging.getLogger("vaccines")


class InterventionScope(IntEnum):
    ALL_GROUPS = 0
    CUSTOM = 1


class HIVTest(IntEnum):
    NOT_IMPORTANT = 0
    HIV_NEGATIVE = 1
    HIV_POSITIVE = 2


class Vaccine:
    """
    A preventive vaccine.

    Parameters
    ----------
    name:
        label, "Vaccine <id>" when not given
    effectiveness:
        probability that vaccinating a susceptible person protects them
    lifetime:
        protection never wanes
    length:
        number of ticks the protection lasts when not lifetime
    """

    def __init__(
        self,
        name: str = None,
        effectiveness: float = 1.0,
        lifetime: bool = False,
        length: int = 1,
        ids: IdAllocator = None,
    ):
        if not 0.0 < effectiveness <= 1.0:
            raise ValueError(
                f"Invalid vaccine effectiveness {effectiveness}, it must be in (0, 1]."
            )
        if length <= 0:
            raise ValueError(f"Invalid vaccine protection length {length}.")
        self.id = (ids or IdAllocator()).next_id("vaccine")
        self.name = name or f"Vaccine {self.id}"
        self.effectiveness = effectiveness
        self.lifetime = lifetime
        self.length = int(length)
        self.used_by: List[int] = []

    @classmethod
    def from_dict(cls, config: dict, ids: IdAllocator = None) -> "Vaccine":
        return cls(ids=ids, **config)

    def protect(self, person: "Person", clock: int, duration: int, rng) -> bool:
        """
        Try to protect a susceptible person. Returns True when the person
        becomes protected.

        Parameters
        ----------
        clock:
            current tick, protection lasts until clock + length
        duration:
            trial duration, the end of a lifetime protection
        """
        if not person.is_susceptible or not bernoulli(rng, self.effectiveness):
            return False
        person.std_status = STDStatus.PROTECTED
        if self.lifetime:
            person.std_duration = duration
        else:
            person.std_duration = clock + self.length
        return True

    def __repr__(self):
        return f"Vaccine(id={self.id}, name={self.name!r})"


class Vaccines:
    """
    Ordered collection of the vaccines available to the strategies.
    """

    def __init__(self, vaccines: List[Vaccine] = None):
        self.vaccines: List[Vaccine] = list(vaccines or [])

    def __iter__(self):
        return iter(self.vaccines)

    def __len__(self):
        return len(self.vaccines)

    def __getitem__(self, index: int) -> Vaccine:
        return self.vaccines[index]

    def add(self, vaccine: Vaccine) -> int:
        self.vaccines.append(vaccine)
        return len(self.vaccines) - 1

    def remove(self, vaccine: Vaccine):
        if vaccine.used_by:
            raise SimulationError(
                f"Vaccine [{vaccine.name}] is currently in use by one or more "
                "intervention strategies."
            )
        self.vaccines.remove(vaccine)

    def index_of(self, vaccine: Vaccine) -> int:
        for index, candidate in enumerate(self.vaccines):
            if candidate is vaccine:
                return index
        return -1

    def get_from_name(self, name: str) -> Vaccine:
        for vaccine in self.vaccines:
            if vaccine.name == name:
                return vaccine
        raise KeyError(f"No vaccine named {name}")

    def clear(self):
        self.vaccines = []


class Strategy:
    """
    A vaccination campaign, launched once at a given tick.

    Parameters
    ----------
    vaccine:
        the vaccine administered
    clock:
        tick at which the campaign is executed (>= 1)
    population:
        fraction of each targeted group offered the vaccine, in (0, 1]
    intervention:
        every group or only the ones listed in groups
    groups:
        ids of the targeted groups when the intervention is CUSTOM
    hiv_tested, hiv_result:
        testing requirements attached to the campaign, reported only
    """

    def __init__(
        self,
        vaccine: Vaccine,
        name: str = None,
        active: bool = True,
        intervention: InterventionScope = InterventionScope.ALL_GROUPS,
        groups: List[int] = None,
        clock: int = 1,
        population: float = 1.0,
        hiv_tested: bool = False,
        hiv_result: HIVTest = HIVTest.NOT_IMPORTANT,
        ids: IdAllocator = None,
    ):
        if not 0.0 < population <= 1.0:
            raise ValueError(
                f"Invalid vaccinated population fraction {population}, "
                "it must be in (0, 1]."
            )
        if clock < 1:
            raise ValueError(f"Invalid intervention clock {clock}, it must be >= 1.")
        self.id = (ids or IdAllocator()).next_id("strategy")
        self.name = name or f"Intervention {self.id}"
        self.vaccine = vaccine
        self.active = active
        self.intervention = InterventionScope(intervention)
        self.groups: List[int] = list(groups or [])
        self.clock = int(clock)
        self.population = population
        self.hiv_tested = hiv_tested
        self.hiv_result = HIVTest(hiv_result)

    @classmethod
    def from_dict(
        cls,
        config: dict,
        vaccines: Dict[str, Vaccine],
        group_ids: Dict[str, int] = None,
        ids: IdAllocator = None,
    ) -> "Strategy":
        """
        The vaccine is referenced by name, targeted groups by name or id.
        """
        config = dict(config)
        config["groups"] = [
            group_ids[group] if isinstance(group, str) else group
            for group in config.get("groups", [])
        ]
        config["vaccine"] = vaccines[config["vaccine"]]
        if isinstance(config.get("intervention"), str):
            config["intervention"] = InterventionScope[config["intervention"].upper()]
        if isinstance(config.get("hiv_result"), str):
            config["hiv_result"] = HIVTest[config["hiv_result"].upper()]
        return cls(ids=ids, **config)

    def targets(self, group: "Group") -> bool:
        if self.intervention == InterventionScope.ALL_GROUPS:
            return True
        return group.id in self.groups

    def __repr__(self):
        return f"Strategy(id={self.id}, name={self.name!r}, clock={self.clock})"


class Strategies:
    """
    Ordered collection of intervention strategies. Adding a strategy records
    it in the used_by list of its vaccine, removing it clears that record.
    """

    def __init__(self, strategies: List[Strategy] = None):
        self.strategies: List[Strategy] = []
        for strategy in strategies or []:
            self.add(strategy)

    def __iter__(self):
        return iter(self.strategies)

    def __len__(self):
        return len(self.strategies)

    def __getitem__(self, index: int) -> Strategy:
        return self.strategies[index]

    def add(self, strategy: Strategy) -> int:
        self.strategies.append(strategy)
        strategy.vaccine.used_by.append(strategy.id)
        return len(self.strategies) - 1

    def remove(self, strategy: Strategy):
        self.strategies.remove(strategy)
        if strategy.id in strategy.vaccine.used_by:
            strategy.vaccine.used_by.remove(strategy.id)

    def index_of(self, strategy: Strategy) -> int:
        for index, candidate in enumerate(self.strategies):
            if candidate is strategy:
                return index
        return -1

    def clear(self):
        for strategy in list(self.strategies):
            self.remove(strategy)

    @property
    def active(self) -> List[Strategy]:
        return [strategy for strategy in self.strategies if strategy.active]

    def execute(
        self,
        population: "Population",
        clock: int,
        duration: int,
        rng,
        skip_group=None,
    ) -> Dict[int, int]:
        """
        Run every active strategy triggered at this tick. Returns the number
        of newly protected persons per group index.

        Parameters
        ----------
        skip_group:
            optional predicate, groups for which it returns True are left
            untouched
        """
        protected = {}
        for strategy in self.active:
            if strategy.clock != clock:
                continue
            for index, group in enumerate(population):
                if not strategy.targets(group):
                    continue
                if skip_group is not None and skip_group(group):
                    continue
                count = self._vaccinate_group(strategy, group, clock, duration, rng)
                protected[index] = protected.get(index, 0) + count
            logger.info(f"Executed intervention {strategy.name} at clock {clock}")
        return protected

    @staticmethod
    def _vaccinate_group(
        strategy: Strategy, group: "Group", clock: int, duration: int, rng
    ) -> int:
        count = 0
        sampler = IndexSampler(len(group), rng)
        for _ in range(int(len(group) * strategy.population)):
            person = group[sampler.next()]
            if strategy.vaccine.protect(person, clock, duration, rng):
                count += 1
        return count

    def vaccinate_person(
        self, person: "Person", clock: int, duration: int, rng
    ) -> Optional[Strategy]:
        """
        Offer the vaccine of every campaign already launched to a person
        who joined the population after it. Returns the strategy that
        protected the person, if any.

        Strategies after the one that protected the person are not offered,
        so they make no random draws. The outcome for the person is the same
        as offering every strategy, but a fixed seed gives a different random
        sequence than a scheme that keeps drawing for the remaining ones.
        """
        for strategy in self.active:
            if strategy.clock > clock or not strategy.targets(person.group):
                continue
            if bernoulli(rng, strategy.population):
                if strategy.vaccine.protect(person, clock, duration, rng):
                    return strategy
        return None
