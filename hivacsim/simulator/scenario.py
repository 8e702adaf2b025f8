import datetime
import logging
from math import cos, pi
from typing import List

import yaml

from hivacsim import paths
from hivacsim.epidemiology import Disease, Strategies, Strategy, Vaccine, Vaccines
from hivacsim.exc import ScenarioError, SimulationError, check_probability
from hivacsim.groups import Group, Population, Topology
from hivacsim.ids import IdAllocator
from hivacsim.time import ClockUnit, SimulationClock
from hivacsim.utils.distributions import parse_distribution

from .status import WarmupType

default_config_path = paths.configs_path / "defaults/scenario.yaml"

logger = logging.getLogger("scenario")


class Scenario:
    """
    Everything a simulation needs: the disease, the population groups and
    their mixing, the vaccines and intervention strategies, and the run
    settings.

    Parameters
    ----------
    runs:
        number of independent trials
    duration:
        number of clock ticks per trial
    clock:
        length of one tick
    uinfect:
        seed the initial infection uniformly at random even on circle and
        sphere topologies (otherwise it is spatially clustered)
    warmup, warmup_length:
        warm-up strategy and its length (upper bound for CONDITIONAL)
    wmax_concurrent, wpr_concurrent:
        minimum concurrency settings applied to every group while warming up
    warmup_infected:
        number of persons seeded by the TEMPORAL and CONDITIONAL warm-ups
    speed, max_delay:
        animation speed (0..100) and the delay in ms between ticks at speed 0
    auto_seed, seed:
        with auto_seed the generator takes fresh entropy, otherwise every
        simulation starts from seed
    pl_numeric:
        groups up to this size get exact path lengths, larger ones a sample
    pl_sample:
        number of vertex pairs in the path length sample
    pl_algorithm:
        pr_casual threshold from which exact path lengths use BFS rather than
        Floyd-Warshall
    """

    def __init__(
        self,
        disease: Disease = None,
        population: Population = None,
        vaccines: Vaccines = None,
        strategies: Strategies = None,
        runs: int = 10,
        duration: int = 144,
        clock: ClockUnit = ClockUnit.MONTH,
        start_date=None,
        uinfect: bool = False,
        warmup: WarmupType = WarmupType.TRADITIONAL,
        warmup_length: int = 24,
        wmax_concurrent: int = 2,
        wpr_concurrent: float = 0.5,
        warmup_infected=1.0,
        speed: int = 100,
        max_delay: int = 2000,
        animate: bool = False,
        auto_seed: bool = True,
        seed: int = 19650218,
        pl_numeric: int = 500,
        pl_sample: int = 400,
        pl_algorithm: float = 0.13,
        ids: IdAllocator = None,
    ):
        self.ids = ids if ids is not None else IdAllocator()
        self.disease = disease if disease is not None else Disease("HIV/AIDS")
        self.population = population if population is not None else Population()
        self.vaccines = vaccines if vaccines is not None else Vaccines()
        self.strategies = strategies if strategies is not None else Strategies()
        # persons of every group draw their ids from the same counter, groups
        # built with their own allocator get a fresh id from it
        for group in self.population:
            if group.ids is not self.ids:
                group.ids = self.ids
                group.id = self.ids.next_id("group")
        if runs < 1:
            raise ValueError(f"Invalid number of runs {runs}, it must be >= 1.")
        if duration < 1:
            raise ValueError(f"Invalid duration {duration}, it must be >= 1.")
        if warmup_length < 0:
            raise ValueError(f"Invalid warm-up length {warmup_length}.")
        self.runs = runs
        self.duration = duration
        self.timer = SimulationClock(start_date, clock)
        self.uinfect = uinfect
        self.warmup = WarmupType(warmup)
        self.warmup_length = warmup_length
        self.wmax_concurrent = wmax_concurrent
        self.wpr_concurrent = wpr_concurrent
        self.warmup_infected = parse_distribution(warmup_infected)
        self.max_delay = max_delay
        self.speed = speed
        self.animate = animate
        self.auto_seed = auto_seed
        self.seed = seed
        self.pl_numeric = pl_numeric
        self.pl_sample = pl_sample
        self.pl_algorithm = pl_algorithm

    @property
    def wmax_concurrent(self) -> int:
        return self._wmax_concurrent

    @wmax_concurrent.setter
    def wmax_concurrent(self, value: int):
        if value < 1:
            raise SimulationError(
                "Invalid maximum number of concurrent partnerships during the "
                "warm-up, it must be >= 1."
            )
        self._wmax_concurrent = int(value)

    @property
    def wpr_concurrent(self) -> float:
        return self._wpr_concurrent

    @wpr_concurrent.setter
    def wpr_concurrent(self, value: float):
        if not 0.0 < value <= 1.0:
            raise SimulationError(
                "Invalid probability of concurrent partnerships during the "
                "warm-up, it must be in (0, 1]."
            )
        self._wpr_concurrent = value

    @property
    def speed(self) -> int:
        return self._speed

    @speed.setter
    def speed(self, value: int):
        if not 0 <= value <= 100:
            raise ValueError(f"Invalid speed {value}, it must be in [0, 100].")
        self._speed = value

    @property
    def delay(self) -> int:
        """
        Pause between ticks in milliseconds.
        """
        return int(self.max_delay - self.max_delay * 0.5 * self.speed * 0.02)

    @property
    def pl_sample(self) -> int:
        return self._pl_sample

    @pl_sample.setter
    def pl_sample(self, value: int):
        if value <= 5:
            raise ValueError(f"Invalid path length sample size {value}, it must be > 5.")
        self._pl_sample = value

    @property
    def pl_algorithm(self) -> float:
        return self._pl_algorithm

    @pl_algorithm.setter
    def pl_algorithm(self, value: float):
        self._pl_algorithm = check_probability(value, "pl_algorithm")

    @property
    def clock(self) -> ClockUnit:
        return self.timer.unit

    @property
    def start_date(self) -> datetime.date:
        return self.timer.start_date

    def validate(self) -> List[str]:
        """
        Check the population definition. Returns the list of problems found,
        empty when the scenario can be simulated.
        """
        problems = []
        seen = set()
        for group in self.population:
            if group.id in seen:
                problems.append(f"Duplicate id {group.id} for Group [{group.name}].")
            seen.add(group.id)
        for group in self.population:
            if group.size < 2:
                problems.append(f"Invalid population size for Group [{group.name}].")
        for group in self.population:
            if group.topology == Topology.SPHERE:
                if cos(group.distance / group.radius) > pi * group.radius:
                    problems.append(
                        "Invalid sphere searching distance for population group "
                        f"[{group.name}]"
                    )
        problems.extend(self.population.mixing_problems())
        return problems

    def check(self):
        problems = self.validate()
        if problems:
            for problem in problems:
                logger.error(problem)
            raise ScenarioError(problems)

    @classmethod
    def from_dict(cls, config: dict) -> "Scenario":
        """
        Build a scenario from a configuration dictionary with the sections
        simulation, disease, groups, mixing, vaccines and strategies.
        """
        ids = IdAllocator()
        settings = dict(config.get("simulation", {}))
        if isinstance(settings.get("clock"), str):
            settings["clock"] = ClockUnit[settings["clock"].upper()]
        if isinstance(settings.get("warmup"), str):
            settings["warmup"] = WarmupType[settings["warmup"].upper()]
        disease = Disease.from_dict(config.get("disease", {"name": "HIV/AIDS"}))
        population = Population(
            [Group.from_dict(group, ids=ids) for group in config.get("groups", [])],
            mixing=config.get("mixing"),
        )
        group_ids = {group.name: group.id for group in population}
        vaccines = Vaccines(
            [Vaccine.from_dict(vaccine, ids=ids) for vaccine in config.get("vaccines", [])]
        )
        by_name = {vaccine.name: vaccine for vaccine in vaccines}
        strategies = Strategies(
            [
                Strategy.from_dict(strategy, by_name, group_ids, ids=ids)
                for strategy in config.get("strategies", [])
            ]
        )
        return cls(
            disease=disease,
            population=population,
            vaccines=vaccines,
            strategies=strategies,
            ids=ids,
            **settings,
        )

    @classmethod
    def from_file(cls, config_path: str = default_config_path) -> "Scenario":
        with open(config_path) as f:
            config = yaml.safe_load(f)
        logger.info(f"Loading scenario from {config_path}")
        return cls.from_dict(config)

    def __repr__(self):
        return (
            f"Scenario(groups={len(self.population)}, runs={self.runs}, "
            f"duration={self.duration}, warmup={self.warmup.name})"
        )
