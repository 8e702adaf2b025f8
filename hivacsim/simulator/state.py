import datetime
from typing import TYPE_CHECKING

from hivacsim.records import SimData, SimulationResults

from .status import WarmupType

if TYPE_CHECKING:
    from hivacsim.groups import Group
    from .scenario import Scenario


class TrialState:
    """
    Mutable state shared by the per tick procedures of a simulation: the
    position in time (run and clock), the warm-up flags, the random
    generator and the results being filled.
    """

    def __init__(self, scenario: "Scenario", rng):
        self.scenario = scenario
        self.population = scenario.population
        self.disease = scenario.disease
        self.rng = rng
        self.results = SimulationResults()
        self.run = 0
        self.clock = 0
        self.warming_up = False
        self.std_zero = False
        self.visit = 0
        self._discarded = SimData()
        self._group_index = {}

    def index_groups(self):
        self._group_index = {id(group): idx for idx, group in enumerate(self.population)}

    def group_index(self, group: "Group") -> int:
        return self._group_index[id(group)]

    def data(self, group_index: int) -> SimData:
        """
        Counters of a group at the current tick. While warming up the
        counters go to a record that is never stored.
        """
        if self.warming_up:
            return self._discarded
        return self.results.data[self.run, self.clock, group_index]

    @property
    def conditional_warmup(self) -> bool:
        return self.warming_up and self.scenario.warmup == WarmupType.CONDITIONAL

    def skips(self, group: "Group") -> bool:
        """
        Groups that reached their target prevalence are frozen during a
        conditional warm-up.
        """
        return self.conditional_warmup and group.warmed_up

    @property
    def date(self) -> datetime.date:
        return self.scenario.timer.date(self.clock)
