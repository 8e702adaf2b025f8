import logging
from typing import TYPE_CHECKING

from .status import WarmupType

if TYPE_CHECKING:
    from .simulator import Simulator

logger = logging.getLogger("warmup")


class Warmup:
    """
    Builds the sexual network before the trial clock starts. Counters
    produced while warming up are discarded, the clock is reset to 0
    afterwards by the simulator.

    Every method returns False when the simulation was reset while warming
    up, True otherwise (including when the infection died out, which is
    flagged on the trial state).
    """

    def __init__(self, simulator: "Simulator"):
        self.simulator = simulator
        self.state = simulator.state

    def __call__(self) -> bool:
        warmup = self.state.scenario.warmup
        logger.info(f"Run {self.state.run + 1}: {warmup.name.lower()} warm-up")
        if warmup == WarmupType.TRADITIONAL:
            return self.traditional()
        if warmup == WarmupType.TEMPORAL:
            return self.temporal()
        if warmup == WarmupType.CONDITIONAL:
            return self.conditional()
        return True

    def _network_tick(self, transmission: bool):
        simulator = self.simulator
        simulator.dynamics.update_population()
        simulator.dynamics.update_partners()
        simulator.partnerships.create_partners()
        if transmission:
            simulator.transmission.update_transmission()

    def traditional(self) -> bool:
        """
        Let partnerships form for warmup_length ticks, then seed the
        infection with the configured prevalence of every group.
        """
        state = self.state
        simulator = self.simulator
        for clock in range(1, state.scenario.warmup_length + 1):
            state.clock = clock
            simulator.start_tick()
            self._network_tick(transmission=False)
            if not simulator.end_tick():
                return False
        simulator.transmission.initialise_std_infection()
        if simulator.dynamics.update_prevalence() <= 0:
            state.std_zero = True
        return True

    def temporal(self) -> bool:
        """
        Seed a random group and let the disease spread through the forming
        network for warmup_length ticks.
        """
        state = self.state
        simulator = self.simulator
        population = state.population
        if len(population) == 1:
            group = population[0]
        else:
            group = population[int(state.rng.integers(len(population)))]
        seeded = simulator.transmission.seed_group(group)
        group.std_prevalence = seeded / len(group)
        logger.debug(f"Run {state.run + 1}: seeded {seeded} persons in {group.name}")
        if group.std_prevalence <= 0:
            state.std_zero = True
            return True

        for clock in range(1, state.scenario.warmup_length + 1):
            state.clock = clock
            simulator.start_tick()
            self._network_tick(transmission=True)
            if simulator.dynamics.update_prevalence() <= 0:
                state.std_zero = True
                simulator.end_clock()
                break
            if not simulator.end_tick():
                return False
        return True

    def conditional(self) -> bool:
        """
        Seed every group and evolve the network until each group reaches its
        configured prevalence, at most warmup_length ticks. Groups that
        reached it are frozen while the others catch up.
        """
        state = self.state
        simulator = self.simulator
        population = state.population
        total = 0.0
        for group in population:
            target = group.std_prevalence
            seeded = simulator.transmission.seed_group(group) / len(group)
            group.warmed_up = target <= seeded
            total += seeded
        state.clock = 0
        if total / len(population) <= 0:
            state.std_zero = True
            return True

        done = all(group.warmed_up for group in population)
        while not done and state.clock < state.scenario.warmup_length:
            state.clock += 1
            simulator.start_tick()
            self._network_tick(transmission=True)
            done = True
            total = 0.0
            for group in population:
                prevalence = group.prevalence()
                total += prevalence
                if group.std_prevalence <= prevalence:
                    group.warmed_up = True
                else:
                    done = False
            if total / len(population) <= 0:
                state.std_zero = True
                simulator.end_clock()
                break
            if not simulator.end_tick():
                return False
        if not done and not state.std_zero:
            logger.info(
                f"Run {state.run + 1}: conditional warm-up stopped after "
                f"{state.clock} ticks before every group reached its prevalence"
            )
        return True
