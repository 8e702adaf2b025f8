import datetime
import logging
import threading
import time
from typing import Optional

import numpy as np

from hivacsim.exc import CommandError
from hivacsim.records import SimulationResults

from .dynamics import PopulationDynamics
from .notifications import Notification, NotificationKind, Observer, Observers
from .partnerships import PartnershipFormation
from .scenario import Scenario
from .state import TrialState
from .status import ExitReason, SimulationStatus, WarmupType
from .transmission import Transmission
from .warmup import Warmup

logger = logging.getLogger("simulator")

_SUSPENDED = (SimulationStatus.STEPPING, SimulationStatus.PAUSED)
_ACTIVE = (SimulationStatus.RUNNING, SimulationStatus.STEPPING, SimulationStatus.PAUSED)


class Stopwatch:
    def __init__(self):
        self.reset()

    def reset(self):
        self._started = None
        self._elapsed = 0.0

    def start(self):
        self._started = time.perf_counter()

    def stop(self):
        if self._started is not None:
            self._elapsed += time.perf_counter() - self._started
            self._started = None

    @property
    def elapsed(self) -> float:
        if self._started is None:
            return self._elapsed
        return self._elapsed + time.perf_counter() - self._started


class Simulator:
    """
    Runs the trials of a scenario on a background thread, controlled by the
    run, step, pause and reset commands.

    A command that does not apply to the current status is reported to the
    observers as an ERROR notification and returns False. Observers are
    called on the simulation thread.

    Parameters
    ----------
    scenario:
        the scenario to simulate, validated every time a simulation starts
    """

    def __init__(self, scenario: Scenario):
        self.scenario = scenario
        self.state = TrialState(scenario, np.random.default_rng(scenario.seed))
        self.dynamics = PopulationDynamics(self.state, scenario.strategies)
        self.partnerships = PartnershipFormation(self.state)
        self.transmission = Transmission(self.state)
        self.warmup = Warmup(self)
        self.observers = Observers()
        self.timer = Stopwatch()
        self.status = SimulationStatus.READY
        self._condition = threading.Condition()
        self._mailbox: Optional[str] = None
        self._thread: Optional[threading.Thread] = None

    # observers

    def subscribe(self, observer: Observer):
        self.observers.subscribe(observer)

    def unsubscribe(self, observer: Observer):
        self.observers.unsubscribe(observer)

    def _notify(self, kind: NotificationKind, message: str = None):
        self.observers.notify(
            Notification(kind, run=self.state.run, clock=self.state.clock, message=message)
        )

    # queries

    @property
    def run_number(self) -> int:
        """
        1-based number of the trial being simulated, 0 when ready.
        """
        if self.status == SimulationStatus.READY:
            return 0
        return self.state.run + 1

    @property
    def clock(self) -> int:
        if self.status == SimulationStatus.READY:
            return 0
        return self.state.clock

    @property
    def elapsed(self) -> float:
        """
        Seconds spent simulating, pauses included.
        """
        return self.timer.elapsed

    @property
    def results(self) -> SimulationResults:
        return self.state.results

    def clock_to_date(self, clock: int) -> datetime.date:
        return self.scenario.timer.date(clock)

    def join(self, timeout: float = None) -> bool:
        """
        Wait for the simulation thread. Returns True once it has finished.
        """
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    # commands

    def _command(self, apply) -> bool:
        try:
            with self._condition:
                apply()
                self._condition.notify_all()
        except CommandError as e:
            logger.warning(str(e))
            self._notify(NotificationKind.ERROR, str(e))
            return False
        return True

    def _post(self, status: SimulationStatus, message: Optional[str]):
        self.status = status
        self._mailbox = message

    def _start(self, status: SimulationStatus):
        self.scenario.check()
        self._post(status, None)
        self._thread = threading.Thread(
            target=self._work, name="hivacsim-simulation", daemon=True
        )
        self._thread.start()

    def run(self) -> bool:
        def apply():
            if self.status in _SUSPENDED:
                self._post(SimulationStatus.RUNNING, "run")
            elif self.status in (SimulationStatus.READY, SimulationStatus.COMPLETED):
                self._start(SimulationStatus.RUNNING)
            else:
                raise CommandError("This simulation is already running...")

        return self._command(apply)

    def step(self) -> bool:
        """
        Advance one tick, starting the simulation if needed.
        """

        def apply():
            if self.status == SimulationStatus.STEPPING:
                self._post(SimulationStatus.STEPPING, "step")
            elif self.status == SimulationStatus.PAUSED:
                self._post(SimulationStatus.STEPPING, "step")
            elif self.status in (SimulationStatus.READY, SimulationStatus.COMPLETED):
                self._start(SimulationStatus.STEPPING)
            else:
                raise CommandError("Simulation is already ready running...")

        return self._command(apply)

    def pause(self) -> bool:
        """
        Toggle between RUNNING and PAUSED.
        """

        def apply():
            if self.status == SimulationStatus.PAUSED:
                self._post(SimulationStatus.RUNNING, "pause")
            elif self.status == SimulationStatus.RUNNING:
                self._post(SimulationStatus.PAUSED, None)
            else:
                raise CommandError("The simulation is already stepping or not running...")

        return self._command(apply)

    def reset(self) -> bool:
        """
        Abort an active simulation, or discard the results of a completed
        one. Either way the simulator ends up READY.
        """

        def apply():
            if self.status in _ACTIVE:
                self._post(SimulationStatus.RESETTING, "reset")
            elif self.status == SimulationStatus.COMPLETED:
                self.state.results.clear()
                self._post(SimulationStatus.READY, None)
            elif self.status == SimulationStatus.RESETTING:
                raise CommandError("The simulation is already resetting...")
            else:
                raise CommandError("The simulation is not running.")

        return self._command(apply)

    # simulation thread

    @property
    def resetting(self) -> bool:
        return self.status == SimulationStatus.RESETTING

    def _suspend(self):
        """
        Wait for the next command while stepping or paused, otherwise pause
        for the animation delay.
        """
        with self._condition:
            suspended = self.status in _SUSPENDED
        if not suspended:
            delay = self.scenario.delay
            if delay > 0:
                with self._condition:
                    self._condition.wait_for(lambda: self.resetting, delay / 1000)
            return
        self._notify(NotificationKind.STOP_RUN)
        with self._condition:
            while self._mailbox is None:
                self._condition.wait()
            self._mailbox = None
        if not self.resetting:
            self._notify(NotificationKind.CONTINUE_RUN)

    def start_tick(self):
        self._notify(NotificationKind.START_CLOCK)

    def end_clock(self):
        self._notify(NotificationKind.END_CLOCK)

    def end_tick(self) -> bool:
        """
        Close a tick: animation and end of clock notifications, then wait
        or pause. Returns False when the simulation is being reset.
        """
        if self.scenario.animate:
            self._notify(NotificationKind.ANIMATE)
        self.end_clock()
        self._suspend()
        return not self.resetting

    def _work(self):
        try:
            self.simulate()
        except Exception as e:
            self.timer.stop()
            logger.exception("Simulation failed")
            self._notify(NotificationKind.ERROR, str(e))
        with self._condition:
            if self.resetting:
                self.state.results.clear()
                self.status = SimulationStatus.READY
            else:
                self.status = SimulationStatus.COMPLETED
            self._mailbox = None
        self._notify(NotificationKind.END_TRIAL)

    def _warm_up(self) -> bool:
        state = self.state
        population = state.population
        state.warming_up = True
        population.save_concurrency(
            self.scenario.wmax_concurrent, self.scenario.wpr_concurrent
        )
        self._notify(NotificationKind.START_WARMUP)
        try:
            completed = self.warmup()
        finally:
            population.restore_concurrency()
            state.warming_up = False
        if not completed:
            return False
        state.clock = 0
        self._notify(NotificationKind.END_WARMUP)
        return True

    def _tick(self) -> bool:
        """
        One tick of a trial. Returns False when the infection died out.
        """
        self.start_tick()
        self.dynamics.update_population()
        self.dynamics.update_partners()
        self.partnerships.create_partners()
        self.dynamics.execute_intervention()
        self.transmission.update_transmission()
        if self.dynamics.update_prevalence() <= 0:
            self.state.std_zero = True
            self.end_clock()
            return False
        return True

    def simulate(self):
        """
        Simulate every trial of the scenario, filling the results. Runs on
        the simulation thread.
        """
        scenario = self.scenario
        state = self.state
        population = state.population
        self.timer.reset()
        self.timer.start()
        state.results = SimulationResults(
            scenario.runs, scenario.duration, [group.name for group in population]
        )
        if scenario.auto_seed:
            state.rng = np.random.default_rng()
        else:
            state.rng = np.random.default_rng(scenario.seed)
        scenario.ids.reset("person")
        population.save_prevalence()
        state.run = 0
        state.clock = 0
        self._notify(NotificationKind.START_TRIAL)
        if len(population) == 0:
            self.timer.stop()
            return

        logger.info(f"Simulating {scenario}")
        for run in range(scenario.runs):
            state.run = run
            state.clock = 0
            state.std_zero = False
            state.visit = 0
            self._notify(NotificationKind.START_RUN)
            population.restore_prevalence()
            state.index_groups()
            population.create_population(state.disease, state.rng, set_std=False)

            if scenario.warmup == WarmupType.NONE:
                self.transmission.initialise_std_infection()
            elif not self._warm_up():
                break

            self.start_tick()
            self.dynamics.clock_zero_data()
            self.end_tick()
            if self.resetting:
                break

            if not state.std_zero:
                for clock in range(1, scenario.duration + 1):
                    state.clock = clock
                    if not self._tick():
                        break
                    if not self.end_tick():
                        break

            state.clock = min(state.clock, scenario.duration)
            self.dynamics.calculate_network()
            population.clear_population()
            if self.resetting:
                self._notify(NotificationKind.BEFORE_RESET)
                break
            reason = ExitReason.PREVALENCE_ZERO if state.std_zero else ExitReason.COMPLETED
            logger.info(f"Run {run + 1} of {scenario.runs}: {reason.message}")
            self._notify(NotificationKind.END_RUN, reason.message)

        state.run = min(state.run, scenario.runs - 1)
        if self.resetting:
            population.clear_population()
            self._notify(NotificationKind.RESET, ExitReason.RESET.message)
        population.restore_prevalence()
        self.timer.stop()
        logger.info(f"Simulation finished in {self.timer.elapsed:.2f} seconds")
