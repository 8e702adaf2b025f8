from enum import IntEnum


class SimulationStatus(IntEnum):
    READY = 0
    RUNNING = 1
    STEPPING = 2
    PAUSED = 3
    RESETTING = 4
    COMPLETED = 5


class WarmupType(IntEnum):
    """
    How the network is built before the trial clock starts.

    NONE: the infection is seeded straight away.
    TRADITIONAL: partnerships form for a number of ticks, then the infection
    is seeded with the configured prevalence.
    TEMPORAL: one random group is seeded and the disease spreads through
    the forming network for a number of ticks.
    CONDITIONAL: every group is seeded and the network evolves until each
    group reaches its configured prevalence (or the tick bound is hit).
    """

    NONE = 0
    TRADITIONAL = 1
    TEMPORAL = 2
    CONDITIONAL = 3


class ExitReason(IntEnum):
    COMPLETED = 0
    PREVALENCE_ZERO = 1
    RESET = 2

    @property
    def message(self) -> str:
        return _exit_messages[self]


_exit_messages = {
    ExitReason.COMPLETED: "Completed.",
    ExitReason.PREVALENCE_ZERO: "STD Prevalence Zero.",
    ExitReason.RESET: "Reset.",
}
