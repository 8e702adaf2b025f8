class SimulationError(Exception):
    """
    Base class for domain errors raised by hivacsim.
    """


class InvalidProbabilityError(SimulationError, ValueError):
    pass


class SamplingError(SimulationError):
    pass


class CommandError(SimulationError):
    """
    A command was issued in a state that does not accept it. The simulator
    never raises it to the caller, it is reported through an error
    notification instead.
    """


class ScenarioError(SimulationError):
    def __init__(self, problems):
        self.problems = list(problems)
        super().__init__("\n".join(self.problems))


def check_probability(value: float, name: str = "probability") -> float:
    value = float(value)
    if not 0.0 <= value <= 1.0:
        raise InvalidProbabilityError(
            f"Invalid {name} value {value}, it must be between 0 and 1."
        )
    return value
