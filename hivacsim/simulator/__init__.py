from .notifications import Notification, NotificationKind, Observers
from .scenario import Scenario
from .simulator import Simulator
from .state import TrialState
from .status import ExitReason, SimulationStatus, WarmupType
