from .group import Group, Topology
from .population import Population
