import logging.config
import os

import yaml

from hivacsim import paths
from . import demography
from . import epidemiology
from . import groups
from . import simulator
from .demography import Person
from .epidemiology import Disease, Strategy, Vaccine
from .exc import ScenarioError, SimulationError
from .groups import Group, Population
from .records import SimulationResults
from .simulator import Scenario, Simulator
from .time import SimulationClock

default_logging_config_filename = paths.configs_path / "logging.yaml"

if os.path.isfile(default_logging_config_filename):
    with open(default_logging_config_filename, "rt") as f:
        log_config = yaml.safe_load(f.read())
        logging.config.dictConfig(log_config)
else:
    print("The logging config file does not exist.")
    log_file = os.path.join("./", "hivacsim.log")
    logging.basicConfig(filename=log_file, level=logging.DEBUG)
