import logging
import os
from pathlib import Path
from sys import argv

logger = logging.getLogger(__name__)

project_directory = Path(os.path.abspath(__file__)).parent


def configs_directory(flag: str = "--configs") -> Path:
    """
    Directory holding logging.yaml and defaults/scenario.yaml. A directory
    given after the --configs flag on the command line takes precedence over
    the one shipped inside the package.
    """
    if flag in argv[:-1]:
        path = Path(argv[argv.index(flag) + 1])
        if not path.is_dir():
            raise FileNotFoundError(f"No such configs folder {path}")
        return path
    path = project_directory / "configs"
    logger.debug(f"No {flag} argument given - defaulting to: {path}")
    return path


configs_path = configs_directory()
