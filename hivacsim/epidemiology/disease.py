import yaml

from hivacsim import paths
from hivacsim.exc import check_probability
from hivacsim.utils.distributions import parse_distribution

default_config_path = paths.configs_path / "defaults/scenario.yaml"


class Disease:
    """
    Sexually transmitted disease of interest.

    Parameters
    ----------
    name:
        disease label
    male_to_female, female_to_male, male_to_male:
        per contact transmission probability in each direction
    life_infection:
        the infection is never cleared
    duration:
        infection duration in ticks, used when life_infection is False
    allow_reinfection:
        recovered persons become susceptible again (otherwise protected)
    mortality:
        probability that the infection eventually kills
    life_expectancy:
        infection age (ticks) at which an infection kills
    """

    def __init__(
        self,
        name: str = "Unknown",
        male_to_female: float = 0.0,
        female_to_male: float = 0.0,
        male_to_male: float = 0.0,
        life_infection: bool = True,
        duration=0,
        allow_reinfection: bool = False,
        mortality: float = 0.0,
        life_expectancy=0,
    ):
        self.name = name
        self.male_to_female = check_probability(male_to_female, "male_to_female")
        self.female_to_male = check_probability(female_to_male, "female_to_male")
        self.male_to_male = check_probability(male_to_male, "male_to_male")
        self.life_infection = life_infection
        self.duration = parse_distribution(duration)
        self.allow_reinfection = allow_reinfection
        self.mortality = check_probability(mortality, "mortality")
        self.life_expectancy = parse_distribution(life_expectancy)

    @classmethod
    def from_dict(cls, config: dict) -> "Disease":
        return cls(**config)

    @classmethod
    def from_file(cls, config_path: str = default_config_path) -> "Disease":
        with open(config_path) as f:
            config = yaml.safe_load(f)
        return cls.from_dict(config["disease"])

    def __repr__(self):
        return f"Disease({self.name!r})"
