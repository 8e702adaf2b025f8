from abc import ABC, abstractmethod
from math import exp, log, sqrt

from scipy.stats import (
    beta,
    expon,
    gamma,
    invgauss,
    lognorm,
    norm,
    poisson,
    triang,
    uniform,
    weibull_min,
)


class Distribution(ABC):
    @abstractmethod
    def sample(self, rng=None) -> float:
        """
        Draw one value from the distribution.

        Parameters
        ----------
        rng
            numpy Generator owned by the simulation. Passing the same generator
            everywhere keeps fixed-seed runs reproducible.
        """

    def __call__(self, rng=None) -> float:
        return self.sample(rng)

    @property
    @abstractmethod
    def mean(self) -> float:
        pass

    @staticmethod
    def class_for_type(type_string: str) -> type:
        """
        Get a Distribution class from a string in configuration

        Parameters
        ----------
        type_string
            The type of Distribution
            e.g. constant/exponential/beta

        Returns
        -------
        The corresponding class

        Raises
        ------
        ValueError
            If the type string is not recognised
        """
        try:
            return _distribution_types[type_string]
        except KeyError:
            raise ValueError(f"Unrecognised distribution type {type_string}")

    @classmethod
    def from_dict(cls, distribution_dict: dict) -> "Distribution":
        distribution_dict = dict(distribution_dict)
        type_string = distribution_dict.pop("type")
        return Distribution.class_for_type(type_string)(**distribution_dict)

    def to_dict(self) -> dict:
        return {"type": self.type_string, **self.parameters}

    type_string = None

    @property
    def parameters(self) -> dict:
        return {}

    def __repr__(self):
        parameters = ", ".join(f"{k}={v}" for k, v in self.parameters.items())
        return f"{self.__class__.__name__}({parameters})"


class ConstantDistribution(Distribution):
    type_string = "constant"

    def __init__(self, value: float):
        self.value = value

    def sample(self, rng=None):
        return self.value

    @property
    def mean(self):
        return self.value

    @property
    def parameters(self):
        return {"value": self.value}


class ScipyDistribution(Distribution, ABC):
    def __init__(self, distribution, *args, **kwargs):
        self._distribution = distribution
        self.args = args
        self.kwargs = kwargs

    def sample(self, rng=None):
        # rvs on the distribution class rather than on a frozen distribution,
        # freezing on every draw is slow.
        return float(
            self._distribution.rvs(*self.args, random_state=rng, **self.kwargs)
        )

    @property
    def distribution(self):
        return self._distribution(*self.args, **self.kwargs)

    @property
    def mean(self):
        return float(self.distribution.mean())


class UniformDistribution(ScipyDistribution):
    type_string = "uniform"

    def __init__(self, min: float, max: float):
        if max < min:
            raise ValueError(f"Uniform bounds are reversed: [{min}, {max}]")
        super().__init__(uniform, loc=min, scale=max - min)
        self.min = min
        self.max = max

    @property
    def parameters(self):
        return {"min": self.min, "max": self.max}


class NormalDistribution(ScipyDistribution):
    type_string = "normal"

    def __init__(self, mean: float, std: float):
        super().__init__(norm, loc=mean, scale=std)
        self._mean = mean
        self.std = std

    @property
    def parameters(self):
        return {"mean": self._mean, "std": self.std}


class LognormalDistribution(ScipyDistribution):
    """
    Lognormal parameterised by the mean and standard deviation of the
    variable itself (not of its logarithm), shifted by loc.
    """

    type_string = "lognormal"

    def __init__(self, mean: float, std: float, loc: float = 0.0):
        if mean <= 0 or std <= 0:
            raise ValueError("Lognormal mean and std must be positive.")
        mu = log(mean ** 2 / sqrt(std ** 2 + mean ** 2))
        sigma = sqrt(log((std ** 2 + mean ** 2) / mean ** 2))
        super().__init__(lognorm, sigma, loc=loc, scale=exp(mu))
        self._mean = mean
        self.std = std
        self.loc = loc

    @property
    def parameters(self):
        return {"mean": self._mean, "std": self.std, "loc": self.loc}


class ExponentialDistribution(ScipyDistribution):
    type_string = "exponential"

    def __init__(self, scale: float, loc: float = 0.0):
        super().__init__(expon, loc=loc, scale=scale)
        self.scale = scale
        self.loc = loc

    @property
    def parameters(self):
        return {"scale": self.scale, "loc": self.loc}


class GammaDistribution(ScipyDistribution):
    type_string = "gamma"

    def __init__(self, shape: float, scale: float, loc: float = 0.0):
        super().__init__(gamma, shape, loc=loc, scale=scale)
        self.shape = shape
        self.scale = scale
        self.loc = loc

    @property
    def parameters(self):
        return {"shape": self.shape, "scale": self.scale, "loc": self.loc}


class WeibullDistribution(ScipyDistribution):
    type_string = "weibull"

    def __init__(self, shape: float, scale: float, loc: float = 0.0):
        super().__init__(weibull_min, shape, loc=loc, scale=scale)
        self.shape = shape
        self.scale = scale
        self.loc = loc

    @property
    def parameters(self):
        return {"shape": self.shape, "scale": self.scale, "loc": self.loc}


class BetaDistribution(ScipyDistribution):
    """
    Generalised beta on [min, max]. min = max = 0 stands for the standard
    [0, 1] support.
    """

    type_string = "beta"

    def __init__(self, a: float, b: float, min: float = 0.0, max: float = 0.0):
        if min == 0.0 and max == 0.0:
            loc, scale = 0.0, 1.0
        else:
            loc, scale = min, max - min
        super().__init__(beta, a, b, loc=loc, scale=scale)
        self.a = a
        self.b = b
        self.min = min
        self.max = max

    @property
    def parameters(self):
        return {"a": self.a, "b": self.b, "min": self.min, "max": self.max}


class TriangularDistribution(ScipyDistribution):
    type_string = "triangular"

    def __init__(self, min: float, mode: float, max: float):
        if not min <= mode <= max or min == max:
            raise ValueError(
                f"Triangular parameters must satisfy min <= mode <= max, "
                f"got ({min}, {mode}, {max})"
            )
        super().__init__(
            triang, (mode - min) / (max - min), loc=min, scale=max - min
        )
        self.min = min
        self.mode = mode
        self.max = max

    @property
    def parameters(self):
        return {"min": self.min, "mode": self.mode, "max": self.max}


class InverseNormalDistribution(ScipyDistribution):
    """
    Inverse Gaussian with mean and shape (lambda), shifted by loc.
    """

    type_string = "inverse_normal"

    def __init__(self, mean: float, shape: float, loc: float = 0.0):
        super().__init__(invgauss, mean / shape, loc=loc, scale=shape)
        self._mean = mean
        self.shape = shape
        self.loc = loc

    @property
    def parameters(self):
        return {"mean": self._mean, "shape": self.shape, "loc": self.loc}


class PoissonDistribution(ScipyDistribution):
    type_string = "poisson"

    def __init__(self, mu: float):
        super().__init__(poisson, mu)
        self.mu = mu

    @property
    def parameters(self):
        return {"mu": self.mu}


_distribution_types = {
    klass.type_string: klass
    for klass in (
        ConstantDistribution,
        UniformDistribution,
        NormalDistribution,
        LognormalDistribution,
        ExponentialDistribution,
        GammaDistribution,
        WeibullDistribution,
        BetaDistribution,
        TriangularDistribution,
        InverseNormalDistribution,
        PoissonDistribution,
    )
}


def parse_distribution(value) -> Distribution:
    """
    Accept a Distribution, a {type: ...} dict or a bare number (constant).
    """
    if isinstance(value, Distribution):
        return value
    if isinstance(value, dict):
        return Distribution.from_dict(value)
    return ConstantDistribution(value)
