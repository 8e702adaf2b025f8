"""
Small stochastic helpers shared by the simulation routines. Every draw uses
the numpy Generator passed in, never a module level state.
"""
from math import floor, sqrt

import numpy as np
from numba import jit

from hivacsim.exc import InvalidProbabilityError, SimulationError


def bernoulli(rng, probability: float) -> bool:
    """
    One Bernoulli trial with the given probability of success.
    """
    if not 0.0 <= probability <= 1.0:
        raise InvalidProbabilityError(
            f"Invalid Bernoulli probability {probability}, it must be in [0, 1]."
        )
    return rng.random() < probability


def uniform_index(rng, size: int, exclude: int = None) -> int:
    """
    Uniform integer in [0, size), redrawn while it equals exclude.
    """
    if exclude is not None and size < 2:
        raise SimulationError("Cannot exclude the only available index.")
    index = int(rng.integers(size))
    while index == exclude:
        index = int(rng.integers(size))
    return index


def gmean(x1: float, x2: float) -> float:
    if x1 < 0.0 or x2 < 0.0:
        raise SimulationError("GMean invalid parameters [x1 < 0.0 or x2 < 0.0].")
    return sqrt(x1 * x2)


def floor_mod(number: float, divisor: float) -> int:
    """
    n - d * floor(n / d), the result always has the sign of the divisor.
    """
    return int(number - divisor * floor(number / divisor))


@jit(nopython=True)
def infection_probability(probability: float, contacts: float) -> float:
    """
    Probability of at least one transmission over a number of independent
    contacts, 1 - (1 - p)^n.
    """
    return 1.0 - (1.0 - probability) ** contacts


@jit(nopython=True)
def choice_from_row(row, exclude, u):
    """
    Pick an index from a row of probabilities by accumulating them (skipping
    exclude) until u is reached. Returns -1 when the row sums below u.
    """
    cumulative = 0.0
    for idx in range(row.shape[0]):
        if idx == exclude:
            continue
        cumulative += row[idx]
        if u <= cumulative:
            return idx
    return -1


def sphere_point(rng) -> np.ndarray:
    """
    Uniform random point on the unit sphere (Marsaglia 1972).
    """
    while True:
        u = rng.uniform(-1.0, 1.0)
        v = rng.uniform(-1.0, 1.0)
        s = u * u + v * v
        if s <= 1.0:
            break
    a = 2.0 * sqrt(1.0 - s)
    return np.array([a * u, a * v, 2.0 * s - 1.0])
