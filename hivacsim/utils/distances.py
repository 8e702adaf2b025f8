import math

import numpy as np

earth_radius = 6378  # km


def cos_distance_threshold(distance: float, radius: float = earth_radius) -> float:
    """
    Two unit vectors p, q lie within a geodesic distance of each other on a
    sphere of the given radius when dot(p, q) >= this value.
    """
    return math.cos(distance / radius)


def within_distance(origin, destination, threshold: float) -> bool:
    return float(np.dot(origin, destination)) >= threshold


def spherical_cap(population_size: int, neighbours: int, radius: float) -> float:
    """
    Geodesic radius of the spherical cap that holds, on average, the given
    number of neighbours when population_size points cover the sphere
    uniformly.

    Parameters
    ----------
    population_size
        number of points spread over the sphere
    neighbours
        expected number of points inside the cap
    radius
        real world radius the unit sphere is scaled to

    Returns
    -------
    The cap radius measured along the surface, in the units of radius.
    """
    sphere_area = 4.0 * math.pi
    cap_area = sphere_area * neighbours / population_size
    return math.acos((2.0 * math.pi - cap_area) / (2.0 * math.pi)) * radius
