import logging
from enum import IntEnum
from math import log, sqrt
from typing import List

import numpy as np

from hivacsim.demography import Gender, Person
from hivacsim.exc import check_probability
from hivacsim.ids import IdAllocator
from hivacsim.records import SWNInfo
from hivacsim.utils.distributions import parse_distribution
from hivacsim.utils.graph import (
    all_pairs_bfs,
    bfs_distance,
    closed_triads,
    floyd_warshall,
    floyd_warshall_packed,
    median,
    to_csr,
    vertex_means,
)
from hivacsim.utils.sampling import PairSampler, TriangularArray
from hivacsim.utils.stochastic import bernoulli, sphere_point

logger = logging.getLogger("group")


class Topology(IntEnum):
    FREE = 0
    CIRCLE = 1
    SPHERE = 2


def _divide(numerator, denominator) -> float:
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.float64(numerator) / np.float64(denominator))


class Group:
    """
    A population subgraph: its behavioural parameters, the person vertices
    once materialised and the small world analytics over the friendship
    graph between them.

    Parameters
    ----------
    name:
        label of the group
    size:
        number of vertices created by create_population
    topology:
        spatial structure used when searching for partners and friends
    alpha:
        decay of the willingness to make new friends with the number of
        friends already made
    beta:
        scales the number of search trials, max_trials = int(beta * ln(size))
    degrees:
        how many hops (1 to 3) the acquaintance search goes through
    radius, distance:
        sphere radius and search distance (same units) for sphere topology
    female, homosexual:
        probability of being female, probability of a male being homosexual
    max_concurrent, pr_concurrent:
        cap on simultaneous partners and probability of accepting another
        partner when already partnered
    pr_new_partner:
        probability of looking for a partner rather than a friend
    pr_casual:
        probability of a casual rather than a stable partnership
    pr_internal:
        probability of looking for casual partners inside the group first
    std_prevalence, std_test:
        initial prevalence and probability of having been tested
    """

    _probabilities = frozenset(
        {
            "female",
            "homosexual",
            "pr_concurrent",
            "pr_new_partner",
            "pr_casual",
            "pr_internal",
            "stb_safe_sex",
            "csl_safe_sex",
            "std_prevalence",
            "std_test",
        }
    )

    def __init__(
        self,
        name: str = "Group",
        size: int = 100,
        topology: Topology = Topology.SPHERE,
        alpha: float = 1.0,
        beta: float = 1.0,
        degrees: int = 3,
        radius: float = 6378.0,
        distance: float = 2500.0,
        female: float = 0.5,
        homosexual: float = 0.0,
        age=20,
        life_expectancy=70,
        max_concurrent: int = 5,
        pr_concurrent: float = 0.0,
        pr_new_partner: float = 0.5,
        pr_casual: float = 0.5,
        pr_internal: float = 0.5,
        stb_duration=12,
        stb_transitory=1,
        stb_contacts=10,
        stb_safe_sex: float = 0.0,
        csl_duration=1,
        csl_contacts=1,
        csl_safe_sex: float = 0.0,
        std_prevalence: float = 0.0,
        std_age=0,
        std_test: float = 0.0,
        ids: IdAllocator = None,
    ):
        self.ids = ids if ids is not None else IdAllocator()
        self.id = self.ids.next_id("group")
        self.name = name
        self.size = int(size)
        self.topology = Topology(topology)
        self.alpha = alpha
        self.beta = beta
        self.degrees = degrees
        self.radius = radius
        self.distance = distance
        self.female = female
        self.homosexual = homosexual
        self.age = parse_distribution(age)
        self.life_expectancy = parse_distribution(life_expectancy)
        self.max_concurrent = max_concurrent
        self.pr_concurrent = pr_concurrent
        self.pr_new_partner = pr_new_partner
        self.pr_casual = pr_casual
        self.pr_internal = pr_internal
        self.stb_duration = parse_distribution(stb_duration)
        self.stb_transitory = parse_distribution(stb_transitory)
        self.stb_contacts = parse_distribution(stb_contacts)
        self.stb_safe_sex = stb_safe_sex
        self.csl_duration = parse_distribution(csl_duration)
        self.csl_contacts = parse_distribution(csl_contacts)
        self.csl_safe_sex = csl_safe_sex
        self.std_prevalence = std_prevalence
        self.std_age = parse_distribution(std_age)
        self.std_test = std_test
        self.initial_prevalence = self.std_prevalence
        self.initial_max_concurrent = self.max_concurrent
        self.initial_pr_concurrent = self.pr_concurrent
        self.warmed_up = False
        self.people: List[Person] = []

    def __setattr__(self, name, value):
        if name in self._probabilities:
            value = check_probability(value, name)
        elif name == "degrees" and value not in (1, 2, 3):
            raise ValueError(f"Invalid degrees of separation {value}, use 1, 2 or 3.")
        object.__setattr__(self, name, value)

    @classmethod
    def from_dict(cls, config: dict, ids: IdAllocator = None) -> "Group":
        config = dict(config)
        if isinstance(config.get("topology"), str):
            config["topology"] = Topology[config["topology"].upper()]
        return cls(ids=ids, **config)

    def __repr__(self):
        return f"Group(id={self.id}, name={self.name!r}, size={self.size})"

    @property
    def male(self) -> float:
        return 1.0 - self.female

    @property
    def max_trials(self) -> int:
        return int(self.beta * log(self.size)) if self.size > 0 else 0

    @property
    def is_populated(self) -> bool:
        return len(self.people) > 0

    def __len__(self):
        return len(self.people)

    def __iter__(self):
        return iter(self.people)

    def __getitem__(self, index: int) -> Person:
        if not 0 <= index < len(self.people):
            raise IndexError(
                f"Vertex index {index} out of range for group {self.name} "
                f"of size {len(self.people)}"
            )
        return self.people[index]

    def __setitem__(self, index: int, person: Person):
        if not 0 <= index < len(self.people):
            raise IndexError(
                f"Vertex index {index} out of range for group {self.name} "
                f"of size {len(self.people)}"
            )
        self.people[index] = person

    def create_person(self, disease, rng, set_std: bool = True) -> Person:
        """
        Sample a new person of this group. With set_std the person is
        infected with probability std_prevalence, with an infection age drawn
        from std_age.
        """
        person = Person(
            id=self.ids.next_id("person"),
            group=self,
            age=int(self.age.sample(rng)),
            life_expectancy=int(self.life_expectancy.sample(rng)),
        )
        if bernoulli(rng, self.female):
            person.gender = Gender.FEMALE
        else:
            person.gender = Gender.MALE
            person.homosexual = bernoulli(rng, self.homosexual)
        if set_std and bernoulli(rng, self.std_prevalence):
            person.infect(rng, disease, std_age=int(self.std_age.sample(rng)))
        person.std_test = bernoulli(rng, self.std_test)
        if self.topology == Topology.SPHERE:
            person.location = sphere_point(rng)
        return person

    def create_population(self, disease, rng, set_std: bool = True):
        self.clear_population()
        self.people = [
            self.create_person(disease, rng, set_std) for _ in range(self.size)
        ]
        logger.debug(f"Created {self.size} people in group {self.name}")

    def clear_population(self):
        for person in self.people:
            person.say_goodbye()
        self.people = []

    def prevalence(self) -> float:
        if not self.people:
            return 0.0
        infected = sum(1 for person in self.people if person.is_infected)
        return infected / len(self.people)

    # Network analytics over the friendship graph.

    def friendship_csr(self):
        position = {person.id: idx for idx, person in enumerate(self.people)}
        neighbours = [
            [position[pid] for pid in person.friends.ids() if pid in position]
            for person in self.people
        ]
        return to_csr(neighbours)

    def adjacency_matrix(self) -> np.ndarray:
        n = len(self.people)
        indptr, indices = self.friendship_csr()
        matrix = np.zeros((n, n), dtype=np.int8)
        rows = np.repeat(np.arange(n), np.diff(indptr))
        matrix[rows, indices] = 1
        return matrix

    def _packed_distances(self, indptr, indices, inf) -> TriangularArray:
        n = len(self.people)
        matrix = TriangularArray(n, fill=inf)
        rows = np.repeat(np.arange(n), np.diff(indptr))
        lower = rows > indices
        matrix.data[rows[lower] * (rows[lower] - 1) // 2 + indices[lower]] = 1
        return matrix

    def shortest_paths(self, algorithm: str = "floyd") -> np.ndarray:
        """
        Full matrix of shortest path lengths, unreachable pairs hold the
        number of vertices.

        Parameters
        ----------
        algorithm:
            "floyd" (packed triangular matrix), "floyd_full" or "bfs"
        """
        n = len(self.people)
        inf = n
        indptr, indices = self.friendship_csr()
        if algorithm == "bfs":
            return all_pairs_bfs(indptr, indices, inf)
        if algorithm == "floyd_full":
            dist = np.full((n, n), inf, dtype=np.int64)
            rows = np.repeat(np.arange(n), np.diff(indptr))
            dist[rows, indices] = 1
            np.fill_diagonal(dist, 0)
            return floyd_warshall(dist, inf)
        if algorithm == "floyd":
            matrix = self._packed_distances(indptr, indices, inf)
            floyd_warshall_packed(matrix.data, n, inf)
            return matrix.to_dense()
        raise ValueError(f"Unknown shortest path algorithm {algorithm}")

    def path_length_floyd(self, full: bool = False) -> float:
        """
        Characteristic path length: median over vertices of the mean
        distance to every vertex (itself included).
        """
        algorithm = "floyd_full" if full else "floyd"
        return median(vertex_means(self.shortest_paths(algorithm)))

    def path_length_bfs(self) -> float:
        return median(vertex_means(self.shortest_paths("bfs")))

    def path_length_sample(self, data: np.ndarray, column: int, size: int, rng):
        """
        Fill data[:size, column] with the inverse shortest path length of
        size random pairs of vertices (0 for unreachable pairs).
        """
        n = len(self.people)
        inf = n
        indptr, indices = self.friendship_csr()
        for row, pair in enumerate(PairSampler(n, size, rng)):
            d = bfs_distance(indptr, indices, pair.source, pair.target, inf)
            data[row, column] = 1.0 / d if d < inf else 0.0
        return data

    def clustering(self) -> float:
        """
        Mean over all vertices of the fraction of pairs of friends that are
        friends themselves. Vertices with fewer than two friends count as 0.
        """
        n = len(self.people)
        if n == 0:
            return 0.0
        indptr, indices = self.friendship_csr()
        k = np.diff(indptr)
        closed = closed_triads(indptr, indices)
        mask = k > 1
        possible = k[mask] * (k[mask] - 1) / 2.0
        return float((closed[mask] / possible).sum() / n)

    def swn_properties(
        self,
        algorithm_threshold: float,
        exact: bool = True,
        sample_size: int = 0,
        rng=None,
    ) -> SWNInfo:
        """
        Small world network properties of the friendship graph.

        With exact=True every pair of vertices is measured, by breadth first
        search when pr_casual >= algorithm_threshold and by Floyd-Warshall
        otherwise (both give the same distances). With exact=False the path
        based measures are estimated from sample_size random pairs.

        Returns
        -------
        SWNInfo with path length and diameter set to inf when some pair of
        vertices is not connected.
        """
        n = len(self.people)
        max_pairs = n * (n - 1) // 2
        inf = n
        indptr, indices = self.friendship_csr()
        degree = np.diff(indptr)
        sdegree = float(degree.sum())
        info = SWNInfo(vertices=n, connected=True)

        if exact:
            if self.pr_casual >= algorithm_threshold:
                logger.debug(f"Group {self.name}: exact path length by BFS")
                dist = all_pairs_bfs(indptr, indices, inf)
                rows, cols = np.triu_indices(n, k=1)
                pair_distances = dist[rows, cols]
            else:
                logger.debug(f"Group {self.name}: exact path length by Floyd-Warshall")
                matrix = self._packed_distances(indptr, indices, inf)
                floyd_warshall_packed(matrix.data, n, inf)
                pair_distances = matrix.data
            samples = max_pairs
        else:
            logger.debug(
                f"Group {self.name}: path length estimated from {sample_size} pairs"
            )
            pair_distances = np.array(
                [
                    bfs_distance(indptr, indices, pair.source, pair.target, inf)
                    for pair in PairSampler(n, sample_size, rng)
                ],
                dtype=np.int64,
            )
            samples = sample_size

        reachable = pair_distances < inf
        info.connected = bool(reachable.all())
        inverse = np.zeros(pair_distances.shape[0])
        inverse[reachable] = 1.0 / pair_distances[reachable]
        sumd = float(pair_distances[reachable].sum())
        sumdi = float(inverse.sum())
        diameter = float(pair_distances.max()) if pair_distances.size else 0.0

        if info.connected:
            info.path_length = _divide(sumd, samples)
            info.diameter = diameter
        else:
            info.path_length = float("inf")
            info.diameter = float("inf")
        info.g_connectivity = _divide(samples, sumdi)
        info.g_efficiency = _divide(sumdi, samples)
        if exact:
            if inverse.size > 1:
                info.g_v_efficiency = float(inverse.var(ddof=1))
                info.g_s_efficiency = sqrt(info.g_v_efficiency) / sqrt(inverse.size)
            else:
                info.g_v_efficiency = 0.0
                info.g_s_efficiency = 0.0

        edges = sdegree / 2.0
        info.degree = _divide(sdegree, n)
        info.edges = edges
        info.cost = _divide(edges, max_pairs)
        info.l_regular = _divide(n, 2.0 * edges)
        info.c_regular = _divide(3.0 * (edges - 2.0), 4.0 * (edges - 1.0))
        with np.errstate(divide="ignore", invalid="ignore"):
            info.l_random = _divide(np.log(np.float64(n)), np.log(np.float64(edges)))
        info.c_random = _divide(edges, max_pairs)

        closed = closed_triads(indptr, indices).astype(np.float64)
        mask = degree > 1
        possible = degree[mask] * (degree[mask] - 1) / 2.0
        ratio = closed[mask] / possible
        nonzero = closed[mask] > 0
        info.clustering = _divide(ratio.sum(), n)
        info.l_connectivity = _divide((possible[nonzero] / closed[mask][nonzero]).sum(), n)
        info.l_efficiency = _divide(ratio.sum(), n)
        return info
