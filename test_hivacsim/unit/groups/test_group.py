import numpy as np
import pytest

from hivacsim.demography import Gender, Person
from hivacsim.exc import InvalidProbabilityError
from hivacsim.groups import Group, Topology


def make_network(edges, n, **kwargs):
    group = Group(name="Network", size=n, **kwargs)
    group.people = [Person(id=idx, group=group) for idx in range(n)]
    for a, b in edges:
        group[a].add_friend(group[b])
    return group


@pytest.fixture(name="cycle")
def make_cycle():
    return make_network([(0, 1), (1, 2), (2, 3), (3, 0)], 4, pr_casual=0.5)


class TestParameters:
    @pytest.mark.parametrize(
        "name", ["female", "pr_casual", "csl_safe_sex", "std_prevalence"]
    )
    def test__probabilities_are_checked(self, name):
        group = Group()
        with pytest.raises(InvalidProbabilityError):
            setattr(group, name, 1.5)
        with pytest.raises(InvalidProbabilityError):
            Group(**{name: -0.1})

    def test__degrees_of_separation(self):
        with pytest.raises(ValueError):
            Group(degrees=4)
        assert Group(degrees=1).degrees == 1

    def test__derived_values(self):
        group = Group(size=100, beta=2.0, female=0.3)
        assert group.max_trials == int(2.0 * np.log(100))
        assert group.male == pytest.approx(0.7)

    def test__from_dict(self, ids):
        group = Group.from_dict(
            {"name": "Config", "size": 10, "topology": "circle", "age": {"type": "constant", "value": 30}},
            ids=ids,
        )
        assert group.topology == Topology.CIRCLE
        assert group.age.sample() == 30
        assert Group(ids=ids).id == group.id + 1

    def test__vertex_access(self, cycle):
        assert cycle[2].id == 2
        with pytest.raises(IndexError):
            cycle[4]
        with pytest.raises(IndexError):
            cycle[-1] = Person(id=9)


class TestPopulation:
    def test__create_population(self, rng, disease):
        group = Group(size=200, female=0.5, homosexual=1.0, age=25, topology=Topology.SPHERE)
        group.create_population(disease, rng)
        assert len(group) == 200
        assert group.is_populated
        assert len({person.id for person in group}) == 200
        for person in group:
            assert person.age == 25
            assert person.group is group
            assert np.linalg.norm(person.location) == pytest.approx(1.0)
            assert person.homosexual == (person.gender == Gender.MALE)

    def test__initial_infection(self, rng, disease):
        group = Group(size=500, topology=Topology.FREE, std_prevalence=0.2, std_age=3)
        group.create_population(disease, rng, set_std=True)
        assert group.prevalence() == pytest.approx(0.2, abs=0.05)
        assert all(person.std_age == 3 for person in group if person.is_infected)
        group.create_population(disease, rng, set_std=False)
        assert group.prevalence() == 0.0

    def test__clear_population(self, rng, disease):
        group = Group(size=10, topology=Topology.FREE)
        group.create_population(disease, rng)
        group[0].add_friend(group[1])
        friend = group[1]
        group.clear_population()
        assert len(group) == 0
        assert friend.friends_count == 0
        assert group.prevalence() == 0.0


class TestNetwork:
    def test__adjacency(self, cycle):
        matrix = cycle.adjacency_matrix()
        assert matrix.dtype == np.int8
        assert np.array_equal(matrix, matrix.T)
        assert matrix.sum() == 8

    @pytest.mark.parametrize("algorithm", ["floyd", "floyd_full", "bfs"])
    def test__shortest_paths(self, cycle, algorithm):
        dist = cycle.shortest_paths(algorithm)
        assert dist[0, 2] == 2
        assert dist[0, 3] == 1
        assert np.all(np.diag(dist) == 0)

    def test__unknown_algorithm(self, cycle):
        with pytest.raises(ValueError):
            cycle.shortest_paths("dijkstra")

    def test__path_length_medians(self, cycle):
        assert cycle.path_length_floyd() == pytest.approx(1.0)
        assert cycle.path_length_floyd(full=True) == pytest.approx(1.0)
        assert cycle.path_length_bfs() == pytest.approx(1.0)

    @pytest.mark.parametrize("threshold", [0.0, 1.0])
    def test__small_world_properties(self, cycle, threshold):
        info = cycle.swn_properties(threshold)
        assert info.connected
        assert info.vertices == 4
        assert info.edges == 4
        assert info.degree == pytest.approx(2.0)
        assert info.path_length == pytest.approx(4.0 / 3.0)
        assert info.diameter == 2
        assert info.g_efficiency == pytest.approx(5.0 / 6.0)
        assert info.g_connectivity == pytest.approx(6.0 / 5.0)
        assert info.cost == pytest.approx(4.0 / 6.0)
        assert info.clustering == 0.0

    def test__triangle_clustering(self):
        triangle = make_network([(0, 1), (1, 2), (2, 0)], 3)
        assert triangle.clustering() == pytest.approx(1.0)
        assert triangle.swn_properties(0.5).clustering == pytest.approx(1.0)

    def test__disconnected(self):
        group = make_network([(0, 1), (2, 3)], 4)
        info = group.swn_properties(0.0)
        assert not info.connected
        assert info.path_length == float("inf")
        assert info.diameter == float("inf")
        assert info.g_efficiency == pytest.approx(2.0 / 6.0)

    def test__sampled_path_length(self, rng):
        n = 40
        ring = make_network([(idx, (idx + 1) % n) for idx in range(n)], n)
        info = ring.swn_properties(0.0, exact=False, sample_size=100, rng=rng)
        assert info.connected
        assert 1.0 <= info.path_length <= n / 2
        data = np.zeros((100, 1))
        ring.path_length_sample(data, 0, 100, rng)
        assert np.all((data > 0) & (data <= 1))
