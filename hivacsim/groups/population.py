from typing import Iterator, List

import numpy as np

from .group import Group


class Population:
    """
    An ordered collection of groups and the mixing matrix between them.

    mixing[i, j] is the probability that a person of group i looking for an
    external casual partner picks group j. The diagonal is always 0 and every
    row sums either to 0 (no external mixing) or to 1. Adding or removing a
    group keeps the matrix square and aligned with the groups.
    """

    def __init__(self, groups: List[Group] = None, mixing: np.ndarray = None):
        self.groups: List[Group] = []
        self.mixing = np.zeros((0, 0))
        for group in groups or []:
            self.add_group(group)
        if mixing is not None:
            self.mixing = np.array(mixing, dtype=np.float64)

    def __iter__(self) -> Iterator[Group]:
        return iter(self.groups)

    def __len__(self):
        return len(self.groups)

    def __getitem__(self, index: int) -> Group:
        return self.groups[index]

    @property
    def size(self) -> int:
        return sum(group.size for group in self.groups)

    @property
    def people(self):
        for group in self.groups:
            yield from group.people

    def add_group(self, group: Group) -> int:
        n = len(self.groups)
        mixing = np.zeros((n + 1, n + 1))
        mixing[:n, :n] = self.mixing
        self.mixing = mixing
        self.groups.append(group)
        return n

    def remove_group(self, group) -> None:
        index = group if isinstance(group, int) else self.index_of(group)
        if not 0 <= index < len(self.groups):
            raise IndexError(f"Group index {index} out of range")
        del self.groups[index]
        self.mixing = np.delete(np.delete(self.mixing, index, axis=0), index, axis=1)

    def index_of(self, group: Group) -> int:
        for index, candidate in enumerate(self.groups):
            if candidate is group:
                return index
        return -1

    def clear(self):
        self.groups = []
        self.mixing = np.zeros((0, 0))

    def create_population(self, disease, rng, set_std: bool = True):
        for group in self.groups:
            group.create_population(disease, rng, set_std)

    def clear_population(self):
        for group in self.groups:
            group.clear_population()

    def save_prevalence(self):
        for group in self.groups:
            group.initial_prevalence = group.std_prevalence

    def restore_prevalence(self):
        for group in self.groups:
            group.std_prevalence = group.initial_prevalence

    def save_concurrency(self, max_concurrent: int, pr_concurrent: float):
        """
        Remember the concurrency settings of every group and raise them to
        at least the given values (used during the warm-up).
        """
        for group in self.groups:
            group.initial_max_concurrent = group.max_concurrent
            group.initial_pr_concurrent = group.pr_concurrent
            if group.max_concurrent < max_concurrent:
                group.max_concurrent = max_concurrent
            if group.pr_concurrent < pr_concurrent:
                group.pr_concurrent = pr_concurrent

    def restore_concurrency(self):
        for group in self.groups:
            group.max_concurrent = group.initial_max_concurrent
            group.pr_concurrent = group.initial_pr_concurrent

    def mixing_problems(self) -> List[str]:
        """
        Messages describing every invalid cell and row of the mixing matrix.
        """
        n = len(self.groups)
        if self.mixing.shape != (n, n):
            return [f"Adj. Matrix invalid shape {self.mixing.shape} for {n} groups."]
        problems = []
        for row in range(n):
            for col in range(n):
                value = self.mixing[row, col]
                if row == col:
                    if value != 0.0:
                        problems.append(
                            f"Adj. Matrix invalid diagonal at [{row},{col}] = {value}"
                        )
                elif value < 0.0 or value > 1.0:
                    problems.append(
                        f"Adj. Matrix invalid value at [{row},{col}] = {value}"
                    )
            total = self.mixing[row].sum() - self.mixing[row, row]
            if not (np.isclose(total, 0.0) or np.isclose(total, 1.0)):
                problems.append(f"Adj. Matrix invalid sum at row [{row}] = {total}")
        return problems
