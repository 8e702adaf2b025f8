from collections import defaultdict
from itertools import count


class IdAllocator:
    """
    Hands out identifiers per kind of entity ("person", "group", "vaccine",
    "strategy"). Each kind has its own counter starting at 0. An allocator
    belongs to one scenario, so separate scenarios (and separate tests) never
    share counters.
    """

    __slots__ = ("_generators",)

    def __init__(self):
        self._generators = defaultdict(count)

    def next_id(self, kind: str) -> int:
        return next(self._generators[kind])

    def reset(self, kind: str = None):
        """
        Restart the counter of one kind, or of every kind when none is given.
        """
        if kind is None:
            self._generators.clear()
        else:
            self._generators.pop(kind, None)
