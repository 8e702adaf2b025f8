from typing import TYPE_CHECKING, Iterator, List, Optional

from .relation import PartnershipKind, Relation

if TYPE_CHECKING:
    from .person import Person


class _RelationshipList:
    """
    Insertion ordered set of relationships owned by one person, keyed by the
    id of the person at the other end.

    Every insertion and removal is mirrored on the other person's list of
    the same kind, so if A relates to B then B relates to A. A failed
    insertion (key already present) leaves both lists untouched.
    """

    __slots__ = ("owner", "_entries")

    def __init__(self, owner: "Person"):
        self.owner = owner
        self._entries = {}

    def _peer_list(self, person: "Person") -> "_RelationshipList":
        raise NotImplementedError

    def _make_entry(self, person: "Person", template):
        raise NotImplementedError

    @staticmethod
    def _person_of(entry) -> "Person":
        raise NotImplementedError

    def _insert(self, person: "Person", template) -> bool:
        if person is self.owner or person.id in self._entries:
            return False
        peer_list = self._peer_list(person)
        if self.owner.id in peer_list._entries:
            return False
        self._entries[person.id] = self._make_entry(person, template)
        peer_list._entries[self.owner.id] = peer_list._make_entry(
            self.owner, template
        )
        return True

    def remove(self, person: "Person") -> bool:
        """
        End the relationship with person on both sides. Returns False when
        there was none.
        """
        if self._entries.pop(person.id, None) is None:
            return False
        self._peer_list(person)._entries.pop(self.owner.id, None)
        return True

    def remove_at(self, index: int) -> bool:
        return self.remove(self._person_of(self[index]))

    def clear(self):
        for entry in self.to_list():
            self.remove(self._person_of(entry))

    def __contains__(self, person: "Person") -> bool:
        return person.id in self._entries

    def __len__(self):
        return len(self._entries)

    def __bool__(self):
        return bool(self._entries)

    def __iter__(self) -> Iterator:
        return iter(self._entries.values())

    def __getitem__(self, index: int):
        """
        Entry at a position in insertion order, walking from whichever end
        is closer.
        """
        count = len(self._entries)
        if index < 0:
            index += count
        if not 0 <= index < count:
            raise IndexError(f"Relationship index {index} out of range [0, {count})")
        if index < count // 2:
            for position, entry in enumerate(self._entries.values()):
                if position == index:
                    return entry
        position = count - 1
        for entry in reversed(self._entries.values()):
            if position == index:
                return entry
            position -= 1

    def get(self, person: "Person"):
        return self._entries.get(person.id)

    def index_of(self, person: "Person") -> int:
        for position, key in enumerate(self._entries):
            if key == person.id:
                return position
        return -1

    def to_list(self) -> List:
        return list(self._entries.values())

    def persons(self) -> List["Person"]:
        return [self._person_of(entry) for entry in self._entries.values()]

    def ids(self) -> List[int]:
        return list(self._entries)


class PartnerList(_RelationshipList):
    """
    Sexual partnerships of a person, each stored as a Relation.
    """

    __slots__ = ()

    def _peer_list(self, person):
        return person.partners

    def _make_entry(self, person, template: Relation):
        return Relation(person, template.kind, template.duration, -1)

    @staticmethod
    def _person_of(entry: Relation):
        return entry.person

    def add(self, relation: Relation) -> bool:
        """
        Add a partnership described by relation (its person is the partner)
        and the matching Relation on the partner's side.
        """
        return self._insert(relation.person, relation)

    def add_partner(
        self, person: "Person", kind: PartnershipKind, duration: int
    ) -> bool:
        return self.add(Relation(person, kind, duration))

    def first(self) -> Optional[Relation]:
        for entry in self._entries.values():
            return entry
        return None


class FriendList(_RelationshipList):
    __slots__ = ()

    def _peer_list(self, person):
        return person.friends

    def _make_entry(self, person, template):
        return person

    @staticmethod
    def _person_of(entry):
        return entry

    def add(self, person: "Person") -> bool:
        return self._insert(person, None)
