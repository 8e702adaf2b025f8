from .relation import PartnershipKind, Relation
from .containers import FriendList, PartnerList
from .person import MAX_INT, Gender, PartnershipState, Person, STDStatus
