"""Barn allocation planning.

Everything here is pure: the planners read a :class:`BarnOccupancy` snapshot
of one color and return a plan describing which barn to join or create, which
animals to move and which barn to tear down. Applying a plan (persisting
assignments, creating and deleting barns) is the allocator's job.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from .constants import BARN_CAPACITY
from .entities import Animal, Color
from .exceptions import CapacityInvariantViolation


@dataclass(frozen=True)
class BarnGroup:
    """The animals currently assigned to one barn, in encounter order."""

    barn_id: int
    members: tuple[int, ...]

    @property
    def size(self) -> int:
        return len(self.members)


class BarnOccupancy:
    """Per-barn membership index for a single color.

    Built once from the animals of a color and then kept current through
    :meth:`assign` and :meth:`unassign`, so cascading steps of an operation
    never need to reload the color.
    """

    def __init__(self, color: Color, capacity: int = BARN_CAPACITY):
        self.color = color
        self.capacity = capacity
        # barn id -> animal ids; dict order is the barns' encounter order
        self._members: dict[int, list[int]] = {}

    @classmethod
    def from_animals(
        cls, color: Color, animals: Iterable[Animal], capacity: int = BARN_CAPACITY
    ) -> "BarnOccupancy":
        occupancy = cls(color, capacity)
        for animal in sorted(
            (a for a in animals if a.favorite_color == color and a.id is not None),
            key=lambda a: a.id or 0,
        ):
            if animal.barn_id is not None and animal.id is not None:
                occupancy.assign(animal.id, animal.barn_id)
        return occupancy

    def __len__(self) -> int:
        return len(self._members)

    def __contains__(self, barn_id: object) -> bool:
        return barn_id in self._members

    @property
    def total(self) -> int:
        """Number of assigned animals of this color."""
        return sum(len(members) for members in self._members.values())

    @property
    def barn_ids(self) -> list[int]:
        return list(self._members)

    def size(self, barn_id: int) -> int:
        return len(self._members.get(barn_id, ()))

    def members(self, barn_id: int) -> tuple[int, ...]:
        return tuple(self._members.get(barn_id, ()))

    def assign(self, animal_id: int, barn_id: int) -> None:
        self._members.setdefault(barn_id, []).append(animal_id)

    def unassign(self, animal_id: int, barn_id: int) -> None:
        members = self._members.get(barn_id)
        if members is None or animal_id not in members:
            return
        members.remove(animal_id)
        if not members:
            del self._members[barn_id]

    def move(self, animal_id: int, source_barn_id: int, target_barn_id: int) -> None:
        self.unassign(animal_id, source_barn_id)
        self.assign(animal_id, target_barn_id)

    def drop_barn(self, barn_id: int) -> tuple[int, ...]:
        """Forget a barn and return the animals it held."""
        return tuple(self._members.pop(barn_id, ()))

    def groups(self) -> list[BarnGroup]:
        """Groups sorted ascending by size; ties keep encounter order."""
        return sorted(
            (
                BarnGroup(barn_id, tuple(members))
                for barn_id, members in self._members.items()
            ),
            key=lambda group: group.size,
        )

    def check_capacity(self) -> None:
        for barn_id, members in self._members.items():
            if len(members) > self.capacity:
                raise CapacityInvariantViolation(barn_id, len(members), self.capacity)


@dataclass(frozen=True)
class JoinBarn:
    """Put the new animal into an existing barn."""

    barn_id: int


@dataclass(frozen=True)
class CreateBarn:
    """Build a new barn for the new animal.

    ``moved_animal_ids`` are existing animals that follow it into the new barn
    so that the color ends up evenly spread.
    """

    ordinal: int
    moved_animal_ids: tuple[int, ...] = ()


InsertPlan = JoinBarn | CreateBarn


@dataclass(frozen=True)
class Move:
    animal_id: int
    source_barn_id: int
    target_barn_id: int


@dataclass(frozen=True)
class ReorganizePlan:
    """What a removal does to the surviving barns of a color."""

    skew_move: Move | None = None
    eliminated_barn_id: int | None = None
    evicted_animal_ids: tuple[int, ...] = ()

    @property
    def is_noop(self) -> bool:
        return self.skew_move is None and self.eliminated_barn_id is None


def plan_insert(occupancy: BarnOccupancy) -> InsertPlan:
    """Decide where one more animal of ``occupancy.color`` goes.

    No barn yet: create the first one. Every barn full: create another and
    redistribute. Otherwise join the smallest barn.
    """
    groups = occupancy.groups()
    if not groups:
        return CreateBarn(ordinal=0)

    smallest = groups[0]
    if smallest.size >= occupancy.capacity:
        return CreateBarn(
            ordinal=len(groups),
            moved_animal_ids=plan_redistribution(groups),
        )

    return JoinBarn(smallest.barn_id)


def plan_redistribution(groups: list[BarnGroup]) -> tuple[int, ...]:
    """Pick the animals that move into a freshly created barn.

    The new barn receives the inserted animal plus the surplus of every
    existing group. With ``total`` animals (the inserted one included) over
    ``len(groups) + 1`` barns, the first ``total % barns`` groups keep one
    extra animal, so all sizes end up within one of each other and the new
    barn ends with exactly ``total // barns``.
    """
    total = sum(group.size for group in groups) + 1
    fair_share, remainder = divmod(total, len(groups) + 1)

    moved: list[int] = []
    for index, group in enumerate(groups):
        keep = fair_share + (1 if index < remainder else 0)
        moved.extend(group.members[keep:])
    return tuple(moved)


def plan_reorganize(occupancy: BarnOccupancy) -> ReorganizePlan:
    """Plan the reorganization that follows a removal.

    Step one nudges skew: when the smallest barn trails the largest by more
    than one, the largest barn's last animal moves over. Step two tears down
    the smallest barn when the remaining animals split evenly over the other
    barns within capacity; its animals go back through the insert path.
    """
    groups = occupancy.groups()
    if len(groups) < 2:
        return ReorganizePlan()

    total = sum(group.size for group in groups)
    per_barn, remainder = divmod(total, len(groups) - 1)

    smallest, largest = groups[0], groups[-1]
    smallest_members = list(smallest.members)

    skew_move = None
    if smallest.size + 1 < largest.size:
        skew_move = Move(largest.members[-1], largest.barn_id, smallest.barn_id)
        smallest_members.append(skew_move.animal_id)

    if per_barn <= occupancy.capacity and remainder == 0:
        return ReorganizePlan(
            skew_move=skew_move,
            eliminated_barn_id=smallest.barn_id,
            evicted_animal_ids=tuple(smallest_members),
        )

    return ReorganizePlan(skew_move=skew_move)
