"""Application layer - barn allocation use cases.

``FarmAllocator`` decides which barn an animal joins, when barns are built or
torn down, and which animals move to keep the barns of a color evenly filled.
Planning is delegated to the pure functions in ``domain.allocation``; this
module applies the plans through the repositories, one unit of work and one
set of color locks per public operation.
"""

from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from functools import partial
from typing import Final

from sqlmodel import Session

from ..config import settings
from ..domain.allocation import (
    BarnOccupancy,
    CreateBarn,
    JoinBarn,
    plan_insert,
    plan_reorganize,
)
from ..domain.entities import Animal, Barn, Color, barn_name
from ..infrastructure.database.database import unit_of_work
from ..infrastructure.database.repositories import AnimalRepository, BarnRepository
from ..logging_config import get_logger
from ..metrics import (
    record_animal_added,
    record_animal_removed,
    record_animals_moved,
    record_barn_created,
    record_barn_destroyed,
)
from .locks import ColorLocks, color_locks

logger: Final = get_logger(__name__)


@dataclass(frozen=True)
class BarnSummary:
    barn: Barn
    size: int


class FarmAllocator:
    """Places animals into barns and keeps barns of a color balanced."""

    def __init__(
        self,
        session: Session,
        capacity: int | None = None,
        locks: ColorLocks | None = None,
    ):
        self.session = session
        self.animal_repo = AnimalRepository(session)
        self.barn_repo = BarnRepository(session)
        self.capacity = capacity or settings.barn_capacity
        self.locks = locks or color_locks
        # metric updates of the running operation, applied once it commits
        self._pending_metrics: list[Callable[[], None]] = []

    # Queries

    def find_all(self) -> list[Animal]:
        return self.animal_repo.find_all()

    def find_barns(self) -> list[BarnSummary]:
        """Every barn with its current number of animals."""
        sizes = self.barn_repo.count_members()
        return [
            BarnSummary(barn=barn, size=sizes.get(_id(barn), 0))
            for barn in self.barn_repo.find_all()
        ]

    # Insert path

    def add_animal(self, animal: Animal) -> Animal:
        """Place one new animal into a barn of its color."""
        return self.add_animals([animal])[0]

    def add_animals(self, animals: Iterable[Animal]) -> list[Animal]:
        """Place animals one after another, in input order.

        Each placement sees the effect of the previous ones. The batch is a
        single transaction: if any placement fails, none is kept.
        """
        animals = list(animals)
        colors = {animal.favorite_color for animal in animals}

        with self._transaction(colors, "add_animals"):
            occupancies = {color: self._load(color) for color in colors}
            for animal in animals:
                self._place(animal, occupancies[animal.favorite_color])
            self._check_capacity(occupancies.values())

        for animal in animals:
            record_animal_added(animal.favorite_color.value)
        return animals

    def _place(self, animal: Animal, occupancy: BarnOccupancy) -> None:
        match plan_insert(occupancy):
            case JoinBarn(barn_id=barn_id):
                animal.assign_to(barn_id)
                self.animal_repo.save(animal)
                occupancy.assign(_id(animal), barn_id)
                logger.debug(
                    "Animal joined barn",
                    animal_name=animal.name,
                    barn_id=barn_id,
                    barn_size=occupancy.size(barn_id),
                )

            case CreateBarn(ordinal=ordinal, moved_animal_ids=moved_ids):
                barn = self._create_barn(occupancy.color, ordinal)
                barn_id = _id(barn)
                animal.assign_to(barn_id)
                self.animal_repo.save(animal)
                occupancy.assign(_id(animal), barn_id)

                if moved_ids:
                    self._move_into(moved_ids, barn_id, occupancy)
                    logger.info(
                        "Animals redistributed into new barn",
                        barn_name=barn.name,
                        moved=len(moved_ids),
                        barns=len(occupancy),
                        total=occupancy.total,
                    )
                    self._defer_metric(
                        record_animals_moved,
                        occupancy.color.value,
                        len(moved_ids),
                        "redistribution",
                    )

    def _move_into(
        self, animal_ids: Iterable[int], barn_id: int, occupancy: BarnOccupancy
    ) -> None:
        """Reassign animals to one barn and persist them as a single batch."""
        moved: list[Animal] = []
        for animal_id in animal_ids:
            animal = self.animal_repo.get_by_id(animal_id)
            source_barn_id = animal.barn_id
            animal.assign_to(barn_id)
            moved.append(animal)
            if source_barn_id is None:
                occupancy.assign(animal_id, barn_id)
            else:
                occupancy.move(animal_id, source_barn_id, barn_id)
        self.animal_repo.save_all(moved)

    def _create_barn(self, color: Color, ordinal: int) -> Barn:
        taken = {barn.name for barn in self.barn_repo.find_by_color(color)}
        while barn_name(color, ordinal) in taken:
            ordinal += 1

        barn = self.barn_repo.save(
            Barn(
                id=None,
                name=barn_name(color, ordinal),
                color=color,
                capacity=self.capacity,
            )
        )
        logger.info("Barn created", barn_name=barn.name, barn_id=barn.id)
        self._defer_metric(record_barn_created, color.value)
        return barn

    # Remove path

    def remove_animal(self, animal_id: int) -> Animal:
        """Remove one animal by id and reorganize the barns of its color."""
        return self.remove_animals([animal_id])[0]

    def remove_animals(self, animal_ids: Iterable[int]) -> list[Animal]:
        """Remove animals by id, one after another, in input order.

        Each id is resolved to the stored animal right before it is removed,
        so callers may pass ids taken from stale copies. An id listed twice is
        removed once. An unknown id raises ``AnimalNotFoundError`` and rolls
        the whole batch back.
        """
        ids = list(dict.fromkeys(animal_ids))
        colors = {
            self.animal_repo.get_by_id(animal_id).favorite_color for animal_id in ids
        }

        removed: list[Animal] = []
        with self._transaction(colors, "remove_animals"):
            occupancies: dict[Color, BarnOccupancy] = {}
            for animal_id in ids:
                animal = self.animal_repo.get_by_id(animal_id)
                occupancy = occupancies.get(animal.favorite_color)
                if occupancy is None:
                    occupancy = occupancies[animal.favorite_color] = self._load(
                        animal.favorite_color
                    )
                self._remove(animal, occupancy)
                removed.append(animal)
            self._check_capacity(occupancies.values())

        for animal in removed:
            record_animal_removed(animal.favorite_color.value)
        return removed

    def _remove(self, animal: Animal, occupancy: BarnOccupancy) -> None:
        self.animal_repo.delete(animal)

        barn_id = animal.barn_id
        if barn_id is not None:
            occupancy.unassign(_id(animal), barn_id)
            if barn_id not in occupancy:
                self._destroy_barn(barn_id, reason="empty")

        logger.debug(
            "Animal removed",
            animal_id=animal.id,
            color=animal.favorite_color.value,
            barns=len(occupancy),
        )

        # a single barn, or none, needs no reorganization
        if len(occupancy) > 1:
            self._reorganize(occupancy)

    def _reorganize(self, occupancy: BarnOccupancy) -> None:
        plan = plan_reorganize(occupancy)
        if plan.is_noop:
            return

        color = occupancy.color.value
        if plan.skew_move is not None:
            move = plan.skew_move
            self._move_into([move.animal_id], move.target_barn_id, occupancy)
            logger.info(
                "Skew corrected",
                animal_id=move.animal_id,
                source_barn_id=move.source_barn_id,
                target_barn_id=move.target_barn_id,
            )
            self._defer_metric(record_animals_moved, color, 1, "skew")

        if plan.eliminated_barn_id is not None:
            occupancy.drop_barn(plan.eliminated_barn_id)
            evicted = [self.animal_repo.get_by_id(i) for i in plan.evicted_animal_ids]
            for animal in evicted:
                animal.unassign()
            self.animal_repo.save_all(evicted)
            self._destroy_barn(plan.eliminated_barn_id, reason="consolidated")

            for animal in evicted:
                self._place(animal, occupancy)
            self._defer_metric(
                record_animals_moved, color, len(evicted), "consolidation"
            )

    def _destroy_barn(self, barn_id: int, reason: str) -> None:
        barn = self.barn_repo.get_by_id(barn_id)
        self.barn_repo.delete(barn)
        logger.info("Barn destroyed", barn_name=barn.name, reason=reason)
        self._defer_metric(record_barn_destroyed, barn.color.value, reason)

    # Reset

    def delete_all(self) -> int:
        """Remove every animal and every barn. Returns the number of animals."""
        with self._transaction(Color, "delete_all"):
            removed = self.animal_repo.delete_all()
            barns = self.barn_repo.delete_all()
            for barn in barns:
                self._defer_metric(record_barn_destroyed, barn.color.value, "reset")

        for animal in removed:
            record_animal_removed(animal.favorite_color.value)
        logger.info("Farm cleared", animals=len(removed), barns=len(barns))
        return len(removed)

    # Helpers

    @contextmanager
    def _transaction(self, colors: Iterable[Color], operation: str) -> Iterator[None]:
        """Hold the color locks and one unit of work for a public operation.

        Deferred metrics are recorded only after the commit; a rollback
        discards them.
        """
        self._pending_metrics = []
        with self.locks.hold(colors), unit_of_work(self.session, operation):
            yield
        pending, self._pending_metrics = self._pending_metrics, []
        for record in pending:
            record()

    def _defer_metric(self, record: Callable[..., None], *args: object) -> None:
        self._pending_metrics.append(partial(record, *args))

    def _load(self, color: Color) -> BarnOccupancy:
        return BarnOccupancy.from_animals(
            color, self.animal_repo.find_by_color(color), self.capacity
        )

    def _check_capacity(self, occupancies: Iterable[BarnOccupancy]) -> None:
        for occupancy in occupancies:
            occupancy.check_capacity()


def _id(entity: Animal | Barn) -> int:
    """Id of a persisted entity."""
    if entity.id is None:
        raise ValueError(f"{type(entity).__name__} has not been persisted")
    return entity.id
