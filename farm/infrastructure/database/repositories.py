"""Infrastructure layer - Repository implementations.

Repositories flush but never commit; the unit of work wrapping each allocator
operation owns the transaction.
"""

from collections.abc import Iterable, Sequence

from sqlalchemy import func
from sqlmodel import Session, select

from ...domain.entities import Animal as DomainAnimal
from ...domain.entities import Barn as DomainBarn
from ...domain.entities import Color
from ...domain.exceptions import AnimalNotFoundError, BarnNotFoundError
from ...logging_utils import log_database_operation
from .models import Animal as AnimalModel
from .models import Barn as BarnModel


class AnimalRepository:
    """Repository for Animal persistence operations."""

    def __init__(self, session: Session):
        self.session = session

    def find_all(self) -> list[DomainAnimal]:
        """Get all animals ordered by id."""
        animals = self.session.exec(
            select(AnimalModel).order_by(AnimalModel.id)  # type: ignore[arg-type]
        ).all()
        return [animal.to_domain() for animal in animals]

    def find_by_color(self, color: Color) -> list[DomainAnimal]:
        """Get every animal of one color ordered by id."""
        animals = self.session.exec(
            select(AnimalModel)
            .where(AnimalModel.favorite_color == color)
            .order_by(AnimalModel.id)  # type: ignore[arg-type]
        ).all()
        return [animal.to_domain() for animal in animals]

    def get_by_id(self, animal_id: int) -> DomainAnimal:
        """Load an animal, raising AnimalNotFoundError if it does not exist."""
        animal_model = self.session.get(AnimalModel, animal_id)
        if animal_model is None:
            raise AnimalNotFoundError(animal_id)
        return animal_model.to_domain()

    def save(self, domain_animal: DomainAnimal) -> DomainAnimal:
        """Insert or update an animal and write its id back."""
        if domain_animal.id is None:
            animal_model = AnimalModel.from_domain(domain_animal)
        else:
            existing = self.session.get(AnimalModel, domain_animal.id)
            if existing is None:
                raise AnimalNotFoundError(domain_animal.id)
            existing.name = domain_animal.name
            existing.favorite_color = domain_animal.favorite_color
            existing.barn_id = domain_animal.barn_id
            animal_model = existing

        self.session.add(animal_model)
        self.session.flush()
        domain_animal.id = animal_model.id
        return domain_animal

    def save_all(self, domain_animals: Iterable[DomainAnimal]) -> list[DomainAnimal]:
        return [self.save(animal) for animal in domain_animals]

    def delete(self, domain_animal: DomainAnimal) -> None:
        if domain_animal.id is None:
            return
        animal_model = self.session.get(AnimalModel, domain_animal.id)
        if animal_model is None:
            raise AnimalNotFoundError(domain_animal.id)
        self.session.delete(animal_model)
        self.session.flush()
        log_database_operation(
            operation="delete", table="Animal", animal_id=domain_animal.id
        )

    def delete_all(self) -> list[DomainAnimal]:
        """Delete every animal and return what was deleted."""
        animals = self.session.exec(select(AnimalModel)).all()
        deleted = [animal_model.to_domain() for animal_model in animals]
        for animal_model in animals:
            self.session.delete(animal_model)
        self.session.flush()
        log_database_operation(
            operation="delete_all", table="Animal", count=len(deleted)
        )
        return deleted


class BarnRepository:
    """Repository for Barn persistence operations."""

    def __init__(self, session: Session):
        self.session = session

    def find_all(self) -> list[DomainBarn]:
        barns = self.session.exec(
            select(BarnModel).order_by(BarnModel.id)  # type: ignore[arg-type]
        ).all()
        return [barn.to_domain() for barn in barns]

    def find_by_color(self, color: Color) -> list[DomainBarn]:
        barns = self.session.exec(
            select(BarnModel)
            .where(BarnModel.color == color)
            .order_by(BarnModel.id)  # type: ignore[arg-type]
        ).all()
        return [barn.to_domain() for barn in barns]

    def get_by_id(self, barn_id: int) -> DomainBarn:
        barn_model = self.session.get(BarnModel, barn_id)
        if barn_model is None:
            raise BarnNotFoundError(barn_id)
        return barn_model.to_domain()

    def count_members(self) -> dict[int, int]:
        """Number of animals per barn id, for barns that have any."""
        rows: Sequence[tuple[int | None, int]] = self.session.exec(
            select(AnimalModel.barn_id, func.count())
            .where(AnimalModel.barn_id.is_not(None))  # type: ignore[union-attr]
            .group_by(AnimalModel.barn_id)
        ).all()
        return {barn_id: count for barn_id, count in rows if barn_id is not None}

    def save(self, domain_barn: DomainBarn) -> DomainBarn:
        """Insert a barn and write its id back."""
        barn_model = BarnModel.from_domain(domain_barn)
        self.session.add(barn_model)
        self.session.flush()
        domain_barn.id = barn_model.id
        log_database_operation(
            operation="create",
            table="Barn",
            barn_id=barn_model.id,
            barn_name=barn_model.name,
        )
        return domain_barn

    def delete(self, domain_barn: DomainBarn) -> None:
        if domain_barn.id is None:
            return
        barn_model = self.session.get(BarnModel, domain_barn.id)
        if barn_model is None:
            raise BarnNotFoundError(domain_barn.id)
        self.session.delete(barn_model)
        self.session.flush()
        log_database_operation(
            operation="delete", table="Barn", barn_id=domain_barn.id
        )

    def delete_all(self) -> list[DomainBarn]:
        barns = self.session.exec(select(BarnModel)).all()
        deleted = [barn_model.to_domain() for barn_model in barns]
        for barn_model in barns:
            self.session.delete(barn_model)
        self.session.flush()
        log_database_operation(operation="delete_all", table="Barn", count=len(deleted))
        return deleted
