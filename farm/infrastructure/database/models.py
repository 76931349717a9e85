from sqlmodel import Field, Relationship, SQLModel

from ...domain.constants import MAX_NAME_LENGTH
from ...domain.entities import UNASSIGNED, Assigned, Color
from ...domain.entities import Animal as DomainAnimal
from ...domain.entities import Barn as DomainBarn


class Barn(SQLModel, table=True):  # type: ignore[call-arg]
    """A barn. Holds animals that share its color."""

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(index=True, min_length=1, max_length=MAX_NAME_LENGTH)
    color: Color = Field(index=True)

    animals: list["Animal"] = Relationship(back_populates="barn")

    @classmethod
    def from_domain(cls, domain_barn: DomainBarn) -> "Barn":
        """Convert domain entity to persistence model."""
        return cls(id=domain_barn.id, name=domain_barn.name, color=domain_barn.color)

    def to_domain(self, capacity: int | None = None) -> DomainBarn:
        """Convert persistence model to domain entity."""
        if capacity is None:
            return DomainBarn(id=self.id, name=self.name, color=self.color)
        return DomainBarn(
            id=self.id, name=self.name, color=self.color, capacity=capacity
        )


class Animal(SQLModel, table=True):  # type: ignore[call-arg]
    """An animal living in at most one barn."""

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(min_length=1, max_length=MAX_NAME_LENGTH)
    favorite_color: Color = Field(index=True)

    # null means unassigned
    barn_id: int | None = Field(default=None, foreign_key="barn.id", index=True)
    barn: Barn | None = Relationship(back_populates="animals")

    @classmethod
    def from_domain(cls, domain_animal: DomainAnimal) -> "Animal":
        """Convert domain entity to persistence model."""
        return cls(
            id=domain_animal.id,
            name=domain_animal.name,
            favorite_color=domain_animal.favorite_color,
            barn_id=domain_animal.barn_id,
        )

    def to_domain(self) -> DomainAnimal:
        """Convert persistence model to domain entity."""
        return DomainAnimal(
            id=self.id,
            name=self.name,
            favorite_color=self.favorite_color,
            assignment=UNASSIGNED if self.barn_id is None else Assigned(self.barn_id),
        )
