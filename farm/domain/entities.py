"""Pure domain entities without infrastructure dependencies."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Final

from .constants import BARN_CAPACITY, MAX_NAME_LENGTH
from .exceptions import ValidationError


class Color(str, Enum):
    """Favorite colors. Each color is an independent allocation domain."""

    BLACK = "BLACK"
    BLUE = "BLUE"
    BROWN = "BROWN"
    GREEN = "GREEN"
    GREY = "GREY"
    ORANGE = "ORANGE"
    PINK = "PINK"
    PURPLE = "PURPLE"
    RED = "RED"
    WHITE = "WHITE"
    YELLOW = "YELLOW"


def validate_entity_name(name: str, entity_type: str = "entity") -> None:
    """Validate entity name according to domain business rules.

    Pure domain validation without logging or external dependencies.

    Args:
        name: The name to validate
        entity_type: Type of entity being validated (for error messages)

    Raises:
        ValidationError: If name is empty, too long, or contains control characters
    """
    if not name or not name.strip():
        raise ValidationError(f"{entity_type.title()} name cannot be empty")

    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(
            f"{entity_type.title()} name cannot be longer than {MAX_NAME_LENGTH} "
            + "characters"
        )

    for char in name:
        if ord(char) < 32 or ord(char) == 127:
            raise ValidationError(
                f"{entity_type.title()} name cannot contain newlines, tabs, "
                + "or other control characters"
            )


@dataclass(frozen=True)
class Assigned:
    """The animal lives in the barn with this id."""

    barn_id: int


@dataclass(frozen=True)
class Unassigned:
    """The animal has no barn."""


UNASSIGNED: Final = Unassigned()

BarnAssignment = Assigned | Unassigned


@dataclass
class Animal:
    """Core business entity: an animal with a favorite color."""

    id: int | None
    name: str
    favorite_color: Color
    assignment: BarnAssignment = field(default=UNASSIGNED)

    def __post_init__(self):
        """Validate animal data after initialization."""
        self.validate()

    def validate(self) -> None:
        """Validate animal business rules."""
        validate_entity_name(self.name, "animal")

        if not isinstance(self.favorite_color, Color):
            raise ValidationError(
                f"Unknown favorite color: {self.favorite_color!r}"
            )

    @property
    def barn_id(self) -> int | None:
        """The assigned barn id, or None when unassigned."""
        match self.assignment:
            case Assigned(barn_id=barn_id):
                return barn_id
            case Unassigned():
                return None

    def is_assigned(self) -> bool:
        return isinstance(self.assignment, Assigned)

    def assign_to(self, barn_id: int) -> None:
        self.assignment = Assigned(barn_id)

    def unassign(self) -> None:
        self.assignment = UNASSIGNED


@dataclass
class Barn:
    """Core business entity: a capacity bucket for animals of one color."""

    id: int | None
    name: str
    color: Color
    capacity: int = BARN_CAPACITY

    def __post_init__(self):
        validate_entity_name(self.name, "barn")
        if self.capacity < 1:
            raise ValidationError("Barn capacity must be at least 1")

    def accepts(self, animal: Animal) -> bool:
        """Check whether an animal's color matches this barn."""
        return animal.favorite_color == self.color


def barn_name(color: Color, ordinal: int) -> str:
    """Conventional barn name, e.g. ``RED0``."""
    return f"{color.value}{ordinal}"
