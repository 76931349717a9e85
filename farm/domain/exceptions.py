"""Domain-specific exceptions."""


class DomainError(Exception):
    """Base exception for domain errors."""

    pass


class ValidationError(DomainError):
    """Raised when domain validation fails."""

    pass


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist at read time."""

    def __init__(self, entity_type: str, entity_id: int):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type.title()} {entity_id} not found")


class AnimalNotFoundError(NotFoundError):
    def __init__(self, animal_id: int):
        super().__init__("animal", animal_id)


class BarnNotFoundError(NotFoundError):
    def __init__(self, barn_id: int):
        super().__init__("barn", barn_id)


class CapacityInvariantViolation(DomainError):
    """Raised when a barn would exceed its capacity after an operation.

    This is an internal consistency check. It never fires in correct operation
    and aborts the surrounding unit of work when it does.
    """

    def __init__(self, barn_id: int, size: int, capacity: int):
        self.barn_id = barn_id
        self.size = size
        self.capacity = capacity
        super().__init__(
            f"Barn {barn_id} holds {size} animals, capacity is {capacity}"
        )
