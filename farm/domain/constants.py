"""Domain business rules and constants."""

from typing import Final

# Business Rules - Core domain constraints
MAX_NAME_LENGTH: Final = 100
BARN_CAPACITY: Final = 20
