"""Infrastructure and technical constants."""

from typing import Final

# Technical configuration constants
DEFAULT_PORT: Final = 8000
DEFAULT_DATABASE_URL: Final = "sqlite:///./farm.db"
