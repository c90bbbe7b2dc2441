"""
Core Application - Infrastructure & Base Classes

Generic building blocks shared by the domain apps (accounting,
fundraising). No domain logic lives here.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key
    - MetadataMixin: JSON metadata storage

Services (import from core.services):
    - BaseService: Logger, transaction and required-field helpers

Exceptions (import from core.exceptions):
    - BaseApplicationError, ValidationError, NotFoundError, ConflictError

Helpers (import from core.helpers):
    - calculate_pagination: Pagination metadata calculation

Note:
    Models and model mixins are NOT imported here to avoid
    AppRegistryNotReady errors. Import them directly from their modules.
"""

from .exceptions import (
    BaseApplicationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from .helpers import calculate_pagination
from .services import BaseService

__all__ = [
    "BaseService",
    "BaseApplicationError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "calculate_pagination",
]
