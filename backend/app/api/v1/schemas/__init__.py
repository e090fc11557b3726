# Schemas module
from app.api.v1.schemas.common import (
    MessageResponse,
    PaginatedResponse,
    PaginationMeta,
    PaginationParams,
    SuccessResponse,
    paginate,
)

__all__ = [
    # Common schemas
    "MessageResponse",
    "PaginatedResponse",
    "PaginationMeta",
    "PaginationParams",
    "SuccessResponse",
    "paginate",
]
