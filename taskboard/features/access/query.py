"""
Pagination and ordering primitives shared by task and audit queries.
"""
import enum
from pydantic import BaseModel

from taskboard.core.errors import ValidationFailure


class SortOrder(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


class Pagination(BaseModel):
    """1-based page number and page size. Checked by ``validate_pagination``."""
    page: int = 1
    limit: int = 10

    model_config = {"frozen": True}

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def validate_pagination(pagination: Pagination, max_limit: int) -> Pagination:
    """
    Reject malformed pagination before any query is built.

    Raises:
        ValidationFailure: page or limit is not positive, or limit exceeds max_limit
    """
    if pagination.page < 1:
        raise ValidationFailure(f"page must be >= 1, got {pagination.page}")
    if pagination.limit < 1:
        raise ValidationFailure(f"limit must be >= 1, got {pagination.limit}")
    if pagination.limit > max_limit:
        raise ValidationFailure(f"limit must be <= {max_limit}, got {pagination.limit}")
    return pagination
