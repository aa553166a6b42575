from typing import Generic, TypeVar

from pydantic import BaseModel, Field, computed_field

T = TypeVar("T")


class PaginationResult(BaseModel, Generic[T]):
    """One page of a list endpoint (messages, subjects) with the total match count."""

    items: list[T] = Field(..., description="Items on this page")
    total: int = Field(..., description="Number of matches across all pages", ge=0)
    limit: int = Field(..., description="Maximum items per page", ge=1)
    offset: int = Field(..., description="Number of matches skipped", ge=0)

    @computed_field(description="Whether a later page exists")  # type: ignore[prop-decorator]
    @property
    def has_more(self) -> bool:
        return self.offset + len(self.items) < self.total
