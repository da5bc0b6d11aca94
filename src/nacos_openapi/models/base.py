"""Base Nacos Data Models

Common pydantic base class and the generic pagination model.
"""

import math
from typing import Optional, List, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from ..constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, PAGE_NUMBER

T = TypeVar("T")


class NacosModel(BaseModel):
    """Base model: snake_case attributes, camelCase wire names.

    Unknown members sent by newer servers are ignored.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Page(BaseModel, Generic[T]):
    """One page of results."""

    total_elements: int = Field(default=0, ge=0, description="Total results across all pages")
    elements: List[T] = Field(default_factory=list, description="Results on this page")
    page_number: int = Field(default=PAGE_NUMBER, ge=1, description="Page number, starts with 1")
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, description="Requested page size")
    total_pages: Optional[int] = Field(
        default=None,
        description="Pages available; computed from total_elements when the server omits it"
    )

    @model_validator(mode="after")
    def compute_total_pages(self) -> "Page":
        if self.total_pages is None:
            self.total_pages = math.ceil(self.total_elements / self.page_size)
        return self

    @property
    def has_next(self) -> bool:
        return self.page_number < (self.total_pages or 0)

    def __len__(self) -> int:
        return len(self.elements)

    def __iter__(self):
        return iter(self.elements)


def validate_page_request(page_number: int, page_size: int) -> None:
    """Validate paging arguments before a request is sent.

    Raises:
        ValueError: If page_number or page_size is less than 1, or page_size
            is greater than MAX_PAGE_SIZE
    """
    if page_number < 1:
        raise ValueError(f"page_number must be >= 1, got {page_number}")
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    if page_size > MAX_PAGE_SIZE:
        raise ValueError(f"page_size must be <= {MAX_PAGE_SIZE}, got {page_size}")
