"""Page of results with the counters a table widget needs."""

from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional


def compute_pages_count(total_count: int, page_size: int) -> int:
    """Number of pages for ``total_count`` rows; 1 when pagination is off."""
    if page_size <= 0:
        return 1
    return -(-total_count // page_size)


@dataclass
class PagedResult:
    """Mapped rows of one page plus the filtered count and paging state.

    ``total_count`` is the number of rows matching the filter. When the table
    is configured to count unfiltered rows as well, ``unfiltered_count`` holds
    that number; otherwise it is ``None``.
    """

    items: List[Any] = field(default_factory=list)
    total_count: int = 0
    page_size: int = 0
    page_number: int = 1
    pages_count: int = 1
    draw: int = 0
    unfiltered_count: Optional[int] = None

    @property
    def records_total(self) -> int:
        if self.unfiltered_count is None:
            return self.total_count
        return self.unfiltered_count

    @property
    def records_filtered(self) -> int:
        return self.total_count

    @property
    def has_previous_page(self) -> bool:
        return self.page_number > 1

    @property
    def has_next_page(self) -> bool:
        return self.page_number < self.pages_count

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.items)

    def __getitem__(self, index):
        return self.items[index]
