"""
The immutable description of one directory search.
"""

from dataclasses import dataclass, field, replace

from .attributes import (
    DEFAULT_RANGE_BEGIN,
    DEFAULT_RANGE_END,
    AttributeId,
    prepare_property_list,
)
from .filters import SearchBy, SearchTarget, build_filter


@dataclass(frozen=True)
class SearchQuery:
    """
    Everything needed to run one search.

    A query never changes once built; use :py:meth:`with_range` or
    :py:meth:`next_range` to get a query for another window of group members.

    Args:
        target: The category of object to find.
        by: Which attribute ``key`` is matched against.
        key: The value to look for.  Substituted into the filter unescaped.

    Keyword Args:
        attributes: Attributes to load, as :py:class:`AttributeId` members or
            raw wire names.  Empty means every catalog attribute.
        range_begin: First group member index to request.
        range_end: Last group member index to request, or ``None`` for the rest.

    Raises:
        ValueError: ``range_begin`` is negative, or ``range_end`` is before it.

    """

    target: SearchTarget
    by: SearchBy
    key: str
    attributes: tuple["AttributeId | str", ...] = field(default=())
    range_begin: int = DEFAULT_RANGE_BEGIN
    range_end: int | None = DEFAULT_RANGE_END

    def __post_init__(self) -> None:
        # Store a tuple whatever iterable we were given, so the query stays
        # hashable.
        object.__setattr__(self, "attributes", tuple(self.attributes))
        if self.range_begin < 0:
            msg = f"range_begin must be >= 0, not {self.range_begin}"
            raise ValueError(msg)
        if self.range_end is not None and self.range_end < self.range_begin:
            msg = (
                f"range_end ({self.range_end}) must be >= "
                f"range_begin ({self.range_begin})"
            )
            raise ValueError(msg)

    @property
    def filter(self) -> str:
        return build_filter(self.target, self.by, self.key)

    @property
    def properties_to_load(self) -> list[str]:
        return prepare_property_list(
            self.target, self.attributes, self.range_begin, self.range_end
        )

    def with_range(self, begin: int, end: int | None) -> "SearchQuery":
        """Return a copy of this query for the member window ``begin``-``end``."""
        return replace(self, range_begin=begin, range_end=end)

    def next_range(self) -> "SearchQuery":
        """
        Return a copy of this query for the member window following this one,
        keeping the same window size.

        Raises:
            ValueError: this query is already open-ended (``range_end`` is None).

        """
        if self.range_end is None:
            msg = "An open-ended range has no next window"
            raise ValueError(msg)
        size = self.range_end - self.range_begin + 1
        begin = self.range_end + 1
        return self.with_range(begin, begin + size - 1)
