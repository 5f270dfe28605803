"""
Occurrence aggregation

Merges per-show airing counts across day buckets and ranks the result.
"""
from collections.abc import Iterable, Mapping
from enum import Enum

from app.services.cache_types import Occurrence, Show
from app.services.errors import InvalidArgumentError


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: str | None) -> "SortOrder":
        """
        Parse a sort order case-insensitively.

        Raises:
            InvalidArgumentError: If value is not 'asc' or 'desc'
        """
        normalized = (value or "").strip().lower()
        try:
            return cls(normalized)
        except ValueError as exc:
            raise InvalidArgumentError("Order must be 'asc' or 'desc'.", exc) from exc


def merge_occurrences(buckets: Iterable[Mapping[str, Show]]) -> dict[str, Occurrence]:
    """
    Combine shows from several day buckets into one occurrence per show id.

    The first instance seen keeps its id, title and description; airing counts
    of later instances are added to it.

    Args:
        buckets: Day buckets in the order they should be visited

    Returns:
        Dictionary of show_id -> Occurrence
    """
    occurrences: dict[str, Occurrence] = {}

    for bucket in buckets:
        for show in bucket.values():
            current = occurrences.get(show.id)
            if current is None:
                occurrences[show.id] = Occurrence(
                    id=show.id,
                    title=show.title,
                    description=show.description,
                    count=show.airing_count,
                )
            else:
                occurrences[show.id] = Occurrence(
                    id=current.id,
                    title=current.title,
                    description=current.description,
                    count=current.count + show.airing_count,
                )

    return occurrences


def rank_occurrences(
    occurrences: Iterable[Occurrence],
    order: SortOrder,
    limit: int,
) -> list[Occurrence]:
    """
    Sort occurrences by count and keep at most `limit` of them.

    Equal counts are ordered by show id ascending in both directions.
    """
    if order is SortOrder.ASC:
        ranked = sorted(occurrences, key=lambda occ: (occ.count, occ.id))
    else:
        ranked = sorted(occurrences, key=lambda occ: (-occ.count, occ.id))
    return ranked[:limit]

