"""Health-check protocol models.

A Protocol is the list of findings for one instrument. Findings of the
same date can be folded into a DateBasedProtocolEntry, which reports the
share of each category for that date.
"""

import datetime
from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, computed_field

from Market_Health.models.enums import HealthCheckProfile, ProtocolEntryCategory
from Market_Health.utils.rounding import ratio_percent


def _category_percentage(
    categories: Iterable[ProtocolEntryCategory], category: ProtocolEntryCategory
) -> int:
    values = list(categories)
    return ratio_percent(sum(1 for value in values if value is category), len(values))


class ProtocolEntry(BaseModel):
    """A single finding of a health check on one date."""

    model_config = ConfigDict(frozen=True)

    date: datetime.date
    category: ProtocolEntryCategory
    text: str
    profile: HealthCheckProfile | None = None


class SimpleProtocolEntry(BaseModel):
    """A finding without date and profile, used inside a DateBasedProtocolEntry."""

    model_config = ConfigDict(frozen=True)

    category: ProtocolEntryCategory
    text: str


class _CategoryPercentages(BaseModel):
    """Shared computed percentages over a collection of categorised entries."""

    def _categories(self) -> list[ProtocolEntryCategory]:
        raise NotImplementedError

    @computed_field  # type: ignore[prop-decorator]
    @property
    def confirmation_percentage(self) -> int:
        return _category_percentage(self._categories(), ProtocolEntryCategory.CONFIRMATION)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def violation_percentage(self) -> int:
        return _category_percentage(self._categories(), ProtocolEntryCategory.VIOLATION)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def uncertain_percentage(self) -> int:
        return _category_percentage(self._categories(), ProtocolEntryCategory.UNCERTAIN)


class DateBasedProtocolEntry(_CategoryPercentages):
    """All findings of one date with the percentage of each category.

    Each percentage is rounded on its own, so the three may add up to
    slightly less or more than 100.
    """

    model_config = ConfigDict(frozen=True)

    date: datetime.date
    entries: tuple[SimpleProtocolEntry, ...] = ()

    def _categories(self) -> list[ProtocolEntryCategory]:
        return [entry.category for entry in self.entries]


class Protocol(_CategoryPercentages):
    """Ordered findings of the health checks of one instrument."""

    model_config = ConfigDict(frozen=True)

    entries: tuple[ProtocolEntry, ...] = ()

    def _categories(self) -> list[ProtocolEntryCategory]:
        return [entry.category for entry in self.entries]

    def entries_of_date(self, date: datetime.date) -> list[ProtocolEntry]:
        return [entry for entry in self.entries if entry.date == date]

    def sorted_by_date(self) -> "Protocol":
        """A copy with the entries ordered newest first (stable within a date)."""
        return Protocol(entries=tuple(sorted(self.entries, key=lambda e: e.date, reverse=True)))
