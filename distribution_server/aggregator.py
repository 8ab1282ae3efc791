"""Time-windowed totals over distribution records."""
import calendar
import logging
from collections import defaultdict
from typing import Dict, Iterable, List

from distribution_server.centers import UNKNOWN_KEY
from distribution_server.dates import DateParts, normalize_date
from distribution_server.models import DistributionRecord, SeriesPoint, StatBucket, TimeWindow
from distribution_server.products import ProductCategory, classify_product

logger = logging.getLogger(__name__)

MONTH_LABELS = (
    "JANVIER", "FÉVRIER", "MARS", "AVRIL", "MAI", "JUIN",
    "JUILLET", "AOÛT", "SEPTEMBRE", "OCTOBRE", "NOVEMBRE", "DÉCEMBRE",
)

_CATEGORY_FIELDS = {
    ProductCategory.ADULT_RED_CELLS: "adult_red_cells",
    ProductCategory.PEDIATRIC_RED_CELLS: "pediatric_red_cells",
    ProductCategory.PLASMA: "plasma",
    ProductCategory.PLATELETS: "platelets",
}


def matches_window(parts: DateParts, window: TimeWindow) -> bool:
    """Wildcard fields always match; concrete ones compare textually."""
    if window.year is not None and parts.year != window.year:
        return False
    if window.month is not None and parts.month != window.month:
        return False
    if window.day is not None and parts.day != window.day:
        return False
    return True


def aggregate(records: Iterable[DistributionRecord], window: TimeWindow) -> StatBucket:
    """Fold the records falling inside ``window`` into a StatBucket.

    Unclassified products only count towards ``total``. No matching record
    gives an all-zero bucket.
    """
    totals = defaultdict(int)
    structures = set()
    record_count = 0
    undated = 0

    for record in records:
        parts = normalize_date(record.distribution_date)
        if not matches_window(parts, window):
            continue

        record_count += 1
        if parts.is_empty:
            undated += 1
        totals["total"] += record.quantity

        field = _CATEGORY_FIELDS.get(classify_product(record.product_type))
        if field:
            totals[field] += record.quantity

        if record.health_structure:
            structures.add(record.health_structure)

    logger.debug(f"Aggregated {record_count} records for window {window}")

    return StatBucket(
        total=totals["total"],
        adult_red_cells=totals["adult_red_cells"],
        pediatric_red_cells=totals["pediatric_red_cells"],
        plasma=totals["plasma"],
        platelets=totals["platelets"],
        record_count=record_count,
        structures_served=len(structures),
        undated_records=undated,
    )


def monthly_totals(records: Iterable[DistributionRecord], year: str) -> List[SeriesPoint]:
    """Twelve monthly totals for ``year``, January first, zeros included."""
    by_month: Dict[str, int] = defaultdict(int)
    for record in records:
        parts = normalize_date(record.distribution_date)
        if parts.year == year:
            by_month[parts.month] += record.quantity

    return [
        SeriesPoint(key=f"{index:02d}", label=label, value=by_month.get(f"{index:02d}", 0))
        for index, label in enumerate(MONTH_LABELS, start=1)
    ]


def daily_totals(records: Iterable[DistributionRecord], year: str, month: str) -> List[SeriesPoint]:
    """One total per calendar day of the month, zeros included."""
    month = month.zfill(2)
    try:
        days_in_month = calendar.monthrange(int(year), int(month))[1]
    except (ValueError, calendar.IllegalMonthError):
        return []

    by_day: Dict[str, int] = defaultdict(int)
    for record in records:
        parts = normalize_date(record.distribution_date)
        if parts.year == year and parts.month == month:
            by_day[parts.day] += record.quantity

    return [
        SeriesPoint(key=f"{day:02d}", label=f"{day:02d}/{month}", value=by_day.get(f"{day:02d}", 0))
        for day in range(1, days_in_month + 1)
    ]


def product_mix(records: Iterable[DistributionRecord]) -> Dict[str, int]:
    """Quantity per raw product label, in first-seen order."""
    mix: Dict[str, int] = {}
    for record in records:
        label = record.product_type or UNKNOWN_KEY
        mix[label] = mix.get(label, 0) + record.quantity
    return mix
