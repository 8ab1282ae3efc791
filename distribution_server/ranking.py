"""Leaderboards, peak detection and short-term trend series."""
import datetime as dt
from typing import Dict, Iterable, List, Literal, Optional, Sequence, Tuple

from distribution_server.aggregator import product_mix
from distribution_server.centers import UNKNOWN_KEY
from distribution_server.dates import normalize_date
from distribution_server.models import (
    DistributionRecord,
    PeakBucket,
    RankEntry,
    SeriesPoint,
    WeeklyReport,
)

WEEKDAY_LABELS = ("LUNDI", "MARDI", "MERCREDI", "JEUDI", "VENDREDI", "SAMEDI", "DIMANCHE")

RankKey = Literal["structure", "product", "center"]

_RANK_FIELDS = {
    "structure": "health_structure",
    "product": "product_type",
    "center": "center",
}


def top_n(records: Iterable[DistributionRecord], n: int = 5, key: RankKey = "structure") -> List[RankEntry]:
    """Rank names by total quantity, highest first.

    Ties keep first-seen order (sorted() is stable over the insertion-ordered
    dict).
    """
    if n <= 0:
        return []
    field = _RANK_FIELDS[key]
    totals: Dict[str, int] = {}
    for record in records:
        name = getattr(record, field) or UNKNOWN_KEY
        totals[name] = totals.get(name, 0) + record.quantity

    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)[:n]
    return [RankEntry(name=name, quantity=quantity) for name, quantity in ranked]


def top_structures(records: Iterable[DistributionRecord], n: int = 5) -> List[RankEntry]:
    return top_n(records, n, key="structure")


def top_product(records: Iterable[DistributionRecord]) -> Optional[RankEntry]:
    """Most distributed product label, or None without records."""
    ranked = top_n(records, 1, key="product")
    return ranked[0] if ranked else None


def peak_bucket(series: Sequence[SeriesPoint]) -> Optional[PeakBucket]:
    """Bucket with the strictly greatest value; the first one wins ties."""
    best: Optional[SeriesPoint] = None
    for point in series:
        if best is None or point.value > best.value:
            best = point
    if best is None:
        return None
    return PeakBucket(key=best.key, label=best.label, value=best.value)


def rolling_window(
    records: Iterable[DistributionRecord],
    days: int = 14,
    today: Optional[dt.date] = None,
) -> List[SeriesPoint]:
    """Per-day totals for the ``days`` days ending ``today``, oldest first.

    Days without records are present with value 0.
    """
    if days <= 0:
        return []
    today = today or dt.date.today()
    start = today - dt.timedelta(days=days - 1)

    by_day: Dict[dt.date, int] = {}
    for record in records:
        day = normalize_date(record.distribution_date).to_date()
        if day is None or day < start or day > today:
            continue
        by_day[day] = by_day.get(day, 0) + record.quantity

    series = []
    for offset in range(days):
        day = start + dt.timedelta(days=offset)
        series.append(SeriesPoint(
            key=day.isoformat(),
            label=day.strftime("%d/%m"),
            value=by_day.get(day, 0),
        ))
    return series


def week_bounds(reference_day: dt.date) -> Tuple[dt.date, dt.date]:
    """Monday and Sunday of the week containing ``reference_day``."""
    monday = reference_day - dt.timedelta(days=reference_day.weekday())
    return monday, monday + dt.timedelta(days=6)


def weekly_breakdown(records: Iterable[DistributionRecord], reference_day: dt.date) -> WeeklyReport:
    """Monday to Sunday activity for the week containing ``reference_day``."""
    monday, sunday = week_bounds(reference_day)

    in_week = []
    for record in records:
        day = normalize_date(record.distribution_date).to_date()
        if day is not None and monday <= day <= sunday:
            in_week.append((day, record))

    per_day = [0] * 7
    structures: List[str] = []
    for day, record in in_week:
        per_day[day.weekday()] += record.quantity
        if record.health_structure and record.health_structure not in structures:
            structures.append(record.health_structure)

    days = [
        SeriesPoint(
            key=(monday + dt.timedelta(days=index)).isoformat(),
            label=label,
            value=per_day[index],
        )
        for index, label in enumerate(WEEKDAY_LABELS)
    ]
    week_records = [record for _, record in in_week]

    return WeeklyReport(
        week_start=monday,
        week_end=sunday,
        days=days,
        total=sum(per_day),
        product_mix=product_mix(week_records),
        active_structures=structures,
        peak_day=peak_bucket(days) if week_records else None,
    )
