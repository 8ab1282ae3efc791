"""Dashboard assembly: scope the records, then run every report over them.

All functions are pure over the given record list; nothing is cached, so two
panels asking for different windows at the same time get independent results.
"""
import datetime as dt
import logging
from typing import List, Optional, Sequence

from distribution_server.aggregator import aggregate, daily_totals, matches_window, monthly_totals
from distribution_server.centers import CenterFilter
from distribution_server.dates import format_date_fr, normalize_date
from distribution_server.models import (
    DashboardReport,
    DistributionRecord,
    HierarchyNode,
    HistoryEntry,
    TimeWindow,
    User,
    WeeklyReport,
)
from distribution_server.products import classify_product
from distribution_server.ranking import peak_bucket, rolling_window, top_product, top_structures, weekly_breakdown
from distribution_server.rollup import build_tree
from distribution_server.scope import DEFAULT_VISITOR_LOGIN, effective_center_filter, filter_records, resolve_scope

logger = logging.getLogger(__name__)

ROLLING_DAYS = 14


def build_dashboard(
    records: Sequence[DistributionRecord],
    user: Optional[User],
    window: TimeWindow,
    requested_center: Optional[CenterFilter] = None,
    today: Optional[dt.date] = None,
    top: int = 5,
    visitor_login: str = DEFAULT_VISITOR_LOGIN,
) -> DashboardReport:
    """Build the full dashboard bundle for one user and filter selection.

    - ``window_stats``: totals inside ``window``
    - ``annual_stats``: totals for the window's year (``today``'s year when
      the window year is a wildcard), plus the monthly series and peak month
    - ``daily_series`` / ``peak_day``: only when the window names a month,
      and always for ``annual_year``; with a wildcard year ``window_stats``
      covers that month in every year while the daily series covers the
      current year only
    - ``tree``, ``top_structures``, ``top_product``: over every visible
      record inside ``window``
    - ``rolling_window``: last 14 days ending ``today``, ignoring ``window``
    """
    today = today or dt.date.today()
    scope = resolve_scope(user, visitor_login)
    center_filter = effective_center_filter(scope, requested_center)
    visible = filter_records(records, center_filter)
    in_window = [
        record for record in visible
        if window.is_everything or _in_window(record, window)
    ]

    annual_year = window.year or f"{today.year:04d}"
    monthly = monthly_totals(visible, annual_year)

    daily = []
    if window.month is not None:
        daily = daily_totals(visible, annual_year, window.month)

    logger.debug(
        f"Dashboard for {scope.role.value} on {center_filter.label}: "
        f"{len(visible)} visible, {len(in_window)} in window"
    )

    return DashboardReport(
        scope=scope,
        center_filter=center_filter.label,
        window=window,
        record_count=len(visible),
        window_stats=aggregate(visible, window),
        annual_year=annual_year,
        annual_stats=aggregate(visible, TimeWindow.for_year(annual_year)),
        all_time_stats=aggregate(visible, TimeWindow.everything()),
        tree=build_tree(in_window),
        top_structures=top_structures(in_window, top),
        top_product=top_product(in_window),
        monthly_series=monthly,
        peak_month=peak_bucket(monthly),
        daily_series=daily,
        peak_day=peak_bucket(daily),
        rolling_window=rolling_window(visible, ROLLING_DAYS, today),
    )


def _in_window(record: DistributionRecord, window: TimeWindow) -> bool:
    return matches_window(normalize_date(record.distribution_date), window)


def build_rollup(
    records: Sequence[DistributionRecord],
    user: Optional[User],
    window: TimeWindow,
    requested_center: Optional[CenterFilter] = None,
    visitor_login: str = DEFAULT_VISITOR_LOGIN,
) -> HierarchyNode:
    """Rollup tree of the visible records inside ``window``."""
    scope = resolve_scope(user, visitor_login)
    visible = filter_records(records, effective_center_filter(scope, requested_center))
    return build_tree(record for record in visible if _in_window(record, window))


def build_weekly(
    records: Sequence[DistributionRecord],
    user: Optional[User],
    reference_day: dt.date,
    requested_center: Optional[CenterFilter] = None,
    visitor_login: str = DEFAULT_VISITOR_LOGIN,
) -> WeeklyReport:
    scope = resolve_scope(user, visitor_login)
    visible = filter_records(records, effective_center_filter(scope, requested_center))
    return weekly_breakdown(visible, reference_day)


def visible_history(
    records: Sequence[DistributionRecord],
    user: Optional[User],
    requested_center: Optional[CenterFilter] = None,
    limit: int = 50,
    visitor_login: str = DEFAULT_VISITOR_LOGIN,
) -> List[HistoryEntry]:
    """Most recently captured visible records first (sheet order reversed)."""
    scope = resolve_scope(user, visitor_login)
    visible = filter_records(records, effective_center_filter(scope, requested_center))
    latest = list(reversed(visible))[:max(limit, 0)]
    return [
        HistoryEntry(
            record=record,
            date_fr=format_date_fr(record.distribution_date),
            category=classify_product(record.product_type),
        )
        for record in latest
    ]
