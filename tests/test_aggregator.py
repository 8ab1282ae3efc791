import random

from conftest import make_record

from distribution_server.aggregator import aggregate, daily_totals, monthly_totals, product_mix
from distribution_server.models import DistributionRecord, StatBucket, TimeWindow


def test_example_scenario(example_records):
    bucket = aggregate(example_records, TimeWindow.everything())
    assert bucket.total == 18
    assert bucket.adult_red_cells == 13
    assert bucket.plasma == 5
    assert bucket.pediatric_red_cells == 0
    assert bucket.platelets == 0
    assert bucket.structures_served == 2
    assert bucket.record_count == 3
    assert bucket.red_cells == 13
    assert bucket.labile_products == 5


def test_all_wildcards_sum_everything(network_records):
    bucket = aggregate(network_records, TimeWindow.everything())
    assert bucket.total == sum(record.quantity for record in network_records)
    # "pas de date" still counts, flagged as undated
    assert bucket.undated_records == 1


def test_order_independent(network_records):
    window = TimeWindow(year="2025")
    expected = aggregate(network_records, window)
    shuffled = list(network_records)
    random.Random(7).shuffle(shuffled)
    assert aggregate(shuffled, window) == expected
    assert aggregate(network_records, window) == expected


def test_window_matches_every_date_shape():
    records = [
        make_record(date="2025-03-05T10:00:00", quantity=2),
        make_record(date="05/03/2025", quantity=3),
        make_record(date="06/03/2025", quantity=100),
    ]
    bucket = aggregate(records, TimeWindow(year="2025", month="03", day="05"))
    assert bucket.total == 5
    # Unpadded query values are padded
    assert aggregate(records, TimeWindow(year="2025", month="3", day="5")).total == 5


def test_month_window(network_records):
    bucket = aggregate(network_records, TimeWindow(year="2025", month="03"))
    assert bucket.total == 12 + 4 + 7
    assert bucket.adult_red_cells == 12
    assert bucket.pediatric_red_cells == 4
    assert bucket.plasma == 7
    assert bucket.structures_served == 3


def test_wildcard_literals():
    window = TimeWindow(year="2025", month="TOUS", day="")
    assert window.month is None
    assert window.day is None
    assert TimeWindow(year="ALL").is_everything


def test_no_match_gives_zero_bucket(network_records):
    assert aggregate(network_records, TimeWindow(year="1999")) == StatBucket()
    assert aggregate([], TimeWindow.everything()) == StatBucket()


def test_unclassified_only_counts_in_total():
    records = [make_record(product="SANG TOTAL", quantity=4)]
    bucket = aggregate(records, TimeWindow.everything())
    assert bucket.total == 4
    assert bucket.red_cells == 0 and bucket.labile_products == 0


def test_bad_quantities_count_as_zero():
    records = [
        DistributionRecord(nbPoches=None),
        DistributionRecord(nbPoches=""),
        DistributionRecord(nbPoches="abc"),
        DistributionRecord(nbPoches=-3),
        DistributionRecord(nbPoches="3.0"),
    ]
    assert [record.quantity for record in records] == [0, 0, 0, 0, 3]
    assert aggregate(records, TimeWindow.everything()).total == 3


def test_monthly_totals(network_records):
    series = monthly_totals(network_records, "2025")
    assert len(series) == 12
    assert series[0].label == "JANVIER"
    assert series[1].value == 2
    assert series[2].key == "03"
    assert series[2].value == 23
    assert sum(point.value for point in series) == 25


def test_daily_totals_are_dense(network_records):
    series = daily_totals(network_records, "2025", "3")
    assert len(series) == 31
    assert series[4].key == "05"
    assert series[4].value == 19
    assert series[5].value == 4
    assert daily_totals(network_records, "2024", "02")[-1].key == "29"
    assert daily_totals(network_records, "2025", "13") == []


def test_product_mix(example_records):
    assert product_mix(example_records) == {"CGR ADULTE": 13, "PLASMA": 5}
