import pytest
from pydantic import ValidationError

from conftest import make_record

from distribution_server.centers import UNKNOWN_KEY
from distribution_server.models import TreeLevel
from distribution_server.rollup import build_tree


def _assert_sums(node):
    if node.children:
        assert node.total == sum(child.total for child in node.children.values())
        for child in node.children.values():
            _assert_sums(child)


def test_example_tree(example_records):
    tree = build_tree(example_records)
    assert tree.level == TreeLevel.ROOT
    assert tree.total == 18
    assert tree.child("A").total == 15
    assert tree.child("B").total == 3
    assert tree.child("A", "X").total == 15
    assert tree.child("A", "X", "CGR ADULTE", "O+").total == 10
    assert tree.child("A", "X", "PLASMA").level == TreeLevel.PRODUCT
    assert tree.child("C") is None
    assert tree.child("A", "nope", "deeper") is None


def test_every_node_sums_its_children(network_records):
    tree = build_tree(network_records)
    _assert_sums(tree)
    assert tree.total == tree.leaf_total() == 35
    assert list(tree.children) == ["CRTS TREICHVILLE", "CRTS BOUAKE", "CDTS DIVO"]


def test_group_subtotals_on_root_and_centers(example_records):
    tree = build_tree(example_records)
    assert tree.blood_group_totals == {"O+": 15, "A-": 3}
    assert tree.child("A").blood_group_totals == {"O+": 15}
    assert tree.child("A", "X").blood_group_totals == {}


def test_blank_keys_grouped_as_unknown():
    tree = build_tree([make_record(center="", structure="", product="", group="", quantity=2)])
    leaf = tree.child(UNKNOWN_KEY, UNKNOWN_KEY, UNKNOWN_KEY, UNKNOWN_KEY)
    assert leaf is not None
    assert leaf.level == TreeLevel.BLOOD_GROUP
    assert leaf.total == 2


def test_empty_input():
    tree = build_tree([])
    assert tree.total == 0
    assert tree.children == {}


def test_tree_is_read_only(example_records):
    tree = build_tree(example_records)
    with pytest.raises(ValidationError):
        tree.total = 0
