"""Center > health structure > product > blood group rollup."""
from typing import Dict, Iterable, Optional

from distribution_server.centers import UNKNOWN_KEY
from distribution_server.models import DistributionRecord, HierarchyNode, TreeLevel

_CHILD_LEVEL = {
    TreeLevel.ROOT: TreeLevel.CENTER,
    TreeLevel.CENTER: TreeLevel.STRUCTURE,
    TreeLevel.STRUCTURE: TreeLevel.PRODUCT,
    TreeLevel.PRODUCT: TreeLevel.BLOOD_GROUP,
}

# Levels that also keep a per-blood-group subtotal
_GROUP_SUBTOTAL_LEVELS = (TreeLevel.ROOT, TreeLevel.CENTER)


class _NodeBuilder:
    """Mutable accumulator, only alive while the tree is being built."""

    __slots__ = ("key", "level", "total", "children", "group_totals")

    def __init__(self, key: str, level: TreeLevel):
        self.key = key
        self.level = level
        self.total = 0
        self.children: Dict[str, "_NodeBuilder"] = {}
        self.group_totals: Dict[str, int] = {}

    def descend(self, key: str) -> "_NodeBuilder":
        child = self.children.get(key)
        if child is None:
            child = _NodeBuilder(key, _CHILD_LEVEL[self.level])
            self.children[key] = child
        return child

    def add(self, quantity: int, blood_group: str) -> None:
        self.total += quantity
        if self.level in _GROUP_SUBTOTAL_LEVELS:
            self.group_totals[blood_group] = self.group_totals.get(blood_group, 0) + quantity

    def freeze(self) -> HierarchyNode:
        return HierarchyNode(
            key=self.key,
            level=self.level,
            total=self.total,
            children={key: child.freeze() for key, child in self.children.items()},
            blood_group_totals=dict(self.group_totals),
        )


def _key(value: Optional[str]) -> str:
    return value or UNKNOWN_KEY


def build_tree(records: Iterable[DistributionRecord], root_key: str = "TOTAL") -> HierarchyNode:
    """Build the rollup tree in one pass over ``records``.

    Every node's total is the sum of its children's totals; the root and
    each center also carry totals per blood group. Sibling order is
    first-seen order and depends on the input order.
    """
    root = _NodeBuilder(root_key, TreeLevel.ROOT)

    for record in records:
        group = _key(record.blood_group)
        path = (
            _key(record.center),
            _key(record.health_structure),
            _key(record.product_type),
            group,
        )

        node = root
        node.add(record.quantity, group)
        for key in path:
            node = node.descend(key)
            node.add(record.quantity, group)

    return root.freeze()
