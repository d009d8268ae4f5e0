"""Category-tagged inventory.

An account's inventory is split into buckets (foods, general items), each a
plain ``{item: quantity}`` mapping. Which bucket an item lives in is decided
once, by its ``ItemCategory``; callers only ever say ``debit`` / ``credit``.
"""

from dataclasses import dataclass, field
from typing import Any

from src.pm_common.enums import InventoryBucket
from src.pm_common.errors import InsufficientInventoryError

FOOD_TYPES: frozenset[str] = frozenset({"Candy", "Chocolate", "Juice", "Burger"})


@dataclass(frozen=True)
class ItemCategory:
    name: str
    bucket: InventoryBucket

    def holdings(self, inventory: "Inventory") -> dict[str, int]:
        return inventory.buckets.setdefault(self.bucket.value, {})


FOOD = ItemCategory(name="FOOD", bucket=InventoryBucket.FOODS)
GENERAL = ItemCategory(name="GENERAL", bucket=InventoryBucket.ITEMS)


def category_for(item: str) -> ItemCategory:
    return FOOD if item in FOOD_TYPES else GENERAL


@dataclass
class Inventory:
    buckets: dict[str, dict[str, int]] = field(default_factory=dict)

    def quantity(self, item: str) -> int:
        return category_for(item).holdings(self).get(item, 0)

    def debit(self, item: str, quantity: int) -> None:
        """Remove ``quantity`` of ``item``. Raises if the entry is missing or short."""
        holdings = category_for(item).holdings(self)
        available = holdings.get(item)
        if available is None or available < quantity:
            raise InsufficientInventoryError(item, quantity, available or 0)
        holdings[item] = available - quantity

    def credit(self, item: str, quantity: int) -> None:
        holdings = category_for(item).holdings(self)
        holdings[item] = holdings.get(item, 0) + quantity

    def to_document(self) -> dict[str, dict[str, int]]:
        return {
            bucket.value: dict(self.buckets.get(bucket.value, {}))
            for bucket in InventoryBucket
        }

    @classmethod
    def from_document(cls, doc: dict[str, Any] | None) -> "Inventory":
        doc = doc or {}
        return cls(
            buckets={
                bucket.value: {k: int(v) for k, v in (doc.get(bucket.value) or {}).items()}
                for bucket in InventoryBucket
            }
        )
