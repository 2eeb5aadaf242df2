"""
Price range slider state.

While the user drags, the slider shows a local value and the store is left
alone. On release the range is committed to the store, and the local value
is dropped once the store reports the committed range back.
"""

import logging
from typing import Optional, Tuple

from coffee_directory.client.store import DirectoryStore
from coffee_directory.config import DirectoryConfig
from coffee_directory.models import FilterSpec


logger = logging.getLogger(__name__)

PriceRange = Tuple[int, int]


class PriceRangeDrag:
    """
    Drag/commit/reconcile cycle for the price filter.

    Attributes:
        store: Directory store holding min_price and max_price
        floor: Slider minimum; committing it clears min_price
        ceiling: Slider maximum; committing it clears max_price
        drag_value: Local range during manipulation, None when idle
    """

    def __init__(self, store: DirectoryStore, floor: int = 0, ceiling: int = 10000):
        if floor >= ceiling:
            raise ValueError(f"Invalid price bounds: {floor} >= {ceiling}")
        self.store = store
        self.floor = floor
        self.ceiling = ceiling
        self.drag_value: Optional[PriceRange] = None
        self._committed: Optional[PriceRange] = None
        self._unsubscribe = store.subscribe(self.reconcile)

    @classmethod
    def from_config(cls, store: DirectoryStore, config: DirectoryConfig) -> "PriceRangeDrag":
        """Create a slider bounded by the configured price floor and ceiling."""
        return cls(store, floor=config.price_floor, ceiling=config.price_ceiling)

    @property
    def value(self) -> PriceRange:
        """Range the slider should display."""
        if self.drag_value is not None:
            return self.drag_value
        return self.store_range(self.store.spec)

    @property
    def awaiting_confirmation(self) -> bool:
        return self._committed is not None

    def store_range(self, spec: FilterSpec) -> PriceRange:
        low = spec.min_price if spec.min_price is not None else self.floor
        high = spec.max_price if spec.max_price is not None else self.ceiling
        return low, high

    def drag(self, low: int, high: int) -> PriceRange:
        """Move the handles. The store is not touched."""
        low = min(max(low, self.floor), self.ceiling)
        high = min(max(high, self.floor), self.ceiling)
        if low > high:
            low, high = high, low
        self.drag_value = (low, high)
        self._committed = None
        return self.drag_value

    def release(self) -> bool:
        """
        Commit the dragged range to the store.

        Returns:
            True if the store changed
        """
        if self.drag_value is None:
            return False
        low, high = self.drag_value
        self._committed = (low, high)
        changed = self.store.update_filters(
            min_price=None if low <= self.floor else low,
            max_price=None if high >= self.ceiling else high,
        )
        if not changed:
            # Store already held this range, nothing will echo back
            self.reconcile(self.store.spec)
        return changed

    def reconcile(self, spec: FilterSpec) -> None:
        """Drop the local value once the store confirms the committed range."""
        if self._committed is None:
            return
        if self.store_range(spec) == self._committed:
            self.drag_value = None
            self._committed = None
        else:
            logger.debug(f"Store range {self.store_range(spec)} differs from committed {self._committed}")

    def close(self) -> None:
        self._unsubscribe()
