"""
Client-side directory state store.

The store is the single source of truth for the directory view: filters,
page and sort. Listeners are notified only when the state actually changes.
"""

import logging
from typing import Any, Callable, List, Optional

from coffee_directory.models import DEFAULT_PAGE, FilterSpec, SortKey


logger = logging.getLogger(__name__)

Listener = Callable[[FilterSpec], None]


class DirectoryStore:
    """Holds the current FilterSpec and notifies subscribers on change."""

    def __init__(self, initial: Optional[FilterSpec] = None):
        self._spec = initial or FilterSpec()
        self._listeners: List[Listener] = []

    @property
    def spec(self) -> FilterSpec:
        return self._spec

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a change listener.

        Args:
            listener: Called with the new FilterSpec after every change

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_all(self, spec: FilterSpec) -> bool:
        """Replace the whole state. Returns True if anything changed."""
        if spec == self._spec:
            return False
        self._spec = spec
        for listener in list(self._listeners):
            listener(spec)
        return True

    def update_filters(self, **changes: Any) -> bool:
        """Change filter fields; the page goes back to the first one."""
        return self.set_all(self._spec.with_updates(page=DEFAULT_PAGE, **changes))

    def set_page(self, page: int) -> bool:
        return self.set_all(self._spec.with_updates(page=max(DEFAULT_PAGE, page)))

    def set_sort(self, sort: SortKey) -> bool:
        """Change the ordering; the page goes back to the first one."""
        return self.set_all(self._spec.with_updates(sort=sort, page=DEFAULT_PAGE))

    def reset_filters(self) -> bool:
        """Clear every filter, keeping the current sort."""
        return self.set_all(FilterSpec(sort=self._spec.sort))
