"""Tree traversal and the child-to-parent hand-off table.

Both engines finalise a component, put its results into a HandoffTable
under the component key, and let the parent take them when it is
processed. The table is the only mutable state shared between components,
so it is the only thing guarded by a lock.

Orders:
    post_order    children before parents, children in store order
    height_waves  leaves first, grouped so a wave only depends on earlier waves
"""

from __future__ import annotations

import threading
from typing import Callable, Generic, Iterable, Iterator, Protocol, TypeVar

from .exceptions import TraversalOrderError
from .logging_config import get_logger
from .models import Component, Issue
from .protocols import ComponentStore

logger = get_logger(__name__)

T = TypeVar("T")


class HandoffTable(Generic[T]):
    """Thread-safe put-once / take-once mapping keyed by component key."""

    def __init__(self) -> None:
        self._entries: dict[str, T] = {}
        self._lock = threading.Lock()

    def put(self, key: str, value: T) -> None:
        with self._lock:
            if key in self._entries:
                raise TraversalOrderError(key, "component finalised twice")
            self._entries[key] = value

    def take(self, key: str, parent: str | None = None) -> T:
        """Remove and return the entry of a finalised component."""
        with self._lock:
            try:
                return self._entries.pop(key)
            except KeyError:
                logger.error("No finalised entry for %s (parent %s)", key, parent)
                raise TraversalOrderError(
                    key, "child was not finalised before its parent", parent=parent
                ) from None

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> int:
        """Drop every entry. Returns how many were left."""
        with self._lock:
            left = len(self._entries)
            self._entries.clear()
            return left


def post_order(store: ComponentStore, root: Component) -> Iterator[Component]:
    """Depth-first post-order, iterative so deep trees do not hit the recursion limit."""
    stack: list[tuple[Component, bool]] = [(root, False)]
    while stack:
        component, expanded = stack.pop()
        if expanded or store.is_leaf(component):
            yield component
            continue
        stack.append((component, True))
        for child in reversed(list(store.children(component))):
            stack.append((child, False))


def height_waves(store: ComponentStore, root: Component) -> list[list[Component]]:
    """Group components by height: leaves in wave 0, a parent one above its tallest child."""
    heights: dict[str, int] = {}
    waves: list[list[Component]] = []
    for component in post_order(store, root):
        if store.is_leaf(component):
            height = 0
        else:
            height = 1 + max(heights[child.key] for child in store.children(component))
        heights[component.key] = height
        while len(waves) <= height:
            waves.append([])
        waves[height].append(component)
    return waves


class ComponentVisitor(Protocol):
    """Callbacks driven by crawl()."""

    def on_enter_component(self, component: Component) -> None: ...

    def on_issue(self, component: Component, issue: Issue) -> None: ...

    def on_leave_component(self, component: Component) -> None: ...


def crawl(
    store: ComponentStore,
    root: Component,
    visitor: ComponentVisitor,
    issues_for: Callable[[Component], Iterable[Issue]],
) -> int:
    """Drive a visitor over the tree in post-order. Returns the number of components visited."""
    visited = 0
    for component in post_order(store, root):
        visitor.on_enter_component(component)
        for issue in issues_for(component):
            visitor.on_issue(component, issue)
        visitor.on_leave_component(component)
        visited += 1
        logger.debug("Visited %s", component.key)
    return visited
