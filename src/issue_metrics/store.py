"""In-memory collaborators: component tree, measure sink, row provider, period classifier.

These are complete implementations of the protocols in protocols.py, used
by tests and by hosts that already hold everything in memory.

Usage:
    store = InMemoryComponentStore.from_tree({"prj": {"src": {"a.py": {}, "b.py": {}}}})
    measures = MeasureRepository()
    measures.put(store.get("src/a.py"), catalog.by_key(MetricKey.BUGS), 3)
"""

from __future__ import annotations

import threading
from typing import Any, Iterable, Mapping, Optional, Sequence

from .exceptions import MeasureAlreadySetError, UnknownComponentError
from .metrics import MetricKey, MetricMeta, MetricRef, to_key
from .models import Component, Issue, IssueGroupRow, IssueImpactGroupRow, Qualifier


class InMemoryComponentStore:
    """Component tree held in a dict keyed by component key."""

    def __init__(self, components: Iterable[Component], root: Optional[str] = None) -> None:
        self._components: dict[str, Component] = {}
        for component in components:
            self._components[component.key] = component
        self._root = root

    @classmethod
    def from_tree(cls, tree: Mapping[str, Mapping], separator: str = "/") -> InMemoryComponentStore:
        """Build from a nested mapping with a single root.

        Child keys are joined to their parent path with `separator`, except
        under the root whose key stays bare. Empty mappings are files.
        """
        if len(tree) != 1:
            raise ValueError("tree must have exactly one root")
        components: list[Component] = []

        def build(key: str, subtree: Mapping, qualifier: Qualifier, prefix: str) -> None:
            child_keys = []
            for name, child in subtree.items():
                child_key = f"{prefix}{name}"
                child_keys.append(child_key)
                build(
                    child_key,
                    child,
                    Qualifier.DIRECTORY if child else Qualifier.FILE,
                    f"{child_key}{separator}",
                )
            components.append(Component(key=key, children=tuple(child_keys), qualifier=qualifier))

        ((root_key, root_tree),) = tree.items()
        build(root_key, root_tree, Qualifier.PROJECT, "")
        return cls(components, root=root_key)

    @classmethod
    def from_parent_map(cls, parents: Mapping[str, Optional[str]]) -> InMemoryComponentStore:
        """Build from a child -> parent mapping; the single root maps to None.

        Children keep the mapping's insertion order.
        """
        roots = [key for key, parent in parents.items() if parent is None]
        if len(roots) != 1:
            raise ValueError(f"expected exactly one root, got {len(roots)}")
        children: dict[str, list[str]] = {key: [] for key in parents}
        for key, parent in parents.items():
            if parent is None:
                continue
            if parent not in children:
                raise UnknownComponentError(parent)
            children[parent].append(key)

        def qualifier(key: str) -> Qualifier:
            if key == roots[0]:
                return Qualifier.PROJECT
            return Qualifier.DIRECTORY if children[key] else Qualifier.FILE

        components = [
            Component(key=key, children=tuple(kids), qualifier=qualifier(key))
            for key, kids in children.items()
        ]
        return cls(components, root=roots[0])

    @property
    def root(self) -> Component:
        if self._root is None:
            raise UnknownComponentError("<root>")
        return self.get(self._root)

    def get(self, key: str) -> Component:
        try:
            return self._components[key]
        except KeyError:
            raise UnknownComponentError(key) from None

    def children(self, component: Component) -> Sequence[Component]:
        return [self.get(key) for key in component.children]

    def is_leaf(self, component: Component) -> bool:
        return component.is_leaf

    def __len__(self) -> int:
        return len(self._components)

    def __contains__(self, key: object) -> bool:
        return key in self._components


class MeasureRepository:
    """Write-once measure sink. A second write in the same pass is a contract violation."""

    def __init__(self) -> None:
        self._measures: dict[tuple[str, MetricKey], Any] = {}
        self._lock = threading.Lock()

    def put(self, component: Component, metric: MetricMeta, value: Any) -> None:
        entry = (component.key, metric.key)
        with self._lock:
            if entry in self._measures:
                raise MeasureAlreadySetError(component.key, metric.key.value)
            self._measures[entry] = value

    def get(self, component: str, metric: MetricRef, default: Any = None) -> Any:
        return self._measures.get((component, to_key(metric)), default)

    def has(self, component: str, metric: MetricRef) -> bool:
        return (component, to_key(metric)) in self._measures

    def measures_for(self, component: str) -> dict[MetricKey, Any]:
        """All measures of one component, keyed by metric."""
        return {m: v for (c, m), v in self._measures.items() if c == component}

    def __len__(self) -> int:
        return len(self._measures)


class StaticRawDataProvider:
    """Rows and input measures registered per component key. Unknown keys have none."""

    def __init__(
        self,
        rows: Optional[Mapping[str, Sequence[IssueGroupRow]]] = None,
        impact_rows: Optional[Mapping[str, Sequence[IssueImpactGroupRow]]] = None,
        inputs: Optional[Mapping[str, Mapping[MetricRef, Any]]] = None,
    ) -> None:
        self._rows = {k: list(v) for k, v in (rows or {}).items()}
        self._impact_rows = {k: list(v) for k, v in (impact_rows or {}).items()}
        self._inputs = {
            k: {to_key(m): value for m, value in v.items()} for k, v in (inputs or {}).items()
        }

    def issue_group_rows(self, component: Component) -> Sequence[IssueGroupRow]:
        return self._rows.get(component.key, [])

    def issue_impact_group_rows(self, component: Component) -> Sequence[IssueImpactGroupRow]:
        return self._impact_rows.get(component.key, [])

    def input_measures(self, component: Component) -> Mapping[MetricKey, Any]:
        return self._inputs.get(component.key, {})


class SetPeriodClassifier:
    """Issues are new when their key is listed for the component."""

    def __init__(
        self, new_issues: Optional[Mapping[str, Iterable[str]]] = None, enabled: bool = True
    ) -> None:
        self._new = {k: frozenset(v) for k, v in (new_issues or {}).items()}
        self._enabled = enabled

    def is_new(self, component: Component, issue: Issue) -> bool:
        return issue.key in self._new.get(component.key, ())

    def is_enabled(self) -> bool:
        return self._enabled
