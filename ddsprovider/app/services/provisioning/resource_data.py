"""
Resource descriptor with change tracking.

A ResourceData holds three layers for one resource: the prior state the
orchestrator persisted after the last apply, the declared configuration for
this apply, and the values a handler set while running. Handlers read
merged values with get(), detect declared changes with has_change(), and
mirror observed values back with set().
"""

from typing import Any, Dict, Iterable, List, Optional, Set, Union

from ddsprovider.app.models.enums import Operation
from ddsprovider.app.schemas.common import FieldSchema


def _normalize(value: Any) -> Any:
    """Collapse empty values to None and unordered collections to sets."""
    if value is None or value == "":
        return None
    if isinstance(value, (list, tuple, set, frozenset)):
        return frozenset(value) if value else None
    if isinstance(value, dict):
        return dict(value) if value else None
    return value


class ResourceData:
    """
    Read/write view of one resource for the duration of a handler call.

    Attributes:
        schema: Field declarations keyed by field name
        is_new_resource: True while the handler chain started from create
    """

    def __init__(
        self,
        schema: Dict[str, FieldSchema],
        config: Optional[Dict[str, Any]] = None,
        state: Optional[Dict[str, Any]] = None,
        resource_id: str = "",
        timeouts: Optional[Dict[Union[Operation, str], float]] = None,
        default_timeouts: Optional[Dict[Operation, float]] = None
    ):
        self.schema = schema
        self.is_new_resource = False
        self._config: Dict[str, Any] = dict(config or {})
        self._prior: Dict[str, Any] = dict(state or {})
        self._set: Dict[str, Any] = {}
        self._id = resource_id or ""
        self._timeouts = {Operation(k): v for k, v in (timeouts or {}).items()}
        self._default_timeouts = dict(default_timeouts or {})
        self._partial = False
        self._committed: Set[str] = set()

    @property
    def id(self) -> str:
        return self._id

    def set_id(self, resource_id: str) -> None:
        self._id = resource_id or ""

    def timeout(self, operation: Operation) -> float:
        """Seconds the given operation may spend waiting on the remote side."""
        if operation in self._timeouts:
            return self._timeouts[operation]
        return self._default_timeouts.get(operation, 0)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Current value of a field.

        Values set by the running handler win, then declared values. Computed
        fields fall back to the prior state when they are not declared.
        """
        if key in self._set:
            return self._set[key]
        declared = self._config.get(key)
        if declared is not None:
            return declared
        field = self.schema.get(key, FieldSchema())
        if field.computed or key not in self.schema:
            return self._prior.get(key, default)
        return default

    def set(self, key: str, value: Any) -> None:
        self._set[key] = value

    def has_change(self, key: str) -> bool:
        """
        True if the declared value differs from the prior state.

        An empty declaration of a computed field counts as undeclared, so
        the server-filled value is kept.
        """
        field = self.schema.get(key, FieldSchema())
        new = _normalize(self._config.get(key))
        if new is None and field.computed:
            return False

        old = _normalize(self._prior.get(key))
        if old == new:
            return False
        if field.diff_suppress and field.diff_suppress(key, old, new, self):
            return False
        return True

    def has_changes(self, *keys: str) -> bool:
        return any(self.has_change(key) for key in keys)

    def changed_fields(self) -> List[str]:
        return [key for key in self.schema if self.has_change(key)]

    def requires_replacement(self) -> List[str]:
        """Changed fields that cannot be updated in place."""
        return [key for key in self.changed_fields() if self.schema[key].force_new]

    def partial(self, enabled: bool) -> None:
        """
        Toggle partial mode.

        While enabled, state() only carries declared values of committed
        fields. Disabling it rebases the prior state onto the merged view,
        which resets change tracking.
        """
        if enabled:
            self._partial = True
            return
        self._prior = self._merged()
        self._set = {}
        self._committed.clear()
        self._partial = False

    def set_partial(self, *keys: str) -> None:
        self._committed.update(keys)

    @property
    def committed(self) -> Set[str]:
        return set(self._committed)

    def state(self) -> Optional[Dict[str, Any]]:
        """
        Values the orchestrator should persist, or None once the resource
        has no identity.
        """
        if not self._id:
            return None
        if not self._partial:
            return self._merged()

        snapshot = dict(self._prior)
        for key in self._committed:
            if key in self._config:
                snapshot[key] = self._config[key]
        return snapshot

    def _merged(self) -> Dict[str, Any]:
        merged = dict(self._prior)
        merged.update({k: v for k, v in self._config.items() if v is not None})
        merged.update(self._set)
        return merged

    def redacted(self, keys: Optional[Iterable[str]] = None) -> Dict[str, Any]:
        """Merged values with sensitive fields masked, for logging."""
        merged = self._merged()
        keys = list(keys) if keys is not None else list(merged)
        result = {}
        for key in keys:
            field = self.schema.get(key, FieldSchema())
            value = merged.get(key)
            result[key] = "***" if field.sensitive and value else value
        return result

    def __repr__(self) -> str:
        return f"ResourceData(id={self._id!r}, changed={self.changed_fields()})"
