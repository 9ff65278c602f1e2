"""Shared building blocks: findings, metrics, an in-memory cluster and helpers."""

from __future__ import annotations

import copy
import secrets
import string
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

KubeObject = dict[str, Any]

_MASK_ALPHABET = string.digits + string.ascii_uppercase + string.ascii_lowercase
_GAUGE_LABELS = ("analyzer_name", "object_name", "namespace")
_ZERO_TIME = datetime.min.replace(tzinfo=timezone.utc)

CLUSTER_SCOPED_KINDS = frozenset(
    {
        "Node",
        "Namespace",
        "PersistentVolume",
        "StorageClass",
        "IngressClass",
        "GatewayClass",
        "MutatingWebhookConfiguration",
        "ValidatingWebhookConfiguration",
        "ClusterRole",
        "ClusterRoleBinding",
        "CustomResourceDefinition",
    }
)


class NotFoundError(LookupError):
    """Raised when a requested object or log stream does not exist."""

    def __init__(self, kind: str, name: str, namespace: str = "") -> None:
        where = f" in namespace {namespace}" if namespace else ""
        super().__init__(f'{kind} "{name}" not found{where}')
        self.kind = kind
        self.name = name
        self.namespace = namespace


@dataclass(frozen=True)
class Sensitive:
    """A value that may be masked before a finding leaves the process."""

    unmasked: str
    masked: str


@dataclass
class Failure:
    """One problem found on an object."""

    text: str
    kubernetes_doc: str = ""
    sensitive: list[Sensitive] = field(default_factory=list)


@dataclass
class Result:
    """All problems found on one object."""

    kind: str
    name: str
    errors: list[Failure] = field(default_factory=list)
    parent_object: str = ""


class ErrorGauge:
    """Number of failures per analyzer, object and namespace."""

    def __init__(self) -> None:
        self._values: dict[tuple[str, str, str], float] = {}

    def set(self, analyzer_name: str, object_name: str, namespace: str, value: float) -> None:
        self._values[(analyzer_name, object_name, namespace)] = float(value)

    def get(self, analyzer_name: str, object_name: str, namespace: str) -> float | None:
        return self._values.get((analyzer_name, object_name, namespace))

    def delete_partial_match(self, labels: Mapping[str, str]) -> int:
        """Drop every series whose labels include all of ``labels``; return how many."""
        unknown = set(labels) - set(_GAUGE_LABELS)
        if unknown:
            raise ValueError(f"unknown gauge labels: {', '.join(sorted(unknown))}")
        doomed = [
            key
            for key in self._values
            if all(dict(zip(_GAUGE_LABELS, key))[label] == value for label, value in labels.items())
        ]
        for key in doomed:
            del self._values[key]
        return len(doomed)

    def __len__(self) -> int:
        return len(self._values)


ANALYZER_ERRORS = ErrorGauge()


def _parse_selector(selector: Mapping[str, str] | str | None) -> dict[str, str]:
    if selector is None:
        return {}
    if isinstance(selector, Mapping):
        return {str(k): str(v) for k, v in selector.items()}
    pairs: dict[str, str] = {}
    for term in selector.split(","):
        term = term.strip()
        if not term:
            continue
        separator = "==" if "==" in term else "="
        key, found, value = term.partition(separator)
        if not found or not key.strip():
            raise ValueError(f"invalid selector term: {term!r}")
        pairs[key.strip()] = value.strip()
    return pairs


def _lookup(obj: Mapping[str, Any], path: str) -> str:
    current: Any = obj
    for part in path.split("."):
        if not isinstance(current, Mapping):
            return ""
        current = current.get(part)
    return "" if current is None else str(current)


class Cluster:
    """An in-memory store of cluster objects, addressed like an API server."""

    def __init__(self, *objects: Mapping[str, Any]) -> None:
        self._objects: dict[tuple[str, str, str], KubeObject] = {}
        self._logs: dict[tuple[str, str, str], str] = {}
        self.add(*objects)

    @staticmethod
    def _key(kind: str, namespace: str | None, name: str) -> tuple[str, str, str]:
        scope = "" if kind in CLUSTER_SCOPED_KINDS else (namespace or "")
        return (kind, scope, name)

    def add(self, *args: Mapping[str, Any]) -> None:
        for obj in args:
            kind = obj.get("kind")
            meta = obj.get("metadata") or {}
            name = meta.get("name")
            if not kind or not name:
                raise ValueError("an object needs a kind and a metadata.name")
            self._objects[self._key(kind, meta.get("namespace"), name)] = copy.deepcopy(dict(obj))

    def get(self, kind: str, namespace: str | None, name: str) -> KubeObject:
        try:
            return self._objects[self._key(kind, namespace, name)]
        except KeyError:
            raise NotFoundError(kind, name, namespace or "") from None

    def list(
        self,
        kind: str,
        namespace: str | None = None,
        label_selector: Mapping[str, str] | str | None = None,
        field_selector: Mapping[str, str] | str | None = None,
    ) -> list[KubeObject]:
        """Objects of ``kind``; an empty namespace means all namespaces."""
        labels = _parse_selector(label_selector)
        fields = _parse_selector(field_selector)
        found = []
        for (obj_kind, _, _), obj in self._objects.items():
            if obj_kind != kind:
                continue
            meta = obj.get("metadata") or {}
            if namespace and kind not in CLUSTER_SCOPED_KINDS and meta.get("namespace", "") != namespace:
                continue
            obj_labels = meta.get("labels") or {}
            if any(obj_labels.get(k) != v for k, v in labels.items()):
                continue
            if any(_lookup(obj, path) != v for path, v in fields.items()):
                continue
            found.append(obj)
        return found

    def set_logs(self, namespace: str, pod: str, container: str, text: str) -> None:
        self._logs[(namespace, pod, container)] = text

    def get_logs(self, namespace: str, pod: str, container: str, tail_lines: int | None = None) -> str:
        try:
            text = self._logs[(namespace, pod, container)]
        except KeyError:
            raise NotFoundError("logs", f"{pod}/{container}", namespace) from None
        if tail_lines is None:
            return text
        if tail_lines <= 0:
            return ""
        return "\n".join(text.splitlines()[-tail_lines:])


@dataclass
class Analyzer:
    """What one analysis run works with."""

    client: Cluster
    namespace: str = ""
    openapi_schema: Mapping[str, Mapping[str, str]] | None = None
    results: list[Result] = field(default_factory=list)
    metrics: ErrorGauge = field(default_factory=lambda: ANALYZER_ERRORS)

    def api_doc(self, kind: str, field: str) -> str:
        """Description of ``field`` on ``kind`` from the schema, or an empty string."""
        if not self.openapi_schema:
            return ""
        return (self.openapi_schema.get(kind) or {}).get(field, "")


def mask_string(value: str) -> str:
    """A random alphanumeric string as long as ``value``."""
    return "".join(secrets.choice(_MASK_ALPHABET) for _ in value)


def labels_include_any(selector: Mapping[str, str] | None, labels: Mapping[str, str] | None) -> bool:
    """True when at least one selector pair appears in ``labels``."""
    labels = labels or {}
    return any(labels.get(key) == value for key, value in (selector or {}).items())


def map_to_string(labels: Mapping[str, str]) -> str:
    """Render labels as a ``key=value,...`` selector string."""
    return ",".join(f"{key}={value}" for key, value in labels.items())


def _timestamp(value: Any) -> datetime:
    if value is None or value == "":
        return _ZERO_TIME
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def fetch_latest_event(client: Cluster, namespace: str, name: str) -> KubeObject | None:
    """The event about ``name`` with the latest ``lastTimestamp``, if any."""
    latest: KubeObject | None = None
    latest_time = _ZERO_TIME
    for event in client.list("Event", namespace, field_selector={"involvedObject.name": name}):
        stamp = _timestamp(event.get("lastTimestamp"))
        if latest is None or stamp > latest_time:
            latest, latest_time = event, stamp
    return latest


def get_parent(client: Cluster, meta: Mapping[str, Any]) -> str:
    """Follow owner references to the top owner, as ``Kind/name``.

    An object without owners is its own parent and yields its name; an owner
    that cannot be found yields an empty string.
    """
    owners = meta.get("ownerReferences") or []
    if not owners:
        return meta.get("name", "")
    owner = owners[0]
    try:
        parent = client.get(owner["kind"], meta.get("namespace", ""), owner["name"])
    except NotFoundError:
        return ""
    parent_meta = parent.get("metadata") or {}
    if parent_meta.get("ownerReferences"):
        return get_parent(client, {**parent_meta, "namespace": parent_meta.get("namespace", meta.get("namespace", ""))})
    return f"{owner['kind']}/{parent_meta.get('name', owner['name'])}"