"""Analyzer for node conditions."""

from __future__ import annotations

from typing import Any

from kubediag.core import Analyzer, Failure, Result, Sensitive, get_parent, mask_string


def _is_unhealthy(condition: dict[str, Any]) -> bool:
    status = condition.get("status", "")
    if condition.get("type") == "Ready":
        return status != "True"
    return status != "False"


def _condition_failure(node_name: str, condition: dict[str, Any]) -> Failure:
    return Failure(
        text=(
            f"{node_name} has condition of type {condition.get('type', '')}, "
            f"reason {condition.get('reason', '')}: {condition.get('message', '')}"
        ),
        sensitive=[Sensitive(node_name, mask_string(node_name))],
    )


class NodeAnalyzer:
    """Reports nodes that are not ready or report pressure conditions."""

    kind = "Node"

    def analyze(self, a: Analyzer) -> list[Result]:
        a.metrics.delete_partial_match({"analyzer_name": self.kind})
        found: dict[str, tuple[dict[str, Any], list[Failure]]] = {}

        for node in a.client.list(self.kind):
            name = node["metadata"]["name"]
            conditions = (node.get("status") or {}).get("conditions") or []
            failures = [_condition_failure(name, c) for c in conditions if _is_unhealthy(c)]
            if failures:
                found[name] = (node, failures)
                a.metrics.set(self.kind, name, "", len(failures))

        new = [
            Result(self.kind, key, failures, get_parent(a.client, node["metadata"]))
            for key, (node, failures) in found.items()
        ]
        return [*a.results, *new]