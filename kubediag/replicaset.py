"""Analyzer for replica sets."""

from __future__ import annotations

from typing import Any

from kubediag.core import Analyzer, Failure, Result, get_parent


class ReplicaSetAnalyzer:
    """Reports empty replica sets whose pods could not be created."""

    kind = "ReplicaSet"

    def analyze(self, a: Analyzer) -> list[Result]:
        a.metrics.delete_partial_match({"analyzer_name": self.kind})
        found: dict[str, tuple[dict[str, Any], list[Failure]]] = {}

        for rs in a.client.list(self.kind, a.namespace):
            meta = rs["metadata"]
            status = rs.get("status") or {}
            failures: list[Failure] = []
            if status.get("replicas", 0) == 0:
                failures = [
                    Failure(text=condition.get("message", ""))
                    for condition in status.get("conditions") or []
                    if condition.get("type") == "ReplicaFailure" and condition.get("reason") == "FailedCreate"
                ]
            if failures:
                namespace = meta.get("namespace", "")
                found[f"{namespace}/{meta['name']}"] = (rs, failures)
                a.metrics.set(self.kind, meta["name"], namespace, len(failures))

        new = [
            Result(self.kind, key, failures, get_parent(a.client, rs["metadata"]))
            for key, (rs, failures) in found.items()
        ]
        return [*a.results, *new]