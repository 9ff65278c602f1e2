"""Analyzer for persistent volume claims."""

from __future__ import annotations

from typing import Any

from kubediag.core import Analyzer, Failure, Result, fetch_latest_event, get_parent


class PvcAnalyzer:
    """Reports pending claims whose latest event says provisioning failed."""

    kind = "PersistentVolumeClaim"

    def analyze(self, a: Analyzer) -> list[Result]:
        a.metrics.delete_partial_match({"analyzer_name": self.kind})
        found: dict[str, tuple[dict[str, Any], list[Failure]]] = {}

        for pvc in a.client.list(self.kind, a.namespace):
            meta = pvc["metadata"]
            namespace = meta.get("namespace", "")
            if (pvc.get("status") or {}).get("phase") != "Pending":
                continue
            event = fetch_latest_event(a.client, namespace, meta["name"])
            if event is None:
                continue
            message = event.get("message", "")
            if event.get("reason") == "ProvisioningFailed" and message:
                failures = [Failure(text=message)]
                found[f"{namespace}/{meta['name']}"] = (pvc, failures)
                a.metrics.set(self.kind, meta["name"], namespace, len(failures))

        new = [
            Result(self.kind, key, failures, get_parent(a.client, pvc["metadata"]))
            for key, (pvc, failures) in found.items()
        ]
        return [*a.results, *new]