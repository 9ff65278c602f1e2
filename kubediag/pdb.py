"""Analyzer for pod disruption budgets."""

from __future__ import annotations

from typing import Any

from kubediag.core import Analyzer, Failure, Result, Sensitive, get_parent, mask_string


class PdbAnalyzer:
    """Reports disruption budgets that currently allow no disruption."""

    kind = "PodDisruptionBudget"

    def analyze(self, a: Analyzer) -> list[Result]:
        a.metrics.delete_partial_match({"analyzer_name": self.kind})
        found: dict[str, tuple[dict[str, Any], list[Failure]]] = {}

        for pdb in a.client.list(self.kind, a.namespace):
            meta = pdb["metadata"]
            conditions = (pdb.get("status") or {}).get("conditions") or []
            if not conditions:
                continue
            first = conditions[0]
            failures: list[Failure] = []
            if first.get("type") == "DisruptionAllowed" and first.get("status") == "False":
                spec = pdb.get("spec") or {}
                doc = ""
                if spec.get("maxUnavailable") is not None:
                    doc = a.api_doc(self.kind, "spec.maxUnavailable")
                if spec.get("minAvailable") is not None:
                    doc = a.api_doc(self.kind, "spec.minAvailable")
                match_labels = (spec.get("selector") or {}).get("matchLabels") or {}
                reason = first.get("reason", "")
                failures = [
                    Failure(
                        text=f"{reason}, expected pdb pod label {key}={value}",
                        kubernetes_doc=doc,
                        sensitive=[Sensitive(key, mask_string(key)), Sensitive(value, mask_string(value))],
                    )
                    for key, value in match_labels.items()
                ]

            if failures:
                namespace = meta.get("namespace", "")
                found[f"{namespace}/{meta['name']}"] = (pdb, failures)
                a.metrics.set(self.kind, meta["name"], namespace, len(failures))

        new = [
            Result(self.kind, key, failures, get_parent(a.client, pdb["metadata"]))
            for key, (pdb, failures) in found.items()
        ]
        return [*a.results, *new]