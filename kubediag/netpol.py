"""Analyzer for network policies."""

from __future__ import annotations

from typing import Any

from kubediag.core import Analyzer, Failure, Result, Sensitive, mask_string


class NetworkPolicyAnalyzer:
    """Reports policies that select every pod or no pod at all."""

    kind = "NetworkPolicy"

    def analyze(self, a: Analyzer) -> list[Result]:
        a.metrics.delete_partial_match({"analyzer_name": self.kind})
        found: dict[str, tuple[dict[str, Any], list[Failure]]] = {}

        for policy in a.client.list(self.kind, a.namespace):
            meta = policy["metadata"]
            name = meta["name"]
            namespace = meta.get("namespace", "")
            match_labels = ((policy.get("spec") or {}).get("podSelector") or {}).get("matchLabels") or {}
            failures: list[Failure] = []

            if not match_labels:
                failures.append(
                    Failure(
                        text=f"Network policy allows traffic to all pods: {name}",
                        kubernetes_doc=a.api_doc(self.kind, "spec.podSelector.matchLabels"),
                        sensitive=[Sensitive(name, mask_string(name))],
                    )
                )
            elif not a.client.list("Pod", a.namespace, label_selector=match_labels):
                failures.append(
                    Failure(
                        text=f"Network policy is not applied to any pods: {name}",
                        sensitive=[Sensitive(name, mask_string(name))],
                    )
                )

            if failures:
                found[f"{namespace}/{name}"] = (policy, failures)
                a.metrics.set(self.kind, name, namespace, len(failures))

        new = [Result(self.kind, key, failures) for key, (_, failures) in found.items()]
        return [*a.results, *new]