"""Analyzer for stateful sets."""

from __future__ import annotations

from typing import Any

from kubediag.core import Analyzer, Failure, NotFoundError, Result, Sensitive, get_parent, mask_string


class StatefulSetAnalyzer:
    """Reports stateful sets that point at missing services or storage classes."""

    kind = "StatefulSet"

    def analyze(self, a: Analyzer) -> list[Result]:
        a.metrics.delete_partial_match({"analyzer_name": self.kind})
        found: dict[str, tuple[dict[str, Any], list[Failure]]] = {}

        for sts in a.client.list(self.kind, a.namespace):
            meta = sts["metadata"]
            name = meta["name"]
            namespace = meta.get("namespace", "")
            spec = sts.get("spec") or {}
            failures: list[Failure] = []

            service_name = spec.get("serviceName", "")
            try:
                a.client.get("Service", namespace, service_name)
            except NotFoundError:
                failures.append(
                    Failure(
                        text=f"StatefulSet uses the service {namespace}/{service_name} which does not exist.",
                        kubernetes_doc=a.api_doc(self.kind, "spec.serviceName"),
                        sensitive=[
                            Sensitive(namespace, mask_string(namespace)),
                            Sensitive(service_name, mask_string(service_name)),
                        ],
                    )
                )

            for template in spec.get("volumeClaimTemplates") or []:
                storage_class = (template.get("spec") or {}).get("storageClassName")
                if storage_class is None:
                    continue
                try:
                    a.client.get("StorageClass", None, storage_class)
                except NotFoundError:
                    failures.append(
                        Failure(
                            text=f"StatefulSet uses the storage class {storage_class} which does not exist.",
                            sensitive=[Sensitive(storage_class, mask_string(storage_class))],
                        )
                    )

            if failures:
                found[f"{namespace}/{name}"] = (sts, failures)
                a.metrics.set(self.kind, name, namespace, len(failures))

        new = [
            Result(self.kind, key, failures, get_parent(a.client, sts["metadata"]))
            for key, (sts, failures) in found.items()
        ]
        return [*a.results, *new]