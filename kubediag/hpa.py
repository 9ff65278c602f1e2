"""Analyzer for horizontal pod autoscalers."""

from __future__ import annotations

from typing import Any

from kubediag.core import Analyzer, Failure, NotFoundError, Result, Sensitive, get_parent, mask_string

SCALE_TARGET_KINDS = frozenset({"Deployment", "ReplicationController", "ReplicaSet", "StatefulSet"})


def _pod_spec(workload: dict[str, Any]) -> dict[str, Any]:
    return (((workload.get("spec") or {}).get("template") or {}).get("spec")) or {}


def _configured_containers(pod_spec: dict[str, Any]) -> int:
    """Number of containers that declare both resource requests and limits."""
    containers = pod_spec.get("containers") or []
    return sum(
        1
        for container in containers
        if (container.get("resources") or {}).get("requests") is not None
        and (container.get("resources") or {}).get("limits") is not None
    )


class HpaAnalyzer:
    """Reports autoscalers whose scale target is missing or has no resources configured."""

    kind = "HorizontalPodAutoscaler"

    def analyze(self, a: Analyzer) -> list[Result]:
        a.metrics.delete_partial_match({"analyzer_name": self.kind})
        found: dict[str, tuple[dict[str, Any], list[Failure]]] = {}

        for hpa in a.client.list(self.kind, a.namespace):
            meta = hpa["metadata"]
            name = meta["name"]
            namespace = meta.get("namespace", "")
            target = (hpa.get("spec") or {}).get("scaleTargetRef") or {}
            target_kind = target.get("kind", "")
            target_name = target.get("name", "")
            failures: list[Failure] = []

            workload: dict[str, Any] | None = None
            if target_kind in SCALE_TARGET_KINDS:
                try:
                    workload = a.client.get(target_kind, namespace, target_name)
                except NotFoundError:
                    workload = None
            else:
                failures.append(
                    Failure(
                        text=(
                            f"HorizontalPodAutoscaler uses {target_kind} as ScaleTargetRef "
                            "which is not an option."
                        )
                    )
                )

            if workload is None:
                failures.append(
                    Failure(
                        text=(
                            f"HorizontalPodAutoscaler uses {target_kind}/{target_name} as "
                            "ScaleTargetRef which does not exist."
                        ),
                        kubernetes_doc=a.api_doc(self.kind, "spec.scaleTargetRef"),
                        sensitive=[Sensitive(target_name, mask_string(target_name))],
                    )
                )
            elif _configured_containers(_pod_spec(workload)) <= 0:
                failures.append(
                    Failure(
                        text=f"{target_kind} {a.namespace}/{target_name} does not have resource configured.",
                        kubernetes_doc=a.api_doc(self.kind, "spec.scaleTargetRef.kind"),
                        sensitive=[Sensitive(target_name, mask_string(target_name))],
                    )
                )

            if failures:
                found[f"{namespace}/{name}"] = (hpa, failures)
                a.metrics.set(self.kind, name, namespace, len(failures))

        new = [
            Result(self.kind, key, failures, get_parent(a.client, hpa["metadata"]))
            for key, (hpa, failures) in found.items()
        ]
        return [*a.results, *new]