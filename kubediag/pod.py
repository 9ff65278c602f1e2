"""Analyzer for pods and their containers."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from kubediag.core import Analyzer, Failure, Result, fetch_latest_event, get_parent

_ERROR_REASONS = frozenset(
    {
        "CrashLoopBackOff",
        "ImagePullBackOff",
        "CreateContainerConfigError",
        "PreCreateHookError",
        "CreateContainerError",
        "PreStartHookError",
        "RunContainerError",
        "ImageInspectError",
        "ErrImagePull",
        "ErrImageNeverPull",
        "InvalidImageName",
    }
)

_EVENT_ERROR_REASONS = frozenset({"FailedCreatePodSandBox", "FailedMount"})


def is_error_reason(reason: str) -> bool:
    """True for a container waiting reason that means the container is failing."""
    return reason in _ERROR_REASONS


def is_event_error_reason(reason: str) -> bool:
    """True for an event reason that explains a container stuck in creation."""
    return reason in _EVENT_ERROR_REASONS


def _unschedulable_failures(status: dict[str, Any]) -> list[Failure]:
    if status.get("phase") != "Pending":
        return []
    return [
        Failure(text=condition["message"])
        for condition in status.get("conditions") or []
        if condition.get("type") == "PodScheduled"
        and condition.get("reason") == "Unschedulable"
        and condition.get("message")
    ]


def _container_failures(
    a: Analyzer,
    statuses: Iterable[dict[str, Any]],
    pod_name: str,
    namespace: str,
    phase: str,
) -> list[Failure]:
    failures: list[Failure] = []
    for container in statuses:
        waiting = (container.get("state") or {}).get("waiting")
        if waiting is not None:
            reason = waiting.get("reason", "")
            message = waiting.get("message", "")
            terminated = (container.get("lastState") or {}).get("terminated")
            if reason == "ContainerCreating" and phase == "Pending":
                event = fetch_latest_event(a.client, namespace, pod_name)
                if event is None:
                    continue
                if is_event_error_reason(event.get("reason", "")) and event.get("message"):
                    failures.append(Failure(text=event["message"]))
            elif reason == "CrashLoopBackOff" and terminated is not None:
                failures.append(
                    Failure(
                        text=(
                            f"the last termination reason is {terminated.get('reason', '')} "
                            f"container={container.get('name', '')} pod={pod_name}"
                        )
                    )
                )
            elif is_error_reason(reason) and message:
                failures.append(Failure(text=message))
        elif not container.get("ready", False) and phase == "Running":
            event = fetch_latest_event(a.client, namespace, pod_name)
            if event is None:
                continue
            if event.get("reason") == "Unhealthy" and event.get("message"):
                failures.append(Failure(text=event["message"]))
    return failures


class PodAnalyzer:
    """Reports pods that cannot be scheduled and containers that fail."""

    kind = "Pod"

    def analyze(self, a: Analyzer) -> list[Result]:
        a.metrics.delete_partial_match({"analyzer_name": self.kind})
        found: dict[str, tuple[dict[str, Any], list[Failure]]] = {}

        for pod in a.client.list(self.kind, a.namespace):
            meta = pod["metadata"]
            name = meta["name"]
            namespace = meta.get("namespace", "")
            status = pod.get("status") or {}
            phase = status.get("phase", "")

            failures = [
                *_unschedulable_failures(status),
                *_container_failures(a, status.get("initContainerStatuses") or [], name, namespace, phase),
                *_container_failures(a, status.get("containerStatuses") or [], name, namespace, phase),
            ]
            if failures:
                found[f"{namespace}/{name}"] = (pod, failures)
                a.metrics.set(self.kind, name, namespace, len(failures))

        new = [
            Result(self.kind, key, failures, get_parent(a.client, pod["metadata"]))
            for key, (pod, failures) in found.items()
        ]
        return [*a.results, *new]