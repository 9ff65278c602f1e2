"""Analyzer that scans recent container logs for errors."""

from __future__ import annotations

import re
from typing import Any

from kubediag.core import Analyzer, Failure, NotFoundError, Result, Sensitive, get_parent, mask_string

ERROR_PATTERN = re.compile(r"(error|exception|fail)")
TAIL_LINES = 100


def first_error_line(logs: str) -> str:
    """The first line that mentions an error, ignoring case, or an empty string."""
    return next((line for line in logs.split("\n") if ERROR_PATTERN.search(line.lower())), "")


class LogAnalyzer:
    """Reports containers whose latest log lines mention errors."""

    kind = "Log"

    def analyze(self, a: Analyzer) -> list[Result]:
        a.metrics.delete_partial_match({"analyzer_name": self.kind})
        found: dict[str, tuple[dict[str, Any], list[Failure]]] = {}

        for pod in a.client.list("Pod", a.namespace):
            meta = pod["metadata"]
            pod_name = meta["name"]
            namespace = meta.get("namespace", "")
            for container in (pod.get("spec") or {}).get("containers") or []:
                container_name = container.get("name", "")
                failures: list[Failure] = []
                try:
                    logs = a.client.get_logs(namespace, pod_name, container_name, tail_lines=TAIL_LINES)
                except NotFoundError as err:
                    failures.append(
                        Failure(
                            text=f"Error {err} from Pod {pod_name}",
                            sensitive=[Sensitive(pod_name, mask_string(pod_name))],
                        )
                    )
                else:
                    if ERROR_PATTERN.search(logs.lower()):
                        failures.append(
                            Failure(
                                text=first_error_line(logs),
                                sensitive=[Sensitive(pod_name, mask_string(pod_name))],
                            )
                        )

                if failures:
                    found[f"{namespace}/{pod_name}/{container_name}"] = (pod, failures)
                    a.metrics.set(self.kind, pod_name, namespace, len(failures))

        new = [
            Result("Pod", key, failures, get_parent(a.client, pod["metadata"]))
            for key, (pod, failures) in found.items()
        ]
        return [*a.results, *new]