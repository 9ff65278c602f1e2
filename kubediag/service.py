"""Analyzer for services and their endpoints."""

from __future__ import annotations

import logging
from typing import Any

from kubediag.core import Analyzer, Failure, NotFoundError, Result, Sensitive, get_parent, mask_string

LEADER_ELECTION_ANNOTATION = "control-plane.alpha.kubernetes.io/leader"

logger = logging.getLogger(__name__)


class ServiceAnalyzer:
    """Reports services without endpoints and endpoints that are not ready."""

    kind = "Service"

    def analyze(self, a: Analyzer) -> list[Result]:
        a.metrics.delete_partial_match({"analyzer_name": self.kind})
        found: dict[str, tuple[dict[str, Any], list[Failure]]] = {}
        doc_kind = self.kind

        for endpoints in a.client.list("Endpoints", a.namespace):
            meta = endpoints["metadata"]
            name = meta["name"]
            namespace = meta.get("namespace", "")
            subsets = endpoints.get("subsets") or []
            failures: list[Failure] = []

            if not subsets:
                if LEADER_ELECTION_ANNOTATION in (meta.get("annotations") or {}):
                    continue
                try:
                    service = a.client.get(self.kind, namespace, name)
                except NotFoundError:
                    logger.warning("Service %s/%s does not exist", namespace, name)
                    continue
                selector = (service.get("spec") or {}).get("selector") or {}
                failures = [
                    Failure(
                        text=f"Service has no endpoints, expected label {key}={value}",
                        kubernetes_doc=a.api_doc(doc_kind, "spec.selector"),
                        sensitive=[Sensitive(key, mask_string(key)), Sensitive(value, mask_string(value))],
                    )
                    for key, value in selector.items()
                ]
            else:
                doc_kind = "Endpoints"
                pods = [
                    f"{(address.get('targetRef') or {}).get('kind', '')}/"
                    f"{(address.get('targetRef') or {}).get('name', '')}"
                    for subset in subsets
                    for address in subset.get("notReadyAddresses") or []
                ]
                if pods:
                    failures.append(
                        Failure(
                            text=f"Service has not ready endpoints, pods: [{' '.join(pods)}], expected {len(pods)}",
                            kubernetes_doc=a.api_doc(doc_kind, "subsets.notReadyAddresses"),
                        )
                    )

            if failures:
                found[f"{namespace}/{name}"] = (endpoints, failures)
                a.metrics.set(self.kind, name, namespace, len(failures))

        new = [
            Result(self.kind, key, failures, get_parent(a.client, ep["metadata"]))
            for key, (ep, failures) in found.items()
        ]
        return [*a.results, *new]