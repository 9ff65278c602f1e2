"""Analyzer for ingresses."""

from __future__ import annotations

from typing import Any

from kubediag.core import Analyzer, Cluster, Failure, NotFoundError, Result, Sensitive, get_parent, mask_string

INGRESS_CLASS_ANNOTATION = "kubernetes.io/ingress.class"


def _exists(client: Cluster, kind: str, namespace: str | None, name: str) -> bool:
    try:
        client.get(kind, namespace, name)
    except NotFoundError:
        return False
    return True


def _backend_service_names(spec: dict[str, Any]) -> list[str]:
    return [
        ((path.get("backend") or {}).get("service") or {}).get("name", "")
        for rule in spec.get("rules") or []
        if rule.get("http") is not None
        for path in rule["http"].get("paths") or []
    ]


class IngressAnalyzer:
    """Reports ingresses with missing classes, backend services or TLS secrets."""

    kind = "Ingress"

    def analyze(self, a: Analyzer) -> list[Result]:
        a.metrics.delete_partial_match({"analyzer_name": self.kind})
        found: dict[str, tuple[dict[str, Any], list[Failure]]] = {}

        for ing in a.client.list(self.kind, a.namespace):
            meta = ing["metadata"]
            name = meta["name"]
            namespace = meta.get("namespace", "")
            spec = ing.get("spec") or {}
            failures: list[Failure] = []

            class_name = spec.get("ingressClassName")
            if class_name is None:
                annotated = (meta.get("annotations") or {}).get(INGRESS_CLASS_ANNOTATION, "")
                if annotated:
                    class_name = annotated
                else:
                    failures.append(
                        Failure(
                            text=f"Ingress {namespace}/{name} does not specify an Ingress class.",
                            kubernetes_doc=a.api_doc(self.kind, "spec.ingressClassName"),
                            sensitive=[
                                Sensitive(namespace, mask_string(namespace)),
                                Sensitive(name, mask_string(name)),
                            ],
                        )
                    )

            if class_name is not None and not _exists(a.client, "IngressClass", None, class_name):
                failures.append(
                    Failure(
                        text=f"Ingress uses the ingress class {class_name} which does not exist.",
                        kubernetes_doc=a.api_doc(self.kind, "spec.ingressClassName"),
                        sensitive=[Sensitive(class_name, mask_string(class_name))],
                    )
                )

            for service_name in _backend_service_names(spec):
                if _exists(a.client, "Service", namespace, service_name):
                    continue
                failures.append(
                    Failure(
                        text=f"Ingress uses the service {namespace}/{service_name} which does not exist.",
                        kubernetes_doc=a.api_doc(self.kind, "spec.rules.http.paths.backend.service"),
                        sensitive=[
                            Sensitive(namespace, mask_string(namespace)),
                            Sensitive(service_name, mask_string(service_name)),
                        ],
                    )
                )

            for tls in spec.get("tls") or []:
                secret_name = tls.get("secretName", "")
                if _exists(a.client, "Secret", namespace, secret_name):
                    continue
                failures.append(
                    Failure(
                        text=(
                            f"Ingress uses the secret {namespace}/{secret_name} "
                            "as a TLS certificate which does not exist."
                        ),
                        kubernetes_doc=a.api_doc(self.kind, "spec.tls.secretName"),
                        sensitive=[
                            Sensitive(namespace, mask_string(namespace)),
                            Sensitive(secret_name, mask_string(secret_name)),
                        ],
                    )
                )

            if failures:
                found[f"{namespace}/{name}"] = (ing, failures)
                a.metrics.set(self.kind, name, namespace, len(failures))

        new = [
            Result(self.kind, key, failures, get_parent(a.client, ing["metadata"]))
            for key, (ing, failures) in found.items()
        ]
        return [*a.results, *new]