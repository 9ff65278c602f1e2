"""Analyzer for mutating admission webhooks."""

from __future__ import annotations

from typing import Any

from kubediag.core import (
    Analyzer,
    Failure,
    NotFoundError,
    Result,
    Sensitive,
    get_parent,
    map_to_string,
    mask_string,
)


class MutatingWebhookAnalyzer:
    """Reports webhooks whose backing service or receiver pods are missing or inactive."""

    kind = "MutatingWebhookConfiguration"

    def analyze(self, a: Analyzer) -> list[Result]:
        a.metrics.delete_partial_match({"analyzer_name": self.kind})
        found: dict[str, tuple[dict[str, Any], list[Failure]]] = {}
        service_doc = a.api_doc(self.kind, "spec.webhook.clientConfig.service")

        for config in a.client.list(self.kind):
            config_namespace = config["metadata"].get("namespace", "")
            for webhook in config.get("webhooks") or []:
                ref = (webhook.get("clientConfig") or {}).get("service")
                if ref is None:
                    continue
                webhook_name = webhook.get("name", "")
                svc_name = ref.get("name", "")
                svc_namespace = ref.get("namespace", "")
                key = f"{config_namespace}/{webhook_name}"
                failures: list[Failure] = []

                try:
                    service = a.client.get("Service", svc_namespace, svc_name)
                except NotFoundError:
                    failures.append(
                        Failure(
                            text=f"Service {svc_name} not found as mapped to by Mutating Webhook {webhook_name}",
                            kubernetes_doc=service_doc,
                            sensitive=[
                                Sensitive(config_namespace, mask_string(config_namespace)),
                                Sensitive(svc_name, mask_string(svc_name)),
                            ],
                        )
                    )
                    found[key] = (config, failures)
                    a.metrics.set(self.kind, webhook_name, config_namespace, len(failures))
                    continue

                selector = (service.get("spec") or {}).get("selector") or {}
                if not selector:
                    continue
                pods = a.client.list("Pod", svc_namespace, label_selector=map_to_string(selector))

                if not pods:
                    failures.append(
                        Failure(
                            text=(
                                f"No active pods found within service {svc_name} "
                                f"as mapped to by Mutating Webhook {webhook_name}"
                            ),
                            kubernetes_doc=service_doc,
                            sensitive=[Sensitive(config_namespace, mask_string(config_namespace))],
                        )
                    )
                for pod in pods:
                    if (pod.get("status") or {}).get("phase") == "Running":
                        continue
                    pod_name = pod["metadata"]["name"]
                    failures.append(
                        Failure(
                            text=(
                                f"Mutating Webhook ({webhook_name}) is pointing to an "
                                f"inactive receiver pod ({pod_name})"
                            ),
                            kubernetes_doc=a.api_doc(self.kind, "spec.webhook"),
                            sensitive=[
                                Sensitive(config_namespace, mask_string(config_namespace)),
                                Sensitive(webhook_name, mask_string(webhook_name)),
                                Sensitive(pod_name, mask_string(pod_name)),
                            ],
                        )
                    )

                if failures:
                    found[key] = (config, failures)
                    a.metrics.set(self.kind, webhook_name, config_namespace, len(failures))

        new = [
            Result(self.kind, key, failures, get_parent(a.client, config["metadata"]))
            for key, (config, failures) in found.items()
        ]
        return [*a.results, *new]