"""Analyzer for Gateway API gateways."""

from __future__ import annotations

from typing import Any

from kubediag.core import Analyzer, Failure, NotFoundError, Result, Sensitive, mask_string


def _first_condition(obj: dict[str, Any]) -> dict[str, Any]:
    conditions = (obj.get("status") or {}).get("conditions") or []
    return conditions[0] if conditions else {}


class GatewayAnalyzer:
    """Reports gateways whose class is missing or that are not accepted."""

    kind = "Gateway"

    def analyze(self, a: Analyzer) -> list[Result]:
        a.metrics.delete_partial_match({"analyzer_name": self.kind})
        found: dict[str, list[Failure]] = {}

        for gateway in a.client.list(self.kind):
            meta = gateway["metadata"]
            name = meta["name"]
            namespace = meta.get("namespace", "")
            class_name = (gateway.get("spec") or {}).get("gatewayClassName", "")
            failures: list[Failure] = []

            try:
                a.client.get("GatewayClass", namespace, class_name)
            except NotFoundError:
                failures.append(
                    Failure(
                        text=f"Gateway uses the GatewayClass {class_name} which does not exist.",
                        sensitive=[Sensitive(class_name, mask_string(class_name))],
                    )
                )

            condition = _first_condition(gateway)
            if condition.get("status") != "True":
                failures.append(
                    Failure(
                        text=(
                            f"Gateway '{namespace}/{name}' is not accepted. "
                            f"Message: '{condition.get('message', '')}'."
                        ),
                        sensitive=[
                            Sensitive(namespace, mask_string(namespace)),
                            Sensitive(name, mask_string(name)),
                        ],
                    )
                )

            if failures:
                found[f"{namespace}/{name}"] = failures
                a.metrics.set(self.kind, name, namespace, len(failures))

        new = [Result(self.kind, key, failures) for key, failures in found.items()]
        return [*a.results, *new]