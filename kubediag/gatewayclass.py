"""Analyzer for Gateway API gateway classes."""

from __future__ import annotations

from kubediag.core import Analyzer, Failure, Result, Sensitive, mask_string


class GatewayClassAnalyzer:
    """Reports gateway classes that their controller has not accepted."""

    kind = "GatewayClass"

    def analyze(self, a: Analyzer) -> list[Result]:
        a.metrics.delete_partial_match({"analyzer_name": self.kind})
        found: dict[str, list[Failure]] = {}

        for gateway_class in a.client.list(self.kind):
            name = gateway_class["metadata"]["name"]
            controller = (gateway_class.get("spec") or {}).get("controllerName", "")
            conditions = (gateway_class.get("status") or {}).get("conditions") or []
            condition = conditions[0] if conditions else {}
            failures: list[Failure] = []

            if condition.get("status") != "True":
                failures.append(
                    Failure(
                        text=(
                            f"GatewayClass '{name}' with a controller name '{controller}' "
                            f"is not accepted. Message: '{condition.get('message', '')}'."
                        ),
                        sensitive=[Sensitive(name, mask_string(name))],
                    )
                )

            if failures:
                found[name] = failures
                a.metrics.set(self.kind, name, "", len(failures))

        new = [Result(self.kind, key, failures) for key, failures in found.items()]
        return [*a.results, *new]