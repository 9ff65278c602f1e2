"""Analyzer for Gateway API HTTP routes."""

from __future__ import annotations

from typing import Any

from kubediag.core import (
    Analyzer,
    Failure,
    NotFoundError,
    Result,
    Sensitive,
    labels_include_any,
    mask_string,
)


def _masked(*values: str) -> list[Sensitive]:
    return [Sensitive(value, mask_string(value)) for value in values]


def _listener_failures(route: dict[str, Any], gateway: dict[str, Any]) -> list[Failure]:
    route_meta = route["metadata"]
    route_ns = route_meta.get("namespace", "")
    route_name = route_meta["name"]
    gtw_meta = gateway["metadata"]
    gtw_ns = gtw_meta.get("namespace", "")
    gtw_name = gtw_meta["name"]
    failures: list[Failure] = []

    for listener in (gateway.get("spec") or {}).get("listeners") or []:
        namespaces = (listener.get("allowedRoutes") or {}).get("namespaces")
        if namespaces is None:
            continue
        allow = namespaces.get("from")
        if allow == "Same":
            if route_ns != gtw_ns:
                failures.append(
                    Failure(
                        text=(
                            f"HTTPRoute '{route_ns}/{route_name}' is deployed in a different namespace "
                            f"from Gateway '{gtw_ns}/{gtw_name}' which only allows HTTPRoutes from "
                            "its namespace."
                        ),
                        sensitive=_masked(route_ns, route_name, gtw_ns, gtw_name),
                    )
                )
        elif allow == "Selector":
            match_labels = (namespaces.get("selector") or {}).get("matchLabels")
            if not labels_include_any(match_labels, route_meta.get("labels")):
                failures.append(
                    Failure(
                        text=(
                            f"HTTPRoute '{route_ns}/{route_name}' can't be attached on Gateway "
                            f"'{gtw_ns}/{gtw_name}', selector labels do not match HTTProute's labels."
                        ),
                        sensitive=_masked(route_ns, route_name, gtw_ns, gtw_name),
                    )
                )
    return failures


def _backend_failures(a: Analyzer, route: dict[str, Any]) -> list[Failure]:
    route_ns = route["metadata"].get("namespace", "")
    failures: list[Failure] = []
    for rule in (route.get("spec") or {}).get("rules") or []:
        for backend in rule.get("backendRefs") or []:
            backend_name = backend.get("name", "")
            try:
                service = a.client.get("Service", route_ns, backend_name)
            except NotFoundError:
                failures.append(
                    Failure(
                        text=f"HTTPRoute uses the Service '{route_ns}/{backend_name}' which does not exist.",
                        sensitive=_masked(route_ns, backend_name),
                    )
                )
                continue
            port = backend.get("port")
            if port is None:
                continue
            ports = {p.get("port") for p in (service.get("spec") or {}).get("ports") or []}
            if int(port) in ports:
                continue
            svc_meta = service["metadata"]
            svc_ns = svc_meta.get("namespace", "")
            svc_name = svc_meta["name"]
            failures.append(
                Failure(
                    text=(
                        f"HTTPRoute's backend service '{backend_name}' is using port '{int(port)}' "
                        f"but the corresponding K8s service '{svc_ns}/{svc_name}' isn't configured "
                        "with the same port."
                    ),
                    sensitive=_masked(backend_name, svc_name, svc_ns),
                )
            )
    return failures


class HTTPRouteAnalyzer:
    """Reports routes with missing or refusing gateways and broken backends."""

    kind = "HTTPRoute"

    def analyze(self, a: Analyzer) -> list[Result]:
        a.metrics.delete_partial_match({"analyzer_name": self.kind})
        found: dict[str, list[Failure]] = {}

        for route in a.client.list(self.kind):
            meta = route["metadata"]
            name = meta["name"]
            namespace = meta.get("namespace", "")
            failures: list[Failure] = []

            for ref in (route.get("spec") or {}).get("parentRefs") or []:
                gtw_ns = ref.get("namespace") or namespace
                gtw_name = ref.get("name", "")
                try:
                    gateway = a.client.get("Gateway", gtw_ns, gtw_name)
                except NotFoundError:
                    failures.append(
                        Failure(
                            text=(
                                f"HTTPRoute uses the Gateway '{gtw_ns}/{gtw_name}' which does not "
                                "exist in the same namespace."
                            ),
                            sensitive=_masked(gtw_ns, gtw_name),
                        )
                    )
                    continue
                failures.extend(_listener_failures(route, gateway))

            failures.extend(_backend_failures(a, route))

            if failures:
                found[f"{namespace}/{name}"] = failures
                a.metrics.set(self.kind, name, namespace, len(failures))

        new = [Result(self.kind, key, failures) for key, failures in found.items()]
        return [*a.results, *new]