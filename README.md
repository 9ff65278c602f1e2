# kubediag

`kubediag` looks through the objects of a Kubernetes cluster for common faults and reports each one in plain language. It finds pods stuck pending or crash-looping, services with no endpoints, ingresses that point at missing classes, services or secrets, nodes with pressure conditions, and more.

Every analyzer works on an in-memory `Cluster`. You fill it with plain dicts in the shape of Kubernetes objects, for example taken from `kubectl get -o json` output. The analyzers can therefore be run and tested without a live cluster.

## Installation

```
pip install kubediag
```

Python 3.10 or later is needed. The package has no runtime dependencies.

## Usage

```python
from kubediag.core import Analyzer, Cluster
from kubediag.pod import PodAnalyzer

cluster = Cluster()
cluster.add({
    "kind": "Pod",
    "metadata": {"name": "web", "namespace": "default"},
    "status": {
        "phase": "Pending",
        "conditions": [{
            "type": "PodScheduled",
            "reason": "Unschedulable",
            "message": "0/1 nodes are available",
        }],
    },
})

for result in PodAnalyzer().analyze(Analyzer(client=cluster, namespace="default")):
    print(result.kind, result.name)
    for failure in result.errors:
        print("  -", failure.text)
```

## The model

`kubediag.core` holds the shared pieces:

- `Cluster` stores objects keyed by kind, namespace and name. Every object needs a `kind` and a `metadata.name`. Kinds such as `Node`, `IngressClass`, `StorageClass`, `GatewayClass` and `MutatingWebhookConfiguration` are cluster-scoped and ignore the namespace. `Cluster.get` raises `NotFoundError` for a missing object. `Cluster.list` takes an optional namespace (empty means all namespaces), a label selector and a field selector. Each selector may be a mapping or a `key=value,...` string. Container logs are stored with `Cluster.set_logs` and read with `Cluster.get_logs`, which can keep only the last lines.
- `Analyzer` is what one run works with: the `client` cluster, the `namespace` to look in, an optional `openapi_schema`, earlier `results` to append to, and the `metrics` gauge.
- `Result` has a `kind`, a `name` (usually `namespace/name`), a list of `Failure` entries in `errors`, and a `parent_object`.
- `Failure` holds the message `text`, a `kubernetes_doc` string and a list of `Sensitive` pairs. Each pair maps a real name to a masked one made by `mask_string`.

`openapi_schema` maps a kind to a mapping of field paths and their descriptions, for example `{"Ingress": {"spec.ingressClassName": "..."}}`. `Analyzer.api_doc` looks a field up there, and an analyzer puts the description into the `kubernetes_doc` of the failure concerned. Without a schema `kubernetes_doc` is empty.

`get_parent` follows `ownerReferences` to the top owner and returns `Kind/name`. An object without owners gives its own name, and an owner that is not in the cluster gives an empty string. `fetch_latest_event` returns the event about an object with the latest `lastTimestamp`. `labels_include_any` and `map_to_string` are small label helpers.

Each `analyze` call returns the `results` already on the `Analyzer` followed by its own. The order of its own results follows the order in which the objects were added.

## Analyzers

| Module | Analyzer | Checks |
|---|---|---|
| `kubediag.pod` | `PodAnalyzer` | unschedulable pods, failing containers and init containers, readiness probes |
| `kubediag.service` | `ServiceAnalyzer` | services with no endpoints or not-ready endpoints |
| `kubediag.statefulset` | `StatefulSetAnalyzer` | missing governing services and storage classes |
| `kubediag.replicaset` | `ReplicaSetAnalyzer` | empty replica sets that failed to create pods |
| `kubediag.pvc` | `PvcAnalyzer` | pending claims whose provisioning failed |
| `kubediag.node` | `NodeAnalyzer` | nodes that are not ready or are under pressure |
| `kubediag.pdb` | `PdbAnalyzer` | disruption budgets that allow no disruption |
| `kubediag.ingress` | `IngressAnalyzer` | missing ingress classes, backend services and TLS secrets |
| `kubediag.netpol` | `NetworkPolicyAnalyzer` | policies that match every pod or no pod |
| `kubediag.mutating_webhook` | `MutatingWebhookAnalyzer` | webhooks whose service or pods are missing or inactive |
| `kubediag.gateway` | `GatewayAnalyzer` | gateways with a missing class or not accepted |
| `kubediag.gatewayclass` | `GatewayClassAnalyzer` | gateway classes that are not accepted |
| `kubediag.httproute` | `HTTPRouteAnalyzer` | routes with missing or refusing gateways, missing backends, or mismatched ports |
| `kubediag.hpa` | `HpaAnalyzer` | autoscalers whose target is missing, of an unsupported kind, or has no resources set |
| `kubediag.log` | `LogAnalyzer` | the last 100 log lines of each container, looking for error, exception or fail |

`kubediag.pod` also offers `is_error_reason` and `is_event_error_reason`. `kubediag.log` offers `first_error_line`. `LogAnalyzer` reports its findings with kind `Pod` and names of the form `namespace/pod/container`. A container without stored logs is reported too.

## Metrics

Each analyzer first clears its own series, then records the number of failures for every object it flags. The counts go into the `ErrorGauge` that the `Analyzer` carries, labelled by analyzer name, object name and namespace. Unless another gauge is given, all analyzers share one module-level gauge. Read a count back with `ErrorGauge.get`, and clear series with `ErrorGauge.delete_partial_match`.

## What it does not do

`kubediag` does not connect to a cluster. It has no command line and no server. It does not fetch the API schema either: objects, events, logs and field descriptions must all be put into the `Cluster` and the `Analyzer` by the caller. Findings are not explained further or stored anywhere. They are returned as `Result` objects.

## Running the tests

```
pip install -e ".[test]"
pytest
```