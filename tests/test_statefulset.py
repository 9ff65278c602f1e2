from typing import Any

from kubediag.core import Analyzer, Cluster, ErrorGauge
from kubediag.statefulset import StatefulSetAnalyzer


def make_sts(name: str, namespace: str, spec: dict[str, Any] | None = None) -> dict[str, Any]:
    obj: dict[str, Any] = {"kind": "StatefulSet", "metadata": {"name": name, "namespace": namespace}}
    if spec is not None:
        obj["spec"] = spec
    return obj


def analyze(*objects, namespace: str = "default", gauge=None, schema=None):
    a = Analyzer(Cluster(*objects), namespace=namespace, metrics=gauge or ErrorGauge(), openapi_schema=schema)
    return StatefulSetAnalyzer().analyze(a)


def all_texts(results) -> list[str]:
    return [f.text for r in results for f in r.errors]


def test_statefulset_without_service_name():
    results = analyze(make_sts("example", "default"))
    assert len(results) == 1
    assert results[0].name == "default/example"


def test_statefulset_missing_service():
    results = analyze(make_sts("example", "default", {"serviceName": "example-svc"}))
    assert "StatefulSet uses the service default/example-svc which does not exist." in all_texts(results)


def test_statefulset_missing_storage_class():
    spec = {
        "serviceName": "example-svc",
        "volumeClaimTemplates": [
            {
                "kind": "PersistentVolumeClaim",
                "apiVersion": "v1",
                "metadata": {"name": "pvc-example"},
                "spec": {
                    "storageClassName": "example-sc",
                    "accessModes": ["ReadWriteOnce"],
                    "resources": {"requests": {"storage": "1Gi"}},
                },
            }
        ],
    }
    results = analyze(make_sts("example", "default", spec))
    assert "StatefulSet uses the storage class example-sc which does not exist." in all_texts(results)
    assert len(results[0].errors) == 2


def test_statefulset_namespace_filtering():
    results = analyze(make_sts("example", "default"), make_sts("example", "other-namespace"))
    assert len(results) == 1


def test_healthy_statefulset_gives_no_result():
    gauge = ErrorGauge()
    results = analyze(
        make_sts(
            "db",
            "default",
            {"serviceName": "db", "volumeClaimTemplates": [{"spec": {"storageClassName": "fast"}}]},
        ),
        {"kind": "Service", "metadata": {"name": "db", "namespace": "default"}},
        {"kind": "StorageClass", "metadata": {"name": "fast"}},
        gauge=gauge,
    )
    assert results == []
    assert len(gauge) == 0