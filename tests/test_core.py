from datetime import datetime, timezone

import pytest

from kubediag.core import (
    Analyzer,
    Cluster,
    ErrorGauge,
    NotFoundError,
    fetch_latest_event,
    get_parent,
    labels_include_any,
    map_to_string,
    mask_string,
)


def pod(name, namespace="default", labels=None, owners=None):
    meta = {"name": name, "namespace": namespace}
    if labels is not None:
        meta["labels"] = labels
    if owners is not None:
        meta["ownerReferences"] = owners
    return {"kind": "Pod", "metadata": meta}


def event(name, about, stamp=None, reason="", namespace="default"):
    obj = {
        "kind": "Event",
        "metadata": {"name": name, "namespace": namespace},
        "involvedObject": {"name": about},
        "reason": reason,
    }
    if stamp is not None:
        obj["lastTimestamp"] = stamp
    return obj


def test_mask_string_keeps_length_and_alphabet():
    masked = mask_string("my-secret-name")
    assert len(masked) == len("my-secret-name")
    assert masked.isalnum()
    assert mask_string("") == ""


def test_labels_include_any():
    assert labels_include_any({"foo": "bar"}, {"foo": "bar", "x": "y"}) is True
    assert labels_include_any({"foo": "bar"}, {"foo": "baz"}) is False
    assert labels_include_any({"foo": "bar"}, None) is False
    assert labels_include_any({}, {"foo": "bar"}) is False


def test_map_to_string_format_and_round_trip():
    labels = {"app": "web", "tier": "db"}
    assert map_to_string(labels) == "app=web,tier=db"
    cluster = Cluster(pod("a", labels=labels), pod("b", labels={"app": "web"}))
    by_string = cluster.list("Pod", "default", label_selector=map_to_string(labels))
    by_map = cluster.list("Pod", "default", label_selector=labels)
    assert [p["metadata"]["name"] for p in by_string] == ["a"]
    assert by_string == by_map


def test_invalid_selector_raises():
    with pytest.raises(ValueError):
        Cluster().list("Pod", label_selector="novalue")


def test_error_gauge_set_get_and_partial_delete():
    gauge = ErrorGauge()
    gauge.set("Pod", "p1", "default", 2)
    gauge.set("Pod", "p2", "default", 1)
    gauge.set("Node", "n1", "", 3)
    assert gauge.get("Pod", "p1", "default") == 2.0
    assert gauge.delete_partial_match({"analyzer_name": "Pod"}) == 2
    assert gauge.get("Pod", "p1", "default") is None
    assert gauge.get("Node", "n1", "") == 3.0
    assert len(gauge) == 1


def test_error_gauge_rejects_unknown_label():
    with pytest.raises(ValueError):
        ErrorGauge().delete_partial_match({"colour": "red"})


def test_get_missing_raises_not_found():
    with pytest.raises(NotFoundError) as info:
        Cluster().get("Service", "default", "web")
    assert isinstance(info.value, LookupError)
    assert info.value.name == "web"


def test_cluster_scoped_kinds_ignore_namespace():
    cluster = Cluster({"kind": "Node", "metadata": {"name": "n1", "namespace": "test"}})
    assert cluster.get("Node", "", "n1")["metadata"]["name"] == "n1"
    assert len(cluster.list("Node", "other")) == 1


def test_list_filters_namespace():
    cluster = Cluster(pod("a"), pod("b", namespace="test"))
    assert [p["metadata"]["name"] for p in cluster.list("Pod", "test")] == ["b"]
    assert len(cluster.list("Pod")) == 2
    assert cluster.list("Service") == []


def test_add_requires_kind_and_name():
    with pytest.raises(ValueError):
        Cluster({"metadata": {"name": "x"}})
    with pytest.raises(ValueError):
        Cluster({"kind": "Pod", "metadata": {}})


def test_added_objects_are_copies():
    original = pod("a", labels={"app": "web"})
    cluster = Cluster(original)
    original["metadata"]["labels"]["app"] = "changed"
    assert cluster.get("Pod", "default", "a")["metadata"]["labels"] == {"app": "web"}


def test_logs_tail_and_missing():
    cluster = Cluster()
    cluster.set_logs("default", "p", "c", "one\ntwo\nthree")
    assert cluster.get_logs("default", "p", "c") == "one\ntwo\nthree"
    assert cluster.get_logs("default", "p", "c", tail_lines=2) == "two\nthree"
    with pytest.raises(NotFoundError):
        cluster.get_logs("default", "p", "other")


def test_fetch_latest_event_picks_latest_for_object():
    cluster = Cluster(
        event("e1", "pvc", "2024-03-15T10:00:00Z", reason="old"),
        event("e2", "pvc", datetime(2024, 4, 15, 10, tzinfo=timezone.utc), reason="new"),
        event("e3", "other", "2025-01-01T00:00:00Z", reason="unrelated"),
        event("e4", "pvc", "2026-01-01T00:00:00Z", reason="elsewhere", namespace="test"),
    )
    latest = fetch_latest_event(cluster, "default", "pvc")
    assert latest["reason"] == "new"
    assert fetch_latest_event(cluster, "default", "missing") is None


def test_fetch_latest_event_keeps_first_on_tie():
    cluster = Cluster(event("e1", "p", reason="first"), event("e2", "p", reason="second"))
    assert fetch_latest_event(cluster, "default", "p")["reason"] == "first"


def test_get_parent_follows_owner_chain():
    cluster = Cluster(
        {"kind": "Deployment", "metadata": {"name": "web", "namespace": "default"}},
        {
            "kind": "ReplicaSet",
            "metadata": {
                "name": "web-1",
                "namespace": "default",
                "ownerReferences": [{"kind": "Deployment", "name": "web"}],
            },
        },
    )
    child = pod("web-1-x", owners=[{"kind": "ReplicaSet", "name": "web-1"}])
    assert get_parent(cluster, child["metadata"]) == "Deployment/web"
    assert get_parent(cluster, pod("lonely")["metadata"]) == "lonely"
    orphan = pod("o", owners=[{"kind": "ReplicaSet", "name": "gone"}])
    assert get_parent(cluster, orphan["metadata"]) == ""


def test_api_doc_reads_schema():
    analyzer = Analyzer(Cluster(), openapi_schema={"Ingress": {"spec.tls.secretName": "doc text"}})
    assert analyzer.api_doc("Ingress", "spec.tls.secretName") == "doc text"
    assert analyzer.api_doc("Ingress", "spec.other") == ""
    assert Analyzer(Cluster()).api_doc("Ingress", "spec.tls.secretName") == ""