from kubediag.core import Analyzer, Cluster, ErrorGauge, Result
from kubediag.gateway import GatewayAnalyzer


def build_gateway_class(name):
    return {
        "kind": "GatewayClass",
        "metadata": {"name": name, "namespace": "default"},
        "spec": {"controllerName": "gateway.fooproxy.io/gatewayclass-controller"},
    }


def build_gateway(class_name, status):
    return {
        "kind": "Gateway",
        "metadata": {"name": "foobar", "namespace": "default"},
        "spec": {
            "gatewayClassName": class_name,
            "listeners": [{"name": "proxy", "port": 80, "protocol": "HTTP"}],
        },
        "status": {
            "conditions": [
                {
                    "type": "Accepted",
                    "status": status,
                    "message": "An expected message",
                    "reason": "Test",
                }
            ]
        },
    }


def run(*objects):
    a = Analyzer(client=Cluster(*objects), namespace="default", metrics=ErrorGauge())
    return a, GatewayAnalyzer().analyze(a)


def texts(results):
    return [failure.text for result in results for failure in result.errors]


def test_healthy_gateway_has_no_results():
    _, results = run(build_gateway("exists", "True"), build_gateway_class("exists"))
    assert len(results) == 0


def test_missing_class_gateway():
    a, results = run(build_gateway("non-existed", "True"))
    assert len(results) == 1
    assert results[0].name == "default/foobar"
    assert results[0].kind == "Gateway"
    assert texts(results) == ["Gateway uses the GatewayClass non-existed which does not exist."]
    assert a.metrics.get("Gateway", "foobar", "default") == 1.0


def test_status_not_accepted():
    _, results = run(build_gateway("exists", "Unknown"), build_gateway_class("exists"))
    assert "Gateway 'default/foobar' is not accepted. Message: 'An expected message'." in texts(results)


def test_both_failures_counted():
    a, results = run(build_gateway("missing", "False"))
    assert len(results) == 1
    assert len(results[0].errors) == 2
    assert a.metrics.get("Gateway", "foobar", "default") == 2.0


def test_sensitive_values_are_masked():
    _, results = run(build_gateway("missing", "True"))
    sensitive = results[0].errors[0].sensitive[0]
    assert sensitive.unmasked == "missing"
    assert len(sensitive.masked) == len("missing")


def test_previous_results_are_kept():
    a = Analyzer(
        client=Cluster(build_gateway("missing", "True")),
        metrics=ErrorGauge(),
        results=[Result("Other", "x")],
    )
    results = GatewayAnalyzer().analyze(a)
    assert [r.name for r in results] == ["x", "default/foobar"]