import pytest

from otelop.model import ServicePort
from otelop.ports import extract_port_numbers_and_names, filter_port, merge_ports


def test_extract_port_numbers_and_names():
    ports = [ServicePort(name="web", port=8080), ServicePort(name="tcp", port=9200)]
    numbers, names = extract_port_numbers_and_names(ports)
    assert names == {"web", "tcp"}
    assert numbers == {8080, 9200}


@pytest.mark.parametrize(
    "candidate, numbers, names, expected",
    [
        (
            ServicePort(name="web", port=8080),
            {8080, 9200},
            {"test", "metrics"},
            None,
        ),
        (
            ServicePort(name="web", port=8090),
            {8080, 9200},
            {"test", "metrics"},
            ServicePort(name="web", port=8090),
        ),
        (
            ServicePort(name="web", port=8090),
            {8080, 9200},
            {"web", "metrics"},
            ServicePort(name="port-8090", port=8090),
        ),
        (
            ServicePort(name="web", port=8090),
            {8080, 9200},
            {"web", "port-8090"},
            None,
        ),
    ],
    ids=[
        "filters-duplicate-port",
        "keeps-unique-port",
        "renames-duplicate-name",
        "drops-when-fallback-clashes",
    ],
)
def test_filter_port(candidate, numbers, names, expected):
    assert filter_port(candidate, numbers, names) == expected


def test_merge_ports_declared_first_then_inferred():
    web = ServicePort(name="web", port=80, target_port=80)
    jaeger = ServicePort(name="jaeger-grpc", protocol="TCP", port=14250)
    assert merge_ports([web], [jaeger]) == [web, jaeger]


def test_merge_ports_without_declared_keeps_inferred():
    jaeger = ServicePort(name="jaeger-grpc", protocol="TCP", port=14250)
    assert merge_ports([], [jaeger]) == [jaeger]


def test_merge_ports_resolves_clashes():
    declared = [ServicePort(name="web", port=80), ServicePort(name="otlp", port=4317)]
    inferred = [
        ServicePort(name="otlp", port=4317),
        ServicePort(name="web", port=8080),
        ServicePort(name="zipkin", port=9411),
    ]
    assert merge_ports(declared, inferred) == [
        ServicePort(name="web", port=80),
        ServicePort(name="otlp", port=4317),
        ServicePort(name="port-8080", port=8080),
        ServicePort(name="zipkin", port=9411),
    ]


def test_merge_ports_empty():
    assert merge_ports([], []) == []