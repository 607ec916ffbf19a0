import inspect

import pytest
from fastapi.routing import APIRoute
from fastapi.testclient import TestClient

from arpwatch.api import create_app
from arpwatch.config import MonitorConfig
from arpwatch.monitor import ArpMonitor
from arpwatch.simulation import demo_packets


@pytest.fixture
def client():
    monitor = ArpMonitor(MonitorConfig(static_entries={"192.168.1.1": "aa:bb:cc:dd:ee:ff"}))
    monitor.ingest_all(demo_packets())
    return TestClient(create_app(monitor))


def test_health(client):
    data = client.get("/").json()
    assert data["status"] == "online"
    assert data["monitor_state"] == "running"


def test_stats(client):
    data = client.get("/stats").json()
    assert data["total_alerts"] == 6
    assert data["critical"] == 1
    assert data["cache_size"] == 3
    assert data["packets_processed"] == 4


def test_latest_alerts_newest_first(client):
    alerts = client.get("/alerts/latest", params={"limit": 2}).json()
    assert [a["severity"] for a in alerts] == ["MEDIUM", "INFO"]
    assert alerts[0]["sender_ip"] == "192.168.1.50"


def test_latest_alerts_by_severity(client):
    alerts = client.get("/alerts/latest", params={"severity": "critical"}).json()
    assert len(alerts) == 1
    assert alerts[0]["sender_mac"] == "de:ad:be:ef:ca:fe"

    response = client.get("/alerts/latest", params={"severity": "urgent"})
    assert response.status_code == 400


def test_cache_view(client):
    data = client.get("/cache").json()
    bindings = {b["ip_address"]: b for b in data["bindings"]}

    assert bindings["192.168.1.1"]["mac_address"] == "de:ad:be:ef:ca:fe"
    assert bindings["192.168.1.1"]["history_length"] == 2
    assert data["mac_to_ips"]["aa:bb:cc:dd:ee:ff"] == ["192.168.1.1"]


def test_binding_history(client):
    history = client.get("/cache/192.168.1.1").json()
    assert [h["mac_address"] for h in history] == ["aa:bb:cc:dd:ee:ff", "de:ad:be:ef:ca:fe"]
    assert history[0]["is_static"] is True

    assert client.get("/cache/10.9.9.9").status_code == 404


def test_detector_stats(client):
    detectors = client.get("/stats/detectors").json()["detectors"]
    assert [d["detector_name"] for d in detectors] == [
        "ARP Spoofing Detector", "MAC Flood Detector", "Gratuitous ARP Detector"
    ]


def test_handlers_run_in_threadpool():
    app = create_app(ArpMonitor())
    routes = [route for route in app.routes if isinstance(route, APIRoute)]
    assert len(routes) == 6
    assert not any(inspect.iscoroutinefunction(route.endpoint) for route in routes)
