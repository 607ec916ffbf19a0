import logging

from arpwatch.config import MonitorConfig
from arpwatch.models import ArpOpcode, AttackType, Severity
from arpwatch.monitor import ArpMonitor, MonitorState
from arpwatch.simulation import demo_packets, flood_packets, make_packet

GATEWAY_IP = "192.168.1.1"
GATEWAY_MAC = "aa:bb:cc:dd:ee:ff"
ATTACKER_MAC = "de:ad:be:ef:ca:fe"


def test_starts_idle_then_runs(monitor, packet):
    assert monitor.state is MonitorState.IDLE
    assert monitor.get_statistics()["state"] == "idle"

    monitor.ingest(packet())

    assert monitor.state is MonitorState.RUNNING


def test_window_keeps_last_hundred_packets():
    monitor = ArpMonitor(MonitorConfig(alert_threshold=1))
    noisy = flood_packets(5)
    steady = [
        make_packet(ArpOpcode.REQUEST, "02:00:00:00:ff:ff", "10.0.9.9",
                    "ff:ff:ff:ff:ff:ff", "10.0.0.1")
        for _ in range(100)
    ]
    packets = noisy + steady

    for pkt in packets[:-1]:
        monitor.ingest(pkt)
    # Packet 104: window still holds the fifth noisy MAC
    categories = [a.category for a in monitor.alerts[-2:]]
    assert AttackType.MAC_FLOOD.description in categories

    last = monitor.ingest(packets[-1])

    assert monitor.recent_packets == packets[5:]
    assert len(monitor.recent_packets) == 100
    assert all(a.category != AttackType.MAC_FLOOD.description for a in last)


def test_alerts_follow_fixed_order_for_one_packet():
    config = MonitorConfig(alert_threshold=1, static_entries={GATEWAY_IP: GATEWAY_MAC})
    monitor = ArpMonitor(config)
    monitor.ingest(make_packet(ArpOpcode.REPLY, GATEWAY_MAC, GATEWAY_IP,
                               "00:11:22:33:44:55", "192.168.1.100"))

    alerts = monitor.ingest(make_packet(ArpOpcode.REPLY, ATTACKER_MAC, GATEWAY_IP,
                                        "ff:ff:ff:ff:ff:ff", GATEWAY_IP))

    assert [a.category for a in alerts] == [
        AttackType.MAC_CHANGE.description,
        AttackType.ARP_SPOOF.description,
        AttackType.MAC_FLOOD.description,
        AttackType.GRATUITOUS_ARP.description,
    ]
    assert monitor.alerts[-4:] == alerts


def test_demo_session_statistics():
    monitor = ArpMonitor(MonitorConfig())
    monitor.ingest_all(demo_packets())

    stats = monitor.get_statistics()

    assert stats["total_alerts"] == 5
    assert stats["critical"] == 0
    assert stats["high"] == 1
    assert stats["medium"] == 1
    assert stats["info"] == 3
    assert stats["total_alerts"] == sum(stats[k] for k in ("critical", "high", "medium", "low", "info"))
    assert stats["cache_size"] == 3
    assert stats["packets_processed"] == 4
    assert monitor.get_statistics() == stats


def test_static_gateway_spoof_in_demo():
    config = MonitorConfig(static_entries={GATEWAY_IP: GATEWAY_MAC})
    monitor = ArpMonitor(config)
    monitor.ingest_all(demo_packets())

    critical = monitor.alerts_by_severity(Severity.CRITICAL)
    assert len(critical) == 1
    assert critical[0].packet.sender_mac == ATTACKER_MAC

    history = monitor.binding_history(GATEWAY_IP)
    assert [e.is_static for e in history] == [True, False]


def test_trusted_mac_suppresses_spoof():
    config = MonitorConfig(static_entries={GATEWAY_IP: GATEWAY_MAC},
                           trusted_macs=[ATTACKER_MAC])
    monitor = ArpMonitor(config)
    monitor.ingest_all(demo_packets())

    assert monitor.get_statistics()["critical"] == 0
    # Binding drift is still reported
    assert monitor.get_statistics()["high"] == 1


def test_sender_mac_case_does_not_split_bindings():
    config = MonitorConfig(static_entries={GATEWAY_IP: GATEWAY_MAC})
    monitor = ArpMonitor(config)

    first = monitor.ingest(make_packet(ArpOpcode.REPLY, GATEWAY_MAC, GATEWAY_IP,
                                       "00:11:22:33:44:55", "192.168.1.100"))
    second = monitor.ingest(make_packet(ArpOpcode.REPLY, GATEWAY_MAC.upper(), GATEWAY_IP,
                                        "00:11:22:33:44:55", "192.168.1.100"))

    assert [a.category for a in first] == [AttackType.NEW_HOST.description]
    assert second == []
    assert [e.is_static for e in monitor.binding_history(GATEWAY_IP)] == [True, True]
    assert monitor.recent_packets[-1].sender_mac == GATEWAY_MAC


def test_alert_sinks_receive_alerts_in_order(packet):
    received = []
    monitor = ArpMonitor(MonitorConfig(), alert_sinks=[received.append])

    monitor.ingest(packet(sender_ip="10.0.0.1"))
    monitor.ingest(packet(sender_ip="10.0.0.1"))
    monitor.ingest(packet(sender_ip="10.0.0.2"))

    assert received == monitor.alerts
    assert [a.new_entry.ip_address for a in received] == ["10.0.0.1", "10.0.0.2"]


def test_failing_sink_does_not_stop_pipeline(packet, caplog):
    received = []

    def broken(alert):
        raise RuntimeError("display gone")

    monitor = ArpMonitor(MonitorConfig(), alert_sinks=[broken, received.append])
    with caplog.at_level(logging.ERROR, logger="arpwatch.monitor"):
        alerts = monitor.ingest(packet())

    assert received == alerts
    assert "display gone" in caplog.text


def test_packet_sinks_only_in_verbose_mode(packet):
    quiet_seen, verbose_seen = [], []
    quiet = ArpMonitor(MonitorConfig(), packet_sinks=[quiet_seen.append])
    verbose = ArpMonitor(MonitorConfig(verbose=True), packet_sinks=[verbose_seen.append])

    pkt = packet()
    quiet.ingest(pkt)
    verbose.ingest(pkt)

    assert quiet_seen == []
    assert verbose_seen == [pkt]


def test_high_severity_alerts_logged_as_warnings(caplog):
    monitor = ArpMonitor(MonitorConfig())
    with caplog.at_level(logging.INFO, logger="arpwatch.monitor"):
        monitor.ingest_all(demo_packets())

    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert "MAC changed for 192.168.1.1" in warnings[0].getMessage()


def test_cache_snapshot(monitor):
    monitor.ingest_all(demo_packets())

    entries, mac_to_ips = monitor.cache_snapshot()

    assert set(entries) == {"192.168.1.100", "192.168.1.1", "192.168.1.50"}
    assert mac_to_ips[ATTACKER_MAC] == {GATEWAY_IP}
    assert len(monitor.get_detector_statistics()) == 3
