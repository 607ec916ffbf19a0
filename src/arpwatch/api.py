"""
api.py
Read-only HTTP view of a running ARP monitor.

Provides REST access to:
- Session statistics
- Recent alerts
- Current IP/MAC bindings

Started by the CLI with --api, or embedded with:
    app = create_app(monitor)
    uvicorn.run(app, host="127.0.0.1", port=8081)
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel

from arpwatch import settings
from arpwatch.models import Severity
from arpwatch.monitor import ArpMonitor


# === Pydantic Models ===

class AlertResponse(BaseModel):
    timestamp: str
    severity: str
    category: str
    message: str
    sender_ip: Optional[str] = None
    sender_mac: Optional[str] = None


class StatsResponse(BaseModel):
    total_alerts: int
    critical: int
    high: int
    medium: int
    low: int
    info: int
    cache_size: int
    packets_processed: int
    window_size: int
    state: str


class BindingResponse(BaseModel):
    ip_address: str
    mac_address: str
    source_interface: str
    last_seen: str
    is_static: bool
    history_length: int


class CacheResponse(BaseModel):
    bindings: List[BindingResponse]
    mac_to_ips: Dict[str, List[str]]


def _alert_response(alert) -> AlertResponse:
    # Evidence lives on the packet for detector alerts, on the entry for cache alerts
    sender_ip = sender_mac = None
    if alert.packet is not None:
        sender_ip, sender_mac = alert.packet.sender_ip, alert.packet.sender_mac
    elif alert.new_entry is not None:
        sender_ip, sender_mac = alert.new_entry.ip_address, alert.new_entry.mac_address
    return AlertResponse(
        timestamp=alert.timestamp.isoformat(),
        severity=alert.severity.label,
        category=alert.category,
        message=alert.message,
        sender_ip=sender_ip,
        sender_mac=sender_mac
    )


def create_app(monitor: ArpMonitor) -> FastAPI:
    """
    Build the FastAPI application serving one monitor.

    Handlers are sync so FastAPI runs them in its threadpool while they
    wait on the monitor lock.
    """

    app = FastAPI(
        title="ArpWatch API",
        description="Read-only view of the ARP monitoring session",
        version=settings.VERSION,
    )

    # === Health Check ===

    @app.get("/", tags=["Health"])
    def root():
        """API health check."""
        return {
            "status": "online",
            "service": "ArpWatch API",
            "version": settings.VERSION,
            "monitor_state": monitor.state.value,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

    # === Statistics ===

    @app.get("/stats", response_model=StatsResponse, tags=["Statistics"])
    def get_stats():
        return StatsResponse(**monitor.get_statistics())

    @app.get("/stats/detectors", tags=["Statistics"])
    def get_detector_stats():
        return {"detectors": monitor.get_detector_statistics()}

    # === Alerts ===

    @app.get("/alerts/latest", response_model=List[AlertResponse], tags=["Alerts"])
    def get_latest_alerts(
        limit: int = Query(50, ge=1, le=500, description="Number of alerts to return"),
        severity: Optional[str] = Query(None, description="Filter by severity (CRITICAL, HIGH, MEDIUM, LOW, INFO)")
    ):
        """
        Most recent alerts, newest first.

        - **limit**: Maximum number of alerts to return (1-500)
        - **severity**: Optional severity filter
        """
        if severity:
            try:
                wanted = Severity.from_label(severity)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            alerts = monitor.alerts_by_severity(wanted)
        else:
            alerts = monitor.alerts

        return [_alert_response(alert) for alert in reversed(alerts[-limit:])]

    # === Bindings ===

    @app.get("/cache", response_model=CacheResponse, tags=["Cache"])
    def get_cache():
        entries, mac_mappings = monitor.cache_snapshot()
        bindings = [
            BindingResponse(
                ip_address=ip,
                mac_address=history[-1].mac_address,
                source_interface=history[-1].source_interface,
                last_seen=history[-1].timestamp.isoformat(),
                is_static=history[-1].is_static,
                history_length=len(history)
            )
            for ip, history in sorted(entries.items())
        ]
        mac_to_ips = {mac: sorted(ips) for mac, ips in mac_mappings.items()}
        return CacheResponse(bindings=bindings, mac_to_ips=mac_to_ips)

    @app.get("/cache/{ip}", response_model=List[BindingResponse], tags=["Cache"])
    def get_history(ip: str):
        history = monitor.binding_history(ip)
        if not history:
            raise HTTPException(status_code=404, detail=f"No bindings recorded for {ip}")
        return [
            BindingResponse(
                ip_address=entry.ip_address,
                mac_address=entry.mac_address,
                source_interface=entry.source_interface,
                last_seen=entry.timestamp.isoformat(),
                is_static=entry.is_static,
                history_length=index + 1
            )
            for index, entry in enumerate(history)
        ]

    return app
