"""
Shared fixtures for the PC Diag test suite
"""

import copy
import json

import pytest

from pcdiag.core.model import HealthDomain, HealthReport, HealthSection, RawReading, SensorSnapshot


HEALTHY_SNAPSHOT = {
    "metadata": {"partialFailure": False},
    "sections": {
        "OS": {"status": "OK", "data": {"caption": "Windows 11 Pro", "bootTime": 12}},
        "WindowsUpdate": {"status": "OK", "data": {"pendingCount": 0, "lastCheckDays": 2}},
        "CPU": {"status": "OK", "data": {"name": "Intel Core i7-12700K", "temperature": 55}},
        "DynamicSignals": {"status": "OK", "data": {"cpu": {"average": 20}, "disk": {"queueLength": 0.5}}},
        "GPU": {"status": "OK", "data": {"name": "NVIDIA GeForce RTX 3070", "temperature": 50}},
        "MemoryInfo": {"status": "OK", "data": {"totalGB": 16, "availableGB": 10, "UsedPercent": 37.5}},
        "Disks": {"status": "OK", "data": {"disks": [{"DriveLetter": "C:", "UsedPercent": 50, "freeGB": 200}]}},
        "SmartDetails": {"status": "OK", "data": {"disks": [
            {"model": "Samsung SSD 980", "health": "Healthy", "temperature": 35},
        ]}},
        "Network": {"status": "OK", "data": {"latencyP95": 20, "packetLoss": 0, "dnsDurationP95": 15}},
        "EventLogs": {"status": "OK", "data": {"logs": {
            "System": {"errorCount": 1, "criticalCount": 0},
            "Application": {"errorCount": 1, "criticalCount": 0},
        }}},
        "ReliabilityHistory": {"status": "OK", "data": {"appCrashes": 0}},
        "MinidumpAnalysis": {"status": "OK", "data": {"minidumpCount": 0}},
        "DevicesDrivers": {"status": "OK", "data": {"totalDrivers": 150, "signedDrivers": 150, "errorDevices": 0}},
        "Security": {"status": "OK", "data": {
            "defenderEnabled": True,
            "uacEnabled": True,
            "firewallProfiles": {"Domain": True, "Private": True, "Public": True},
        }},
        "Services": {"status": "OK", "data": {"services": [{"Name": "wuauserv", "Status": "Running"}]}},
        "Processes": {"status": "OK", "data": {"totalCount": 120}},
        "RestorePoints": {"status": "OK", "data": {"restorePointCount": 3, "lastPointAgeDays": 5}},
    },
    "cpuList": [{"name": "Intel Core i7-12700K", "cores": 12, "threads": 20, "speedMax": 4.9}],
    "errors": [],
    "sensors": {
        "cpu": {
            "cpuTempC": {"value": 55, "available": True},
            "cpuLoadPercent": {"value": 20, "available": True},
        },
        "gpu": {
            "gpuTempC": {"value": 50, "available": True},
            "gpuLoadPercent": {"value": 10, "available": True},
            "vramTotalMB": {"value": 8192, "available": True},
            "vramUsedMB": {"value": 1024, "available": True},
        },
        "disks": [
            {"name": "Samsung SSD 980", "tempC": {"value": 35, "available": True}},
        ],
    },
}


@pytest.fixture
def healthy_snapshot():
    """A complete snapshot of a machine in good health."""
    return copy.deepcopy(HEALTHY_SNAPSHOT)


@pytest.fixture
def degraded_snapshot():
    """Hot CPU and an almost full system disk."""
    snapshot = copy.deepcopy(HEALTHY_SNAPSHOT)
    snapshot["sensors"]["cpu"]["cpuTempC"] = {"value": 96, "available": True}
    snapshot["sections"]["Disks"]["data"]["disks"] = [{"DriveLetter": "C:", "UsedPercent": 98, "freeGB": 3}]
    return snapshot


@pytest.fixture
def sentinel_snapshot():
    """Native CPU sensor reports the 0 placeholder, the script has a plausible value."""
    snapshot = copy.deepcopy(HEALTHY_SNAPSHOT)
    snapshot["sensors"]["cpu"]["cpuTempC"] = {"value": 0, "available": True}
    return snapshot


@pytest.fixture
def healthy_sensors():
    return SensorSnapshot.from_dict(copy.deepcopy(HEALTHY_SNAPSHOT["sensors"]))


@pytest.fixture
def snapshot_file(tmp_path, healthy_snapshot):
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(healthy_snapshot), encoding="utf-8")
    return path


@pytest.fixture
def report_factory():
    """Build a report with one section per domain; ``evidence`` maps domain -> evidence dict."""

    def build(evidence=None, missing_domains=(), **report_fields):
        evidence = evidence or {}
        sections = [
            HealthSection(
                domain=domain,
                has_data=domain not in missing_domains,
                evidence=dict(evidence.get(domain, {})),
            )
            for domain in HealthDomain.ALL
        ]
        return HealthReport(sections=sections, **report_fields)

    return build


def reading(value, available=True, reason=None):
    return RawReading(value=value, available=available, reason=reason)


@pytest.fixture
def make_reading():
    return reading
