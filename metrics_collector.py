#!/usr/bin/env python3
"""
System Metrics Collector

Gathers CPU, memory, disk, process and hardware information for the
katastasis dashboard through psutil. On macOS the hardware model comes from
system_profiler and sw_vers. A failing source is recorded in the snapshot's
error list and the remaining metrics are still collected.
"""

import logging
import os
import platform
import subprocess
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, Optional

import psutil

from auxiliary import format_bytes

logger = logging.getLogger(__name__)

TOP_PROCESS_COUNT = 5


@dataclass
class CPUStatus:
    usage: float = 0.0
    load1: float = 0.0
    load5: float = 0.0
    load15: float = 0.0
    cores: int = 1


@dataclass
class MemoryStatus:
    used: int = 0
    total: int = 0

    @property
    def percent(self) -> float:
        return self.used / self.total * 100 if self.total else 0.0


@dataclass
class DiskStatus:
    mount: str
    used: int
    total: int

    @property
    def percent(self) -> float:
        return self.used / self.total * 100 if self.total else 0.0


@dataclass
class ProcessInfo:
    name: str
    cpu: float
    memory: float


@dataclass
class HardwareInfo:
    model: str = "Unknown"
    cpu_model: str = "Unknown"
    total_ram: str = "Unknown"
    disk_size: str = "Unknown"
    os_version: str = "Unknown"


@dataclass
class MetricsSnapshot:
    collected_at: datetime = field(default_factory=datetime.now)
    cpu: CPUStatus = field(default_factory=CPUStatus)
    memory: MemoryStatus = field(default_factory=MemoryStatus)
    disks: list[DiskStatus] = field(default_factory=list)
    top_processes: list[ProcessInfo] = field(default_factory=list)
    hardware: HardwareInfo = field(default_factory=HardwareInfo)
    errors: list[str] = field(default_factory=list)


def run_cmd(args: list[str], timeout: float = 1.0) -> str:
    """Run a command and return its stdout; raises on failure or timeout"""
    result = subprocess.run(args, capture_output=True, text=True, check=True, timeout=timeout)
    return result.stdout


def top_processes(infos: Iterable[dict], limit: int = TOP_PROCESS_COUNT) -> list[ProcessInfo]:
    """Rank process info dicts (as from psutil.process_iter) by CPU usage.

    Fields psutil could not read arrive as None and count as zero.
    """
    procs = [
        ProcessInfo(
            name=info.get("name") or "?",
            cpu=info.get("cpu_percent") or 0.0,
            memory=info.get("memory_percent") or 0.0,
        )
        for info in infos
    ]
    procs.sort(key=lambda p: p.cpu, reverse=True)
    return procs[:limit]


def parse_system_profiler(text: str) -> tuple[str, str]:
    """Return (model, cpu_model) from `system_profiler SPHardwareDataType`"""
    model = ""
    cpu_model = ""
    for line in text.splitlines():
        lower = line.strip().lower()
        _, _, value = line.partition(":")
        value = value.strip()
        # Prefer "Model Name" over "Model Identifier"
        if lower.startswith("model name:"):
            model = value
        elif lower.startswith("chip:"):
            cpu_model = value
        elif lower.startswith("processor name:") and not cpu_model:
            cpu_model = value
    return model, cpu_model


class Collector:
    """Collects metric snapshots.

    CPU percentages are measured against the previous call, so the first
    snapshot reports 0% usage.
    """

    def __init__(self, system: Optional[str] = None, runner: Callable[..., str] = run_cmd):
        self.system = system or platform.system()
        self.runner = runner
        self._hardware: Optional[HardwareInfo] = None

    def collect(self) -> MetricsSnapshot:
        snapshot = MetricsSnapshot()
        sources = [
            ("cpu", self._collect_cpu),
            ("memory", self._collect_memory),
            ("disks", self._collect_disks),
            ("processes", self._collect_processes),
        ]
        for name, source in sources:
            try:
                source(snapshot)
            except (psutil.Error, OSError, ValueError) as e:
                logger.debug("collecting %s failed: %s", name, e)
                snapshot.errors.append(f"{name}: {e}")

        if self._hardware is None:
            self._hardware = self._collect_hardware(snapshot)
        snapshot.hardware = self._hardware
        return snapshot

    def _collect_cpu(self, snapshot: MetricsSnapshot):
        cpu = snapshot.cpu
        cpu.cores = psutil.cpu_count() or 1
        cpu.load1, cpu.load5, cpu.load15 = psutil.getloadavg()
        cpu.usage = psutil.cpu_percent(interval=None)

    def _collect_memory(self, snapshot: MetricsSnapshot):
        memory = psutil.virtual_memory()
        snapshot.memory = MemoryStatus(used=max(memory.total - memory.available, 0), total=memory.total)

    def _collect_disks(self, snapshot: MetricsSnapshot):
        seen: set[int] = set()
        for mount in ("/", str(Path.home())):
            device = os.stat(mount).st_dev
            if device in seen:
                continue
            seen.add(device)
            usage = psutil.disk_usage(mount)
            snapshot.disks.append(DiskStatus(mount=mount, used=usage.used, total=usage.total))

    def _collect_processes(self, snapshot: MetricsSnapshot):
        infos = (proc.info for proc in psutil.process_iter(["name", "cpu_percent", "memory_percent"]))
        snapshot.top_processes = top_processes(infos)

    def _collect_hardware(self, snapshot: MetricsSnapshot) -> HardwareInfo:
        info = HardwareInfo(cpu_model=platform.machine() or "Unknown", os_version=f"{platform.system()} {platform.release()}")
        if snapshot.memory.total:
            info.total_ram = format_bytes(snapshot.memory.total)
        if snapshot.disks:
            info.disk_size = format_bytes(snapshot.disks[0].total)

        if self.system != "Darwin":
            info.model = platform.node() or "Unknown"
            return info

        try:
            model, cpu_model = parse_system_profiler(self.runner(["system_profiler", "SPHardwareDataType"], timeout=3.0))
            info.model = model or info.model
            info.cpu_model = cpu_model or info.cpu_model
            info.os_version = "macOS " + self.runner(["sw_vers", "-productVersion"]).strip()
        except (OSError, subprocess.SubprocessError) as e:
            snapshot.errors.append(f"hardware: {e}")
        return info
