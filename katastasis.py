#!/usr/bin/env python3
"""
Katastasis — Ancient Greek κατάστασις (state, condition)

A live terminal dashboard of system metrics: CPU, memory, disks, top
processes and hardware, refreshed once per second.

Keys:
    q / Esc / Ctrl+C   quit
    k                  show or hide the cat (remembered between runs)

Usage:
    katastasis
"""

import argparse
import logging
import select
import sys
import threading
import time
from datetime import datetime
from typing import Optional

try:
    import termios
    import tty

    _HAS_TERMIOS = True
except ImportError:
    _HAS_TERMIOS = False

from rich import box
from rich.console import Console, Group, RenderableType
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from auxiliary import configure_logging, format_bytes, truncate_path
from kenosis_config import SharedConfigManager
from metrics_collector import Collector, MetricsSnapshot

logger = logging.getLogger(__name__)

REFRESH_INTERVAL = 1.0
NARROW_WIDTH = 80

CAT_FRAMES = (
    (" /\\_/\\ ", "( o.o )", " > ^ < "),
    (" /\\_/\\ ", "( -.- )", " > ^ < "),
    (" /\\_/\\ ", "( o.o )", "  >^<  "),
    (" /\\_/\\ ", "( ^.^ )", " > ^ < "),
)


def animation_interval(cpu_usage: float) -> float:
    """Seconds between mascot frames; busier CPU animates faster"""
    return max(300 - int(cpu_usage * 2.5), 50) / 1000


def usage_bar(percent: float, width: int = 20) -> Text:
    filled = int(round(min(max(percent, 0.0), 100.0) / 100 * width))
    style = "green" if percent < 60 else "yellow" if percent < 85 else "red"
    bar = Text("█" * filled, style=style)
    bar.append("░" * (width - filled), style="dim")
    bar.append(f" {percent:5.1f}%")
    return bar


class _KeyReader:
    """Non-blocking single key reads from a terminal in cbreak mode"""

    def __init__(self):
        self._fd: Optional[int] = None
        self._old_settings = None

    def __enter__(self):
        if _HAS_TERMIOS and sys.stdin.isatty():
            self._fd = sys.stdin.fileno()
            self._old_settings = termios.tcgetattr(self._fd)
            tty.setcbreak(self._fd)
        return self

    def __exit__(self, exc_type, exc, tb):
        if self._fd is not None:
            termios.tcsetattr(self._fd, termios.TCSADRAIN, self._old_settings)

    def read(self, timeout: float) -> str:
        """Return one key, or '' if none arrived within *timeout* seconds"""
        if self._fd is None:
            time.sleep(timeout)
            return ""
        ready, _, _ = select.select([sys.stdin], [], [], timeout)
        if not ready:
            return ""
        return sys.stdin.read(1)


class Katastasis:
    """Live system status dashboard"""

    def __init__(
        self,
        collector: Optional[Collector] = None,
        config_manager: Optional[SharedConfigManager] = None,
        console: Optional[Console] = None,
    ):
        self.collector = collector or Collector()
        self.config_manager = config_manager or SharedConfigManager()
        self.console = console or Console(highlight=False)
        self.metrics: Optional[MetricsSnapshot] = None
        self.last_updated: Optional[datetime] = None
        self.err_message = ""
        self.anim_frame = 0
        self.cat_hidden = self.config_manager.load_mascot_hidden()
        self._collecting = False

    # -- state updates -------------------------------------------------------

    def handle_key(self, key: str) -> bool:
        """Apply a key press. Returns False when the dashboard should quit."""
        if key in ("q", "\x1b", "\x03"):
            return False
        if key == "k":
            self.cat_hidden = not self.cat_hidden
            self.config_manager.save_mascot_hidden(self.cat_hidden)
        return True

    def apply_snapshot(self, snapshot: MetricsSnapshot):
        self.metrics = snapshot
        self.last_updated = snapshot.collected_at
        self.err_message = snapshot.errors[0] if snapshot.errors else ""

    def refresh(self):
        """Collect one snapshot; a failed collection shows in the header"""
        try:
            self.apply_snapshot(self.collector.collect())
        except Exception as e:
            logger.debug("collection failed: %s", e, exc_info=True)
            self.err_message = f"collection failed: {e}"
        finally:
            self._collecting = False

    def _collect_in_background(self) -> Optional[threading.Thread]:
        if self._collecting:
            return None
        self._collecting = True
        worker = threading.Thread(target=self.refresh, name="katastasis-collect", daemon=True)
        worker.start()
        return worker

    # -- rendering -----------------------------------------------------------

    def render(self) -> RenderableType:
        if self.metrics is None:
            return Text("Loading...", style="dim")

        header = self._render_header()
        cards = self._build_cards()
        width = self.console.width

        if width <= NARROW_WIDTH:
            return Group(header, *cards)

        grid = Table.grid(expand=True, padding=(0, 1))
        grid.add_column(ratio=1)
        grid.add_column(ratio=1)
        for i in range(0, len(cards), 2):
            right = cards[i + 1] if i + 1 < len(cards) else Text("")
            grid.add_row(cards[i], right)
        return Group(header, grid)

    def _render_header(self) -> RenderableType:
        title = Text("Katastasis", style="bold")
        if self.last_updated is not None:
            title.append(f"  updated {self.last_updated:%H:%M:%S}", style="dim")
        title.append("  [q] quit  [k] cat", style="dim")
        lines: list[RenderableType] = [title]
        if self.err_message:
            lines.append(Text(self.err_message, style="red"))
        if not self.cat_hidden:
            frame = CAT_FRAMES[self.anim_frame % len(CAT_FRAMES)]
            lines.append(Text("\n".join(frame), style="magenta"))
        return Group(*lines)

    def _build_cards(self) -> list[Panel]:
        m = self.metrics
        cpu = Table.grid(padding=(0, 1))
        cpu.add_row("Usage", usage_bar(m.cpu.usage))
        cpu.add_row("Load", f"{m.cpu.load1:.2f} {m.cpu.load5:.2f} {m.cpu.load15:.2f}")
        cpu.add_row("Cores", str(m.cpu.cores))

        mem = Table.grid(padding=(0, 1))
        mem.add_row("Used", usage_bar(m.memory.percent))
        mem.add_row("", f"{format_bytes(m.memory.used)} / {format_bytes(m.memory.total)}")

        disks = Table.grid(padding=(0, 1))
        for disk in m.disks:
            disks.add_row(truncate_path(disk.mount, 16), usage_bar(disk.percent))
            disks.add_row("", f"{format_bytes(disk.used)} / {format_bytes(disk.total)}")

        procs = Table(box=None, show_header=True, padding=(0, 1))
        procs.add_column("Process", style="white")
        procs.add_column("CPU%", justify="right", style="yellow")
        procs.add_column("MEM%", justify="right", style="cyan")
        for proc in m.top_processes:
            procs.add_row(truncate_path(proc.name, 24), f"{proc.cpu:.1f}", f"{proc.memory:.1f}")

        hw = Table.grid(padding=(0, 1))
        hw.add_row("Model", m.hardware.model)
        hw.add_row("CPU", m.hardware.cpu_model)
        hw.add_row("Memory", m.hardware.total_ram)
        hw.add_row("Disk", m.hardware.disk_size)
        hw.add_row("OS", m.hardware.os_version)

        return [
            Panel(cpu, title="CPU", box=box.ROUNDED, title_align="left"),
            Panel(mem, title="Memory", box=box.ROUNDED, title_align="left"),
            Panel(disks, title="Disks", box=box.ROUNDED, title_align="left"),
            Panel(procs, title="Processes", box=box.ROUNDED, title_align="left"),
            Panel(hw, title="Hardware", box=box.ROUNDED, title_align="left"),
        ]

    # -- main loop -----------------------------------------------------------

    def run(self) -> int:
        next_collect = 0.0
        try:
            with _KeyReader() as keys, Live(
                self.render(), console=self.console, screen=True, auto_refresh=False
            ) as live:
                while True:
                    now = time.monotonic()
                    if now >= next_collect:
                        self._collect_in_background()
                        next_collect = now + REFRESH_INTERVAL

                    cpu_usage = self.metrics.cpu.usage if self.metrics else 0.0
                    if not self.handle_key(keys.read(animation_interval(cpu_usage))):
                        break
                    self.anim_frame += 1
                    live.update(self.render(), refresh=True)
        except KeyboardInterrupt:
            pass
        return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="katastasis", description="Katastasis — live system status dashboard")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug log records")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    return Katastasis().run()


if __name__ == "__main__":
    sys.exit(main())
