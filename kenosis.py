#!/usr/bin/env python3
"""
Kenosis — Ancient Greek κένωσις (emptying)

Reclaims disk space by finding regenerable dependency and build directories
(node_modules, .venv, DerivedData, target, ...) below a path, reporting how
much space they hold and deleting the ones you pick while showing live
progress.

Locations the system cache/log purge already empties (~/Library/Caches,
~/.Trash, ...) are never offered.

Usage:
    kenosis <path>                     # Scan, select and delete
    kenosis <path> --dry-run           # Just report findings
    kenosis <path> --min-size 10M      # Only show items > 10 MiB
    kenosis <path> --yes               # Delete every finding without asking
"""

import argparse
import logging
import os
import signal
import sys
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from rich import box
from rich.table import Table

from auxiliary import configure_logging, format_bytes, format_path_for_display, parse_size
from cleanable import ecosystem_of, is_cleanable_dir, is_handled_by_system_clean
from console_ui import ConsoleUI
from deletion import DeletionResult, ProgressCounter, delete_paths
from kenosis_config import SharedConfigManager
from sizing import logical_size

logger = logging.getLogger(__name__)

REFRESH_INTERVAL = 0.1
DEFAULT_SEPARATE = "Library"

# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class CleanableFinding:
    path: str
    ecosystem: str
    size: int = 0


@dataclass
class ScanResult:
    root_path: str
    findings: list[CleanableFinding] = field(default_factory=list)
    scan_duration: float = 0.0
    total_size: int = 0
    dirs_scanned: int = 0
    size_error: Optional[OSError] = None

    @property
    def ecosystem_summary(self) -> dict[str, dict]:
        summary: dict[str, dict] = {}
        for finding in self.findings:
            entry = summary.setdefault(finding.ecosystem, {"count": 0, "size": 0})
            entry["count"] += 1
            entry["size"] += finding.size
        return summary


@dataclass
class UsageOverview:
    """Space used by a tree, with one child reported on its own"""

    root_path: str
    separate_path: str
    separate_size: int
    rest_size: int

    @property
    def total(self) -> int:
        return self.separate_size + self.rest_size


# ---------------------------------------------------------------------------
# Kenosis
# ---------------------------------------------------------------------------


class Kenosis:
    """Main application class for the kenosis cleanup tool."""

    def __init__(
        self,
        args: argparse.Namespace,
        ui: Optional[ConsoleUI] = None,
        config_manager: Optional[SharedConfigManager] = None,
    ):
        self.args = args
        self.ui = ui or ConsoleUI()
        self.config_manager = config_manager or SharedConfigManager()
        self._shutdown_requested = False

    # -- signal handling ----------------------------------------------------

    def _signal_handler(self, signum, frame):
        if self._shutdown_requested:
            sys.exit(1)
        self._shutdown_requested = True
        self.ui.print_warning("\nShutdown requested... press Ctrl+C again to force quit.")

    # -- scanning ------------------------------------------------------------

    def scan(self, root: str, min_size: int = 0) -> ScanResult:
        root = str(Path(root).resolve())
        result = ScanResult(root_path=root)
        start = time.monotonic()

        self.ui.print_header("Kenosis", f"Scanning {format_path_for_display(root)}")

        progress = self.ui.create_activity_progress()
        with progress:
            task = progress.add_task("Scanning...", total=None)

            if is_cleanable_dir(root):
                self._add_finding(result, root, min_size)
            else:
                for dirpath, dirs, _files in os.walk(root, topdown=True, followlinks=False):
                    if self._shutdown_requested:
                        break

                    result.dirs_scanned += 1
                    if result.dirs_scanned % 200 == 0:
                        progress.update(task, description=f"Scanning... {result.dirs_scanned} dirs")

                    descend = []
                    for d in dirs:
                        full = os.path.join(dirpath, d)
                        # Markers end with a separator, so test the dir as a parent
                        if is_handled_by_system_clean(full + os.sep):
                            continue
                        if is_cleanable_dir(full):
                            self._add_finding(result, full, min_size)
                            continue
                        descend.append(d)

                    # Never descend into findings; their size is already known
                    dirs[:] = descend

            progress.update(task, description=f"Scan complete — {result.dirs_scanned} dirs")

        result.findings.sort(key=lambda f: f.size, reverse=True)
        result.scan_duration = time.monotonic() - start
        result.total_size = sum(f.size for f in result.findings)
        return result

    def _add_finding(self, result: ScanResult, path: str, min_size: int):
        size, error = logical_size(path)
        logger.debug("found %s (%d bytes)", path, size)
        if error is not None and result.size_error is None:
            result.size_error = error
        if size >= min_size:
            result.findings.append(CleanableFinding(path, ecosystem_of(path), size))

    def overview(self, root: str, separate: str = DEFAULT_SEPARATE) -> Optional[UsageOverview]:
        """Size *root* with its *separate* child reported on its own.

        The child is walked once: the rest of the tree is sized with it
        excluded.
        """
        root = str(Path(root).resolve())
        separate_path = os.path.join(root, separate)
        if not separate or not os.path.isdir(separate_path) or os.path.islink(separate_path):
            return None
        separate_size, _ = logical_size(separate_path)
        rest_size, _ = logical_size(root, exclude=separate_path)
        return UsageOverview(root, separate_path, separate_size, rest_size)

    # -- reporting -----------------------------------------------------------

    def report(self, result: ScanResult, usage: Optional[UsageOverview] = None):
        if usage is not None:
            self.ui.print_info(
                f"Usage of {format_path_for_display(usage.root_path)}: {format_bytes(usage.total)} "
                f"({format_bytes(usage.separate_size)} in {format_path_for_display(usage.separate_path)}, "
                f"{format_bytes(usage.rest_size)} elsewhere)"
            )

        if not result.findings:
            self.ui.print_success("No cleanable directories found!")
            return

        table = Table(title="Reclaimable Space", box=box.ROUNDED, show_lines=False)
        table.add_column("Ecosystem", style="cyan", min_width=20)
        table.add_column("Folders", justify="right", min_width=7)
        table.add_column("Size", justify="right", style="yellow", min_width=10)

        summary = sorted(result.ecosystem_summary.items(), key=lambda x: x[1]["size"], reverse=True)
        for ecosystem, info in summary:
            table.add_row(ecosystem, str(info["count"]), format_bytes(info["size"]))

        self.ui.console.print(table)
        self.ui.console.print()
        self.ui.print_info(
            f"Total reclaimable: {format_bytes(result.total_size)}  "
            f"({len(result.findings)} folders in {len(summary)} ecosystems)"
        )
        self.ui.print_info(f"Scan completed in {result.scan_duration:.1f}s")
        if result.size_error is not None:
            self.ui.print_warning(f"Some entries could not be read: {result.size_error}")

    # -- selection -----------------------------------------------------------

    def select(self, result: ScanResult) -> list[CleanableFinding]:
        if getattr(self.args, "yes", False):
            return list(result.findings)

        table = Table(box=box.SIMPLE, show_header=True)
        table.add_column("#", justify="right", style="dim")
        table.add_column("Path", style="white")
        table.add_column("Ecosystem", style="cyan dim")
        table.add_column("Size", justify="right", style="yellow")
        for idx, finding in enumerate(result.findings, 1):
            table.add_row(str(idx), format_path_for_display(finding.path), finding.ecosystem, format_bytes(finding.size))
        self.ui.console.print(table)

        indices = self.ui.select_indices(len(result.findings))
        return [result.findings[i] for i in indices]

    # -- execution -----------------------------------------------------------

    def execute(self, paths: list[str]) -> DeletionResult:
        """Delete *paths* on a worker thread while polling its progress"""
        counter = ProgressCounter()
        outcome: dict = {}

        def job():
            try:
                outcome["result"] = delete_paths(paths, counter)
            except Exception as e:
                outcome["exception"] = e

        worker = threading.Thread(target=job, name="kenosis-delete", daemon=True)
        progress = self.ui.create_activity_progress()
        with progress:
            task = progress.add_task("Deleting...", total=None)
            worker.start()
            while worker.is_alive():
                worker.join(REFRESH_INTERVAL)
                progress.update(task, description=f"Deleting... {counter.load():,} files removed")

        if "exception" in outcome:
            raise outcome["exception"]
        return outcome["result"]

    def summary(self, selected: list[CleanableFinding], result: DeletionResult) -> int:
        """Show final results and record them. Returns the exit status."""
        # Only count folders that are actually gone
        reclaimed = sum(f.size for f in selected if not os.path.lexists(f.path))

        self.ui.console.print()
        if result.ok:
            self.ui.print_success(
                f"Cleanup complete: {result.files_deleted:,} files removed, reclaimed {format_bytes(reclaimed)}"
            )
        elif result.partial:
            self.ui.print_warning(
                f"Cleanup partially complete: {result.files_deleted:,} files removed, "
                f"reclaimed {format_bytes(reclaimed)}"
            )
            self.ui.print_error(f"  Errors: {result.error}")
        else:
            self.ui.print_error(f"Cleanup failed: {result.error}")

        self.config_manager.record_run(result.files_deleted, reclaimed)
        return 0 if result.ok else 1

    # -- main entry point ----------------------------------------------------

    def run(self) -> int:
        path = getattr(self.args, "path", None)
        if not path:
            self.ui.print_error("Please provide a path to scan.")
            sys.exit(1)

        if not Path(path).is_dir():
            self.ui.print_error(f"Not a directory: {path}")
            sys.exit(1)

        min_size = 0
        if getattr(self.args, "min_size", None):
            try:
                min_size = parse_size(self.args.min_size)
            except ValueError:
                self.ui.print_error(f"Invalid size: {self.args.min_size}")
                sys.exit(1)

        previous = signal.signal(signal.SIGINT, self._signal_handler)
        try:
            result = self.scan(path, min_size)
            separate = getattr(self.args, "separate", DEFAULT_SEPARATE)
            self.report(result, self.overview(path, separate) if separate else None)
        finally:
            signal.signal(signal.SIGINT, previous)

        if getattr(self.args, "dry_run", False) or not result.findings:
            return 0

        if self._shutdown_requested:
            self.ui.print_info("Scan interrupted, no changes made.")
            return 0

        if not getattr(self.args, "yes", False):
            self.ui.console.print()
            if not self.ui.confirm("Choose folders to delete?", default=True):
                self.ui.print_info("No changes made.")
                return 0

        selected = self.select(result)
        if not selected:
            self.ui.print_info("Nothing selected, no changes made.")
            return 0

        size = sum(f.size for f in selected)
        if not getattr(self.args, "yes", False) and not self.ui.confirm(
            f"Delete {len(selected)} folders ({format_bytes(size)})?", default=False
        ):
            self.ui.print_info("No changes made.")
            return 0

        deletion = self.execute([f.path for f in selected])
        return self.summary(selected, deletion)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kenosis",
        description="Kenosis — reclaim space from dependency and build directories",
    )
    parser.add_argument("path", nargs="?", help="Directory to scan")
    parser.add_argument("--dry-run", action="store_true", help="Report findings without deleting anything")
    parser.add_argument("--min-size", type=str, default=None, help="Minimum folder size to report (e.g. 10M, 1G)")
    parser.add_argument("-y", "--yes", action="store_true", help="Delete every finding without prompting")
    parser.add_argument(
        "--separate",
        default=DEFAULT_SEPARATE,
        help="Child directory whose usage is reported on its own (empty to disable)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug log records")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    app = Kenosis(args)
    return app.run()


if __name__ == "__main__":
    sys.exit(main())
