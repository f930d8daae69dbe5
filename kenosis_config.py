#!/usr/bin/env python3
"""
Kenosis Configuration Manager

Stores small per-tool preferences and run statistics in a shared
~/.kenosis/config.json file.
"""

import json
import pathlib
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Optional


def _default_kenosis() -> dict:
    return {
        "last_run": None,
        "stats": {"total_runs": 0, "total_files_deleted": 0, "total_reclaimed_bytes": 0},
    }


def _default_katastasis() -> dict:
    return {"mascot_hidden": False}


@dataclass
class KenosisConfig:
    """Configuration container for the kenosis tools"""

    version: str = "1.0"
    kenosis: dict = field(default_factory=_default_kenosis)
    katastasis: dict = field(default_factory=_default_katastasis)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "KenosisConfig":
        """Create from dictionary, filling in missing sections"""
        kenosis = _default_kenosis()
        kenosis.update(data.get("kenosis") or {})
        katastasis = _default_katastasis()
        katastasis.update(data.get("katastasis") or {})
        return cls(version=data.get("version", "1.0"), kenosis=kenosis, katastasis=katastasis)


class SharedConfigManager:
    """Loads and saves the shared kenosis configuration file"""

    def __init__(self, config_dir: Optional[pathlib.Path] = None):
        """Initialize configuration manager

        Args:
            config_dir: Override default .kenosis directory location
        """
        if config_dir:
            self.config_dir = config_dir
        else:
            self.config_dir = pathlib.Path.home() / ".kenosis"

        self.config_file = self.config_dir / "config.json"

    def load(self) -> KenosisConfig:
        """Load configuration from file"""
        if not self.config_file.exists():
            return KenosisConfig()
        try:
            with self.config_file.open() as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError):
            # If config is corrupted, return default
            return KenosisConfig()
        if not isinstance(data, dict):
            return KenosisConfig()
        return KenosisConfig.from_dict(data)

    def save(self, config: KenosisConfig):
        """Save configuration to file"""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        with self.config_file.open("w") as f:
            json.dump(config.to_dict(), f, indent=2)

    # -- tool helpers --------------------------------------------------------

    def load_mascot_hidden(self) -> bool:
        return bool(self.load().katastasis.get("mascot_hidden", False))

    def save_mascot_hidden(self, hidden: bool):
        """Persist the dashboard mascot preference, best effort"""
        config = self.load()
        config.katastasis["mascot_hidden"] = hidden
        try:
            self.save(config)
        except OSError:
            pass

    def record_run(self, files_deleted: int, reclaimed_bytes: int):
        """Add one cleanup run to the accumulated statistics"""
        config = self.load()
        stats = config.kenosis.setdefault("stats", {})
        stats["total_runs"] = stats.get("total_runs", 0) + 1
        stats["total_files_deleted"] = stats.get("total_files_deleted", 0) + files_deleted
        stats["total_reclaimed_bytes"] = stats.get("total_reclaimed_bytes", 0) + reclaimed_bytes
        config.kenosis["last_run"] = datetime.now(timezone.utc).isoformat()
        self.save(config)
