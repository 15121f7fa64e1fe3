"""
Dedicated per-channel debug logs for a monitoring session.

This module provides a singleton that attaches file handlers to the
module loggers of each subsystem so a session directory holds one log per
concern.

Features:
- Singleton pattern (one instance per session)
- Separate log files for fusion, calibration and upload
- DEBUG level logging to files
- WARNING level console output for critical messages

Log Files:
- fusion.log: sensor filter/solver events, magnetometer accuracy
- calibration.log: calibration runs and offset changes
- upload.log: upload attempts, retries, probe results

Usage:
    from core.telemetry.loggers.level_logger import get_level_logger

    level_logger = get_level_logger(session_dir=Path("logs/session_2026-01-15_10-30-00"))
    level_logger.upload.info("Collector reachable")
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Tuple

# channel -> (log file, module loggers routed into it)
CHANNELS: Dict[str, Tuple[str, Tuple[str, ...]]] = {
    "fusion": ("fusion.log", ("core.imu", "core.observer", "core.mock_observer")),
    "calibration": ("calibration.log", ("core.calibration",)),
    "upload": ("upload.log", ("communication",)),
}


class LevelLogger:
    """Singleton logger for per-subsystem session logs."""

    _instance = None
    _initialized = False

    def __new__(cls, session_dir: Optional[Path] = None):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, session_dir: Optional[Path] = None):
        if self._initialized:
            return

        if session_dir is None:
            timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
            self.log_dir = Path("logs") / f"session_{timestamp}"
        else:
            self.log_dir = Path(session_dir)

        self.log_dir.mkdir(parents=True, exist_ok=True)

        self._handlers = []
        for name, (filename, sources) in CHANNELS.items():
            self._setup_channel(name, filename, sources)

        type(self)._initialized = True

    def _setup_channel(self, name: str, filename: str, sources: Tuple[str, ...]) -> None:
        """Attach a file handler for one channel to its source loggers."""
        formatter = logging.Formatter(
            '%(asctime)s.%(msecs)03d [%(levelname)s] %(message)s',
            datefmt='%H:%M:%S'
        )

        fh = logging.FileHandler(self.log_dir / filename, mode='w')
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(formatter)

        # Console handler (optional, for critical messages)
        ch = logging.StreamHandler()
        ch.setLevel(logging.WARNING)
        ch.setFormatter(formatter)

        for source in sources:
            source_logger = logging.getLogger(source)
            source_logger.setLevel(logging.DEBUG)
            source_logger.propagate = False
            source_logger.addHandler(fh)
            source_logger.addHandler(ch)
            self._handlers.append((source_logger, fh))
            self._handlers.append((source_logger, ch))

        channel_logger = logging.getLogger(f"level.{name}")
        channel_logger.setLevel(logging.DEBUG)
        channel_logger.propagate = False
        channel_logger.handlers.clear()
        channel_logger.addHandler(fh)
        channel_logger.addHandler(ch)
        self._handlers.append((channel_logger, fh))
        self._handlers.append((channel_logger, ch))

        setattr(self, name, channel_logger)

    def close(self):
        """Close all handlers and reset the singleton."""
        for source_logger, handler in self._handlers:
            source_logger.removeHandler(handler)
            source_logger.propagate = True
            handler.close()
        self._handlers.clear()
        type(self)._initialized = False
        type(self)._instance = None


# Global instance
_level_logger = None

def get_level_logger(session_dir: Optional[Path] = None) -> LevelLogger:
    """Get or create the session logger instance."""
    global _level_logger
    if _level_logger is None or not LevelLogger._initialized:
        _level_logger = LevelLogger(session_dir=session_dir)
    return _level_logger
