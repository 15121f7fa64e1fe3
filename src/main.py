#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
🚀 Tilt Monitor - command line entry point

Commands:
- monitor             live session: fusion + calibration + periodic uploads
- calibrate-tilt      zero the tilt against the current resting position
- calibrate-azimuth   zero the heading against the current direction
- clear-calibration   drop both offsets
- configure           validate and save collector host/port/interval

Without sensor hardware every command runs against MockSensorSource; the
--tilt/--heading/--noise flags shape the synthetic stream.
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from core.calibration.calibration_manager import CalibrationManager
from core.calibration.preference_store import JsonPreferenceStore, PreferenceStore
from core.mock_observer import MockSensorSource
from core.monitor.builder import Builder
from core.telemetry.loggers.level_logger import get_level_logger
from core.telemetry.loggers.telemetry_logger import TelemetryLogger
from presentation.dashboards.web_dashboard import WebDashboard
from utils.config import Config
from utils.config_sections import AppConfig, load_dashboard_config
from utils.ctrl_handler import CtrlCHandler

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="run.py", description="Tilt/orientation monitor")
    parser.add_argument("--prefs", type=Path, default=None, help="Preferences file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    commands = parser.add_subparsers(dest="command")

    def add_source_flags(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("--tilt", type=float, default=0.0, help="Synthetic tilt (deg)")
        sub.add_argument("--direction", type=float, default=0.0, help="Synthetic tilt direction (deg)")
        sub.add_argument("--heading", type=float, default=0.0, help="Synthetic heading (deg)")
        sub.add_argument("--noise", type=float, default=0.0, help="Gaussian noise std dev per component")
        sub.add_argument("--warmup", type=float, default=1.0, help="Seconds of streaming before sampling")

    monitor = commands.add_parser("monitor", help="Run a live monitoring session")
    add_source_flags(monitor)
    monitor.add_argument("--dashboard", action="store_true", help="Serve the web dashboard")
    monitor.add_argument("--duration", type=float, default=None, help="Stop after N seconds")

    add_source_flags(commands.add_parser("calibrate-tilt", help="Calibrate the tilt offset"))
    add_source_flags(commands.add_parser("calibrate-azimuth", help="Calibrate the azimuth offset"))
    commands.add_parser("clear-calibration", help="Clear both offsets")

    configure = commands.add_parser("configure", help="Save collector settings")
    configure.add_argument("--host", required=True)
    configure.add_argument("--port", type=int, required=True)
    configure.add_argument("--interval", type=int, default=Config.DEFAULT_UPLOAD_INTERVAL)
    return parser


def _source_from_args(args: argparse.Namespace) -> MockSensorSource:
    return MockSensorSource(
        tilt_deg=args.tilt,
        tilt_direction_deg=args.direction,
        heading_deg=args.heading,
        noise=args.noise,
    )


def run_monitor(args: argparse.Namespace, store: PreferenceStore) -> int:
    print("=" * 60)
    print("🚀 Tilt Monitor")
    print("=" * 60)

    dashboard_config = load_dashboard_config()
    telemetry = TelemetryLogger(Config.LOG_DIR, min_reading_interval=dashboard_config.status_interval)
    get_level_logger(telemetry.get_session_dir())

    app_config = store.get_app_config()
    if not app_config.is_server_configured:
        print("⚠️  Collector not configured (run.py configure --host ... --port ...), uploads will pause")

    session = Builder(store=store).build_full_system(app_config, telemetry)
    if not session.start(_source_from_args(args)):
        print("❌ Required sensors are not available")
        return 1

    dashboard = None
    if args.dashboard:
        dashboard = WebDashboard(session, dashboard_config, calibration=session.calibration)
        dashboard.start_server()

    ctrl_handler = CtrlCHandler()
    started = time.time()
    try:
        while not ctrl_handler.should_stop:
            if args.duration is not None and time.time() - started >= args.duration:
                break
            reading = session.latest_reading()
            network = session.network_status()
            if reading is not None:
                status = network.status.value if network else "unknown"
                print(
                    f"tilt={reading.tilt_deg:5.1f}° {reading.direction:<11} "
                    f"azimuth={reading.azimuth_deg:5.1f}° {reading.absolute_direction:<9} "
                    f"network={status}"
                )
            ctrl_handler.wait(1.0)
    finally:
        session.stop()
        if dashboard is not None:
            dashboard.shutdown()
        summary = telemetry.finalize_session()
        print(f"📊 Session: {summary['total_readings']} readings, final network {summary['final_network_status']}")
        print(
            f"   Published {session.readings_published} readings, "
            f"{session.scheduler.uploads_attempted} uploads, {session.scheduler.probes_attempted} probes"
        )
    return 0


def run_calibration(args: argparse.Namespace, store: PreferenceStore, axis: str) -> int:
    session = Builder(store=store).build_full_system(store.get_app_config())
    source = _source_from_args(args)

    # Sensors only: calibration does not need the upload loop
    session.observer.register(source)
    try:
        time.sleep(args.warmup)
        if axis == "tilt":
            result = session.calibrate_tilt()
        else:
            result = session.calibrate_azimuth()
    finally:
        session.observer.unregister()

    if result:
        print(f"✅ {axis} calibrated: offset {result.offset_deg:.2f}° (spread {result.spread_deg:.2f}°)")
        return 0
    print(f"❌ {axis} calibration failed: {result.reason}")
    return 1


def run_configure(args: argparse.Namespace, store: PreferenceStore) -> int:
    config = AppConfig(server_host=args.host.strip(), server_port=args.port, upload_interval_seconds=args.interval)
    error = config.validate()
    if error:
        print(f"❌ {error}")
        return 2
    store.save_app_config(config)
    print(f"✅ Collector set to {config.base_url} every {config.upload_interval_seconds}s")
    return 0


def main(argv: Optional[List[str]] = None, store: Optional[PreferenceStore] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%H:%M:%S',
    )

    if store is None:
        path = args.prefs or Path(Config.PREFERENCES_DIR) / Config.PREFERENCES_FILE
        store = JsonPreferenceStore(path)

    if args.command in (None, "monitor"):
        if args.command is None:
            args = build_parser().parse_args(["monitor"])
        return run_monitor(args, store)
    if args.command == "calibrate-tilt":
        return run_calibration(args, store, "tilt")
    if args.command == "calibrate-azimuth":
        return run_calibration(args, store, "azimuth")
    if args.command == "clear-calibration":
        CalibrationManager(store).clear_calibration()
        print("✅ Calibration cleared")
        return 0
    if args.command == "configure":
        return run_configure(args, store)
    return 2


if __name__ == "__main__":
    sys.exit(main())
