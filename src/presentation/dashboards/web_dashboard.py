#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
🌐 Web Dashboard - Presentation Layer

Read-only status page for a monitoring session. The page polls ``/status``
every status interval; the JSON carries the latest ReadingEvent and the
latest NetworkStatusEvent. Readers never block the sensor stream: both
values come from latest-value slots.

Routes:
- GET /        minimal HTML page
- GET /status  {"reading": {...} | null, "network": {...} | null, "calibration": {...}, "uptime": s}
- GET /logs    recent system messages
"""

import logging
import threading
import time
from typing import List, Optional

import requests
from flask import Flask, jsonify

from utils.config_sections import DashboardConfig

log = logging.getLogger(__name__)

PAGE_TEMPLATE = """<!doctype html>
<html>
<head>
<meta charset="utf-8">
<title>Tilt monitor</title>
<style>
body {{ font-family: sans-serif; background: #111; color: #eee; margin: 2em; }}
.big {{ font-size: 4em; }}
.label {{ color: #888; }}
.connected {{ color: #4caf50; }} .connecting {{ color: #ffc107; }}
.disconnected {{ color: #f44336; }} .unknown {{ color: #888; }}
</style>
</head>
<body>
<div class="label">Tilt</div><div class="big" id="tilt">--</div>
<div class="label">Direction</div><div id="direction">--</div>
<div class="label">Azimuth</div><div id="azimuth">--</div>
<div class="label">Network</div><div id="network" class="unknown">unknown</div>
<script>
async function refresh() {{
  const r = await fetch('/status');
  const s = await r.json();
  if (s.reading) {{
    document.getElementById('tilt').textContent = s.reading.tilt_deg.toFixed(1) + '°';
    document.getElementById('direction').textContent = s.reading.direction;
    document.getElementById('azimuth').textContent =
      s.reading.azimuth_deg.toFixed(0) + '° ' + s.reading.absolute_direction;
  }}
  if (s.network) {{
    const n = document.getElementById('network');
    n.textContent = s.network.status;
    n.className = s.network.status;
  }}
}}
setInterval(refresh, {interval_ms});
refresh();
</script>
</body>
</html>
"""


class WebDashboard:
    """
    Flask status dashboard for a MonitoringSession.

    ``session`` must provide ``latest_reading()`` and ``network_status()``;
    ``calibration`` (optional) provides ``get_calibration_offset()``.
    """

    def __init__(self, session, config: Optional[DashboardConfig] = None, calibration=None):
        self.config = config or DashboardConfig()
        self.app = Flask(__name__)
        self.host = self.config.host
        self.port = self.config.port
        self.session = session
        self.calibration = calibration

        self.logs: List[str] = []
        self.max_logs = 100
        self._server_thread: Optional[threading.Thread] = None

        self.start_time = time.time()
        self.setup_routes()

        log.info(f"🌐 WebDashboard initialized on {self.host}:{self.port}")

    def setup_routes(self):
        """Setup Flask routes"""

        @self.app.route('/')
        def index():
            return PAGE_TEMPLATE.format(interval_ms=int(self.config.status_interval * 1000))

        @self.app.route('/status')
        def get_status():
            reading = self.session.latest_reading()
            network = self.session.network_status()
            payload = {
                'reading': reading.to_dict() if reading is not None else None,
                'network': network.to_dict() if network is not None else None,
                'uptime': time.time() - self.start_time,
            }
            if self.calibration is not None:
                offset = self.calibration.get_calibration_offset()
                payload['calibration'] = {
                    'tilt_offset_deg': offset.tilt_offset_deg,
                    'azimuth_offset_deg': offset.azimuth_offset_deg,
                    'calibrated_at_ms': offset.calibrated_at_ms,
                    'is_calibrated': offset.is_calibrated,
                }
            return jsonify(payload)

        @self.app.route('/logs')
        def get_logs():
            return jsonify({'logs': self.logs[-30:]})

    def log_system_message(self, message: str, level: str = "INFO"):
        timestamp = time.strftime("%H:%M:%S")
        self.logs.append(f"[{timestamp}] [{level}] {message}")
        if len(self.logs) > self.max_logs:
            self.logs = self.logs[-self.max_logs:]

    def start_server(self, wait_ready: bool = True):
        """Start Flask server in background thread, optionally waiting until /status answers."""

        def run_server():
            self.log_system_message(f"Web dashboard starting on {self.host}:{self.port}", "SYSTEM")
            # Disable Flask startup messages
            logging.getLogger('werkzeug').setLevel(logging.ERROR)
            try:
                self.app.run(host=self.host, port=self.port, debug=False, threaded=True, use_reloader=False)
            except OSError as e:
                log.error(f"[Dashboard] Web server error: {e}")
                self.log_system_message(f"Web server error: {e}", "ERROR")

        self._server_thread = threading.Thread(target=run_server, name="WebDashboard", daemon=True)
        self._server_thread.start()

        if not wait_ready:
            return self._server_thread

        url = f"http://{self.host}:{self.port}/status"
        for _ in range(30):
            try:
                if requests.get(url, timeout=1).status_code == 200:
                    self.log_system_message("🌐 Web dashboard ready", "SYSTEM")
                    log.info(f"[Dashboard] Ready at http://{self.host}:{self.port}")
                    return self._server_thread
            except requests.exceptions.RequestException:
                pass
            time.sleep(0.5)

        log.warning("[Dashboard] Web dashboard slow to start, it should be ready soon")
        return self._server_thread

    def shutdown(self):
        duration = (time.time() - self.start_time) / 60.0
        self.log_system_message(f"Dashboard shutting down - Session: {duration:.1f}min", "SYSTEM")
        log.info(f"🌐 Web Dashboard session: {duration:.1f}min")
