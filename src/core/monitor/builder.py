"""
🏗️ Simple Builder Pattern - monitoring session graph
"""

from pathlib import Path
from typing import Optional

from communication.protocols import ReadingEvent
from communication.upload_client import UploadClient
from communication.upload_scheduler import UploadScheduler
from communication.upload_state_machine import UploadStateMachine
from core.calibration.calibration_manager import CalibrationManager
from core.calibration.preference_store import JsonPreferenceStore, PreferenceStore
from core.imu.fusion_pipeline import FusionPipeline
from core.imu.orientation_filter import OrientationFilter
from core.imu.orientation_solver import OrientationSolver
from core.monitor.coordinator import MonitoringSession
from core.observer import SensorObserver
from core.processing.latest_value import LatestValue
from core.telemetry.loggers.telemetry_logger import TelemetryLogger
from utils.config import Config
from utils.config_sections import (
    AppConfig,
    CalibrationConfig,
    FilterConfig,
    SolverConfig,
    UploadConfig,
    load_calibration_config,
    load_filter_config,
    load_solver_config,
    load_upload_config,
)


class Builder:
    """Builds every dependency of a monitoring session from config sections."""

    def __init__(
        self,
        store: Optional[PreferenceStore] = None,
        filter_config: Optional[FilterConfig] = None,
        solver_config: Optional[SolverConfig] = None,
        calibration_config: Optional[CalibrationConfig] = None,
        upload_config: Optional[UploadConfig] = None,
    ):
        self.store = store
        self.filter_config = filter_config or load_filter_config()
        self.solver_config = solver_config or load_solver_config()
        self.calibration_config = calibration_config or load_calibration_config()
        self.upload_config = upload_config or load_upload_config()

    def build_store(self) -> PreferenceStore:
        if self.store is None:
            print("  📦 Building preference store...")
            self.store = JsonPreferenceStore(Path(Config.PREFERENCES_DIR) / Config.PREFERENCES_FILE)
        return self.store

    def build_fusion_pipeline(self) -> FusionPipeline:
        print("  📦 Building fusion pipeline...")
        return FusionPipeline(
            orientation_filter=OrientationFilter(self.filter_config),
            solver=OrientationSolver(self.solver_config),
        )

    def build_observer(self, pipeline: FusionPipeline) -> SensorObserver:
        print("  📦 Building sensor observer...")
        return SensorObserver(pipeline)

    def build_calibration_manager(self) -> CalibrationManager:
        print("  📦 Building calibration manager...")
        return CalibrationManager(self.build_store(), self.calibration_config)

    def build_upload_client(self, app_config: AppConfig) -> UploadClient:
        print("  📦 Building upload client...")
        return UploadClient(app_config, self.upload_config)

    def build_upload_scheduler(
        self,
        client: UploadClient,
        readings: LatestValue[ReadingEvent],
        app_config: AppConfig,
        interval: Optional[float] = None,
    ) -> UploadScheduler:
        print("  📦 Building upload scheduler...")
        return UploadScheduler(
            client,
            readings,
            app_config,
            self.upload_config,
            state_machine=UploadStateMachine(self.upload_config),
            interval=interval,
        )

    def build_full_system(
        self,
        app_config: Optional[AppConfig] = None,
        telemetry: Optional[TelemetryLogger] = None,
        upload_interval: Optional[float] = None,
    ) -> MonitoringSession:
        print("🏗️ Building monitoring session...")

        store = self.build_store()
        app_config = app_config or store.get_app_config()

        pipeline = self.build_fusion_pipeline()
        observer = self.build_observer(pipeline)
        calibration = self.build_calibration_manager()

        readings: LatestValue[ReadingEvent] = LatestValue()
        client = self.build_upload_client(app_config)
        scheduler = self.build_upload_scheduler(client, readings, app_config, upload_interval)

        return MonitoringSession(
            observer,
            calibration,
            scheduler,
            telemetry,
            readings=readings,
            calibration_config=self.calibration_config,
        )
