"""
Tests pour le formatage d'affichage, le logging, l'AppContext et le CLI.
"""
import logging
from datetime import datetime
from logging.handlers import RotatingFileHandler
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest

from mototrack import cli
from mototrack.context import AppContext
from mototrack.core.logging_config import configure_logging, init_sentry
from mototrack.core.settings import Settings
from mototrack.domain.entities.ride import Ride
from mototrack.domain.entities.user_settings import Units
from mototrack.domain.services.formatting import (
    format_date,
    format_distance,
    format_duration,
    format_elevation,
    format_speed,
)


# ============================================================
# Formatage
# ============================================================

class TestFormatting:
    @pytest.mark.parametrize("seconds, expected", [
        (0, "0m"), (59, "0m"), (125, "2m"), (3600, "1h 0m"), (5430, "1h 30m"),
    ])
    def test_duration(self, seconds, expected):
        assert format_duration(seconds) == expected

    def test_speed(self):
        assert format_speed(10.0, Units.METRIC) == "36 km/h"
        assert format_speed(10.0, Units.IMPERIAL) == "22 mph"

    def test_distance(self):
        assert format_distance(850.0, Units.METRIC) == "850 m"
        assert format_distance(15320.0, Units.METRIC) == "15.3 km"
        assert format_distance(16093.4, Units.IMPERIAL) == "10.0 mi"

    def test_elevation(self):
        assert format_elevation(100.0, Units.METRIC) == "100 m"
        assert format_elevation(100.0, Units.IMPERIAL) == "328 ft"

    def test_date(self):
        assert format_date(datetime(2025, 3, 5, 10, 0)) == "Mar 5, 2025"


# ============================================================
# Logging / Sentry
# ============================================================

class TestLogging:
    def test_development_adds_rotating_file(self, tmp_path):
        configure_logging(Settings(ENVIRONMENT="development"), log_file=str(tmp_path / "mototrack.log"))
        root = logging.getLogger()
        assert any(isinstance(h, RotatingFileHandler) for h in root.handlers)
        assert root.level == logging.INFO

    def test_production_uses_json(self):
        configure_logging(Settings(ENVIRONMENT="production"))
        root = logging.getLogger()
        assert not any(isinstance(h, RotatingFileHandler) for h in root.handlers)
        assert type(root.handlers[0].formatter).__name__ == "JsonFormatter"
        assert root.level == logging.WARNING

    def test_sentry_disabled_without_dsn(self):
        with patch("mototrack.core.logging_config.sentry_sdk.init") as init:
            assert init_sentry(Settings(SENTRY_DSN="")) is False
        init.assert_not_called()

    def test_sentry_enabled_with_dsn(self):
        with patch("mototrack.core.logging_config.sentry_sdk.init") as init:
            assert init_sentry(Settings(SENTRY_DSN="https://key@sentry.example.com/1")) is True
        assert init.call_args[1]["dsn"] == "https://key@sentry.example.com/1"


# ============================================================
# AppContext / CLI
# ============================================================

@pytest.fixture
def app_settings(tmp_path):
    return Settings(DATABASE_URL=f"sqlite:///{tmp_path / 'rides.db'}")


@pytest.fixture
def offline_remote():
    remote = MagicMock()
    remote.ping.return_value = False
    return remote


GPX_TRACK = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">
  <trk><trkseg>
    <trkpt lat="45.0" lon="6.0"><ele>500</ele><time>2025-06-01T09:00:00Z</time></trkpt>
    <trkpt lat="45.001" lon="6.0"><ele>505</ele><time>2025-06-01T09:00:10Z</time></trkpt>
    <trkpt lat="45.002" lon="6.0"><ele>503</ele><time>2025-06-01T09:00:20Z</time></trkpt>
  </trkseg></trk>
</gpx>
"""


class TestAppContext:
    def test_create_loads_default_settings(self, app_settings, offline_remote):
        with AppContext.create(app_settings, remote_store=offline_remote) as ctx:
            assert ctx.settings_service.current.units == Units.IMPERIAL
            assert ctx.local_store.get_settings() is not None
            assert ctx.reconciler.max_attempts == app_settings.SYNC_MAX_ATTEMPTS
        offline_remote.close.assert_called_once()

    def test_connectivity_monitor_uses_settings(self, app_settings, offline_remote):
        with AppContext.create(app_settings, remote_store=offline_remote) as ctx:
            monitor = ctx.connectivity_monitor()
        assert monitor.interval_s == app_settings.CONNECTIVITY_PROBE_INTERVAL_S


def _run_cli(argv, app_settings, offline_remote):
    real_create = AppContext.create

    def create(settings=None, remote_store=None):
        return real_create(app_settings, remote_store=offline_remote)

    with patch("mototrack.cli.get_settings", return_value=app_settings), \
            patch("mototrack.cli.configure_logging"), \
            patch("mototrack.cli.AppContext.create", side_effect=create):
        return cli.main(argv)


class TestCli:
    def test_record_list_export(self, tmp_path, app_settings, offline_remote, capsys):
        track = tmp_path / "track.gpx"
        track.write_text(GPX_TRACK, encoding="utf-8")

        assert _run_cli(["record", str(track)], app_settings, offline_remote) == 0
        out = capsys.readouterr().out
        assert "Ride 1 enregistrée" in out
        assert "en attente de synchronisation" in out

        assert _run_cli(["list"], app_settings, offline_remote) == 0
        assert "Ride on" in capsys.readouterr().out

        output = tmp_path / "export.gpx"
        assert _run_cli(["export", "1", "-o", str(output)], app_settings, offline_remote) == 0
        assert "<trkpt" in output.read_text(encoding="utf-8")

    def test_record_missing_file(self, tmp_path, app_settings, offline_remote):
        assert _run_cli(["record", str(tmp_path / "absent.gpx")], app_settings, offline_remote) == 1

    def test_export_missing_ride(self, app_settings, offline_remote):
        assert _run_cli(["export", "42"], app_settings, offline_remote) == 1

    def test_sync_offline(self, app_settings, offline_remote):
        assert _run_cli(["sync"], app_settings, offline_remote) == 1

    def test_settings_update(self, app_settings, offline_remote, capsys):
        assert _run_cli(["settings", "--units", "metric", "--no-background-tracking"], app_settings, offline_remote) == 0
        out = capsys.readouterr().out
        assert "units: metric" in out
        assert "background_tracking: False" in out

    def test_list_and_export_use_local_ids_online(self, tmp_path, app_settings, offline_remote, capsys):
        track = tmp_path / "track.gpx"
        track.write_text(GPX_TRACK, encoding="utf-8")
        assert _run_cli(["record", str(track)], app_settings, offline_remote) == 0

        remote_only = Ride(
            id=70, remote_id=70, client_id=uuid4(), title="Remote only",
            distance=500.0, duration=60,
            start_time=datetime(2025, 7, 1, 8, 0), end_time=datetime(2025, 7, 1, 8, 1),
            route=[{"latitude": 45.0, "longitude": 6.0, "timestamp": 0}], is_uploaded=True,
        )
        online_remote = MagicMock()
        online_remote.ping.return_value = True
        online_remote.create_ride.return_value = MagicMock(remote_id=50)
        online_remote.list_rides.return_value = [remote_only]
        online_remote.get_ride.return_value = remote_only
        capsys.readouterr()

        assert _run_cli(["list"], app_settings, online_remote) == 0
        lines = [line for line in capsys.readouterr().out.splitlines() if "Ride on" in line or "Remote only" in line]
        listed = {line.split()[0]: line for line in lines}
        assert "2" in listed and "Remote only" in listed["2"]
        assert "1" in listed and "Ride on" in listed["1"]
        assert not any(line.split()[0] in ("50", "70") for line in lines)

        output = tmp_path / "remote.gpx"
        assert _run_cli(["export", "2", "-o", str(output)], app_settings, online_remote) == 0
        online_remote.get_ride.assert_called_with(70)
        assert "<trkpt" in output.read_text(encoding="utf-8")
