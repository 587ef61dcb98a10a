"""Tests for configuration loading."""

from pathlib import Path

import pytest

from recording_window.config import Config, load_config
from recording_window.ephemeris import GeoLocation
from recording_window.timespec import AbsoluteTime, RelativeTime, TimeSpecError


class TestConfigValidation:
    def test_defaults(self) -> None:
        cfg = Config()
        assert cfg.window.start == RelativeTime(-1800)
        assert cfg.window.stop == RelativeTime(1800)
        assert cfg.poll_interval_s == 60.0
        assert cfg.location is None
        assert not cfg.has_location

    def test_parses_window(self) -> None:
        cfg = Config(start_recording="20:10", stop_recording="08:00")
        assert cfg.window.start == AbsoluteTime(20, 10)
        assert cfg.window.stop == AbsoluteTime(8, 0)

    def test_invalid_time_spec_names_field(self) -> None:
        with pytest.raises(TimeSpecError, match="stop_recording"):
            Config(start_recording="1:30", stop_recording="abc")

    def test_location(self) -> None:
        cfg = Config(latitude=-46.60101, longitude=172.71303, altitude=103.0)
        assert cfg.location == GeoLocation(-46.60101, 172.71303, 103.0)

    def test_latitude_only_is_no_location(self) -> None:
        assert Config(latitude=-41.0).location is None

    def test_invalid_latitude(self) -> None:
        with pytest.raises(ValueError, match="latitude"):
            Config(latitude=123.0, longitude=0.0)

    def test_continuous_passes_to_window(self) -> None:
        assert Config(continuous_recorder=True).window.is_continuous

    def test_invalid_poll_interval(self) -> None:
        with pytest.raises(ValueError, match="poll_interval_s"):
            Config(poll_interval_s=0)


class TestLoadConfigFromYAML:
    def test_load_yaml(self, tmp_path: Path) -> None:
        yaml_content = """\
windows:
  start-recording: "12:00"
  stop-recording: "11:00"
location:
  accuracy: 0.0
  altitude: 103.0
  latitude: -46.60101
  longitude: 172.71303
recorder:
  constant-recorder: false
  output-dir: /var/spool/cptv
agent:
  poll_interval_s: 30
  utc_offset_seconds: 46800
"""
        cfg_file = tmp_path / "config.yaml"
        cfg_file.write_text(yaml_content)
        cfg = load_config(cfg_file)
        assert cfg.window.start == AbsoluteTime(12, 0)
        assert cfg.window.stop == AbsoluteTime(11, 0)
        assert cfg.location == GeoLocation(-46.60101, 172.71303, 103.0)
        assert cfg.poll_interval_s == 30.0
        assert cfg.utc_offset_seconds == 46800
        assert cfg.continuous_recorder is False

    def test_relative_windows(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "config.yaml"
        cfg_file.write_text('windows:\n  start-recording: "-1h20m"\n  stop-recording: "10:31"\n')
        cfg = load_config(cfg_file)
        assert cfg.window.start == RelativeTime(-4800)
        assert cfg.window.stop == AbsoluteTime(10, 31)

    def test_top_level_keys(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "config.yaml"
        cfg_file.write_text('start_recording: "30m"\nstop_recording: "-1h45m"\ncontinuous_recorder: true\n')
        cfg = load_config(cfg_file)
        assert cfg.window.start == RelativeTime(1800)
        assert cfg.window.stop == RelativeTime(-6300)
        assert cfg.window.is_continuous

    def test_unquoted_clock_time_rejected(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "config.yaml"
        cfg_file.write_text("windows:\n  start-recording: 22:10\n")
        with pytest.raises(ValueError, match="quoted"):
            load_config(cfg_file)

    def test_malformed_window(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "config.yaml"
        cfg_file.write_text('windows:\n  start-recording: "h:30"\n  stop-recording: "1:30"\n')
        with pytest.raises(TimeSpecError):
            load_config(cfg_file)

    def test_unknown_sections_ignored(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "config.yaml"
        cfg_file.write_text('device:\n  id: 1\n  name: "test-name"\nthermal-throttler:\n  activate: true\n')
        cfg = load_config(cfg_file)
        assert cfg.window.start == RelativeTime(-1800)

    def test_env_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        cfg_file = tmp_path / "config.yaml"
        cfg_file.write_text('windows:\n  start-recording: "22:10"\n  stop-recording: "09:50"\n')
        monkeypatch.setenv("RW_STOP_RECORDING", "2h")
        monkeypatch.setenv("RW_CONTINUOUS_RECORDER", "yes")
        cfg = load_config(cfg_file)
        assert cfg.window.start == AbsoluteTime(22, 10)
        assert cfg.window.stop == RelativeTime(7200)
        assert cfg.continuous_recorder is True

    def test_missing_file_with_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RW_LATITUDE", "-41.0")
        monkeypatch.setenv("RW_LONGITUDE", "175.0")
        monkeypatch.setenv("RW_HEALTH_PORT", "0")
        cfg = load_config("/nonexistent/config.yaml")
        assert cfg.location == GeoLocation(-41.0, 175.0)
        assert cfg.health_port == 0

    def test_bad_boolean(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RW_CONTINUOUS_RECORDER", "maybe")
        with pytest.raises(ValueError, match="boolean"):
            load_config(None)
