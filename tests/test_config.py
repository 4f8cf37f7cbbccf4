"""
Smoke tests for configuration loading, validation and the CLI entry point.
"""

import json
from unittest.mock import patch

import pytest

import main as cli
from conftest import FakeBackend, MockVideoSource, solid_frame
from main import load_config, validate_config
from models.errors import ConfigError
from pipeline import PipelineConfig, PipelineEngine


class TestValidateConfig:
    """Tests for validate_config function."""

    def test_valid_config_passes(self, valid_config):
        """A complete valid config passes validation."""
        is_valid, error = validate_config(valid_config)

        assert is_valid is True
        assert error is None

    def test_missing_detection_section(self, valid_config):
        """Missing detection section fails validation."""
        del valid_config["detection"]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "detection" in error.lower()

    def test_missing_log_level(self, valid_config):
        """Missing log_level fails validation."""
        del valid_config["log_level"]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "log_level" in error.lower()

    def test_missing_log_path(self, valid_config):
        """Missing log_path fails validation."""
        del valid_config["log_path"]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "log_path" in error.lower()

    def test_invalid_detection_backend(self, valid_config):
        """Unknown detection backend fails."""
        valid_config["detection"]["backend"] = "magic"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "backend" in error.lower()

    def test_textboxes_backend_valid(self, valid_config):
        valid_config["detection"]["backend"] = "textboxes"

        is_valid, error = validate_config(valid_config)

        assert is_valid is True

    def test_textboxes_backend_requires_prototxt(self, valid_config):
        """TextBoxes++ needs the Caffe network description."""
        valid_config["detection"]["backend"] = "textboxes"
        del valid_config["detection"]["textboxes"]["prototxt_path"]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "prototxt_path" in error

    @pytest.mark.parametrize("key", ["conf_threshold", "nms_threshold", "nms_score_threshold"])
    def test_threshold_out_of_range(self, valid_config, key):
        valid_config["detection"][key] = 1.5

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert key in error

    def test_threshold_must_be_number(self, valid_config):
        valid_config["detection"]["conf_threshold"] = "high"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "conf_threshold" in error

    def test_null_nms_score_threshold_valid(self, valid_config):
        valid_config["detection"]["nms_score_threshold"] = None

        is_valid, error = validate_config(valid_config)

        assert is_valid is True

    def test_empty_model_path(self, valid_config):
        valid_config["detection"]["east"]["model_path"] = ""

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "model_path" in error

    def test_negative_similarity_threshold(self, valid_config):
        valid_config["pipeline"]["frame_similarity_threshold"] = -1

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "frame_similarity_threshold" in error

    def test_zero_similarity_threshold_valid(self, valid_config):
        valid_config["pipeline"]["frame_similarity_threshold"] = 0

        is_valid, error = validate_config(valid_config)

        assert is_valid is True

    def test_invalid_dedup_compare(self, valid_config):
        valid_config["pipeline"]["dedup_compare"] = "iou"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "dedup_compare" in error

    def test_invalid_web_port(self, valid_config):
        valid_config["web"]["port"] = 70000

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "port" in error

    def test_invalid_log_level(self, valid_config):
        """Invalid log level fails."""
        valid_config["log_level"] = "VERBOSE"  # Not a valid level

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "log_level" in error.lower()


class TestLoadConfig:
    """Tests for load_config function."""

    def test_loads_default_yaml(self, temp_config_dir):
        """Config loads from default.yaml when only it exists."""
        config_path = str(temp_config_dir / "config.yaml")

        # Don't create config.yaml, only default.yaml exists
        config = load_config(config_path)

        assert config["detection"]["backend"] == "east"
        assert config["detection"]["conf_threshold"] == 0.5
        assert config["pipeline"]["dedup_compare"] == "boxes"

    def test_local_overrides_merge(self, temp_config_dir):
        """Local config.yaml overrides default.yaml."""
        config_yaml = temp_config_dir / "config.yaml"
        config_yaml.write_text("""
detection:
  conf_threshold: 0.7
  use_gpu: true
""")

        config = load_config(str(config_yaml))

        # Overridden values
        assert config["detection"]["conf_threshold"] == 0.7
        assert config["detection"]["use_gpu"] is True

        # Original values preserved
        assert config["detection"]["backend"] == "east"
        assert config["detection"]["east"]["model_path"] == "frozen_east_text_detection.pb"

    def test_explicit_config_applied_last(self, temp_config_dir):
        """An explicit --config file overrides both default.yaml and config.yaml."""
        (temp_config_dir / "config.yaml").write_text("detection:\n  conf_threshold: 0.7\n")
        explicit = temp_config_dir / "run.yaml"
        explicit.write_text("detection:\n  conf_threshold: 0.9\n")

        config = load_config(str(explicit))

        assert config["detection"]["conf_threshold"] == 0.9
        assert config["detection"]["nms_threshold"] == 0.4

    def test_missing_files_give_empty_config(self, tmp_path):
        assert load_config(str(tmp_path / "config" / "config.yaml")) == {}

    def test_invalid_yaml_raises(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("detection: [unclosed\n")

        with pytest.raises(ConfigError):
            load_config(str(temp_config_dir / "config.yaml"))

    def test_non_mapping_raises(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("- just\n- a list\n")

        with pytest.raises(ConfigError):
            load_config(str(temp_config_dir / "config.yaml"))


class TestMain:
    """Tests for the CLI entry point."""

    def _write_config(self, temp_config_dir, tmp_path, extra=""):
        config_yaml = temp_config_dir / "config.yaml"
        config_yaml.write_text(
            f"detection:\n  model_dir: \"{tmp_path / 'no-models'}\"\n"
            f"log_path: \"{tmp_path / 'logs' / 'run.log'}\"\n{extra}"
        )
        return str(config_yaml)

    def test_missing_explicit_config(self, tmp_path):
        assert cli.main(["video.mp4", "--config", str(tmp_path / "nope.yaml")]) == cli.EXIT_FAILED

    def test_invalid_config_fails(self, temp_config_dir, tmp_path):
        config_path = self._write_config(temp_config_dir, tmp_path, "log_level: \"LOUD\"\n")

        assert cli.main(["video.mp4", "--config", config_path]) == cli.EXIT_FAILED

    def test_missing_model_fails_before_video(self, temp_config_dir, tmp_path):
        config_path = self._write_config(temp_config_dir, tmp_path)

        with patch.object(cli, "setup_logging"):
            assert cli.main(["video.mp4", "--config", config_path]) == cli.EXIT_FAILED

    def test_successful_run_saves_detections(self, temp_config_dir, tmp_path):
        config_path = self._write_config(temp_config_dir, tmp_path)
        source = MockVideoSource([solid_frame(10), solid_frame(100)])
        engine = PipelineEngine(FakeBackend(), PipelineConfig(), source_factory=lambda p: source)
        save_dir = tmp_path / "out"

        with patch.object(cli, "setup_logging"), \
                patch.object(cli, "create_engine_from_config", return_value=engine):
            code = cli.main(["video.mp4", "--config", config_path, "--save-dir", str(save_dir)])

        assert code == cli.EXIT_OK
        summary = json.loads((save_dir / "detections.json").read_text())
        assert summary["count"] == 2
        assert all((save_dir / d["image"]).exists() for d in summary["detections"])

    def test_failed_run_exits_nonzero(self, temp_config_dir, tmp_path):
        config_path = self._write_config(temp_config_dir, tmp_path)
        source = MockVideoSource([solid_frame(10)])
        engine = PipelineEngine(FakeBackend(fail_on_call=1), PipelineConfig(), source_factory=lambda p: source)

        with patch.object(cli, "setup_logging"), \
                patch.object(cli, "create_engine_from_config", return_value=engine):
            assert cli.main(["video.mp4", "--config", config_path]) == cli.EXIT_FAILED
