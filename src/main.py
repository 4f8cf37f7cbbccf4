"""
Video text detector.

Runs a text detection network over every frame of a video and keeps one
detection per visually distinct frame.

Usage:
    python src/main.py lecture.mp4 --config config/config.yaml --save-dir output/

Arguments:
    video: Path to the video file
    --config: Path to configuration file
    --save-dir: Write annotated PNGs and detections.json here
    --web: Serve the read-only status API while processing
"""

import os
import sys
import argparse
import logging
import threading
from typing import Any, Dict, List, Optional, Tuple

import uvicorn
import yaml

from models.config import Config
from models.errors import ConfigError, ModelLoadError
from models.status import RunState
from ops.annotate import save_detections
from ops.logging import VALID_LOG_LEVELS, setup_logging
from pipeline import PipelineRunner, create_engine_from_config
from web.app import create_app
from web.state import state as web_state

DEFAULT_CONFIG_PATH = "config/config.yaml"
VALID_BACKENDS = ("east", "textboxes")
VALID_DEDUP_COMPARE = ("boxes", "count")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CANCELLED = 130


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    return data


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)

    Raises:
        ConfigError: If a present file cannot be read or parsed.
    """
    try:
        config_dir = os.path.dirname(config_path)
        base_path = os.path.join(config_dir, "default.yaml")
        base_cfg: Dict[str, Any] = {}
        if os.path.exists(base_path):
            base_cfg = _read_yaml(base_path)

        local_overrides_path = os.path.join(config_dir, "config.yaml")
        local_cfg: Dict[str, Any] = {}
        if os.path.exists(local_overrides_path):
            local_cfg = _read_yaml(local_overrides_path)

        merged = _deep_merge(base_cfg, local_cfg)

        # Finally apply explicit config_path if it's not the local override file itself
        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            merged = _deep_merge(merged, _read_yaml(config_path))

        return merged
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load configuration: {e}") from e


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_unit_interval(section: Dict[str, Any], key: str, prefix: str) -> Optional[str]:
    value = section[key]
    if not _is_number(value):
        return f"{prefix}.{key} must be a number"
    if not (0.0 <= value <= 1.0):
        return f"{prefix}.{key} must be between 0 and 1"
    return None


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    # Required top-level sections
    required_sections = ['detection', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Validate detection settings
    detection = config.get('detection') or {}
    if not isinstance(detection, dict):
        return False, "detection must be a mapping"

    backend = detection.get('backend', 'east')
    if backend not in VALID_BACKENDS:
        return False, f"detection.backend must be one of: {', '.join(VALID_BACKENDS)}"

    for key in ('conf_threshold', 'nms_threshold'):
        if key in detection:
            error = _check_unit_interval(detection, key, 'detection')
            if error:
                return False, error
    if detection.get('nms_score_threshold') is not None:
        error = _check_unit_interval(detection, 'nms_score_threshold', 'detection')
        if error:
            return False, error

    if 'num_threads' in detection:
        threads = detection['num_threads']
        if not isinstance(threads, int) or isinstance(threads, bool) or threads < 0:
            return False, "detection.num_threads must be a non-negative integer"

    # Model paths
    east = detection.get('east') or {}
    if 'model_path' in east and (not isinstance(east['model_path'], str) or not east['model_path']):
        return False, "detection.east.model_path must be a non-empty string"

    if backend == 'textboxes':
        textboxes = detection.get('textboxes') or {}
        for key in ('model_path', 'prototxt_path'):
            value = textboxes.get(key)
            if not isinstance(value, str) or not value:
                return False, f"detection.textboxes.{key} is required when detection.backend is 'textboxes'"

    # Optional pipeline settings
    pipeline = config.get('pipeline') or {}
    if 'frame_similarity_threshold' in pipeline:
        threshold = pipeline['frame_similarity_threshold']
        if not _is_number(threshold) or threshold < 0:
            return False, "pipeline.frame_similarity_threshold must be a non-negative number"
    if 'dedup_compare' in pipeline and pipeline['dedup_compare'] not in VALID_DEDUP_COMPARE:
        return False, f"pipeline.dedup_compare must be one of: {', '.join(VALID_DEDUP_COMPARE)}"
    if 'progress_log_interval' in pipeline:
        interval = pipeline['progress_log_interval']
        if not isinstance(interval, int) or isinstance(interval, bool) or interval < 0:
            return False, "pipeline.progress_log_interval must be a non-negative integer"

    # Optional web settings
    web = config.get('web') or {}
    if 'port' in web:
        port = web['port']
        if not isinstance(port, int) or isinstance(port, bool) or not (0 < port < 65536):
            return False, "web.port must be an integer between 1 and 65535"

    # Validate log settings
    if not isinstance(config['log_path'], str):
        return False, "log_path must be a string"
    if config['log_level'] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None


def _start_web_server(config: Config) -> threading.Thread:
    def run_web_app():
        uvicorn.run(
            create_app(),
            host=config.web.host,
            port=config.web.port,
            log_level="warning",
        )

    web_thread = threading.Thread(target=run_web_app, name="status-api", daemon=True)
    web_thread.start()
    logging.info(f"Status API started on http://{config.web.host}:{config.web.port}/api/status")
    return web_thread


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Video Text Detector')
    parser.add_argument('video', type=str,
                        help='Path to the video file to process')
    parser.add_argument('--config', type=str, default=None,
                        help=f'Path to configuration file (default: {DEFAULT_CONFIG_PATH})')
    parser.add_argument('--save-dir', type=str, default=None,
                        help='Write annotated detection frames and detections.json here')
    parser.add_argument('--web', action='store_true',
                        help='Serve the status API while processing (overrides config)')
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main application function. Returns the process exit code."""
    args = parse_args(argv)

    config_path = args.config or DEFAULT_CONFIG_PATH
    if args.config and not os.path.exists(args.config):
        logging.error(f"Configuration file not found: {args.config}")
        return EXIT_FAILED

    # Load configuration
    try:
        # Built-in defaults sit under the YAML layers
        raw_config = _deep_merge(Config().to_dict(), load_config(config_path))
    except ConfigError as e:
        logging.error(str(e))
        return EXIT_FAILED

    # Validate configuration
    is_valid, error_msg = validate_config(raw_config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        return EXIT_FAILED

    config = Config.from_dict(raw_config)
    if args.web:
        config.web.enabled = True

    # Setup logging
    setup_logging(config.log_path, config.log_level)
    logging.info("Starting Video Text Detector")

    # Load the network before touching the video
    try:
        engine = create_engine_from_config(config)
    except (ModelLoadError, ConfigError) as e:
        logging.error(f"Failed to initialize detector: {e}")
        return EXIT_FAILED

    if config.web.enabled:
        web_state.set_engine(engine)
        web_state.set_config(config)
        _start_web_server(config)

    runner = PipelineRunner(engine)
    try:
        runner.start(args.video)
        try:
            session = runner.wait()
        except KeyboardInterrupt:
            logging.info("Interrupted by user, cancelling")
            runner.cancel()
            session = runner.wait()
    except Exception as e:
        logging.error(f"Processing failed: {e}")
        return EXIT_FAILED
    finally:
        runner.shutdown()

    detections = session.detections
    for detection in detections:
        logging.info(str(detection))

    if args.save_dir:
        try:
            save_detections(detections, args.save_dir)
        except OSError as e:
            logging.error(f"Failed to save detections: {e}")
            return EXIT_FAILED

    if session.state == RunState.CANCELLED:
        return EXIT_CANCELLED

    logging.info("Video Text Detector finished")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
