"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class EastConfig:
    """EAST detector network settings."""
    model_path: str = "frozen_east_text_detection.pb"
    mean: List[float] = field(default_factory=lambda: [123.68, 116.78, 103.94])
    swap_rb: bool = True
    score_output: str = "feature_fusion/Conv_7/Sigmoid"
    geometry_output: str = "feature_fusion/concat_3"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "EastConfig":
        return cls(
            model_path=d.get("model_path", "frozen_east_text_detection.pb"),
            mean=list(d.get("mean", [123.68, 116.78, 103.94])),
            swap_rb=d.get("swap_rb", True),
            score_output=d.get("score_output", "feature_fusion/Conv_7/Sigmoid"),
            geometry_output=d.get("geometry_output", "feature_fusion/concat_3"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model_path": self.model_path,
            "mean": self.mean,
            "swap_rb": self.swap_rb,
            "score_output": self.score_output,
            "geometry_output": self.geometry_output,
        }


@dataclass
class TextBoxesConfig:
    """TextBoxes++ (Caffe) detector network settings."""
    model_path: str = "TextBoxes_icdar13.caffemodel"
    prototxt_path: str = "textbox.prototxt"
    input_size: List[int] = field(default_factory=lambda: [300, 300])
    mean: List[float] = field(default_factory=lambda: [104.0, 117.0, 123.0])

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TextBoxesConfig":
        return cls(
            model_path=d.get("model_path", "TextBoxes_icdar13.caffemodel"),
            prototxt_path=d.get("prototxt_path", "textbox.prototxt"),
            input_size=list(d.get("input_size", [300, 300])),
            mean=list(d.get("mean", [104.0, 117.0, 123.0])),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model_path": self.model_path,
            "prototxt_path": self.prototxt_path,
            "input_size": self.input_size,
            "mean": self.mean,
        }


@dataclass
class DetectionConfig:
    """Detection configuration."""
    backend: str = "east"
    model_dir: Optional[str] = None
    conf_threshold: float = 0.5
    nms_threshold: float = 0.4
    nms_score_threshold: Optional[float] = None
    num_threads: int = 8
    use_gpu: bool = False
    east: EastConfig = field(default_factory=EastConfig)
    textboxes: TextBoxesConfig = field(default_factory=TextBoxesConfig)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectionConfig":
        return cls(
            backend=d.get("backend", "east"),
            model_dir=d.get("model_dir"),
            conf_threshold=float(d.get("conf_threshold", 0.5)),
            nms_threshold=float(d.get("nms_threshold", 0.4)),
            nms_score_threshold=d.get("nms_score_threshold"),
            num_threads=int(d.get("num_threads", 8)),
            use_gpu=d.get("use_gpu", False),
            east=EastConfig.from_dict(d.get("east") or {}),
            textboxes=TextBoxesConfig.from_dict(d.get("textboxes") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "backend": self.backend,
            "conf_threshold": self.conf_threshold,
            "nms_threshold": self.nms_threshold,
            "num_threads": self.num_threads,
            "use_gpu": self.use_gpu,
            "east": self.east.to_dict(),
            "textboxes": self.textboxes.to_dict(),
        }
        if self.model_dir is not None:
            d["model_dir"] = self.model_dir
        if self.nms_score_threshold is not None:
            d["nms_score_threshold"] = self.nms_score_threshold
        return d

    def resolve_model_path(self, path: str) -> str:
        """Resolve a model file path against model_dir when it is relative."""
        if self.model_dir and not os.path.isabs(path):
            return os.path.join(self.model_dir, path)
        return path


@dataclass
class PipelineSettings:
    """Frame loop settings."""
    frame_similarity_threshold: float = 5.0
    dedup_compare: str = "boxes"
    progress_log_interval: int = 100

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PipelineSettings":
        return cls(
            frame_similarity_threshold=float(d.get("frame_similarity_threshold", 5.0)),
            dedup_compare=d.get("dedup_compare", "boxes"),
            progress_log_interval=int(d.get("progress_log_interval", 100)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "frame_similarity_threshold": self.frame_similarity_threshold,
            "dedup_compare": self.dedup_compare,
            "progress_log_interval": self.progress_log_interval,
        }


@dataclass
class WebConfig:
    """Status API server settings."""
    enabled: bool = False
    host: str = "127.0.0.1"
    port: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(
            enabled=d.get("enabled", False),
            host=d.get("host", "127.0.0.1"),
            port=int(d.get("port", 5000)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"enabled": self.enabled, "host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    pipeline: PipelineSettings = field(default_factory=PipelineSettings)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/text_detector.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            detection=DetectionConfig.from_dict(d.get("detection") or {}),
            pipeline=PipelineSettings.from_dict(d.get("pipeline") or {}),
            web=WebConfig.from_dict(d.get("web") or {}),
            log_path=d.get("log_path", "logs/text_detector.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "detection": self.detection.to_dict(),
            "pipeline": self.pipeline.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
