"""
Configuration management for the sign-to-health intake pipeline.
"""
import yaml
from pathlib import Path
from typing import Optional, Dict, Any
from dataclasses import dataclass, field


@dataclass
class CameraConfig:
    """Camera configuration settings."""
    index: int = 0
    width: int = 1280
    height: int = 720
    fps: int = 30


@dataclass
class HandsConfig:
    """MediaPipe Hands configuration settings."""
    max_num_hands: int = 2
    min_detection_confidence: float = 0.35
    min_tracking_confidence: float = 0.35


@dataclass
class PoseConfig:
    """MediaPipe Pose configuration settings."""
    min_detection_confidence: float = 0.4
    min_tracking_confidence: float = 0.4


@dataclass
class MediaPipeConfig:
    """MediaPipe detector configuration."""
    hands: HandsConfig = field(default_factory=HandsConfig)
    pose: PoseConfig = field(default_factory=PoseConfig)


@dataclass
class SmoothingConfig:
    """Temporal stabilizer configuration."""
    debounce_ms: int = 100
    stable_frames: int = 2


@dataclass
class EmotionConfig:
    """External emotion service and fusion configuration."""
    freshness_ms: int = 2000
    frame_stride: int = 15
    min_interval_ms: int = 500
    request_timeout_s: float = 15.0
    max_consecutive_errors: int = 3
    service_url: Optional[str] = None
    api_key_env: str = "HUME_API_KEY"


@dataclass
class StorageConfig:
    """Session persistence configuration."""
    data_dir: str = "data"
    max_session_history: int = 100
    local_cache_size: int = 50
    api_url: Optional[str] = None


@dataclass
class DisplayConfig:
    """Display configuration settings."""
    show_landmarks: bool = True
    window_name: str = "Sign-to-Health Intake"


@dataclass
class Cfg:
    """Main configuration class."""
    camera: CameraConfig = field(default_factory=CameraConfig)
    mediapipe: MediaPipeConfig = field(default_factory=MediaPipeConfig)
    smoothing: SmoothingConfig = field(default_factory=SmoothingConfig)
    emotion: EmotionConfig = field(default_factory=EmotionConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)


def load_config(path: Optional[str] = None) -> Cfg:
    """
    Load configuration from YAML file.

    Args:
        path: Path to config file. If None, uses config.default.yaml

    Returns:
        Configuration object with all settings
    """
    if path is None:
        # Use default config file in project root
        project_root = Path(__file__).parent.parent
        path = project_root / "config.default.yaml"

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f) or {}

    return config_from_dict(data)


def config_from_dict(data: Dict[str, Any]) -> Cfg:
    """Convert dictionary to configuration object, defaulting absent sections."""
    mp_data = data.get('mediapipe') or {}
    mediapipe = MediaPipeConfig(
        hands=HandsConfig(**(mp_data.get('hands') or {})),
        pose=PoseConfig(**(mp_data.get('pose') or {})),
    )

    return Cfg(
        camera=CameraConfig(**(data.get('camera') or {})),
        mediapipe=mediapipe,
        smoothing=SmoothingConfig(**(data.get('smoothing') or {})),
        emotion=EmotionConfig(**(data.get('emotion') or {})),
        storage=StorageConfig(**(data.get('storage') or {})),
        display=DisplayConfig(**(data.get('display') or {})),
    )
