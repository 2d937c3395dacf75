"""Configuration classes for the faceoverlay app.

Example:
    >>> from faceoverlay.config import AppConfig, CameraConfig, DisplayConfig
    >>>
    >>> config = AppConfig(
    ...     camera=CameraConfig(index=1, preset="high", lens_direction="back"),
    ...     display=DisplayConfig(skin="plain", canvas_width=480, canvas_height=800),
    ... )

The same configuration as YAML::

    camera:
      index: 1
      preset: high
      lens_direction: back
    display:
      skin: plain
      canvas_width: 480
      canvas_height: 800
"""

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, Optional

from faceoverlay.backends import BACKEND_NAMES, DetectorOptions
from faceoverlay.camera import ResolutionPreset
from faceoverlay.conversion import ImageFormat
from faceoverlay.errors import ConfigError
from faceoverlay.skins import SKINS
from faceoverlay.types import LensDirection, Size

VALID_ROTATIONS = (0, 90, 180, 270)


@dataclass
class CameraConfig:
    """Camera acquisition settings.

    Attributes:
        index: Camera device index.
        preset: Resolution preset: low, medium, high or very_high.
        lens_direction: front (mirrored preview), back or external.
        sensor_rotation: Degrees to rotate frames upright.
        image_format: Pixel format pushed to the detector: nv21, bgra8888, bgr888.
    """

    index: int = 0
    preset: str = "medium"
    lens_direction: str = "front"
    sensor_rotation: int = 0
    image_format: str = "nv21"

    def __post_init__(self) -> None:
        try:
            ResolutionPreset.from_string(self.preset)
            ImageFormat.from_string(self.image_format)
            LensDirection(self.lens_direction.lower())
        except ValueError as e:
            raise ConfigError(str(e)) from None
        if self.sensor_rotation not in VALID_ROTATIONS:
            raise ConfigError(
                f"sensor_rotation must be one of {VALID_ROTATIONS}, got {self.sensor_rotation}"
            )

    @property
    def resolution_preset(self) -> ResolutionPreset:
        return ResolutionPreset.from_string(self.preset)

    @property
    def lens(self) -> LensDirection:
        return LensDirection(self.lens_direction.lower())

    @property
    def format(self) -> ImageFormat:
        return ImageFormat.from_string(self.image_format)


@dataclass
class DetectorConfig:
    """Face detector settings.

    Attributes:
        backend: Detection backend name.
        max_faces: Maximum faces per frame.
        min_detection_confidence: Detection threshold [0, 1].
        enable_landmarks: Report eye/nose/mouth landmarks.
        enable_classification: Report smile probability.
        model_path: Local model file (None = download default).
    """

    backend: str = "mediapipe"
    max_faces: int = 4
    min_detection_confidence: float = 0.5
    enable_landmarks: bool = True
    enable_classification: bool = True
    model_path: Optional[str] = None

    def __post_init__(self) -> None:
        if self.backend not in BACKEND_NAMES:
            raise ConfigError(
                f"Unknown detection backend {self.backend!r}. "
                f"Choose from: {', '.join(BACKEND_NAMES)}"
            )
        if self.max_faces < 1:
            raise ConfigError(f"max_faces must be >= 1, got {self.max_faces}")
        if not 0.0 <= self.min_detection_confidence <= 1.0:
            raise ConfigError(
                f"min_detection_confidence must be in [0, 1], got {self.min_detection_confidence}"
            )

    def to_options(self) -> DetectorOptions:
        return DetectorOptions(
            enable_landmarks=self.enable_landmarks,
            enable_classification=self.enable_classification,
            max_faces=self.max_faces,
            min_detection_confidence=self.min_detection_confidence,
            model_path=self.model_path,
        )


@dataclass
class DisplayConfig:
    """Window and overlay settings.

    Attributes:
        title: Window title.
        canvas_width: Canvas width; None uses the upright frame size.
        canvas_height: Canvas height; None uses the upright frame size.
        skin: Overlay skin name (badge or plain).
        show_hud: Draw the "Faces Detected" panel.
        wait_ms: cv2.waitKey delay per tick.
    """

    title: str = "Face Detection"
    canvas_width: Optional[int] = None
    canvas_height: Optional[int] = None
    skin: str = "badge"
    show_hud: bool = True
    wait_ms: int = 1

    def __post_init__(self) -> None:
        if self.skin not in SKINS:
            raise ConfigError(
                f"Unknown skin {self.skin!r}. Choose from: {', '.join(sorted(SKINS))}"
            )
        if (self.canvas_width is None) != (self.canvas_height is None):
            raise ConfigError("canvas_width and canvas_height must be set together")
        if self.canvas_width is not None and (self.canvas_width <= 0 or self.canvas_height <= 0):
            raise ConfigError(
                f"Canvas size must be positive, got {self.canvas_width}x{self.canvas_height}"
            )

    @property
    def canvas_size(self) -> Optional[Size]:
        if self.canvas_width is None:
            return None
        return Size(self.canvas_width, self.canvas_height)


def _section(cls, data: Dict[str, Any], name: str):
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"'{name}' section must be a mapping")
    known = {f.name for f in fields(cls)}
    unknown = set(section) - known
    if unknown:
        raise ConfigError(f"Unknown '{name}' keys: {', '.join(sorted(unknown))}")
    return cls(**section)


@dataclass
class AppConfig:
    """Complete configuration for the overlay app."""

    camera: CameraConfig = field(default_factory=CameraConfig)
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppConfig":
        """Create AppConfig from a dictionary (e.g., loaded from YAML).

        Raises:
            ConfigError: On unknown keys or invalid values.
        """
        if not isinstance(data, dict):
            raise ConfigError("Config root must be a mapping")
        return cls(
            camera=_section(CameraConfig, data, "camera"),
            detector=_section(DetectorConfig, data, "detector"),
            display=_section(DisplayConfig, data, "display"),
        )

    @classmethod
    def from_yaml(cls, yaml_path: str) -> "AppConfig":
        """Load AppConfig from a YAML file.

        Raises:
            ImportError: If PyYAML is not installed.
            FileNotFoundError: If the file doesn't exist.
            ConfigError: On invalid contents.
        """
        try:
            import yaml
        except ImportError:
            raise ImportError(
                "PyYAML is required for YAML config support. "
                "Install it with: pip install pyyaml"
            )

        with open(yaml_path) as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)


__all__ = ["CameraConfig", "DetectorConfig", "DisplayConfig", "AppConfig"]
