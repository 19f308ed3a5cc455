"""
Pydantic Configuration Schemas
================================

Type-safe configuration validation usando Pydantic v2.

Benefits:
- Validación en load time (no en runtime)
- Relaciones entre campos validadas (default_lane ∈ lanes, catch_line <= field_height)
- Mejores mensajes de error

Usage:
    config = CatcherConfig.from_yaml("config/catcher/config.yaml")
    rules = config.game.to_rules()
"""
from typing import Dict, List, Literal, Optional
from pathlib import Path
from pydantic import BaseModel, Field, field_validator, model_validator
import os


# ============================================================================
# Camera / Model Configuration
# ============================================================================

class CameraSettings(BaseModel):
    """Webcam acquisition settings"""
    device: int = Field(
        default=0,
        ge=0,
        description="OpenCV VideoCapture device index"
    )
    size: int = Field(
        default=400,
        ge=64,
        le=1920,
        description="Square frame size (pixels) fed to classifier and renderer"
    )
    flip: bool = Field(
        default=True,
        description="Mirror the webcam image (selfie view)"
    )
    max_fps: int = Field(
        default=30,
        ge=1,
        le=120,
        description="Maximum frames per second of the game loop"
    )


class ModelSettings(BaseModel):
    """Pose classification model (Ultralytics classify, ONNX or .pt)"""
    path: str = Field(
        default="models/pose-cls-224.onnx",
        description="Path to the image-classification model"
    )
    imgsz: int = Field(
        default=224,
        ge=32,
        le=1280,
        description="Model input size (must be multiple of 32)"
    )
    labels: Optional[List[str]] = Field(
        default=None,
        description="Override class names (None = use names embedded in the model)"
    )

    @field_validator('imgsz')
    @classmethod
    def validate_imgsz_multiple_of_32(cls, v: int) -> int:
        """Validate that imgsz is multiple of 32"""
        if v % 32 != 0:
            raise ValueError(f"imgsz must be multiple of 32, got {v}")
        return v


# ============================================================================
# Stabilization Configuration
# ============================================================================

class StabilizationSettings(BaseModel):
    """Prediction stabilization configuration"""
    mode: Literal['none', 'majority'] = Field(
        default='majority',
        description="Stabilization mode"
    )
    threshold: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Minimum probability for a label to be a candidate"
    )
    smoothing_frames: int = Field(
        default=3,
        ge=1,
        le=120,
        description="Majority vote window size (frames)"
    )


# ============================================================================
# Game Configuration
# ============================================================================

class GameSettings(BaseModel):
    """Fruit Catcher rules"""
    lanes: List[str] = Field(
        default_factory=lambda: ["Left", "Center", "Right"],
        min_length=1,
        description="Lane labels (must match classifier labels)"
    )
    default_lane: str = Field(
        default="Center",
        description="Catcher lane at session start"
    )
    field_height: float = Field(
        default=400.0,
        gt=0,
        description="Play field height"
    )
    catch_line: float = Field(
        default=350.0,
        ge=0,
        description="Vertical offset where items are judged against the catcher"
    )
    spawn_interval: float = Field(
        default=2.0,
        ge=0.0,
        description="Seconds between spawns"
    )
    hazard_probability: float = Field(
        default=0.2,
        ge=0.0,
        le=1.0,
        description="Probability that a spawned item is a bomb"
    )
    base_speed: float = Field(
        default=2.0,
        gt=0,
        description="Item fall speed at level 0 (units per tick)"
    )
    speed_per_level: float = Field(
        default=0.5,
        ge=0,
        description="Fall speed increment per level"
    )
    points_per_catch: int = Field(
        default=10,
        ge=0,
        description="Points per caught fruit"
    )
    catches_per_level: int = Field(
        default=5,
        ge=1,
        description="Catches needed to level up"
    )
    hazard_policy: Literal['end_session', 'penalize'] = Field(
        default='end_session',
        description="What catching a bomb does"
    )
    hazard_penalty: int = Field(
        default=10,
        ge=0,
        description="Points lost per bomb when hazard_policy='penalize'"
    )
    miss_policy: Literal['free', 'end_session', 'penalize'] = Field(
        default='free',
        description="What missing a fruit does"
    )
    miss_penalty: int = Field(
        default=5,
        ge=0,
        description="Points lost per missed fruit when miss_policy='penalize'"
    )
    seed: Optional[int] = Field(
        default=None,
        description="RNG seed (None = nondeterministic)"
    )

    @model_validator(mode='after')
    def validate_lanes(self):
        """Lanes unique and default lane among them"""
        if len(set(self.lanes)) != len(self.lanes):
            raise ValueError(f"lanes must be unique, got {self.lanes}")
        if self.default_lane not in self.lanes:
            raise ValueError(
                f"default_lane ({self.default_lane}) must be one of lanes {self.lanes}"
            )
        return self

    @model_validator(mode='after')
    def validate_catch_line(self):
        """Catch line must be inside the field"""
        if self.catch_line > self.field_height:
            raise ValueError(
                f"catch_line ({self.catch_line}) must be <= "
                f"field_height ({self.field_height})"
            )
        return self

    def to_rules(self) -> 'GameRules':
        """Convierte a GameRules (dataclass del engine)"""
        from ..game.rules import GameRules

        return GameRules(
            lanes=tuple(self.lanes),
            default_lane=self.default_lane,
            field_height=self.field_height,
            catch_line=self.catch_line,
            spawn_interval=self.spawn_interval,
            hazard_probability=self.hazard_probability,
            base_speed=self.base_speed,
            speed_per_level=self.speed_per_level,
            points_per_catch=self.points_per_catch,
            catches_per_level=self.catches_per_level,
            hazard_policy=self.hazard_policy,
            hazard_penalty=self.hazard_penalty,
            miss_policy=self.miss_policy,
            miss_penalty=self.miss_penalty,
            seed=self.seed,
        )


# ============================================================================
# MQTT Configuration
# ============================================================================

class MQTTBrokerSettings(BaseModel):
    """MQTT broker connection settings"""
    host: str = Field(
        default="localhost",
        description="MQTT broker hostname"
    )
    port: int = Field(
        default=1883,
        ge=1,
        le=65535,
        description="MQTT broker port"
    )
    username: Optional[str] = Field(
        default=None,
        description="MQTT username (optional, from env)"
    )
    password: Optional[str] = Field(
        default=None,
        description="MQTT password (optional, from env)"
    )


class MQTTTopicsSettings(BaseModel):
    """MQTT topic configuration"""
    control_commands: str = Field(
        default="catcher/control/commands",
        description="Control commands topic (QoS 1)"
    )
    control_status: str = Field(
        default="catcher/control/status",
        description="Control status topic (retained)"
    )
    events: str = Field(
        default="catcher/data/events",
        description="Game events topic (score, level, game over)"
    )
    state: str = Field(
        default="catcher/data/state",
        description="Game state snapshots topic (remote renderers)"
    )


class MQTTQoSSettings(BaseModel):
    """MQTT QoS levels"""
    control: Literal[0, 1, 2] = Field(
        default=1,
        description="Control plane QoS (recommended: 1 for reliability)"
    )
    data: Literal[0, 1, 2] = Field(
        default=0,
        description="Data plane QoS (recommended: 0 for performance)"
    )


class MQTTSettings(BaseModel):
    """Complete MQTT configuration"""
    enabled: bool = Field(
        default=False,
        description="Enable MQTT control and data planes"
    )
    publish_state: bool = Field(
        default=False,
        description="Publish a state snapshot every frame on topics.state"
    )
    broker: MQTTBrokerSettings = Field(default_factory=MQTTBrokerSettings)
    topics: MQTTTopicsSettings = Field(default_factory=MQTTTopicsSettings)
    qos: MQTTQoSSettings = Field(default_factory=MQTTQoSSettings)


# ============================================================================
# Display Configuration
# ============================================================================

class DisplaySettings(BaseModel):
    """OpenCV window settings"""
    enabled: bool = Field(
        default=True,
        description="Show the game window (False = headless)"
    )
    window_name: str = Field(
        default="Fruit Catcher",
        description="OpenCV window title"
    )
    show_probabilities: bool = Field(
        default=True,
        description="Show per-class classifier probabilities in the HUD"
    )


# ============================================================================
# Logging Configuration
# ============================================================================

class LoggingSettings(BaseModel):
    """Logging configuration (JSON structured logging)"""
    level: Literal['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'] = Field(
        default='INFO',
        description="Log level"
    )
    json_indent: Optional[int] = Field(
        default=None,
        ge=0,
        le=4,
        description="JSON indent for pretty-print (None=compact, 2=readable)"
    )
    paho_level: Literal['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'] = Field(
        default='WARNING',
        description="Paho MQTT library log level"
    )
    file: Optional[str] = Field(
        default=None,
        description="Path to log file (None=stdout). If specified, enables file rotation."
    )
    max_bytes: int = Field(
        default=10485760,  # 10 MB
        ge=1024,
        description="Maximum bytes per log file before rotation (default 10 MB)"
    )
    backup_count: int = Field(
        default=5,
        ge=0,
        description="Number of backup log files to keep"
    )


# ============================================================================
# Root Configuration
# ============================================================================

class CatcherConfig(BaseModel):
    """
    Root configuration with full validation.

    Loads from YAML and validates all settings.
    Environment variables override YAML for sensitive data.
    """
    camera: CameraSettings = Field(default_factory=CameraSettings)
    model: ModelSettings = Field(default_factory=ModelSettings)
    stabilization: StabilizationSettings = Field(default_factory=StabilizationSettings)
    game: GameSettings = Field(default_factory=GameSettings)
    mqtt: MQTTSettings = Field(default_factory=MQTTSettings)
    display: DisplaySettings = Field(default_factory=DisplaySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_yaml(cls, config_path: str) -> 'CatcherConfig':
        """
        Load and validate configuration from YAML file.

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValidationError: If config is invalid
        """
        import yaml

        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create it from config/catcher/config.yaml"
            )

        with open(config_file, 'r') as f:
            config_dict = yaml.safe_load(f) or {}

        return cls(**apply_env_overrides(config_dict))

    def stabilization_config(self) -> 'StabilizationConfig':
        """Convierte a StabilizationConfig (dataclass del stabilizer)"""
        from ..inference.stabilization import StabilizationConfig

        return StabilizationConfig(
            mode=self.stabilization.mode,
            threshold=self.stabilization.threshold,
            smoothing_frames=self.stabilization.smoothing_frames,
        )


def apply_env_overrides(config_dict: Dict) -> Dict:
    """
    Override de datos sensibles desde variables de entorno.

    MQTT_USERNAME / MQTT_PASSWORD pisan mqtt.broker.username / password.
    """
    username = os.getenv('MQTT_USERNAME')
    password = os.getenv('MQTT_PASSWORD')
    if not (username or password):
        return config_dict

    broker = config_dict.setdefault('mqtt', {}).setdefault('broker', {})
    if username:
        broker['username'] = username
    if password:
        broker['password'] = password
    return config_dict
