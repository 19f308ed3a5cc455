"""
Config Validation Tests
=======================

Tests de validación de configuración con Pydantic.

Invariantes testeadas:
1. Valores por defecto son válidos
2. Validación de rangos (threshold, smoothing_frames, imgsz, etc)
3. Validación de relaciones (default_lane ∈ lanes, catch_line <= field_height)
4. Carga desde YAML + override de credenciales MQTT por env
"""
import pytest
import yaml
from pydantic import ValidationError

from catcher.config.schemas import (
    CatcherConfig,
    GameSettings,
    ModelSettings,
    MQTTSettings,
    StabilizationSettings,
)
from catcher.game import GameRules
from catcher.inference.stabilization import StabilizationConfig


@pytest.mark.unit
class TestModelSettingsValidation:
    """Tests de validación de ModelSettings"""

    def test_default_values_valid(self):
        settings = ModelSettings()

        assert settings.imgsz == 224
        assert settings.labels is None
        assert settings.path.endswith(".onnx")

    def test_imgsz_must_be_multiple_of_32(self):
        """
        Invariante: imgsz debe ser múltiplo de 32.
        """
        assert ModelSettings(imgsz=320).imgsz == 320

        with pytest.raises(ValidationError) as exc_info:
            ModelSettings(imgsz=300)

        assert 'multiple of 32' in str(exc_info.value).lower()


@pytest.mark.unit
@pytest.mark.stabilization
class TestStabilizationSettingsValidation:

    def test_defaults(self):
        settings = StabilizationSettings()

        assert settings.mode == 'majority'
        assert settings.threshold == 0.7
        assert settings.smoothing_frames == 3

    @pytest.mark.parametrize("threshold", [-0.01, 1.01])
    def test_threshold_range(self, threshold):
        with pytest.raises(ValidationError):
            StabilizationSettings(threshold=threshold)

    def test_smoothing_frames_at_least_one(self):
        assert StabilizationSettings(smoothing_frames=1).smoothing_frames == 1

        with pytest.raises(ValidationError):
            StabilizationSettings(smoothing_frames=0)

    def test_invalid_mode(self):
        with pytest.raises(ValidationError):
            StabilizationSettings(mode='hysteresis')


@pytest.mark.unit
@pytest.mark.game
class TestGameSettingsValidation:

    def test_defaults_match_rules(self):
        """
        Invariante: defaults de config == defaults del engine.
        """
        assert GameSettings().to_rules() == GameRules()

    def test_default_lane_must_be_a_lane(self):
        with pytest.raises(ValidationError) as exc_info:
            GameSettings(lanes=["Left", "Right"], default_lane="Center")

        assert 'default_lane' in str(exc_info.value)

    def test_lanes_must_be_unique(self):
        with pytest.raises(ValidationError) as exc_info:
            GameSettings(lanes=["Left", "Left", "Center"])

        assert 'unique' in str(exc_info.value)

    def test_lanes_not_empty(self):
        with pytest.raises(ValidationError):
            GameSettings(lanes=[], default_lane="Center")

    def test_catch_line_inside_field(self):
        with pytest.raises(ValidationError) as exc_info:
            GameSettings(field_height=300, catch_line=350)

        assert 'catch_line' in str(exc_info.value)

    def test_invalid_policies(self):
        with pytest.raises(ValidationError):
            GameSettings(hazard_policy='ignore')
        with pytest.raises(ValidationError):
            GameSettings(miss_policy='explode')

    def test_hazard_probability_range(self):
        with pytest.raises(ValidationError):
            GameSettings(hazard_probability=1.5)

    def test_to_rules(self):
        settings = GameSettings(
            lanes=["Up", "Down"],
            default_lane="Down",
            miss_policy='penalize',
            miss_penalty=3,
            seed=9,
        )

        rules = settings.to_rules()

        assert rules.lanes == ("Up", "Down")
        assert rules.default_lane == "Down"
        assert rules.miss_policy == 'penalize'
        assert rules.miss_penalty == 3
        assert rules.seed == 9
        rules.validate()


@pytest.mark.unit
class TestCatcherConfigDefaults:

    def test_default_config_is_valid(self):
        config = CatcherConfig()

        assert config.camera.size == 400
        assert config.camera.max_fps == 30
        assert config.mqtt.enabled is False
        assert config.display.enabled is True
        assert config.logging.level == 'INFO'

    def test_mqtt_defaults(self):
        mqtt = MQTTSettings()

        assert mqtt.broker.host == "localhost"
        assert mqtt.broker.port == 1883
        assert mqtt.topics.control_commands == "catcher/control/commands"
        assert mqtt.topics.events == "catcher/data/events"
        assert mqtt.qos.control == 1
        assert mqtt.qos.data == 0

    def test_stabilization_config(self):
        config = CatcherConfig(stabilization={"mode": "none", "threshold": 0.5, "smoothing_frames": 4})

        assert config.stabilization_config() == StabilizationConfig(
            mode='none', threshold=0.5, smoothing_frames=4
        )


@pytest.mark.unit
class TestConfigFromYaml:

    def test_load_yaml(self, tmp_path, monkeypatch):
        monkeypatch.delenv('MQTT_USERNAME', raising=False)
        monkeypatch.delenv('MQTT_PASSWORD', raising=False)
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({
            "camera": {"device": 1, "max_fps": 15},
            "stabilization": {"threshold": 0.8, "smoothing_frames": 5},
            "game": {"lanes": ["Left", "Right"], "default_lane": "Left"},
            "mqtt": {"enabled": True, "broker": {"host": "broker.local"}},
        }))

        config = CatcherConfig.from_yaml(str(path))

        assert config.camera.device == 1
        assert config.camera.max_fps == 15
        assert config.stabilization.threshold == 0.8
        assert config.game.lanes == ["Left", "Right"]
        assert config.mqtt.broker.host == "broker.local"
        assert config.mqtt.broker.username is None

    def test_empty_yaml_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")

        config = CatcherConfig.from_yaml(str(path))

        assert config.game.default_lane == "Center"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            CatcherConfig.from_yaml(str(tmp_path / "missing.yaml"))

    def test_invalid_yaml_values_raise(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"game": {"catch_line": 500, "field_height": 400}}))

        with pytest.raises(ValidationError):
            CatcherConfig.from_yaml(str(path))

    def test_env_overrides_mqtt_credentials(self, tmp_path, monkeypatch):
        monkeypatch.setenv('MQTT_USERNAME', 'player')
        monkeypatch.setenv('MQTT_PASSWORD', 'secret')
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"mqtt": {"broker": {"username": "yaml-user"}}}))

        config = CatcherConfig.from_yaml(str(path))

        assert config.mqtt.broker.username == 'player'
        assert config.mqtt.broker.password == 'secret'
