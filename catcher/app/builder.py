"""
Game Builder
============

Builder pattern para construir el juego con todas sus dependencias.

Responsabilidad:
- Frame source (webcam o blank en modo script)
- Classifier (modelo Ultralytics o ScriptedClassifier)
- Stabilizer + GameEngine desde config
- Render sink (ventana OpenCV o headless)
- Control / Data Plane (solo si mqtt.enabled)

Diseño:
- Builder construye, Controller orquesta (no conoce detalles)
- Toda la lógica de construcción centralizada aquí
"""
from typing import Optional, Union, TYPE_CHECKING
import logging

from ..config import CatcherConfig
from ..game import GameEngine
from ..inference.base import BaseClassifier
from ..inference.camera import BlankFrameSource, CameraSource
from ..inference.scripted import ScriptedClassifier
from ..inference.stabilization import BasePredictionStabilizer, create_stabilizer
from ..visualization.sinks import NullRenderSink, OpenCVRenderSink

# Type-only imports (paho se importa solo si mqtt.enabled)
if TYPE_CHECKING:
    from ..control import MQTTControlPlane
    from ..data import MQTTDataPlane

logger = logging.getLogger(__name__)


class GameBuilder:
    """
    Builder del juego.

    Usage:
        builder = GameBuilder(config, script_path="config/catcher/poses_demo.yaml")

        frame_source = builder.build_frame_source()
        classifier = builder.build_classifier()
        stabilizer = builder.build_stabilizer()
        engine = builder.build_engine()
        render_sink = builder.build_render_sink()
    """

    def __init__(
        self,
        config: CatcherConfig,
        script_path: Optional[str] = None,
        headless: bool = False,
    ):
        """
        Args:
            config: CatcherConfig validado
            script_path: YAML de poses grabadas (reemplaza cámara + modelo)
            headless: Sin ventana OpenCV
        """
        self.config = config
        self.script_path = script_path
        self.headless = headless

    @property
    def display_enabled(self) -> bool:
        return self.config.display.enabled and not self.headless

    def build_frame_source(self) -> Union[CameraSource, BlankFrameSource]:
        """Webcam, o frames negros si las poses vienen de un script"""
        if self.script_path:
            logger.info(
                "Using blank frame source",
                extra={"component": "builder", "event": "frame_source_built", "source": "blank"}
            )
            return BlankFrameSource(size=self.config.camera.size)

        logger.info(
            "Using camera frame source",
            extra={
                "component": "builder",
                "event": "frame_source_built",
                "source": "camera",
                "device": self.config.camera.device,
            }
        )
        return CameraSource(
            device=self.config.camera.device,
            size=self.config.camera.size,
            flip=self.config.camera.flip,
        )

    def build_classifier(self) -> BaseClassifier:
        """
        Raises:
            FileNotFoundError: Si el script o el modelo no existen
            ValueError: Si el modelo no es .onnx / .pt
        """
        if self.script_path:
            classifier = ScriptedClassifier.from_yaml(self.script_path)
        else:
            # Import tardío: ultralytics tarda en cargar y no hace falta en modo script
            from ..inference.models import LocalClassificationModel

            classifier = LocalClassificationModel(
                model_path=self.config.model.path,
                imgsz=self.config.model.imgsz,
                labels=self.config.model.labels,
            )

        unknown = set(self.config.game.lanes) - set(classifier.labels)
        if unknown:
            logger.warning(
                f"⚠️ Lanes sin clase en el classifier: {sorted(unknown)}",
                extra={
                    "component": "builder",
                    "event": "lane_label_mismatch",
                    "lanes": list(self.config.game.lanes),
                    "labels": list(classifier.labels),
                }
            )

        logger.info(
            "Classifier built",
            extra={
                "component": "builder",
                "event": "classifier_built",
                "model_id": classifier.model_id,
            }
        )
        return classifier

    def build_stabilizer(self) -> BasePredictionStabilizer:
        stabilizer = create_stabilizer(self.config.stabilization_config())
        logger.info(
            "Stabilizer built",
            extra={
                "component": "builder",
                "event": "stabilizer_built",
                "stabilization_mode": self.config.stabilization.mode,
                "threshold": self.config.stabilization.threshold,
                "smoothing_frames": self.config.stabilization.smoothing_frames,
            }
        )
        return stabilizer

    def build_engine(self) -> GameEngine:
        rules = self.config.game.to_rules()
        logger.info(
            "Game engine built",
            extra={
                "component": "builder",
                "event": "engine_built",
                "lanes": list(rules.lanes),
                "hazard_policy": rules.hazard_policy,
                "miss_policy": rules.miss_policy,
            }
        )
        return GameEngine(rules)

    def build_render_sink(self) -> Union[OpenCVRenderSink, NullRenderSink]:
        if not self.display_enabled:
            logger.info(
                "Headless mode, render sink disabled",
                extra={"component": "builder", "event": "render_sink_built", "sink": "null"}
            )
            return NullRenderSink()

        return OpenCVRenderSink(
            rules=self.config.game.to_rules(),
            size=self.config.camera.size,
            window_name=self.config.display.window_name,
            show_probabilities=self.config.display.show_probabilities,
        )

    def build_data_plane(self) -> Optional['MQTTDataPlane']:
        """Data Plane (None si mqtt.enabled=False)"""
        mqtt = self.config.mqtt
        if not mqtt.enabled:
            return None

        from ..data import MQTTDataPlane

        return MQTTDataPlane(
            broker_host=mqtt.broker.host,
            broker_port=mqtt.broker.port,
            events_topic=mqtt.topics.events,
            state_topic=mqtt.topics.state,
            username=mqtt.broker.username,
            password=mqtt.broker.password,
            qos=mqtt.qos.data,
        )

    def build_control_plane(self) -> Optional['MQTTControlPlane']:
        """Control Plane (None si mqtt.enabled=False)"""
        mqtt = self.config.mqtt
        if not mqtt.enabled:
            return None

        from ..control import MQTTControlPlane

        return MQTTControlPlane(
            broker_host=mqtt.broker.host,
            broker_port=mqtt.broker.port,
            command_topic=mqtt.topics.control_commands,
            status_topic=mqtt.topics.control_status,
            username=mqtt.broker.username,
            password=mqtt.broker.password,
            qos=mqtt.qos.control,
        )
