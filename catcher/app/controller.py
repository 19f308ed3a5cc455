"""
Fruit Catcher con MQTT Control y Data Plane
===========================================

Frame loop: cámara -> classifier -> stabilizer -> GameEngine -> render
Control Plane: start/stop/status vía MQTT (o teclado en la ventana)
Data Plane: publica eventos del juego (score, level, game over) vía MQTT
"""
import argparse
import signal
import sys
import time
import logging
from contextlib import nullcontext
from functools import partial
from pathlib import Path
from queue import Empty, Queue
from threading import Event
from typing import Callable, List, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from ..config import CatcherConfig
from ..data import create_mqtt_listener
from ..game.events import GameEnded, GameEvent, GameStarted
from ..logging import (
    generate_trace_id,
    log_error_with_context,
    log_game_event,
    log_stabilization_stats,
    setup_logging,
    trace_context,
)
from .builder import GameBuilder

# Logger (será configurado en main() con config values)
logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/catcher/config.yaml"

# Atajos de teclado en la ventana OpenCV
KEY_COMMANDS = {
    ord('s'): 'start',
    ord('x'): 'stop',
    ord('q'): 'quit',
}


# ============================================================================
# GAME CONTROLLER
# ============================================================================
class GameController:
    """
    Controlador del juego con MQTT control y data plane.

    Responsabilidad: Orquestación y lifecycle management
    - Setup de componentes (delega construcción a GameBuilder)
    - Frame loop (un step() por frame)
    - Comandos (MQTT/teclado) encolados y drenados entre ticks
    - Signal handling (Ctrl+C)
    - Cleanup de recursos

    Threading:
        paho corre los callbacks en su propio thread. Los handlers del
        registry solo encolan; el engine se toca únicamente desde el frame loop.
    """

    def __init__(
        self,
        config: CatcherConfig,
        builder: Optional[GameBuilder] = None,
        max_frames: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.builder = builder or GameBuilder(config)
        self.max_frames = max_frames
        self.clock = clock

        # Componentes (serán creados por builder en setup)
        self.frame_source = None
        self.classifier = None
        self.stabilizer = None
        self.engine = None
        self.render_sink = None
        self.control_plane = None
        self.data_plane = None

        # Estado del último frame (para status / HUD)
        self.frame_count = 0
        self.last_sample = None
        self.last_prediction = None
        self.session_id: Optional[str] = None

        # Lifecycle
        self.commands: "Queue[str]" = Queue()
        self.shutdown_event = Event()

    def setup(self) -> bool:
        """
        Construye componentes y conecta MQTT.

        Returns:
            bool: True si setup exitoso, False si falla
        """
        logger.info("🚀 Inicializando Fruit Catcher...")

        # ====================================================================
        # 1. Data Plane (publicador de eventos del juego)
        # ====================================================================
        self.data_plane = self.builder.build_data_plane()
        if self.data_plane is not None:
            logger.info("📡 Configurando Data Plane...")
            if not self.data_plane.connect(timeout=10):
                logger.error("❌ No se pudo conectar Data Plane")
                return False

        # ====================================================================
        # 2. Frame source + classifier + stabilizer (DELEGADO A BUILDER)
        # ====================================================================
        try:
            self.frame_source = self.builder.build_frame_source()
            self.frame_source.open()
            self.classifier = self.builder.build_classifier()
        except (RuntimeError, FileNotFoundError, ValueError) as e:
            log_error_with_context(
                logger,
                message="❌ Error inicializando cámara/modelo",
                exception=e,
                component="controller",
                event="setup_failed",
            )
            return False

        self.stabilizer = self.builder.build_stabilizer()

        # ====================================================================
        # 3. Engine + listeners
        # ====================================================================
        self.engine = self.builder.build_engine()
        self.engine.add_listener(self._on_game_event)
        if self.data_plane is not None:
            self.engine.add_listener(create_mqtt_listener(self.data_plane))

        self.render_sink = self.builder.build_render_sink()

        # ====================================================================
        # 4. Control Plane (receptor de comandos)
        # ====================================================================
        self.control_plane = self.builder.build_control_plane()
        if self.control_plane is not None:
            logger.info("🎮 Configurando Control Plane...")
            self._setup_control_callbacks()
            if not self.control_plane.connect(timeout=10):
                logger.error("❌ No se pudo conectar Control Plane")
                return False

        logger.info("✅ Setup completado")
        return True

    def _setup_control_callbacks(self):
        """
        Registra comandos en CommandRegistry del Control Plane.

        Los handlers solo encolan: el frame loop los ejecuta entre ticks.
        """
        registry = self.control_plane.command_registry

        registry.register('start', partial(self.enqueue_command, 'start'), "Inicia una partida")
        registry.register('stop', partial(self.enqueue_command, 'stop'), "Termina la partida actual")
        registry.register('status', partial(self.enqueue_command, 'status'), "Publica estado actual")
        registry.register('quit', partial(self.enqueue_command, 'quit'), "Cierra la aplicación")

        # STABILIZATION_STATS solo si stabilization habilitado
        if self.config.stabilization.mode != 'none':
            registry.register(
                'stabilization_stats',
                partial(self.enqueue_command, 'stabilization_stats'),
                "Estadísticas de estabilización"
            )
            logger.info("✅ stabilization_stats command registered")

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def enqueue_command(self, command: str) -> None:
        """Thread-safe: puede llamarse desde el thread de paho"""
        self.commands.put(command)

    def _drain_commands(self, now: float) -> List[GameEvent]:
        handlers = {
            'start': self._handle_start,
            'stop': self._handle_stop,
            'status': self._handle_status,
            'stabilization_stats': self._handle_stabilization_stats,
            'quit': self._handle_quit,
        }

        events: List[GameEvent] = []
        while True:
            try:
                command = self.commands.get_nowait()
            except Empty:
                break

            handler = handlers.get(command)
            if handler is None:
                logger.warning(f"⚠️ Comando desconocido en cola: '{command}'")
                continue
            events.extend(handler(now) or [])
        return events

    def _session_context(self):
        if self.session_id is None:
            return nullcontext()
        return trace_context(self.session_id)

    def _handle_start(self, now: float) -> List[GameEvent]:
        """Comando START: nueva partida (reinicia si hay una en curso)"""
        logger.info("▶️ Comando START recibido")
        if self.engine.is_running:
            with self._session_context():
                events = self.engine.stop(now, reason='restart')
        else:
            events = []

        self.session_id = generate_trace_id(prefix="session")
        with self._session_context():
            events.extend(self.engine.start(now))
        return events

    def _handle_stop(self, now: float, reason: str = 'stopped') -> List[GameEvent]:
        """Comando STOP: termina la partida (no cierra la aplicación)"""
        logger.info("⏹️ Comando STOP recibido")
        if not self.engine.is_running:
            logger.info("💤 No hay partida en curso")
            return []
        with self._session_context():
            return self.engine.stop(now, reason=reason)

    def _handle_status(self, now: float) -> None:
        """Comando STATUS: publica estado actual"""
        logger.info("📋 Comando STATUS recibido")
        self._publish_status()

    def _handle_stabilization_stats(self, now: float) -> None:
        """Comando STABILIZATION_STATS: log de estadísticas del stabilizer"""
        logger.info("📊 Comando STABILIZATION_STATS recibido")
        if self.stabilizer is None:
            logger.warning("⚠️ Stabilizer no disponible")
            return
        log_stabilization_stats(logger, self.stabilizer.get_stats(), component="controller")

    def _handle_quit(self, now: float) -> List[GameEvent]:
        """Comando QUIT: termina la partida (si hay) y cierra la aplicación"""
        logger.info("🛑 Comando QUIT recibido, finalizando servicio...")
        events = self._handle_stop(now, reason='quit') if self.engine.is_running else []
        self.shutdown_event.set()
        return events

    def _handle_key(self, key: Optional[int]) -> None:
        command = KEY_COMMANDS.get(key) if key is not None else None
        if command is not None:
            self.enqueue_command(command)

    # ------------------------------------------------------------------
    # Events / status
    # ------------------------------------------------------------------

    def _on_game_event(self, event: GameEvent) -> None:
        """Listener del engine: log + status, reset del stabilizer al terminar"""
        log_game_event(logger, event)

        if isinstance(event, GameStarted):
            self._publish_status("running")
        elif isinstance(event, GameEnded):
            # Una partida nueva arranca sin la ventana de votos de la anterior
            if self.stabilizer is not None:
                self.stabilizer.reset()
            self._publish_status(
                "idle",
                {
                    "final_score": event.final_score,
                    "final_level": event.final_level,
                    "reason": event.reason,
                }
            )

    def _publish_status(self, status: Optional[str] = None, details: Optional[dict] = None) -> None:
        snapshot = self.engine.snapshot()
        payload = {
            "score": snapshot.score,
            "level": snapshot.level,
            "catches": snapshot.catches,
            "catcher_lane": snapshot.catcher_lane,
            "frames": self.frame_count,
            "session_id": self.session_id,
        }
        if details:
            payload.update(details)

        status = status or ("running" if snapshot.is_running else "idle")
        if self.control_plane is None:
            logger.info(
                f"📋 Status: {status}",
                extra={"component": "controller", "event": "status", "status": status, **payload}
            )
            return
        self.control_plane.publish_status(status, payload)

    # ------------------------------------------------------------------
    # Frame loop
    # ------------------------------------------------------------------

    def step(self, now: Optional[float] = None) -> List[GameEvent]:
        """
        Procesa un frame.

        1. Drena comandos pendientes (start/stop/...)
        2. Frame -> classifier -> stabilizer
        3. Label estabilizado -> engine.on_pose_detected()
        4. engine.tick()
        5. Snapshot -> data plane (si publish_state) y render sink

        Returns:
            Eventos emitidos por el engine durante el frame
        """
        t = self.clock() if now is None else now
        events = self._drain_commands(t)

        frame = self.frame_source.read()
        sample = self.classifier.classify(frame)
        prediction = self.stabilizer.stabilize(sample)
        self.last_sample = sample
        self.last_prediction = prediction

        with self._session_context():
            if prediction.label is not None:
                events.extend(self.engine.on_pose_detected(prediction.label, t))
            events.extend(self.engine.tick(t))

        snapshot = self.engine.snapshot()
        if self.data_plane is not None and self.config.mqtt.publish_state:
            self.data_plane.publish_snapshot(snapshot, prediction, frame_id=self.frame_count)

        key = self.render_sink(frame, snapshot, sample, prediction)
        self._handle_key(key)

        self.frame_count += 1
        if self.max_frames is not None and self.frame_count >= self.max_frames:
            logger.info(f"🎞️ max_frames alcanzado ({self.max_frames})")
            self.shutdown_event.set()

        return events

    def _script_finished(self) -> bool:
        return bool(getattr(self.classifier, 'exhausted', False))

    def run(self):
        """Ejecuta el frame loop hasta quit / señal / max_frames"""
        if not self.setup():
            logger.error("❌ Setup falló")
            self.cleanup()
            return

        logger.info("=" * 70)
        logger.info("🎬 Fruit Catcher activo")
        logger.info("=" * 70)
        if self.control_plane is not None:
            logger.info(f"📡 Control Topic: {self.config.mqtt.topics.control_commands}")
            logger.info(f"📊 Events Topic: {self.config.mqtt.topics.events}")
            logger.info("💡 Comandos MQTT disponibles:")
            for command, description in sorted(self.control_plane.command_registry.get_help().items()):
                logger.info(f'   {command.upper()}: {{"command": "{command}"}} - {description}')
        if self.builder.display_enabled:
            logger.info("⌨️  Teclas: 's' start, 'x' stop, 'q' quit")
        logger.info("⌨️  Presiona Ctrl+C para salir")
        logger.info("=" * 70)

        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        frame_interval = 1.0 / self.config.camera.max_fps
        try:
            while not self.shutdown_event.is_set():
                frame_start = self.clock()
                self.step(frame_start)

                if self._script_finished():
                    logger.info("📜 Script de poses terminado")
                    self.enqueue_command('quit')
                    self._drain_commands(self.clock())
                    break

                remaining = frame_interval - (self.clock() - frame_start)
                if remaining > 0:
                    self.shutdown_event.wait(timeout=remaining)
        except KeyboardInterrupt:
            logger.info("⚠️ Interrupción forzada...")
            self.shutdown_event.set()
        finally:
            self.cleanup()

    def _signal_handler(self, signum, frame):
        """Handler para señales (Ctrl+C): el loop termina al final del frame"""
        logger.info("⚠️ Señal de terminación recibida...")
        self.shutdown_event.set()

    def cleanup(self):
        """Limpia recursos al finalizar (cada paso aislado con try/except)"""
        logger.info("🧹 Limpiando recursos...")

        # 1. Terminar la partida en curso (GameEnded sale antes de desconectar)
        if self.engine is not None and self.engine.is_running:
            try:
                with self._session_context():
                    self.engine.stop(self.clock(), reason='shutdown')
            except Exception as e:
                logger.error(f"❌ Error terminando partida: {e}")

        if self.stabilizer is not None:
            log_stabilization_stats(logger, self.stabilizer.get_stats(), component="controller")

        # 2. Liberar cámara / modelo / ventana
        for name, release in (
            ("frame source", getattr(self.frame_source, 'release', None)),
            ("classifier", getattr(self.classifier, 'close', None)),
            ("render sink", getattr(self.render_sink, 'close', None)),
        ):
            if release is None:
                continue
            try:
                release()
            except Exception as e:
                logger.error(f"❌ Error liberando {name}: {e}")

        # 3. Desconectar Control Plane
        if self.control_plane:
            try:
                self.control_plane.disconnect()
                logger.info("✅ Control Plane desconectado")
            except Exception as e:
                logger.error(f"❌ Error desconectando Control Plane: {e}")

        # 4. Desconectar Data Plane
        if self.data_plane:
            try:
                stats = self.data_plane.get_stats()
                logger.info(f"📊 Data Plane stats: {stats}")
                self.data_plane.disconnect()
                logger.info("✅ Data Plane desconectado")
            except Exception as e:
                logger.error(f"❌ Error desconectando Data Plane: {e}")

        logger.info("👋 Hasta luego!")


# ============================================================================
# MAIN
# ============================================================================
def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Fruit Catcher controlado por poses (webcam + clasificador)"
    )
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help=f"Config YAML (default: {DEFAULT_CONFIG_PATH})"
    )
    parser.add_argument(
        "--script",
        default=None,
        help="YAML de poses grabadas (reemplaza cámara y modelo)"
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Sin ventana OpenCV"
    )
    parser.add_argument(
        "--max-frames",
        type=int,
        default=None,
        help="Termina después de N frames"
    )
    parser.add_argument(
        "--autostart",
        action="store_true",
        help="Inicia una partida apenas arranca (útil en headless)"
    )
    return parser.parse_args(argv)


def load_config(config_path: str) -> CatcherConfig:
    """Carga config con validación Pydantic (exit 1 si es inválida)"""
    try:
        if Path(config_path).exists():
            config = CatcherConfig.from_yaml(config_path)
            print(f"✅ Config loaded and validated from {config_path}")
        else:
            config = CatcherConfig()
            print(f"⚠️  Config file not found ({config_path}), using defaults")
        return config

    except ValidationError as e:
        # Fail fast con mensaje claro
        print("❌ Invalid configuration:")
        for error in e.errors():
            field = " -> ".join(str(loc) for loc in error['loc'])
            print(f"   • {field}: {error['msg']}")
        print(f"\nPlease fix {config_path} and try again.")
        sys.exit(1)
    except Exception as e:
        print(f"❌ Error loading config: {e}")
        sys.exit(1)


def main(argv: Optional[List[str]] = None):
    """Punto de entrada principal"""
    # MQTT_USERNAME / MQTT_PASSWORD desde .env
    load_dotenv()

    args = parse_args(argv)
    config = load_config(args.config)

    setup_logging(
        level=config.logging.level,
        indent=config.logging.json_indent,
        log_file=config.logging.file,
        max_bytes=config.logging.max_bytes,
        backup_count=config.logging.backup_count,
    )
    logger.info("🔧 Fruit Catcher starting...")

    # Reducir verbosidad de paho-mqtt
    logging.getLogger('paho').setLevel(getattr(logging, config.logging.paho_level))

    builder = GameBuilder(config, script_path=args.script, headless=args.headless)
    controller = GameController(config, builder=builder, max_frames=args.max_frames)
    if args.autostart:
        controller.enqueue_command('start')

    try:
        controller.run()
    except Exception as e:
        logger.error(f"❌ Error fatal: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
