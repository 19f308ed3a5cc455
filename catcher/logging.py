"""
Structured Logging Infrastructure
==================================

Logging JSON para el juego y sus planos MQTT.

Design Philosophy:
- Solo JSON (un único formato, queryable)
- Trace correlation vía contextvars (un trace por comando/sesión)
- Helpers para casos comunes (comandos, publicaciones, eventos del juego)
- File rotation opcional (RotatingFileHandler)

Usage:
    from catcher.logging import setup_logging, trace_context

    setup_logging(level="INFO")
    setup_logging(level="INFO", log_file="logs/catcher.log")

    with trace_context(generate_trace_id("session")):
        logger.info("🍎 Sesión iniciada", extra={"component": "controller"})
"""
import logging
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

# ============================================================================
# Trace Context
# ============================================================================

trace_id_var: ContextVar[Optional[str]] = ContextVar('trace_id', default=None)


def get_trace_id() -> Optional[str]:
    """Trace ID activo en el contexto actual (o None)"""
    return trace_id_var.get()


def generate_trace_id(prefix: str = "trace") -> str:
    """
    Genera un trace ID único con formato {prefix}-{short_uuid}.

    Args:
        prefix: Prefijo (ej: "cmd-start", "session")
    """
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


@contextmanager
def trace_context(trace_id: Optional[str] = None):
    """
    Propaga trace_id a todos los logs emitidos dentro del bloque.

    Args:
        trace_id: ID a propagar. Si None, genera uno automático.
    """
    if trace_id is None:
        trace_id = generate_trace_id()

    token = trace_id_var.set(trace_id)
    try:
        yield trace_id
    finally:
        trace_id_var.reset(token)


# ============================================================================
# Logger Setup
# ============================================================================

def setup_logging(
    level: str = "INFO",
    indent: Optional[int] = None,
    add_fields: Optional[Dict[str, Any]] = None,
    log_file: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 5,
) -> None:
    """
    Configura structured logging (JSON) para toda la aplicación.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        indent: JSON indent para pretty-print (None = compact)
        add_fields: Campos globales agregados a cada registro
        log_file: Path al archivo de logs (None = stdout, con rotation si se indica)
        max_bytes: Tamaño máximo por archivo antes de rotar
        backup_count: Número de archivos backup a mantener
    """
    try:
        from pythonjsonlogger import jsonlogger
    except ImportError:
        raise ImportError(
            "pythonjsonlogger no encontrado. Instalar con: pip install python-json-logger"
        )

    class CatcherJsonFormatter(jsonlogger.JsonFormatter):
        def add_fields(self, log_record, record, message_dict):
            super().add_fields(log_record, record, message_dict)

            if 'levelname' in log_record:
                log_record['level'] = log_record.pop('levelname')

            if 'name' in log_record:
                log_record['logger'] = log_record.pop('name')

            current_trace_id = get_trace_id()
            if current_trace_id and 'trace_id' not in log_record:
                log_record['trace_id'] = current_trace_id

            if add_fields:
                for key, value in add_fields.items():
                    log_record.setdefault(key, value)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        handler = RotatingFileHandler(
            filename=str(log_path),
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        print(
            f"📄 Logging to file: {log_file} (max: {max_bytes // 1024 // 1024}MB, backups: {backup_count})",
            file=sys.stderr
        )
    else:
        handler = logging.StreamHandler(sys.stdout)

    formatter = CatcherJsonFormatter(
        '%(timestamp)s %(level)s %(logger)s %(message)s',
        timestamp=True,
        json_indent=indent
    )
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper()))


# ============================================================================
# Helper Functions
# ============================================================================

def log_mqtt_command(
    logger: logging.Logger,
    command: str,
    topic: str,
    payload: Optional[Dict[str, Any]] = None,
    trace_id: Optional[str] = None
) -> None:
    """Log de un comando recibido por el Control Plane"""
    extra = {
        "component": "control_plane",
        "command": command,
        "mqtt_topic": topic,
        "trace_id": trace_id or get_trace_id()
    }

    if payload:
        extra["payload"] = payload

    logger.info(f"📥 Comando recibido: {command}", extra=extra)


def log_mqtt_publish(
    logger: logging.Logger,
    topic: str,
    qos: int,
    payload_size: int,
    success: bool = True,
    error_code: Optional[int] = None,
    event_type: Optional[str] = None,
    component: str = "data_plane",
) -> None:
    """Log de una publicación del Data Plane (debug si ok, warning si falla)"""
    extra = {
        "component": component,
        "mqtt_topic": topic,
        "qos": qos,
        "payload_size_bytes": payload_size,
        "success": success
    }

    if error_code is not None:
        extra["mqtt_error_code"] = error_code

    if event_type is not None:
        extra["game_event"] = event_type

    if success:
        logger.debug(f"📤 Mensaje publicado a {topic}", extra=extra)
    else:
        logger.warning(f"⚠️ Error publicando a {topic}", extra=extra)


def log_game_event(
    logger: logging.Logger,
    event: Any,
    component: str = "controller",
) -> None:
    """
    Log de un GameEvent.

    ScoreChanged / LevelUp / GameEnded van a INFO, el resto (spawns,
    movimientos del basket) a DEBUG para no inundar el log a 30 FPS.
    """
    payload = event.to_dict()
    event_type = payload.pop("event_type")
    extra = {
        "component": component,
        "event": event_type,
        "game": payload,
    }

    if event_type in ("score_changed", "level_up", "game_ended", "game_started", "hazard_caught"):
        logger.info(f"🎮 {event_type}", extra=extra)
    else:
        logger.debug(f"🎮 {event_type}", extra=extra)


def log_stabilization_stats(
    logger: logging.Logger,
    stats: Dict[str, Any],
    component: str = "stabilization",
) -> None:
    """Log de estadísticas del prediction stabilizer"""
    extra = {
        "component": component,
        "stabilization": dict(stats),
    }

    total = stats.get('total_frames', 0)
    changes = stats.get('label_changes', 0)
    logger.info(
        f"📈 Stabilization: {total} frames, {changes} label changes "
        f"(committed={stats.get('committed_label')})",
        extra=extra
    )


def log_error_with_context(
    logger: logging.Logger,
    message: str,
    exception: Optional[Exception] = None,
    component: str = "unknown",
    event: Optional[str] = None,
    trace_id: Optional[str] = None,
    **kwargs: Any
) -> None:
    """
    Log de error con contexto completo.

    Args:
        logger: Logger instance
        message: Mensaje de error
        exception: Excepción capturada (opcional, agrega traceback)
        component: Componente donde ocurrió el error
        event: Evento que causó el error
        trace_id: Trace ID (usa contexto si no se especifica)
        **kwargs: Contexto adicional (broker_host, topic, etc.)
    """
    extra = {
        "component": component,
        "trace_id": trace_id or get_trace_id()
    }

    if event:
        extra["event"] = event

    if exception:
        extra["error_type"] = type(exception).__name__
        extra["error_message"] = str(exception)

    extra.update(kwargs)

    if exception:
        logger.error(f"{message}: {exception}", extra=extra, exc_info=True)
    else:
        logger.error(message, extra=extra)


__all__ = [
    # Setup
    "setup_logging",
    # Trace context
    "trace_context",
    "get_trace_id",
    "generate_trace_id",
    # Helpers
    "log_mqtt_command",
    "log_mqtt_publish",
    "log_game_event",
    "log_stabilization_stats",
    "log_error_with_context",
]
