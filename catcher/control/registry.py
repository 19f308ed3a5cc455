"""
Command Registry
================

Registry explícito de comandos del juego (start/stop/status/...).

Problema resuelto:
- Start/Stop llegan por teclado o MQTT y deben resolver al mismo handler
- Comandos condicionales (stabilization_stats solo si hay stabilizer)
- Errores confusos cuando un comando no está registrado

Solución:
- Solo se registran los comandos disponibles
- Validación temprana: CommandNotAvailableError con la lista disponible
- Introspección para help/logging
"""
from typing import Any, Callable, Dict, Set
import logging

logger = logging.getLogger(__name__)


class CommandNotAvailableError(Exception):
    """Comando no está disponible en el modo actual."""
    pass


class CommandRegistry:
    """
    Registry de comandos.

    Usage:
        registry = CommandRegistry()
        registry.register('start', controller.request_start, "Inicia una partida")
        registry.register('stop', controller.request_stop, "Termina la partida")

        try:
            registry.execute('start')
        except CommandNotAvailableError as e:
            logger.warning(str(e))
    """

    def __init__(self):
        self._commands: Dict[str, Callable[[], Any]] = {}
        self._descriptions: Dict[str, str] = {}

    def register(self, command: str, handler: Callable[[], Any], description: str = "") -> None:
        """
        Registra un comando (si ya existe se sobrescribe con warning).
        """
        command = command.lower()
        if command in self._commands:
            logger.warning(f"⚠️ Comando '{command}' ya registrado, sobrescribiendo")

        self._commands[command] = handler
        self._descriptions[command] = description
        logger.debug(f"📝 Comando registrado: '{command}' - {description}")

    def unregister(self, command: str) -> None:
        self._commands.pop(command.lower(), None)
        self._descriptions.pop(command.lower(), None)

    def execute(self, command: str) -> Any:
        """
        Ejecuta un comando.

        Returns:
            Resultado del handler (o None)

        Raises:
            CommandNotAvailableError: Si comando no está registrado
        """
        command = command.lower()
        if command not in self._commands:
            available = ', '.join(sorted(self.available_commands))
            raise CommandNotAvailableError(
                f"Command '{command}' not available. "
                f"Available commands: {available}"
            )

        logger.debug(f"⚙️ Ejecutando comando: '{command}'")
        return self._commands[command]()

    def is_available(self, command: str) -> bool:
        return command.lower() in self._commands

    @property
    def available_commands(self) -> Set[str]:
        return set(self._commands.keys())

    def get_help(self) -> Dict[str, str]:
        """Dict[comando, descripción]"""
        return dict(self._descriptions)

    def __repr__(self) -> str:
        cmds = ', '.join(sorted(self.available_commands))
        return f"CommandRegistry(commands=[{cmds}])"
