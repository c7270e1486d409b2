"""Mode to engine-factory lookup table."""

import logging
import threading
from collections.abc import Callable

from stock_health.config import Settings
from stock_health.engines.base import ScoringEngine
from stock_health.engines.composite import CompositeEngine
from stock_health.engines.formula import FormulaEngine

EngineFactory = Callable[[], ScoringEngine]


class EngineRegistrationError(Exception):
    """Raised when the registry is misused (empty mode, non-callable factory)."""

    pass


class EngineRegistry:
    """
    Maps analysis modes to engine factories.

    Holds no analysis state. Registering an existing mode replaces its
    factory (last write wins). Lookups of unknown modes return None.
    """

    def __init__(self) -> None:
        self._factories: dict[str, EngineFactory] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(mode: str) -> str:
        return (mode or "").lower().strip() if isinstance(mode, str) else ""

    def register(self, mode: str, factory: EngineFactory) -> None:
        """
        Register (or replace) the factory for a mode.

        Raises:
            EngineRegistrationError: If mode is empty or factory is not callable
        """
        key = self._key(mode)
        if not key:
            raise EngineRegistrationError("Engine mode must be a non-empty string")
        if not callable(factory):
            raise EngineRegistrationError(f"Factory for mode '{key}' is not callable")
        with self._lock:
            self._factories[key] = factory

    def create(self, mode: str) -> ScoringEngine | None:
        """New engine instance for the mode, or None if the mode is not registered."""
        with self._lock:
            factory = self._factories.get(self._key(mode))
        if factory is None:
            return None
        return factory()

    def supported_modes(self) -> list[str]:
        with self._lock:
            return list(self._factories)

    def is_supported(self, mode: str) -> bool:
        with self._lock:
            return self._key(mode) in self._factories


def build_default_registry(
    settings: Settings,
    log: logging.Logger | None = None,
) -> EngineRegistry:
    """Registry with the formula and composite engines wired to the given settings."""
    registry = EngineRegistry()
    registry.register(FormulaEngine.mode, lambda: FormulaEngine(settings, log))
    composite = CompositeEngine.from_settings(settings, log)
    registry.register(CompositeEngine.mode, lambda: composite)
    return registry
