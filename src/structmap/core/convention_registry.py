"""Convention registry for building pipelines from convention names."""

import logging
from typing import Any

from ..exceptions import ConfigurationError
from .protocols import Convention

logger = logging.getLogger(__name__)


class ConventionRegistry:
    """
    Registry mapping convention names to their classes.

    Lets settings files name conventions ("name_match", "recursive", ...)
    instead of importing them.
    """

    def __init__(self):
        """Initialize the convention registry."""
        self._conventions: dict[str, type[Convention]] = {}
        self._logger = logger.getChild(self.__class__.__name__)

    def register_convention(
        self, name: str, convention_class: type[Convention]
    ) -> None:
        """
        Register a convention class under a name.

        Args:
            name: The identifier used in settings (e.g., 'name_match')
            convention_class: The convention class to register

        Raises:
            ValueError: If name is empty or convention_class is missing
        """
        if not name or not name.strip():
            raise ValueError("Convention name cannot be empty")

        if not convention_class:
            raise ValueError("Convention class cannot be None")

        name = name.strip().lower()

        if name in self._conventions:
            self._logger.warning(
                f"Overwriting existing convention registration for '{name}'"
            )

        self._conventions[name] = convention_class
        self._logger.info(
            f"Registered convention '{convention_class.__name__}' as '{name}'"
        )

    def get_convention_class(self, name: str) -> type[Convention]:
        """
        Get the convention class registered under a name.

        Raises:
            ConfigurationError: If the name is not registered
        """
        if not name:
            raise ConfigurationError("Convention name cannot be empty")

        name = name.strip().lower()

        if name not in self._conventions:
            available = ", ".join(self.get_available_names()) or "none"
            raise ConfigurationError(
                f"Unknown convention '{name}'. Available conventions: {available}"
            )

        return self._conventions[name]

    def create_convention(self, name: str, **kwargs: Any) -> Convention:
        """
        Create an instance of the convention registered under a name.

        Raises:
            ConfigurationError: If the name is unknown or instantiation fails
        """
        convention_class = self.get_convention_class(name)

        try:
            return convention_class(**kwargs)
        except TypeError as e:
            raise ConfigurationError(
                f"Failed to create convention '{convention_class.__name__}' "
                f"for name '{name}': {e}"
            ) from e

    def create_conventions(self, names: list[str]) -> tuple[Convention, ...]:
        """Instantiate conventions in the given order."""
        return tuple(self.create_convention(name) for name in names)

    def get_available_names(self) -> list[str]:
        """Sorted list of registered convention names."""
        return sorted(self._conventions.keys())

    def is_available(self, name: str) -> bool:
        if not name:
            return False

        return name.strip().lower() in self._conventions

    def clear(self) -> None:
        """Clear all registered conventions."""
        self._conventions.clear()
        self._logger.info("Cleared all convention registrations")

    def __len__(self) -> int:
        return len(self._conventions)

    def __contains__(self, name: str) -> bool:
        return self.is_available(name)


# Global convention registry instance
_global_registry = ConventionRegistry()


def get_global_registry() -> ConventionRegistry:
    """Get the global convention registry instance."""
    return _global_registry


def register_builtin_conventions() -> None:
    """Register all field-driven built-in conventions with the global registry."""
    # Import here to avoid circular imports
    from ..conventions import (
        CollectionRecursiveConvention,
        IgnoreMarkerConvention,
        NameMatchConvention,
        PathFlattenConvention,
        RecursiveConvention,
    )

    registry = get_global_registry()

    for convention_class in (
        IgnoreMarkerConvention,
        NameMatchConvention,
        RecursiveConvention,
        PathFlattenConvention,
        CollectionRecursiveConvention,
    ):
        # Only register if not already registered to avoid duplicate warnings
        if not registry.is_available(convention_class.name):
            registry.register_convention(convention_class.name, convention_class)
