"""
Tracker registry for incremental level trackers.

Provides:
- TRACKER_REGISTRY: Global registry of tracker classes by name
- register_tracker: Decorator to register tracker classes
- get_tracker_info: Get metadata about a registered tracker
- list_tracker_types: List all registered tracker type names

Trackers are registered at import time via the @register_tracker decorator.

Example:
    @register_tracker("my_tracker")
    class MyTracker(BaseLevelTracker):
        REQUIRED_PARAMS = ["period"]
        OPTIONAL_PARAMS = {"threshold": 0.5}
        ...

    # Later:
    info = get_tracker_info("my_tracker")
    # Returns: {
    #     "required_params": ["period"],
    #     "optional_params": {"threshold": 0.5},
    #     "class_name": "MyTracker",
    #     "docstring": "...",
    # }
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .base import BaseLevelTracker

# Global registry: maps tracker type name to tracker class
TRACKER_REGISTRY: dict[str, type["BaseLevelTracker"]] = {}


def register_tracker(name: str):
    """
    Decorator to register a level tracker class.

    Validates that the class has required class attributes before
    registration. Raises TypeError if validation fails.

    Args:
        name: The tracker type name (e.g., "timeframe", "session_window").

    Returns:
        Decorator function.

    Raises:
        TypeError: If class doesn't inherit from BaseLevelTracker.
        TypeError: If class is missing required class attributes.
        ValueError: If name is already registered.
    """

    def decorator(cls: type["BaseLevelTracker"]) -> type["BaseLevelTracker"]:
        # Import here to avoid circular import
        from .base import BaseLevelTracker

        # Validate inheritance
        if not isinstance(cls, type) or not issubclass(cls, BaseLevelTracker):
            cls_name = getattr(cls, "__name__", repr(cls))
            raise TypeError(
                f"Cannot register '{name}': class '{cls_name}' must inherit from BaseLevelTracker\n"
                f"\n"
                f"Fix:\n"
                f"  from keylevels.structures.base import BaseLevelTracker\n"
                f"\n"
                f"  @register_tracker('{name}')\n"
                f"  class {cls_name}(BaseLevelTracker):\n"
                f"      ..."
            )

        # Validate types of class attributes
        if not isinstance(cls.REQUIRED_PARAMS, list):
            raise TypeError(
                f"Cannot register '{name}': REQUIRED_PARAMS must be a list, got {type(cls.REQUIRED_PARAMS).__name__}\n"
                f"\n"
                f"Fix: REQUIRED_PARAMS = ['param1', 'param2']"
            )

        if not isinstance(cls.OPTIONAL_PARAMS, dict):
            raise TypeError(
                f"Cannot register '{name}': OPTIONAL_PARAMS must be a dict, got {type(cls.OPTIONAL_PARAMS).__name__}\n"
                f"\n"
                f"Fix: OPTIONAL_PARAMS = {{'param': default_value}}"
            )

        # Check for duplicate registration
        if name in TRACKER_REGISTRY:
            existing_cls = TRACKER_REGISTRY[name]
            raise ValueError(
                f"Cannot register '{name}': already registered to '{existing_cls.__name__}'\n"
                f"\n"
                f"Fix: Use a different name or unregister the existing class first."
            )

        TRACKER_REGISTRY[name] = cls

        return cls

    return decorator


def get_tracker_info(name: str) -> dict[str, Any]:
    """
    Get metadata about a registered tracker type.

    Args:
        name: The tracker type name.

    Returns:
        Dict with keys:
            - required_params: list[str]
            - optional_params: dict[str, Any]
            - class_name: str
            - docstring: str | None

    Raises:
        KeyError: If name is not registered, with available types listed.
    """
    if name not in TRACKER_REGISTRY:
        available = list(TRACKER_REGISTRY.keys())
        available_str = ", ".join(available) if available else "(none registered)"
        raise KeyError(
            f"Tracker type '{name}' not registered\n"
            f"\n"
            f"Available types: {available_str}\n"
            f"\n"
            f"Fix: Use one of the available types, or register a new tracker with:\n"
            f"  @register_tracker('{name}')\n"
            f"  class MyTracker(BaseLevelTracker):\n"
            f"      ..."
        )

    cls = TRACKER_REGISTRY[name]

    return {
        "required_params": list(cls.REQUIRED_PARAMS),
        "optional_params": dict(cls.OPTIONAL_PARAMS),
        "class_name": cls.__name__,
        "docstring": cls.__doc__,
    }


def list_tracker_types() -> list[str]:
    """
    List all registered tracker type names.

    Example:
        >>> list_tracker_types()
        ["session_window", "timeframe", "weekday_range"]
    """
    return sorted(TRACKER_REGISTRY.keys())


def unregister_tracker(name: str) -> bool:
    """
    Remove a tracker type from the registry.

    Primarily useful for testing to clean up after test registrations.

    Returns:
        True if the tracker was removed, False if it wasn't registered.
    """
    if name in TRACKER_REGISTRY:
        del TRACKER_REGISTRY[name]
        return True
    return False

