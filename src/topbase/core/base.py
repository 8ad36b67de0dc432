"""Base classes for configuration and state models.

This module contains the foundational classes used throughout
topbase:
- Closeable Protocol for resource cleanup
- BaseCloseable for automatic cleanup cascade
- BaseConfig for configuration models
- BaseState for runtime state models

Kept apart from config.py so that log.py can depend on it
without a circular import.
"""

from __future__ import annotations

import sys
from typing import Protocol, runtime_checkable

from pydantic import BaseModel


@runtime_checkable
class Closeable(Protocol):
    """Protocol for objects that support close()."""

    def close(self) -> None:
        """Release resources."""
        ...


class BaseCloseable(BaseModel):
    """Pydantic model that closes its Closeable children.

    Subclasses become context managers. On close() every field
    implementing Closeable is closed in turn; a failing child does
    not stop the remaining ones from closing.

    Cascade: State.__exit__() → Config.close() → Logger.close()
    → Sink.close()
    """

    def close(self):
        """Close all closeable child objects."""
        for field_name in self.__class__.model_fields:
            child = getattr(self, field_name, None)
            if child is None:
                continue

            if isinstance(child, Closeable):
                try:
                    child.close()
                except Exception as e:
                    print(
                        f"Warning: Error closing {field_name}: {e}",
                        file=sys.stderr,
                    )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):  # noqa: U100
        self.close()
        return False


class BaseConfig(BaseCloseable):
    """Marker base for configuration sections (YAML/env/CLI)."""
    pass


class BaseState(BaseCloseable):
    """Marker base for runtime state sections (mutated per run)."""
    pass


__all__ = ["Closeable", "BaseCloseable", "BaseConfig", "BaseState"]
