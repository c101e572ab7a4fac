"""
Core interfaces and abstract base classes for the GradeTrack service.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, Optional, TypeVar


T = TypeVar('T')


class Repository(ABC, Generic[T]):
    """Abstract base class for repositories."""

    @abstractmethod
    def save(self, entity: T) -> T:
        """Save an entity."""
        pass

    @abstractmethod
    def find_by_id(self, entity_id: str) -> Optional[T]:
        """Find entity by ID."""
        pass

    @abstractmethod
    def find_by_owner(self, owner_id: str) -> List[T]:
        """Find every entity belonging to a user, newest first."""
        pass

    @abstractmethod
    def find_all(self, filters: Optional[Dict[str, Any]] = None) -> List[T]:
        """Find all entities matching filters."""
        pass

    @abstractmethod
    def delete(self, entity_id: str) -> bool:
        """Delete an entity by ID."""
        pass
