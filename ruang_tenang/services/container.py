"""
Service Container - Dependency Injection Container

Simple DI container for managing service instances and their dependencies.
Uses lazy loading to only instantiate services when first accessed.
"""

from dataclasses import dataclass, field
from typing import Optional
import logging

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    Services are lazy-loaded on first access via properties.
    Infrastructure dependencies (db, store, activities) are injected.
    """

    # Infrastructure dependencies (injected)
    db: object  # Database instance
    store: Optional[object] = None  # Gamification store (defaults to PostgreSQL)
    activities: Optional[object] = None  # ActivityRegistry (defaults to deployment table)

    # Services (lazy-loaded via properties)
    _engine: Optional[object] = field(default=None, init=False, repr=False)
    _exp_dispatcher: Optional[object] = field(default=None, init=False, repr=False)
    _gamification_service: Optional[object] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        if self.store is None:
            from ruang_tenang.gamification.store import PostgresGamificationStore
            self.store = PostgresGamificationStore(self.db)

    @property
    def engine(self):
        """Get GamificationEngine instance (lazy-loaded)"""
        if self._engine is None:
            from ruang_tenang.gamification.engine import GamificationEngine
            self._engine = GamificationEngine(self.store, self.activities)
            logger.debug("GamificationEngine instantiated")
        return self._engine

    @property
    def exp_dispatcher(self):
        """Get ExpAwardDispatcher instance (lazy-loaded)"""
        if self._exp_dispatcher is None:
            from ruang_tenang.gamification.integrations import ExpAwardDispatcher
            self._exp_dispatcher = ExpAwardDispatcher(self.engine)
            logger.debug("ExpAwardDispatcher instantiated")
        return self._exp_dispatcher

    @property
    def gamification_service(self):
        """Get GamificationService instance (lazy-loaded)"""
        if self._gamification_service is None:
            from ruang_tenang.services.gamification_service import GamificationService
            self._gamification_service = GamificationService(self.db, self.store, self.engine)
            logger.debug("GamificationService instantiated")
        return self._gamification_service


# Global container instance (initialized at startup)
_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """
    Get the global service container.

    Raises:
        RuntimeError: If container not initialized (call init_container first)
    """
    if _container is None:
        raise RuntimeError(
            "Service container not initialized. "
            "Call init_container() at startup before using services."
        )
    return _container


def init_container(
    db: object,
    store: Optional[object] = None,
    activities: Optional[object] = None
) -> ServiceContainer:
    """
    Initialize the global service container.

    Should be called once at startup after infrastructure setup.

    Args:
        db: Database instance
        store: Optional gamification store (defaults to PostgresGamificationStore(db))
        activities: Optional ActivityRegistry (defaults to the deployment table)

    Returns:
        ServiceContainer: The initialized container
    """
    global _container

    _container = ServiceContainer(db=db, store=store, activities=activities)

    logger.info("Service container initialized")
    return _container


def reset_container() -> None:
    """Drop the global container (shutdown and tests)"""
    global _container
    _container = None
