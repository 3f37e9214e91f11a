"""
Service Layer Package

Business logic services between the HTTP layer and the data access layer.

- GamificationService: level views, EXP history, leaderboard, level configs
- ServiceContainer: lazily wires the store, engine, award dispatcher and services
"""

from ruang_tenang.services.container import ServiceContainer, get_container, init_container, reset_container

__all__ = [
    "ServiceContainer",
    "get_container",
    "init_container",
    "reset_container",
]
