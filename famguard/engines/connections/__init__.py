"""
Child-to-child connection approval.
"""

from famguard.engines.connections.connection_service import ConnectionService

__all__ = [
    "ConnectionService",
]
