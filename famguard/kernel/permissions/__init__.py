"""
Permission Core - the communication decision.
"""

from famguard.kernel.permissions.permission_service import PermissionEngine

__all__ = [
    "PermissionEngine",
]
