"""
API v1 routes.
"""

from fastapi import APIRouter

from famguard.api.v1 import permissions, conversations, messages, calls, blocks, connections, feature_flags

router = APIRouter()

router.include_router(permissions.router, tags=["Permissions"])
router.include_router(conversations.router, tags=["Conversations"])
router.include_router(messages.router, tags=["Messages"])
router.include_router(calls.router, tags=["Calls"])
router.include_router(blocks.router, tags=["Blocks"])
router.include_router(connections.router, tags=["Connections"])
router.include_router(feature_flags.router, tags=["Feature Flags"])
