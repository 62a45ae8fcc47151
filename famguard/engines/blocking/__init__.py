"""
Block registry with the parental safety override.
"""

from famguard.engines.blocking.block_registry import (
    AdultRef,
    ChildRef,
    BlockTarget,
    BlockRegistry,
    block_target_from_fields,
)

__all__ = [
    "AdultRef",
    "ChildRef",
    "BlockTarget",
    "BlockRegistry",
    "block_target_from_fields",
]
