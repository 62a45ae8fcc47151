"""
Conversation partitioning.
"""

from famguard.engines.conversations.partitioner import (
    ConversationPartitioner,
    canonical_pair,
    pair_key,
)

__all__ = [
    "ConversationPartitioner",
    "canonical_pair",
    "pair_key",
]
