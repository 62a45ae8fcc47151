"""
Relationship Graph - trusted family membership lookups.
"""

from famguard.kernel.relationships.relationship_graph import RelationshipGraph

__all__ = [
    "RelationshipGraph",
]
