"""
Engines Layer

Stateful services feeding the permission engine: blocks, child-to-child
connections, family feature flags and conversation partitioning.
"""
