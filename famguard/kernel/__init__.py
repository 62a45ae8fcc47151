"""
Kernel Layer

Foundational pieces every decision rests on:
- Data models (family structure, blocks, connections, flags, conversations)
- Identity Core (session verification, typed identity resolution)
- Relationship Graph (trusted family-membership lookups)
- Permission Core (the communication decision)

Invariants:
- Decisions are pure reads; only the enforcement layer writes
- Unresolvable identities deny, never raise
"""
