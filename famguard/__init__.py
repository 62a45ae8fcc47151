"""
famguard - authorization core for family communication.

Decides whether two identities (parents, invited family members, children)
may message or call each other, and keeps that decision consistent across
every write path touching messages, calls, blocks and connections.
"""

__version__ = "1.0.0"
