"""
Family feature flags.
"""

from famguard.engines.flags.feature_flag_service import FeatureFlagService

__all__ = [
    "FeatureFlagService",
]
