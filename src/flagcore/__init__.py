"""
flagcore – feature flag evaluation engine and state container.

Import path convention::

    from flagcore.application.feature_flags import FeatureFlag, FeatureFlagManager
    from flagcore.application.storage import FileStorageAdapter
    from flagcore.config.settings import FlagSettings
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
