"""
Feature Flags Configuration

Centralized feature flag management for the tabulation backend.
All feature flags are loaded from environment variables.
"""
import os

from dotenv import load_dotenv

load_dotenv()


def get_bool_env(key: str, default: bool = False) -> bool:
    """Get a boolean value from environment variable."""
    value = os.getenv(key, str(default)).lower()
    return value in ('true', '1', 'yes', 'on', 'enabled')


class FeatureFlags:
    """
    Feature flags for the application.

    To add a new feature flag:
    1. Add it here as a class property
    2. Load it from environment variable
    3. Use it in your code
    """

    # Compare-and-swap on segment status changes (activation and lock close)
    FEATURE_SEGMENT_STATUS_GUARD: bool = get_bool_env('FEATURE_SEGMENT_STATUS_GUARD', True)

    # Create judge records from "user registered" messages
    FEATURE_JUDGE_AUTO_REGISTRATION: bool = get_bool_env('FEATURE_JUDGE_AUTO_REGISTRATION', True)

    @classmethod
    def get_all_flags(cls) -> dict:
        """Get all feature flags as a dictionary."""
        return {
            key: value
            for key, value in cls.__dict__.items()
            if not key.startswith('_') and isinstance(value, bool)
        }


# Singleton instance for easy importing
feature_flags = FeatureFlags()
