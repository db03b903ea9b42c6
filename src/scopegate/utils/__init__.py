"""
scopegate Utilities.

Helpers for testing tenant isolation.
"""

from scopegate.utils.testing import MultiTenantFixture, RecordedCall, RecordingCrudClient

__all__ = [
    "MultiTenantFixture",
    "RecordedCall",
    "RecordingCrudClient",
]
