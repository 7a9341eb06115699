"""
Services package for DDS Provisioner.

This package contains business logic services including:
- Provisioning: MongoDB instance lifecycle reconciliation
- Credentials: Root account password resolution
"""

__all__ = []
