"""Utility modules for the DDS provisioner."""

from ddsprovider.app.utils.security import (
    generate_client_token,
    redact_params,
)

__all__ = [
    "generate_client_token",
    "redact_params",
]
