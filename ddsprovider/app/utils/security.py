"""
Security utilities for DDS Provisioner.

Provides idempotency tokens for vendor requests and redaction of secrets
before request parameters are logged.
"""

import secrets
import time
from typing import Any, Dict

CLIENT_TOKEN_MAX_LENGTH = 64
SENSITIVE_PARAM_MARKERS = ("password", "ciphertext", "secret", "plaintext")


def generate_client_token(action: str) -> str:
    """
    Generate an idempotency token for a mutating vendor request.

    Args:
        action: API action name the token is used for

    Returns:
        Token of at most 64 characters, unique per call
    """
    if not action:
        raise ValueError("Action cannot be empty")

    token = f"TF-{action}-{int(time.time())}-{secrets.token_hex(8)}"
    if len(token) > CLIENT_TOKEN_MAX_LENGTH:
        token = token[-CLIENT_TOKEN_MAX_LENGTH:]
    return token


def redact_params(params: Dict[str, Any]) -> Dict[str, Any]:
    """
    Mask parameter values that carry secrets.

    Args:
        params: Vendor request parameters

    Returns:
        Copy of params with sensitive values replaced by ***
    """
    redacted = {}
    for key, value in params.items():
        if value and any(marker in key.lower() for marker in SENSITIVE_PARAM_MARKERS):
            redacted[key] = "***"
        else:
            redacted[key] = value
    return redacted
