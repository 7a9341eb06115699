"""
Credential services for DDS Provisioner.

Resolves the root account password from its clear-text or KMS-encrypted
declaration.
"""

from .password import ROOT_ACCOUNT_NAME, AccountPasswordService, ResolvedPassword

__all__ = [
    'ROOT_ACCOUNT_NAME',
    'AccountPasswordService',
    'ResolvedPassword',
]
