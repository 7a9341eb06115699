"""
Root account password resolution.

A password is declared either in clear text or as a KMS ciphertext with its
encryption context; this service turns whichever was declared into the
plaintext the vendor API expects.
"""

import logging
from typing import List, NamedTuple

from ddsprovider.app.services.provisioning.base import BaseKmsClient

logger = logging.getLogger(__name__)

ROOT_ACCOUNT_NAME = "root"


class ResolvedPassword(NamedTuple):
    """Plaintext password and the descriptor fields it was taken from."""
    value: str
    source_fields: List[str]


class AccountPasswordService:
    """
    Service resolving the declared root account password.

    Handles the clear-text and KMS-encrypted declarations.
    """

    def __init__(self, kms_client: BaseKmsClient):
        """
        Initialize the password service.

        Args:
            kms_client: KMS client used to decrypt ciphertexts
        """
        self.kms_client = kms_client

    def resolve(self, d) -> ResolvedPassword:
        """
        Resolve the password declared on a descriptor.

        Clear text wins; otherwise the KMS ciphertext is decrypted; with
        neither declared the password is empty and the vendor decides.

        Args:
            d: Resource descriptor

        Returns:
            ResolvedPassword with the plaintext and its source fields

        Raises:
            DecryptionError: If the ciphertext cannot be decrypted
        """
        password = d.get("account_password") or ""
        if password:
            return ResolvedPassword(password, ["account_password"])

        ciphertext = d.get("kms_encrypted_password") or ""
        if ciphertext:
            context = d.get("kms_encryption_context") or {}
            logger.debug(f"Decrypting account password for {d.id or 'new instance'} via KMS")
            plaintext = self.kms_client.decrypt(ciphertext, dict(context))
            return ResolvedPassword(plaintext, ["kms_encrypted_password", "kms_encryption_context"])

        return ResolvedPassword("", [])
