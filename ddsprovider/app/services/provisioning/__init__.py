"""
Provisioning services for ApsaraDB for MongoDB instances.

This package provides the provisioner interface, the resource descriptor
handlers operate on, and the status polling helper. The MongoDB instance
provisioner itself is loaded through get_provisioner.
"""

from .base import (
    BaseDdsClient,
    BaseKmsClient,
    BaseProvisioner,
    BaseVpcClient,
    DecryptionError,
    ProvisionerApiError,
    ProvisionerConfig,
    ProvisionerException,
    ProvisionerValidationError,
    UnexpectedStateError,
    WaitTimeoutError,
    get_provisioner,
)
from .resource_data import ResourceData
from .state import wait_for_state

__all__ = [
    'BaseDdsClient',
    'BaseKmsClient',
    'BaseProvisioner',
    'BaseVpcClient',
    'DecryptionError',
    'ProvisionerApiError',
    'ProvisionerConfig',
    'ProvisionerException',
    'ProvisionerValidationError',
    'ResourceData',
    'UnexpectedStateError',
    'WaitTimeoutError',
    'get_provisioner',
    'wait_for_state',
]
