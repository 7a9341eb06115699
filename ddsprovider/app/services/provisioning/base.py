"""
Base provisioner abstract classes for ApsaraDB for MongoDB provisioning.

This module defines the core interfaces shared by the lifecycle reconciler
and the vendor adapters it is given: the provisioner contract, the three
outbound services (DDS, KMS, VPC) and the exception hierarchy.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ddsprovider.app.schemas.instance import (
    BackupPolicy,
    CreateInstanceRequest,
    ObservedInstance,
    SecurityIpGroup,
    VSwitch,
)

if TYPE_CHECKING:
    from .resource_data import ResourceData

NOT_FOUND_ERROR_CODES = ("InvalidDBInstanceId.NotFound",)
EMPTY_RESULT_ERROR_CODE = "ResourceNotFound"


@dataclass
class ProvisionerConfig:
    """
    Common configuration for all provisioners.

    Attributes:
        provider_type: Type of provider (alicloud)
        credentials: Provider-specific credential dictionary
        region: Cloud region every request is scoped to
        poll_interval: Seconds between two status checks while waiting
        delete_retry_timeout: Wall-clock budget for retrying a busy delete
        delete_retry_interval: Seconds between two delete attempts
        not_found_checks: Consecutive absent reads tolerated while waiting
    """
    provider_type: str = 'alicloud'
    credentials: Dict[str, Any] = field(default_factory=dict)
    region: Optional[str] = None
    poll_interval: float = 60
    delete_retry_timeout: float = 50 * 60
    delete_retry_interval: float = 5
    not_found_checks: int = 20


class ProvisionerException(Exception):
    """
    Base exception for provisioner errors.

    Attributes:
        message: Error message
        provider: Provider type where error occurred
        resource_id: Resource ID if applicable
        original_error: Original exception if wrapped
    """

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        resource_id: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        self.message = message
        self.provider = provider
        self.resource_id = resource_id
        self.original_error = original_error
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.provider:
            parts.append(f"Provider: {self.provider}")
        if self.resource_id:
            parts.append(f"Resource: {self.resource_id}")
        if self.original_error:
            parts.append(f"Original error: {str(self.original_error)}")
        return " | ".join(parts)


class ProvisionerValidationError(ProvisionerException):
    """Raised when declared configuration is rejected before any mutating call."""


class DecryptionError(ProvisionerException):
    """Raised when a KMS ciphertext cannot be decrypted."""


class ProvisionerApiError(ProvisionerException):
    """
    A vendor API call failed.

    Attributes:
        action: API action name (e.g. CreateDBInstance)
        code: Vendor error code, if the vendor returned one
        request_id: Vendor request ID, if the vendor returned one
    """

    def __init__(
        self,
        message: str,
        action: Optional[str] = None,
        code: Optional[str] = None,
        request_id: Optional[str] = None,
        provider: Optional[str] = 'alicloud',
        resource_id: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message, provider, resource_id, original_error)
        self.action = action
        self.code = code
        self.request_id = request_id

    @property
    def is_not_found(self) -> bool:
        return self.code in NOT_FOUND_ERROR_CODES or self.code == EMPTY_RESULT_ERROR_CODE

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.action:
            parts.append(f"Action: {self.action}")
        if self.code:
            parts.append(f"Code: {self.code}")
        if self.request_id:
            parts.append(f"RequestId: {self.request_id}")
        return " | ".join(parts)


class WaitTimeoutError(ProvisionerException):
    """Raised when a status wait runs out of time."""

    def __init__(
        self,
        message: str,
        last_status: str = "",
        timeout: float = 0,
        resource_id: Optional[str] = None
    ):
        super().__init__(message, provider='alicloud', resource_id=resource_id)
        self.last_status = last_status
        self.timeout = timeout


class UnexpectedStateError(ProvisionerException):
    """Raised when an instance reports a status it must not be in."""

    def __init__(self, message: str, status: str = "", resource_id: Optional[str] = None):
        super().__init__(message, provider='alicloud', resource_id=resource_id)
        self.status = status


class BaseDdsClient(ABC):
    """
    Control-plane API of the managed MongoDB service.

    Every call is scoped to the client's region. Calls raise
    ProvisionerApiError on failure; a missing instance is reported as an
    error whose is_not_found is True.
    """

    @abstractmethod
    def create_instance(self, request: CreateInstanceRequest) -> str:
        """Submit a create request and return the assigned instance ID."""

    @abstractmethod
    def delete_instance(self, instance_id: str) -> None:
        pass

    @abstractmethod
    def describe_instance(self, instance_id: str) -> ObservedInstance:
        pass

    @abstractmethod
    def describe_backup_policy(self, instance_id: str) -> BackupPolicy:
        pass

    @abstractmethod
    def describe_security_ips(self, instance_id: str) -> List[SecurityIpGroup]:
        pass

    @abstractmethod
    def modify_description(self, instance_id: str, description: str) -> None:
        pass

    @abstractmethod
    def modify_maintain_time(self, instance_id: str, start_time: str, end_time: str) -> None:
        pass

    @abstractmethod
    def modify_spec(
        self,
        instance_id: str,
        instance_class: str,
        storage: int,
        replication_factor: Optional[int] = None
    ) -> None:
        pass

    @abstractmethod
    def reset_account_password(self, instance_id: str, account_name: str, password: str) -> None:
        pass

    @abstractmethod
    def modify_backup_policy(self, instance_id: str, backup_time: str, backup_period: str) -> None:
        pass

    @abstractmethod
    def modify_security_ips(self, instance_id: str, security_ips: str) -> None:
        pass


class BaseKmsClient(ABC):
    """Key management service able to decrypt a ciphertext."""

    @abstractmethod
    def decrypt(self, ciphertext: str, context: Dict[str, str]) -> str:
        """
        Decrypt a KMS ciphertext.

        Args:
            ciphertext: Base64 ciphertext blob
            context: Encryption context the ciphertext was produced with

        Returns:
            Plaintext value

        Raises:
            DecryptionError: If decryption fails
        """


class BaseVpcClient(ABC):
    """Network lookup service."""

    @abstractmethod
    def describe_vswitch(self, vswitch_id: str) -> VSwitch:
        """
        Resolve a VSwitch to its owning zone and VPC.

        Raises:
            ProvisionerApiError: If the lookup fails
        """


class BaseProvisioner(ABC):
    """
    Abstract base class for resource provisioners.

    Handlers operate on a ResourceData descriptor: they read desired values
    from it and mirror observed values back onto it.
    """

    def __init__(self, config: ProvisionerConfig):
        """
        Initialize provisioner with configuration.

        Args:
            config: Provisioner configuration
        """
        self.config = config

    @abstractmethod
    def create(self, d: 'ResourceData') -> None:
        """
        Create the remote resource and converge it to the declared state.

        Raises:
            ProvisionerException: If resource creation fails
        """

    @abstractmethod
    def read(self, d: 'ResourceData') -> None:
        """
        Mirror remote state onto the descriptor; clear its ID if gone.

        Raises:
            ProvisionerException: If the remote state cannot be read
        """

    @abstractmethod
    def update(self, d: 'ResourceData') -> None:
        """
        Apply changed field groups in place.

        Raises:
            ProvisionerException: If any update step fails
        """

    @abstractmethod
    def delete(self, d: 'ResourceData') -> None:
        """
        Delete the remote resource and wait until it is gone.

        Raises:
            ProvisionerException: If resource deletion fails
        """

    @abstractmethod
    def import_state(self, resource_id: str) -> 'ResourceData':
        """
        Adopt an existing remote resource by ID.

        Raises:
            ProvisionerException: If the resource cannot be read
        """


def get_provisioner(
    resource_type: str,
    config: Dict[str, Any],
    dds_client: BaseDdsClient,
    kms_client: BaseKmsClient,
    vpc_client: BaseVpcClient
) -> BaseProvisioner:
    """
    Factory function to instantiate the appropriate provisioner.

    Args:
        resource_type: Resource type name (alicloud_mongodb_instance)
        config: Configuration dictionary for the provisioner
        dds_client: DDS control-plane client
        kms_client: KMS client used to decrypt passwords
        vpc_client: VPC client used to resolve VSwitches

    Returns:
        Instantiated provisioner implementation

    Raises:
        ProvisionerException: If resource_type is unknown

    Examples:
        >>> config = {'region': 'cn-hangzhou'}
        >>> provisioner = get_provisioner('alicloud_mongodb_instance', config, dds, kms, vpc)
        >>> provisioner.read(d)
    """
    resource_type = resource_type.lower()

    provisioner_config = ProvisionerConfig(**config)

    # Import providers lazily to avoid circular dependencies
    if resource_type == 'alicloud_mongodb_instance':
        from .mongodb import MongoDBInstanceProvisioner
        return MongoDBInstanceProvisioner(
            provisioner_config, dds_client, kms_client, vpc_client
        )
    else:
        raise ProvisionerException(
            f"Unknown resource type: {resource_type}",
            provider=provisioner_config.provider_type
        )
