"""
ApsaraDB for MongoDB provisioner.

Manages the lifecycle of a replica-set MongoDB instance through the DDS
control-plane API:
- Create, then converge post-create settings (backup policy, maintenance window)
- Read remote state back onto the descriptor
- Update changed field groups in place
- Delete with retries while the instance is busy
- Import an existing instance by ID
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional

from pydantic import ValidationError
from tenacity import Retrying, retry_if_exception, stop_after_delay, wait_fixed

from ddsprovider.app.models.enums import InstanceStatus, Operation
from ddsprovider.app.schemas.instance import (
    COMMA_SEPARATED,
    DEFAULT_TIMEOUTS,
    MONGODB_INSTANCE_SCHEMA,
    MongoDBInstanceConfig,
    SecurityIpGroup,
)
from ddsprovider.app.services.credentials.password import ROOT_ACCOUNT_NAME, AccountPasswordService

from .base import (
    BaseDdsClient,
    BaseKmsClient,
    BaseProvisioner,
    BaseVpcClient,
    ProvisionerApiError,
    ProvisionerConfig,
    ProvisionerValidationError,
)
from .request_builder import build_create_request, join_security_ips
from .resource_data import ResourceData
from .state import instance_state_refresh_func, wait_for_state

logger = logging.getLogger(__name__)


class UpdateStep(NamedTuple):
    """
    One independently applied field group of an update.

    Attributes:
        name: Step name for logging
        fields: Fields whose change triggers the step
        apply: Applies the change; may return the fields to commit
        requires_existing: Skipped while converging a freshly created instance
    """
    name: str
    fields: List[str]
    apply: Callable[[ResourceData], Optional[List[str]]]
    requires_existing: bool = True


def _is_retryable_delete_error(error: BaseException) -> bool:
    return isinstance(error, ProvisionerApiError) and not error.is_not_found


def security_ips_from_groups(groups: Iterable[SecurityIpGroup]) -> List[str]:
    """Union of the IPs of all visible allow-list groups."""
    ips = set()
    for group in groups:
        if group.hidden:
            continue
        ips.update(group.ips)
    return sorted(ips)


class MongoDBInstanceProvisioner(BaseProvisioner):
    """Reconciles a declared MongoDB instance with the DDS API."""

    RESOURCE_TYPE = 'alicloud_mongodb_instance'

    CAPACITY_PENDING_STATES = [
        InstanceStatus.CLASS_CHANGING.value,
        InstanceStatus.NET_TYPE_CHANGING.value,
    ]

    def __init__(
        self,
        config: ProvisionerConfig,
        dds_client: BaseDdsClient,
        kms_client: BaseKmsClient,
        vpc_client: BaseVpcClient
    ):
        """
        Initialize MongoDB provisioner.

        Args:
            config: Provisioner configuration (region, polling cadence)
            dds_client: DDS control-plane client
            kms_client: KMS client used to decrypt passwords
            vpc_client: VPC client used to resolve VSwitches
        """
        super().__init__(config)

        if not config.region:
            raise ProvisionerValidationError(
                "Missing required configuration: region",
                provider=config.provider_type
            )

        self.region = config.region
        self.dds_client = dds_client
        self.kms_client = kms_client
        self.vpc_client = vpc_client
        self.password_service = AccountPasswordService(kms_client)

    def resource_data(
        self,
        config: Optional[Dict[str, Any]] = None,
        state: Optional[Dict[str, Any]] = None,
        resource_id: str = "",
        timeouts: Optional[Dict[Any, float]] = None
    ) -> ResourceData:
        """
        Build a descriptor for this resource type.

        Args:
            config: Declared configuration; validated when given
            state: Prior state persisted by the orchestrator
            resource_id: Instance ID, empty before creation
            timeouts: Per-operation timeout overrides in seconds

        Raises:
            ProvisionerValidationError: If the declared configuration is invalid
        """
        declared: Dict[str, Any] = {}
        if config is not None:
            try:
                declared = MongoDBInstanceConfig(**config).model_dump(exclude_none=True)
            except ValidationError as e:
                raise ProvisionerValidationError(
                    f"Invalid {self.RESOURCE_TYPE} configuration: {e}",
                    provider=self.config.provider_type,
                    resource_id=resource_id or None,
                    original_error=e
                )

        return ResourceData(
            MONGODB_INSTANCE_SCHEMA,
            config=declared,
            state=state,
            resource_id=resource_id,
            timeouts=timeouts,
            default_timeouts=DEFAULT_TIMEOUTS,
        )

    def create(self, d: ResourceData) -> None:
        """
        Create the instance, wait for it to run, then converge the settings
        that can only be applied to an existing instance.

        Raises:
            ProvisionerValidationError: If the placement is invalid
            DecryptionError: If the KMS password cannot be decrypted
            ProvisionerApiError: If a vendor call fails
            WaitTimeoutError: If the instance does not start in time
        """
        request = build_create_request(d, self.region, self.kms_client, self.vpc_client)
        instance_id = self.dds_client.create_instance(request)
        d.set_id(instance_id)
        logger.info(f"Created MongoDB instance: {instance_id}")

        self._wait_for_status(
            d.id,
            pending=[InstanceStatus.CREATING.value],
            target=[InstanceStatus.RUNNING.value],
            timeout=d.timeout(Operation.CREATE),
            fail_states=[InstanceStatus.DELETING.value],
        )

        d.is_new_resource = True
        self.update(d)

    def read(self, d: ResourceData) -> None:
        """
        Mirror the remote instance onto the descriptor.

        A missing instance clears the descriptor's ID instead of failing.

        Raises:
            ProvisionerApiError: If a vendor call fails
        """
        if not d.id:
            return

        try:
            instance = self.dds_client.describe_instance(d.id)
        except ProvisionerApiError as e:
            if e.is_not_found:
                logger.warning(f"MongoDB instance {d.id} not found, removing it from state")
                d.set_id("")
                return
            raise

        policy = self.dds_client.describe_backup_policy(d.id)
        d.set("backup_time", policy.preferred_backup_time)
        d.set("backup_period", policy.backup_period_days)
        d.set("retention_period", policy.backup_retention_period)

        groups = self.dds_client.describe_security_ips(d.id)
        d.set("security_ip_list", security_ips_from_groups(groups))

        d.set("name", instance.description)
        d.set("engine_version", instance.engine_version)
        d.set("db_instance_class", instance.db_instance_class)
        d.set("db_instance_storage", instance.db_instance_storage)
        d.set("zone_id", instance.zone_id)
        d.set("instance_charge_type", instance.charge_type)
        d.set("vswitch_id", instance.vswitch_id)
        d.set("storage_engine", instance.storage_engine)
        d.set("maintain_start_time", instance.maintain_start_time)
        d.set("maintain_end_time", instance.maintain_end_time)

        try:
            d.set("replication_factor", int(instance.replication_factor))
        except ValueError:
            logger.warning(
                f"Ignoring unparsable replication factor {instance.replication_factor!r} "
                f"of MongoDB instance {d.id}"
            )

    def update(self, d: ResourceData) -> None:
        """
        Apply every changed field group, then re-read the instance.

        Steps run in order and each one is committed as soon as it succeeds;
        the first failing step aborts the rest.

        Raises:
            ProvisionerValidationError: If a field that forces replacement changed
            ProvisionerApiError: If a vendor call fails
            WaitTimeoutError: If the instance does not settle in time
        """
        if not d.is_new_resource:
            replace = d.requires_replacement()
            if replace:
                raise ProvisionerValidationError(
                    f"Changing {', '.join(replace)} requires replacing the instance",
                    provider=self.config.provider_type,
                    resource_id=d.id
                )

        d.partial(True)

        for step in self._update_steps():
            if d.is_new_resource and step.requires_existing:
                break
            if not d.has_changes(*step.fields):
                continue

            logger.info(f"Updating {step.name} of MongoDB instance {d.id}")
            committed = step.apply(d)
            d.set_partial(*(committed if committed is not None else step.fields))

        d.partial(False)
        d.is_new_resource = False
        self.read(d)

    def delete(self, d: ResourceData) -> None:
        """
        Delete the instance and wait until it is gone.

        A busy instance rejects deletes for a while, so failed calls are
        retried within the configured budget. An instance that is already
        gone counts as deleted.

        Raises:
            ProvisionerApiError: If deletion keeps failing
            WaitTimeoutError: If the instance does not disappear in time
        """
        if not d.id:
            return

        instance_id = d.id

        try:
            for attempt in Retrying(
                stop=stop_after_delay(self.config.delete_retry_timeout),
                wait=wait_fixed(self.config.delete_retry_interval),
                retry=retry_if_exception(_is_retryable_delete_error),
                reraise=True,
                before_sleep=self._log_delete_retry,
            ):
                with attempt:
                    self.dds_client.delete_instance(instance_id)
        except ProvisionerApiError as e:
            if e.is_not_found:
                logger.info(f"MongoDB instance {instance_id} already deleted")
                d.set_id("")
                return
            logger.error(f"Failed to delete MongoDB instance {instance_id}: {e}")
            raise

        self._wait_for_status(
            instance_id,
            pending=[InstanceStatus.CREATING.value, InstanceStatus.DELETING.value],
            target=[],
            timeout=d.timeout(Operation.DELETE),
        )
        d.set_id("")
        logger.info(f"Deleted MongoDB instance: {instance_id}")

    def import_state(self, resource_id: str) -> ResourceData:
        """
        Adopt an existing instance by ID.

        Raises:
            ProvisionerApiError: If the instance does not exist
        """
        d = self.resource_data(resource_id=resource_id)
        self.read(d)
        if not d.id:
            raise ProvisionerApiError(
                f"Cannot import non-existent MongoDB instance {resource_id}",
                action="DescribeDBInstanceAttribute",
                code="InvalidDBInstanceId.NotFound",
                resource_id=resource_id
            )
        d.partial(False)
        return d

    def _update_steps(self) -> List[UpdateStep]:
        return [
            UpdateStep("backup policy", ["backup_time", "backup_period"],
                       self._modify_backup_policy, requires_existing=False),
            UpdateStep("maintenance window", ["maintain_start_time", "maintain_end_time"],
                       self._modify_maintain_time, requires_existing=False),
            UpdateStep("description", ["name"], self._modify_description),
            UpdateStep("security ips", ["security_ip_list"], self._modify_security_ips),
            UpdateStep("account password", ["account_password", "kms_encrypted_password"],
                       self._reset_password),
            UpdateStep("spec", ["db_instance_storage", "db_instance_class", "replication_factor"],
                       self._modify_spec),
        ]

    def _modify_backup_policy(self, d: ResourceData) -> None:
        backup_period = COMMA_SEPARATED.join(sorted(d.get("backup_period") or []))
        self.dds_client.modify_backup_policy(d.id, d.get("backup_time") or "", backup_period)

    def _modify_maintain_time(self, d: ResourceData) -> None:
        self.dds_client.modify_maintain_time(
            d.id,
            d.get("maintain_start_time") or "",
            d.get("maintain_end_time") or "",
        )

    def _modify_description(self, d: ResourceData) -> None:
        self.dds_client.modify_description(d.id, d.get("name") or "")

    def _modify_security_ips(self, d: ResourceData) -> None:
        self.dds_client.modify_security_ips(d.id, join_security_ips(d.get("security_ip_list")))

    def _reset_password(self, d: ResourceData) -> List[str]:
        password = self.password_service.resolve(d)
        self.dds_client.reset_account_password(d.id, ROOT_ACCOUNT_NAME, password.value)
        return password.source_fields

    def _modify_spec(self, d: ResourceData) -> None:
        # The vendor rejects a spec change while another class or network
        # change is in flight.
        self._wait_for_capacity_change(d)
        self.dds_client.modify_spec(
            d.id,
            d.get("db_instance_class"),
            d.get("db_instance_storage"),
            d.get("replication_factor"),
        )
        self._wait_for_capacity_change(d)

    def _wait_for_capacity_change(self, d: ResourceData) -> None:
        self._wait_for_status(
            d.id,
            pending=self.CAPACITY_PENDING_STATES,
            target=[InstanceStatus.RUNNING.value],
            timeout=d.timeout(Operation.UPDATE),
            fail_states=[InstanceStatus.DELETING.value],
        )

    def _wait_for_status(
        self,
        instance_id: str,
        pending: List[str],
        target: List[str],
        timeout: float,
        fail_states: Iterable[str] = ()
    ) -> Any:
        return wait_for_state(
            instance_state_refresh_func(self.dds_client, instance_id, fail_states),
            pending=pending,
            target=target,
            timeout=timeout,
            interval=self.config.poll_interval,
            not_found_checks=self.config.not_found_checks,
            resource_id=instance_id,
        )

    @staticmethod
    def _log_delete_retry(retry_state) -> None:
        logger.warning(
            f"Delete attempt {retry_state.attempt_number} failed, retrying: "
            f"{retry_state.outcome.exception()}"
        )
