from typing import Dict, List, Optional

from ddsprovider.app.schemas.instance import (
    BackupPolicy,
    CreateInstanceRequest,
    ObservedInstance,
    SecurityIpGroup,
    VSwitch,
)
from ddsprovider.app.services.provisioning.base import (
    BaseDdsClient,
    BaseKmsClient,
    BaseVpcClient,
    DecryptionError,
    ProvisionerApiError,
)

REGION = "cn-hangzhou"
HIDDEN_IPS = "100.104.0.0/16"


def not_found(instance_id: str) -> ProvisionerApiError:
    return ProvisionerApiError(
        "The specified instance is not found.",
        action="DescribeDBInstanceAttribute",
        code="InvalidDBInstanceId.NotFound",
        resource_id=instance_id,
    )


def api_error(code: str) -> ProvisionerApiError:
    return ProvisionerApiError(f"Vendor rejected the call: {code}", code=code)


class FakeDdsClient(BaseDdsClient):
    """In-memory DDS API.

    describe_instance consumes statuses[instance_id] one at a time and keeps
    returning the last one; a None status means the instance is gone.
    failures[method] holds exceptions raised by that method in order.
    """

    def __init__(self):
        self.calls: List[tuple] = []
        self.instances: Dict[str, ObservedInstance] = {}
        self.statuses: Dict[str, List[Optional[str]]] = {}
        self.backup_policies: Dict[str, BackupPolicy] = {}
        self.security_ips: Dict[str, str] = {}
        self.failures: Dict[str, List[Exception]] = {}
        self.next_id = "dds-bp1test0001"

    def _record(self, method: str, *args) -> None:
        self.calls.append((method,) + args)
        if self.failures.get(method):
            raise self.failures[method].pop(0)

    def called(self, method: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == method]

    def add_instance(self, instance_id: str, status: str = "Running", **attributes) -> ObservedInstance:
        values = {
            "db_instance_id": instance_id,
            "engine_version": "4.2",
            "db_instance_class": "dds.mongo.mid",
            "db_instance_storage": 10,
            "zone_id": "cn-hangzhou-b",
            "charge_type": "PostPaid",
            "network_type": "Classic",
            "storage_engine": "WiredTiger",
            "replication_factor": "3",
            "status": status,
        }
        values.update(attributes)
        instance = ObservedInstance(**values)
        self.instances[instance_id] = instance
        self.statuses[instance_id] = [status]
        self.backup_policies.setdefault(
            instance_id,
            BackupPolicy(
                preferred_backup_time="01:00Z-02:00Z",
                preferred_backup_period="Monday,Tuesday,Wednesday,Thursday,Friday,Saturday,Sunday",
                backup_retention_period=7,
            ),
        )
        self.security_ips.setdefault(instance_id, "127.0.0.1")
        return instance

    def _update(self, instance_id: str, **attributes) -> None:
        self.instances[instance_id] = self.instances[instance_id].model_copy(update=attributes)

    def create_instance(self, request: CreateInstanceRequest) -> str:
        self._record("create_instance", request)
        instance_id = self.next_id
        self.add_instance(
            instance_id,
            status="Creating",
            description=request.db_instance_description,
            engine_version=request.engine_version,
            db_instance_class=request.db_instance_class,
            db_instance_storage=request.db_instance_storage,
            zone_id=request.zone_id,
            charge_type=request.charge_type or "PostPaid",
            network_type=request.network_type,
            vswitch_id=request.vswitch_id,
            vpc_id=request.vpc_id,
            storage_engine=request.storage_engine or "WiredTiger",
            replication_factor=request.replication_factor or "3",
        )
        self.statuses[instance_id] = ["Creating", "Running"]
        self.security_ips[instance_id] = request.security_ip_list
        return instance_id

    def delete_instance(self, instance_id: str) -> None:
        self._record("delete_instance", instance_id)
        if instance_id not in self.instances:
            raise not_found(instance_id)
        self.statuses[instance_id] = ["Deleting", None]

    def describe_instance(self, instance_id: str) -> ObservedInstance:
        self.calls.append(("describe_instance", instance_id))
        if instance_id not in self.instances:
            raise not_found(instance_id)

        statuses = self.statuses[instance_id]
        status = statuses.pop(0) if len(statuses) > 1 else statuses[0]
        if status is None:
            del self.instances[instance_id]
            raise not_found(instance_id)
        return self.instances[instance_id].model_copy(update={"status": status})

    def describe_backup_policy(self, instance_id: str) -> BackupPolicy:
        self._record("describe_backup_policy", instance_id)
        return self.backup_policies[instance_id]

    def describe_security_ips(self, instance_id: str) -> List[SecurityIpGroup]:
        self._record("describe_security_ips", instance_id)
        return [
            SecurityIpGroup(name="default", attribute="", security_ip_list=self.security_ips[instance_id]),
            SecurityIpGroup(name="dds_inner", attribute="hidden", security_ip_list=HIDDEN_IPS),
        ]

    def modify_description(self, instance_id: str, description: str) -> None:
        self._record("modify_description", instance_id, description)
        self._update(instance_id, description=description)

    def modify_maintain_time(self, instance_id: str, start_time: str, end_time: str) -> None:
        self._record("modify_maintain_time", instance_id, start_time, end_time)
        self._update(instance_id, maintain_start_time=start_time, maintain_end_time=end_time)

    def modify_spec(self, instance_id, instance_class, storage, replication_factor=None) -> None:
        self._record("modify_spec", instance_id, instance_class, storage, replication_factor)
        self._update(
            instance_id,
            db_instance_class=instance_class,
            db_instance_storage=storage,
            replication_factor=str(replication_factor or 3),
        )
        self.statuses[instance_id] = ["DBInstanceClassChanging", "Running"]

    def reset_account_password(self, instance_id: str, account_name: str, password: str) -> None:
        self._record("reset_account_password", instance_id, account_name, password)

    def modify_backup_policy(self, instance_id: str, backup_time: str, backup_period: str) -> None:
        self._record("modify_backup_policy", instance_id, backup_time, backup_period)
        self.backup_policies[instance_id] = self.backup_policies[instance_id].model_copy(
            update={"preferred_backup_time": backup_time, "preferred_backup_period": backup_period}
        )

    def modify_security_ips(self, instance_id: str, security_ips: str) -> None:
        self._record("modify_security_ips", instance_id, security_ips)
        self.security_ips[instance_id] = security_ips


class FakeKmsClient(BaseKmsClient):
    def __init__(self, plaintexts: Optional[Dict[str, str]] = None):
        self.plaintexts = plaintexts or {}
        self.calls: List[tuple] = []

    def decrypt(self, ciphertext: str, context: Dict[str, str]) -> str:
        self.calls.append((ciphertext, context))
        if ciphertext not in self.plaintexts:
            raise DecryptionError("Failed to decrypt the KMS encrypted password")
        return self.plaintexts[ciphertext]


class FakeVpcClient(BaseVpcClient):
    def __init__(self, vswitches: Optional[Dict[str, VSwitch]] = None):
        self.vswitches = vswitches or {}
        self.calls: List[str] = []

    def add_vswitch(self, vswitch_id: str, zone_id: str, vpc_id: str = "vpc-test") -> None:
        self.vswitches[vswitch_id] = VSwitch(vswitch_id=vswitch_id, zone_id=zone_id, vpc_id=vpc_id)

    def describe_vswitch(self, vswitch_id: str) -> VSwitch:
        self.calls.append(vswitch_id)
        if vswitch_id not in self.vswitches:
            raise ProvisionerApiError(
                f"VSwitch {vswitch_id} not found",
                action="DescribeVSwitchAttributes",
                code="InvalidVSwitchId.NotFound",
            )
        return self.vswitches[vswitch_id]
