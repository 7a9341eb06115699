"""Pydantic schemas for MongoDB instance management.

Covers the declared configuration of an instance, the records returned by
the vendor's describe calls, and the create request sent to the vendor.
"""

from typing import Any, Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ddsprovider.app.models.enums import ChargeType, NetworkType, Operation, StorageEngine, Weekday
from ddsprovider.app.schemas.common import FieldSchema

ENGINE = "MongoDB"
LOCAL_HOST_IP = "127.0.0.1"
COMMA_SEPARATED = ","

REPLICATION_FACTORS = (3, 5, 7)
PERIODS = (1, 2, 3, 4, 5, 6, 7, 8, 9, 12, 24, 36)
BACKUP_TIMES = tuple(f"{hour:02d}:00Z-{hour + 1:02d}:00Z" for hour in range(24))

DEFAULT_TIMEOUTS = {
    Operation.CREATE: 30 * 60,
    Operation.UPDATE: 30 * 60,
    Operation.DELETE: 30 * 60,
}


class MongoDBInstanceConfig(BaseModel):
    """Declared configuration of a MongoDB instance."""

    engine_version: str = Field(..., min_length=1, description="Engine version, e.g. 4.2")
    db_instance_class: str = Field(..., min_length=1, description="Instance class")
    db_instance_storage: int = Field(..., ge=10, le=2000, description="Storage size in GB")
    replication_factor: Optional[int] = Field(None, description="Replica set member count")
    storage_engine: Optional[StorageEngine] = Field(None, description="Storage engine variant")
    instance_charge_type: Optional[ChargeType] = Field(None, description="Billing mode")
    period: Optional[int] = Field(None, description="Prepaid billing period in months")
    zone_id: Optional[str] = Field(None, description="Zone or multi-zone group")
    vswitch_id: Optional[str] = Field(None, description="VSwitch the instance is attached to")
    name: Optional[str] = Field(None, min_length=2, max_length=256, description="Display name")
    security_ip_list: Optional[Set[str]] = Field(None, description="Allowed source IP ranges")
    account_password: Optional[str] = Field(None, repr=False, description="Root account password")
    kms_encrypted_password: Optional[str] = Field(None, description="KMS ciphertext of the root password")
    kms_encryption_context: Dict[str, str] = Field(
        default_factory=dict, description="KMS context the password was encrypted with"
    )
    backup_period: Optional[Set[str]] = Field(None, description="Weekdays a backup runs on")
    backup_time: Optional[str] = Field(None, description="Backup window, e.g. 02:00Z-03:00Z")
    maintain_start_time: Optional[str] = Field(None, description="Maintenance window start")
    maintain_end_time: Optional[str] = Field(None, description="Maintenance window end")

    model_config = ConfigDict(use_enum_values=True, extra="forbid")

    @field_validator("engine_version", "db_instance_class")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()

    @field_validator("replication_factor")
    @classmethod
    def _check_replication_factor(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value not in REPLICATION_FACTORS:
            raise ValueError(f"replication_factor must be one of {list(REPLICATION_FACTORS)}")
        return value

    @field_validator("period")
    @classmethod
    def _check_period(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value not in PERIODS:
            raise ValueError(f"period must be one of {list(PERIODS)}")
        return value

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: Optional[str]) -> Optional[str]:
        if value and value.startswith(("http://", "https://")):
            raise ValueError("name must not begin with http:// or https://")
        return value

    @field_validator("backup_time")
    @classmethod
    def _check_backup_time(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in BACKUP_TIMES:
            raise ValueError(f"backup_time {value!r} is not a one hour window like 02:00Z-03:00Z")
        return value

    @field_validator("backup_period")
    @classmethod
    def _check_backup_period(cls, value: Optional[Set[str]]) -> Optional[Set[str]]:
        if value is None:
            return value
        allowed = {day.value for day in Weekday}
        unknown = sorted(value - allowed)
        if unknown:
            raise ValueError(f"backup_period contains unknown days: {', '.join(unknown)}")
        return value

    @model_validator(mode="after")
    def _check_password_source(self) -> "MongoDBInstanceConfig":
        if self.account_password and self.kms_encrypted_password:
            raise ValueError('"kms_encrypted_password" conflicts with "account_password"')
        return self


class ObservedInstance(BaseModel):
    """Instance attributes as reported by DescribeDBInstanceAttribute."""

    db_instance_id: str = Field(..., alias="DBInstanceId")
    description: str = Field("", alias="DBInstanceDescription")
    engine_version: str = Field("", alias="EngineVersion")
    db_instance_class: str = Field("", alias="DBInstanceClass")
    db_instance_storage: int = Field(0, alias="DBInstanceStorage")
    zone_id: str = Field("", alias="ZoneId")
    charge_type: str = Field("", alias="ChargeType")
    network_type: str = Field("", alias="NetworkType")
    vswitch_id: str = Field("", alias="VSwitchId")
    vpc_id: str = Field("", alias="VPCId")
    storage_engine: str = Field("", alias="StorageEngine")
    maintain_start_time: str = Field("", alias="MaintainStartTime")
    maintain_end_time: str = Field("", alias="MaintainEndTime")
    replication_factor: str = Field("", alias="ReplicationFactor")
    status: str = Field("", alias="DBInstanceStatus")

    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)


class BackupPolicy(BaseModel):
    """Backup policy sub-resource of an instance."""

    preferred_backup_time: str = Field("", alias="PreferredBackupTime")
    preferred_backup_period: str = Field("", alias="PreferredBackupPeriod")
    backup_retention_period: int = Field(0, alias="BackupRetentionPeriod")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @property
    def backup_period_days(self) -> List[str]:
        return [day for day in self.preferred_backup_period.split(COMMA_SEPARATED) if day]


class SecurityIpGroup(BaseModel):
    """One allow-list group of an instance."""

    name: str = Field("", alias="SecurityIpGroupName")
    attribute: str = Field("", alias="SecurityIpGroupAttribute")
    security_ip_list: str = Field("", alias="SecurityIpList")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @property
    def hidden(self) -> bool:
        return self.attribute == "hidden"

    @property
    def ips(self) -> List[str]:
        return [ip.strip() for ip in self.security_ip_list.split(COMMA_SEPARATED) if ip.strip()]


class VSwitch(BaseModel):
    """VSwitch placement as reported by DescribeVSwitchAttributes."""

    vswitch_id: str = Field(..., alias="VSwitchId")
    zone_id: str = Field(..., alias="ZoneId")
    vpc_id: str = Field(..., alias="VpcId")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class CreateInstanceRequest(BaseModel):
    """Parameters of a CreateDBInstance call."""

    region_id: str = Field(..., alias="RegionId")
    engine: str = Field(ENGINE, alias="Engine")
    engine_version: str = Field(..., alias="EngineVersion")
    db_instance_class: str = Field(..., alias="DBInstanceClass")
    db_instance_storage: int = Field(..., alias="DBInstanceStorage")
    db_instance_description: str = Field("", alias="DBInstanceDescription")
    account_password: str = Field("", alias="AccountPassword", repr=False)
    zone_id: str = Field("", alias="ZoneId")
    storage_engine: str = Field("", alias="StorageEngine")
    replication_factor: Optional[str] = Field(None, alias="ReplicationFactor")
    network_type: str = Field(NetworkType.CLASSIC.value, alias="NetworkType")
    vswitch_id: str = Field("", alias="VSwitchId")
    vpc_id: str = Field("", alias="VpcId")
    charge_type: str = Field("", alias="ChargeType")
    period: Optional[int] = Field(None, alias="Period")
    security_ip_list: str = Field(LOCAL_HOST_IP, alias="SecurityIPList")
    client_token: str = Field("", alias="ClientToken")

    model_config = ConfigDict(populate_by_name=True)

    def to_params(self) -> Dict[str, Any]:
        """Vendor query parameters, leaving out unset values."""
        params = self.model_dump(by_alias=True, exclude_none=True)
        return {key: value for key, value in params.items() if value != ""}


def _period_diff_suppress(key: str, old: Any, new: Any, d: Any) -> bool:
    return d.get("instance_charge_type") == ChargeType.POSTPAID.value


def _kms_context_diff_suppress(key: str, old: Any, new: Any, d: Any) -> bool:
    return not d.get("kms_encrypted_password")


MONGODB_INSTANCE_SCHEMA: Dict[str, FieldSchema] = {
    "engine_version": FieldSchema(force_new=True),
    "db_instance_class": FieldSchema(),
    "db_instance_storage": FieldSchema(),
    "replication_factor": FieldSchema(computed=True),
    "storage_engine": FieldSchema(computed=True, force_new=True),
    "instance_charge_type": FieldSchema(computed=True, force_new=True),
    "period": FieldSchema(computed=True, diff_suppress=_period_diff_suppress),
    "zone_id": FieldSchema(computed=True, force_new=True),
    "vswitch_id": FieldSchema(computed=True, force_new=True),
    "name": FieldSchema(),
    "security_ip_list": FieldSchema(computed=True),
    "account_password": FieldSchema(sensitive=True),
    "kms_encrypted_password": FieldSchema(),
    "kms_encryption_context": FieldSchema(diff_suppress=_kms_context_diff_suppress),
    "backup_period": FieldSchema(computed=True),
    "backup_time": FieldSchema(computed=True),
    "retention_period": FieldSchema(computed=True),
    "maintain_start_time": FieldSchema(computed=True),
    "maintain_end_time": FieldSchema(computed=True),
}
