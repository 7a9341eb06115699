"""DDS Provisioner Enumeration Types"""

from enum import Enum


class InstanceStatus(Enum):
    """DB instance statuses reported by DescribeDBInstanceAttribute"""
    CREATING = "Creating"
    RUNNING = "Running"
    DELETING = "Deleting"
    CLASS_CHANGING = "DBInstanceClassChanging"
    NET_TYPE_CHANGING = "DBInstanceNetTypeChanging"


class ChargeType(Enum):
    """Instance billing modes"""
    PREPAID = "PrePaid"
    POSTPAID = "PostPaid"


class StorageEngine(Enum):
    """MongoDB storage engine variants"""
    WIRED_TIGER = "WiredTiger"
    ROCKSDB = "RocksDB"


class NetworkType(Enum):
    """Instance network placement types"""
    CLASSIC = "Classic"
    VPC = "VPC"


class Weekday(Enum):
    """Backup period day codes"""
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"


class Operation(Enum):
    """Lifecycle operations with a configurable timeout"""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
