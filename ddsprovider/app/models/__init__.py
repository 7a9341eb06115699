"""DDS Provisioner Models Package"""

from ddsprovider.app.models.enums import (
    ChargeType,
    InstanceStatus,
    NetworkType,
    Operation,
    StorageEngine,
    Weekday,
)

__all__ = [
    "ChargeType",
    "InstanceStatus",
    "NetworkType",
    "Operation",
    "StorageEngine",
    "Weekday",
]
