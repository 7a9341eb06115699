"""DDS Provisioner Schemas.

This package contains the Pydantic models for declared configuration,
vendor records and vendor requests, plus the field declarations used for
change tracking.
"""

from ddsprovider.app.schemas.common import FieldSchema
from ddsprovider.app.schemas.instance import (
    MONGODB_INSTANCE_SCHEMA,
    BackupPolicy,
    CreateInstanceRequest,
    MongoDBInstanceConfig,
    ObservedInstance,
    SecurityIpGroup,
    VSwitch,
)

__all__ = [
    "MONGODB_INSTANCE_SCHEMA",
    "BackupPolicy",
    "CreateInstanceRequest",
    "FieldSchema",
    "MongoDBInstanceConfig",
    "ObservedInstance",
    "SecurityIpGroup",
    "VSwitch",
]
