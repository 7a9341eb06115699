import pytest

from ddsprovider.app.services.provisioning.base import ProvisionerConfig
from ddsprovider.app.services.provisioning.mongodb import MongoDBInstanceProvisioner

from .helpers import REGION, FakeDdsClient, FakeKmsClient, FakeVpcClient


@pytest.fixture(autouse=True)
def tenacity_wait(mocker):
    mocker.patch("tenacity.nap.time")


@pytest.fixture
def dds() -> FakeDdsClient:
    return FakeDdsClient()


@pytest.fixture
def kms() -> FakeKmsClient:
    return FakeKmsClient({"encrypted-blob": "Decrypted#Pass1"})


@pytest.fixture
def vpc() -> FakeVpcClient:
    client = FakeVpcClient()
    client.add_vswitch("vsw-a", "cn-hangzhou-b", "vpc-a")
    client.add_vswitch("vsw-e", "cn-hangzhou-e", "vpc-a")
    return client


@pytest.fixture
def provisioner_config() -> ProvisionerConfig:
    return ProvisionerConfig(
        region=REGION,
        poll_interval=0,
        delete_retry_timeout=5,
        delete_retry_interval=0,
    )


@pytest.fixture
def provisioner(provisioner_config, dds, kms, vpc) -> MongoDBInstanceProvisioner:
    return MongoDBInstanceProvisioner(provisioner_config, dds, kms, vpc)


@pytest.fixture
def instance_config() -> dict:
    return {
        "engine_version": "4.2",
        "db_instance_class": "dds.mongo.mid",
        "db_instance_storage": 10,
        "replication_factor": 3,
        "vswitch_id": "vsw-a",
        "name": "orders",
        "security_ip_list": ["10.0.0.2", "10.0.0.1"],
        "account_password": "Secr3t#Pass",
        "backup_time": "02:00Z-03:00Z",
        "backup_period": ["Wednesday", "Monday"],
        "maintain_start_time": "01:00Z",
        "maintain_end_time": "03:00Z",
    }


@pytest.fixture
def created(provisioner, instance_config):
    """Descriptor of an instance that went through create."""
    d = provisioner.resource_data(instance_config)
    provisioner.create(d)
    return d
