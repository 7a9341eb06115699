"""DDS Provisioner Factory

This module wires configuration, logging and the Alibaba Cloud adapters
into a ready-to-use MongoDB instance provisioner.
"""

import logging
from typing import Optional

from ddsprovider.app.config import get_config
from ddsprovider.app.services.provisioning.base import (
    BaseDdsClient,
    BaseKmsClient,
    BaseVpcClient,
    ProvisionerConfig,
    ProvisionerException,
)


def _configure_logging(config_class) -> None:
    logging.basicConfig(
        level=getattr(logging, str(config_class.LOG_LEVEL).upper(), logging.INFO),
        format=config_class.LOG_FORMAT,
    )


def create_provisioner(
    config_name: Optional[str] = None,
    dds_client: Optional[BaseDdsClient] = None,
    kms_client: Optional[BaseKmsClient] = None,
    vpc_client: Optional[BaseVpcClient] = None
):
    """
    Provisioner factory function.

    Clients that are not injected are built from the configured
    credentials.

    Args:
        config_name: Configuration environment ('development', 'testing', 'production')
        dds_client: DDS control-plane client override
        kms_client: KMS client override
        vpc_client: VPC client override

    Returns:
        Configured MongoDBInstanceProvisioner

    Raises:
        ProvisionerException: If a client must be built and credentials are missing
    """
    from ddsprovider.app.services.provisioning.mongodb import MongoDBInstanceProvisioner

    config_class = get_config(config_name)
    _configure_logging(config_class)

    provisioner_config = ProvisionerConfig(**config_class.provisioner_settings())

    if dds_client is None or kms_client is None or vpc_client is None:
        credentials = provisioner_config.credentials
        if not credentials.get("access_key") or not credentials.get("secret_key"):
            raise ProvisionerException(
                "Missing required credentials: ALICLOUD_ACCESS_KEY, ALICLOUD_SECRET_KEY",
                provider=provisioner_config.provider_type
            )

        from ddsprovider.app.integrations.aliyun_client import (
            AliyunDdsClient,
            AliyunKmsClient,
            AliyunVpcClient,
            build_acs_client,
        )

        acs_client = build_acs_client(
            credentials["access_key"],
            credentials["secret_key"],
            provisioner_config.region,
            credentials.get("security_token"),
        )
        dds_client = dds_client or AliyunDdsClient(acs_client, provisioner_config.region)
        kms_client = kms_client or AliyunKmsClient(acs_client, provisioner_config.region)
        vpc_client = vpc_client or AliyunVpcClient(acs_client, provisioner_config.region)

    logging.getLogger(__name__).info(
        f"MongoDB instance provisioner ready for region {provisioner_config.region}"
    )
    return MongoDBInstanceProvisioner(provisioner_config, dds_client, kms_client, vpc_client)
