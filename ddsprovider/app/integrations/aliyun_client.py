"""
Alibaba Cloud API adapters for the DDS, KMS and VPC services.

Every call is a signed RPC request sent through aliyun-python-sdk-core.
Vendor exceptions are converted into ProvisionerApiError so the
provisioner never sees SDK types.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from aliyunsdkcore.acs_exception.exceptions import ClientException, ServerException
from aliyunsdkcore.auth.credentials import StsTokenCredential
from aliyunsdkcore.client import AcsClient
from aliyunsdkcore.request import CommonRequest

from ddsprovider.app.schemas.instance import (
    BackupPolicy,
    CreateInstanceRequest,
    ObservedInstance,
    SecurityIpGroup,
    VSwitch,
)
from ddsprovider.app.services.provisioning.base import (
    EMPTY_RESULT_ERROR_CODE,
    NOT_FOUND_ERROR_CODES,
    BaseDdsClient,
    BaseKmsClient,
    BaseVpcClient,
    DecryptionError,
    ProvisionerApiError,
)
from ddsprovider.app.utils.security import generate_client_token, redact_params

logger = logging.getLogger(__name__)

DDS_DOMAIN = "mongodb.aliyuncs.com"
DDS_API_VERSION = "2015-12-01"
KMS_API_VERSION = "2016-01-20"
VPC_DOMAIN = "vpc.aliyuncs.com"
VPC_API_VERSION = "2016-04-28"


def build_acs_client(
    access_key: str,
    secret_key: str,
    region: str,
    security_token: Optional[str] = None
) -> AcsClient:
    """
    Build a signed SDK client.

    Args:
        access_key: AccessKey ID
        secret_key: AccessKey secret
        region: Region the client is scoped to
        security_token: STS token when using temporary credentials

    Returns:
        AcsClient instance
    """
    if security_token:
        credential = StsTokenCredential(access_key, secret_key, security_token)
        return AcsClient(region_id=region, credential=credential)
    return AcsClient(access_key, secret_key, region)


class AliyunRpcClient:
    """Thin RPC caller for one product endpoint."""

    def __init__(self, acs_client: AcsClient, domain: str, version: str, region: str):
        """Initialize AliyunRpcClient.

        Args:
            acs_client: Signed SDK client
            domain: Product endpoint, e.g. mongodb.aliyuncs.com
            version: Product API version
            region: Region every request is scoped to
        """
        self.acs_client = acs_client
        self.domain = domain
        self.version = version
        self.region = region

    def call(
        self,
        action: str,
        params: Dict[str, Any],
        resource_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Send one RPC action and return the decoded JSON response.

        Args:
            action: API action name
            params: Query parameters; None values are dropped
            resource_id: Resource ID for error context

        Returns:
            Decoded response body

        Raises:
            ProvisionerApiError: If the vendor rejects the call or it cannot be sent
        """
        request = CommonRequest(domain=self.domain, version=self.version, action_name=action)
        request.set_method("POST")
        request.set_accept_format("json")
        for key, value in params.items():
            if value is not None:
                request.add_query_param(key, value)

        logger.debug(f"Calling {action} on {self.domain}: {redact_params(params)}")

        try:
            body = self.acs_client.do_action_with_exception(request)
        except ServerException as e:
            if e.get_error_code() not in NOT_FOUND_ERROR_CODES:
                logger.error(f"{action} failed: {e.get_error_code()} {e.get_error_msg()}")
            raise ProvisionerApiError(
                e.get_error_msg() or f"{action} failed",
                action=action,
                code=e.get_error_code(),
                request_id=e.get_request_id(),
                resource_id=resource_id,
                original_error=e
            )
        except ClientException as e:
            logger.error(f"{action} could not be sent: {e}")
            raise ProvisionerApiError(
                e.get_error_msg() or f"{action} could not be sent",
                action=action,
                code=e.get_error_code(),
                resource_id=resource_id,
                original_error=e
            )

        response = json.loads(body) if body else {}
        logger.debug(f"{action} succeeded, RequestId: {response.get('RequestId')}")
        return response


class AliyunDdsClient(BaseDdsClient):
    """DDS control-plane client backed by the RPC API."""

    def __init__(self, acs_client: AcsClient, region: str):
        self.rpc = AliyunRpcClient(acs_client, DDS_DOMAIN, DDS_API_VERSION, region)
        self.region = region

    def _call(self, action: str, instance_id: Optional[str] = None, **params) -> Dict[str, Any]:
        params = {"RegionId": self.region, **params}
        if instance_id:
            params["DBInstanceId"] = instance_id
        return self.rpc.call(action, params, resource_id=instance_id)

    def create_instance(self, request: CreateInstanceRequest) -> str:
        response = self.rpc.call("CreateDBInstance", request.to_params())
        instance_id = response.get("DBInstanceId", "")
        if not instance_id:
            raise ProvisionerApiError(
                "CreateDBInstance returned no instance ID",
                action="CreateDBInstance",
                request_id=response.get("RequestId")
            )
        return instance_id

    def delete_instance(self, instance_id: str) -> None:
        self._call("DeleteDBInstance", instance_id)

    def describe_instance(self, instance_id: str) -> ObservedInstance:
        response = self._call("DescribeDBInstanceAttribute", instance_id)
        instances = response.get("DBInstances", {}).get("DBInstance", [])
        if not instances:
            raise ProvisionerApiError(
                f"MongoDB instance {instance_id} not found",
                action="DescribeDBInstanceAttribute",
                code=EMPTY_RESULT_ERROR_CODE,
                request_id=response.get("RequestId"),
                resource_id=instance_id
            )
        return ObservedInstance.model_validate(instances[0])

    def describe_backup_policy(self, instance_id: str) -> BackupPolicy:
        response = self._call("DescribeBackupPolicy", instance_id)
        return BackupPolicy.model_validate(response)

    def describe_security_ips(self, instance_id: str) -> List[SecurityIpGroup]:
        response = self._call("DescribeSecurityIps", instance_id)
        groups = response.get("SecurityIpGroups", {}).get("SecurityIpGroup", [])
        return [SecurityIpGroup.model_validate(group) for group in groups]

    def modify_description(self, instance_id: str, description: str) -> None:
        self._call("ModifyDBInstanceDescription", instance_id, DBInstanceDescription=description)

    def modify_maintain_time(self, instance_id: str, start_time: str, end_time: str) -> None:
        self._call(
            "ModifyDBInstanceMaintainTime",
            instance_id,
            MaintainStartTime=start_time,
            MaintainEndTime=end_time,
        )

    def modify_spec(
        self,
        instance_id: str,
        instance_class: str,
        storage: int,
        replication_factor: Optional[int] = None
    ) -> None:
        self._call(
            "ModifyDBInstanceSpec",
            instance_id,
            DBInstanceClass=instance_class,
            DBInstanceStorage=str(storage),
            ReplicationFactor=str(replication_factor) if replication_factor else None,
        )

    def reset_account_password(self, instance_id: str, account_name: str, password: str) -> None:
        self._call(
            "ResetAccountPassword",
            instance_id,
            AccountName=account_name,
            AccountPassword=password,
        )

    def modify_backup_policy(self, instance_id: str, backup_time: str, backup_period: str) -> None:
        self._call(
            "ModifyBackupPolicy",
            instance_id,
            PreferredBackupTime=backup_time,
            PreferredBackupPeriod=backup_period,
        )

    def modify_security_ips(self, instance_id: str, security_ips: str) -> None:
        self._call(
            "ModifySecurityIps",
            instance_id,
            SecurityIps=security_ips,
            ClientToken=generate_client_token("ModifySecurityIps"),
        )


class AliyunKmsClient(BaseKmsClient):
    """KMS client able to decrypt ciphertexts produced for this account."""

    def __init__(self, acs_client: AcsClient, region: str):
        self.rpc = AliyunRpcClient(acs_client, f"kms.{region}.aliyuncs.com", KMS_API_VERSION, region)

    def decrypt(self, ciphertext: str, context: Dict[str, str]) -> str:
        params = {"CiphertextBlob": ciphertext}
        if context:
            params["EncryptionContext"] = json.dumps(context)

        try:
            response = self.rpc.call("Decrypt", params)
        except ProvisionerApiError as e:
            raise DecryptionError(
                "Failed to decrypt the KMS encrypted password",
                provider='alicloud',
                original_error=e
            )
        return response.get("Plaintext", "")


class AliyunVpcClient(BaseVpcClient):
    """VPC client resolving VSwitch placement."""

    def __init__(self, acs_client: AcsClient, region: str):
        self.rpc = AliyunRpcClient(acs_client, VPC_DOMAIN, VPC_API_VERSION, region)
        self.region = region

    def describe_vswitch(self, vswitch_id: str) -> VSwitch:
        response = self.rpc.call(
            "DescribeVSwitchAttributes",
            {"RegionId": self.region, "VSwitchId": vswitch_id},
            resource_id=vswitch_id
        )
        return VSwitch.model_validate(response)
