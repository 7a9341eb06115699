"""
Create-request construction for MongoDB instances.

Turns a descriptor into a CreateInstanceRequest, resolving the account
password through KMS and validating the declared zone against the VSwitch
the instance is placed in.
"""

import logging
import re
from typing import Iterable, NamedTuple, Optional, Set

from ddsprovider.app.models.enums import ChargeType, NetworkType
from ddsprovider.app.schemas.instance import (
    COMMA_SEPARATED,
    LOCAL_HOST_IP,
    CreateInstanceRequest,
)
from ddsprovider.app.services.credentials.password import AccountPasswordService
from ddsprovider.app.utils.security import generate_client_token

from .base import BaseKmsClient, BaseVpcClient, ProvisionerValidationError

logger = logging.getLogger(__name__)

MULTI_ZONE_SYMBOL = "MAZ"
CREATE_ACTION = "CreateDBInstance"


class NetworkPlacement(NamedTuple):
    zone_id: str
    network_type: str
    vswitch_id: str = ""
    vpc_id: str = ""


def join_security_ips(ips: Optional[Iterable[str]]) -> str:
    """Vendor allow-list string; no IPs means loopback only."""
    ips = sorted({ip.strip() for ip in ips or () if ip and ip.strip()})
    if not ips:
        return LOCAL_HOST_IP
    return COMMA_SEPARATED.join(ips)


def multi_zone_members(zone_id: str) -> Set[str]:
    """
    Zone suffixes of a multi-zone group such as cn-hangzhou-MAZ5(b,e).

    Raises:
        ProvisionerValidationError: If the group has no parenthesized member list
    """
    try:
        members = zone_id.split("(", 1)[1].split(")", 1)[0]
    except IndexError:
        raise ProvisionerValidationError(
            f"The multi zone {zone_id} does not list its member zones."
        )
    return {member.strip() for member in members.split(COMMA_SEPARATED) if member.strip()}


ZONE_SUFFIX_PATTERN = re.compile(r"[a-z]+$")


def zone_suffix(zone_id: str) -> str:
    """Trailing zone letter(s), e.g. "a" for ap-southeast-1a."""
    match = ZONE_SUFFIX_PATTERN.search(zone_id)
    return match.group(0) if match else zone_id[-1:]


def resolve_network(zone_id: str, vswitch_id: str, vpc_client: BaseVpcClient) -> NetworkPlacement:
    """
    Work out where the instance is placed.

    Without a VSwitch the declared zone is used as is. With one, the
    VSwitch's zone is adopted when no zone is declared and must otherwise
    match the declared zone or be a member of the declared multi-zone group.

    Raises:
        ProvisionerValidationError: If the VSwitch is outside the declared zone
        ProvisionerApiError: If the VSwitch lookup fails
    """
    zone_id = (zone_id or "").strip()
    vswitch_id = (vswitch_id or "").strip()
    if not vswitch_id:
        return NetworkPlacement(zone_id, NetworkType.CLASSIC.value)

    vsw = vpc_client.describe_vswitch(vswitch_id)

    if not zone_id:
        zone_id = vsw.zone_id
    elif MULTI_ZONE_SYMBOL in zone_id:
        if zone_suffix(vsw.zone_id) not in multi_zone_members(zone_id):
            raise ProvisionerValidationError(
                f"The specified vswitch {vsw.vswitch_id} isn't in the multi zone {zone_id}."
            )
    elif zone_id != vsw.zone_id:
        raise ProvisionerValidationError(
            f"The specified vswitch {vsw.vswitch_id} isn't in the zone {zone_id}."
        )

    return NetworkPlacement(zone_id, NetworkType.VPC.value, vswitch_id, vsw.vpc_id)


def build_create_request(
    d,
    region: str,
    kms_client: BaseKmsClient,
    vpc_client: BaseVpcClient
) -> CreateInstanceRequest:
    """
    Build the CreateDBInstance request for a descriptor.

    Args:
        d: Resource descriptor carrying the declared configuration
        region: Region the instance is created in
        kms_client: KMS client for encrypted passwords
        vpc_client: VPC client for VSwitch lookups

    Returns:
        Populated CreateInstanceRequest

    Raises:
        ProvisionerValidationError: If the VSwitch is outside the declared zone
        DecryptionError: If the KMS password cannot be decrypted
        ProvisionerApiError: If the VSwitch lookup fails
    """
    password = AccountPasswordService(kms_client).resolve(d)
    network = resolve_network(d.get("zone_id"), d.get("vswitch_id"), vpc_client)

    charge_type = d.get("instance_charge_type") or ""
    period = None
    if charge_type == ChargeType.PREPAID.value and d.get("period"):
        period = d.get("period")

    replication_factor = d.get("replication_factor")

    request = CreateInstanceRequest(
        region_id=region,
        engine_version=(d.get("engine_version") or "").strip(),
        db_instance_class=(d.get("db_instance_class") or "").strip(),
        db_instance_storage=d.get("db_instance_storage"),
        db_instance_description=d.get("name") or "",
        account_password=password.value,
        zone_id=network.zone_id,
        storage_engine=d.get("storage_engine") or "",
        replication_factor=str(replication_factor) if replication_factor else None,
        network_type=network.network_type,
        vswitch_id=network.vswitch_id,
        vpc_id=network.vpc_id,
        charge_type=charge_type,
        period=period,
        security_ip_list=join_security_ips(d.get("security_ip_list")),
        client_token=generate_client_token(CREATE_ACTION),
    )
    logger.debug(
        f"Built {CREATE_ACTION} request: zone={request.zone_id or '<auto>'} "
        f"network={request.network_type} class={request.db_instance_class}"
    )
    return request
