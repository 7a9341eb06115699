"""
Integration clients for external services.

Includes clients for:
- ApsaraDB for MongoDB (DDS) control-plane API
- Key Management Service
- VPC
"""

from .aliyun_client import (
    AliyunDdsClient,
    AliyunKmsClient,
    AliyunRpcClient,
    AliyunVpcClient,
    build_acs_client,
)

__all__ = [
    "AliyunDdsClient",
    "AliyunKmsClient",
    "AliyunRpcClient",
    "AliyunVpcClient",
    "build_acs_client",
]
