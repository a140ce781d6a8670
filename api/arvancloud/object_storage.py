# -*- coding: utf-8 -*-
"""
Arvancloud Object Storage 客户端模块

功能：
- 通过 S3 兼容接口获取 bucket 列表
- 统计每个 bucket 的对象数量和容量
"""

import logging
from typing import List, Tuple

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)


class ObjectStorageClient:
    """
    Object Storage 客户端（S3 兼容）
    """

    def __init__(self, endpoint: str, region: str, access_key: str, secret_key: str, timeout: float = 5.0):
        """
        初始化 Object Storage 客户端

        Args:
            endpoint: S3 endpoint，如 https://s3.ir-thr-at1.arvanstorage.ir
            region: 区域
            access_key: Access Key
            secret_key: Secret Key
            timeout: 连接和读取超时（秒）
        """
        self.endpoint = endpoint
        try:
            session = boto3.Session(
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key
            )
            self.client = session.client(
                's3',
                endpoint_url=endpoint,
                region_name=region,
                config=BotoConfig(connect_timeout=timeout, read_timeout=timeout, retries={'max_attempts': 0})
            )
            logger.debug(f"Object Storage 客户端初始化成功 (endpoint: {endpoint})")
        except Exception as e:
            logger.error(f"Object Storage 客户端初始化失败: {e}")
            raise

    def list_buckets(self) -> List[str]:
        """
        获取 bucket 名称列表
        """
        try:
            response = self.client.list_buckets()
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code")
            error_message = e.response.get("Error", {}).get("Message")
            logger.error(f"Object Storage ListBuckets 失败: {error_code} - {error_message}")
            raise
        except BotoCoreError as e:
            logger.error(f"Object Storage ListBuckets 失败（BotoCoreError）: {e}")
            raise

        return [bucket['Name'] for bucket in response.get('Buckets', [])]

    def get_bucket_usage(self, bucket: str) -> Tuple[int, int]:
        """
        统计 bucket 的对象数量和总大小

        Args:
            bucket: bucket 名称

        Returns:
            (object_count, size_bytes) 元组
        """
        object_count = 0
        size_bytes = 0

        try:
            paginator = self.client.get_paginator('list_objects_v2')
            for page in paginator.paginate(Bucket=bucket):
                for obj in page.get('Contents', []):
                    object_count += 1
                    size_bytes += obj.get('Size', 0)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code")
            error_message = e.response.get("Error", {}).get("Message")
            logger.error(f"Object Storage ListObjectsV2 失败 ({bucket}): {error_code} - {error_message}")
            raise
        except BotoCoreError as e:
            logger.error(f"Object Storage ListObjectsV2 失败（BotoCoreError, {bucket}）: {e}")
            raise

        logger.debug(f"bucket {bucket}: {object_count} 个对象, {size_bytes} 字节")
        return object_count, size_bytes
