"""
AWS Object Store — S3 (and S3-compatible stores: MinIO, SeaweedFS).

boto3 is synchronous; every call runs in a worker thread via
asyncio.to_thread. Retries are botocore's (standard mode, 3 attempts).
The connection pool is sized to the backend's fan-out limit.

Errors are translated by S3 error code:
    NoSuchKey / 404                               -> NotFoundError
    AccessDenied / 403 / ExpiredToken / bad keys  -> AuthError
    anything else, and connection failures        -> TransientStoreError
"""

import asyncio
import logging
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from cms.errors.exceptions import AuthError, CmsError, NotFoundError, TransientStoreError
from cms.interfaces.object_store import (
    ObjectStore, ObjectHead, StoredObject, ObjectSummary, ListPage,
)
from cms.models.config import BackendConfig
from cms.models.session import StorageCredentials

logger = logging.getLogger("cms.s3")

_ERROR_CODE_MAP = {
    "NoSuchKey": NotFoundError,
    "NotFound": NotFoundError,
    "404": NotFoundError,
    "AccessDenied": AuthError,
    "403": AuthError,
    "InvalidAccessKeyId": AuthError,
    "SignatureDoesNotMatch": AuthError,
    "ExpiredToken": AuthError,
    "InvalidToken": AuthError,
}


class S3ObjectStore(ObjectStore):
    """S3-backed object store for one bucket."""

    def __init__(
        self,
        bucket_name: str,
        region: str = "us-east-1",
        endpoint_url: Optional[str] = None,
        credentials: Optional[StorageCredentials] = None,
        max_pool_connections: int = 16,
        client=None,
    ):
        self.bucket = bucket_name
        self.region = region
        self.endpoint_url = endpoint_url
        self.max_pool_connections = max_pool_connections
        self.client = client or self._make_client(credentials)

    @classmethod
    def from_config(
        cls,
        config: BackendConfig,
        credentials: Optional[StorageCredentials] = None,
    ) -> "S3ObjectStore":
        return cls(
            bucket_name=config.bucket,
            region=config.region,
            endpoint_url=config.endpoint_url,
            credentials=credentials,
            max_pool_connections=config.max_concurrency,
        )

    def _make_client(self, credentials: Optional[StorageCredentials]):
        kwargs: dict = {
            "config": Config(
                region_name=self.region,
                signature_version="s3v4",
                retries={"max_attempts": 3, "mode": "standard"},
                max_pool_connections=self.max_pool_connections,
            ),
        }
        if credentials is not None:
            kwargs["aws_access_key_id"] = credentials.access_key_id
            kwargs["aws_secret_access_key"] = credentials.secret_access_key
            if credentials.session_token:
                kwargs["aws_session_token"] = credentials.session_token
        if self.endpoint_url:
            kwargs["endpoint_url"] = self.endpoint_url
        return boto3.client("s3", **kwargs)

    def use_credentials(self, credentials: StorageCredentials) -> None:
        self.client = self._make_client(credentials)
        logger.info(f"[s3:{self.bucket}] Using credentials {credentials.access_key_id[:4]}...")

    # --- Operations ---

    async def head(self, key: str) -> ObjectHead:
        response = await self._call("head_object", key, Bucket=self.bucket, Key=key)
        return ObjectHead(
            key=key,
            size=response.get("ContentLength", 0),
            content_type=response.get("ContentType", "application/octet-stream"),
            metadata=response.get("Metadata", {}),
            etag=response.get("ETag", "").strip('"'),
        )

    async def get(self, key: str) -> StoredObject:
        def _get():
            response = self.client.get_object(Bucket=self.bucket, Key=key)
            return response, response["Body"].read()

        response, body = await self._run(_get, key)
        return StoredObject(
            key=key,
            body=body,
            content_type=response.get("ContentType", "application/octet-stream"),
            metadata=response.get("Metadata", {}),
            etag=response.get("ETag", "").strip('"'),
        )

    async def put(
        self,
        key: str,
        body: bytes,
        content_type: str,
        metadata: Optional[dict[str, str]] = None,
        cache_control: Optional[str] = None,
    ) -> None:
        params: dict = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": body,
            "ContentType": content_type,
        }
        if metadata:
            params["Metadata"] = metadata
        if cache_control:
            params["CacheControl"] = cache_control
        await self._call("put_object", key, **params)

    async def copy(
        self,
        source_key: str,
        dest_key: str,
        metadata: Optional[dict[str, str]] = None,
        content_type: Optional[str] = None,
        cache_control: Optional[str] = None,
    ) -> None:
        params: dict = {
            "Bucket": self.bucket,
            "Key": dest_key,
            "CopySource": {"Bucket": self.bucket, "Key": source_key},
        }
        if metadata is None:
            params["MetadataDirective"] = "COPY"
        else:
            # REPLACE drops everything not re-sent, content type included
            params["MetadataDirective"] = "REPLACE"
            params["Metadata"] = metadata
            if content_type:
                params["ContentType"] = content_type
            if cache_control:
                params["CacheControl"] = cache_control
        await self._call("copy_object", source_key, **params)

    async def delete(self, key: str) -> None:
        # S3 reports success for missing keys
        await self._call("delete_object", key, Bucket=self.bucket, Key=key)

    async def list_page(
        self,
        prefix: str,
        continuation_token: Optional[str] = None,
        max_keys: int = 1000,
    ) -> ListPage:
        params: dict = {"Bucket": self.bucket, "Prefix": prefix, "MaxKeys": max_keys}
        if continuation_token:
            params["ContinuationToken"] = continuation_token
        response = await self._call("list_objects_v2", prefix, **params)
        return ListPage(
            objects=[
                ObjectSummary(
                    key=obj["Key"],
                    size=obj.get("Size", 0),
                    etag=obj.get("ETag", "").strip('"'),
                )
                for obj in response.get("Contents", [])
            ],
            is_truncated=bool(response.get("IsTruncated", False)),
            continuation_token=response.get("NextContinuationToken"),
        )

    # --- Helpers ---

    async def _call(self, operation: str, key: str, **params) -> dict:
        method = getattr(self.client, operation)
        return await self._run(lambda: method(**params), key)

    async def _run(self, fn, key: str):
        try:
            return await asyncio.to_thread(fn)
        except ClientError as e:
            raise self._translate_error(e, key) from e
        except NoCredentialsError as e:
            raise AuthError(f"No storage credentials available: {e}", key=key) from e
        except BotoCoreError as e:
            raise TransientStoreError(f"S3 request failed: {e}", key=key) from e

    def _translate_error(self, error: ClientError, key: Optional[str] = None) -> CmsError:
        code = error.response.get("Error", {}).get("Code", "")
        exc_cls = _ERROR_CODE_MAP.get(code, TransientStoreError)
        if exc_cls is TransientStoreError:
            logger.warning(f"[s3:{self.bucket}] {code or 'Unknown'} on '{key}': {error}")
        return exc_cls(str(error), key=key)
