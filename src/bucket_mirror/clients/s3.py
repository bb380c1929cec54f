"""S3 bucket used as the mirror target."""

import asyncio
from typing import Any, List, Optional, Sequence

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from bucket_mirror.clients.base import DeleteResult, ListPage, RawObject, TargetAPIError
from bucket_mirror.config import MirrorConfig


def create_s3_client(config: MirrorConfig) -> Any:
    """Create a boto3 S3 client from the mirror configuration."""
    boto_config = Config(
        signature_version="s3v4",
        max_pool_connections=max(10, config.max_concurrency),
        retries={"max_attempts": 3, "mode": "adaptive"},
        tcp_keepalive=True,
    )
    return boto3.client(
        "s3",
        region_name=config.aws_region,
        endpoint_url=config.endpoint_url,
        aws_access_key_id=config.aws_access_key_id,
        aws_secret_access_key=config.aws_secret_access_key,
        config=boto_config,
    )


class S3Store:
    """Async wrapper around a boto3 S3 client for one bucket.

    boto3 is blocking, so every call runs in a worker thread.
    """

    def __init__(self, config: MirrorConfig, client: Optional[Any] = None):
        self.config = config
        self.bucket = config.bucket
        self.client = client or create_s3_client(config)

    async def _call(self, operation: str, **params: Any) -> Any:
        method = getattr(self.client, operation)
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, lambda: method(Bucket=self.bucket, **params))
        except (ClientError, BotoCoreError) as e:
            logger.error(f"S3 {operation} on {self.bucket} failed: {e}")
            raise TargetAPIError(f"S3 {operation} failed: {e}") from e

    async def list_page(self, token: Optional[str] = None) -> ListPage[RawObject]:
        """List one page of objects in the bucket."""
        params = {"ContinuationToken": token} if token else {}
        result = await self._call("list_objects_v2", **params)
        entries = [
            RawObject(key=obj["Key"], modified=obj["LastModified"])
            for obj in result.get("Contents", [])
        ]
        next_token = result.get("NextContinuationToken") if result.get("IsTruncated") else None
        return ListPage(entries=entries, next_token=next_token)

    async def put(
        self,
        key: str,
        body: bytes,
        content_type: str,
        disposition: str,
        public: bool = True,
    ) -> None:
        """Upload an object."""
        params = {
            "Key": key,
            "Body": body,
            "ContentType": content_type,
            "ContentDisposition": disposition,
        }
        if public:
            params["ACL"] = "public-read"
        logger.debug(f"Uploading to s3://{self.bucket}/{key} ({content_type}, {len(body)} bytes)")
        await self._call("put_object", **params)

    async def put_text(self, key: str, text: str, content_type: str) -> None:
        """Upload a generated text document, public-read."""
        await self._call(
            "put_object",
            Key=key,
            Body=text.encode("utf-8"),
            ContentType=content_type,
            ACL="public-read",
        )

    async def delete_many(self, keys: Sequence[str]) -> DeleteResult:
        """Delete up to 1000 keys in one request, reporting per-key failures."""
        result = DeleteResult()
        if not keys:
            return result

        response = await self._call(
            "delete_objects",
            Delete={"Objects": [{"Key": key} for key in keys], "Quiet": False},
        )
        result.succeeded = [d["Key"] for d in response.get("Deleted", [])]
        for error in response.get("Errors", []):
            result.failed[error["Key"]] = f"{error.get('Code')}: {error.get('Message')}"

        # keys the response does not mention were neither confirmed nor refused
        answered = set(result.succeeded) | set(result.failed)
        missing: List[str] = [key for key in keys if key not in answered]
        for key in missing:
            result.failed[key] = "not confirmed by delete_objects response"
        return result

    def public_url(self, key: str) -> str:
        return f"{self.config.bucket_url}/{key.lstrip('/')}"

    def presigned_url(self, key: str, disposition: Optional[str] = None) -> str:
        """Signed GET URL for an object, optionally overriding its disposition."""
        params = {"Bucket": self.bucket, "Key": key}
        if disposition:
            params["ResponseContentDisposition"] = disposition
        try:
            return self.client.generate_presigned_url(
                "get_object", Params=params, ExpiresIn=self.config.link_expiry
            )
        except (ClientError, BotoCoreError) as e:
            raise TargetAPIError(f"Failed to sign URL for {key}: {e}") from e
