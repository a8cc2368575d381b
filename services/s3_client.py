"""MinIO S3 client for batch downloads, artifact uploads and cleanup."""
import io
import logging
import ssl
from typing import Iterable, Optional

import urllib3
from minio import Minio
from minio.deleteobjects import DeleteObject
from minio.error import S3Error

from pipeline.core.config import S3_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class S3Client:
    """Bucket-scoped client for MinIO S3 storage."""

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        bucket: str,
        secure: bool = True,
        region: Optional[str] = None,
        verify_tls: bool = True,
        timeout: float = S3_TIMEOUT_SECONDS,
        client: Optional[Minio] = None,
    ):
        """
        Initialize S3 client.

        Args:
            endpoint: S3 endpoint (e.g., "s3.example.com:9000")
            access_key: S3 access key
            secret_key: S3 secret key
            bucket: Bucket holding batches and merged artifacts
            secure: Use HTTPS (default: True)
            region: Bucket region, skips the region lookup when set
            verify_tls: Verify the server certificate
            timeout: Connect/read timeout in seconds for every request
            client: Preconfigured Minio instance (tests)
        """
        self.bucket = bucket
        self.endpoint = endpoint

        if client is None:
            if verify_tls:
                http_client = urllib3.PoolManager(
                    timeout=urllib3.Timeout(connect=timeout, read=timeout),
                    cert_reqs=ssl.CERT_REQUIRED,
                )
            else:
                http_client = urllib3.PoolManager(
                    timeout=urllib3.Timeout(connect=timeout, read=timeout),
                    cert_reqs=ssl.CERT_NONE,
                    assert_hostname=False,
                )
            client = Minio(
                endpoint=endpoint,
                access_key=access_key,
                secret_key=secret_key,
                secure=secure,
                region=region,
                http_client=http_client,
            )
        self.client = client

        logger.info(f"S3Client initialized: endpoint={endpoint}, bucket={bucket}")

    def download(self, path: str) -> bytes:
        """
        Read a whole object into memory.

        Raises:
            S3Error: Object or bucket missing, access denied
            urllib3.exceptions.HTTPError: Transport failure
        """
        response = self.client.get_object(bucket_name=self.bucket, object_name=path)
        try:
            data = response.read()
        finally:
            response.close()
            response.release_conn()

        logger.info(f"Downloaded S3 object: key={path}, size={len(data)} bytes")
        return data

    def upload(
        self,
        path: str,
        data: bytes,
        content_type: str,
        overwrite: bool = True,
    ) -> None:
        """
        Write ``data`` to ``path``.

        With ``overwrite=True`` an existing object is replaced (last writer
        wins); otherwise FileExistsError is raised if the key exists.
        """
        if not overwrite and self.exists(path):
            raise FileExistsError(f"s3://{self.bucket}/{path} already exists")

        self.client.put_object(
            bucket_name=self.bucket,
            object_name=path,
            data=io.BytesIO(data),
            length=len(data),
            content_type=content_type,
        )
        logger.info(f"Uploaded S3 object: key={path}, size={len(data)} bytes")

    def remove(self, paths: Iterable[str]) -> list[str]:
        """Delete objects; returns keys the server refused to delete."""
        delete_list = [DeleteObject(path) for path in paths]
        failed = []
        for error in self.client.remove_objects(
            bucket_name=self.bucket, delete_object_list=delete_list
        ):
            logger.warning(f"S3 delete failed: key={error.name}, {error.code}: {error.message}")
            failed.append(error.name)
        logger.info(
            f"Removed {len(delete_list) - len(failed)}/{len(delete_list)} S3 objects"
        )
        return failed

    def exists(self, path: str) -> bool:
        try:
            self.client.stat_object(bucket_name=self.bucket, object_name=path)
        except S3Error as e:
            if e.code in ("NoSuchKey", "NoSuchObject"):
                return False
            raise
        return True

    def health_check(self) -> dict:
        """Check that the bucket is reachable."""
        try:
            healthy = self.client.bucket_exists(bucket_name=self.bucket)
            error = None if healthy else f"bucket {self.bucket} not found"
        except Exception as e:
            logger.warning(f"S3 health check failed: {e}")
            healthy, error = False, str(e)
        return {"healthy": healthy, "error": error}
