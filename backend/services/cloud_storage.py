"""Cloud storage service for survey photos using Apache Libcloud."""

import io
import logging
import os
from threading import Lock
from libcloud.common.types import LibcloudError
from libcloud.storage.types import Provider, ObjectDoesNotExistError
from libcloud.storage.providers import get_driver
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
    after_log
)


logger = logging.getLogger(__name__)

# Provider calls are retried on transport/provider errors only
_RETRYABLE = (LibcloudError, OSError)


class CloudStorageService:
    """Object storage for photo blobs, keyed by hierarchical object names."""

    PROVIDERS = {
        's3': Provider.S3,
        'gcs': Provider.GOOGLE_STORAGE,
        'azure': Provider.AZURE_BLOBS,
        'minio': Provider.MINIO,
        'local': Provider.LOCAL,
    }

    def __init__(self, settings=None):
        """Initialize cloud storage service.

        Args:
            settings: Optional mapping overriding the CLOUD_STORAGE_* environment
                variables (keys without the prefix, lowercase: provider,
                access_key, secret_key, bucket, region, host, local_path,
                public_base_url)
        """
        settings = settings or {}

        def setting(name, default=None):
            return settings.get(name) or os.getenv(f'CLOUD_STORAGE_{name.upper()}', default)

        self.provider_name = setting('provider', 's3')
        self.access_key = setting('access_key')
        self.secret_key = setting('secret_key')
        self.bucket_name = setting('bucket')
        self.region = setting('region', 'us-east-1')
        self.host = setting('host')
        self.local_path = setting('local_path', './local_photos')
        self.public_base_url = (setting('public_base_url') or '').rstrip('/')

        if self.provider_name not in self.PROVIDERS:
            raise ValueError(f"Unsupported provider: {self.provider_name}")

        if self.provider_name == 'local':
            if not self.bucket_name:
                raise ValueError("Cloud storage configuration incomplete. Check environment variables.")
        elif not all([self.access_key, self.secret_key, self.bucket_name]):
            raise ValueError("Cloud storage configuration incomplete. Check environment variables.")

        self.driver = self._get_driver()
        self.container = self._get_container()

        logger.info(f"Cloud storage initialized with provider: {self.provider_name}, bucket: {self.bucket_name}")

    def _get_driver(self):
        """Get the appropriate libcloud driver based on provider."""
        driver_class = get_driver(self.PROVIDERS[self.provider_name])

        if self.provider_name == 'local':
            os.makedirs(self.local_path, exist_ok=True)
            return driver_class(self.local_path)

        kwargs = {
            'key': self.access_key,
            'secret': self.secret_key,
        }
        if self.provider_name == 's3':
            kwargs['region'] = self.region
        elif self.provider_name == 'minio' and self.host:
            kwargs['host'] = self.host

        return driver_class(**kwargs)

    def _get_container(self):
        """Get or create the storage container/bucket."""
        try:
            return self.driver.get_container(container_name=self.bucket_name)
        except Exception:
            logger.info(f"Creating container: {self.bucket_name}")
            return self.driver.create_container(container_name=self.bucket_name)

    def _object_url(self, obj):
        """Retrievable URL of a stored object."""
        if self.public_base_url:
            return f"{self.public_base_url}/{obj.name}"
        try:
            return obj.get_cdn_url()
        except NotImplementedError:
            return f"{self.provider_name}://{self.bucket_name}/{obj.name}"

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(_RETRYABLE),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        after=after_log(logger, logging.INFO)
    )
    def upload_bytes(self, object_name, data, content_type='image/jpeg'):
        """
        Upload a blob under object_name, overwriting any previous object.

        Args:
            object_name: Cloud object name ({survey}/{environment}/...)
            data: Blob bytes
            content_type: MIME type stored with the object

        Returns:
            str: Retrievable URL of the uploaded object

        Raises:
            Exception: If upload fails after retries
        """
        if not data:
            raise ValueError("Refusing to upload an empty object")

        logger.info(f"Uploading {len(data)} bytes to {object_name}")
        obj = self.driver.upload_object_via_stream(
            iterator=io.BytesIO(data),
            container=self.container,
            object_name=object_name,
            extra={'content_type': content_type}
        )
        return self._object_url(obj)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(_RETRYABLE),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )
    def delete_object(self, object_name):
        """
        Delete a stored blob.

        Returns:
            bool: True when deleted, False when it did not exist or deletion failed
        """
        try:
            obj = self.driver.get_object(self.container.name, object_name)
            self.driver.delete_object(obj)
            logger.info(f"Deleted object: {object_name}")
            return True
        except ObjectDoesNotExistError:
            logger.warning(f"Object already absent: {object_name}")
            return False
        except Exception as e:
            logger.error(f"Failed to delete object {object_name}: {e}")
            return False

    def iter_object_names(self):
        """Yield the names of every object in the container."""
        for obj in self.driver.iterate_container_objects(self.container):
            yield obj.name


_cloud_storage = None
_cloud_storage_lock = Lock()


def get_cloud_storage(settings=None):
    """Get or create cloud storage service instance (thread-safe)."""
    global _cloud_storage
    if _cloud_storage is None:
        with _cloud_storage_lock:
            if _cloud_storage is None:
                try:
                    _cloud_storage = CloudStorageService(settings)
                except Exception as e:
                    logger.error(f"Failed to initialize cloud storage: {e}")
                    raise
    return _cloud_storage


def set_cloud_storage(service):
    """Replace the process-wide instance (used by tests and custom setups)."""
    global _cloud_storage
    with _cloud_storage_lock:
        _cloud_storage = service
