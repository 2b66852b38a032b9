import re
import uuid
from patchfleet.utils.app_logging import logger
from patchfleet.utils.singleton_meta import SingletonMeta
from temporalio.client import Client
from patchfleet.config import config
from typing import Optional

class TemporalClientService(metaclass=SingletonMeta):
    def __init__(self):
        self._client: Optional[Client] = None
        logger.info("Initializing TemporalClientService")
        self._temporal_host = config.TEMPORAL_HOST
        self._temporal_namespace = config.TEMPORAL_NAMESPACE
        logger.info(f"TEMPORAL_HOST: {self._temporal_host}")
        logger.info(f"TEMPORAL_NAMESPACE: {self._temporal_namespace}")

    async def get_client(self, namespace: Optional[str] = None) -> Client:
        """
        Get or create a Temporal client instance.

        Returns:
            Temporal client instance
        """
        if self._client is None:
            try:
                logger.info("Creating new Temporal client instance")
                self._client = await Client.connect(
                    self._temporal_host,
                    namespace=namespace or self._temporal_namespace
                )
                logger.info(f"Temporal client connected successfully at: {self._temporal_host}")
            except Exception as e:
                logger.error(f"Failed to connect to Temporal server: {e}")
                raise

        return self._client

    async def close_client(self) -> None:
        """Close the Temporal client connection."""
        if self._client:
            # The SDK manages the underlying connection; dropping the reference is enough
            self._client = None
            logger.info("Temporal client connection closed")

    def get_workflow_id(self, package_path: str, workflow_type: str) -> str:
        """
        Generate a unique workflow ID for one action on one package.

        Args:
            package_path: Package path (sanitized into the ID)
            workflow_type: Type of workflow, e.g. "upgrade"

        Returns:
            Unique workflow ID
        """
        slug = re.sub(r"[^A-Za-z0-9._-]+", "-", package_path).strip("-") or "root"
        return f"{workflow_type}-{slug}-{uuid.uuid4().hex[:8]}"

temporal_client_service = TemporalClientService()
