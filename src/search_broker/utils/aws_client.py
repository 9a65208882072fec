"""AWS client management and session handling."""

import boto3
from botocore.config import Config
from typing import Optional, Dict, Any
from search_broker.utils.logging import get_logger

logger = get_logger(__name__)


class AWSClientManager:
    """Manages a boto3 session and its service clients."""

    def __init__(
        self,
        region: str,
        profile: Optional[str] = None,
        connect_timeout: int = 10,
        read_timeout: int = 60
    ):
        """Initialize AWS client manager.

        Args:
            region: AWS region to use
            profile: AWS profile name to use
            connect_timeout: Seconds to wait for a connection
            read_timeout: Seconds to wait for a response
        """
        self.region = region
        self.profile = profile
        self._session: Optional[boto3.Session] = None
        self._clients: Dict[str, Any] = {}

        # Failed calls surface to the caller unchanged, so SDK retries are off
        self._boto_config = Config(
            region_name=region,
            retries={
                'mode': 'standard',
                'total_max_attempts': 1
            },
            connect_timeout=connect_timeout,
            read_timeout=read_timeout
        )

    @property
    def session(self) -> boto3.Session:
        """Get or create boto3 session.

        Returns:
            Configured boto3 session
        """
        if self._session is None:
            kwargs = {'region_name': self.region}
            if self.profile:
                kwargs['profile_name'] = self.profile

            self._session = boto3.Session(**kwargs)
            logger.info(f"Created AWS session - Region: {self._session.region_name}, "
                        f"Profile: {self.profile or 'default'}")

        return self._session

    def get_client(self, service_name: str):
        """Get a cached boto3 client for a service.

        Args:
            service_name: AWS service name (e.g., 'es')

        Returns:
            Boto3 client for the service
        """
        if service_name not in self._clients:
            self._clients[service_name] = self.session.client(service_name, config=self._boto_config)
            logger.debug(f"Created {service_name} client in {self.region}")

        return self._clients[service_name]
