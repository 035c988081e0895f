# src/activity_logger/infrastructure/tools/capability_registry.py
"""
Registry for optional collaborators.
"""
import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# Capability served by the build/run lifecycle controller for Java projects.
JAVA_LIFECYCLE = "java.lifecycle"


class CapabilityRegistry:
    """
    Maps a capability name to at most one provider.

    A capability with no provider is a normal state: `get` returns None and
    callers skip the integration.
    """

    def __init__(self):
        """
        Initialize the registry.
        """
        self.providers: Dict[str, Any] = {}

    def register(self, capability: str, provider: Any) -> None:
        """
        Register the provider of a capability.

        Args:
            capability: The capability name
            provider: The object serving it

        Raises:
            ValueError: If the capability already has a provider
        """
        if capability in self.providers:
            raise ValueError(f"Capability {capability} already has a provider")

        self.providers[capability] = provider
        logger.debug(f"Registered provider for capability: {capability}")

    def unregister(self, capability: str) -> Optional[Any]:
        """
        Remove the provider of a capability.

        Args:
            capability: The capability name

        Returns:
            The removed provider, or None if there was none
        """
        provider = self.providers.pop(capability, None)
        if provider is not None:
            logger.debug(f"Unregistered provider for capability: {capability}")
        return provider

    def get(self, capability: str) -> Optional[Any]:
        """
        Get the provider of a capability.

        Args:
            capability: The capability name

        Returns:
            The provider, or None if the capability is not available
        """
        return self.providers.get(capability)

    def has(self, capability: str) -> bool:
        return capability in self.providers

    def list_capabilities(self) -> List[str]:
        """
        List all capabilities that have a provider.

        Returns:
            List of capability names
        """
        return list(self.providers.keys())
