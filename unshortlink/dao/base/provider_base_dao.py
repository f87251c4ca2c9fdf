"""Abstract base class for the list of known URL shortener providers."""

from abc import ABC, abstractmethod


class ProviderBaseDAO(ABC):
    """Interface for the registry of known shortener hosts.

    Methods:
        hosts() -> list[str]:
            Shortener host names (e.g. 'bit.ly', 't.co'), sorted.

    Raises:
        DataStoreError: implementations backed by a remote store may raise it.
    """

    @abstractmethod
    def hosts(self, **kwargs) -> list[str]:
        pass  # pragma: no cover
