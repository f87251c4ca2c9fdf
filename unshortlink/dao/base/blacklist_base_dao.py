"""Abstract base class for the blacklist oracle.

The oracle answers a single question: is this destination host considered
unsafe/unwanted? Maintaining the list itself is someone else's job.

The contract has no error path: implementations backed by a remote store must
absorb their own failures (log and answer False) rather than fail a resolution.
"""

from abc import ABC, abstractmethod


def candidate_hosts(host: str) -> list[str]:
    """Return a host followed by each of its parent domains

    Example:
        >>> candidate_hosts('WWW.Evil.example.')
        ['www.evil.example', 'evil.example', 'example']
    """
    host = host.strip().rstrip('.').lower()
    if not host:
        return []
    labels = host.split('.')
    return ['.'.join(labels[i:]) for i in range(len(labels))]


class BlacklistBaseDAO(ABC):
    """Interface for blacklist oracles.

    Methods:
        is_blacklisted(host: str) -> bool:
            True if the host, or any of its parent domains, is blacklisted.
    """

    @abstractmethod
    def is_blacklisted(self, host: str) -> bool:
        pass  # pragma: no cover
