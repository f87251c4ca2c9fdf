from unshortlink.dao.memory.resolved_link_memory_dao import ResolvedLinkMemoryDAO
from unshortlink.dao.memory.blacklist_memory_dao import BlacklistMemoryDAO
from unshortlink.dao.memory.provider_memory_dao import ProviderMemoryDAO


__all__ = [
    'ResolvedLinkMemoryDAO',
    'BlacklistMemoryDAO',
    'ProviderMemoryDAO',
]
