from unshortlink.dao.base.resolved_link_base_dao import ResolvedLinkBaseDAO
from unshortlink.dao.base.blacklist_base_dao import BlacklistBaseDAO, candidate_hosts
from unshortlink.dao.base.provider_base_dao import ProviderBaseDAO


__all__ = [
    'ResolvedLinkBaseDAO',
    'BlacklistBaseDAO',
    'candidate_hosts',
    'ProviderBaseDAO',
]
