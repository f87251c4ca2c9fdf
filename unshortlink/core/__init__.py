from unshortlink.core.normalizer import normalize
from unshortlink.core.deadline import Deadline
from unshortlink.core.coalescer import Coalescer
from unshortlink.core.walker import RedirectWalker
from unshortlink.core.resolver import Resolver


__all__ = [
    'normalize',
    'Deadline',
    'Coalescer',
    'RedirectWalker',
    'Resolver',
]
