__version__ = '1.0.0'

from . import porcelain, merge
from .core import Blob, sha1_hex
from .commit import Commit
from .repository import Repository, init_repository, open_repository, is_repository
from .index import Index
from .merge import MergeResult
from .exceptions import GitletError

__all__ = [
    'porcelain',
    'merge',
    'Blob',
    'sha1_hex',
    'Commit',
    'Repository',
    'init_repository',
    'open_repository',
    'is_repository',
    'Index',
    'MergeResult',
    'GitletError',
]
