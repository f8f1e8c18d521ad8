import logging
import os
import time
from typing import Callable, List
from .core import read_file, write_file
from .commit import Commit, initial_commit
from .store import ObjectStore
from .exceptions import (AlreadyInitializedError, BranchExistsError, BranchMissingError,
                         CannotRemoveCurrentError, NoSuchBranchError, NotInitializedError,
                         RepositoryCorruptError)


logger = logging.getLogger(__name__)

GITLET_DIR_NAME = '.gitlet'
DEFAULT_BRANCH = 'master'
HEAD_REF_PREFIX = 'ref: refs/heads/'


class Repository:
    """
    Explicit context for one repository: the working directory root, the
    layout under ``.gitlet/``, the object store and the commit clock.
    """

    def __init__(self, root: str = '.', clock: Callable[[], float] = time.time):
        self.root = os.path.abspath(root)
        self.gitlet_dir = os.path.join(self.root, GITLET_DIR_NAME)
        self.objects_dir = os.path.join(self.gitlet_dir, 'objects')
        self.commits_dir = os.path.join(self.gitlet_dir, 'commits')
        self.refs_dir = os.path.join(self.gitlet_dir, 'refs')
        self.heads_dir = os.path.join(self.refs_dir, 'heads')
        self.head_file = os.path.join(self.gitlet_dir, 'HEAD')
        self.index_file = os.path.join(self.gitlet_dir, 'index')
        self.store = ObjectStore(self.objects_dir, self.commits_dir)
        self.clock = clock

    def __repr__(self):
        return f"Repository({self.root!r})"

    def path_for(self, name: str) -> str:
        """Absolute working-directory path used as the key for ``name``."""
        return os.path.join(self.root, name)

    def now_millis(self) -> int:
        return int(self.clock() * 1000)

    def exists(self) -> bool:
        return os.path.isdir(self.gitlet_dir)

    # HEAD and branch refs

    def branch_ref_path(self, name: str) -> str:
        return os.path.join(self.heads_dir, name)

    def current_branch_name(self) -> str:
        head = read_file(self.head_file).decode()
        if not head.startswith(HEAD_REF_PREFIX):
            raise RepositoryCorruptError(f"HEAD does not name a branch: {head!r}")
        return head[len(HEAD_REF_PREFIX):].strip()

    def set_current_branch(self, name: str):
        write_file(self.head_file, (HEAD_REF_PREFIX + name).encode())
        logger.debug("HEAD -> %s", name)

    def branch_exists(self, name: str) -> bool:
        return os.path.isfile(self.branch_ref_path(name))

    def branch_head_id(self, name: str) -> str:
        if not self.branch_exists(name):
            raise NoSuchBranchError()
        return read_file(self.branch_ref_path(name)).decode().strip()

    def update_branch_head(self, name: str, commit_id: str):
        write_file(self.branch_ref_path(name), commit_id.encode())
        logger.debug("refs/heads/%s -> %s", name, commit_id[:7])

    def create_branch(self, name: str, commit_id: str):
        if self.branch_exists(name):
            raise BranchExistsError()
        self.update_branch_head(name, commit_id)

    def delete_branch(self, name: str):
        if not self.branch_exists(name):
            raise BranchMissingError()
        if name == self.current_branch_name():
            raise CannotRemoveCurrentError()
        os.remove(self.branch_ref_path(name))
        logger.debug("deleted branch %s", name)

    def list_branches(self) -> List[str]:
        return sorted(
            name for name in os.listdir(self.heads_dir)
            if os.path.isfile(self.branch_ref_path(name))
        )

    def head_commit_id(self) -> str:
        return self.branch_head_id(self.current_branch_name())

    def head_commit(self) -> Commit:
        return self.store.get_commit(self.head_commit_id())


def init_repository(path: str = '.', clock: Callable[[], float] = time.time) -> Repository:
    """
    Args:
        path: Working directory to initialize
        clock: Source of commit timestamps (seconds since the epoch)

    Returns:
        The new Repository, on branch master at the initial commit

    Raises:
        AlreadyInitializedError: If a .gitlet directory already exists
    """
    repo = Repository(path, clock=clock)

    if os.path.exists(repo.gitlet_dir):
        raise AlreadyInitializedError()

    os.makedirs(repo.gitlet_dir)
    for directory in (repo.objects_dir, repo.commits_dir, repo.refs_dir, repo.heads_dir):
        os.makedirs(directory, exist_ok=True)

    repo.set_current_branch(DEFAULT_BRANCH)
    commit = initial_commit()
    repo.store.put_commit(commit)
    repo.update_branch_head(DEFAULT_BRANCH, commit.id)

    logger.debug("initialized repository in %s", repo.gitlet_dir)
    return repo


def is_repository(path: str = '.') -> bool:
    return os.path.isdir(os.path.join(path, GITLET_DIR_NAME))


def open_repository(path: str = '.', clock: Callable[[], float] = time.time) -> Repository:
    """
    Raises:
        NotInitializedError: If ``path`` holds no .gitlet directory
    """
    if not is_repository(path):
        raise NotInitializedError()
    return Repository(path, clock=clock)
