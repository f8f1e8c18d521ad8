import logging
import os
import time
from collections import namedtuple
from typing import Callable, List, Optional
from . import worktree
from .commit import Commit, child_commit
from .history import all_commits, find_by_message, linear_ancestry
from .index import load_index, read_index
from .repository import Repository, init_repository
from .exceptions import (AlreadyOnBranchError, EmptyMessageError, FileNotInCommitError,
                         NoMatchingCommitError, NoReasonToRemoveError, NoSuchBranchError,
                         NoSuchFileError, NothingStagedError)


logger = logging.getLogger(__name__)

Status = namedtuple('Status', [
    'branches',         # all branch names, sorted
    'current_branch',
    'staged',           # names staged with content matching the working copy
    'removed',          # names staged for removal
    'modified',         # "name (deleted)" / "name (modified)" entries
    'untracked',        # names the index has never seen
])


def init(path: str = '.', clock: Callable[[], float] = time.time) -> Repository:
    return init_repository(path, clock=clock)


def add(repo: Repository, name: str):
    """
    Stage the working copy of ``name``. Re-adding a file identical to the
    head commit's version clears any staged change for it instead.

    Raises:
        NoSuchFileError: If the file does not exist
    """
    path = repo.path_for(name)
    if not os.path.isfile(path):
        raise NoSuchFileError()

    index = load_index(repo)
    head = repo.head_commit()

    if head.has_identical_content(path, worktree.read_hash(path)):
        index.unstage(path)
        index.unremove(path)
        logger.debug("%s matches head; cleared staging", name)
    else:
        blob_id = index.add_file(repo.store, path)
        logger.debug("staged %s as %s", name, blob_id[:7])

    index.save(repo)


def commit(repo: Repository, message: str, second_parent: Optional[str] = None) -> Commit:
    """
    Args:
        repo: Repository to commit in
        message: Commit message (must be non-empty)
        second_parent: Other head when recording a merge

    Returns:
        The new commit, now the tip of the current branch

    Raises:
        EmptyMessageError: If message is empty
        NothingStagedError: If there is nothing staged
    """
    if not message:
        raise EmptyMessageError()

    index = read_index(repo)
    if index is None or index.is_clean():
        raise NothingStagedError()

    head = repo.head_commit()
    new_commit = child_commit(head, message, index, repo.now_millis(), second_parent)

    repo.store.put_commit(new_commit)
    repo.update_branch_head(repo.current_branch_name(), new_commit.id)

    index.clear()
    index.save(repo)

    return new_commit


def rm(repo: Repository, name: str):
    """
    Unstage ``name``, and if the head commit tracks it also stage its
    removal and delete the working copy.

    Raises:
        NoReasonToRemoveError: If the file is neither staged nor tracked
    """
    path = repo.path_for(name)
    head = repo.head_commit()
    index = load_index(repo)

    if head.is_tracked(path):
        index.remove(path)
        index.save(repo)
        worktree.delete(path)
    elif index.is_staged(path):
        index.unstage(path)
        index.save(repo)
    else:
        raise NoReasonToRemoveError()


def log(repo: Repository) -> List[Commit]:
    return list(linear_ancestry(repo.store, repo.head_commit()))


def global_log(repo: Repository) -> List[Commit]:
    return list(all_commits(repo.store))


def find(repo: Repository, message: str) -> List[str]:
    """
    Returns:
        Ids of every commit whose message equals ``message``

    Raises:
        NoMatchingCommitError: If there are none
    """
    matches = find_by_message(repo.store, message)
    if not matches:
        raise NoMatchingCommitError()
    return matches


def status(repo: Repository) -> Status:
    branches = repo.list_branches()
    current_branch = repo.current_branch_name()
    index = read_index(repo)

    if index is None:
        return Status(branches, current_branch, [], [], [], [])

    staged = []
    deleted = []
    modified = []

    for path in sorted(index.staged):
        name = os.path.basename(path)
        if not os.path.isfile(path):
            deleted.append(f'{name} (deleted)')
        elif worktree.read_hash(path) != index.staged[path]:
            modified.append(f'{name} (modified)')
        else:
            staged.append(name)

    removed = sorted(os.path.basename(path) for path in index.rm_staged)

    untracked = [
        os.path.basename(path) for path in worktree.list_files(repo)
        if path not in index.staged and path not in index.tracked
    ]

    return Status(branches, current_branch, staged, removed, deleted + modified, untracked)


def _checkout_from(repo: Repository, source: Commit, name: str):
    path = repo.path_for(name)
    blob_id = source.blob_for(path)

    if blob_id is None:
        raise FileNotInCommitError()

    worktree.overwrite(path, repo.store.get_blob(blob_id).content)


def checkout_file(repo: Repository, name: str):
    _checkout_from(repo, repo.head_commit(), name)


def checkout_commit_file(repo: Repository, commit_prefix: str, name: str):
    _checkout_from(repo, repo.store.get_commit(commit_prefix), name)


def checkout_branch(repo: Repository, branch_name: str):
    """
    Raises:
        NoSuchBranchError: If the branch does not exist
        AlreadyOnBranchError: If it is the current branch
        UntrackedInTheWayError: If an untracked file would be overwritten
    """
    if not repo.branch_exists(branch_name):
        raise NoSuchBranchError()

    if branch_name == repo.current_branch_name():
        raise AlreadyOnBranchError()

    target = repo.store.get_commit(repo.branch_head_id(branch_name))
    worktree.check_untracked(repo, repo.head_commit(), load_index(repo), target)
    worktree.replace_with(repo, target)
    repo.set_current_branch(branch_name)


def branch(repo: Repository, branch_name: str):
    repo.create_branch(branch_name, repo.head_commit_id())


def rm_branch(repo: Repository, branch_name: str):
    repo.delete_branch(branch_name)


def reset(repo: Repository, commit_prefix: str) -> Commit:
    target = repo.store.get_commit(commit_prefix)
    index = load_index(repo)

    worktree.check_untracked(repo, repo.head_commit(), index, target)
    worktree.replace_with(repo, target)

    index.clear()
    index.save(repo)
    repo.update_branch_head(repo.current_branch_name(), target.id)

    return target
