import logging
from collections import namedtuple
from typing import Optional, Tuple
from . import worktree
from .history import split_point
from .index import load_index
from .porcelain import commit
from .exceptions import (BranchMissingError, MergeSelfError, UncommittedChangesError)


logger = logging.getLogger(__name__)

ANCESTOR_MESSAGE = 'Given branch is an ancestor of the current branch.'
FAST_FORWARD_MESSAGE = 'Current branch fast-forwarded.'
CONFLICT_MESSAGE = 'Encountered a merge conflict.'


class MergeAction:
    KEEP = 'keep'
    TAKE_GIVEN = 'take-given'
    REMOVE = 'remove'
    CONFLICT = 'conflict'


class MergeKind:
    ANCESTOR = 'ancestor'
    FAST_FORWARD = 'fast-forward'
    MERGED = 'merged'


MergeResult = namedtuple('MergeResult', ['kind', 'commit_id', 'conflicted'])


def classify(split_blob: Optional[str], current_blob: Optional[str],
             given_blob: Optional[str]) -> Tuple[int, str]:
    """
    Args:
        split_blob: Blob id at the split point (None if absent)
        current_blob: Blob id at the current head (None if absent)
        given_blob: Blob id at the given head (None if absent)

    Returns:
        Tuple of (case number, MergeAction)
    """
    if split_blob is not None and given_blob is None and current_blob == split_blob:
        return (6, MergeAction.REMOVE)

    if split_blob is not None and current_blob is None and given_blob == split_blob:
        return (7, MergeAction.KEEP)

    if given_blob != split_blob and current_blob == split_blob:
        return (5 if split_blob is None else 1, MergeAction.TAKE_GIVEN)

    if given_blob == split_blob and current_blob != split_blob:
        return (4 if split_blob is None else 2, MergeAction.KEEP)

    if current_blob == given_blob:
        return (3, MergeAction.KEEP)

    return (8, MergeAction.CONFLICT)


def conflict_content(current: bytes, given: bytes) -> bytes:
    return b'<<<<<<< HEAD\n' + current + b'=======\n' + given + b'>>>>>>>'


def _blob_bytes(store, blob_id: Optional[str]) -> bytes:
    return b'' if blob_id is None else store.get_blob(blob_id).content


def merge(repo, branch_name: str) -> MergeResult:
    """
    Merge the head of ``branch_name`` into the current branch.

    Args:
        repo: Repository to merge in
        branch_name: Branch whose head is merged

    Returns:
        MergeResult describing whether the given branch was already an
        ancestor, the current branch was fast-forwarded, or a merge commit
        was created (and whether it recorded conflicts)

    Raises:
        UncommittedChangesError: If anything is staged
        BranchMissingError: If the branch does not exist
        MergeSelfError: If it is the current branch
        UntrackedInTheWayError: If an untracked file would be overwritten
        NothingStagedError: If the merge leaves nothing to commit
    """
    store = repo.store
    index = load_index(repo)

    if not index.is_clean():
        raise UncommittedChangesError()

    if not repo.branch_exists(branch_name):
        raise BranchMissingError()

    current_branch = repo.current_branch_name()
    if branch_name == current_branch:
        raise MergeSelfError()

    head = repo.head_commit()
    worktree.check_untracked(repo, head, index, head)

    given = store.get_commit(repo.branch_head_id(branch_name))
    split = split_point(store, head, given)

    if split.id == given.id:
        return MergeResult(MergeKind.ANCESTOR, None, False)

    worktree.check_untracked(repo, head, index, given)

    if split.id == head.id:
        worktree.replace_with(repo, given)
        repo.update_branch_head(current_branch, given.id)
        repo.set_current_branch(branch_name)
        return MergeResult(MergeKind.FAST_FORWARD, given.id, False)

    split_tracked = split.tracked
    head_tracked = head.tracked
    given_tracked = given.tracked
    conflicted = False

    for path in sorted(set(split_tracked) | set(head_tracked) | set(given_tracked)):
        split_blob = split_tracked.get(path)
        current_blob = head_tracked.get(path)
        given_blob = given_tracked.get(path)

        case, action = classify(split_blob, current_blob, given_blob)
        logger.debug("merge case %d (%s) for %s", case, action, path)

        if action == MergeAction.TAKE_GIVEN:
            worktree.overwrite(path, store.get_blob(given_blob).content)
            index.add(path, given_blob)
        elif action == MergeAction.REMOVE:
            worktree.delete(path)
            index.remove(path)
        elif action == MergeAction.CONFLICT:
            worktree.overwrite(path, conflict_content(
                _blob_bytes(store, current_blob),
                _blob_bytes(store, given_blob),
            ))
            index.add_file(store, path)
            conflicted = True

    index.save(repo)

    merge_commit = commit(repo, f'Merged {branch_name} into {current_branch}',
                          second_parent=given.id)

    return MergeResult(MergeKind.MERGED, merge_commit.id, conflicted)
