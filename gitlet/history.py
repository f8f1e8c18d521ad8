import heapq
import itertools
import logging
from typing import Iterator
from .commit import Commit
from .exceptions import RepositoryCorruptError


logger = logging.getLogger(__name__)


def linear_ancestry(store, commit: Commit) -> Iterator[Commit]:
    """Yield ``commit`` and then each first parent until a root commit."""
    while True:
        yield commit
        if not commit.parents:
            return
        commit = store.get_commit(commit.parents[0])


def all_commits(store) -> Iterator[Commit]:
    for commit_id in store.list_commit_ids():
        yield store.get_commit(commit_id)


def find_by_message(store, message: str) -> list:
    return [commit.id for commit in all_commits(store) if commit.message == message]


def split_point(store, first: Commit, second: Commit) -> Commit:
    """
    Latest common ancestor of two commits along their first-parent chains.

    Commits are expanded newest first; the first parent id reached a second
    time is where the chains meet. Both inputs count as already reached, so
    when one is an ancestor of the other it is returned itself.

    Raises:
        RepositoryCorruptError: If the chains never meet (more than one root)
    """
    if first.id == second.id:
        return first

    visited = {first.id, second.id}
    tiebreak = itertools.count()
    queue = []

    for commit in (first, second):
        heapq.heappush(queue, (-commit.date, next(tiebreak), commit))

    while queue:
        _, _, commit = heapq.heappop(queue)

        if not commit.parents:
            continue

        parent_id = commit.parents[0]
        if parent_id in visited:
            logger.debug("split point of %s and %s is %s", first.id[:7], second.id[:7], parent_id[:7])
            return store.get_commit(parent_id)

        visited.add(parent_id)
        parent = store.get_commit(parent_id)
        heapq.heappush(queue, (-parent.date, next(tiebreak), parent))

    raise RepositoryCorruptError(
        f"Commits {first.id[:7]} and {second.id[:7]} share no history"
    )
