import logging
import os
from typing import List
from .core import sha1_hex, read_file, write_file
from .exceptions import UntrackedInTheWayError


logger = logging.getLogger(__name__)


def overwrite(path: str, data: bytes):
    write_file(path, data)


def delete(path: str):
    try:
        os.remove(path)
        logger.debug("deleted %s", path)
    except FileNotFoundError:
        pass


def list_files(repo) -> List[str]:
    """
    Returns:
        Sorted absolute paths of the regular files directly under the
        working directory root (no recursion)
    """
    paths = []
    for name in os.listdir(repo.root):
        path = os.path.join(repo.root, name)
        if os.path.isfile(path):
            paths.append(path)
    return sorted(paths)


def read_hash(path: str) -> str:
    """Hash of the working copy, computed the same way blob ids are."""
    return sha1_hex(path, read_file(path))


def untracked_files(repo, head, index) -> List[str]:
    """
    Args:
        repo: Repository whose working directory is scanned
        head: Commit the current branch points at
        index: Current staging state

    Returns:
        Working-directory paths that neither the head commit nor the index
        account for; a path tracked by head but staged for removal counts
        as untracked
    """
    untracked = []
    for path in list_files(repo):
        if head.is_tracked(path):
            if path in index.rm_staged:
                untracked.append(path)
        elif path not in index.staged:
            untracked.append(path)
    return untracked


def check_untracked(repo, head, index, target):
    """
    Raises:
        UntrackedInTheWayError: If an untracked file would be clobbered by
            a different version recorded in ``target``
    """
    for path in untracked_files(repo, head, index):
        target_blob = target.blob_for(path)
        if target_blob is not None and target_blob != read_hash(path):
            logger.debug("untracked %s differs from %s in %s", path, target_blob[:7], target.id[:7])
            raise UntrackedInTheWayError()


def replace_with(repo, target):
    """
    Make the working directory mirror ``target``: every tracked path is
    written from its blob, every other file directly under the root is
    deleted.
    """
    tracked = target.tracked

    for path, blob_id in tracked.items():
        overwrite(path, repo.store.get_blob(blob_id).content)

    for path in list_files(repo):
        if path not in tracked:
            delete(path)

    logger.debug("working tree now mirrors %s", target.id[:7])
