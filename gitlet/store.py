import logging
import os
from typing import List
from .core import Blob, read_file, write_file
from .commit import Commit
from .exceptions import (AmbiguousPrefixError, InvalidObjectError, NoSuchCommitError,
                         PrefixTooShortError, RepositoryCorruptError)


logger = logging.getLogger(__name__)

MIN_PREFIX_LENGTH = 4
FULL_ID_LENGTH = 40


class ObjectStore:
    """
    Append-only store of blobs (``objects/<id>``) and commits
    (``commits/<id[:2]>/<id[2:]>``). Writing an id that already exists is a
    no-op.
    """

    def __init__(self, objects_dir: str, commits_dir: str):
        self.objects_dir = objects_dir
        self.commits_dir = commits_dir

    def blob_path(self, blob_id: str) -> str:
        return os.path.join(self.objects_dir, blob_id)

    def commit_path(self, commit_id: str) -> str:
        return os.path.join(self.commits_dir, commit_id[:2], commit_id[2:])

    def put_blob(self, blob: Blob) -> str:
        path = self.blob_path(blob.id)
        if not os.path.exists(path):
            write_file(path, blob.to_bytes())
            logger.debug("stored blob %s for %s", blob.id[:7], blob.source_path)
        return blob.id

    def get_blob(self, blob_id: str) -> Blob:
        """
        Args:
            blob_id: Full 40-character blob id

        Returns:
            The stored Blob

        Raises:
            RepositoryCorruptError: If the blob is missing or damaged
        """
        path = self.blob_path(blob_id)
        if not os.path.isfile(path):
            raise RepositoryCorruptError(f"Blob {blob_id!r} is missing from the store")

        blob = Blob.from_bytes(read_file(path))
        if blob.id != blob_id:
            raise InvalidObjectError(f"Blob {blob_id!r} hashes to {blob.id!r}")
        return blob

    def has_blob(self, blob_id: str) -> bool:
        return os.path.isfile(self.blob_path(blob_id))

    def put_commit(self, commit: Commit) -> str:
        path = self.commit_path(commit.id)
        if not os.path.exists(path):
            os.makedirs(os.path.dirname(path), exist_ok=True)
            write_file(path, commit.to_bytes())
            logger.debug("stored commit %s %r", commit.id[:7], commit.message)
        return commit.id

    def resolve_commit_id(self, prefix: str) -> str:
        """
        Args:
            prefix: Full commit id or a prefix of at least 4 characters

        Returns:
            Full commit id

        Raises:
            PrefixTooShortError: If prefix is shorter than 4 characters
            NoSuchCommitError: If no commit matches
            AmbiguousPrefixError: If more than one commit matches
        """
        if len(prefix) < MIN_PREFIX_LENGTH:
            raise PrefixTooShortError()

        if len(prefix) == FULL_ID_LENGTH:
            if not os.path.isfile(self.commit_path(prefix)):
                raise NoSuchCommitError()
            return prefix

        fan_out_dir = os.path.join(self.commits_dir, prefix[:2])
        rest = prefix[2:]

        try:
            matches = [name for name in os.listdir(fan_out_dir) if name.startswith(rest)]
        except FileNotFoundError:
            raise NoSuchCommitError()

        if not matches:
            raise NoSuchCommitError()

        if len(matches) > 1:
            logger.debug("prefix %r matches %d commits", prefix, len(matches))
            raise AmbiguousPrefixError()

        return prefix[:2] + matches[0]

    def get_commit(self, prefix: str) -> Commit:
        commit_id = self.resolve_commit_id(prefix)
        commit = Commit.from_bytes(read_file(self.commit_path(commit_id)))

        if commit.id != commit_id:
            raise InvalidObjectError(f"Commit {commit_id!r} hashes to {commit.id!r}")

        return commit

    def list_commit_ids(self) -> List[str]:
        ids = []
        if not os.path.isdir(self.commits_dir):
            return ids

        for fan_out in sorted(os.listdir(self.commits_dir)):
            subdir = os.path.join(self.commits_dir, fan_out)
            if os.path.isdir(subdir) and len(fan_out) == 2:
                ids.extend(fan_out + name for name in sorted(os.listdir(subdir)))

        return ids
