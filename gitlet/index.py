import hashlib
import logging
import os
import struct
from typing import Dict, Optional, Set
from .core import Blob, pack_path_entry, read_path_entries, read_file, write_file
from .exceptions import InvalidObjectError


logger = logging.getLogger(__name__)

INDEX_SIGNATURE = b'GLIX'
INDEX_VERSION = 1
_HEADER = struct.Struct('!4sLLLL')   # signature, version, staged, removed, tracked
_PATH = struct.Struct('!H')          # path length


class Index:
    """
    Staging area between the working directory and the next commit.

    ``staged`` maps paths to blob ids waiting to be committed, ``rm_staged``
    holds paths whose removal is staged, and ``tracked`` remembers every path
    ever added (it is not pruned on commit).
    """

    def __init__(self, staged: Optional[Dict[str, str]] = None,
                 rm_staged: Optional[Set[str]] = None,
                 tracked: Optional[Dict[str, str]] = None):
        self.staged = dict(staged or {})
        self.rm_staged = set(rm_staged or ())
        self.tracked = dict(tracked or {})

    def __repr__(self):
        return (f"Index(staged={len(self.staged)}, removed={len(self.rm_staged)}, "
                f"tracked={len(self.tracked)})")

    def add(self, path: str, blob_id: str):
        self.staged[path] = blob_id
        self.rm_staged.discard(path)
        self.tracked[path] = blob_id

    def add_file(self, store, path: str) -> str:
        blob = Blob.from_file(path)
        store.put_blob(blob)
        self.add(path, blob.id)
        return blob.id

    def remove(self, path: str):
        self.staged.pop(path, None)
        self.rm_staged.add(path)

    def unstage(self, path: str):
        self.staged.pop(path, None)

    def unremove(self, path: str):
        self.rm_staged.discard(path)

    def clear(self):
        self.staged.clear()
        self.rm_staged.clear()

    def is_clean(self) -> bool:
        return not self.staged and not self.rm_staged

    def is_staged(self, path: str) -> bool:
        return path in self.staged

    def to_bytes(self) -> bytes:
        header = _HEADER.pack(INDEX_SIGNATURE, INDEX_VERSION,
                              len(self.staged), len(self.rm_staged), len(self.tracked))
        parts = [header]
        parts.extend(pack_path_entry(path, self.staged[path]) for path in sorted(self.staged))

        for path in sorted(self.rm_staged):
            encoded = os.fsencode(path)
            parts.append(_PATH.pack(len(encoded)) + encoded)

        parts.extend(pack_path_entry(path, self.tracked[path]) for path in sorted(self.tracked))

        data = b''.join(parts)
        return data + hashlib.sha1(data).digest()

    @classmethod
    def from_bytes(cls, data: bytes) -> 'Index':
        """
        Raises:
            InvalidObjectError: If the checksum, signature or entries are damaged
        """
        if len(data) < _HEADER.size + 20:
            raise InvalidObjectError("Index file too short")

        digest = hashlib.sha1(data[:-20]).digest()
        if digest != data[-20:]:
            raise InvalidObjectError("Index checksum mismatch - file may be corrupted")

        signature, version, n_staged, n_removed, n_tracked = _HEADER.unpack(data[:_HEADER.size])

        if signature != INDEX_SIGNATURE:
            raise InvalidObjectError(f"Invalid index signature: {signature!r}")

        if version != INDEX_VERSION:
            raise InvalidObjectError(f"Unsupported index version: {version}")

        body = data[:-20]
        offset = _HEADER.size

        try:
            staged, offset = read_path_entries(body, offset, n_staged)

            rm_staged = set()
            for _ in range(n_removed):
                (length,) = _PATH.unpack_from(body, offset)
                offset += _PATH.size
                rm_staged.add(os.fsdecode(body[offset:offset + length]))
                offset += length

            tracked, offset = read_path_entries(body, offset, n_tracked)
        except struct.error as e:
            raise InvalidObjectError(f"Could not parse index entry at offset {offset}: {e}")

        if offset != len(body):
            raise InvalidObjectError(f"Index has {len(body) - offset} trailing bytes")

        return cls(staged, rm_staged, tracked)

    def save(self, repo):
        write_file(repo.index_file, self.to_bytes())
        logger.debug("saved %r", self)


def read_index(repo) -> Optional[Index]:
    """
    Returns:
        The saved Index, or None if none has been written yet
    """
    if not os.path.exists(repo.index_file):
        return None
    return Index.from_bytes(read_file(repo.index_file))


def load_index(repo) -> Index:
    """Like read_index, but returns an empty Index when none exists."""
    index = read_index(repo)
    return index if index is not None else Index()
