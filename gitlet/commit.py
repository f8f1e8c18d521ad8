import logging
import os
import struct
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Mapping, Optional
from .core import (sha1_hex, encode_object, decode_object, pack_path_entry, read_path_entries,
                   ObjectType)
from .exceptions import InvalidObjectError


logger = logging.getLogger(__name__)

INITIAL_MESSAGE = 'initial commit'

DISPLAY_TIMEZONE = timezone(timedelta(hours=9))
_WEEKDAYS = ('Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun')
_MONTHS = ('Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
           'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec')

_COMMIT_HEADER = struct.Struct('!qBL')   # date, parent count, file count
_RAW_ID_LENGTH = 20


def format_timestamp(millis: int) -> str:
    """
    Args:
        millis: Milliseconds since the epoch

    Returns:
        Timestamp like 'Thu Jan 1 09:00:00 1970 +0900' (always GMT+09:00,
        English day and month names regardless of locale)
    """
    moment = datetime.fromtimestamp(millis / 1000, tz=DISPLAY_TIMEZONE)
    return '{} {} {} {:%H:%M:%S} {} {:%z}'.format(
        _WEEKDAYS[moment.weekday()],
        _MONTHS[moment.month - 1],
        moment.day,
        moment,
        moment.year,
        moment,
    )


def render_tracked(tracked: Mapping[str, str]) -> str:
    return '{' + ', '.join(f'{path}={tracked[path]}' for path in sorted(tracked)) + '}'


def render_parents(parents: Iterable[str]) -> str:
    return '[' + ', '.join(parents) + ']'


class Commit:
    """
    Immutable snapshot: message, timestamp, ordered parent ids and a
    path -> blob id map. The id is derived from all four and never changes.
    """

    def __init__(self, message: str, date: int, tracked: Optional[Mapping[str, str]] = None,
                 parents: Iterable[str] = ()):
        self._message = message
        self._date = date
        self._tracked = dict(tracked or {})
        self._parents = tuple(parents)
        self._id = sha1_hex(
            message,
            format_timestamp(date),
            render_tracked(self._tracked),
            render_parents(self._parents),
        )

    @property
    def id(self) -> str:
        return self._id

    @property
    def message(self) -> str:
        return self._message

    @property
    def date(self) -> int:
        return self._date

    @property
    def timestamp(self) -> str:
        return format_timestamp(self._date)

    @property
    def parents(self) -> tuple:
        return self._parents

    @property
    def tracked(self) -> Dict[str, str]:
        # Copy so callers cannot mutate the snapshot
        return dict(self._tracked)

    def is_tracked(self, path: str) -> bool:
        return path in self._tracked

    def blob_for(self, path: str) -> Optional[str]:
        return self._tracked.get(path)

    def has_identical_content(self, path: str, content_hash: str) -> bool:
        return self._tracked.get(path) == content_hash

    def log_entry(self) -> str:
        lines = ['===', f'commit {self._id}']
        if len(self._parents) > 1:
            lines.append('Merge: ' + ' '.join(parent[:7] for parent in self._parents))
        lines.append(f'Date: {self.timestamp}')
        lines.append(self._message)
        return '\n'.join(lines) + '\n'

    def to_bytes(self) -> bytes:
        parts = [_COMMIT_HEADER.pack(self._date, len(self._parents), len(self._tracked))]
        parts.extend(bytes.fromhex(parent) for parent in self._parents)
        parts.extend(pack_path_entry(path, self._tracked[path]) for path in sorted(self._tracked))
        parts.append(os.fsencode(self._message))
        return encode_object(ObjectType.COMMIT, b''.join(parts))

    @classmethod
    def from_bytes(cls, raw: bytes) -> 'Commit':
        """
        Args:
            raw: Stored commit object

        Returns:
            Decoded Commit

        Raises:
            InvalidObjectError: If the object is not a well-formed commit
        """
        obj_type, payload = decode_object(raw)

        if obj_type != ObjectType.COMMIT:
            raise InvalidObjectError(f"Expected commit object, got {obj_type}")

        try:
            date, n_parents, n_files = _COMMIT_HEADER.unpack_from(payload, 0)
        except struct.error as e:
            raise InvalidObjectError(f"Invalid commit format: {e}")

        offset = _COMMIT_HEADER.size
        parents = []
        for _ in range(n_parents):
            raw_id = payload[offset:offset + _RAW_ID_LENGTH]
            if len(raw_id) != _RAW_ID_LENGTH:
                raise InvalidObjectError("Commit parent list is truncated")
            parents.append(raw_id.hex())
            offset += _RAW_ID_LENGTH

        tracked, offset = read_path_entries(payload, offset, n_files)

        return cls(os.fsdecode(payload[offset:]), date, tracked, parents)

    def __eq__(self, other):
        return isinstance(other, Commit) and other.id == self.id

    def __hash__(self):
        return hash(self._id)

    def __repr__(self):
        return f"Commit({self._id[:7]}, {self._message!r})"


def initial_commit() -> Commit:
    return Commit(INITIAL_MESSAGE, 0)


def update_parents(first: str, second: Optional[str] = None) -> List[str]:
    """
    Args:
        first: Id of the commit the new one is built on
        second: Other head when merging

    Returns:
        [second, first] when merging, else [first]
    """
    parents = []
    if second is not None:
        parents.append(second)
    parents.append(first)
    return parents


def reconcile_with_index(tracked: Mapping[str, str], index) -> Dict[str, str]:
    """
    Args:
        tracked: Path -> blob map of the commit being extended
        index: Staging state whose additions and removals are applied

    Returns:
        New path -> blob map; neither argument is modified
    """
    staged = dict(index.staged)
    result = {}

    for path, blob_id in tracked.items():
        replacement = staged.pop(path, None)
        if path in index.rm_staged:
            continue
        result[path] = replacement if replacement is not None else blob_id

    result.update(staged)
    return result


def child_commit(parent: Commit, message: str, index, date: int,
                 second_parent: Optional[str] = None) -> Commit:
    tracked = reconcile_with_index(parent.tracked, index)
    commit = Commit(message, date, tracked, update_parents(parent.id, second_parent))
    logger.debug("built commit %s on %s (%d paths)", commit.id[:7], parent.id[:7], len(tracked))
    return commit
