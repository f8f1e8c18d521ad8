import hashlib
import logging
import os
import struct
import zlib
from typing import Dict, Tuple, Union
from .exceptions import InvalidObjectError, RepositoryCorruptError


logger = logging.getLogger(__name__)

PATH_ENTRY = struct.Struct('!20sH')   # blob id, path length


class ObjectType:
    COMMIT = 'commit'
    BLOB = 'blob'


def sha1_hex(*parts: Union[str, bytes]) -> str:
    """
    Args:
        parts: Strings (encoded with os.fsencode) and byte strings,
               hashed in order with no separator between them

    Returns:
        40-character lowercase SHA-1 hex string
    """
    digest = hashlib.sha1()
    for part in parts:
        digest.update(os.fsencode(part) if isinstance(part, str) else part)
    return digest.hexdigest()


def encode_object(obj_type: str, payload: bytes) -> bytes:
    if obj_type not in (ObjectType.COMMIT, ObjectType.BLOB):
        raise InvalidObjectError(f"Invalid object type: {obj_type}")
    header = f'{obj_type} {len(payload)}'.encode()
    return zlib.compress(header + b'\x00' + payload)


def decode_object(raw: bytes) -> Tuple[str, bytes]:
    """
    Args:
        raw: Compressed object bytes as stored on disk

    Returns:
        Tuple of (object_type, payload)

    Raises:
        InvalidObjectError: If the framing is damaged
    """
    try:
        full_data = zlib.decompress(raw)
        nul_index = full_data.index(b'\x00')
        obj_type, size_str = full_data[:nul_index].decode().split()
        size = int(size_str)
        payload = full_data[nul_index + 1:]
    except (zlib.error, ValueError, UnicodeDecodeError) as e:
        raise InvalidObjectError(f"Invalid object format: {e}")

    if size != len(payload):
        raise InvalidObjectError(
            f'Object size mismatch: header says {size}, got {len(payload)} bytes'
        )

    return (obj_type, payload)


class Blob:
    """Immutable snapshot of one file's bytes, keyed by hash(path + content)."""

    def __init__(self, source_path: str, content: bytes):
        self.source_path = source_path
        self.content = content
        self.id = sha1_hex(source_path, content)

    @classmethod
    def from_file(cls, path: str) -> 'Blob':
        return cls(path, read_file(path))

    def to_bytes(self) -> bytes:
        return encode_object(ObjectType.BLOB, os.fsencode(self.source_path) + b'\x00' + self.content)

    @classmethod
    def from_bytes(cls, raw: bytes) -> 'Blob':
        obj_type, payload = decode_object(raw)
        if obj_type != ObjectType.BLOB:
            raise InvalidObjectError(f"Expected blob object, got {obj_type}")
        path, sep, content = payload.partition(b'\x00')
        if not sep:
            raise InvalidObjectError("Blob record has no source path")
        return cls(os.fsdecode(path), content)

    def __eq__(self, other):
        return isinstance(other, Blob) and other.id == self.id

    def __hash__(self):
        return hash(self.id)

    def __repr__(self):
        return f"Blob({os.path.basename(self.source_path)!r}, {len(self.content)} bytes, {self.id[:7]})"


def read_file(path: str) -> bytes:
    try:
        with open(path, 'rb') as f:
            return f.read()
    except IOError as e:
        raise RepositoryCorruptError(f"Could not read file {path!r}: {e}")


def write_file(path: str, data: bytes):
    try:
        with open(path, 'wb') as f:
            f.write(data)
    except IOError as e:
        raise RepositoryCorruptError(f"Could not write file {path!r}: {e}")
    logger.debug("wrote %d bytes to %s", len(data), path)


def pack_path_entry(path: str, blob_id: str) -> bytes:
    encoded = os.fsencode(path)
    return PATH_ENTRY.pack(bytes.fromhex(blob_id), len(encoded)) + encoded


def read_path_entries(data: bytes, offset: int, count: int) -> Tuple[Dict[str, str], int]:
    """
    Decode ``count`` entries written by pack_path_entry.

    Returns:
        Tuple of (path -> blob id map, offset just past the last entry)

    Raises:
        InvalidObjectError: If an entry runs past the end of ``data``
    """
    entries = {}
    for _ in range(count):
        try:
            blob_id, length = PATH_ENTRY.unpack_from(data, offset)
        except struct.error as e:
            raise InvalidObjectError(f"Truncated path entry at offset {offset}: {e}")
        offset += PATH_ENTRY.size
        if offset + length > len(data):
            raise InvalidObjectError(f"Path at offset {offset} runs past the end of the record")
        entries[os.fsdecode(data[offset:offset + length])] = blob_id.hex()
        offset += length
    return entries, offset
