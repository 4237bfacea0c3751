"""
File operations for the local cache.

Provides async read/write helpers with:
- Atomic writes using temp file + rename
- Absence reported as None rather than an error
- OS and parse failures wrapped as LocalStorageError
"""

import json
import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from ..exceptions import LocalStorageError


async def ensure_directory(path: Path) -> None:
    """Ensure directory exists, creating if necessary.

    Args:
        path: Directory path to ensure exists
    """
    try:
        await aiofiles.os.makedirs(path, exist_ok=True)
    except OSError as e:
        raise LocalStorageError("create_directory", str(path), e) from e


async def read_bytes(path: Path) -> bytes | None:
    """Read a whole file as bytes.

    Args:
        path: Path to read

    Returns:
        File contents or None if the file doesn't exist
    """
    try:
        async with aiofiles.open(path, "rb") as f:
            return await f.read()
    except FileNotFoundError:
        return None
    except OSError as e:
        raise LocalStorageError("read_bytes", str(path), e) from e


async def write_bytes_atomic(path: Path, data: bytes) -> None:
    """Write a file atomically using temp file + rename.

    Args:
        path: Target path
        data: Bytes to write
    """
    await ensure_directory(path.parent)

    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=".tmp_")
    try:
        os.close(fd)
        async with aiofiles.open(temp_path, "wb") as f:
            await f.write(data)
            await f.flush()
            os.fsync(f.fileno())

        # Atomic rename
        await aiofiles.os.replace(temp_path, path)
    except Exception as e:
        try:
            await aiofiles.os.remove(temp_path)
        except OSError:
            pass
        raise LocalStorageError("write_bytes", str(path), e) from e


async def read_json(path: Path) -> Any | None:
    """Read a JSON file.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON data or None if file doesn't exist
    """
    content = await read_bytes(path)
    if content is None:
        return None
    try:
        return json.loads(content.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise LocalStorageError("parse_json", str(path), e) from e


async def write_json_atomic(path: Path, data: Any) -> None:
    """Write JSON file atomically.

    Args:
        path: Target path for JSON file
        data: Data to serialize as JSON
    """
    try:
        payload = encode_json(data)
    except (TypeError, ValueError) as e:
        raise LocalStorageError("serialize_json", str(path), e) from e
    await write_bytes_atomic(path, payload)


def encode_json(data: Any) -> bytes:
    """Serialize data as UTF-8 JSON the way cache entries are written.

    Raises:
        TypeError: If data holds a value with no JSON representation
    """
    return json.dumps(data, default=_json_serializer, ensure_ascii=False).encode("utf-8")


async def file_exists(path: Path) -> bool:
    """Check if a file exists.

    Args:
        path: Path to check

    Returns:
        True if file exists
    """
    try:
        return await aiofiles.os.path.exists(path)
    except OSError:
        return False


async def remove_file(path: Path) -> bool:
    """Remove a file if it exists.

    Args:
        path: Path to remove

    Returns:
        True if file was removed, False if it didn't exist
    """
    try:
        await aiofiles.os.remove(path)
        return True
    except FileNotFoundError:
        return False
    except OSError as e:
        raise LocalStorageError("remove", str(path), e) from e


async def remove_directory(path: Path) -> bool:
    """Remove a directory and all contents.

    Args:
        path: Directory to remove

    Returns:
        True if removed, False if didn't exist
    """
    try:
        if await aiofiles.os.path.exists(path):
            await aiofiles.os.wrap(shutil.rmtree)(path)
            return True
        return False
    except OSError as e:
        raise LocalStorageError("remove_directory", str(path), e) from e


async def list_files(path: Path) -> list[str]:
    """List regular file names in a directory, skipping temp files.

    Args:
        path: Directory to list

    Returns:
        List of file names
    """
    try:
        if not await aiofiles.os.path.exists(path):
            return []

        names = []
        for entry in await aiofiles.os.listdir(path):
            if entry.startswith(".tmp_"):
                continue
            if await aiofiles.os.path.isfile(path / entry):
                names.append(entry)
        return names
    except OSError as e:
        raise LocalStorageError("list_files", str(path), e) from e


def _json_serializer(obj: Any) -> Any:
    """Custom JSON serializer for types not handled by default.

    Args:
        obj: Object to serialize

    Returns:
        JSON-serializable representation
    """
    if isinstance(obj, datetime):
        return obj.isoformat()
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")
