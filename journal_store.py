"""Encrypted persistence for journals and standalone projects.

Objects are encoded as compact UTF-8 JSON, encrypted with
:mod:`journal_crypto` and written with an atomic replace. The data directory
also holds a plain-text ``.config`` file that remembers the last used file.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from journal_crypto import decrypt, encrypt
from journal_model import Journal, Project

logger = logging.getLogger(__name__)

APP_NAME = "devjournal"
FORMAT_VERSION = "1.0"
CONFIG_FILENAME = ".config"
DEFAULT_JOURNAL_FILENAME = "new_journal"
DATA_DIR_ENV = "DEVJOURNAL_DATA_DIR"
TEMP_MARKER = ".~"

PathLike = Union[str, "os.PathLike[str]"]
T = TypeVar("T", Journal, Project)


class StoreError(Exception):
    """Base class for persistence failures."""


class FileAccessError(StoreError):
    """Raised when a file cannot be read, written or removed."""


class SerializationError(StoreError):
    """Raised when an object cannot be encoded."""


class DeserializationError(StoreError):
    """Raised when decrypted bytes do not decode into the requested type."""


# ---------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------

def encode(obj: Union[Journal, Project]) -> bytes:
    """Serialize a journal or project to bytes."""
    try:
        payload: Dict[str, Any] = obj.to_dict()
        payload["version"] = FORMAT_VERSION
        payload["saved_at"] = datetime.now().isoformat()
        return json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError, AttributeError) as exc:
        raise SerializationError(f"Failed to encode {type(obj).__name__}: {exc}") from exc


def decode(data: bytes, cls: Type[T]) -> T:
    """Deserialize bytes produced by :func:`encode` into ``cls``."""
    try:
        payload = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise DeserializationError(f"Decrypted payload is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise DeserializationError("Decrypted payload must be a JSON object")
    try:
        return cls.from_dict(payload)
    except KeyError as exc:
        raise DeserializationError(f"{cls.__name__} is missing field: {exc}") from exc
    except (TypeError, ValueError) as exc:
        raise DeserializationError(f"Invalid {cls.__name__} data: {exc}") from exc


# ---------------------------------------------------------------------
# Save / load
# ---------------------------------------------------------------------

def _temp_prefix(name: str) -> str:
    return f"{TEMP_MARKER}{name}."


def _atomic_write(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        "wb", delete=False, dir=str(path.parent), prefix=_temp_prefix(path.name)
    ) as tmp:
        tmp_name = tmp.name
        try:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        except OSError:
            tmp.close()
            os.unlink(tmp_name)
            raise
    try:
        os.replace(tmp_name, path)
    except OSError:
        os.unlink(tmp_name)
        raise


def save(obj: Union[Journal, Project], filepath: PathLike, password: str) -> None:
    """Encode, encrypt and write ``obj`` to ``filepath``, replacing it."""
    path = Path(filepath)
    encrypted = encrypt(encode(obj), password)
    try:
        _atomic_write(path, encrypted)
    except OSError as exc:
        raise FileAccessError(f"Failed to write {path}: {exc}") from exc
    logger.debug("Saved %s to %s (%d bytes)", type(obj).__name__, path, len(encrypted))


def _read_decrypted(path: Path, password: str) -> bytes:
    try:
        encrypted = path.read_bytes()
    except OSError as exc:
        raise FileAccessError(f"Failed to read {path}: {exc}") from exc
    return decrypt(encrypted, password)


def _create_if_missing(path: Path, cls: Type[T], password: str) -> None:
    if not path.exists():
        logger.info("%s not found, creating a new %s", path, cls.__name__)
        save(cls.default(), path, password)


def load(cls: Type[T], filepath: PathLike, password: str) -> T:
    """Read ``filepath`` as ``cls``; a missing file is created with defaults first."""
    path = Path(filepath)
    _create_if_missing(path, cls, password)
    return decode(_read_decrypted(path, password), cls)


def load_journal(filepath: PathLike, password: str) -> Journal:
    """Load a journal, accepting files that hold a single project.

    Older versions saved one project per file; such a file is promoted into a
    journal with that project as its only entry.
    """
    path = Path(filepath)
    _create_if_missing(path, Journal, password)
    decrypted = _read_decrypted(path, password)
    try:
        return decode(decrypted, Journal)
    except DeserializationError as journal_error:
        try:
            project = decode(decrypted, Project)
        except DeserializationError:
            raise journal_error from None
        logger.info("Loaded %s as a single project, promoting to a journal", path)
        return Journal.from_project(project)


def merge(a: Journal, b: Journal) -> Journal:
    """Combine two journals; ``a`` keeps its name and password."""
    return a + b


def load_merge(journal: Journal, filepath: PathLike, password: str) -> Journal:
    """Merge the journal stored at ``filepath`` into ``journal``. Nothing is written."""
    return merge(journal, load_journal(filepath, password))


# ---------------------------------------------------------------------
# Data directory
# ---------------------------------------------------------------------

def data_dir() -> Path:
    """Return (and create) the per-user data directory."""
    override = os.environ.get(DATA_DIR_ENV, "").strip()
    if override:
        path = Path(override).expanduser()
    elif os.name == "nt":
        base = os.environ.get("APPDATA", os.path.expanduser("~\\AppData\\Roaming"))
        path = Path(base) / APP_NAME
    else:
        base = os.environ.get("XDG_DATA_HOME", os.path.expanduser("~/.local/share"))
        path = Path(base) / APP_NAME
    path.mkdir(parents=True, exist_ok=True)
    return path


def config_path(datadir: PathLike) -> Path:
    return Path(datadir) / CONFIG_FILENAME


def read_last_path(datadir: PathLike) -> Optional[Path]:
    """Return the last used file recorded in ``.config``, if any."""
    path = config_path(datadir)
    try:
        text = path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise FileAccessError(f"Failed to read {path}: {exc}") from exc
    return Path(text) if text else None


def write_last_path(datadir: PathLike, filepath: PathLike) -> None:
    path = config_path(datadir)
    try:
        path.write_text(str(filepath), encoding="utf-8")
    except OSError as exc:
        raise FileAccessError(f"Failed to write {path}: {exc}") from exc


def list_data_files(datadir: PathLike) -> List[str]:
    """File names in ``datadir``, most recently modified first."""
    directory = Path(datadir)
    try:
        entries = [
            entry
            for entry in directory.iterdir()
            if entry.is_file()
            and not entry.name.endswith(CONFIG_FILENAME)
            and not entry.name.startswith(TEMP_MARKER)
        ]
        entries.sort(key=lambda entry: entry.stat().st_mtime, reverse=True)
    except OSError as exc:
        raise FileAccessError(f"Failed to list {directory}: {exc}") from exc
    return [entry.name for entry in entries]


def delete_data_file(datadir: PathLike, name: str) -> None:
    path = Path(datadir) / name
    try:
        path.unlink()
    except OSError as exc:
        raise FileAccessError(f"Failed to delete {path}: {exc}") from exc
    logger.info("Deleted %s", path)
