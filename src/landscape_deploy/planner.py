"""Decide which files of the landscape directory need to be uploaded."""

import mimetypes
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Iterator, Optional

from landscape_deploy.remote_state import RemoteState

# File name of the index document
INDEX_DOCUMENT = "index.html"

# Content type of the index document
INDEX_DOCUMENT_CONTENT_TYPE = "text/html"

# Prefix used in the logos objects keys. Logos file names are derived from
# their content, so an existing key always holds the same bytes.
LOGOS_PREFIX = "logos/"

# Content types of the compression encodings known to mimetypes
ENCODING_CONTENT_TYPES = {
    "gzip": "application/gzip",
    "bzip2": "application/x-bzip2",
    "xz": "application/x-xz",
    "compress": "application/x-compress",
    "br": "application/x-brotli",
}


class UploadDecision(str, Enum):
    """What to do with a local file."""

    SKIP_HIDDEN = "skip-hidden"
    SKIP_DEDUPLICATED = "skip-deduplicated"
    SKIP_UP_TO_DATE = "skip-up-to-date"
    UPLOAD = "upload"

    @property
    def is_upload(self) -> bool:
        return self is UploadDecision.UPLOAD


@dataclass(frozen=True)
class LocalFile:
    """A regular file found in the landscape directory."""

    path: Path
    key: str

    def modified(self) -> datetime:
        return local_modified(self.path)


def object_key(landscape_dir: Path, path: Path) -> str:
    """Object key for a file: its path relative to the landscape dir, '/' separated."""
    return path.relative_to(landscape_dir).as_posix().lstrip("/")


def local_modified(path: Path) -> datetime:
    """Modification time of a local file as an aware UTC datetime."""
    return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)


def scan_local_files(landscape_dir: Path) -> Iterator[LocalFile]:
    """
    Walk the landscape directory yielding its regular files.

    Directories are not followed through symlinks and entries that don't
    resolve to a regular file are skipped.
    """
    for dirpath, dirnames, filenames in os.walk(landscape_dir):
        dirnames.sort()
        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            if not path.is_file():
                continue
            yield LocalFile(path=path, key=object_key(landscape_dir, path))


def is_hidden(key: str) -> bool:
    """Whether the file name, or the top level entry holding it, starts with a dot."""
    name = key.rsplit("/", 1)[-1]
    return name.startswith(".") or key.startswith(".")


def is_up_to_date(remote_modified: Optional[datetime], local_modified: datetime) -> bool:
    """The remote copy is at least as recent as the local file."""
    return remote_modified is not None and remote_modified >= local_modified


def decide_upload(key: str, deployed_objects: RemoteState, local_modified: datetime) -> UploadDecision:
    """
    Decide whether a file needs to be uploaded.

    The index document is not handled here; callers set it aside and
    publish it with decide_index_upload once everything else is deployed.
    """
    if is_hidden(key):
        return UploadDecision.SKIP_HIDDEN

    if key in deployed_objects:
        # Logos already deployed never change
        if key.startswith(LOGOS_PREFIX):
            return UploadDecision.SKIP_DEDUPLICATED

        if is_up_to_date(deployed_objects[key], local_modified):
            return UploadDecision.SKIP_UP_TO_DATE

    return UploadDecision.UPLOAD


def decide_index_upload(deployed_objects: RemoteState, local_modified: datetime) -> UploadDecision:
    """Decide whether the index document needs to be uploaded."""
    if is_up_to_date(deployed_objects.get(INDEX_DOCUMENT), local_modified):
        return UploadDecision.SKIP_UP_TO_DATE
    return UploadDecision.UPLOAD


def guess_content_type(key: str) -> str:
    """
    Detect the content type of an object from its key's extension.

    Compressed files get the type of their compression, not of the data
    they hold.

    Raises:
        ValueError: if the extension doesn't map to a known type
    """
    content_type, encoding = mimetypes.guess_type(key, strict=False)
    if encoding is not None:
        content_type = ENCODING_CONTENT_TYPES.get(encoding)
    if content_type is None:
        raise ValueError(f"cannot detect content type of key: {key}")
    return content_type
