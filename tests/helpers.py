"""Helpers shared by the test modules."""

import os
from datetime import datetime, timezone
from pathlib import Path

# A fixed point in time used as local modification time
LOCAL_TS = 1_700_000_000


def utc(ts: float) -> datetime:
    return datetime.fromtimestamp(ts, tz=timezone.utc)


def write_file(root: Path, key: str, content: str = "content", mtime: float = LOCAL_TS) -> Path:
    """Create a file under root with a fixed modification time."""
    path = root / key
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    os.utime(path, (mtime, mtime))
    return path


def listing(objects):
    """Single page list_objects_v2 response for key -> last modified."""
    return {
        "Contents": [{"Key": key, "LastModified": ts} for key, ts in objects.items()],
        "IsTruncated": False,
    }
