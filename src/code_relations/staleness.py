"""Content-hash staleness detection for stored graphs.

The hash covers the whole upstream ``files`` mapping, not the analyzed subset,
so any change anywhere in the index marks every project's graph as outdated.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Mapping, Optional

from .artifact import OutdatedCheck, ProjectRelations

NO_ANALYSIS_REASON = "No analysis found"
CHANGED_REASON = "Source files have changed since last analysis"


def compute_source_hash(files: Optional[Mapping[str, Any]]) -> str:
    """MD5 over the compact JSON form of the index ``files`` mapping."""

    if files is None:
        return ""
    content = json.dumps(files, separators=(",", ":"), ensure_ascii=False)
    return hashlib.md5(content.encode("utf-8")).hexdigest()


def check_outdated(stored: Optional[ProjectRelations], current_hash: str) -> OutdatedCheck:
    if stored is None:
        return OutdatedCheck(is_outdated=True, reason=NO_ANALYSIS_REASON)

    if stored.source_hash != current_hash:
        return OutdatedCheck(
            is_outdated=True,
            reason=CHANGED_REASON,
            current_hash=current_hash,
            stored_hash=stored.source_hash,
        )

    return OutdatedCheck(is_outdated=False, current_hash=current_hash, stored_hash=stored.source_hash)
