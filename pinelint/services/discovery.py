"""
discovery.py — Expand CLI patterns into Pine source files.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional

logger = logging.getLogger("pinelint.discovery")


def resolve_paths(patterns: Iterable[str], root: Optional[Path] = None) -> List[Path]:
    """
    Existing files pass through as given; anything else is a glob relative to
    `root` (`**` recurses). Result is sorted and de-duplicated.
    """
    root = Path(root) if root is not None else Path.cwd()
    found: set = set()
    for pattern in patterns:
        direct = Path(pattern)
        if not direct.is_absolute():
            direct = root / direct
        if direct.is_file():
            found.add(direct)
            continue
        if Path(pattern).is_absolute():
            anchor = Path(Path(pattern).anchor)
            matches = [p for p in anchor.glob(str(Path(pattern).relative_to(anchor))) if p.is_file()]
        else:
            matches = [p for p in root.glob(pattern) if p.is_file()]
        if not matches:
            logger.warning(f"[Discovery] No files match '{pattern}'")
        found.update(matches)
    return sorted(found)
