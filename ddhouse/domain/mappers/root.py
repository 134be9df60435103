"""Root classifier: flat agent keys -> canonical dotted metric paths."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Tuple


def classify_root(
    document: Dict[str, Any], root_metrics: Mapping[str, str]
) -> List[Tuple[str, Any]]:
    """Pull every recognized flat key out of ``document``.

    Each matching key yields ``(canonical_path, value)`` and is deleted from
    the document. Matches are independent of each other, so key order does
    not affect the result.
    """
    matches = [key for key in document if key in root_metrics]
    return [(root_metrics[key], document.pop(key)) for key in matches]
