from typing import Dict, Optional

from reid.config import UNKNOWN_ID


def serialize_match(result, label: str, query: Optional[str] = None) -> Dict:
    """Serialize a MatchResult into a JSON-safe dict.

    result: (identity_id, score) pair
    label: display label already resolved for the identity id
    """
    identity_id, score = result
    try:
        similarity = round(float(score), 6)
    except (TypeError, ValueError):
        similarity = None
    if similarity is not None and similarity != similarity:
        similarity = None

    out = {
        "identity_id": int(identity_id),
        "label": str(label),
        "similarity": similarity,
        "is_known": int(identity_id) != UNKNOWN_ID,
    }
    if query is not None:
        out = {"query": str(query), **out}
    return out
