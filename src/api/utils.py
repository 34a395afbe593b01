from __future__ import annotations

from typing import Any, Dict

from fastapi.encoders import jsonable_encoder


# PUBLIC_INTERFACE
def task_envelope(msg: str, result: Any = None, success: bool = True) -> Dict[str, Any]:
    """
    Build the standard envelope for task endpoints.

    Args:
        msg: Human-readable outcome.
        result: Task document(s) or store outcome; encoded to JSON-safe values.
        success: Success flag reported to the client.

    Returns:
        Dict with keys: success, msg, result.
    """
    return {
        "success": bool(success),
        "msg": msg,
        "result": jsonable_encoder(result),
    }
