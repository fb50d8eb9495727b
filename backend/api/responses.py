from typing import Any


def success(data: Any = None, **extra: Any) -> dict:
    """Success envelope; `extra` lands beside `data` (type, awakening_code, ...)."""
    return {"status": "success", "data": data, **extra}


def error(message: str, **extra: Any) -> dict:
    return {"status": "error", "message": message, **extra}
