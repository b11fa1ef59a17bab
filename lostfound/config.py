import os
from typing import Any, Dict


def _get_env_bool(name: str, default: bool = False) -> bool:
    v = os.environ.get(name)
    if v is None:
        return default
    return str(v).strip().lower() in ["1", "true", "yes", "on"]


def _get_env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


def _get_env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


def get_app_config() -> Dict[str, Any]:
    """Read runtime settings from the environment (a .env file is loaded by the app entrypoints)."""
    notify_base = (os.environ.get("NOTIFY_API_BASE") or "").strip().rstrip("/")
    return {
        "min_proof_length": _get_env_int("MIN_PROOF_LENGTH", 12),
        "min_secret_proof_length": _get_env_int("MIN_SECRET_PROOF_LENGTH", 8),
        "max_image_data_length": _get_env_int("MAX_IMAGE_DATA_LENGTH", 950_000),
        "notify_api_base": notify_base,
        "notify_timeout_seconds": _get_env_float("NOTIFY_TIMEOUT_SECONDS", 10.0),
        "notify_in_process": _get_env_bool("NOTIFY_IN_PROCESS", False),
    }
