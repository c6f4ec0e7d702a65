"""
Environment-driven settings and path helpers for probe-control.

Directory structure:
<PROBE_DATA_DIR>/
 ├── preferences.json          # Preferences document (autorun record, UI prefs)
 ├── runs/                     # Per-group worker output logs
 └── input/                    # Input files written for custom URL lists
<OONI_HOME>/
 └── config.json               # ooniprobe configuration tree (ConfigAccessor)

Environment Variables:
- PROBE_DATA_DIR: Data root (default: ~/.probe-control)
- PROBE_LOG_DIR: Application log directory (default: <project_root>/logs)
- OONI_HOME: ooniprobe home directory (default: ~/.ooniprobe)
- OONIPROBE_BIN: ooniprobe executable (default: ooniprobe)
- AUTORUN_INTERVAL_SECONDS: Autorun task period (default: 3600)
- AUTORUN_TASK_LABEL: Name of the OS-level autorun task
"""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_AUTORUN_INTERVAL_SECONDS = 3600
DEFAULT_AUTORUN_TASK_LABEL = "local.probe-control.autorun"


# =============================================================================
# Environment Variable Helpers
# =============================================================================

def _get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean value from environment variable."""
    val = os.getenv(key, "").lower()
    if val in ("true", "1", "yes", "on"):
        return True
    elif val in ("false", "0", "no", "off"):
        return False
    return default


def _get_env_int(key: str, default: int) -> int:
    """Get integer value from environment variable."""
    val = os.getenv(key)
    if val is not None:
        try:
            return int(val)
        except ValueError:
            logger.warning(f"[Settings] Invalid integer for {key}: {val}, using default: {default}")
    return default


def _get_env_path(key: str, default: Path) -> Path:
    env_path = os.getenv(key)
    if env_path:
        return Path(env_path).expanduser().resolve()
    return default


# =============================================================================
# Base Paths
# =============================================================================

def get_project_root() -> Path:
    """
    Get the project root directory.

    File is at src/infra/settings.py, so project root is 2 levels up.
    """
    return Path(__file__).parent.parent.parent.resolve()


def get_data_root() -> Path:
    """
    Get the data root directory.

    Can be overridden via PROBE_DATA_DIR environment variable.

    Returns:
        Path: Data root directory
    """
    return _get_env_path("PROBE_DATA_DIR", Path.home() / ".probe-control")


def get_preferences_path() -> Path:
    """Get the preferences document path."""
    return get_data_root() / "preferences.json"


def get_runs_dir() -> Path:
    """Get the directory for per-group worker output logs."""
    return get_data_root() / "runs"


def get_input_dir() -> Path:
    """Get the directory where uploaded input files are written."""
    return get_data_root() / "input"


def get_logs_dir() -> Path:
    """
    Get application logs directory.

    Can be overridden via PROBE_LOG_DIR environment variable.
    """
    return _get_env_path("PROBE_LOG_DIR", get_project_root() / "logs")


# =============================================================================
# ooniprobe Paths
# =============================================================================

def get_ooni_home() -> Path:
    """Get ooniprobe home directory (OONI_HOME)."""
    return _get_env_path("OONI_HOME", Path.home() / ".ooniprobe")


def get_ooni_config_path() -> Path:
    """Get the ooniprobe configuration document path."""
    return get_ooni_home() / "config.json"


def get_ooniprobe_binary() -> str:
    """Get the ooniprobe executable name or path."""
    return os.getenv("OONIPROBE_BIN", "ooniprobe")


# =============================================================================
# Autorun Configuration
# =============================================================================

def get_autorun_config() -> dict:
    """
    Get autorun task configuration from environment variables.

    Returns:
        dict: interval_seconds and task label
    """
    return {
        "interval_seconds": _get_env_int(
            "AUTORUN_INTERVAL_SECONDS", DEFAULT_AUTORUN_INTERVAL_SECONDS
        ),
        "label": os.getenv("AUTORUN_TASK_LABEL", DEFAULT_AUTORUN_TASK_LABEL),
    }


def is_api_auth_enabled() -> bool:
    """Whether the HTTP API requires an X-API-Key header."""
    return _get_env_bool("API_AUTH_ENABLED", False)


# =============================================================================
# Directory Initialization
# =============================================================================

def ensure_data_directories() -> dict:
    """
    Ensure all required data directories exist.

    Safe to call multiple times.

    Returns:
        dict: Dictionary of created/existing directory paths
    """
    directories = {
        "data_root": get_data_root(),
        "runs": get_runs_dir(),
        "input": get_input_dir(),
    }

    created = []
    for name, path in directories.items():
        if not path.exists():
            path.mkdir(parents=True, exist_ok=True)
            created.append(name)
            logger.debug(f"[Settings] Created directory: {path}")

    if created:
        logger.info(f"[Settings] Initialized directories: {', '.join(created)}")

    return directories


def get_all_paths() -> dict:
    """
    Get all configured paths as a dictionary.

    Useful for debugging and configuration display.
    """
    return {
        "project_root": get_project_root(),
        "data_root": get_data_root(),
        "preferences": get_preferences_path(),
        "runs": get_runs_dir(),
        "input": get_input_dir(),
        "logs": get_logs_dir(),
        "ooni_home": get_ooni_home(),
        "ooni_config": get_ooni_config_path(),
        "ooniprobe_binary": get_ooniprobe_binary(),
        "autorun": get_autorun_config(),
    }
