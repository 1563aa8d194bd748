"""Centralized path management for clusteriam.

All paths used for Pulumi state and working directories come from here.
"""

import os
from pathlib import Path

CLUSTERIAM_HOME = Path(os.environ.get("CLUSTERIAM_HOME", Path.home() / ".clusteriam"))
PULUMI_HOME = CLUSTERIAM_HOME / "pulumi"

# Unified local backend for all stacks
BACKEND_DIR = PULUMI_HOME / "backend"
WORK_DIR = PULUMI_HOME / "work"
PASSPHRASE_FILE = CLUSTERIAM_HOME / "secrets" / "pulumi-passphrase"


def get_backend_url() -> str:
    """Get backend URL from the environment or use the default local path.

    Returns:
        Backend URL string, either CLUSTERIAM_PULUMI_BACKEND_URL or a file:// path
    """
    url = os.environ.get("CLUSTERIAM_PULUMI_BACKEND_URL")
    if url:
        return url
    ensure_backend()
    return f"file://{BACKEND_DIR}"


def ensure_work_dir() -> Path:
    """Ensure the Pulumi working directory exists."""
    WORK_DIR.mkdir(parents=True, exist_ok=True)
    return WORK_DIR


def ensure_backend() -> Path:
    """Ensure backend directory exists.

    Returns:
        Path to the backend directory
    """
    BACKEND_DIR.mkdir(parents=True, exist_ok=True)
    return BACKEND_DIR
