"""Environment variable utilities for edgepush."""

import os
from typing import Dict, List, Optional


def load_env_file(file_path: str) -> Dict[str, str]:
    """Load environment variables from a .env file.

    Args:
        file_path: Path to the .env file

    Returns:
        Dictionary of environment variables, empty if the file does not exist
    """
    if not os.path.exists(file_path):
        return {}

    env_vars = {}

    with open(file_path, "r") as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()

            if not line or line.startswith("#"):
                continue

            if line.startswith("export "):
                line = line[len("export "):].lstrip()

            if "=" not in line:
                raise ValueError(f"Invalid environment file format at {file_path}:{line_number}: {line}")

            key, value = line.split("=", 1)
            value = value.strip()
            if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
                value = value[1:-1]
            env_vars[key.strip()] = value

    return env_vars


def apply_env_file(file_path: str) -> List[str]:
    """Load a .env file into os.environ without overriding variables already set.

    Returns:
        Names of the variables that were applied
    """
    applied = []
    for key, value in load_env_file(file_path).items():
        if key not in os.environ:
            os.environ[key] = value
            applied.append(key)
    return applied


def get_env(var_name: str, default: Optional[str] = None) -> Optional[str]:
    """Return an environment variable, treating empty values as unset."""
    value = os.environ.get(var_name)
    if value is None or value == "":
        return default
    return value
