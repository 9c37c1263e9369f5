"""
Reads the application name from a workspace summary file.
"""
import os
import yaml
from typing import Optional

WORKSPACE_DIR = "copilot"
SUMMARY_FILE = ".workspace"


def find_workspace_summary(start_dir: str = ".", max_depth: int = 5) -> Optional[str]:
    """
    Walks up from `start_dir` looking for `copilot/.workspace`.

    :return: Path to the summary file, or None.
    """
    current = os.path.abspath(start_dir)
    for _ in range(max_depth + 1):
        candidate = os.path.join(current, WORKSPACE_DIR, SUMMARY_FILE)
        if os.path.isfile(candidate):
            return candidate
        parent = os.path.dirname(current)
        if parent == current:
            break
        current = parent
    return None


def read_application_name(start_dir: str = ".") -> Optional[str]:
    """
    Returns the `application` recorded in the workspace summary, if any.
    A missing or unreadable summary is not an error here.
    """
    path = find_workspace_summary(start_dir)
    if not path:
        return None
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError):
        return None
    if not isinstance(data, dict):
        return None
    return data.get('application') or None
