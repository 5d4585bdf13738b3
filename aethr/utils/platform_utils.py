"""
Aethr — Cross-Platform Utilities

Keeps platform-specific path logic in one place so the rest of the
codebase can stay platform-agnostic.
"""
import os
import sys


def get_system() -> str:
    """Return normalized platform identifier.

    Returns:
        'windows', 'darwin', or 'linux'
    """
    if sys.platform == "win32":
        return "windows"
    elif sys.platform == "darwin":
        return "darwin"
    else:
        return "linux"


def get_data_dir() -> str:
    """Return the platform-appropriate directory for Aethr's databases.

    - Windows: %LOCALAPPDATA%\\Aethr
    - macOS/Linux: ~/.aethr
    """
    if get_system() == "windows":
        local_app_data = os.environ.get("LOCALAPPDATA", "")
        if not local_app_data:
            local_app_data = os.path.join(os.path.expanduser("~"), "AppData", "Local")
        return os.path.join(local_app_data, "Aethr")
    return os.path.join(os.path.expanduser("~"), ".aethr")


def get_bundled_data_dir() -> str:
    """Directory holding the rules and seed files shipped with the package."""
    return os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "data")
