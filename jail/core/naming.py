"""Name derivation and sanitization rules for jails and their containers."""
from __future__ import annotations

from pathlib import Path, PurePosixPath

CONTAINER_PREFIX = "jail-"
TEMP_IMAGE_PREFIX = "jail-temp-"

_GIT_HOSTS = ("github.com", "gitlab.com")


def derive_name(source: str) -> str:
    """Derive a jail name from a clone source.

    - GitHub/GitLab style URLs (https or ssh) become ``owner/repo``
    - Local paths become their final component
    - Anything else has ``/``, ``:`` and ``@`` replaced by ``-``
    """
    if any(host in source for host in _GIT_HOSTS) or source.endswith(".git"):
        cleaned = source.rstrip("/")
        if cleaned.endswith(".git"):
            cleaned = cleaned[: -len(".git")]
        cleaned = cleaned.rstrip("/")

        parts = cleaned.split("/")
        if len(parts) >= 2:
            owner = parts[-2].split(":")[-1]
            repo = parts[-1]
            if owner and repo:
                return f"{owner}/{repo}"

    final = PurePosixPath(source.rstrip("/")).name
    if final and final not in {".", ".."}:
        return final

    if source and set(source) <= {".", "/"}:
        # "." or "../" names the directory it points at
        resolved = Path(source).resolve().name
        if resolved:
            return resolved

    return source.replace("/", "-").replace(":", "-").replace("@", "-")


def sanitize(name: str) -> str:
    """Make a jail name safe for use in container and image names."""
    return name.replace("/", "-").replace(":", "_").replace("@", "_").replace(" ", "_")


def container_name(name: str) -> str:
    return f"{CONTAINER_PREFIX}{sanitize(name)}"


def temp_image_name(name: str) -> str:
    return f"{TEMP_IMAGE_PREFIX}{sanitize(name)}"


def workspace_name(name: str) -> str:
    """Workspace directory for a jail name (``owner/repo`` -> ``repo``)."""
    return name.split("/")[-1]


def dir_name(name: str) -> str:
    """Directory name of a jail under the jails root."""
    return name.replace("/", "_")


def hex_encode(text: str) -> str:
    return text.encode("utf-8").hex()
