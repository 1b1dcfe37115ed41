from __future__ import annotations

import os
import platform


_ALIASES = {
    "amd64": "x86_64",
    "i386": "x86",
    "i486": "x86",
    "i586": "x86",
    "i686": "x86",
    "arm64": "aarch64",
}


def normalize_arch(arch: str) -> str:
    arch = arch.lower()
    return _ALIASES.get(arch, arch)


def detect_host_arch() -> str:
    return normalize_arch(platform.machine())


def resolve_arch(value: str | None, envvar: str) -> str:
    """Pick an architecture from an option, the environment, or the host."""
    if value:
        return value
    env_value = os.environ.get(envvar)
    if env_value:
        return env_value
    return detect_host_arch()
