from .alternatives import Alternative, AlternativesResolver, merge_archives
from .makefile import render, write_makefile

__all__ = (
    "Alternative",
    "AlternativesResolver",
    "merge_archives",
    "render",
    "write_makefile",
)
