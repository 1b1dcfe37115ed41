from .build import Build
from .merge import Merge
from .metadata import BuildDeps, Builder, Deps, Pkgs
from .source import Source

commands = [
    Build,
    BuildDeps,
    Builder,
    Deps,
    Merge,
    Pkgs,
    Source,
]

__all__ = [cmd.__name__ for cmd in commands]
