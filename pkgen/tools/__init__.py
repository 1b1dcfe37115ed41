from .arch import detect_host_arch, normalize_arch, resolve_arch
from .template import TemplateContext, expand_line, expand_lines

__all__ = (
    "TemplateContext",
    "detect_host_arch",
    "expand_line",
    "expand_lines",
    "normalize_arch",
    "resolve_arch",
)
