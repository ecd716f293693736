"""Runtime configuration for the compatibility transformer."""

import os
from dataclasses import dataclass

# Names starting with this prefix are reserved for synthesized aliases
DEFAULT_TAG_PREFIX = "iris_template_"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class CompatConfig:
    """Configuration shared by the normalizer and the reconciler.

    Attributes:
        verbose_diagnostics: Log every occurrence of throttled warnings
        tag_prefix: Reserved prefix for internal aliases created by the reconciler
    """

    verbose_diagnostics: bool = False
    tag_prefix: str = DEFAULT_TAG_PREFIX

    @classmethod
    def from_env(cls) -> "CompatConfig":
        """Read ``GLSLCOMPAT_VERBOSE`` and ``GLSLCOMPAT_TAG_PREFIX``."""
        verbose = os.environ.get("GLSLCOMPAT_VERBOSE", "").strip().lower() in _TRUTHY
        prefix = os.environ.get("GLSLCOMPAT_TAG_PREFIX") or DEFAULT_TAG_PREFIX
        return cls(verbose_diagnostics=verbose, tag_prefix=prefix)
