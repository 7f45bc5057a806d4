"""tinyrt configuration layer.

Loads allow-listed custom defaults for the environment registry from YAML
files and ``TINYRT_*`` environment variables.
"""

from .loader import (
    ENV_PREFIX,
    YAML_SECTION,
    apply_custom_defaults,
    load_custom_defaults,
    load_custom_defaults_from_env,
    load_custom_defaults_from_yaml,
)

__all__ = [
    "ENV_PREFIX",
    "YAML_SECTION",
    "apply_custom_defaults",
    "load_custom_defaults",
    "load_custom_defaults_from_env",
    "load_custom_defaults_from_yaml",
]
