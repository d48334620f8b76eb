"""
Core Module - Constants.

============================================================
RESPONSIBILITY
============================================================
Defines package-wide constants.

- Environment variable names for engine configuration
- Namespace separators used by dependency resolution
- Loader conventions

============================================================
"""

# ============================================================
# ENVIRONMENT
# ============================================================

ENV_PREFIX = "ECOSYSTEM_"

ENV_LOG_LEVEL = f"{ENV_PREFIX}LOG_LEVEL"
ENV_LOG_FORMAT = f"{ENV_PREFIX}LOG_FORMAT"
ENV_STOP_ORDER = f"{ENV_PREFIX}STOP_ORDER"
ENV_STRICT_CONTINUATIONS = f"{ENV_PREFIX}STRICT_CONTINUATIONS"
ENV_CORRELATION_PREFIX = f"{ENV_PREFIX}CORRELATION_PREFIX"

TRUE_VALUES = ("true", "1", "yes", "on")
FALSE_VALUES = ("false", "0", "no", "off")

# ============================================================
# LOGGING
# ============================================================

LOG_FORMATS = ("text", "json")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# ============================================================
# DEPENDENCY RESOLUTION
# ============================================================

# A suffix that starts right after one of these characters is a
# namespace-boundary match ("./services/mysql" ends in "mysql").
NAMESPACE_SEPARATORS = ("/", ".", ":")

# ============================================================
# STATUS TRACKING
# ============================================================

MAX_STATUS_HISTORY = 50

# ============================================================
# LOADER
# ============================================================

LOADER_ENTRY_ATTRIBUTE = "Lifecycle"

LOADED_MODULE_PREFIX = "ecosystem_loaded"
