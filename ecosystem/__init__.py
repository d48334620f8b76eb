"""
Ecosystem Package - Dependency-Ordered Lifecycle Orchestration.

============================================================
PACKAGE OVERVIEW
============================================================
This package drives a set of named, mutually-dependent modules
through three lifecycle phases: init, start and stop. A module's
dependencies always complete a phase before the module itself
enters it.

============================================================
CORE PRINCIPLES
============================================================
1. Modules declare dependencies by name, the engine finds them
2. Every hook signals completion by calling next() exactly once
3. Cycles and unknown names fail before any affected hook runs
4. A module that finished a phase is never driven through it twice

============================================================
ARCHITECTURE
============================================================

    +-----------------------------------------------------+
    |                       Engine                        |
    |-----------------------------------------------------|
    |  Module             |  Status, hooks, listeners     |
    |  DependencyResolver |  Suffix-match name lookup     |
    |  PhaseRunner        |  Per-phase state machine      |
    |  ModuleLoader       |  Names/files -> registry      |
    |  CLI                |  Manifest runner              |
    +-----------------------------------------------------+

============================================================
LIFECYCLE
============================================================
  new -> initialising -> initialised -> starting -> started
      -> stopping -> stopped

============================================================
QUICK START
============================================================
Command line usage::

    # Run until SIGINT/SIGTERM
    ecosystem app.json

    # Init, start, stop, exit
    ecosystem app.json --once

    # Show the startup order
    ecosystem app.json --show-order

Programmatic usage::

    from ecosystem import Engine, Module

    class Database(Module):
        def init(self, config, registry, next):
            self.url = config["url"]
            next()

    class Reporter(Module):
        depends_on = ("database",)

        def start(self, next):
            print(self.dependency("database").url)
            next()

    engine = Engine({
        "reporter": Reporter("reporter"),
        "services/database": Database("services/database"),
    })
    engine.init_all({"url": "sqlite://"})
    engine.start_all()
    engine.stop_all()

============================================================
EXPORTS
============================================================
"""

# ============================================================
# Core
# ============================================================
from ecosystem.core.status import (
    # Status
    ModuleStatus,
    StatusTracker,
    StatusTransition,
)

from ecosystem.core.exceptions import (
    # Base
    EcosystemError,

    # Configuration
    ConfigurationError,
    InvalidConfigError,

    # Lifecycle
    LifecycleError,
    DependencyError,
    UnknownDependency,
    CircularDependency,
    StateTransitionError,
    HookContractError,
    ModuleLoadError,
)

# ============================================================
# Models
# ============================================================
from ecosystem.models import (
    # Enums
    Phase,
    StopOrder,

    # Configuration
    EngineConfig,
)

# ============================================================
# Module
# ============================================================
from ecosystem.module import (
    # Types
    Continuation,
    Listener,

    # Module
    HookSet,
    Module,
)

# ============================================================
# Resolution
# ============================================================
from ecosystem.resolver import (
    match_rank,
    find_suffix_match,
    DependencyResolver,
)

# ============================================================
# Runner
# ============================================================
from ecosystem.runner import (
    # Types
    ErrorHandler,
    PhaseListener,

    # Execution
    PhaseContinuation,
    SequentialDrain,
    PhaseRunner,
)

# ============================================================
# Engine
# ============================================================
from ecosystem.engine import (
    # Main engine
    Engine,

    # Factory function
    create_engine,

    # Logging setup
    setup_logging,

    # One-shot helpers
    init_all,
    start_all,
    stop_all,
)

# ============================================================
# Loader
# ============================================================
from ecosystem.loader import (
    ModuleLoader,
    load_all,
    is_path_name,
)

# ============================================================
# Manifest
# ============================================================
from ecosystem.manifest import AppManifest

# ============================================================
# Package metadata
# ============================================================
__version__ = "1.0.0"

__all__ = [
    # Core - Status
    "ModuleStatus",
    "StatusTracker",
    "StatusTransition",

    # Core - Exceptions
    "EcosystemError",
    "ConfigurationError",
    "InvalidConfigError",
    "LifecycleError",
    "DependencyError",
    "UnknownDependency",
    "CircularDependency",
    "StateTransitionError",
    "HookContractError",
    "ModuleLoadError",

    # Models
    "Phase",
    "StopOrder",
    "EngineConfig",

    # Module
    "Continuation",
    "Listener",
    "HookSet",
    "Module",

    # Resolution
    "match_rank",
    "find_suffix_match",
    "DependencyResolver",

    # Runner
    "ErrorHandler",
    "PhaseListener",
    "PhaseContinuation",
    "SequentialDrain",
    "PhaseRunner",

    # Engine
    "Engine",
    "create_engine",
    "setup_logging",
    "init_all",
    "start_all",
    "stop_all",

    # Loader
    "ModuleLoader",
    "load_all",
    "is_path_name",

    # Manifest
    "AppManifest",

    # Metadata
    "__version__",
]
