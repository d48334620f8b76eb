"""
Ecosystem - Dependency Resolver.

============================================================
RESPONSIBILITY
============================================================
Maps declared dependency names to live modules in a registry.

- Suffix-match lookup so a namespaced module ("./services/mysql")
  can be referred to by its short name ("mysql")
- Records resolved references and dependent back-references
- Computes a static startup/shutdown order without running hooks

============================================================
LOOKUP POLICY
============================================================
For a declared name N, registry keys are ranked:

  0. the key equals N
  1. the key ends with N on a namespace boundary (/ . :)
  2. the key ends with N

The best rank wins; ties go to the first key in registry
insertion order. An empty name never matches.

============================================================
"""

import logging
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional, Set, Tuple, TypeVar

from ecosystem.core.constants import NAMESPACE_SEPARATORS
from ecosystem.core.exceptions import CircularDependency, UnknownDependency

if TYPE_CHECKING:
    from ecosystem.module import Module


logger = logging.getLogger(__name__)

T = TypeVar("T")


# ============================================================
# SUFFIX MATCHING
# ============================================================

def match_rank(key: str, name: str) -> Optional[int]:
    """
    Rank how well registry key ``key`` matches declared name ``name``.

    Returns:
        0 for an exact match, 1 for a namespace-boundary suffix,
        2 for a plain suffix, None when ``name`` is not a suffix.
    """
    if not name:
        return None
    if key == name:
        return 0
    if not key.endswith(name):
        return None
    if key[-len(name) - 1] in NAMESPACE_SEPARATORS:
        return 1
    return 2


def find_suffix_match(candidates: Mapping[str, T], name: str) -> Optional[Tuple[str, T]]:
    """
    Find the entry of ``candidates`` that best matches ``name``.

    Returns:
        (key, value) of the winning entry, or None
    """
    best: Optional[Tuple[int, str, T]] = None
    tied: List[str] = []

    for key, value in candidates.items():
        rank = match_rank(key, name)
        if rank is None:
            continue
        if best is None or rank < best[0]:
            best = (rank, key, value)
            tied = [key]
            if rank == 0:
                break
        elif rank == best[0]:
            tied.append(key)

    if best is None:
        return None

    if len(tied) > 1:
        logger.warning(
            f"Ambiguous dependency name '{name}': {tied} all match, using '{best[1]}'"
        )

    return best[1], best[2]


# ============================================================
# DEPENDENCY RESOLVER
# ============================================================

class DependencyResolver:
    """
    Resolves module dependencies within one registry.

    The registry is only ever read.
    """

    def __init__(self, registry: Mapping[str, "Module"]):
        self._registry = registry

    @property
    def registry(self) -> Mapping[str, "Module"]:
        return self._registry

    def lookup(self, name: str, requester: Optional[str] = None) -> Tuple[str, "Module"]:
        """
        Look up a dependency by (possibly short) name.

        Args:
            name: Declared dependency name
            requester: Name of the module declaring it, for error context

        Returns:
            (registry key, module)

        Raises:
            UnknownDependency: If no registry key matches
        """
        match = find_suffix_match(self._registry, name)
        if match is None:
            raise UnknownDependency(name, module=requester)
        return match

    def resolve(self, module: "Module") -> Dict[str, "Module"]:
        """
        Resolve every declared dependency of ``module``.

        All names are looked up before anything is recorded, so an
        unknown name leaves the module untouched.

        Returns:
            Mapping of declared name to resolved module

        Raises:
            UnknownDependency: If a declared name has no match
        """
        resolved: Dict[str, "Module"] = {}
        for name in module.declared_dependencies():
            key, target = self.lookup(name, requester=module.name)
            logger.debug(f"Resolved {module.name} -> {name} as '{key}'")
            resolved[name] = target

        module.bind_dependencies(resolved)
        for target in resolved.values():
            target.add_dependent(module)

        return resolved

    # --------------------------------------------------------
    # Static ordering
    # --------------------------------------------------------

    def _edges(self) -> Dict[str, List[str]]:
        edges: Dict[str, List[str]] = {}
        for key, module in self._registry.items():
            edges[key] = [
                self.lookup(name, requester=module.name)[0]
                for name in module.declared_dependencies()
            ]
        return edges

    def startup_order(self) -> List[str]:
        """
        Get registry keys in startup order (dependencies first).

        No hooks run and no module state changes.

        Raises:
            UnknownDependency: If a declared name has no match
            CircularDependency: If the graph has a cycle
        """
        edges = self._edges()
        visited: Set[str] = set()
        path: List[str] = []
        order: List[str] = []

        def visit(node: str) -> None:
            if node in path:
                chain = path[path.index(node):] + [node]
                raise CircularDependency(node, phase="init", chain=chain)
            if node in visited:
                return

            path.append(node)
            for dep in edges[node]:
                visit(dep)
            path.pop()

            visited.add(node)
            order.append(node)

        for node in edges:
            if node not in visited:
                visit(node)

        return order

    def shutdown_order(self) -> List[str]:
        """Get registry keys in shutdown order (reverse of startup)."""
        return list(reversed(self.startup_order()))

    def dependents_of(self, name: str) -> List[str]:
        """Get registry keys of modules that declare a dependency on ``name``."""
        key, _ = self.lookup(name)
        return [
            node for node, deps in self._edges().items()
            if key in deps
        ]


__all__ = [
    "match_rank",
    "find_suffix_match",
    "DependencyResolver",
]
