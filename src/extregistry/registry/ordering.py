# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Ordering Engine

Single responsibility: Deterministic topological sort over the extension
dependency graph, with cycle detection
"""

import logging
from typing import Dict, Iterable, List, Mapping

from extregistry.core.errors import CycleDetectedError

logger = logging.getLogger(__name__)

# DFS node states
_VISITING = 1
_DONE = 2


def topological_sort(graph: Mapping[str, Iterable[str]]) -> List[str]:
    """
    Order nodes so every dependency precedes its dependents.

    Nodes are visited in mapping insertion order and each node's dependencies
    in sorted order, so identical input always yields identical output.
    Dependency names that are not keys of the mapping are treated as leaves
    and still appear exactly once.

    Args:
        graph: node name -> names it depends on

    Returns:
        Every node (keys and referenced dependencies) exactly once

    Raises:
        CycleDetectedError: If no valid linear order exists
    """
    state: Dict[str, int] = {}
    ordering: List[str] = []

    for root in graph:
        if root in state:
            continue

        # Iterative DFS; each frame is (node, remaining dependencies)
        path: List[str] = [root]
        stack = [(root, iter(sorted(graph.get(root, ()))))]
        state[root] = _VISITING

        while stack:
            node, deps = stack[-1]
            advanced = False
            for dep in deps:
                dep_state = state.get(dep)
                if dep_state == _DONE:
                    continue
                if dep_state == _VISITING:
                    cycle = path[path.index(dep):]
                    logger.error(f"Dependency cycle among extensions: {cycle}")
                    raise CycleDetectedError(cycle)
                state[dep] = _VISITING
                path.append(dep)
                stack.append((dep, iter(sorted(graph.get(dep, ())))))
                advanced = True
                break

            if not advanced:
                stack.pop()
                path.pop()
                state[node] = _DONE
                ordering.append(node)

    return ordering
