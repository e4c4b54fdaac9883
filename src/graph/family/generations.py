"""Generation assignment by breadth-first traversal from rootless ancestors."""

import logging
from collections import defaultdict, deque

from src.config import GenerationPolicy
from src.graph.models import GenerationReport
from src.models import RelationType

logger = logging.getLogger(__name__)


def build_ancestry(parent_edges) -> tuple[dict[str, list[str]], dict[str, list[str]]]:
    """Child -> parents and parent -> children maps from (child -> parent) edges.

    The inverse CHILD edges carry the same facts and are skipped.
    """
    child_to_parents: dict[str, list[str]] = defaultdict(list)
    parent_to_children: dict[str, list[str]] = defaultdict(list)
    for edge in parent_edges:
        if edge.relationship_type is not RelationType.PARENT:
            continue
        child_to_parents[edge.source_member_id].append(edge.target_member_id)
        parent_to_children[edge.target_member_id].append(edge.source_member_id)
    return child_to_parents, parent_to_children


def first_visit_levels(roots: list[str], parent_to_children: dict[str, list[str]],
                       root_level: int = 1) -> dict[str, int]:
    """Multi-source BFS; the first route to reach a member sets its level."""
    levels = {root: root_level for root in roots}
    queue = deque(roots)
    while queue:
        current = queue.popleft()
        for child_id in parent_to_children.get(current, []):
            if child_id not in levels:
                levels[child_id] = levels[current] + 1
                queue.append(child_id)
    return levels


def deepest_levels(member_ids: list[str], child_to_parents: dict[str, list[str]],
                   parent_to_children: dict[str, list[str]], root_level: int = 1) -> dict[str, int]:
    """Longest route from any root, in topological order.

    Members on or below a parent cycle never become ready and get no level.
    """
    pending = {mid: len(set(child_to_parents.get(mid, []))) for mid in member_ids}
    levels = {mid: root_level for mid, count in pending.items() if count == 0}
    queue = deque(levels)
    while queue:
        current = queue.popleft()
        for child_id in dict.fromkeys(parent_to_children.get(current, [])):
            if child_id not in pending:
                continue
            levels[child_id] = max(levels.get(child_id, root_level), levels[current] + 1)
            pending[child_id] -= 1
            if pending[child_id] == 0:
                queue.append(child_id)
    return {mid: level for mid, level in levels.items() if pending[mid] == 0}


def assign_generations(store, policy: GenerationPolicy = GenerationPolicy.FIRST_VISIT,
                       root_level: int = 1) -> GenerationReport:
    """
    Recompute every member's generation from the parent/child edges.

    Roots (members without parents) start at root_level. Members that no
    root reaches keep their previous generation. Safe to re-run.
    """
    members = store.all_members()
    if not members:
        return GenerationReport()

    child_to_parents, parent_to_children = build_ancestry(store.iter_parent_edges())
    member_ids = [m.id for m in members]

    if GenerationPolicy(policy) is GenerationPolicy.DEEPEST:
        levels = deepest_levels(member_ids, child_to_parents, parent_to_children, root_level)
    else:
        roots = [mid for mid in member_ids if not child_to_parents.get(mid)]
        levels = first_visit_levels(roots, parent_to_children, root_level)

    report = GenerationReport(assigned=levels)
    for member in members:
        level = levels.get(member.id)
        if level is None:
            report.unreachable.append(member.id)
        elif member.generation != level:
            store.set_generation(member.id, level)

        parent_levels = {levels[p] for p in child_to_parents.get(member.id, []) if p in levels}
        if len(parent_levels) > 1:
            report.conflicts[member.id] = sorted(parent_levels)

    if report.unreachable:
        logger.warning("No root reaches %d member(s); kept their generation: %s",
                       len(report.unreachable), ", ".join(report.unreachable))
    if report.conflicts:
        logger.info("%d member(s) have parents in different generations", len(report.conflicts))
    return report
