"""Static story graph validation utilities."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence

from ruang_hampa.core.types import CHARACTERS
from ruang_hampa.data.errors import DataReferenceError
from ruang_hampa.data.repositories import StoryRepository
from ruang_hampa.domain.defs import StoryNodeDef
from ruang_hampa.domain.state import MAX_STAT, MIN_STAT, START_NODE_ID


Severity = str


@dataclass(frozen=True, slots=True)
class Issue:
    severity: Severity
    code: str
    message: str
    context: dict[str, str]


@dataclass(frozen=True, slots=True)
class EntryRoot:
    node_id: str
    source_type: str
    source_id: str
    source_field: str


@dataclass(frozen=True, slots=True)
class NodeInfo:
    node_id: str
    choice_next_ids: list[str]
    mental_energy: object
    has_choices: bool


def format_issue(issue: Issue) -> str:
    context = " ".join(f"{key}={value}" for key, value in issue.context.items())
    suffix = f" ({context})" if context else ""
    return f"[{issue.severity}] {issue.code}: {issue.message}{suffix}"


def validate_story_graph(
    story_nodes: Mapping[str, StoryNodeDef | object] | Sequence[tuple[str, object]],
    entry_roots: Sequence[EntryRoot] | Sequence[str],
) -> list[Issue]:
    """Walk every node and choice and report structural and link problems."""
    issues: list[Issue] = []
    nodes, duplicate_ids = _coerce_story_nodes(story_nodes)
    for node_id in duplicate_ids:
        issues.append(
            Issue(
                severity="ERROR",
                code="DUPLICATE_NODE_ID",
                message="Duplicate story node id detected.",
                context={"node_id": node_id},
            )
        )
    node_infos: dict[str, NodeInfo] = {}
    for node_id, node in nodes.items():
        node_infos[node_id] = _build_node_info(node_id, node, issues)

    node_ids = set(node_infos.keys())
    entry_root_list = _coerce_entry_roots(entry_roots)

    for entry in entry_root_list:
        if entry.node_id not in node_ids:
            issues.append(
                Issue(
                    severity="ERROR",
                    code="MISSING_ENTRY_ROOT",
                    message="Entry root references missing story node.",
                    context={
                        "source_type": entry.source_type,
                        "source_id": entry.source_id,
                        "field_path": entry.source_field,
                        "referenced_id": entry.node_id,
                    },
                )
            )

    for node_info in node_infos.values():
        _validate_node_references(node_info, node_ids, issues)
        _validate_energy_range(node_info, issues)

    reachable = _validate_reachability(node_infos, entry_root_list, issues)
    if reachable and not any(not node_infos[node_id].has_choices for node_id in reachable):
        issues.append(
            Issue(
                severity="WARN",
                code="NO_ENDING_REACHABLE",
                message="No terminal node is reachable from story roots.",
                context={},
            )
        )
    return issues


def raise_for_errors(issues: Sequence[Issue]) -> None:
    """Raise DataReferenceError listing every ERROR issue at once."""
    errors = [issue for issue in issues if issue.severity == "ERROR"]
    if errors:
        raise DataReferenceError(
            "Story graph validation failed:\n" + "\n".join(format_issue(issue) for issue in errors)
        )


def load_story_graph(
    story_repo: StoryRepository, start_node_id: str = START_NODE_ID
) -> list[Issue]:
    """Validate the repository's graph before it is handed to the engine.

    Returns the remaining warnings; raises DataReferenceError on any error.
    """
    issues = validate_story_graph(
        story_repo.as_mapping(),
        [EntryRoot(start_node_id, "story_start", "start_new_game", "start_node_id")],
    )
    raise_for_errors(issues)
    return [issue for issue in issues if issue.severity == "WARN"]


def _coerce_story_nodes(
    story_nodes: Mapping[str, object] | Sequence[tuple[str, object]],
) -> tuple[dict[str, object], list[str]]:
    if isinstance(story_nodes, Mapping):
        return dict(story_nodes), []
    nodes: dict[str, object] = {}
    duplicates: list[str] = []
    for node_id, node in story_nodes:
        if node_id in nodes:
            duplicates.append(node_id)
            continue
        nodes[node_id] = node
    return nodes, duplicates


def _coerce_entry_roots(entry_roots: Sequence[EntryRoot] | Sequence[str]) -> list[EntryRoot]:
    roots: list[EntryRoot] = []
    for entry in entry_roots:
        if isinstance(entry, EntryRoot):
            roots.append(entry)
        else:
            roots.append(
                EntryRoot(
                    node_id=str(entry),
                    source_type="unknown",
                    source_id="unknown",
                    source_field="entry_roots",
                )
            )
    return roots


def _build_node_info(node_id: str, node: object, issues: list[Issue]) -> NodeInfo:
    if isinstance(node, StoryNodeDef):
        return NodeInfo(
            node_id=node_id,
            choice_next_ids=[choice.next_node_id for choice in node.choices],
            mental_energy=node.mental_energy,
            has_choices=bool(node.choices),
        )
    if not isinstance(node, dict):
        issues.append(
            Issue(
                severity="ERROR",
                code="INVALID_NODE_TYPE",
                message="Story node payload must be a mapping.",
                context={"node_id": node_id},
            )
        )
        return NodeInfo(node_id=node_id, choice_next_ids=[], mental_energy=None, has_choices=False)
    choice_next_ids, choice_count = _parse_choices(node_id, node.get("actions"), issues)
    return NodeInfo(
        node_id=node_id,
        choice_next_ids=choice_next_ids,
        mental_energy=node.get("mentalEnergy"),
        has_choices=choice_count > 0,
    )


def _parse_choices(node_id: str, raw_choices: object, issues: list[Issue]) -> tuple[list[str], int]:
    if raw_choices is None:
        return [], 0
    if not isinstance(raw_choices, list):
        issues.append(
            Issue(
                severity="ERROR",
                code="INVALID_CHOICES",
                message="Actions must be a list if provided.",
                context={"node_id": node_id, "field_path": "actions"},
            )
        )
        return [], 0
    next_ids: list[str] = []
    for index, entry in enumerate(raw_choices):
        choice_path = f"actions[{index}]"
        if not isinstance(entry, dict):
            issues.append(
                Issue(
                    severity="ERROR",
                    code="INVALID_CHOICE",
                    message="Choice entry must be an object.",
                    context={"node_id": node_id, "field_path": choice_path},
                )
            )
            continue
        if not isinstance(entry.get("text"), str):
            issues.append(
                Issue(
                    severity="ERROR",
                    code="INVALID_CHOICE_TEXT",
                    message="Choice text must be a string.",
                    context={"node_id": node_id, "field_path": f"{choice_path}.text"},
                )
            )
        next_node = entry.get("nextNodeId")
        if isinstance(next_node, str):
            next_ids.append(next_node)
        else:
            issues.append(
                Issue(
                    severity="ERROR",
                    code="INVALID_CHOICE_NEXT",
                    message="Choice nextNodeId must be a string.",
                    context={"node_id": node_id, "field_path": f"{choice_path}.nextNodeId"},
                )
            )
        relationship_change = entry.get("relationshipChange")
        if relationship_change is not None and not _is_valid_relationship_change(relationship_change):
            issues.append(
                Issue(
                    severity="ERROR",
                    code="INVALID_RELATIONSHIP_CHANGE",
                    message="relationshipChange needs a known character and an integer change.",
                    context={"node_id": node_id, "field_path": f"{choice_path}.relationshipChange"},
                )
            )
    return next_ids, len(raw_choices)


def _is_valid_relationship_change(value: object) -> bool:
    if not isinstance(value, dict):
        return False
    change = value.get("change")
    return value.get("character") in CHARACTERS and isinstance(change, int) and not isinstance(change, bool)


def _validate_node_references(
    node_info: NodeInfo, node_ids: set[str], issues: list[Issue]
) -> None:
    for index, next_id in enumerate(node_info.choice_next_ids):
        if next_id not in node_ids:
            issues.append(
                Issue(
                    severity="ERROR",
                    code="MISSING_NODE_REF",
                    message="Choice references missing node.",
                    context={
                        "node_id": node_info.node_id,
                        "field_path": f"actions[{index}].nextNodeId",
                        "referenced_id": next_id,
                    },
                )
            )


def _validate_energy_range(node_info: NodeInfo, issues: list[Issue]) -> None:
    energy = node_info.mental_energy
    if isinstance(energy, int) and not MIN_STAT <= energy <= MAX_STAT:
        issues.append(
            Issue(
                severity="WARN",
                code="ENERGY_OUT_OF_RANGE",
                message="Absolute mental energy is outside [0, 100] and will be clamped.",
                context={"node_id": node_info.node_id, "value": str(energy)},
            )
        )


def _validate_reachability(
    node_infos: Mapping[str, NodeInfo],
    entry_roots: Sequence[EntryRoot],
    issues: list[Issue],
) -> set[str]:
    node_ids = set(node_infos.keys())
    reachable: set[str] = set()
    stack: list[str] = []
    for entry in entry_roots:
        if entry.node_id in node_ids:
            stack.append(entry.node_id)
    while stack:
        node_id = stack.pop()
        if node_id in reachable:
            continue
        reachable.add(node_id)
        for next_id in node_infos[node_id].choice_next_ids:
            if next_id in node_ids:
                stack.append(next_id)
    for node_id in sorted(node_ids - reachable):
        issues.append(
            Issue(
                severity="WARN",
                code="UNREACHABLE_NODE",
                message="Node is unreachable from story roots.",
                context={"node_id": node_id},
            )
        )
    return reachable
