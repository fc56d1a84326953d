"""
Configuration update patches.

An update is turned into one typed patch and applied to the camelCase JSON
form of a configuration by a recursive walker. The input document is never
modified; containers along the patched path are copied.

Path segments are matched against document keys as written, then in their
camelCase form, so `performance.caching.max_size` and
`performance.caching.maxSize` address the same value. Numeric segments index
into lists.
"""

import copy
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple, Union

from pydantic.alias_generators import to_camel

from triage.exceptions import PatchError
from triage.models import ConditionOperator, ConfigurationUpdate, UpdateCondition, UpdateOperation

Path = Tuple[str, ...]

_MISSING = object()


@dataclass(frozen=True)
class SetPatch:
    path: Path
    value: Any


@dataclass(frozen=True)
class MergePatch:
    path: Path
    value: Any


@dataclass(frozen=True)
class AppendPatch:
    path: Path
    value: Any


@dataclass(frozen=True)
class RemovePatch:
    path: Path


Patch = Union[SetPatch, MergePatch, AppendPatch, RemovePatch]


def split_path(path: str) -> Path:
    return tuple(segment.strip() for segment in path.split("."))


def patch_from_update(update: ConfigurationUpdate) -> Patch:
    """Build the patch for a validated update."""
    path = split_path(update.path)
    if update.operation == UpdateOperation.SET:
        return SetPatch(path, update.value)
    if update.operation == UpdateOperation.MERGE:
        return MergePatch(path, update.value)
    if update.operation == UpdateOperation.APPEND:
        return AppendPatch(path, update.value)
    return RemovePatch(path)


# =============================================================================
# Path resolution
# =============================================================================

def _dict_key(node: dict, segment: str) -> str:
    """Existing key for a segment, or the key a new entry should use."""
    if segment in node:
        return segment
    camel = to_camel(segment) if "_" in segment else segment
    return camel


def _list_index(node: list, segment: str, path: Sequence[str]) -> int:
    if not segment.isdigit():
        raise PatchError(f"'{'.'.join(path)}': '{segment}' is not a list index")
    index = int(segment)
    if index >= len(node):
        raise PatchError(f"'{'.'.join(path)}': index {index} is out of range")
    return index


def get_path(document: Any, path: Union[str, Path]) -> Any:
    """Read the value at a dot path, or None when any segment is missing."""
    segments = split_path(path) if isinstance(path, str) else path
    node = document
    for segment in segments:
        if isinstance(node, dict):
            node = node.get(_dict_key(node, segment), _MISSING)
        elif isinstance(node, list) and segment.isdigit() and int(segment) < len(node):
            node = node[int(segment)]
        else:
            return None
        if node is _MISSING:
            return None
    return node


# =============================================================================
# Walker
# =============================================================================

def _apply_leaf(container: Any, key: Any, patch: Patch) -> None:
    """Apply the patch to `container[key]`. `container` is already a private copy."""
    is_list = isinstance(container, list)
    present = key < len(container) if is_list else key in container
    current = container[key] if present else None

    if isinstance(patch, SetPatch):
        container[key] = copy.deepcopy(patch.value)
    elif isinstance(patch, MergePatch):
        if isinstance(current, dict) and isinstance(patch.value, dict):
            container[key] = {**current, **copy.deepcopy(patch.value)}
        else:
            container[key] = copy.deepcopy(patch.value)
    elif isinstance(patch, AppendPatch):
        if current is None:
            container[key] = [copy.deepcopy(patch.value)]
        elif isinstance(current, list):
            container[key] = [*current, copy.deepcopy(patch.value)]
        else:
            raise PatchError(
                f"'{'.'.join(patch.path)}': cannot append to a {type(current).__name__}"
            )
    elif present:
        del container[key]


def _walk(node: Any, depth: int, patch: Patch) -> Any:
    segment = patch.path[depth]
    last = depth == len(patch.path) - 1

    if isinstance(node, dict):
        updated: Any = dict(node)
        key: Any = _dict_key(node, segment)
    elif isinstance(node, list):
        updated = list(node)
        if isinstance(patch, RemovePatch) and segment.isdigit() and int(segment) >= len(node):
            return updated
        key = _list_index(node, segment, patch.path)
    else:
        prefix = ".".join(patch.path[:depth]) or "<root>"
        raise PatchError(f"'{prefix}' is a {type(node).__name__}, not an object or list")

    if last:
        _apply_leaf(updated, key, patch)
        return updated

    present = isinstance(updated, list) or key in updated
    child = updated[key] if present else None
    if child is None:
        if isinstance(patch, RemovePatch):
            # Removing under a missing parent leaves the document as it was
            return updated
        child = {}
    updated[key] = _walk(child, depth + 1, patch)
    return updated


def apply_patch(document: dict, patch: Patch) -> dict:
    """Return a new document with the patch applied. Raises PatchError."""
    if not patch.path:
        raise PatchError("Update path must not be empty")
    return _walk(document, 0, patch)


# =============================================================================
# Conditions
# =============================================================================

def _contains(actual: Any, expected: Any) -> bool:
    if isinstance(actual, (str, list, tuple, dict)):
        try:
            return expected in actual
        except TypeError:
            return False
    return False


def _compare(actual: Any, expected: Any, operator: ConditionOperator) -> bool:
    try:
        if operator == ConditionOperator.GREATER_THAN:
            return actual > expected
        return actual < expected
    except TypeError:
        return False


def condition_holds(document: dict, condition: UpdateCondition) -> bool:
    actual = get_path(document, condition.path)
    operator = condition.operator
    if operator == ConditionOperator.EQUALS:
        return actual == condition.value
    if operator == ConditionOperator.NOT_EQUALS:
        return actual != condition.value
    if operator == ConditionOperator.CONTAINS:
        return _contains(actual, condition.value)
    if operator == ConditionOperator.NOT_CONTAINS:
        return not _contains(actual, condition.value)
    return _compare(actual, condition.value, operator)


def evaluate_conditions(
    document: dict, conditions: Optional[List[UpdateCondition]]
) -> List[str]:
    """Return a description of every condition that does not hold."""
    unmet = []
    for condition in conditions or []:
        if not condition_holds(document, condition):
            unmet.append(
                f"Condition not met: {condition.path} {condition.operator.value} {condition.value!r}"
            )
    return unmet


__all__ = [
    "AppendPatch",
    "MergePatch",
    "Patch",
    "RemovePatch",
    "SetPatch",
    "apply_patch",
    "evaluate_conditions",
    "get_path",
    "patch_from_update",
]
