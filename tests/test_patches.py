"""
Tests for configuration update patches and update conditions.
"""
import pytest

from triage.configuration.patches import (
    AppendPatch,
    MergePatch,
    RemovePatch,
    SetPatch,
    apply_patch,
    evaluate_conditions,
    get_path,
    patch_from_update,
)
from triage.exceptions import PatchError
from triage.models import ConfigurationUpdate, UpdateCondition


@pytest.fixture
def document():
    return {
        "minConfidence": 0.7,
        "performance": {"caching": {"enabled": True, "ttl": 3600, "maxSize": 1000}},
        "rules": [{"id": "bugs", "weight": 0.9}],
        "metadata": {"tags": ["team-a"]},
    }


class TestPatchFromUpdate:
    @pytest.mark.parametrize(
        "operation,patch_type",
        [("set", SetPatch), ("merge", MergePatch), ("append", AppendPatch), ("remove", RemovePatch)],
    )
    def test_operation_maps_to_patch(self, operation, patch_type):
        update = ConfigurationUpdate(path="performance.caching.ttl", value=1, operation=operation)
        patch = patch_from_update(update)
        assert isinstance(patch, patch_type)
        assert patch.path == ("performance", "caching", "ttl")


class TestApplyPatch:
    """Tests for the recursive patch walker."""

    def test_set_nested_value(self, document):
        patched = apply_patch(document, SetPatch(("performance", "caching", "ttl"), 60))
        assert patched["performance"]["caching"]["ttl"] == 60
        assert patched["performance"]["caching"]["maxSize"] == 1000

    def test_input_not_modified(self, document):
        apply_patch(document, SetPatch(("performance", "caching", "ttl"), 60))
        apply_patch(document, AppendPatch(("metadata", "tags"), "team-b"))
        assert document["performance"]["caching"]["ttl"] == 3600
        assert document["metadata"]["tags"] == ["team-a"]

    def test_snake_case_segments(self, document):
        patched = apply_patch(document, SetPatch(("performance", "caching", "max_size"), 10))
        assert patched["performance"]["caching"]["maxSize"] == 10
        assert "max_size" not in patched["performance"]["caching"]

    def test_set_creates_missing_objects(self, document):
        patched = apply_patch(document, SetPatch(("environments", "staging", "minConfidence"), 0.5))
        assert patched["environments"] == {"staging": {"minConfidence": 0.5}}

    def test_list_index(self, document):
        patched = apply_patch(document, SetPatch(("rules", "0", "weight"), 0.5))
        assert patched["rules"][0] == {"id": "bugs", "weight": 0.5}

    @pytest.mark.parametrize("segment", ["3", "first"])
    def test_bad_list_index(self, document, segment):
        with pytest.raises(PatchError):
            apply_patch(document, SetPatch(("rules", segment, "weight"), 0.5))

    def test_merge_objects(self, document):
        patched = apply_patch(document, MergePatch(("performance", "caching"), {"ttl": 10}))
        assert patched["performance"]["caching"] == {"enabled": True, "ttl": 10, "maxSize": 1000}

    def test_merge_non_object_replaces(self, document):
        patched = apply_patch(document, MergePatch(("minConfidence",), 0.5))
        assert patched["minConfidence"] == 0.5

    def test_append(self, document):
        patched = apply_patch(document, AppendPatch(("metadata", "tags"), "team-b"))
        assert patched["metadata"]["tags"] == ["team-a", "team-b"]

    def test_append_creates_list(self, document):
        patched = apply_patch(document, AppendPatch(("customRules",), {"id": "new"}))
        assert patched["customRules"] == [{"id": "new"}]

    def test_append_to_scalar_fails(self, document):
        with pytest.raises(PatchError, match="cannot append"):
            apply_patch(document, AppendPatch(("minConfidence",), 1))

    def test_remove(self, document):
        patched = apply_patch(document, RemovePatch(("performance", "caching", "ttl")))
        assert "ttl" not in patched["performance"]["caching"]

    def test_remove_list_item(self, document):
        patched = apply_patch(document, RemovePatch(("rules", "0")))
        assert patched["rules"] == []

    @pytest.mark.parametrize(
        "path",
        [
            ("performance", "caching", "missing"),
            ("environments", "staging", "x"),
            ("environments",),
            ("rules", "5"),
        ],
    )
    def test_remove_missing_is_a_no_op(self, document, path):
        patched = apply_patch(document, RemovePatch(path))
        assert patched == document
        assert patched is not document

    def test_remove_with_non_index_list_segment_fails(self, document):
        with pytest.raises(PatchError, match="not a list index"):
            apply_patch(document, RemovePatch(("rules", "first")))

    def test_walk_through_scalar_fails(self, document):
        with pytest.raises(PatchError):
            apply_patch(document, SetPatch(("minConfidence", "value"), 1))


class TestConditions:
    def test_get_path(self, document):
        assert get_path(document, "performance.caching.ttl") == 3600
        assert get_path(document, "performance.caching.max_size") == 1000
        assert get_path(document, "rules.0.id") == "bugs"
        assert get_path(document, "performance.missing.ttl") is None

    @pytest.mark.parametrize(
        "path,operator,value,holds",
        [
            ("minConfidence", "equals", 0.7, True),
            ("minConfidence", "not_equals", 0.7, False),
            ("metadata.tags", "contains", "team-a", True),
            ("metadata.tags", "not_contains", "team-a", False),
            ("performance.caching.ttl", "greater_than", 60, True),
            ("performance.caching.ttl", "less_than", 60, False),
            ("metadata.tags", "greater_than", 1, False),
            ("missing", "contains", "x", False),
        ],
    )
    def test_operators(self, document, path, operator, value, holds):
        condition = UpdateCondition(path=path, operator=operator, value=value)
        unmet = evaluate_conditions(document, [condition])
        assert (unmet == []) is holds

    def test_unmet_message(self, document):
        unmet = evaluate_conditions(
            document, [UpdateCondition(path="minConfidence", operator="equals", value=0.9)]
        )
        assert unmet == ["Condition not met: minConfidence equals 0.9"]

    def test_no_conditions(self, document):
        assert evaluate_conditions(document, None) == []
