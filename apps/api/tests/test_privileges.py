from itertools import product

import pytest

from berkomunitas_api.core.settings import Settings
from berkomunitas_api.domain.rewards import UNRANKED, PrivilegeHierarchy, dominates, rank


@pytest.fixture
def hierarchy() -> PrivilegeHierarchy:
    return PrivilegeHierarchy.from_labels(["user", "plus", "partner", "admin"])


def test_ranks_follow_configured_order(hierarchy: PrivilegeHierarchy) -> None:
    assert hierarchy.rank("user") == 1
    assert hierarchy.rank("plus") == 2
    assert hierarchy.rank("partner") == 3
    assert hierarchy.rank("admin") == 4


def test_unknown_and_missing_labels_rank_zero(hierarchy: PrivilegeHierarchy) -> None:
    assert hierarchy.rank("moderator") == UNRANKED
    assert hierarchy.rank(None) == UNRANKED
    assert hierarchy.rank("") == UNRANKED


def test_labels_match_case_insensitively(hierarchy: PrivilegeHierarchy) -> None:
    assert hierarchy.rank("  Partner ") == 3
    assert hierarchy.dominates("ADMIN", "plus")


def test_reward_without_requirement_is_open_to_everyone(hierarchy: PrivilegeHierarchy) -> None:
    assert hierarchy.dominates("user", None)
    assert hierarchy.dominates(None, None)
    assert hierarchy.dominates("stranger", None)


def test_unknown_caller_cannot_meet_a_real_requirement(hierarchy: PrivilegeHierarchy) -> None:
    assert not hierarchy.dominates("stranger", "user")
    assert not hierarchy.dominates(None, "user")


def test_dominates_matches_rank_comparison_for_all_pairs(hierarchy: PrivilegeHierarchy) -> None:
    labels = [None, "stranger", *hierarchy.labels]
    for caller, required in product(labels, repeat=2):
        expected = hierarchy.rank(caller) >= hierarchy.rank(required)
        assert hierarchy.dominates(caller, required) is expected


def test_dominates_is_transitive(hierarchy: PrivilegeHierarchy) -> None:
    labels = [None, *hierarchy.labels]
    for a, b, c in product(labels, repeat=3):
        if hierarchy.dominates(a, b) and hierarchy.dominates(b, c):
            assert hierarchy.dominates(a, c)


def test_label_for_round_trips_rank(hierarchy: PrivilegeHierarchy) -> None:
    for label in hierarchy.labels:
        assert hierarchy.label_for(hierarchy.rank(label)) == label
    assert hierarchy.label_for(0) is None
    assert hierarchy.label_for(99) is None


def test_hierarchy_rejects_duplicate_or_blank_labels() -> None:
    with pytest.raises(ValueError):
        PrivilegeHierarchy.from_labels(["user", "User"])
    with pytest.raises(ValueError):
        PrivilegeHierarchy.from_labels(["user", " "])


def test_module_helpers_use_configured_hierarchy() -> None:
    assert rank("plus") == 2
    assert dominates("partner", "plus")
    assert not dominates("user", "partner")


def test_custom_hierarchy_can_rename_labels() -> None:
    custom = PrivilegeHierarchy.from_labels(["user", "berkomunitasplus", "partner", "admin"])
    assert custom.rank("berkomunitasplus") == 2
    assert custom.rank("plus") == UNRANKED
    assert dominates("berkomunitasplus", "user", hierarchy=custom)


def test_settings_parse_comma_separated_hierarchy() -> None:
    configured = Settings(privilege_hierarchy="User, BerkomunitasPlus ,partner,admin")
    assert configured.privilege_hierarchy == ["user", "berkomunitasplus", "partner", "admin"]
