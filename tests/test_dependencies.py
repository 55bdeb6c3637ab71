from __future__ import annotations

from jira_filter_restore.dependencies import dedupe_names, find_dependencies


def test_find_dependencies_in_order() -> None:
    assert find_dependencies('filter = "A" or filter = "B"') == ["A", "B"]


def test_find_dependencies_without_references() -> None:
    assert find_dependencies("priority = High") == []
    assert find_dependencies("") == []


def test_find_dependencies_tolerates_whitespace_and_keeps_repeats() -> None:
    jql = 'filter="Team Bugs" AND (filter  =  "Sprint 12" OR filter = "Team Bugs") ORDER BY rank'
    assert find_dependencies(jql) == ["Team Bugs", "Sprint 12", "Team Bugs"]


def test_find_dependencies_ignores_other_fields() -> None:
    assert find_dependencies('summary ~ "filter" AND myfilter = "X"') == []


def test_find_dependencies_requires_lowercase_keyword() -> None:
    assert find_dependencies('FILTER = "A" and Filter = "B"') == []
    assert find_dependencies('FILTER = "A" and filter = "B"') == ["B"]


def test_dedupe_names_keeps_first_occurrence() -> None:
    assert dedupe_names(["B", "A", "B"]) == ["B", "A"]
