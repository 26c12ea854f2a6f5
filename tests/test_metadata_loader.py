"""
Tests for the packaged curriculum and achievement tables.
"""

import pytest

from llmcourse.schemas import AchievementCategory
from llmcourse.utils import (
    default_achievement_catalog,
    default_curriculum,
    load_achievement_catalog,
    load_curriculum,
)


class TestPackagedCurriculum:
    """Test data/curriculum.yaml."""

    def test_modules(self):
        curriculum = load_curriculum()
        assert curriculum.module_ids == [1, 2, 3]
        assert [len(m.sections) for m in curriculum.modules] == [5, 9, 11]

    def test_prerequisites(self):
        curriculum = load_curriculum()
        assert curriculum.get_prerequisites(1) == []
        assert curriculum.get_prerequisites(2) == [1]
        assert curriculum.get_prerequisites(3) == [1, 2]

    def test_section_ids_unique(self):
        curriculum = load_curriculum()
        ids = [s.id for m in curriculum.modules for s in m.sections]
        assert len(ids) == len(set(ids))

    def test_first_section(self):
        section = load_curriculum().get_section(1, "intro_what_are_llms")
        assert section.title == "What are LLMs?"
        assert section.estimated_minutes == 5

    def test_module_minutes(self):
        assert load_curriculum().module_total_minutes(1) == 36

    def test_default_is_cached(self):
        assert default_curriculum() is default_curriculum()


class TestPackagedAchievements:
    """Test data/achievements.yaml."""

    def test_count_and_points(self):
        catalog = load_achievement_catalog()
        assert len(catalog.achievements) == 16
        assert catalog.total_points() == 2075

    def test_hidden(self):
        catalog = load_achievement_catalog()
        assert len(catalog.visible()) == 12
        assert {a.id for a in catalog.hidden_achievements()} == {
            "early_bird", "night_owl", "speed_learner", "thorough_reader"
        }

    def test_by_category(self):
        catalog = load_achievement_catalog()
        progress = catalog.by_category(AchievementCategory.PROGRESS)
        assert [a.id for a in progress] == ["first_steps", "core_learner", "comprehensive_master"]

    def test_for_module(self):
        catalog = load_achievement_catalog()
        assert [a.id for a in catalog.for_module(1)] == ["first_steps", "intro_master"]

    def test_default_is_cached(self):
        assert default_achievement_catalog() is default_achievement_catalog()


class TestCustomFiles:
    """Test loading tables from other paths."""

    def test_custom_curriculum(self, tmp_path):
        path = tmp_path / "curriculum.yaml"
        path.write_text(
            "modules:\n"
            "  - id: 1\n"
            "    title: Only\n"
            "    sections:\n"
            "      - {id: a, title: A, estimated_minutes: 3}\n",
            encoding="utf-8",
        )
        curriculum = load_curriculum(path)
        assert curriculum.module_ids == [1]
        assert curriculum.module_total_minutes(1) == 3

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_curriculum(tmp_path / "missing.yaml")
