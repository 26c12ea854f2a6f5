"""
Shared fixtures for llmcourse tests.

The test curriculum mirrors the packaged one in shape (3 modules with
5/9/11 sections, prerequisites [], [1], [1, 2]) but uses short section ids
so scenarios read clearly.
"""

import pytest

from llmcourse.classroom import (
    MemoryKeyValueStore,
    ProgressStorage,
    SQLiteKeyValueStore,
    StorageQuotaExceededError,
    create_initial_progress,
)
from llmcourse.schemas import Curriculum, ModuleMeta, SectionMeta
from llmcourse.utils import load_achievement_catalog


def _sections(prefix: str, count: int) -> list[SectionMeta]:
    return [
        SectionMeta(id=f"{prefix}{i}", title=f"Section {i}", estimated_minutes=5)
        for i in range(1, count + 1)
    ]


def make_curriculum() -> Curriculum:
    return Curriculum(modules=[
        ModuleMeta(id=1, title="Introduction to LLMs", sections=_sections("s", 5), prerequisites=[]),
        ModuleMeta(id=2, title="Core Mechanics", sections=_sections("m2s", 9), prerequisites=[1]),
        ModuleMeta(id=3, title="Comprehensive Overview", sections=_sections("m3s", 11), prerequisites=[1, 2]),
    ])


@pytest.fixture
def curriculum():
    return make_curriculum()


@pytest.fixture
def catalog():
    return load_achievement_catalog()


@pytest.fixture
def initial_doc(curriculum):
    return create_initial_progress("A", curriculum)


@pytest.fixture
def memory_store():
    return MemoryKeyValueStore()


@pytest.fixture
def storage(memory_store):
    return ProgressStorage(memory_store)


@pytest.fixture
def sqlite_storage(tmp_path):
    return ProgressStorage(SQLiteKeyValueStore(tmp_path / "progress.db"))


class FlakyStore(MemoryKeyValueStore):
    """Memory store whose writes can be switched to fail with a quota error."""

    def __init__(self):
        super().__init__()
        self.fail_writes = False

    def set_item(self, key, value):
        if self.fail_writes:
            raise StorageQuotaExceededError("Quota exceeded")
        super().set_item(key, value)


@pytest.fixture
def flaky_store():
    return FlakyStore()
