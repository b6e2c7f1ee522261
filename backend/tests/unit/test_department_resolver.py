"""Unit tests for the DepartmentResolver."""

import pytest

from audit_query.application.interfaces.department_repository import DepartmentRepository
from audit_query.application.services.department_resolver import (
    DepartmentResolver,
    categorize_department,
    name_similarity,
    normalize_name,
)
from audit_query.domain.entities import Department


# ── Fakes ──


class FakeDepartmentRepository(DepartmentRepository):
    """In-memory fake repository that records lookups."""

    def __init__(self, departments: list[Department]):
        self._departments = departments
        self.calls: list[tuple[str, str]] = []

    async def get_by_category(self, category: str) -> list[Department]:
        self.calls.append(("category", category))
        return [d for d in self._departments if d.category == category]

    async def search_by_name(self, name: str) -> list[Department]:
        self.calls.append(("name", name))
        needle = name.lower()
        return [
            d for d in self._departments
            if any(needle in v.lower() for v in d.variants())
        ]


# ── Helpers ──


def test_normalize_name_strips_prefix_and_punctuation():
    assert normalize_name("Departemen  Keuangan!") == "Keuangan"
    assert normalize_name("Dept. IT") == "IT"
    assert normalize_name("Finance & Accounting") == "Finance & Accounting"


def test_categorize_department():
    assert categorize_department("Divisi Keuangan") == "Finance"
    assert categorize_department("Human Capital") == "HR"
    assert categorize_department("Treasury") is None


def test_name_similarity():
    assert name_similarity("Human Resources", "human resources") == 1.0
    assert name_similarity("Human Resources", "Human Capital") == pytest.approx(1 / 3)
    assert name_similarity("", "HR") == 0.0


# ── Resolution ──


@pytest.mark.asyncio
async def test_static_table_without_repository():
    resolver = DepartmentResolver()
    assert await resolver.resolve("Keuangan") == ["Finance", "Keuangan", "FAD", "Accounting", "Akuntansi"]
    assert await resolver.resolve("Department Finance") == ["Finance", "Keuangan", "FAD", "Accounting", "Akuntansi"]


@pytest.mark.asyncio
async def test_accounting_spellings_belong_to_finance():
    resolver = DepartmentResolver()
    finance = await resolver.resolve("Finance")
    assert "Accounting" in finance
    assert "Akuntansi" in finance
    assert await resolver.resolve("akuntansi") == finance
    assert categorize_department("Divisi Akuntansi") == "Finance"


@pytest.mark.asyncio
async def test_unknown_department_resolves_to_itself():
    resolver = DepartmentResolver()
    assert await resolver.resolve("Treasury") == ["Treasury"]
    assert await resolver.resolve("   ") == []


@pytest.mark.asyncio
async def test_repository_adds_stored_spellings_by_category():
    repo = FakeDepartmentRepository([
        Department(name="Finance", category="Finance", original_names=["Fin & Acc", "keuangan"]),
    ])
    resolver = DepartmentResolver(repo)

    variants = await resolver.resolve("FAD")

    assert variants == ["Finance", "Keuangan", "FAD", "Accounting", "Akuntansi", "Fin & Acc"]
    assert repo.calls == [("category", "Finance")]


@pytest.mark.asyncio
async def test_repository_name_search_for_unknown_department():
    repo = FakeDepartmentRepository([
        Department(name="Treasury Ops", category="Treasury", original_names=["Treasury"]),
        Department(name="Legal", category="Legal"),
    ])
    resolver = DepartmentResolver(repo)

    variants = await resolver.resolve("Treasury")

    assert variants == ["Treasury Ops", "Treasury"]
    assert ("name", "Treasury") in repo.calls


@pytest.mark.asyncio
async def test_results_are_cached_until_cleared():
    repo = FakeDepartmentRepository([Department(name="Finance", category="Finance")])
    resolver = DepartmentResolver(repo)

    await resolver.resolve("Finance")
    await resolver.resolve("finance")
    assert len(repo.calls) == 1

    resolver.clear()
    await resolver.resolve("Finance")
    assert len(repo.calls) == 2
