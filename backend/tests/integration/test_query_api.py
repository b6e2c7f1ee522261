"""API tests for the /api/v1/query endpoints.

The router service is replaced through ``dependency_overrides`` with one
backed by an in-memory finding store, so no database is needed.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from audit_query.application.interfaces import FindingRepository
from audit_query.application.interfaces.chat_provider import ChatProvider
from audit_query.application.services import (
    AIAnalysisService,
    HybridRetrievalEngine,
    PatternMatcher,
    QueryClassifier,
    QueryExecutor,
    QueryRouterService,
    build_default_patterns,
)
from audit_query.domain.entities import AuditFinding, ChatCompletionResult
from audit_query.infrastructure.dependencies import get_query_router_service
from audit_query.main import create_app


# ── Fakes ──


class FakeFindingRepository(FindingRepository):
    def __init__(self, findings, *, error: Exception | None = None):
        self._findings = list(findings)
        self._error = error

    async def query(self, filters, sorts, limit=None):
        if self._error is not None:
            raise self._error
        rows = [
            f for f in self._findings
            if all(_matches(getattr(f, flt.field), flt.operator, flt.value) for flt in filters)
        ]
        for sort in reversed(sorts):
            rows.sort(key=lambda f: getattr(f, sort.field), reverse=sort.direction == "desc")
        return rows[:limit] if limit is not None else rows

    async def add_many(self, findings):
        self._findings.extend(findings)
        return len(findings)


def _matches(value, op, expected) -> bool:
    if op == "==":
        return value == expected
    if op == "in":
        return value in expected
    if op == ">=":
        return value >= expected
    if op == "<":
        return value < expected
    raise AssertionError(f"unexpected operator {op}")


class FakeChatProvider(ChatProvider):
    def __init__(self):
        self.calls = 0

    @property
    def provider_name(self) -> str:
        return "fake"

    async def complete(self, messages, model, *, temperature=None, max_tokens=None):
        self.calls += 1
        return ChatCompletionResult(
            model=model, content="Expired stock recurs across hospitals.", finish_reason="stop"
        )


FINDINGS = [
    AuditFinding(
        id="H1", year=2024, project_name="Central Hospital", department="Pharmacy",
        project_type="Hospital", description="Expired medicine stock", code="H-1", risk_score=16,
    ),
    AuditFinding(
        id="T2", year=2024, project_name="City Hotel", department="Finance",
        project_type="Hotel", description="Unbilled room nights", code="T-2", risk_score=18,
    ),
    AuditFinding(
        id="F9", year=2023, project_name="Head Office", department="Finance",
        description="Late bank reconciliation", code="F-9", risk_score=9,
    ),
]


def _app(repo: FindingRepository | None = None, chat: FakeChatProvider | None = None):
    service = QueryRouterService(
        pattern_matcher=PatternMatcher(build_default_patterns()),
        classifier=QueryClassifier(),
        executor=QueryExecutor(repo or FakeFindingRepository(FINDINGS)),
        retrieval=HybridRetrievalEngine(),
        analysis_service=AIAnalysisService(chat, model="test/low") if chat else None,
    )
    app = create_app()
    app.dependency_overrides[get_query_router_service] = lambda: service
    return app


async def _post(app, path: str, payload: dict):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.post(path, json=payload)


# ── POST /api/v1/query ──


@pytest.mark.asyncio
async def test_fast_path_query():
    response = await _post(_app(), "/api/v1/query", {"query": "Show me all critical findings from 2024"})

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["type"] == "simple"
    assert [f["id"] for f in data["findings"]] == ["T2", "H1"]
    assert data["findings"][0]["severity"] == "Critical"
    assert data["metadata"]["query_type"] == "simple_query"
    assert data["metadata"]["pattern_matched"] == "severity-year"


@pytest.mark.asyncio
async def test_department_query_reports_variants():
    response = await _post(_app(), "/api/v1/query", {"query": "Show findings for Finance department"})

    data = response.json()
    assert data["success"] is True
    assert {f["id"] for f in data["findings"]} == {"T2", "F9"}
    assert data["metadata"]["department_variants"][:3] == ["Finance", "Keuangan", "FAD"]


@pytest.mark.asyncio
async def test_complex_query_uses_ai():
    chat = FakeChatProvider()
    response = await _post(
        _app(chat=chat),
        "/api/v1/query",
        {
            "query": "What are the main patterns in our hospital audit findings and what should we prioritize?",
            "thinking_mode": "high",
            "history": [{"role": "user", "content": "Hi"}],
        },
    )

    data = response.json()
    assert data["success"] is True
    assert data["type"] == "complex"
    assert data["answer"].startswith("Expired stock recurs")
    assert chat.calls == 1


@pytest.mark.asyncio
async def test_store_failure_returns_error_body_with_200():
    repo = FakeFindingRepository(FINDINGS, error=ConnectionError("database is locked"))
    response = await _post(_app(repo), "/api/v1/query", {"query": "Show me all critical findings from 2024"})

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is False
    assert data["error"]["code"] == "DATABASE_ERROR"
    assert data["error"]["suggestion"]


@pytest.mark.asyncio
async def test_no_results_code():
    response = await _post(_app(), "/api/v1/query", {"query": "asdkjhaslkdj"})

    data = response.json()
    assert data["success"] is True
    assert data["code"] == "NO_RESULTS"
    assert data["findings"] == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"query": ""},
        {},
        {"query": "2024 findings", "max_results": 0},
        {"query": "2024 findings", "thinking_mode": "medium"},
    ],
)
async def test_invalid_request_is_422(payload):
    response = await _post(_app(), "/api/v1/query", payload)
    assert response.status_code == 422


# ── POST /api/v1/query/classify ──


@pytest.mark.asyncio
async def test_classify_returns_intent():
    response = await _post(
        _app(), "/api/v1/query/classify",
        {"query": "List all open findings in hotels and explain what trends you see"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["type"] == "hybrid"
    assert data["requires_ai"] is True
    assert data["extracted_filters"]["status"] == ["Open"]
    assert data["extracted_filters"]["project_type"] == "Hotel"


# ── POST /api/v1/query/execute-as ──


@pytest.mark.asyncio
async def test_execute_as_forces_type():
    response = await _post(
        _app(), "/api/v1/query/execute-as",
        {"query": "Show me all critical findings from 2024", "query_type": "simple"},
    )

    data = response.json()
    assert data["success"] is True
    assert data["metadata"]["pattern_matched"] is None
    assert data["metadata"]["query_type"] == "simple"


@pytest.mark.asyncio
async def test_execute_as_rejects_unknown_type():
    response = await _post(
        _app(), "/api/v1/query/execute-as", {"query": "2024 findings", "query_type": "magic"}
    )
    assert response.status_code == 422
