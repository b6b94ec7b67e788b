from httpx import ASGITransport, AsyncClient

from database import count_results, fetch_answers, fetch_profile_pointer

from app.core.config import config
from app.deps.sql import get_db
from app.main import app
from app.repositories.assessment import AssessmentRepository


def _answers(pairs):
    return [{"question_id": qid, "response": value} for qid, value in pairs]


async def test_assessment_flow(async_client: AsyncClient, session_maker, test_user, sample_catalog):
    judge, pleaser = sample_catalog.dimension_ids

    # 初始状态：全部题目待作答
    pending_response = await async_client.get(f"/api/assessment/{test_user.id}/pending")
    assert pending_response.status_code == 200
    envelope = pending_response.json()
    assert envelope["success"] is True
    assert "timestamp" in envelope and "message" in envelope
    pending = envelope["data"]
    assert pending["user_id"] == test_user.id
    assert pending["total_pending"] == 3
    assert pending["total_questions"] == 3
    assert [item["question_id"] for item in pending["pending_questions"]] == sample_catalog.all_question_ids
    assert pending["pending_questions"][0]["dimension_id"] == judge
    assert pending["pending_questions"][0]["image_url"]

    # 结果尚未生成
    not_found = await async_client.get(f"/api/assessment/{test_user.id}/result")
    assert not_found.status_code == 404
    assert not_found.json()["success"] is False
    assert not_found.json()["error"] == "RESULT_NOT_FOUND"

    # 只答第一个维度
    partial = await async_client.post(
        "/api/assessment/answers",
        json={"user_id": test_user.id, "answers": _answers([(qid, 5) for qid in sample_catalog.question_ids[judge]])},
    )
    assert partial.status_code == 200
    assert partial.json()["data"] == {"user_id": test_user.id, "saved_count": 2, "completed": False}

    remaining = (await async_client.get(f"/api/assessment/{test_user.id}/pending")).json()["data"]
    assert [item["question_id"] for item in remaining["pending_questions"]] == sample_catalog.question_ids[pleaser]

    # 答完剩余题目
    final = await async_client.post(
        "/api/assessment/answers",
        json={"user_id": test_user.id, "answers": _answers([(sample_catalog.question_ids[pleaser][0], 2)])},
    )
    assert final.status_code == 200
    assert final.json()["data"]["completed"] is True

    result_response = await async_client.get(f"/api/assessment/{test_user.id}/result")
    assert result_response.status_code == 200
    result = result_response.json()["data"]
    assert result["total_dimensions"] == 2
    assert [(item["dimension_id"], item["level"]) for item in result["results"]] == [
        (judge, "High"),
        (pleaser, "Low"),
    ]
    assert result["results"][0]["score"] == 5.0
    assert result["results"][1]["score"] == 2.0
    assert await fetch_profile_pointer(session_maker, test_user.id) == result["results"][0]["result_id"]


async def test_submit_rejects_out_of_range_response(async_client: AsyncClient, session_maker, test_user, sample_catalog):
    question_id = sample_catalog.all_question_ids[0]
    response = await async_client.post(
        "/api/assessment/answers",
        json={"user_id": test_user.id, "answers": _answers([(question_id, 6)])},
    )
    assert response.status_code == 400
    payload = response.json()
    assert payload["success"] is False
    assert payload["error"] == "VALIDATION_ERROR"
    assert payload["errors"][0]["field"] == "answers.0.response"
    assert await fetch_answers(session_maker, test_user.id) == {}


async def test_submit_rejects_non_integer_response(async_client: AsyncClient, test_user, sample_catalog):
    question_id = sample_catalog.all_question_ids[0]
    response = await async_client.post(
        "/api/assessment/answers",
        json={"user_id": test_user.id, "answers": [{"question_id": question_id, "response": 3.5}]},
    )
    assert response.status_code == 400


async def test_submit_rejects_empty_batch(async_client: AsyncClient, test_user):
    response = await async_client.post("/api/assessment/answers", json={"user_id": test_user.id, "answers": []})
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "answers"


async def test_submit_requires_user_id(async_client: AsyncClient, sample_catalog):
    response = await async_client.post(
        "/api/assessment/answers",
        json={"answers": _answers([(sample_catalog.all_question_ids[0], 3)])},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "MISSING_USER_ID"


async def test_invalid_user_id_in_path(async_client: AsyncClient):
    for path in ("/api/assessment/abc/pending", "/api/assessment/0/pending", "/api/assessment/-3/result"):
        response = await async_client.get(path)
        assert response.status_code == 400
        assert response.json()["error"] == "MISSING_USER_ID"


async def test_missing_description_returns_500_and_rolls_back(
    async_client: AsyncClient, session_maker, test_user, incomplete_catalog
):
    question_ids = incomplete_catalog.all_question_ids
    response = await async_client.post(
        "/api/assessment/answers",
        json={"user_id": test_user.id, "answers": _answers([(qid, 5) for qid in question_ids])},
    )
    assert response.status_code == 500
    payload = response.json()
    assert payload["success"] is False
    assert payload["error"] == "CONSISTENCY_ERROR"
    assert await fetch_answers(session_maker, test_user.id) == {}
    assert await count_results(session_maker, test_user.id) == 0


async def test_unknown_question_returns_retryable_storage_error(
    async_client: AsyncClient, session_maker, test_user, sample_catalog
):
    unknown = max(sample_catalog.all_question_ids) + 500
    response = await async_client.post(
        "/api/assessment/answers",
        json={"user_id": test_user.id, "answers": _answers([(sample_catalog.all_question_ids[0], 3), (unknown, 3)])},
    )
    assert response.status_code == 500
    payload = response.json()
    assert payload["error"] == "STORAGE_ERROR"
    assert payload["retryable"] is True
    assert await fetch_answers(session_maker, test_user.id) == {}


async def test_list_dimensions(async_client: AsyncClient, sample_catalog, incomplete_catalog):
    response = await async_client.get("/api/assessment/dimensions")
    assert response.status_code == 200
    dimensions = {item["dimension_id"]: item for item in response.json()["data"]}

    judge = sample_catalog.dimension_ids[0]
    assert dimensions[judge]["question_count"] == 2
    assert dimensions[judge]["levels"] == ["Low", "Moderate", "High"]

    avoider = incomplete_catalog.dimension_ids[0]
    assert dimensions[avoider]["levels"] == ["Low", "Moderate"]


async def test_health(async_client: AsyncClient):
    response = await async_client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"

    root = await async_client.get("/")
    assert root.json()["status"] == "online"


async def test_driver_timeout_returns_retryable_storage_error(
    async_client: AsyncClient, session_maker, test_user, sample_catalog, monkeypatch
):
    async def timeout(self, user_id):
        raise TimeoutError()

    monkeypatch.setattr(AssessmentRepository, "count_pending_questions", timeout)

    response = await async_client.post(
        "/api/assessment/answers",
        json={"user_id": test_user.id, "answers": _answers([(sample_catalog.all_question_ids[0], 3)])},
    )
    assert response.status_code == 500
    payload = response.json()
    assert payload["success"] is False
    assert payload["error"] == "STORAGE_ERROR"
    assert payload["retryable"] is True
    assert "timestamp" in payload
    assert await fetch_answers(session_maker, test_user.id) == {}


async def test_unexpected_error_still_uses_envelope(session_maker, test_user, monkeypatch):
    async def broken(self, user_id):
        raise RuntimeError("boom")

    monkeypatch.setattr(AssessmentRepository, "list_pending_questions", broken)

    async def override_get_session():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_session
    # 兜底处理器返回响应后 Starlette 仍会重新抛出异常
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get(f"/api/assessment/{test_user.id}/pending")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    payload = response.json()
    assert payload["success"] is False
    assert payload["error"] == "INTERNAL_ERROR"
    assert payload["retryable"] is False


async def test_storage_error_details_hidden_when_disabled(
    async_client: AsyncClient, test_user, sample_catalog, monkeypatch
):
    monkeypatch.setattr(config, "expose_error_details", False)
    unknown = max(sample_catalog.all_question_ids) + 500
    response = await async_client.post(
        "/api/assessment/answers",
        json={"user_id": test_user.id, "answers": _answers([(unknown, 3)])},
    )
    assert response.status_code == 500
    assert response.json()["details"] is None
