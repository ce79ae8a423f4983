from typing import Dict, List

import pytest
from httpx import AsyncClient

from app.core.week import current_week_info


def _payload(class_ids: List[str], assignment_type: str = "TASK", **extra) -> Dict:
    week = current_week_info()
    data = {
        "title": "Latihan Soal Bab 3",
        "description": "Kerjakan halaman 40-42",
        "subject": "MATEMATIKA",
        "learning_goal": "Memahami persamaan linear",
        "type": assignment_type,
        "week_number": week.week_number,
        "year": week.year,
        "class_ids": class_ids,
    }
    data.update(extra)
    return data


@pytest.mark.asyncio
async def test_create_assignment_reports_quota(client: AsyncClient, classes, teacher_headers, teacher) -> None:
    response = await client.post(
        "/api/v1/assignments",
        json=_payload(["7-DISCIPLINE", "7-RESPECT"]),
        headers=teacher_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["success"] is True
    assert data["assignment"]["status"] == "published"
    assert data["assignment"]["display_status"] == "published"
    assert data["assignment"]["teacher_id"] == str(teacher.id)
    assert data["assignment"]["class_ids"] == ["7-DISCIPLINE", "7-RESPECT"]
    assert data["quotas"] == {
        "7-DISCIPLINE": {"used": 1, "max": 2},
        "7-RESPECT": {"used": 1, "max": 2},
    }


@pytest.mark.asyncio
async def test_create_rejected_when_any_class_is_full(client: AsyncClient, classes, teacher_headers) -> None:
    for _ in range(2):
        response = await client.post("/api/v1/assignments", json=_payload(["8-CREATIVE"], "EXAM"), headers=teacher_headers)
        assert response.status_code == 201

    response = await client.post(
        "/api/v1/assignments",
        json=_payload(["8-RESPECT", "8-CREATIVE"], "EXAM"),
        headers=teacher_headers,
    )
    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["type"] == "EXAM"
    assert detail["classes"] == [{"class_id": "8-CREATIVE", "used": 2, "max": 2}]

    # Nothing was written for the class that still had room.
    week = current_week_info()
    quota = await client.post(
        "/api/v1/assignments/check-quota",
        json={"week_number": week.week_number, "year": week.year, "class_ids": ["8-RESPECT"], "type": "EXAM"},
        headers=teacher_headers,
    )
    assert quota.json()["quotas"]["8-RESPECT"] == {"used": 0, "max": 2}


@pytest.mark.asyncio
async def test_tasks_and_exams_have_separate_quotas(client: AsyncClient, classes, teacher_headers) -> None:
    for assignment_type in ("TASK", "TASK", "EXAM", "EXAM"):
        response = await client.post(
            "/api/v1/assignments", json=_payload(["9-CREATIVE"], assignment_type), headers=teacher_headers
        )
        assert response.status_code == 201
    response = await client.post("/api/v1/assignments", json=_payload(["9-CREATIVE"], "TASK"), headers=teacher_headers)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_check_quota(client: AsyncClient, classes, teacher_headers) -> None:
    await client.post("/api/v1/assignments", json=_payload(["7-CREATIVE"]), headers=teacher_headers)
    week = current_week_info()
    response = await client.post(
        "/api/v1/assignments/check-quota",
        json={
            "class_ids": ["7-CREATIVE", "7-INDEPENDENT"],
            "week_number": week.week_number,
            "year": week.year,
            "type": "TASK",
        },
        headers=teacher_headers,
    )
    assert response.status_code == 200
    assert response.json()["quotas"] == {
        "7-CREATIVE": {"used": 1, "max": 2},
        "7-INDEPENDENT": {"used": 0, "max": 2},
    }


@pytest.mark.asyncio
async def test_check_quota_normalizes_class_ids_like_create(client: AsyncClient, classes, teacher_headers) -> None:
    await client.post("/api/v1/assignments", json=_payload(["7-CREATIVE"]), headers=teacher_headers)
    week = current_week_info()
    response = await client.post(
        "/api/v1/assignments/check-quota",
        json={
            "class_ids": [" 7-CREATIVE", "7-CREATIVE ", "7-INDEPENDENT"],
            "week_number": week.week_number,
            "year": week.year,
            "type": "TASK",
        },
        headers=teacher_headers,
    )
    assert response.status_code == 200
    assert response.json()["quotas"] == {
        "7-CREATIVE": {"used": 1, "max": 2},
        "7-INDEPENDENT": {"used": 0, "max": 2},
    }

    response = await client.post(
        "/api/v1/assignments/check-quota",
        json={"class_ids": ["  "], "week_number": week.week_number, "year": week.year, "type": "TASK"},
        headers=teacher_headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"]["field"] == "class_ids"


@pytest.mark.asyncio
async def test_week_that_does_not_exist_is_rejected(client: AsyncClient, classes, teacher_headers) -> None:
    response = await client.post(
        "/api/v1/assignments",
        json=_payload(["7-DISCIPLINE"], week_number=53, year=2025),
        headers=teacher_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_unknown_class_is_rejected(client: AsyncClient, classes, teacher_headers) -> None:
    response = await client.post("/api/v1/assignments", json=_payload(["7-NOPE"]), headers=teacher_headers)
    assert response.status_code == 400
    assert response.json()["detail"]["field"] == "class_ids"


@pytest.mark.asyncio
async def test_teacher_cannot_create_for_someone_else(client: AsyncClient, classes, teacher_headers) -> None:
    response = await client.post(
        "/api/v1/assignments",
        json=_payload(["7-DISCIPLINE"], teacher_id="00000000-0000-0000-0000-000000000042"),
        headers=teacher_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_creates_on_behalf_of_teacher(client: AsyncClient, classes, admin_headers, teacher) -> None:
    response = await client.post("/api/v1/assignments", json=_payload(["7-DISCIPLINE"]), headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"]["field"] == "teacher_id"

    response = await client.post(
        "/api/v1/assignments",
        json=_payload(["7-DISCIPLINE"], teacher_id=str(teacher.id)),
        headers=admin_headers,
    )
    assert response.status_code == 201
    assert response.json()["assignment"]["teacher_id"] == str(teacher.id)


@pytest.mark.asyncio
async def test_list_and_current_week_feed(client: AsyncClient, classes, teacher_headers) -> None:
    created = await client.post("/api/v1/assignments", json=_payload(["9-RESPECT"]), headers=teacher_headers)
    assignment_id = created.json()["assignment"]["id"]

    listed = await client.get("/api/v1/assignments", headers=teacher_headers)
    assert listed.status_code == 200
    assert [a["id"] for a in listed.json()] == [assignment_id]

    feed = await client.get("/api/v1/assignments/current-week", headers=teacher_headers)
    assert feed.status_code == 200
    data = feed.json()
    assert data["degraded"] is False
    assert data["week"]["week_number"] == current_week_info().week_number
    assert data["assignments"][0]["class_ids"] == ["9-RESPECT"]

    single = await client.get(f"/api/v1/assignments/{assignment_id}", headers=teacher_headers)
    assert single.status_code == 200
    assert single.json()["title"] == "Latihan Soal Bab 3"


@pytest.mark.asyncio
async def test_current_week_feed_degrades_to_empty(degraded_client: AsyncClient) -> None:
    response = await degraded_client.get("/api/v1/assignments/current-week")
    assert response.status_code == 200
    data = response.json()
    assert data["assignments"] == []
    assert data["degraded"] is True


@pytest.mark.asyncio
async def test_check_quota_degrades_to_defaults(degraded_client: AsyncClient) -> None:
    week = current_week_info()
    response = await degraded_client.post(
        "/api/v1/assignments/check-quota",
        json={
            "class_ids": ["7-DISCIPLINE", "8-RESPECT", "9-CREATIVE"],
            "week_number": week.week_number,
            "year": week.year,
            "type": "EXAM",
        },
    )
    assert response.status_code == 200
    assert {q["used"] for q in response.json()["quotas"].values()} == {0}
    assert {q["max"] for q in response.json()["quotas"].values()} == {2}


@pytest.mark.asyncio
async def test_create_returns_503_when_store_is_down(degraded_client: AsyncClient) -> None:
    response = await degraded_client.post(
        "/api/v1/assignments",
        json=_payload(["7-DISCIPLINE"], teacher_id="00000000-0000-0000-0000-000000000042"),
    )
    assert response.status_code == 503
