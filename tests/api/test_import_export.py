"""Weekly-progress CSV import and export."""

from __future__ import annotations

import csv
import io

import pytest
from httpx import AsyncClient

CSV_BODY = """name,username,batch,week1,week2,week3,current
Alice,alice,2027,10,15,22,30
Bob,bob,2027,20,,40,41
"""


async def _import(client: AsyncClient, body: str):
    return await client.post(
        "/api/v1/import/weekly-progress",
        content=body.encode(),
        headers={"Content-Type": "text/csv"},
    )


class TestImport:
    @pytest.mark.asyncio
    async def test_creates_students_and_snapshots(self, client: AsyncClient, redis_mock):
        response = await _import(client, CSV_BODY)
        assert response.status_code == 200
        # alice 4 values, bob 3 (blank week2 is skipped)
        assert response.json() == {"created": 2, "updated": 0, "snapshots": 7}
        redis_mock.keys.assert_awaited_with("dashboard:*")

        data = (await client.get("/api/v1/dashboard/student/bob")).json()
        assert data["weeks"] == {"week1": 20, "week2": None, "week3": 40, "current": 41}
        assert data["increments"] == [0, 0, 1]

    @pytest.mark.asyncio
    async def test_reimport_updates(self, client: AsyncClient):
        await _import(client, CSV_BODY)
        response = await _import(client, CSV_BODY.replace("Alice,alice,2027,10,15,22,30", "Alice,alice,2027,10,15,22,35"))
        assert response.json()["updated"] == 2

        data = (await client.get("/api/v1/dashboard/student/alice")).json()
        assert data["weeks"]["current"] == 35

    @pytest.mark.asyncio
    async def test_leetcode_username_header_and_bom(self, client: AsyncClient):
        body = "\ufeffName,LeetCode_Username,Week1\nDan,dan,3\n"
        response = await _import(client, body)
        assert response.json()["created"] == 1

    @pytest.mark.asyncio
    async def test_missing_username_column(self, client: AsyncClient):
        response = await _import(client, "name,week1\nAlice,3\n")
        assert response.status_code == 400
        assert "username" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_non_numeric_cell(self, client: AsyncClient):
        response = await _import(client, "username,week1\nalice,lots\n")
        assert response.status_code == 400
        assert "Line 2" in response.json()["detail"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("cell", ["inf", "-inf", "1e400", "nan"])
    async def test_non_finite_cell(self, client: AsyncClient, cell):
        response = await _import(client, f"name,username,week1\nAda,ada,{cell}\n")
        assert response.status_code == 400
        assert "Line 2" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_count_out_of_range(self, client: AsyncClient):
        response = await _import(client, "name,username,week1\nAda,ada,3000000000\n")
        assert response.status_code == 400
        assert "out of range" in response.json()["detail"]

        students = (await client.get("/api/v1/students")).json()
        assert students == []

    @pytest.mark.asyncio
    async def test_empty_body(self, client: AsyncClient):
        response = await _import(client, "")
        assert response.status_code == 400


class TestExport:
    @pytest.mark.asyncio
    async def test_export_rows(self, client: AsyncClient):
        await _import(client, CSV_BODY)
        response = await client.get("/api/v1/export/csv")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")

        rows = list(csv.DictReader(io.StringIO(response.text)))
        assert [r["username"] for r in rows] == ["alice", "bob"]
        assert rows[0]["week3"] == "22"
        assert rows[0]["current"] == "30"
        assert rows[0]["weekly_progress"] == "8"
        assert rows[0]["trend"] == "improved"
        assert rows[1]["week2"] == "0"

    @pytest.mark.asyncio
    async def test_export_empty(self, client: AsyncClient):
        response = await client.get("/api/v1/export/csv")
        header = response.text.splitlines()[0]
        assert header == "name,username,batch,current,weekly_progress,trend,status"
