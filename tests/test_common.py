"""Tests for common utilities — pagination, envelopes, problem details, audit."""

from __future__ import annotations

import logging
import uuid

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leaveledger.common.audit import AuditTrail, create_audit_entry
from leaveledger.common.exceptions import (
    ConcurrentUpdateError,
    ConflictError,
    NotFoundException,
    ValidationException,
    register_exception_handlers,
)
from leaveledger.common.logging import setup_logging
from leaveledger.common.pagination import PaginationParams, paginate
from leaveledger.common.schemas import ActionResult
from leaveledger.core_hr.models import Employee
from tests.conftest import _seed_organization, _seed_user


def _params(page: int = 1, page_size: int = 50, sort=None) -> PaginationParams:
    return PaginationParams(page=page, page_size=page_size, sort=sort)


# ═════════════════════════════════════════════════════════════════════
# PAGINATION TESTS
# ═════════════════════════════════════════════════════════════════════


class TestPaginate:

    async def _seed_employees(self, db: AsyncSession, names: list[str]) -> None:
        org = await _seed_organization(db)
        for name in names:
            await _seed_user(db, org.id, first_name=name)

    async def test_first_page(self, db: AsyncSession):
        await self._seed_employees(db, ["Alice", "Bob", "Charlie"])
        page = await paginate(db, select(Employee), _params(page_size=2), model=Employee)
        assert len(page.data) == 2
        assert page.meta.total == 3
        assert page.meta.total_pages == 2
        assert page.meta.has_next is True
        assert page.meta.has_prev is False

    async def test_last_page(self, db: AsyncSession):
        await self._seed_employees(db, ["Alice", "Bob", "Charlie"])
        page = await paginate(db, select(Employee), _params(page=2, page_size=2), model=Employee)
        assert len(page.data) == 1
        assert page.meta.has_next is False
        assert page.meta.has_prev is True

    async def test_empty(self, db: AsyncSession):
        page = await paginate(db, select(Employee), _params())
        assert page.data == []
        assert page.meta.total == 0
        assert page.meta.total_pages == 0

    async def test_sort_descending(self, db: AsyncSession):
        await self._seed_employees(db, ["Charlie", "Alice", "Bob"])
        page = await paginate(db, select(Employee), _params(sort="-first_name"), model=Employee)
        assert [e.first_name for e in page.data] == ["Charlie", "Bob", "Alice"]

    async def test_unknown_sort_column_ignored(self, db: AsyncSession):
        await self._seed_employees(db, ["Alice"])
        page = await paginate(db, select(Employee), _params(sort="nonexistent"), model=Employee)
        assert page.meta.total == 1

    @pytest.mark.parametrize("sort", ["full_name", "-leave_requests", "metadata", "-registry"])
    async def test_non_column_attributes_ignored(self, db: AsyncSession, sort: str):
        await self._seed_employees(db, ["Alice", "Bob"])
        page = await paginate(db, select(Employee), _params(sort=sort), model=Employee)
        assert page.meta.total == 2
        assert len(page.data) == 2


# ═════════════════════════════════════════════════════════════════════
# ENVELOPES AND PROBLEM DETAILS
# ═════════════════════════════════════════════════════════════════════


class TestActionResult:

    def test_ok_wraps_data(self):
        result = ActionResult[int].ok(5)
        assert result.model_dump() == {"success": True, "error": None, "data": 5}

    def test_ok_without_data(self):
        assert ActionResult[None].ok().data is None


class TestExceptions:

    def test_validation_detail_is_first_message(self):
        exc = ValidationException({"reason": ["Please provide a reason"], "days": ["x"]})
        assert exc.status_code == 422
        assert exc.detail == "Please provide a reason"

    def test_conflict_carries_field_error(self):
        exc = ConflictError("code", "AL")
        assert exc.status_code == 409
        assert exc.errors == {"code": ["'AL' is already in use."]}

    def test_concurrent_update_is_409(self):
        assert ConcurrentUpdateError("LeaveBalance", uuid.uuid4()).status_code == 409

    async def test_handler_renders_problem_json(self):
        app = FastAPI()
        register_exception_handlers(app)

        @app.get("/boom")
        async def _boom():
            raise NotFoundException("LeaveRequest", "abc")

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            resp = await ac.get("/boom")

        assert resp.status_code == 404
        assert resp.headers["content-type"].startswith("application/problem+json")
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == body["detail"]
        assert body["instance"] == "/boom"
        assert body["type"].endswith("/not-found")


# ═════════════════════════════════════════════════════════════════════
# AUDIT AND LOGGING
# ═════════════════════════════════════════════════════════════════════


async def test_create_audit_entry_persists(db: AsyncSession):
    entity_id = uuid.uuid4()
    entry = await create_audit_entry(
        db,
        action="approve",
        entity_type="leave_request",
        entity_id=entity_id,
        old_values={"status": "pending"},
        new_values={"status": "approved"},
    )
    assert entry.created_at is not None

    rows = (
        await db.execute(select(AuditTrail).where(AuditTrail.entity_id == entity_id))
    ).scalars().all()
    assert len(rows) == 1
    assert rows[0].new_values == {"status": "approved"}


@pytest.mark.parametrize(
    ("level", "expected_sql_level"),
    [("debug", logging.INFO), ("info", logging.WARNING)],
)
def test_setup_logging_quiets_sqlalchemy(level, expected_sql_level):
    setup_logging(level)
    assert logging.getLogger("sqlalchemy.engine").level == expected_sql_level
