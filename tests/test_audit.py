from datetime import date

import pytest
from sqlalchemy import select

from currency_service.db.init import init_database
from currency_service.domain import BusinessDate
from currency_service.models import RequestLog
from currency_service.services import AuditLogger
from currency_service.storage import RequestLogStorage


async def _rows(database) -> list[RequestLog]:
    async with database.session() as session:
        return list((await session.execute(select(RequestLog).order_by(RequestLog.id))).scalars())


@pytest.mark.asyncio
async def test_log_request_trims_path_and_keeps_date(database):
    await init_database(database)
    audit = AuditLogger(RequestLogStorage(database.session_factory))

    await audit.log_request("/api/v1/rate/", 200, BusinessDate(date(2024, 12, 26)))
    await audit.log_request("///", 400)
    await audit.log_request("/api/v1/rate", 404, BusinessDate.zero())

    rows = await _rows(database)
    assert [(r.path, r.status, r.date_as_of) for r in rows] == [
        ("api/v1/rate", 200, date(2024, 12, 26)),
        ("unknown", 400, None),
        ("api/v1/rate", 404, None),
    ]
    assert all(r.created_at is not None for r in rows)
