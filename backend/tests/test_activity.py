from datetime import date, datetime

from cleansuite.models.activity import ActivityLog
from cleansuite.models.company import Company
from cleansuite.models.enums import ActivityAction
from cleansuite.services.activity import ActivityService, date_range_bounds


def test_date_range_bounds_cover_whole_days():
    start, end = date_range_bounds(date(2026, 3, 1), date(2026, 3, 2))
    assert start == datetime(2026, 3, 1)
    assert end == datetime(2026, 3, 3)
    assert date_range_bounds(None, None) == (None, None)


async def _entry(db, company, created_at, action=ActivityAction.JOB_CREATED, description="Scheduled job",
                 performer="Alice Test", user_id=None):
    entry = ActivityLog(
        company_id=company.id,
        performed_by_user_id=user_id,
        performer_name=performer,
        action=action,
        description=description,
        created_at=created_at,
    )
    db.add(entry)
    await db.commit()
    return entry


async def test_log_appends_entry_for_current_user(db, company, admin, admin_user):
    service = ActivityService.for_user(db, admin_user)

    entry = await service.log(
        ActivityAction.CLIENT_CREATED,
        "Created client Jordan Smith",
        entity_type="client",
        entity_id=123,
        entity_name="Jordan Smith",
    )
    await db.commit()

    assert entry.company_id == company.id
    assert entry.performed_by_user_id == admin.id
    assert entry.performer_name == "Alice Test"
    assert entry.entity_id == "123"
    assert entry.details == {}


async def test_date_range_is_inclusive_of_both_days(db, company):
    inside = [
        await _entry(db, company, datetime(2026, 3, 1, 0, 0, 0)),
        await _entry(db, company, datetime(2026, 3, 1, 23, 59, 59)),
        await _entry(db, company, datetime(2026, 3, 2, 23, 59, 59, 999999)),
    ]
    await _entry(db, company, datetime(2026, 2, 28, 23, 59, 59))
    await _entry(db, company, datetime(2026, 3, 3, 0, 0, 0))

    page = await ActivityService(db, company.id).search(date_from=date(2026, 3, 1), date_to=date(2026, 3, 2))

    assert page.total == 3
    assert {e.id for e in page.items} == {e.id for e in inside}
    # newest first
    assert page.items[0].created_at == datetime(2026, 3, 2, 23, 59, 59, 999999)


async def test_open_ended_ranges(db, company):
    await _entry(db, company, datetime(2026, 1, 5, 9))
    await _entry(db, company, datetime(2026, 6, 5, 9))
    service = ActivityService(db, company.id)

    assert (await service.search(date_from=date(2026, 6, 1))).total == 1
    assert (await service.search(date_to=date(2026, 1, 5))).total == 1


async def test_search_matches_description_performer_and_action(db, company):
    await _entry(db, company, datetime(2026, 3, 1, 9), description="Scheduled job for Jordan", performer="Alice")
    await _entry(db, company, datetime(2026, 3, 1, 10), action=ActivityAction.INVOICE_CREATED,
                 description="Generated INV-1", performer="Morgan")
    service = ActivityService(db, company.id)

    assert (await service.search(search="JORDAN")).total == 1
    assert (await service.search(search="morgan")).total == 1
    assert (await service.search(search="invoice_created")).total == 1
    assert (await service.search(search="nothing like this")).total == 0


async def test_search_treats_like_wildcards_literally(db, company):
    await _entry(db, company, datetime(2026, 3, 1, 9), description="Created client Bob")
    await _entry(db, company, datetime(2026, 3, 1, 10), description="Discount 50% applied")
    service = ActivityService(db, company.id)

    percent = await service.search(search="%")
    assert percent.total == 1
    assert percent.items[0].description == "Discount 50% applied"
    assert (await service.search(search="50%")).total == 1
    assert (await service.search(search="Bo_")).total == 0


async def test_action_and_user_filters(db, company, admin):
    await _entry(db, company, datetime(2026, 3, 1, 9), user_id=admin.id)
    await _entry(db, company, datetime(2026, 3, 1, 10), action=ActivityAction.CASH_APPROVED)
    service = ActivityService(db, company.id)

    by_action = await service.search(action=ActivityAction.CASH_APPROVED)
    assert [e.action for e in by_action.items] == [ActivityAction.CASH_APPROVED]

    by_user = await service.search(user_id=admin.id)
    assert by_user.total == 1
    assert by_user.items[0].performed_by_user_id == admin.id


async def test_pagination(db, company):
    for minute in range(30):
        await _entry(db, company, datetime(2026, 3, 1, 9, minute))
    service = ActivityService(db, company.id)

    second = await service.search(page=2, page_size=25)

    assert second.total == 30
    assert second.pages == 2
    assert len(second.items) == 5
    assert second.items[0].created_at == datetime(2026, 3, 1, 9, 4)


async def test_entries_are_scoped_to_company(db, company):
    other = Company(trade_name="Other Co")
    db.add(other)
    await db.commit()
    await _entry(db, other, datetime(2026, 3, 1, 9))

    assert (await ActivityService(db, company.id).search()).total == 0
