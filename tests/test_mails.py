"""Tests for the bulk mail store."""

import pytest

from grievance_console.grievance.errors import HTTPStatusError
from grievance_console.grievance.mails import MailStore
from grievance_console.grievance.schemas import Mail, MailDraft


@pytest.fixture
def store(admin_api) -> MailStore:
    return MailStore(admin_api)


@pytest.mark.asyncio
async def test_request_messages_keep_fetch_order(store):
    await store.refresh()
    assert [m.mail_id for m in store.get_request_messages(101)] == [201, 203]
    assert [m.mail_id for m in store.get_request_messages(102)] == [202]
    assert store.get_request_messages(999) == []
    assert len(store.get_all_mails()) == 3


@pytest.mark.asyncio
async def test_filters_make_no_calls(store, server):
    await store.refresh()
    calls = len(server.calls)
    store.get_request_messages(101)
    store.get_all_mails()
    store.get_thread(203)
    assert len(server.calls) == calls


@pytest.mark.asyncio
async def test_thread_is_oldest_first(store):
    await store.refresh()
    assert [m.mail_id for m in store.get_thread(203)] == [201, 203]
    assert [m.mail_id for m in store.get_thread(201)] == [201]
    assert store.get_thread(999) == []


def test_thread_survives_cycles():
    store = MailStore(api=None)
    store.mails = [
        Mail(mail_id=1, request_id=1, parent_mail_id=2),
        Mail(mail_id=2, request_id=1, parent_mail_id=1),
    ]
    assert [m.mail_id for m in store.get_thread(1)] == [2, 1]


@pytest.mark.asyncio
async def test_fetch_failure_empties_the_collection(store, server):
    await store.refresh()
    server.fail("/mails")
    assert await store.refresh() == []
    assert store.error == "Error fetching mails"


@pytest.mark.asyncio
async def test_send_then_refetch(store, server):
    await store.refresh()
    await store.send_mail(
        MailDraft(request_id=101, parent_mail_id=203, subject="Re: Login page broken", body="Thanks", to_addresses="support@example.com")
    )
    sent = store.get_all_mails()[-1]
    assert sent.parent_mail_id == 203
    assert sent.from_address == "admin@example.com"
    assert [m.mail_id for m in store.get_thread(sent.mail_id)] == [201, 203, sent.mail_id]


@pytest.mark.asyncio
async def test_star_archive_delete(store):
    await store.refresh()
    await store.toggle_star(201)
    assert store.get(201).is_starred
    await store.archive_mail(202)
    assert store.get(202).is_archived
    await store.delete_mail(203)
    assert store.get(203) is None


@pytest.mark.asyncio
async def test_mutation_failure_is_reraised(store):
    await store.refresh()
    with pytest.raises(HTTPStatusError) as exc_info:
        await store.delete_mail(999)
    assert exc_info.value.status_code == 404
    assert len(store.get_all_mails()) == 3
