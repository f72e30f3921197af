"""
Consultation orchestrator tests - state machine, error policy and scenarios
"""

from datetime import timedelta

import pytest
from conftest import FailingLedger, FakeGenerator, RecordingNotifier

from app.core.exceptions import (
    AlreadyConsultedTodayError,
    GenerationFailure,
    LedgerWriteFailedError,
    QuestionRequiredError,
)
from app.services.ledger import CsvLedgerStore, InMemoryLedgerStore, SqliteLedgerStore
from app.services.oracle.deck import ORACLE_CARDS
from app.services.oracle.orchestrator import DEFAULT_FALLBACK_READING, ConsultationState

FULL_TRACE = [
    ConsultationState.RECEIVED,
    ConsultationState.VALIDATED,
    ConsultationState.ELIGIBILITY_CHECKED,
    ConsultationState.CARD_SELECTED,
    ConsultationState.READING_GENERATED,
    ConsultationState.RECORDED,
    ConsultationState.NOTIFIED,
    ConsultationState.COMPLETED,
]


async def test_first_consultation_returns_reading_and_records(orchestrator, ledger, notifier):
    result = await orchestrator.consult("What should I focus on?", email="a@x.com")
    await orchestrator.wait_for_notifications()

    assert result.reading == "The cards speak of patience."
    assert result.state == ConsultationState.COMPLETED
    assert result.trace == FULL_TRACE
    assert result.recorded
    assert len(ledger.records) == 1
    assert ledger.records[0].email == "a@x.com"
    assert notifier.sent[0]["email"] == "a@x.com"
    assert notifier.sent[0]["reading"] == result.reading


async def test_second_consultation_same_day_is_rejected(orchestrator, ledger, generator):
    await orchestrator.consult("What should I focus on?", email="a@x.com")
    before = [(r.email, r.last_submission) for r in ledger.records]

    with pytest.raises(AlreadyConsultedTodayError) as excinfo:
        await orchestrator.consult("What should I focus on?", email="a@x.com")

    assert excinfo.value.status_code == 429
    assert excinfo.value.state == ConsultationState.REJECTED
    assert [(r.email, r.last_submission) for r in ledger.records] == before
    assert len(generator.calls) == 1


async def test_empty_question_is_rejected_before_any_work(orchestrator, ledger, generator, notifier):
    with pytest.raises(QuestionRequiredError) as excinfo:
        await orchestrator.consult("   ", email="a@x.com")

    assert excinfo.value.status_code == 400
    assert excinfo.value.trace == [ConsultationState.RECEIVED, ConsultationState.REJECTED]
    assert ledger.reads == 0
    assert ledger.writes == 0
    assert generator.calls == []
    assert notifier.sent == []


async def test_read_outage_fails_open_and_still_writes(make_orchestrator):
    ledger = FailingLedger(fail_reads=True)
    orchestrator = make_orchestrator(ledger)

    result = await orchestrator.consult("Will the harvest be good?", email="a@x.com")

    assert result.state == ConsultationState.COMPLETED
    assert ledger.write_attempts == 1
    assert len(ledger.inner.records) == 1


@pytest.fixture(params=["memory", "csv", "sqlite"])
def backing_store(request, tmp_path):
    if request.param == "memory":
        return InMemoryLedgerStore()
    if request.param == "csv":
        return CsvLedgerStore(str(tmp_path / "ledger.csv"))
    return SqliteLedgerStore(str(tmp_path / "ledger.sqlite3"))


async def test_read_outage_merges_into_existing_record(make_orchestrator, clock, backing_store):
    await backing_store.upsert("a@x.com", "Aroha", clock.now - timedelta(days=1))
    ledger = FailingLedger(fail_reads=True, inner=backing_store)
    orchestrator = make_orchestrator(ledger)

    result = await orchestrator.consult("Will the harvest be good?", email="a@x.com")

    assert result.state == ConsultationState.COMPLETED
    record = await backing_store.find_by_email("a@x.com")
    assert record.last_submission == clock.now
    assert record.name == "Aroha"
    if isinstance(backing_store, InMemoryLedgerStore):
        assert len(backing_store.records) == 1

    # Once reads recover, today's submission still counts
    ledger.fail_reads = False
    with pytest.raises(AlreadyConsultedTodayError):
        await orchestrator.consult("And what of the winter?", email="a@x.com")


async def test_write_outage_fails_closed(make_orchestrator, notifier):
    ledger = FailingLedger(fail_reads=False, fail_writes=True)
    orchestrator = make_orchestrator(ledger)

    with pytest.raises(LedgerWriteFailedError) as excinfo:
        await orchestrator.consult("Will the harvest be good?", email="a@x.com")
    await orchestrator.wait_for_notifications()

    assert excinfo.value.status_code == 500
    assert excinfo.value.state == ConsultationState.FAILED
    assert notifier.sent == []


async def test_without_email_skips_ledger_and_notification(orchestrator, ledger, notifier):
    result = await orchestrator.consult("Where am I headed?")
    await orchestrator.wait_for_notifications()

    assert result.state == ConsultationState.COMPLETED
    assert ConsultationState.RECORDED not in result.trace
    assert not result.recorded
    assert ledger.reads == 0
    assert ledger.writes == 0
    assert notifier.sent == []


async def test_supplied_card_is_used(orchestrator, generator, custom_card):
    result = await orchestrator.consult("Where am I headed?", card=custom_card)
    assert result.card is custom_card
    assert generator.calls[0][2] is custom_card


async def test_card_is_drawn_when_not_supplied(orchestrator, generator):
    result = await orchestrator.consult("Where am I headed?")
    assert result.card in ORACLE_CARDS
    assert generator.calls[0][2] == result.card


async def test_generation_failure_uses_fallback(make_orchestrator, ledger):
    orchestrator = make_orchestrator(ledger, generator=FakeGenerator(error=GenerationFailure("timeout")))
    result = await orchestrator.consult("Where am I headed?", email="a@x.com")

    assert result.reading == DEFAULT_FALLBACK_READING
    assert result.used_fallback
    assert result.recorded


async def test_empty_generation_uses_configured_fallback(make_orchestrator, ledger):
    orchestrator = make_orchestrator(ledger, generator=FakeGenerator(text="  "), fallback_reading="Rest now.")
    result = await orchestrator.consult("Where am I headed?")
    assert result.reading == "Rest now."


async def test_notification_failure_does_not_change_outcome(make_orchestrator, ledger):
    notifier = RecordingNotifier(error=RuntimeError("smtp down"))
    orchestrator = make_orchestrator(ledger, notifier=notifier)

    result = await orchestrator.consult("Where am I headed?", email="a@x.com")
    await orchestrator.wait_for_notifications()

    assert result.state == ConsultationState.COMPLETED
    assert len(notifier.sent) == 1


async def test_consultations_on_different_days_update_one_record(orchestrator, ledger, clock):
    await orchestrator.consult("First question", email="a@x.com", name="Aroha")
    first_day = clock.now
    clock.now = first_day + timedelta(days=1)
    await orchestrator.consult("Second question", email="A@x.com")

    assert len(ledger.records) == 1
    assert ledger.records[0].last_submission == first_day + timedelta(days=1)
    assert ledger.records[0].name == "Aroha"


async def test_name_is_passed_to_generator_and_notifier(orchestrator, generator, notifier):
    await orchestrator.consult("Where am I headed?", email="a@x.com", name=" Tama ")
    await orchestrator.wait_for_notifications()
    assert generator.calls[0][1] == "Tama"
    assert notifier.sent[0]["name"] == "Tama"


async def test_client_timestamp_does_not_affect_eligibility(orchestrator, clock):
    await orchestrator.consult("First question", email="a@x.com")
    with pytest.raises(AlreadyConsultedTodayError):
        await orchestrator.consult(
            "Second question", email="a@x.com", client_timestamp=clock.now + timedelta(days=3)
        )
