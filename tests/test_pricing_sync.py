"""
Persistence and sync: round-trips, corrupt slots, debouncing, the sequence
gate, the version counter and subscriptions.
"""
import threading

import pytest

from travel_pricing.engine.models import MarkupSettings, PaxDetails, PricingRequest
from travel_pricing.exceptions import StaleSnapshotError
from travel_pricing.services.pricing_service import PricingService
from travel_pricing.sync import Debouncer, FileStorage, PricingSync


def price(engine, enquiry_id='ENQ-1', base_cost=1000.0, pct=15):
    return engine.calculate(PricingRequest(
        enquiry_id=enquiry_id,
        pax=PaxDetails(adults=2, children=1),
        destination_country='TH',
        base_cost_override=base_cost,
        markup=MarkupSettings(type='percentage', value=pct),
    ))


def test_save_then_load_round_trips(engine, storage):
    sync = PricingSync(storage, debounce_seconds=0)
    snapshot = price(engine)

    sync.save('ENQ-1', snapshot)
    loaded = sync.load('ENQ-1')

    assert loaded == snapshot
    assert loaded.currency.symbol == '฿'


def test_round_trip_through_files(engine, tmp_path):
    snapshot = price(engine)
    PricingSync(FileStorage(tmp_path), debounce_seconds=0).save('ENQ-1', snapshot)

    loaded = PricingSync(FileStorage(tmp_path), debounce_seconds=0).load('ENQ-1')
    assert loaded.to_dict() == snapshot.to_dict()


def test_load_missing_is_none(storage):
    assert PricingSync(storage).load('nope') is None


@pytest.mark.parametrize("raw", ["{not json", '{"version": 1}', '"just a string"', '{"snapshot": {"base_cost": 1}}'])
def test_corrupt_slot_loads_as_none_and_is_cleared(storage, raw):
    sync = PricingSync(storage, debounce_seconds=0)
    storage.set_item(sync.key_for('ENQ-1'), raw)

    assert sync.load('ENQ-1') is None
    assert storage.get_item(sync.key_for('ENQ-1')) is None


def test_rapid_saves_are_coalesced(engine, storage):
    sync = PricingSync(storage, debounce_seconds=60)
    received = []
    sync.subscribe('ENQ-1', received.append)

    for pct in (10, 11, 12, 13):
        sync.save('ENQ-1', price(engine, pct=pct))

    assert sync.has_pending('ENQ-1')
    assert sync.load('ENQ-1') is None
    assert sync.latest('ENQ-1').markup.amount == pytest.approx(130)

    sync.flush('ENQ-1')

    assert len(received) == 1
    assert received[0].markup.amount == pytest.approx(130)
    assert sync.current_version('ENQ-1') == 1
    assert not sync.has_pending('ENQ-1')


def test_debounced_save_commits_after_quiet_period(engine, storage):
    sync = PricingSync(storage, debounce_seconds=0.05)
    committed = threading.Event()
    sync.subscribe('ENQ-1', lambda snapshot: committed.set())

    sync.save('ENQ-1', price(engine))

    assert committed.wait(timeout=5)
    assert sync.load('ENQ-1') is not None
    sync.close()


def test_stale_sequence_is_dropped(engine, storage):
    sync = PricingSync(storage, debounce_seconds=0)
    older = sync.next_sequence('ENQ-1')
    newer = sync.next_sequence('ENQ-1')

    assert sync.save('ENQ-1', price(engine, pct=20), sequence=newer) is True
    # The slower, older computation finishes last
    assert sync.save('ENQ-1', price(engine, pct=5), sequence=older) is False

    assert sync.load('ENQ-1').markup.amount == pytest.approx(200)
    assert sync.current_version('ENQ-1') == 1


def test_pricing_service_takes_sequence_before_calculating(engine, storage):
    sync = PricingSync(storage, debounce_seconds=0)
    service = PricingService(engine, sync)

    service.recalculate(PricingRequest(enquiry_id='ENQ-1', base_cost_override=100))
    service.recalculate(PricingRequest(enquiry_id='ENQ-1', base_cost_override=200))

    assert service.get('ENQ-1').base_cost == 200
    assert service.version('ENQ-1') == 2


def test_version_counter_rejects_stale_writes(engine, storage):
    sync = PricingSync(storage, debounce_seconds=0)
    sync.save('ENQ-1', price(engine, pct=10))
    assert sync.current_version('ENQ-1') == 1

    sync.save('ENQ-1', price(engine, pct=12), expected_version=1)
    assert sync.current_version('ENQ-1') == 2

    with pytest.raises(StaleSnapshotError) as exc_info:
        sync.save('ENQ-1', price(engine, pct=14), expected_version=1)

    assert exc_info.value.current_version == 2
    assert sync.load('ENQ-1').markup.amount == pytest.approx(120)


def test_versioned_save_replaces_pending_write(engine, storage):
    sync = PricingSync(storage, debounce_seconds=60)
    sync.save('ENQ-1', price(engine, pct=10))
    sync.save('ENQ-1', price(engine, pct=30), expected_version=0)

    assert not sync.has_pending('ENQ-1')
    assert sync.load('ENQ-1').markup.amount == pytest.approx(300)
    sync.close()
    assert sync.current_version('ENQ-1') == 1


def test_unversioned_saves_are_last_write_wins(engine, storage):
    sync = PricingSync(storage, debounce_seconds=0)
    sync.save('ENQ-1', price(engine, pct=10))
    sync.save('ENQ-1', price(engine, pct=5))
    assert sync.load('ENQ-1').markup.amount == pytest.approx(50)


def test_multiple_subscribers_and_unsubscribe(engine, storage):
    sync = PricingSync(storage, debounce_seconds=0)
    first, second = [], []
    unsubscribe_first = sync.subscribe('ENQ-1', first.append)
    sync.subscribe('ENQ-1', second.append)
    sync.subscribe('ENQ-2', lambda s: pytest.fail("wrong enquiry notified"))

    sync.save('ENQ-1', price(engine))
    unsubscribe_first()
    sync.save('ENQ-1', price(engine, pct=20))

    assert len(first) == 1
    assert len(second) == 2
    assert sync.subscriber_count('ENQ-1') == 1


def test_failing_subscriber_does_not_block_others(engine, storage):
    sync = PricingSync(storage, debounce_seconds=0)
    received = []

    def broken(snapshot):
        raise RuntimeError("listener crashed")

    sync.subscribe('ENQ-1', broken)
    sync.subscribe('ENQ-1', received.append)
    sync.save('ENQ-1', price(engine))

    assert len(received) == 1


def test_debouncer_flush_and_cancel():
    calls = []
    debouncer = Debouncer(60, lambda: calls.append(1))

    debouncer.trigger()
    debouncer.trigger()
    assert debouncer.pending
    debouncer.flush()
    assert calls == [1]

    debouncer.trigger()
    debouncer.cancel()
    debouncer.flush()
    assert calls == [1]
    assert not debouncer.pending
