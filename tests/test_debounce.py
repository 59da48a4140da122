from crypto_analysis.core.debounce import SearchDebouncer
from crypto_analysis.core.scheduler import CooperativeScheduler


def _debouncer(clock):
    scheduler = CooperativeScheduler(clock)
    fired = []
    return scheduler, fired, SearchDebouncer(scheduler, fired.append, delay_seconds=1.0, min_length=3)


def test_burst_within_idle_window_fires_once_with_latest_query(clock):
    scheduler, fired, debouncer = _debouncer(clock)
    for text in ["e", "et", "eth", "ethe", "ether"]:
        debouncer.query_changed(text)
        clock.advance(0.3)
        scheduler.run_due()
    assert fired == []
    clock.advance(1.0)
    scheduler.run_due()
    assert fired == ["ether"]


def test_changes_separated_by_idle_window_fire_separately(clock):
    scheduler, fired, debouncer = _debouncer(clock)
    debouncer.query_changed("sol")
    clock.advance(1.0)
    scheduler.run_due()
    debouncer.query_changed("solana")
    clock.advance(1.0)
    scheduler.run_due()
    assert fired == ["sol", "solana"]


def test_cancel_drops_pending_fire(clock):
    scheduler, fired, debouncer = _debouncer(clock)
    debouncer.query_changed("doge")
    assert debouncer.pending
    debouncer.cancel()
    clock.advance(5.0)
    scheduler.run_due()
    assert fired == []
    assert not debouncer.pending


def test_length_gate():
    scheduler = CooperativeScheduler()
    debouncer = SearchDebouncer(scheduler, lambda q: None, min_length=3)
    assert not debouncer.should_lookup("bt")
    assert debouncer.should_lookup("btc")
