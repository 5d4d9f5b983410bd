"""Unit tests for the PR status cache."""

from agentdeck.core.pr_cache import PRCache, PRInfo


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_missing_entry_is_not_found():
    assert PRCache().get_pr("s1") == (None, False)


def test_entry_expires_after_ttl():
    clock = FakeClock()
    cache = PRCache(ttl_s=60, clock=clock)
    info = PRInfo(number=7, state="OPEN")
    cache.set_pr("s1", info)

    clock.now += 59
    assert cache.get_pr("s1") == (info, True)

    clock.now += 1
    assert cache.get_pr("s1") == (None, False)


def test_cached_absence_is_found():
    cache = PRCache()
    cache.set_pr("s1", None)
    assert cache.get_pr("s1") == (None, True)


def test_invalidate():
    cache = PRCache()
    cache.set_pr("s1", PRInfo(number=1, state="MERGED"))
    cache.set_pr("s2", PRInfo(number=2, state="CLOSED"))

    cache.invalidate("s1")
    assert cache.get_pr("s1") == (None, False)
    assert cache.get_pr("s2")[1] is True

    cache.invalidate_all()
    assert cache.get_pr("s2") == (None, False)


def test_badge_states():
    assert PRInfo(number=1, state="OPEN").has_badge
    assert PRInfo(number=1, state="merged").has_badge
    assert not PRInfo(number=1, state="DRAFT").has_badge
