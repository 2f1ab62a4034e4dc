"""Tests for per-key locks with bounded waits."""

import threading

import pytest
from shared.errors import LockTimeout
from shared.store.locks import KeyedLocks


@pytest.fixture()
def locks():
    return KeyedLocks("test", default_timeout=0.5)


def _hold_in_thread(locks, key):
    """Hold ``key`` from another thread until the returned event is set."""
    acquired = threading.Event()
    release = threading.Event()

    def holder():
        with locks.hold(key):
            acquired.set()
            release.wait(timeout=5)

    thread = threading.Thread(target=holder)
    thread.start()
    acquired.wait(timeout=5)
    return release, thread


class TestHold:
    def test_reentrant_in_same_thread(self, locks):
        with locks.hold("a"):
            with locks.hold("a"):
                pass

    def test_times_out_when_held_elsewhere(self, locks):
        release, thread = _hold_in_thread(locks, "a")
        try:
            with pytest.raises(LockTimeout) as exc:
                with locks.hold("a", timeout=0.05):
                    pass
            assert exc.value.key == "test:a"
        finally:
            release.set()
            thread.join()

    def test_different_keys_do_not_contend(self, locks):
        release, thread = _hold_in_thread(locks, "a")
        try:
            with locks.hold("b", timeout=0.05):
                pass
        finally:
            release.set()
            thread.join()

    def test_lock_released_after_exception(self, locks):
        with pytest.raises(ValueError):
            with locks.hold("a"):
                raise ValueError("boom")

        release, thread = _hold_in_thread(locks, "a")
        release.set()
        thread.join()


class TestHoldMany:
    def test_takes_all_keys(self, locks):
        with locks.hold_many(["b", "a", "a"]):
            acquired = []

            def contender():
                try:
                    with locks.hold("a", timeout=0.05):
                        acquired.append("a")
                except LockTimeout:
                    acquired.append("timeout")

            thread = threading.Thread(target=contender)
            thread.start()
            thread.join()
            assert acquired == ["timeout"]

    def test_partial_acquisition_is_rolled_back(self, locks):
        release, thread = _hold_in_thread(locks, "b")
        try:
            with pytest.raises(LockTimeout):
                with locks.hold_many(["a", "b"], timeout=0.05):
                    pass
        finally:
            release.set()
            thread.join()

        # "a" must have been released when "b" timed out
        other, holder = _hold_in_thread(locks, "a")
        other.set()
        holder.join()

    def test_time_left_bounds_each_wait(self, locks):
        offered = iter([5.0, 0.05])
        asked = []

        def time_left():
            asked.append(True)
            return next(offered)

        release, thread = _hold_in_thread(locks, "b")
        try:
            with pytest.raises(LockTimeout) as exc:
                with locks.hold_many(["b", "a"], timeout=10.0, time_left=time_left):
                    pass
            assert exc.value.key == "test:b"
            assert exc.value.detail["timeout"] == 0.05
        finally:
            release.set()
            thread.join()
        assert len(asked) == 2
