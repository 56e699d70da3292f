"""
Tests for observer registration and change dispatch
"""

import logging
import threading

import pytest

from pets_provider.app.services.notification_service import ChangeNotifier

COLLECTION = "content://com.example.android.pets/pets"
ITEM_1 = COLLECTION + "/1"
ITEM_2 = COLLECTION + "/2"


@pytest.fixture
def notifier():
    n = ChangeNotifier()
    try:
        yield n
    finally:
        n.shutdown()


class TestObserverSelection:
    """Which observers a change reaches"""

    def test_exact_match(self, notifier, recorder):
        notifier.register(ITEM_1, recorder)
        assert notifier.notify_change(ITEM_1) == 1
        assert notifier.drain(5)
        assert recorder.calls == [ITEM_1]

    def test_collection_change_reaches_item_observers(self, notifier, recorder):
        notifier.register(ITEM_1, recorder, notify_for_descendants=False)
        notifier.notify_change(COLLECTION)
        notifier.drain(5)
        assert recorder.calls == [COLLECTION]

    def test_item_change_reaches_collection_observer_with_descendants(self, notifier, recorder):
        notifier.register(COLLECTION, recorder)
        notifier.notify_change(ITEM_1)
        notifier.drain(5)
        assert recorder.calls == [ITEM_1]

    def test_item_change_skips_collection_observer_without_descendants(self, notifier, recorder):
        notifier.register(COLLECTION, recorder, notify_for_descendants=False)
        assert notifier.notify_change(ITEM_1) == 0

    def test_sibling_items_are_independent(self, notifier, recorder):
        notifier.register(ITEM_2, recorder)
        assert notifier.notify_change(ITEM_1) == 0

    def test_unregister(self, notifier, recorder):
        handle = notifier.register(COLLECTION, recorder)
        assert notifier.unregister(handle)
        assert not notifier.unregister(handle)
        assert notifier.notify_change(COLLECTION) == 0

    def test_callback_must_be_callable(self, notifier):
        with pytest.raises(TypeError):
            notifier.register(COLLECTION, "not callable")


class TestDispatch:
    """Dispatch never blocks or fails the notifying thread"""

    def test_notify_does_not_wait_for_observer(self, notifier):
        release = threading.Event()
        finished = threading.Event()

        def slow(locator):
            release.wait(5)
            finished.set()

        notifier.register(COLLECTION, slow)
        notifier.notify_change(COLLECTION)
        assert not finished.is_set()
        assert not notifier.drain(0.05)
        release.set()
        assert notifier.drain(5)
        assert finished.is_set()

    def test_observer_failure_is_logged_not_raised(self, notifier, recorder, caplog):
        def broken(locator):
            raise RuntimeError("observer exploded")

        notifier.register(COLLECTION, broken)
        notifier.register(COLLECTION, recorder)
        with caplog.at_level(logging.ERROR):
            assert notifier.notify_change(COLLECTION) == 2
            assert notifier.drain(5)
        assert recorder.calls == [COLLECTION]
        assert "observer exploded" in caplog.text

    def test_delivery_order_preserved(self, notifier, recorder):
        notifier.register(COLLECTION, recorder)
        for i in range(20):
            notifier.notify_change(f"{COLLECTION}/{i}")
        notifier.drain(5)
        assert recorder.calls == [f"{COLLECTION}/{i}" for i in range(20)]

    def test_notify_after_shutdown_restarts_executor(self, notifier, recorder):
        notifier.register(COLLECTION, recorder)
        notifier.shutdown()
        notifier.notify_change(COLLECTION)
        notifier.drain(5)
        assert recorder.calls == [COLLECTION]

    def test_drain_with_nothing_pending(self, notifier):
        assert notifier.drain(0)
