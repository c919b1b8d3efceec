"""Tests for SubscriptionRegistry."""

import pytest

from valstore import WILDCARD, SubscriptionRegistry


def _cb(state):
    pass


def _other(state):
    pass


class TestSubscribe:
    def test_one_entry_per_path_sharing_id(self):
        reg = SubscriptionRegistry()
        sub_id = reg.subscribe(_cb, ["foo", "bar"])
        entries = list(reg)
        assert [e.path for e in entries] == ["foo", "bar"]
        assert {e.id for e in entries} == {sub_id}

    def test_no_paths_is_wildcard(self):
        reg = SubscriptionRegistry()
        reg.subscribe(_cb)
        assert [e.path for e in reg] == [WILDCARD]

    def test_ids_differ(self):
        reg = SubscriptionRegistry()
        assert reg.subscribe(_cb, "a") != reg.subscribe(_cb, "a")

    def test_rejects_non_callable(self):
        reg = SubscriptionRegistry()
        with pytest.raises(TypeError):
            reg.subscribe("foo", "bar")

    def test_sync_flag_recorded(self):
        reg = SubscriptionRegistry()
        reg.subscribe(_cb, "a", sync=True)
        assert list(reg)[0].sync is True


class TestUnsubscribe:
    def test_by_id(self):
        reg = SubscriptionRegistry()
        sub_id = reg.subscribe(_cb, ["a", "b"])
        reg.subscribe(_other, "a")
        assert reg.unsubscribe(sub_id) is True
        assert [e.callback for e in reg] == [_other]

    def test_by_path(self):
        reg = SubscriptionRegistry()
        reg.subscribe(_cb, "foo")
        reg.subscribe(_other, "foo")
        reg.subscribe(_other, "bar")
        reg.unsubscribe("foo")
        assert [e.path for e in reg] == ["bar"]

    def test_by_callback(self):
        reg = SubscriptionRegistry()
        reg.subscribe(_cb, ["a", "b"])
        reg.subscribe(_other, "a")
        reg.unsubscribe(_cb)
        assert [e.callback for e in reg] == [_other]

    def test_by_callback_and_path(self):
        reg = SubscriptionRegistry()
        reg.subscribe(_cb, "foo")
        reg.subscribe(_other, "foo")
        reg.unsubscribe(_cb, "foo")
        assert [e.callback for e in reg] == [_other]

    def test_bound_methods_match(self):
        class Widget:
            def refresh(self, state):
                pass

        w = Widget()
        reg = SubscriptionRegistry()
        reg.subscribe(w.refresh, "a")
        assert reg.unsubscribe(w.refresh) is True
        assert len(reg) == 0

    def test_no_selector_clears_all(self):
        reg = SubscriptionRegistry()
        reg.subscribe(_cb, "a")
        reg.subscribe(_other)
        assert reg.unsubscribe() is True
        assert len(reg) == 0

    def test_nothing_matched(self):
        reg = SubscriptionRegistry()
        reg.subscribe(_cb, "a")
        assert reg.unsubscribe("nope") is False
        assert len(reg) == 1


class TestMatch:
    def test_ancestor_watcher_matches_descendant_write(self):
        reg = SubscriptionRegistry()
        reg.subscribe(_cb, "cart")
        assert len(reg.match("cart.items")) == 1

    def test_descendant_watcher_ignores_ancestor_write(self):
        reg = SubscriptionRegistry()
        reg.subscribe(_cb, "cart.items.0")
        assert reg.match("cart") == []

    def test_sibling_does_not_match(self):
        reg = SubscriptionRegistry()
        reg.subscribe(_cb, "a.b")
        assert reg.match("a.c") == []

    def test_prefix_is_per_segment(self):
        reg = SubscriptionRegistry()
        reg.subscribe(_cb, "car")
        assert reg.match("cart.items") == []

    def test_wildcard_matches_everything(self):
        reg = SubscriptionRegistry()
        reg.subscribe(_cb)
        assert len(reg.match("anything.at.all")) == 1

    def test_each_entry_once_per_pass(self):
        reg = SubscriptionRegistry()
        reg.subscribe(_cb, "a")
        matched = reg.match(["a.b", "a.c", "a.b", "a"])
        assert len(matched) == 1

    def test_registration_order(self):
        reg = SubscriptionRegistry()
        reg.subscribe(_other, "x")
        reg.subscribe(_cb)
        assert [e.callback for e in reg.match("x")] == [_other, _cb]
