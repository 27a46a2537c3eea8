import json
import unittest
from unittest.mock import Mock

from torfinder.client.credentials import MemoryCredentialStore
from torfinder.client.session import FilterMode, SearchSession, SessionState, cache_label, filter_results
from torfinder.core.errors import AuthError, UpstreamError
from torfinder.core.event_bus import EventBus, Events
from torfinder.models.search_result import SearchResult
from torfinder.services.torbox_client import UpstreamResponse

H1, H2, H3 = "1" * 40, "2" * 40, "3" * 40


def _results():
    return [
        SearchResult(title="cached", magnet=f"magnet:?xt=urn:btih:{H1}", source="s"),
        SearchResult(title="uncached", magnet=f"magnet:?xt=urn:btih:{H2}", source="s"),
        SearchResult(title="unknown", magnet=f"magnet:?xt=urn:btih:{H3}", source="s"),
        SearchResult(title="no hash", magnet="magnet:?dn=nohash", source="s"),
    ]


def _api(results=None, cache_payload=None, cache_status=200, search_error=None):
    api = Mock()
    if search_error is not None:
        api.search.side_effect = search_error
    else:
        api.search.return_value = _results() if results is None else results
    payload = {H1: {"cached": True}, H2: {"cached": False}} if cache_payload is None else cache_payload
    api.check_cached.return_value = UpstreamResponse(cache_status, json.dumps(payload))
    api.create_torrent.return_value = UpstreamResponse(200, '{"success": true}')
    return api


class TestFilterFunctions(unittest.TestCase):
    def test_filter_modes(self):
        results = _results()
        cache_map = {H1: True, H2: False}
        self.assertEqual(len(filter_results(results, cache_map, "all")), 4)
        self.assertEqual([r.title for r in filter_results(results, cache_map, "cached")], ["cached"])
        self.assertEqual(
            [r.title for r in filter_results(results, cache_map, FilterMode.UNCACHED)],
            ["uncached", "unknown", "no hash"],
        )

    def test_labels_tell_unknown_from_not_cached(self):
        results = _results()
        cache_map = {H1: True, H2: False}
        self.assertEqual([cache_label(r, cache_map) for r in results], ["cached", "not cached", "unknown", "hash unknown"])


class TestSearchSession(unittest.TestCase):
    def test_search_without_credential_skips_cache_check(self):
        api = _api()
        session = SearchSession(api)
        self.assertTrue(session.search("ubuntu", "torbox", 10))
        api.search.assert_called_once_with("ubuntu", "torbox", 10)
        api.check_cached.assert_not_called()
        self.assertEqual(session.state, SessionState.RESULTS_READY)
        self.assertEqual(session.cache_map, {})
        session.set_filter("cached")
        self.assertEqual(session.visible(), [])

    def test_search_then_cache_check(self):
        api = _api()
        bus = EventBus()
        seen = []
        for event in (Events.SEARCH_STARTED, Events.SEARCH_COMPLETED, Events.CACHE_CHECK_STARTED, Events.CACHE_CHECK_COMPLETED):
            bus.subscribe(event, lambda data, e=event: seen.append(e))
        session = SearchSession(api, MemoryCredentialStore("tok"), event_bus=bus)
        self.assertTrue(session.search("ubuntu"))
        api.check_cached.assert_called_once_with([H1, H2, H3], "tok")
        self.assertEqual(session.cache_map, {H1: True, H2: False})
        self.assertEqual(session.state, SessionState.RESULTS_READY)
        self.assertEqual(seen, [
            Events.SEARCH_STARTED,
            Events.SEARCH_COMPLETED,
            Events.CACHE_CHECK_STARTED,
            Events.CACHE_CHECK_COMPLETED,
        ])
        session.set_filter(FilterMode.CACHED)
        self.assertEqual([r.title for r in session.visible()], ["cached"])
        self.assertEqual(session.counts(), {"all": 4, "cached": 1, "uncached": 3})

    def test_failed_cache_check_keeps_results(self):
        api = _api(cache_status=401, cache_payload={"error": "BAD_TOKEN"})
        session = SearchSession(api, MemoryCredentialStore("tok"))
        session.search("ubuntu")
        self.assertEqual(len(session.results), 4)
        self.assertEqual(session.cache_map, {})
        self.assertEqual(session.state, SessionState.RESULTS_READY)
        self.assertIn("Cache check failed", session.message)
        self.assertEqual(len(session.visible()), 4)
        session.set_filter("cached")
        self.assertEqual(session.visible(), [])

    def test_failed_search_resets_results(self):
        session = SearchSession(_api())
        session.search("first")
        session.api.search.side_effect = UpstreamError("TorBox search failed (500)")
        self.assertTrue(session.search("second"))
        self.assertEqual(session.state, SessionState.SEARCH_FAILED)
        self.assertEqual(session.results, [])
        self.assertIn("TorBox search failed", session.message)

    def test_unexpected_search_error_releases_the_session(self):
        session = SearchSession(_api(search_error=TypeError("boom")))
        self.assertTrue(session.search("a"))
        self.assertEqual(session.state, SessionState.SEARCH_FAILED)
        self.assertFalse(session.busy)
        self.assertIn("boom", session.message)

        session.api.search.side_effect = None
        session.api.search.return_value = _results()
        self.assertTrue(session.search("b"))
        self.assertEqual(session.state, SessionState.RESULTS_READY)
        self.assertEqual(len(session.results), 4)

    def test_unexpected_cache_error_keeps_results(self):
        api = _api()
        api.check_cached.side_effect = TypeError("bad payload")
        session = SearchSession(api, MemoryCredentialStore("tok"))
        self.assertTrue(session.search("ubuntu"))
        self.assertEqual(session.state, SessionState.RESULTS_READY)
        self.assertEqual(len(session.results), 4)
        self.assertEqual(session.cache_map, {})
        self.assertIn("Cache check failed", session.message)

    def test_single_flight_guard(self):
        session = SearchSession(_api())
        generation = session.begin_search()
        self.assertIsNotNone(generation)
        self.assertIsNone(session.begin_search())
        self.assertFalse(session.search("again"))
        session.api.search.assert_not_called()

    def test_stale_search_cannot_overwrite_newer_one(self):
        session = SearchSession(_api())
        stale = session.begin_search()
        session.cancel()
        self.assertEqual(session.state, SessionState.IDLE)
        fresh = session.begin_search()
        self.assertNotEqual(stale, fresh)
        newer = [SearchResult(title="newer", magnet=f"magnet:?xt=urn:btih:{H1}", source="s")]
        self.assertTrue(session.apply_results(fresh, newer))
        self.assertFalse(session.apply_results(stale, _results()))
        self.assertFalse(session.apply_cache_map(stale, {H1: False}))
        self.assertEqual([r.title for r in session.results], ["newer"])

    def test_new_search_clears_previous_cache_map(self):
        session = SearchSession(_api(), MemoryCredentialStore("tok"))
        session.search("one")
        self.assertTrue(session.cache_map)
        session.set_credential(None)
        session.search("two")
        self.assertEqual(session.cache_map, {})

    def test_reset_returns_to_idle(self):
        session = SearchSession(_api())
        session.search("ubuntu")
        session.reset()
        self.assertEqual(session.state, SessionState.IDLE)
        self.assertEqual(session.results, [])

    def test_submit_requires_credential(self):
        session = SearchSession(_api())
        with self.assertRaises(AuthError):
            session.submit(f"magnet:?xt=urn:btih:{H1}")
        session.api.create_torrent.assert_not_called()

    def test_submit_reports_upstream(self):
        api = _api()
        session = SearchSession(api, MemoryCredentialStore("tok"))
        response = session.submit(f"magnet:?xt=urn:btih:{H1}")
        self.assertTrue(response.ok)
        self.assertEqual(session.message, "Added to TorBox!")
        api.create_torrent.return_value = UpstreamResponse(403, '{"error": "BAD_TOKEN"}')
        response = session.submit(f"magnet:?xt=urn:btih:{H1}")
        self.assertEqual(response.status_code, 403)
        self.assertIn("BAD_TOKEN", session.message)


class TestCredentialRemember(unittest.TestCase):
    def test_remember_persists_to_store(self):
        store = MemoryCredentialStore()
        session = SearchSession(_api(), store)
        session.set_credential("secret")
        self.assertEqual(store.get(), "secret")

    def test_forget_clears_store_but_keeps_session_key(self):
        store = MemoryCredentialStore("secret")
        session = SearchSession(_api(), store)
        self.assertEqual(session.credential, "secret")
        session.set_remember(False)
        self.assertIsNone(store.get())
        self.assertEqual(session.credential, "secret")
        session.set_credential("other")
        self.assertIsNone(store.get())


if __name__ == "__main__":
    unittest.main()
