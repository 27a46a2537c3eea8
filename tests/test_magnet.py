import unittest

from torfinder.core.magnet import build_magnet, extract_info_hash

HASH = "ABCDEF0123456789ABCDEF0123456789ABCDEF01"


class TestExtractInfoHash(unittest.TestCase):
    def test_hex_hash_is_lowercased(self):
        magnet = f"magnet:?xt=urn:btih:{HASH}&dn=Ubuntu"
        self.assertEqual(extract_info_hash(magnet), HASH.lower())

    def test_case_and_param_order_do_not_matter(self):
        upper = f"magnet:?dn=Ubuntu&tr=udp%3A%2F%2Ft.test%3A80&xt=urn:btih:{HASH}"
        lower = f"magnet:?xt=urn:btih:{HASH.lower()}&dn=Ubuntu"
        self.assertEqual(extract_info_hash(upper), extract_info_hash(lower))
        again = extract_info_hash(build_magnet(extract_info_hash(upper)))
        self.assertEqual(again, extract_info_hash(upper))

    def test_urn_prefix_is_case_insensitive(self):
        self.assertEqual(extract_info_hash(f"MAGNET:?xt=URN:BTIH:{HASH}"), HASH.lower())

    def test_base32_hash_matches_hex_form(self):
        # Same 20 bytes as HASH, base32 encoded
        import base64
        import binascii
        b32 = base64.b32encode(binascii.unhexlify(HASH)).decode("ascii")
        self.assertEqual(len(b32), 32)
        self.assertEqual(extract_info_hash(f"magnet:?xt=urn:btih:{b32}"), HASH.lower())

    def test_malformed_inputs_return_none(self):
        samples = [
            "",
            "magnet:",
            "magnet:?",
            "magnet:?dn=NoTopic",
            "magnet:?xt=urn:btmh:1220" + "a" * 64,
            "magnet:?xt=urn:btih:nothex",
            "magnet:?xt=urn:btih:" + "g" * 40,
            "http://example.com/?xt=urn:btih:" + HASH,
            "magnet:?xt=urn:btih:%ZZ%",
            "magnet:?&&&==",
            None,
            12345,
            {"magnet": HASH},
        ]
        for sample in samples:
            with self.subTest(sample=sample):
                self.assertIsNone(extract_info_hash(sample))

    def test_first_btih_topic_wins(self):
        magnet = f"magnet:?xt=urn:btmh:1220{'b' * 64}&xt=urn:btih:{HASH}"
        self.assertEqual(extract_info_hash(magnet), HASH.lower())


class TestBuildMagnet(unittest.TestCase):
    def test_round_trips_through_extractor(self):
        magnet = build_magnet(HASH, "Some Title & More")
        self.assertTrue(magnet.startswith(f"magnet:?xt=urn:btih:{HASH}"))
        self.assertIn("dn=Some%20Title%20%26%20More", magnet)
        self.assertEqual(extract_info_hash(magnet), HASH.lower())

    def test_no_trackers(self):
        self.assertEqual(build_magnet(HASH, trackers=[]), f"magnet:?xt=urn:btih:{HASH}")


if __name__ == "__main__":
    unittest.main()
