import unittest

from core.redemption.phone import (PROVIDER_PREFIXES, detect_provider,
                                   digits_only, to_international, to_local)


class TestProviderDetection(unittest.TestCase):
    def test_every_prefix_in_every_format(self):
        for provider, prefixes in PROVIDER_PREFIXES.items():
            for prefix in prefixes:
                subscriber = prefix[1:] + "1234567"
                for number in ("0" + subscriber, "233" + subscriber, "+233" + subscriber):
                    with self.subTest(number=number):
                        self.assertEqual(detect_provider(number), provider)

    def test_all_prefixes_are_covered(self):
        self.assertEqual(
            sorted(prefix for prefixes in PROVIDER_PREFIXES.values() for prefix in prefixes),
            sorted(["024", "054", "055", "059", "056", "020", "050", "027", "057", "026", "028", "029"])
        )

    def test_separators_and_bare_format(self):
        self.assertEqual(detect_provider("+233 55 123 4567"), "mtn")
        self.assertEqual(detect_provider("233201234567"), "vodafone")
        self.assertEqual(detect_provider("571234567"), "airteltigo")

    def test_unknown_prefix(self):
        self.assertIsNone(detect_provider("0311234567"))
        self.assertIsNone(detect_provider(""))
        self.assertIsNone(detect_provider("05"))


class TestPhoneFormats(unittest.TestCase):
    def test_digits_only(self):
        self.assertEqual(digits_only("+233 (55) 123-4567"), "233551234567")
        self.assertEqual(digits_only(None), "")

    def test_to_local(self):
        self.assertEqual(to_local("+233551234567"), "0551234567")
        self.assertEqual(to_local("551234567"), "0551234567")
        self.assertEqual(to_local("0551234567"), "0551234567")
        self.assertEqual(to_local(""), "")

    def test_round_trip(self):
        for number in ("0551234567", "+233551234567", "233551234567", "551234567"):
            self.assertEqual(to_international(number), "233551234567")
            self.assertEqual(to_local(to_international(number)), "0551234567")


if __name__ == "__main__":
    unittest.main()
