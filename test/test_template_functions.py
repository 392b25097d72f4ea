#!/usr/bin/env python3
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import unittest
from datetime import datetime, timezone

from gotify_bridge import template_functions as fn


class TestHumanizeFunctions(unittest.TestCase):
    def test_humanize(self):
        self.assertEqual(fn.humanize(0), "0")
        self.assertEqual(fn.humanize(1234567), "1.235M")
        self.assertEqual(fn.humanize(0.001234), "1.234m")
        self.assertEqual(fn.humanize("2500"), "2.5k")
        self.assertEqual(fn.humanize(float('nan')), "NaN")

    def test_humanize_rejects_non_numbers(self):
        with self.assertRaises(TypeError):
            fn.humanize(True)
        with self.assertRaises(TypeError):
            fn.humanize([1])
        with self.assertRaises(ValueError):
            fn.humanize("abc")

    def test_humanize1024(self):
        self.assertEqual(fn.humanize1024(2048), "2ki")
        self.assertEqual(fn.humanize1024(1), "1")
        self.assertEqual(fn.humanize1024(3 * 1024 ** 3), "3Gi")

    def test_humanize_duration(self):
        self.assertEqual(fn.humanize_duration(0), "0s")
        self.assertEqual(fn.humanize_duration(1.5), "1.5s")
        self.assertEqual(fn.humanize_duration(3661), "1h 1m 1s")
        self.assertEqual(fn.humanize_duration(90061), "1d 1h 1m 1s")
        self.assertEqual(fn.humanize_duration(-61), "-1m 1s")
        self.assertEqual(fn.humanize_duration(0.5), "500ms")

    def test_humanize_percentage(self):
        self.assertEqual(fn.humanize_percentage(0.1234), "12.34%")

    def test_humanize_timestamp(self):
        self.assertEqual(fn.humanize_timestamp(1), "1970-01-01 00:00:01 +0000 UTC")
        self.assertEqual(fn.humanize_timestamp(1.5), "1970-01-01 00:00:01.5 +0000 UTC")

    def test_to_time(self):
        self.assertEqual(fn.to_time(60), datetime(1970, 1, 1, 0, 1, tzinfo=timezone.utc))
        with self.assertRaises(ValueError):
            fn.to_time(float('inf'))
        with self.assertRaises(ValueError):
            fn.to_time(1e19)


class TestParseDuration(unittest.TestCase):
    def test_valid(self):
        self.assertEqual(fn.parse_duration("0"), 0.0)
        self.assertEqual(fn.parse_duration("1h30m"), 5400.0)
        self.assertEqual(fn.parse_duration("500ms"), 0.5)
        self.assertEqual(fn.parse_duration("1w2d"), 9 * 86400.0)

    def test_invalid(self):
        for text in ("", "abc", "1.5h", "30m1h"):
            with self.subTest(text=text):
                with self.assertRaises(ValueError):
                    fn.parse_duration(text)


class TestStringFunctions(unittest.TestCase):
    def test_re_replace_all_group_references(self):
        self.assertEqual(fn.re_replace_all(r"(\w+):(\d+)", "$2/$1", "host:9100"), "9100/host")
        self.assertEqual(fn.re_replace_all(r"(?P<h>\w+):\d+", "${h}", "host:9100"), "host")
        self.assertEqual(fn.re_replace_all(r"a", "$$", "banana"), "b$n$n$")

    def test_match(self):
        self.assertTrue(fn.match("^node", "node-01"))
        self.assertFalse(fn.match("^db", "node-01"))

    def test_case(self):
        self.assertEqual(fn.title("disk full"), "Disk Full")
        self.assertEqual(fn.to_upper("abc"), "ABC")
        self.assertEqual(fn.to_lower("ABC"), "abc")

    def test_links(self):
        self.assertEqual(fn.graph_link("up == 0"), "/graph?g0.expr=up+%3D%3D+0&g0.tab=0")
        self.assertEqual(fn.table_link("up"), "/graph?g0.expr=up&g0.tab=1")

    def test_strip_port(self):
        self.assertEqual(fn.strip_port("node-01:9100"), "node-01")
        self.assertEqual(fn.strip_port("[::1]:9100"), "::1")
        self.assertEqual(fn.strip_port("node-01"), "node-01")

    def test_strip_domain(self):
        self.assertEqual(fn.strip_domain("node-01.example.com:9100"), "node-01:9100")
        self.assertEqual(fn.strip_domain("node-01.example.com"), "node-01")
        self.assertEqual(fn.strip_domain("10.0.0.1:9100"), "10.0.0.1:9100")

    def test_args(self):
        self.assertEqual(fn.args("a", 1), {"arg0": "a", "arg1": 1})

    def test_path_prefix(self):
        self.assertEqual(fn.url_functions("http://am.local/prefix")['pathPrefix'](), "/prefix")
        self.assertEqual(fn.url_functions(None)['pathPrefix'](), "")


if __name__ == '__main__':
    unittest.main()
