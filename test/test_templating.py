#!/usr/bin/env python3
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import unittest

from gotify_bridge.errors import TemplateRenderError, UnsupportedFunctionError
from gotify_bridge.models import InboundAlert, LabelSet
from gotify_bridge.templating import find_unsupported_function, render_template


def _alert(**kwargs):
    kwargs.setdefault('labels', LabelSet({'instance': 'node-01:9100', 'job': 'node'}))
    kwargs.setdefault('annotations', LabelSet({'summary': 'x'}))
    kwargs.setdefault('status', 'firing')
    return InboundAlert(**kwargs)


class TestUnsupportedFunctions(unittest.TestCase):
    def test_query_rejected_with_and_without_space(self):
        for text in ('{{ query "up" }}', '{{query "up"}}', '{{- query "up" }}'):
            with self.subTest(text=text):
                with self.assertRaises(UnsupportedFunctionError) as ctx:
                    render_template(text, _alert())
                self.assertEqual(ctx.exception.function, 'query')
                self.assertIn('not supported', str(ctx.exception))
                self.assertIn('query', str(ctx.exception))

    def test_every_denylisted_name(self):
        for name in ('query', 'first', 'label', 'value', 'strvalue', 'safeHtml', 'sortByLabel'):
            with self.subTest(name=name):
                self.assertEqual(find_unsupported_function('{{ %s x }}' % name), name)
                self.assertEqual(find_unsupported_function('{{%s x}}' % name), name)

    def test_values_helper_is_not_mistaken_for_value(self):
        self.assertIsNone(find_unsupported_function('{{ values() | length }}'))
        self.assertEqual(render_template('{{ values() | length }}', _alert()), '0')

    def test_denylisted_filter_found_in_template_tree(self):
        with self.assertRaises(UnsupportedFunctionError) as ctx:
            render_template('{{ labels.values() | first }}', _alert())
        self.assertEqual(ctx.exception.function, 'first')

    def test_unsupported_error_is_a_render_error(self):
        with self.assertRaises(TemplateRenderError):
            render_template('{{ sortByLabel x }}', _alert())


class TestRenderTemplate(unittest.TestCase):
    def test_plain_text(self):
        self.assertEqual(render_template('Disk full', _alert()), 'Disk full')

    def test_alert_fields(self):
        alert = _alert(generator_url='http://prom/graph', starts_at='2024-01-01T00:00:00Z')
        text = render_template('{{ status }} {{ labels.instance }} {{ annotations.summary }} {{ generatorURL }}', alert)
        self.assertEqual(text, 'firing node-01:9100 x http://prom/graph')

    def test_missing_label_renders_empty(self):
        self.assertEqual(render_template('[{{ labels.nope }}]', _alert()), '[]')

    def test_values_and_humanize(self):
        alert = _alert(value_string="[ metric='cpu' labels={instance=a} value=93.4567 ]")
        text = render_template(
            '{% for v in values() %}{{ v.metric }}@{{ v.labels.instance }}={{ Humanize(v.value) }}{% endfor %}',
            alert,
        )
        self.assertEqual(text, 'cpu@a=93.46')

    def test_humanize_via_alert(self):
        self.assertEqual(render_template('{{ alert.humanize(5.0) }}', _alert()), '5')

    def test_prometheus_helpers(self):
        self.assertEqual(render_template('{{ labels.instance | stripPort }}', _alert()), 'node-01')
        self.assertEqual(render_template('{{ humanize(1234567) }}', _alert()), '1.235M')

    def test_external_url_and_path_prefix(self):
        text = render_template('{{ externalURL }} {{ pathPrefix() }}', _alert(), 'http://am.local/alertmanager')
        self.assertEqual(text, 'http://am.local/alertmanager /alertmanager')

    def test_external_url_absent(self):
        self.assertEqual(render_template('[{{ externalURL }}][{{ pathPrefix() }}]', _alert()), '[][]')

    def test_unknown_variable_fails(self):
        with self.assertRaises(TemplateRenderError) as ctx:
            render_template('{{ nope }}', _alert())
        self.assertTrue(str(ctx.exception).startswith('error in Template:'))

    def test_syntax_error_fails(self):
        with self.assertRaises(TemplateRenderError):
            render_template('{{ labels.instance ', _alert())

    def test_helper_error_fails_without_propagating(self):
        with self.assertRaises(TemplateRenderError) as ctx:
            render_template('{{ humanize("abc") }}', _alert())
        self.assertIn('ValueError', str(ctx.exception))

    def test_sandbox_blocks_private_attributes(self):
        with self.assertRaises(TemplateRenderError):
            render_template('{{ alert.__class__ }}', _alert())

    def test_template_cannot_mutate_alert(self):
        alert = _alert(annotations=LabelSet({"summary": "x", "description": "Usage is high"}))
        with self.assertRaises(TemplateRenderError):
            render_template("T{{ annotations.pop('description') }}", alert)
        with self.assertRaises(TemplateRenderError):
            render_template("{{ labels.update({'job': 'x'}) }}", alert)
        self.assertEqual(alert.annotations, {"summary": "x", "description": "Usage is high"})
        self.assertEqual(alert.labels["job"], "node")

    def test_label_named_like_dict_method(self):
        alert = _alert(labels=LabelSet({"values": "v1", "items": "i1", "keys": "k1"}))
        self.assertEqual(render_template("{{ labels.values }}-{{ labels.items }}-{{ labels.keys }}", alert),
                         "v1-i1-k1")

    def test_render_is_independent_between_calls(self):
        first = render_template('{% set x = labels.job %}{{ x }}', _alert())
        second = render_template('{{ x is defined }}', _alert())
        self.assertEqual(first, 'node')
        self.assertEqual(second, 'False')


if __name__ == '__main__':
    unittest.main()
