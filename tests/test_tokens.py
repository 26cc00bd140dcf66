"""Tests for the token classifier and the directive parser."""

import unittest
import sys
import os
import textwrap

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from src.preprocessor.tokens import UNTOKENIZED, WHITESPACE, SourceToken, tokenize_source
from src.preprocessor.directives import Directive, parse_directive, strip_wrapping


class TestTokenizeSource(unittest.TestCase):

    def test_tokens_reassemble_source(self):
        source = textwrap.dedent("""\
            def f(a,
                  b):   # trailing comment
                x = a + \\
                    b
                return '''doc
            string'''


            #define X "1"
            y = f(1, 2)   \t
        """)
        tokens = list(tokenize_source(source))
        self.assertEqual(''.join(token.text for token in tokens), source)

    def test_gaps_are_whitespace_tokens(self):
        tokens = list(tokenize_source("x  =  1\n"))
        kinds = [token.kind for token in tokens]
        self.assertEqual(kinds, ['NAME', WHITESPACE, 'OP', WHITESPACE, 'NUMBER', 'NEWLINE'])

    def test_comment_is_directive_candidate(self):
        tokens = list(tokenize_source('x = 1  #ifdef X\n'))
        candidates = [token for token in tokens if token.is_directive_candidate]
        self.assertEqual(len(candidates), 1)
        self.assertEqual(candidates[0].text, '#ifdef X')
        self.assertEqual(candidates[0].line, 1)

    def test_string_is_not_directive_candidate(self):
        tokens = list(tokenize_source('s = "#define X"\n'))
        self.assertFalse(any(token.is_directive_candidate for token in tokens))

    def test_line_numbers(self):
        tokens = list(tokenize_source("a = 1\n\n#endif\n"))
        comment = next(token for token in tokens if token.kind == 'COMMENT')
        self.assertEqual(comment.line, 3)

    def test_source_token_str(self):
        self.assertEqual(str(SourceToken('NAME', 'x', 4)), "SourceToken(NAME, 'x', line 4)")

    def test_unterminated_string_is_passed_through(self):
        source = 'x = 1\ny = """never closed\n#endif\n'
        with self.assertLogs('src.preprocessor.tokens', level='WARNING'):
            tokens = list(tokenize_source(source))
        self.assertEqual(''.join(token.text for token in tokens), source)
        self.assertEqual(tokens[-1].kind, UNTOKENIZED)
        self.assertIn('#endif', tokens[-1].text)
        self.assertFalse(any(token.is_directive_candidate for token in tokens))


class TestParseDirective(unittest.TestCase):

    def test_name_and_payload(self):
        self.assertEqual(parse_directive('#define X "1"'), Directive('define', 'X "1"'))

    def test_no_payload(self):
        self.assertEqual(parse_directive('#else'), Directive('else', None))

    def test_name_is_lower_cased(self):
        self.assertEqual(parse_directive('#IfDef FLAG').name, 'ifdef')

    def test_surrounding_whitespace_is_stripped(self):
        directive = parse_directive('  #endif   ')
        self.assertEqual(directive, Directive('endif', None))

    def test_payload_keeps_inner_spacing(self):
        self.assertEqual(parse_directive('#ifdef  FLAG').payload, ' FLAG')

    def test_dispatch_key(self):
        self.assertEqual(parse_directive('#include "a.py"').dispatch_key, 'include_directive')

    def test_plain_comment_has_empty_name(self):
        self.assertEqual(parse_directive('# just a note').name, '')

    def test_strip_wrapping(self):
        self.assertEqual(strip_wrapping('"child.txt"'), 'child.txt')
        self.assertEqual(strip_wrapping('<x>'), 'x')
        self.assertEqual(strip_wrapping(''), '')


if __name__ == '__main__':
    unittest.main()
