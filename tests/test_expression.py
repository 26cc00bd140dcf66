"""Tests for #if expression evaluation, the macro table and ambient constants."""

import unittest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from src.preprocessor.constants import MappingConstants, NO_CONSTANTS, host_constants
from src.preprocessor.errors import NoRedefineError
from src.preprocessor.expression import ExpressionError, evaluate, is_truthy
from src.preprocessor.macros import Macro, MacroTable


def resolver(**names):
    def resolve(name):
        return names[name]
    return resolve


class TestEvaluate(unittest.TestCase):

    def test_arithmetic(self):
        self.assertEqual(evaluate("1 + 2 * 3", resolver()), 7)
        self.assertEqual(evaluate("(1 << 4) | 1", resolver()), 17)
        self.assertEqual(evaluate("7 // 2 % 2", resolver()), 1)

    def test_names(self):
        self.assertEqual(evaluate("LEVEL * 2", resolver(LEVEL=4)), 8)

    def test_chained_comparison(self):
        self.assertTrue(is_truthy("1 < X <= 3", resolver(X=3)))
        self.assertFalse(is_truthy("1 < X <= 3", resolver(X=4)))

    def test_membership(self):
        self.assertTrue(is_truthy("PLATFORM in ('linux', 'darwin')", resolver(PLATFORM='linux')))
        self.assertTrue(is_truthy("PLATFORM not in ['win32']", resolver(PLATFORM='linux')))

    def test_boolean_short_circuit(self):
        # MISSING is never looked up
        self.assertFalse(is_truthy("False and MISSING", resolver()))
        self.assertTrue(is_truthy("True or MISSING", resolver()))

    def test_conditional_expression(self):
        self.assertEqual(evaluate("'a' if X else 'b'", resolver(X=0)), 'b')

    def test_defined(self):
        self.assertTrue(is_truthy("defined(A)", resolver(A=0)))
        self.assertFalse(is_truthy("defined(B)", resolver(A=0)))

    def test_undefined_name(self):
        with self.assertRaises(ExpressionError):
            evaluate("MISSING", resolver())

    def test_syntax_error(self):
        with self.assertRaises(ExpressionError):
            evaluate("1 +", resolver())

    def test_calls_are_rejected(self):
        with self.assertRaises(ExpressionError):
            evaluate("len('abc')", resolver())

    def test_attributes_are_rejected(self):
        with self.assertRaises(ExpressionError):
            evaluate("os.sep", resolver(os=os))

    def test_lambda_is_rejected(self):
        with self.assertRaises(ExpressionError):
            evaluate("(lambda: 1)()", resolver())

    def test_division_by_zero(self):
        with self.assertRaises(ExpressionError):
            evaluate("1 / 0", resolver())

    def test_huge_power_is_rejected(self):
        with self.assertRaises(ExpressionError):
            evaluate("2 ** 100000", resolver())

    def test_nested_huge_power_is_rejected(self):
        with self.assertRaises(ExpressionError):
            evaluate("((10 ** 4096) ** 4096) ** 4096", resolver())

    def test_large_but_bounded_power(self):
        self.assertTrue(is_truthy("10 ** 4096 > 0", resolver()))
        self.assertEqual(evaluate("(-2) ** 3", resolver()), -8)
        self.assertEqual(evaluate("2 ** -1", resolver()), 0.5)

    def test_huge_shift_is_rejected(self):
        with self.assertRaises(ExpressionError):
            evaluate("1 << 10 ** 6", resolver())
        self.assertEqual(evaluate("0 << 10 ** 6", resolver()), 0)

    def test_huge_product_is_rejected(self):
        with self.assertRaises(ExpressionError):
            evaluate("(2 ** 30000) * (2 ** 30000) * (2 ** 30000)", resolver())
        self.assertEqual(evaluate("(2 ** 30000) * 2 == 2 ** 30001", resolver()), True)

    def test_huge_sequence_repeat_is_rejected(self):
        with self.assertRaises(ExpressionError):
            evaluate("'x' * 10 ** 10", resolver())
        with self.assertRaises(ExpressionError):
            evaluate("10 ** 10 * (1, 2)", resolver())
        self.assertEqual(evaluate("'ab' * 3", resolver()), 'ababab')

    def test_string_formatting_is_rejected(self):
        with self.assertRaises(ExpressionError):
            evaluate("'%0999999999d' % 1", resolver())
        self.assertEqual(evaluate("7 % 4", resolver()), 3)

    def test_type_error(self):
        with self.assertRaises(ExpressionError):
            evaluate("'a' - 1", resolver())


class TestMacroTable(unittest.TestCase):

    def test_define_and_value(self):
        table = MacroTable()
        table.define('X', '1')
        self.assertIn('X', table)
        self.assertEqual(table['X'].value, '1')

    def test_redefine_raises(self):
        table = MacroTable()
        table.define('X', '1')
        with self.assertRaises(NoRedefineError) as ctx:
            table.define('X', '1')
        self.assertEqual(ctx.exception.name, 'X')
        self.assertEqual(table['X'].value, '1')

    def test_seed(self):
        table = MacroTable()
        table.seed({'A': '1', 'B': 'two'})
        self.assertEqual(sorted(table), ['A', 'B'])

    def test_literal(self):
        self.assertEqual(Macro('N', '3').literal(), 3)
        self.assertEqual(Macro('F', '1.5').literal(), 1.5)
        self.assertEqual(Macro('S', "'quoted'").literal(), 'quoted')
        self.assertEqual(Macro('T', 'True').literal(), True)
        self.assertEqual(Macro('W', 'plain word').literal(), 'plain word')
        self.assertEqual(Macro('E', '').literal(), '')


class TestConstants(unittest.TestCase):

    def test_mapping_constants(self):
        constants = MappingConstants({'FEATURE': 2})
        self.assertTrue(constants.is_defined('FEATURE'))
        self.assertFalse(constants.is_defined('OTHER'))
        self.assertEqual(constants.value('FEATURE'), 2)
        with self.assertRaises(KeyError):
            constants.value('OTHER')

    def test_no_constants(self):
        self.assertFalse(NO_CONSTANTS.is_defined('PLATFORM'))

    def test_host_constants(self):
        constants = host_constants()
        self.assertEqual(constants.value('PLATFORM'), sys.platform)
        self.assertEqual(constants.value('PYTHON_MAJOR'), sys.version_info.major)
        self.assertEqual(constants.value('PYTHON_VERSION_HEX'), sys.hexversion)
        self.assertTrue(constants.is_defined('IMPLEMENTATION'))


if __name__ == '__main__':
    unittest.main()
