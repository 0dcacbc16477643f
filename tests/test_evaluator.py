"""Unit tests for the expression evaluator."""

import unittest

from evaluator import (
    ExpressionError,
    TokenKind,
    classify_token,
    evaluate_tokens,
    format_fixed,
    format_result,
    is_valid_expression,
    normalize_expression,
    render_expression,
    tokenize,
)


class TestIsValidExpression(unittest.TestCase):
    """Tests for the lexical validator."""

    def test_simple_expressions(self) -> None:
        self.assertTrue(is_valid_expression("1 + 2 + 3 + 4"))
        self.assertTrue(is_valid_expression("(1 + 2) * (3 + 4)"))
        self.assertTrue(is_valid_expression("8 / (3 - 8/3)"))

    def test_unbalanced_parentheses(self) -> None:
        self.assertFalse(is_valid_expression("(1 + 2"))
        self.assertFalse(is_valid_expression("1 + 2)"))
        self.assertFalse(is_valid_expression(")1 + 2("))

    def test_invalid_characters(self) -> None:
        self.assertFalse(is_valid_expression("1 @ 2"))
        self.assertFalse(is_valid_expression("2 ** x"))
        self.assertFalse(is_valid_expression("__import__('os')"))

    def test_empty_string_is_invalid(self) -> None:
        self.assertFalse(is_valid_expression(""))

    def test_operator_adjacency_not_checked(self) -> None:
        """The validator is lexical only; the parser rejects this."""
        self.assertTrue(is_valid_expression("1 + + 2"))


class TestEvaluateTokens(unittest.TestCase):
    """Tests for evaluate_tokens()."""

    def test_simple_expressions(self) -> None:
        self.assertEqual(evaluate_tokens(["1", "+", "2"]), 3)
        self.assertEqual(evaluate_tokens(["4", "*", "5"]), 20)
        self.assertEqual(evaluate_tokens(["8", "/", "2"]), 4)

    def test_parentheses(self) -> None:
        tokens = ["(", "1", "+", "2", ")", "*", "3"]
        self.assertEqual(evaluate_tokens(tokens), 9)

    def test_nested_parentheses_reach_24(self) -> None:
        tokens = ["8", "/", "(", "3", "-", "(", "8", "/", "3", ")", ")"]
        result = evaluate_tokens(tokens)
        self.assertIsNotNone(result)
        self.assertAlmostEqual(result, 24, delta=0.001)

    def test_precedence(self) -> None:
        self.assertEqual(evaluate_tokens(["2", "+", "3", "*", "4"]), 14)
        self.assertEqual(evaluate_tokens(["8", "-", "6", "/", "2"]), 5)

    def test_left_associative(self) -> None:
        self.assertEqual(evaluate_tokens(["8", "-", "3", "-", "2"]), 3)
        self.assertEqual(evaluate_tokens(["8", "/", "4", "/", "2"]), 1)

    def test_float_division(self) -> None:
        self.assertAlmostEqual(evaluate_tokens(["1", "/", "3"]), 1 / 3)

    def test_division_by_zero(self) -> None:
        self.assertIsNone(evaluate_tokens(["1", "/", "0"]))
        self.assertIsNone(
            evaluate_tokens(["4", "/", "(", "2", "-", "2", ")"])
        )

    def test_consecutive_operators(self) -> None:
        self.assertIsNone(evaluate_tokens(["1", "+", "+", "2"]))
        self.assertIsNone(evaluate_tokens(["1", "-", "-", "2"]))

    def test_empty(self) -> None:
        self.assertIsNone(evaluate_tokens([]))

    def test_incomplete_expressions(self) -> None:
        self.assertIsNone(evaluate_tokens(["1", "+"]))
        self.assertIsNone(evaluate_tokens(["(", "1", "+", "2"]))
        self.assertIsNone(evaluate_tokens(["("]))

    def test_leading_unary_minus(self) -> None:
        self.assertEqual(evaluate_tokens(["-", "3", "+", "5"]), 2)
        self.assertEqual(evaluate_tokens(["-", "3", "*", "2"]), -6)
        self.assertEqual(
            evaluate_tokens(["2", "*", "(", "-", "3", "+", "5", ")"]), 4,
        )

    def test_alternate_glyphs(self) -> None:
        self.assertEqual(evaluate_tokens(["4", "×", "6"]), 24)
        self.assertEqual(evaluate_tokens(["48", "÷", "2"]), 24)

    def test_garbage_tokens(self) -> None:
        self.assertIsNone(evaluate_tokens(["1", "@", "2"]))
        self.assertIsNone(evaluate_tokens(["1", "2"]))

    def test_deep_nesting_returns_none(self) -> None:
        tokens = ["("] * 5000 + ["1"] + [")"] * 5000
        self.assertIsNone(evaluate_tokens(tokens))


class TestTokenize(unittest.TestCase):
    """Tests for tokenize() and normalize_expression()."""

    def test_tokenize_without_spaces(self) -> None:
        self.assertEqual(
            tokenize("8/(3-8/3)"),
            ["8", "/", "(", "3", "-", "8", "/", "3", ")"],
        )

    def test_tokenize_rejects_unknown_input(self) -> None:
        with self.assertRaises(ExpressionError):
            tokenize("1 + a")

    def test_tokenize_decimals_and_spacing(self) -> None:
        self.assertEqual(tokenize(" 1.5 * 4 "), ["1.5", "*", "4"])
        self.assertEqual(tokenize(""), [])

    def test_normalize_glyphs(self) -> None:
        self.assertEqual(normalize_expression("3×8÷2−1"), "3*8/2-1")
        self.assertEqual(normalize_expression("3x8"), "3*8")
        self.assertEqual(
            tokenize(normalize_expression("8÷(3−8÷3)")),
            ["8", "/", "(", "3", "-", "8", "/", "3", ")"],
        )


class TestRendering(unittest.TestCase):
    """Tests for render_expression(), format_result() and classify_token()."""

    def test_render_joins_with_spaces(self) -> None:
        self.assertEqual(
            render_expression(["(", "1", "+", "2", ")", "*", "3"]),
            "( 1 + 2 ) * 3",
        )

    def test_render_canonicalises_glyphs(self) -> None:
        self.assertEqual(render_expression(["4", "×", "6", "÷", "2"]), "4 * 6 / 2")

    def test_format_result(self) -> None:
        self.assertEqual(format_result(None), "-")
        self.assertEqual(format_result(24.0), "24")
        self.assertEqual(format_result(8 / 3), "2.67")
        self.assertEqual(format_result(2.5), "2.50")
        self.assertEqual(format_result(-0.0001), "0")

    def test_format_fixed_has_no_negative_zero(self) -> None:
        self.assertEqual(format_fixed(-0.0), "0.00")
        self.assertEqual(format_fixed(-0.001), "0.00")
        self.assertEqual(format_fixed(-1.5), "-1.50")
        self.assertEqual(format_fixed(24), "24.00")

    def test_classify_token(self) -> None:
        self.assertEqual(classify_token("7"), TokenKind.NUMBER)
        self.assertEqual(classify_token("*"), TokenKind.OPERATOR)
        self.assertEqual(classify_token("×"), TokenKind.OPERATOR)
        self.assertEqual(classify_token("("), TokenKind.PARENTHESIS)
        self.assertEqual(classify_token("@"), TokenKind.UNKNOWN)


if __name__ == "__main__":
    unittest.main()
