from calculator_engine import CalculatorEngine, EvaluationContext
from expression_editor import (
	append_factorial,
	delete_last,
	insert_text,
	percent,
	raise_to,
	reciprocal,
	scientific_exponent,
	toggle_sign,
)
from main import handle_line
from regression_support import assert_group, report


def toggle_sign_checks():
	checks: list[tuple[str, bool]] = []
	expected_actual: list[tuple[str, str, str]] = []

	for raw, expected in (
		("12+34", "12+-34"),
		("12+-34", "12+34"),
		("5", "-5"),
		("-5", "5"),
		("3.5", "-3.5"),
		("-3.5", "3.5"),
		("2×3", "2×-3"),
		("2×-3", "2×3"),
		("2÷-3", "2÷3"),
		("2^-3", "2^3"),
		("(-4", "(4"),
		("sin(30)", "sin(-30)"),
		("12-34", "12--34"),
		("7+8)", "7+-8)"),
		("π", "-π"),
		("-π", "π"),
		("", ""),
	):
		expected_actual.append((f"toggle_sign {raw!r}", expected, toggle_sign(raw)))

	checks.append(("toggle twice restores", toggle_sign(toggle_sign("1+2×3")) == "1+2×3"))

	return checks, expected_actual


def editing_checks():
	checks: list[tuple[str, bool]] = []
	expected_actual: list[tuple[str, str, str]] = []

	for label, expected, actual in (
		("operator replaces operator", "2×", insert_text("2+", "×")),
		("minus after operator is unary", "2×-", insert_text("2×", "-")),
		("minus after minus is replaced", "2-", insert_text("2-", "-")),
		("plus after minus replaces it", "2+", insert_text("2-", "+")),
		("digit appends", "2+3", insert_text("2+", "3")),
		("function appends", "2+sin(", insert_text("2+", "sin(")),
		("operator on empty", "-", insert_text("", "-")),
		("delete last", "12", delete_last("123")),
		("delete on empty", "", delete_last("")),
		("reciprocal", "1/(4)", reciprocal("4")),
		("reciprocal of empty", "1/(0)", reciprocal("")),
		("square", "(2+1)^2", raise_to("2+1", 2)),
		("cube of empty", "", raise_to("", 3)),
		("factorial", "5!", append_factorial("5")),
		("factorial of empty", "", append_factorial("")),
		("percent", "50/100", percent("50")),
		("exp", "3*10^", scientific_exponent("3")),
		("exp of empty", "1*10^", scientific_exponent("")),
	):
		expected_actual.append((label, expected, actual))

	engine = CalculatorEngine()
	ctx = EvaluationContext()
	checks.append(("percent evaluates", engine.preview(percent("50"), ctx) == 0.5))
	checks.append(("exp evaluates", engine.preview(scientific_exponent("3") + "2", ctx) == 300.0))
	checks.append(("square evaluates", engine.preview(raise_to("2+1", 2), ctx) == 9.0))
	checks.append(("reciprocal evaluates", engine.preview(reciprocal("4"), ctx) == 0.25))
	checks.append(("factorial evaluates", engine.preview(append_factorial("5"), ctx) == 120.0))

	return checks, expected_actual


def console_checks():
	checks: list[tuple[str, bool]] = []
	expected_actual: list[tuple[str, str, str]] = []
	engine = CalculatorEngine()
	ctx = EvaluationContext()

	expected_actual.append(("commit line", "4", handle_line(engine, ctx, "2+2")))
	expected_actual.append(("ANS line", "8", handle_line(engine, ctx, "ANS×2")))
	expected_actual.append(("rad", "RAD", handle_line(engine, ctx, "rad")))
	expected_actual.append(("deg", "DEG", handle_line(engine, ctx, "deg")))
	expected_actual.append(("m+", "M: 5", handle_line(engine, ctx, "m+ 2+3")))
	expected_actual.append(("m-", "M: 3", handle_line(engine, ctx, "m- 2")))
	expected_actual.append(("mr", "3", handle_line(engine, ctx, "mr")))
	expected_actual.append(("mc", "M: 0", handle_line(engine, ctx, "mc")))
	expected_actual.append(("neg", "12+-34", handle_line(engine, ctx, "neg 12+34")))
	expected_actual.append(("division by zero", "Infinity", handle_line(engine, ctx, "1/0")))
	checks.append(("error line", handle_line(engine, ctx, "(2+3").startswith("Error: ")))
	checks.append(("history line", "2+2 = 4" in handle_line(engine, ctx, "history")))

	return checks, expected_actual


GROUPS = (
	toggle_sign_checks,
	editing_checks,
	console_checks,
)


def test_toggle_sign():
	assert_group(toggle_sign_checks)


def test_editing():
	assert_group(editing_checks)


def test_console():
	assert_group(console_checks)


if __name__ == "__main__":
	# Uso rápido:
	#   python regression_editor_checks.py
	report(GROUPS)
