from arbitrary_precision_engine import ArbitraryPrecisionCalculatorEngine
from calculator_engine import CalculatorEngine, EvaluationContext, format_number
from calculator_errors import (
	EvalError,
	NegativeOperandError,
	NonFiniteOperandError,
	NonIntegerOperandError,
	ParseError,
)
from formula_evaluator import AngleMode
from regression_support import assert_group, close, raises, report
import math
import threading


def formatter_checks():
	checks: list[tuple[str, bool]] = []
	expected_actual: list[tuple[str, str, str]] = []

	for value, expected in (
		(123.456, "123.456"),
		(1e-10, "1.00000000e-10"),
		(-1.5e-12, "-1.50000000e-12"),
		(1e12, "1.00000000e+12"),
		(-2.5e15, "-2.50000000e+15"),
		(1.23456789e300, "1.23456789e+300"),
		(math.inf, "Infinity"),
		(-math.inf, "-Infinity"),
		(math.nan, "NaN"),
		(100.0, "100"),
		(0.0, "0"),
		(-0.0, "0"),
		(0.1 + 0.2, "0.3"),
		(1 / 3, "0.333333333333"),
		(2 / 3, "0.666666666667"),
		(-7.25, "-7.25"),
		(1e-9, "0.000000001"),
		(5e-8, "0.00000005"),
		(123456789012.345, "123456789012"),
		(999999999999.9, "1.00000000e+12"),
		(9.9999999999999e-10, "0.000000001"),
		(4e-10, "4.00000000e-10"),
	):
		expected_actual.append((f"format {value!r}", expected, format_number(value)))

	engine = CalculatorEngine()
	ctx = EvaluationContext()
	for value in (
		123.456,
		1 / 3,
		2 / 3,
		-7.25,
		1e-10,
		-1.5e-12,
		6.02214076e23,
		987654321.123456,
		0.000123,
		5e-8,
		100000000000.5,
		math.pi * 1e20,
		999999999999.9,
		9.9999999999999e-10,
		5e-324,
		2.5e-320,
	):
		shown = engine.format(value)
		checks.append((
			f"{shown} re-enters unchanged",
			engine.format(engine.preview(shown, ctx)) == shown,
		))

	return checks, expected_actual


def engine_checks():
	checks: list[tuple[str, bool]] = []
	expected_actual: list[tuple[str, str, str]] = []
	engine = CalculatorEngine()
	ctx = EvaluationContext()

	checks.append(("context defaults", (ctx.last_result, ctx.memory, ctx.angle_mode) == (0.0, 0.0, AngleMode.DEGREES)))

	checks.append(("preview value", engine.preview("2+2", ctx) == 4.0))
	checks.append(("preview leaves last_result", ctx.last_result == 0.0))
	checks.append(("preview leaves history", len(engine.history) == 0))
	expected_actual.append(("preview_text", "6", engine.preview_text("2×3", ctx)))
	expected_actual.append(("preview_text blank", "0", engine.preview_text("", ctx)))
	expected_actual.append(("preview_text pending", "…", engine.preview_text("(2+3", ctx)))
	expected_actual.append(("preview_text pending on domain error", "…", engine.preview_text("2.5!", ctx)))
	expected_actual.append(("preview_text infinity", "Infinity", engine.preview_text("1/0", ctx)))
	deep = "(" * 300 + "1" + ")" * 300
	expected_actual.append(("preview_text pending on deep nesting", "…", engine.preview_text(deep, ctx)))
	expected_actual.append(("preview_text long unary run", "-1", engine.preview_text("-" * 1201 + "1", ctx)))
	expected_actual.append(("preview_text long power chain", "Infinity", engine.preview_text("2" + "^2" * 1200, ctx)))

	checks.append(("commit value", engine.commit("6×7", ctx) == 42.0))
	checks.append(("commit sets last_result", ctx.last_result == 42.0))
	checks.append(("commit records history", list(engine.history) == [("6×7", "42")]))
	checks.append(("ANS chains", engine.commit("ANS+1", ctx) == 43.0))
	checks.append(("ANS is captured by value", engine.preview("ANS", ctx) == 43.0))

	checks.append(("failed commit raises", raises(lambda: engine.commit("(2+3", ctx), ParseError)))
	checks.append(("failed commit keeps last_result", ctx.last_result == 43.0))
	checks.append(("failed commit keeps history", len(engine.history) == 2))
	checks.append(("domain error commit raises", raises(lambda: engine.commit("(0-3)!", ctx), NegativeOperandError)))
	checks.append(("domain error keeps last_result", ctx.last_result == 43.0))
	checks.append(("deep nesting commit raises", raises(lambda: engine.commit(deep, ctx), ParseError)))
	checks.append(("deep nesting keeps last_result", ctx.last_result == 43.0))

	checks.append(("1/0 commits", engine.commit("1/0", ctx) == math.inf))
	checks.append(("infinite last_result feeds ANS", engine.preview("ANS-1", ctx) == math.inf))
	expected_actual.append(("1/0 history text", "Infinity", engine.history[0][1]))

	engine.clear_history()
	for i in range(CalculatorEngine.HISTORY_LIMIT + 2):
		engine.commit(f"{i}+0", ctx)
	checks.append(("history is bounded", len(engine.history) == CalculatorEngine.HISTORY_LIMIT))
	checks.append(("history is newest first", engine.history[0] == ("19+0", "19")))

	other = EvaluationContext()
	engine.commit("7", other)
	checks.append(("history is shared by contexts of one engine", engine.history[0] == ("7", "7")))
	checks.append(("a separate engine keeps its own history", len(CalculatorEngine().history) == 0))

	return checks, expected_actual


def memory_checks():
	checks: list[tuple[str, bool]] = []
	expected_actual: list[tuple[str, str, str]] = []
	engine = CalculatorEngine()
	ctx = EvaluationContext()

	engine.memory_add("2+3", ctx)
	expected_actual.append(("M+ 2+3", "5", engine.memory_recall(ctx)))
	engine.memory_subtract("1", ctx)
	expected_actual.append(("M- 1", "4", engine.memory_recall(ctx)))
	engine.memory_add("", ctx)
	expected_actual.append(("M+ blank", "4", engine.memory_recall(ctx)))
	checks.append(("M+ with bad input raises", raises(lambda: engine.memory_add("(", ctx), EvalError)))
	expected_actual.append(("M+ failure keeps memory", "4", engine.memory_recall(ctx)))
	checks.append(("memory does not touch last_result", ctx.last_result == 0.0))
	engine.memory_clear(ctx)
	expected_actual.append(("MC", "0", engine.memory_recall(ctx)))

	engine.memory_add("1/3", ctx)
	expected_actual.append(("MR is formatted", "0.333333333333", engine.memory_recall(ctx)))

	return checks, expected_actual


def context_checks():
	checks: list[tuple[str, bool]] = []
	expected_actual: list[tuple[str, str, str]] = []
	engine = CalculatorEngine()
	ctx = EvaluationContext()

	checks.append(("sin(90) in degrees", close(engine.preview("sin(90)", ctx), 1.0)))
	engine.set_angle_mode(ctx, "rad")
	checks.append(("mode switched to radians", ctx.angle_mode == AngleMode.RADIANS))
	checks.append(("sin(pi/2) in radians", close(engine.preview("sin(1.5707963267948966)", ctx), 1.0)))
	engine.set_angle_mode(ctx, AngleMode.DEGREES)
	checks.append(("mode switched back", ctx.angle_mode == AngleMode.DEGREES))
	checks.append(("unknown mode rejected", raises(lambda: engine.set_angle_mode(ctx, "grad"), ValueError)))

	other = EvaluationContext()
	engine.commit("5", ctx)
	checks.append(("contexts are independent", other.last_result == 0.0))

	value = engine.randomize(ctx)
	checks.append(("rand stores last_result", 0.0 <= value < 1.0 and ctx.last_result == value))

	expected_actual.append(("toggle_sign facade", "12+-34", engine.toggle_sign("12+34")))

	# Un commit espera a que se libere el contexto.
	ctx.lock.acquire()
	worker = threading.Thread(target=engine.commit, args=("2+2", ctx))
	worker.start()
	worker.join(timeout=0.2)
	blocked = worker.is_alive() and ctx.last_result == value
	ctx.lock.release()
	worker.join(timeout=5)
	checks.append(("commit waits for the context lock", blocked))
	checks.append(("commit completes after release", ctx.last_result == 4.0))

	return checks, expected_actual


def arbitrary_precision_checks():
	checks: list[tuple[str, bool]] = []
	expected_actual: list[tuple[str, str, str]] = []
	engine = ArbitraryPrecisionCalculatorEngine(initial_digits=30, precision_step=20)
	ctx = EvaluationContext()

	checks.append(("1/3 as float", close(engine.preview("1/3", ctx), 1 / 3)))
	checks.append(("(2+3)! with mpmath", engine.preview("(2+3)!", ctx) == 120.0))
	checks.append(("sin(90) with mpmath", close(engine.preview("sin(90)", ctx), 1.0)))
	checks.append(("1/0 with mpmath", engine.preview("1/0", ctx) == math.inf))
	checks.append(("-1/0 with mpmath", engine.preview("-1/0", ctx) == -math.inf))
	checks.append(("sqrt(-1) with mpmath", math.isnan(engine.preview("sqrt(-1)", ctx))))
	checks.append(("ln(0) with mpmath", engine.preview("ln(0)", ctx) == -math.inf))
	checks.append(("10^400 rounds to inf", engine.preview("10^400", ctx) == math.inf))
	checks.append(("cbrt(-8) with mpmath", close(engine.preview("cbrt(-8)", ctx), -2.0)))
	checks.append(("factorial errors propagate", raises(lambda: engine.preview("(0-1)!", ctx), NegativeOperandError)))
	checks.append(("commit sets last_result", engine.commit("2^0.5", ctx) == math.sqrt(2)))

	checks.append(("no previous expression", not engine.can_expand_precision()))
	checks.append(("more precision needs a calculation", raises(
		lambda: engine.request_more_precision(ctx), EvalError)))
	first = engine.evaluate_digits("1/3", ctx)
	expected_actual.append(("1/3 with 30 digits", "0." + "3" * 30, first))
	more = engine.request_more_precision(ctx)
	expected_actual.append(("1/3 with 50 digits", "0." + "3" * 50, more))
	checks.append(("working digits grew", engine.working_digits == 50))
	expected_actual.append(("non-finite digits", "Infinity", engine.evaluate_digits("1/0", ctx)))
	expected_actual.append(("25! keeps every digit", "15511210043330985984000000.0", engine.evaluate_digits("25!", ctx)))
	checks.append(("near-integer factorial operand is rejected", raises(
		lambda: engine.evaluate_digits("(3+10^-30)!", ctx), NonIntegerOperandError)))
	checks.append(("171! with mpmath is inf", engine.preview("171!", ctx) == math.inf))
	checks.append(("(1/0)! with mpmath is rejected", raises(
		lambda: engine.preview("(1/0)!", ctx), NonFiniteOperandError)))

	return checks, expected_actual


GROUPS = (
	formatter_checks,
	engine_checks,
	memory_checks,
	context_checks,
	arbitrary_precision_checks,
)


def test_formatter():
	assert_group(formatter_checks)


def test_engine():
	assert_group(engine_checks)


def test_memory():
	assert_group(memory_checks)


def test_context():
	assert_group(context_checks)


def test_arbitrary_precision():
	assert_group(arbitrary_precision_checks)


if __name__ == "__main__":
	# Uso rápido:
	#   python regression_engine_checks.py
	report(GROUPS)
