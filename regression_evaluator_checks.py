from calculator_errors import (
	FactorialDomainError,
	InvalidCharacterError,
	NegativeOperandError,
	NonFiniteOperandError,
	NonIntegerOperandError,
	ParseError,
)
from formula_evaluator import (
	MAX_NESTING,
	AngleMode,
	BinaryOp,
	FormulaEvaluator,
	Negate,
	Number,
	factorial,
	parse,
	tokenize,
)
from formula_normalizer import normalize, validate_characters
from regression_support import assert_group, close, raises, report
import math


_EVALUATOR = FormulaEvaluator()


def _eval(expr: str, last_result: float = 0.0, mode: AngleMode = AngleMode.DEGREES) -> float:
	return _EVALUATOR.evaluate(expr, last_result, mode)


def normalizer_checks():
	checks: list[tuple[str, bool]] = []
	expected_actual: list[tuple[str, str, str]] = []

	for raw, expected in (
		("3×4÷2", "3*4/2"),
		("7−2", "7-2"),
		("π", "PI"),
		("e", "E"),
		("5!", "fact(5)"),
		("(2+3)!", "fact((2+3))"),
		("2.5!", "fact(2.5)"),
		("2+3!", "2+fact(3)"),
		("3!!", "fact(fact(3))"),
		("sin(30)!", "fact(SIN(30))"),
		("2^3", "2**3"),
		("sin(30)+cos(0)", "SIN(30)+COS(0)"),
		("asin(1)+atan(1)", "ASIN(1)+ATAN(1)"),
		("sqrt(cbrt(8))", "SQRT(CBRT(8))"),
		("ln(e)+log(10)+abs(1)", "LN(E)+LOG(10)+ABS(1)"),
		("xsin(1)", "xsin(1)"),
		("1.00000000e-10", "(1.00000000*10**(-10))"),
		("1.5e+12", "(1.5*10**(12))"),
		("4.94065646e-324", "(4.94065646*10**(-300)*10**(-24))"),
	):
		expected_actual.append((f"normalize {raw}", expected, normalize(raw)))

	expected_actual.append(("ANS by value", "(7.0)*2", normalize("ANS×2", 7.0)))
	expected_actual.append(("negative ANS", "(-5.0)+1", normalize("ANS+1", -5.0)))
	expected_actual.append(("infinite ANS", "(1/0)", normalize("ANS", math.inf)))
	expected_actual.append(("NaN ANS", "(0/0)", normalize("ANS", math.nan)))
	expected_actual.append(("ANS factorial", "fact((3.0))", normalize("ANS!", 3.0)))
	expected_actual.append((
		"large ANS stays positional",
		"(1000000000000000000000)",
		normalize("ANS", 1e21),
	))

	checks.append(("validator accepts canonical text", not raises(
		lambda: validate_characters("SIN(30) + fact(5)*2/1.5, x_y"), InvalidCharacterError)))
	checks.append(("validator rejects '$'", raises(
		lambda: validate_characters("2$3"), InvalidCharacterError)))
	checks.append(("validator rejects leftover '!'", raises(
		lambda: validate_characters(normalize("!")), InvalidCharacterError)))
	checks.append(("validator rejects '%'", raises(lambda: _eval("50%"), InvalidCharacterError)))
	checks.append(("validator rejects non-ascii digits", raises(lambda: _eval("٣+1"), InvalidCharacterError)))
	checks.append(("validator rejects brackets", raises(lambda: _eval("[1]"), InvalidCharacterError)))
	checks.append(("validator accepts non-breaking spaces", not raises(
		lambda: validate_characters("2\u00a0+\u20073"), InvalidCharacterError)))
	checks.append(("non-breaking spaces are skipped", _eval("2\u00a0+\u00a03") == 5.0))

	return checks, expected_actual


def parser_checks():
	checks: list[tuple[str, bool]] = []
	expected_actual: list[tuple[str, str, str]] = []

	kinds = [tok.kind for tok in tokenize("SIN(2.5) ** -x, 3")]
	expected_actual.append((
		"token kinds",
		"NAME LPAREN NUMBER RPAREN OP OP NAME COMMA NUMBER",
		" ".join(kinds),
	))

	checks.append(("precedence tree", parse("2+3*4") == BinaryOp(
		"+", Number("2"), BinaryOp("*", Number("3"), Number("4")))))
	checks.append(("power is right-associative", parse("2**3**2") == BinaryOp(
		"**", Number("2"), BinaryOp("**", Number("3"), Number("2")))))
	checks.append(("unary minus binds tighter than power", parse("-2**2") == BinaryOp(
		"**", Negate(Number("2")), Number("2"))))
	checks.append(("subtraction is left-associative", parse("10-4-3") == BinaryOp(
		"-", BinaryOp("-", Number("10"), Number("4")), Number("3"))))

	for expr in (
		"(2+3",
		"2+3)",
		"2+",
		"*3",
		"()",
		"",
		"   ",
		"foo(2)",
		"x+1",
		"sin 30",
		"SIN",
		"sin(1,2)",
		"2..3",
		"5.",
		".5",
		"2 3",
		"2π",
		"+5",
		"2**",
	):
		checks.append((f"{expr!r} is a ParseError", raises(lambda e=expr: _eval(e), ParseError)))

	checks.append((
		"structural errors win over factorial domain errors",
		raises(lambda: _eval("(-1)!+"), ParseError),
	))

	return checks, expected_actual


def arithmetic_checks():
	checks: list[tuple[str, bool]] = []
	expected_actual: list[tuple[str, str, str]] = []

	for expr, expected in (
		("2+3×4", 14.0),
		("(2+3)!", 120.0),
		("10^2", 100.0),
		("2^3^2", 512.0),
		("-2^2", 4.0),
		("2^-1", 0.5),
		("10-4-3", 3.0),
		("100÷10÷5", 2.0),
		("-(3+4)×2", -14.0),
		("2×-3", -6.0),
		("12+-34", -22.0),
		("5!", 120.0),
		("0!", 1.0),
		("3!!", 720.0),
		("2+3!", 8.0),
		(" 1 + 2 ", 3.0),
		("1.00000000e-10", 1e-10),
	):
		checks.append((f"{expr} = {expected}", close(_eval(expr), expected)))

	checks.append(("π", close(_eval("π"), math.pi)))
	checks.append(("2×π", close(_eval("2×π"), 2 * math.pi)))
	checks.append(("e", close(_eval("e"), math.e)))
	checks.append(("ANS substitution", _eval("ANS+1", 41.0) == 42.0))
	checks.append(("negative ANS", _eval("ANS×2", -5.0) == -10.0))
	checks.append(("infinite ANS", _eval("ANS", math.inf) == math.inf))

	checks.append(("1/0 is +inf", _eval("1/0") == math.inf))
	checks.append(("-1/0 is -inf", _eval("-1/0") == -math.inf))
	checks.append(("0/0 is NaN", math.isnan(_eval("0/0"))))
	checks.append(("overflow is +inf", _eval("10^400") == math.inf))
	checks.append(("negative overflow is -inf", _eval("(-10)^401") == -math.inf))
	checks.append(("0^-1 is +inf", _eval("0^-1") == math.inf))
	checks.append(("fractional power of negative is NaN", math.isnan(_eval("(-8)^(1/3)"))))
	checks.append(("171! is +inf", _eval("171!") == math.inf))
	checks.append(("170! is finite", math.isfinite(_eval("170!"))))
	checks.append(("Infinity re-enters", _eval("Infinity") == math.inf))
	checks.append(("NaN re-enters", math.isnan(_eval("NaN"))))

	return checks, expected_actual


def function_checks():
	checks: list[tuple[str, bool]] = []
	expected_actual: list[tuple[str, str, str]] = []
	rad = AngleMode.RADIANS

	checks.append(("sin(90) in degrees", close(_eval("sin(90)"), 1.0)))
	checks.append(("sin(pi/2) in radians", close(_eval("sin(1.5707963267948966)", mode=rad), 1.0)))
	checks.append(("cos(60) in degrees", close(_eval("cos(60)"), 0.5)))
	checks.append(("tan(45) in degrees", close(_eval("tan(45)"), 1.0)))
	checks.append(("cos(π) in radians", close(_eval("cos(π)", mode=rad), -1.0)))
	checks.append(("asin(1) in degrees", close(_eval("asin(1)"), 90.0)))
	checks.append(("acos(0) in degrees", close(_eval("acos(0)"), 90.0)))
	checks.append(("atan(1) in radians", close(_eval("atan(1)", mode=rad), math.pi / 4)))
	checks.append(("ln(e)", close(_eval("ln(e)"), 1.0)))
	checks.append(("log(1000)", close(_eval("log(1000)"), 3.0)))
	checks.append(("abs(-5)", _eval("abs(-5)") == 5.0))
	checks.append(("sqrt(16)", _eval("sqrt(16)") == 4.0))
	checks.append(("cbrt(27)", close(_eval("cbrt(27)"), 3.0)))
	checks.append(("cbrt(-8)", close(_eval("cbrt(-8)"), -2.0)))
	checks.append(("ln(0) is -inf", _eval("ln(0)") == -math.inf))
	checks.append(("log(0) is -inf", _eval("log(0)") == -math.inf))
	checks.append(("sqrt(-1) is NaN", math.isnan(_eval("sqrt(-1)"))))
	checks.append(("asin(2) is NaN", math.isnan(_eval("asin(2)"))))
	checks.append(("ln(-1) is NaN", math.isnan(_eval("ln(-1)"))))
	checks.append(("sin of infinity is NaN", math.isnan(_eval("sin(1/0)"))))

	return checks, expected_actual


def factorial_checks():
	checks: list[tuple[str, bool]] = []
	expected_actual: list[tuple[str, str, str]] = []

	checks.append(("factorial(0) = 1", factorial(0) == 1))
	checks.append(("factorial(5) = 120", factorial(5) == 120))
	checks.append(("factorial(170) is finite", math.isfinite(factorial(170))))
	checks.append(("factorial(171) = inf", factorial(171) == math.inf))
	checks.append(("factorial(-1) negative", raises(lambda: factorial(-1), NegativeOperandError)))
	checks.append(("factorial(-2.5) negative first", raises(lambda: factorial(-2.5), NegativeOperandError)))
	checks.append(("factorial(2.5) non-integer", raises(lambda: factorial(2.5), NonIntegerOperandError)))
	checks.append(("factorial(inf) non-finite", raises(lambda: factorial(math.inf), NonFiniteOperandError)))
	checks.append(("factorial(nan) non-finite", raises(lambda: factorial(math.nan), NonFiniteOperandError)))
	checks.append(("2.5! propagates", raises(lambda: _eval("2.5!"), NonIntegerOperandError)))
	checks.append(("(0-1)! propagates", raises(lambda: _eval("(0-1)!"), NegativeOperandError)))
	checks.append(("(1/0)! propagates", raises(lambda: _eval("(1/0)!"), NonFiniteOperandError)))
	checks.append(("domain errors share a base", raises(lambda: _eval("(0-1)!"), FactorialDomainError)))

	return checks, expected_actual


def nesting_checks():
	checks: list[tuple[str, bool]] = []
	expected_actual: list[tuple[str, str, str]] = []

	deep = MAX_NESTING + 200
	checks.append(("deep parentheses are a ParseError", raises(
		lambda: _eval("(" * deep + "1" + ")" * deep), ParseError)))
	checks.append(("deep function calls are a ParseError", raises(
		lambda: _eval("abs(" * deep + "1" + ")" * deep), ParseError)))
	checks.append(("parentheses at the limit evaluate", _eval(
		"(" * MAX_NESTING + "1" + ")" * MAX_NESTING) == 1.0))

	checks.append(("long unary minus run", _eval("-" * 1201 + "1") == -1.0))
	checks.append(("long power chain", _eval("2" + "^2" * 1200) == math.inf))
	checks.append(("long sum chain", _eval("1" + "+1" * 5000) == 5001.0))
	checks.append(("long quotient chain", _eval("1" + "/1" * 5000) == 1.0))

	return checks, expected_actual


GROUPS = (
	normalizer_checks,
	parser_checks,
	arithmetic_checks,
	function_checks,
	factorial_checks,
	nesting_checks,
)


def test_normalizer():
	assert_group(normalizer_checks)


def test_parser():
	assert_group(parser_checks)


def test_arithmetic():
	assert_group(arithmetic_checks)


def test_functions():
	assert_group(function_checks)


def test_factorial():
	assert_group(factorial_checks)


def test_nesting():
	assert_group(nesting_checks)


if __name__ == "__main__":
	# Uso rápido:
	#   python regression_evaluator_checks.py
	report(GROUPS)
