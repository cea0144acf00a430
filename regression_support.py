"""Utilidades compartidas por los scripts regression_*_checks.py."""

import math


def raises(fn, exc_type) -> bool:
	try:
		fn()
	except exc_type:
		return True
	except Exception:
		return False
	return False


def close(actual, expected, tol: float = 1e-9) -> bool:
	return math.isclose(actual, expected, rel_tol=tol, abs_tol=tol)


def failed_names(checks) -> list[str]:
	return [name for name, ok in checks if not ok]


def report(groups) -> None:
	"""Imprime cada grupo de checks y sale con código 1 si alguno falla.

	``groups`` es una secuencia de funciones que devuelven
	``(checks, expected_actual)``.
	"""
	checks: list[tuple[str, bool]] = []
	expected_actual: list[tuple[str, str, str]] = []
	for group in groups:
		group_checks, group_pairs = group()
		checks.extend(group_checks)
		expected_actual.extend(group_pairs)

	failed = failed_names(checks)
	for name, ok in checks:
		print(f"{name}: {'OK' if ok else 'FAIL'}")

	print("\nExpected vs Actual:")
	for label, expected, actual in expected_actual:
		status = "OK" if expected == actual else "FAIL"
		print(f"- {label}: {status}")
		print(f"  expected: {expected}")
		print(f"  actual:   {actual}")

	if failed:
		print("\nFAILED CHECKS:")
		for name in failed:
			print(f"- {name}")
		raise SystemExit(1)

	print("\nAll regression checks passed.")


def assert_group(group) -> None:
	checks, expected_actual = group()
	failed = failed_names(checks)
	failed += [
		f"{label}: expected {expected!r}, got {actual!r}"
		for label, expected, actual in expected_actual
		if expected != actual
	]
	assert not failed, failed
