"""Motor de cálculo con precisión arbitraria y expansión progresiva."""

from __future__ import annotations

import logging

from calculator_engine import CalculatorEngine, EvaluationContext
from calculator_errors import (
    EvalError,
    NegativeOperandError,
    NonFiniteOperandError,
    NonIntegerOperandError,
)
from formula_evaluator import FACTORIAL_LIMIT

try:
    from mpmath import mp
except ImportError as exc:  # pragma: no cover
    raise ImportError(
        "mpmath no está instalado. Instala con: pip install mpmath"
    ) from exc

logger = logging.getLogger(__name__)


def _real(value):
    # Las funciones de mpmath devuelven complejos fuera del dominio real.
    if isinstance(value, mp.mpc):
        return value.real if value.imag == 0 else mp.nan
    return value


class MPMathProvider:
    """Proveedor matemático basado en mpmath."""

    def number(self, text: str):
        return mp.mpf(text)

    def constants(self) -> dict:
        return {
            "PI": mp.mpf(mp.pi),
            "E": mp.mpf(mp.e),
            "Infinity": mp.inf,
            "NaN": mp.nan,
        }

    @staticmethod
    def _divide(a, b):
        try:
            return a / b
        except ZeroDivisionError:
            if mp.isnan(a) or a == 0:
                return mp.nan
            return mp.inf if (a > 0) == (mp.sign(b) >= 0) else -mp.inf

    @staticmethod
    def _power(a, b):
        try:
            return _real(mp.power(a, b))
        except ZeroDivisionError:
            return mp.inf

    @staticmethod
    def _factorial(x):
        if not mp.isfinite(x):
            raise NonFiniteOperandError("factorial no admite infinito o NaN")
        if x < 0:
            raise NegativeOperandError("factorial no admite negativos")
        if mp.floor(x) != x:
            raise NonIntegerOperandError("factorial requiere un entero")
        if x > FACTORIAL_LIMIT:
            return mp.inf
        return mp.factorial(int(x))

    def binary_operators(self) -> dict:
        return {
            "+": lambda a, b: a + b,
            "-": lambda a, b: a - b,
            "*": lambda a, b: a * b,
            "/": self._divide,
            "**": self._power,
        }

    def negate(self, x):
        return -x

    def build_namespace(self, angle_mode) -> dict:
        degrees = angle_mode == "deg"

        def _safe(fn):
            def wrapped(x):
                try:
                    return _real(fn(x))
                except ValueError:
                    return mp.nan

            return wrapped

        def _trig(fn):
            return _safe(lambda x: fn(mp.radians(x) if degrees else x))

        def _inv_trig(fn):
            def wrapped(x):
                result = _real(fn(x))
                return mp.degrees(result) if degrees else result

            return _safe(wrapped)

        def _log(fn):
            safe = _safe(fn)
            return lambda x: -mp.inf if x == 0 else safe(x)

        return {
            "fact": self._factorial,
            "SIN": _trig(mp.sin),
            "COS": _trig(mp.cos),
            "TAN": _trig(mp.tan),
            "ASIN": _inv_trig(mp.asin),
            "ACOS": _inv_trig(mp.acos),
            "ATAN": _inv_trig(mp.atan),
            "LN": _log(mp.log),
            "LOG": _log(mp.log10),
            "ABS": abs,
            "SQRT": _safe(mp.sqrt),
            "CBRT": _safe(lambda x: mp.sign(x) * mp.cbrt(abs(x))),
        }


class ArbitraryPrecisionCalculatorEngine(CalculatorEngine):
    """Evalúa expresiones con precisión arbitraria y dígitos progresivos.

    ``preview`` y ``commit`` siguen devolviendo un float redondeado, de
    modo que el formato de pantalla no cambia; ``evaluate_digits`` y
    ``request_more_precision`` exponen los dígitos adicionales.
    """

    def __init__(self, initial_digits: int = 18, precision_step: int = 24):
        super().__init__(MPMathProvider())

        self._initial_digits = max(8, initial_digits)
        self._precision_step = max(8, precision_step)

        self._working_digits = self._initial_digits
        self._last_expression: str | None = None

    @property
    def working_digits(self) -> int:
        return self._working_digits

    def _evaluate(self, expression, last_result, angle_mode) -> float:
        return float(self._evaluate_with_digits(
            expression, last_result, angle_mode, self._working_digits,
        ))

    def _evaluate_with_digits(self, expression, last_result, angle_mode, digits: int):
        internal_dps = max(40, digits * 2 + 10)
        with mp.workdps(internal_dps):
            return self._evaluator.evaluate(expression, last_result, angle_mode)

    def evaluate_digits(self, expression: str, ctx: EvaluationContext) -> str:
        """Valor de ``expression`` con los dígitos iniciales de trabajo."""
        self._last_expression = expression
        self._working_digits = self._initial_digits
        return self._digits_text(expression, ctx)

    def can_expand_precision(self) -> bool:
        return self._last_expression is not None

    def request_more_precision(self, ctx: EvaluationContext) -> str:
        if not self._last_expression:
            raise EvalError("No hay cálculo previo")

        self._working_digits += self._precision_step
        logger.info("precisión ampliada a %d dígitos", self._working_digits)
        return self._digits_text(self._last_expression, ctx)

    def _digits_text(self, expression: str, ctx: EvaluationContext) -> str:
        with ctx.lock:
            last_result, angle_mode = ctx.last_result, ctx.angle_mode
        digits = self._working_digits
        value = self._evaluate_with_digits(expression, last_result, angle_mode, digits)
        if not mp.isfinite(value):
            return self.format(float(value))
        with mp.workdps(max(40, digits * 2 + 10)):
            return mp.nstr(value, n=digits)
