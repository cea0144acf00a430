"""
Motor de cálculo para la calculadora científica.

Este módulo provee la clase CalculatorEngine, fachada que evalúa
expresiones contra un contexto explícito (último resultado, memoria y
modo angular) que pertenece al llamador. El proveedor matemático es
reemplazable (ver arbitrary_precision_engine).

Contrato de interfaz:
    - preview(expression, ctx) -> float      (no modifica ctx)
    - commit(expression, ctx) -> float       (actualiza ctx.last_result)
    - format(value) -> str
    - memory_add / memory_subtract / memory_clear / memory_recall
    - toggle_sign(raw) -> str
    - set_angle_mode(ctx, "deg" | "rad")
"""

from __future__ import annotations

import logging
import math
import random
import threading
from collections import deque
from dataclasses import dataclass, field
from decimal import Decimal

from calculator_errors import EvalError
from expression_editor import toggle_sign
from formula_evaluator import AngleMode, FormulaEvaluator, PythonMathProvider

logger = logging.getLogger(__name__)


SCI_UPPER = 1e12
SCI_LOWER = 1e-9
SIGNIFICANT_DIGITS = 12
EXPONENT_DIGITS = 8


# ── Formato del resultado ────────────────────────────────────────

def format_number(value: float) -> str:
    """Cadena de longitud acotada que el propio motor puede volver a leer.

    Los valores extremos (``|x| >= 1e12`` o ``0 < |x| < 1e-9``) usan
    notación exponencial con 8 decimales; el resto se redondea a 12 cifras
    significativas sin ceros sobrantes.
    """
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"

    magnitude = abs(value)
    rounded = float(f"{value:.{SIGNIFICANT_DIGITS}g}")
    if magnitude >= SCI_UPPER or abs(rounded) >= SCI_UPPER:
        return _exponential(value)
    if 0 < magnitude < SCI_LOWER:
        text = _exponential(value)
        # Justo por debajo de 1e-9 la mantisa puede redondear al límite.
        if abs(float(text)) < SCI_LOWER:
            return text

    if rounded == 0:
        return "0"
    text = format(Decimal(repr(rounded)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _exponential(value: float) -> str:
    mantissa, exponent = f"{value:.{EXPONENT_DIGITS}e}".split("e")
    return f"{mantissa}e{exponent[0]}{exponent[1:].lstrip('0') or '0'}"


@dataclass
class EvaluationContext:
    """Estado que el motor consulta y produce; lo crea y conserva el llamador."""

    last_result: float = 0.0
    memory: float = 0.0
    angle_mode: AngleMode = AngleMode.DEGREES
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


class CalculatorEngine:
    """Evalúa expresiones matemáticas con funciones científicas.

    El historial pertenece al motor, no al contexto: los contextos que
    comparten un motor comparten también su historial. Para historiales
    separados, un motor por contexto.
    """

    HISTORY_LIMIT = 18
    PENDING = "…"

    def __init__(self, provider=None):
        self._provider = provider if provider is not None else PythonMathProvider()
        self._evaluator = FormulaEvaluator(self._provider)
        self.history: deque[tuple[str, str]] = deque(maxlen=self.HISTORY_LIMIT)

    # ── Evaluación ───────────────────────────────────────────────

    def _evaluate(self, expression: str, last_result: float, angle_mode: AngleMode) -> float:
        return float(self._evaluator.evaluate(expression, last_result, angle_mode))

    def preview(self, expression: str, ctx: EvaluationContext) -> float:
        """Evalúa sin efectos secundarios sobre ``ctx``.

        Raises:
            EvalError: la expresión no se puede evaluar.
        """
        with ctx.lock:
            last_result, angle_mode = ctx.last_result, ctx.angle_mode
        return self._evaluate(expression, last_result, angle_mode)

    def preview_text(self, expression: str, ctx: EvaluationContext) -> str:
        """Resultado en vivo para la pantalla; nunca lanza ``EvalError``."""
        if not expression:
            return "0"
        try:
            return self.format(self.preview(expression, ctx))
        except EvalError:
            return self.PENDING

    def commit(self, expression: str, ctx: EvaluationContext) -> float:
        """Evalúa, guarda el resultado en ``ctx.last_result`` y en el historial.

        Si la evaluación falla, el error se propaga y no se modifica nada.
        """
        with ctx.lock:
            try:
                value = self._evaluate(expression, ctx.last_result, ctx.angle_mode)
            except EvalError as exc:
                logger.warning("commit %r falló: %s", expression, exc)
                raise
            ctx.last_result = value
        text = self.format(value)
        self.history.appendleft((expression, text))
        logger.debug("commit %r = %s", expression, text)
        return value

    @staticmethod
    def format(value: float) -> str:
        return format_number(value)

    # ── Memoria ──────────────────────────────────────────────────

    def memory_add(self, expression: str, ctx: EvaluationContext) -> float:
        return self._memory_update(expression, ctx, 1)

    def memory_subtract(self, expression: str, ctx: EvaluationContext) -> float:
        return self._memory_update(expression, ctx, -1)

    def _memory_update(self, expression: str, ctx: EvaluationContext, sign: int) -> float:
        with ctx.lock:
            value = 0.0
            if expression and expression.strip():
                value = self._evaluate(expression, ctx.last_result, ctx.angle_mode)
            ctx.memory += sign * value
            logger.info("memoria = %s", format_number(ctx.memory))
            return ctx.memory

    def memory_clear(self, ctx: EvaluationContext) -> None:
        with ctx.lock:
            ctx.memory = 0.0

    def memory_recall(self, ctx: EvaluationContext) -> str:
        with ctx.lock:
            return self.format(ctx.memory)

    # ── Edición y modo angular ───────────────────────────────────

    @staticmethod
    def toggle_sign(raw_expression: str) -> str:
        return toggle_sign(raw_expression)

    @staticmethod
    def set_angle_mode(ctx: EvaluationContext, mode) -> None:
        try:
            new_mode = AngleMode(mode)
        except ValueError as exc:
            raise ValueError("El modo debe ser 'rad' o 'deg'") from exc
        with ctx.lock:
            ctx.angle_mode = new_mode
        logger.info("modo angular: %s", new_mode.value)

    def randomize(self, ctx: EvaluationContext) -> float:
        """Guarda un valor aleatorio en [0, 1) como último resultado."""
        value = random.random()
        with ctx.lock:
            ctx.last_result = value
        return value

    def clear_history(self) -> None:
        self.history.clear()
