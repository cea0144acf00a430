"""Punto de entrada de la calculadora científica (consola).

Cada línea se confirma como con la tecla Enter. Comandos:
    deg | rad           cambia el modo angular
    m+ EXPR | m- EXPR   suma o resta EXPR a la memoria
    mc | mr             borra o muestra la memoria
    neg EXPR            cambia el signo del último número de EXPR
    rand                guarda un número aleatorio en ANS
    history             muestra los últimos cálculos
    quit                sale

Uso:
    python main.py [--precise] [--digits N] [--verbose]
"""

import logging
import sys

from calculator_engine import CalculatorEngine, EvaluationContext
from calculator_errors import EvalError


USE_ARBITRARY_PRECISION = False
AP_INITIAL_DIGITS = 120
AP_PRECISION_STEP = 120

PROMPT = "> "


def _read_int(flag: str, default: int) -> int:
    if flag not in sys.argv:
        return default
    idx = sys.argv.index(flag)
    try:
        return int(sys.argv[idx + 1])
    except (ValueError, IndexError):
        raise SystemExit(f"Invalid value for {flag}")


def build_engine() -> CalculatorEngine:
    if USE_ARBITRARY_PRECISION or "--precise" in sys.argv:
        from arbitrary_precision_engine import ArbitraryPrecisionCalculatorEngine

        return ArbitraryPrecisionCalculatorEngine(
            initial_digits=_read_int("--digits", AP_INITIAL_DIGITS),
            precision_step=AP_PRECISION_STEP,
        )
    return CalculatorEngine()


def handle_line(engine: CalculatorEngine, ctx: EvaluationContext, line: str) -> str:
    """Ejecuta una línea de la consola y devuelve el texto a mostrar."""
    command, _, rest = line.partition(" ")

    try:
        if line in ("deg", "rad"):
            engine.set_angle_mode(ctx, line)
            return line.upper()
        if command == "m+":
            engine.memory_add(rest, ctx)
            return f"M: {engine.memory_recall(ctx)}"
        if command == "m-":
            engine.memory_subtract(rest, ctx)
            return f"M: {engine.memory_recall(ctx)}"
        if line == "mc":
            engine.memory_clear(ctx)
            return f"M: {engine.memory_recall(ctx)}"
        if line == "mr":
            return engine.memory_recall(ctx)
        if command == "neg":
            return engine.toggle_sign(rest)
        if line == "rand":
            return engine.format(engine.randomize(ctx))
        if line == "history":
            return "\n".join(f"{expr} = {result}" for expr, result in engine.history)
        return engine.format(engine.commit(line, ctx))
    except EvalError as exc:
        return f"Error: {exc}"


def main():
    logging.basicConfig(
        level=logging.INFO if "--verbose" in sys.argv else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    engine = build_engine()
    ctx = EvaluationContext()

    while True:
        try:
            line = input(PROMPT).strip()
        except EOFError:
            break
        if not line:
            continue
        if line == "quit":
            break
        print(handle_line(engine, ctx, line))


if __name__ == "__main__":
    main()
