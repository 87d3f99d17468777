# === SECTION: InputConvert [id: InputConvert]===
from __future__ import annotations

import math
from typing import Any, Type, TypeVar

import sympy as sp

from .errors import InvalidNumber, MissingInput

T = TypeVar("T", int, float)


def InputConvert(obj: Any, dest_type: Type[T] = float, truncate: bool = False, *, field: str = "value") -> T:
    """
    Convert a free-text form field (or a number) to a finite real `dest_type`.

    Supported destination types:
    - float
    - int

    Rules:
    - If `obj` is a number: cast via dest_type(obj).
    - If `obj` is a string:
        1) try float(s)
        2) else parse as a SymPy expression (``pi/2``, ``sqrt(2)``, ``1/3``), then evaluate.
    - NaN, infinities and complex values are rejected.

    Truncation Rules (`truncate`), only relevant for ``int``:
    - If `truncate=True`: Truncate decimal part (e.g., 3.9 -> 3).
    - If `truncate=False`: Require exact integer (e.g., 3.0 -> 3, 3.1 -> Error).

    Raises
    ------
    NotImplementedError
        If dest_type is unsupported.
    MissingInput
        If `obj` is None or a blank string.
    InvalidNumber
        If conversion fails or violates truncation rules.
    """
    if dest_type not in (float, int):
        raise NotImplementedError(
            f"Unsupported destination type: {dest_type!r}. Only float and int are supported."
        )

    def _coerce_real_value(x: float) -> T:
        if not math.isfinite(x):
            raise InvalidNumber(f"Invalid input for {field}: {obj!r} is not a finite number.")

        if dest_type is float:
            return float(x)  # type: ignore[return-value]

        if not float(x).is_integer():
            if not truncate:
                raise InvalidNumber(
                    f"Invalid input for {field}: {obj!r} is not a whole number."
                )
            # If truncate=True, int() truncates towards zero
        return int(x)  # type: ignore[return-value]

    if obj is None:
        raise MissingInput(f"Please fill in {field}.")

    # Fast path: numeric types (exclude bool)
    if isinstance(obj, (int, float)) and not isinstance(obj, bool):
        return _coerce_real_value(float(obj))

    if isinstance(obj, str):
        s = obj.strip()
        if s == "":
            raise MissingInput(f"Please fill in {field}.")

        # 1) Plain native conversion
        try:
            native = float(s)
        except ValueError:
            pass
        else:
            return _coerce_real_value(native)

        # 2) SymPy path
        try:
            value = complex(sp.sympify(s.replace("^", "**")).evalf())
        except Exception as e:
            raise InvalidNumber(
                f"Invalid input for {field}: {obj!r} is not a number."
            ) from e
        if value.imag != 0:
            raise InvalidNumber(f"Invalid input for {field}: {obj!r} is not a real number.")
        return _coerce_real_value(value.real)

    try:
        return _coerce_real_value(float(obj))
    except (TypeError, ValueError) as e:
        raise InvalidNumber(f"Invalid input for {field}: {obj!r} is not a number.") from e

# === END OF SECTION: InputConvert [id: InputConvert]===
