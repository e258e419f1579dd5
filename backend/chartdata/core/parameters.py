"""
Parameter Resolver

Turns caller-supplied raw parameters into validated, normalized values for
every parameter a chart declares:

- omitted (or None) values fall back to the declared default
- provided values must satisfy the declared type, or ParameterValidationError
- unknown keys are dropped
"""

import logging
import math
from datetime import date, datetime
from types import MappingProxyType
from typing import Any, Mapping, Optional

from backend.chartdata.errors import ParameterValidationError

from .schema import ChartConfiguration, DateRange, ParameterSpec, ParameterType

logger = logging.getLogger(__name__)

# Integer parameters end up as BIGINT literals or bound values.
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


def resolve_parameters(
    config: ChartConfiguration,
    raw_parameters: Optional[Mapping[str, Any]] = None,
) -> Mapping[str, Any]:
    """
    Resolve raw parameters against a chart's parameter schema.

    Args:
        config: Chart configuration declaring the parameter schema
        raw_parameters: Caller-supplied values (may be None)

    Returns:
        Read-only mapping with one entry per declared parameter
    """
    raw_parameters = raw_parameters or {}

    unknown = set(raw_parameters) - set(config.parameter_schema)
    if unknown:
        logger.debug("Ignoring unknown parameters for %s: %s", config.chart_id, sorted(unknown))

    resolved: dict[str, Any] = {}
    for name, spec in config.parameter_schema.items():
        value = raw_parameters.get(name)
        if value is None:
            resolved[name] = _normalize_default(spec)
        else:
            resolved[name] = coerce_parameter(name, spec, value)
    return MappingProxyType(resolved)


def coerce_parameter(name: str, spec: ParameterSpec, value: Any) -> Any:
    """Validate one provided value against its spec and return the normalized value."""
    if spec.type == ParameterType.number:
        return _coerce_number(name, spec, value)
    if spec.type == ParameterType.string:
        if not isinstance(value, str):
            raise ParameterValidationError(name, f"expected a string, got {type(value).__name__}")
        return value
    if spec.type == ParameterType.array:
        return _coerce_array(name, spec, value)
    if spec.type == ParameterType.date_range:
        return _coerce_date_range(name, value)
    raise ParameterValidationError(name, f"unsupported parameter type {spec.type!r}")


def _normalize_default(spec: ParameterSpec) -> Any:
    if spec.type == ParameterType.array and spec.default is not None:
        return tuple(spec.default)
    return spec.default


def _coerce_number(name: str, spec: ParameterSpec, value: Any) -> Any:
    # bool is an int subclass; True is not a number here
    if isinstance(value, bool):
        raise ParameterValidationError(name, "expected a number, got bool")
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            raise ParameterValidationError(name, f"expected a number, got {value!r}") from None
    else:
        raise ParameterValidationError(name, f"expected a number, got {type(value).__name__}")

    try:
        finite = math.isfinite(float(number))
    except OverflowError:
        finite = False
    if not finite:
        raise ParameterValidationError(name, "must be a finite number")

    if spec.integer:
        if number != int(number):
            raise ParameterValidationError(name, f"expected an integer, got {value!r}")
        number = int(number)
        if not INT64_MIN <= number <= INT64_MAX:
            raise ParameterValidationError(name, "is outside the 64-bit integer range")

    if spec.max is not None and number > spec.max:
        raise ParameterValidationError(name, f"{number} exceeds maximum of {spec.max:g}")

    return number


def _coerce_array(name: str, spec: ParameterSpec, value: Any) -> tuple:
    if not isinstance(value, (list, tuple)):
        raise ParameterValidationError(name, f"expected an array, got {type(value).__name__}")
    item_spec = ParameterSpec(type=spec.item_type)
    items = []
    for index, item in enumerate(value):
        try:
            items.append(coerce_parameter(name, item_spec, item))
        except ParameterValidationError as e:
            raise ParameterValidationError(name, f"item {index}: {e.reason}") from None
    return tuple(items)


def _coerce_date_range(name: str, value: Any) -> DateRange:
    if isinstance(value, DateRange):
        start, end = value.start, value.end
    elif isinstance(value, Mapping):
        extra = set(value) - {"start", "end"}
        if extra:
            raise ParameterValidationError(name, f"unexpected keys {sorted(extra)}")
        start = _coerce_date(name, value.get("start"))
        end = _coerce_date(name, value.get("end"))
    else:
        raise ParameterValidationError(name, "expected an object with optional 'start' and 'end'")

    if start is not None and end is not None and start > end:
        raise ParameterValidationError(name, f"start ({start}) must be <= end ({end})")
    return DateRange(start=start, end=end)


def _coerce_date(name: str, value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            raise ParameterValidationError(name, f"invalid date {value!r}, expected YYYY-MM-DD") from None
    raise ParameterValidationError(name, f"expected a date, got {type(value).__name__}")
