"""Request validation: per-field rules and the gate that runs them.

A route declares an ordered tuple of Rules. validate(*rules) turns that tuple
into a FastAPI dependency which reads the path parameters and the JSON body,
runs every rule (a failing rule never stops the ones after it) and raises
ValidationFailed with all collected failures. The handler only runs when the
list is empty.

Rules read raw request values, not coerced ones: "12" and 12 are both a
numeric price, and a path id is always text until it has been checked.
"""

import json
import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from fastapi import Request

from .errors import ValidationFailed

Inputs = Dict[str, Dict[str, Any]]

MISSING = object()

_DECIMAL = re.compile(r"^[+-]?([0-9]*[.])?[0-9]+$")
_INTEGER = re.compile(r"^[+-]?[0-9]+$")
_NUMBER = re.compile(r"^\s*[+-]?([0-9]+[.]?[0-9]*|[.][0-9]+)([eE][+-]?[0-9]+)?\s*$")

INVALID_BODY = "Cuerpo de la peticion no valido"


@dataclass(frozen=True)
class FieldError:
    location: str
    path: str
    msg: str
    value: Any = MISSING

    def to_dict(self) -> dict:
        out = {"type": "field"}
        if self.value is not MISSING:
            out["value"] = self.value
        out.update(msg=self.msg, path=self.path, location=self.location)
        return out


@dataclass(frozen=True)
class Rule:
    field: str
    msg: str
    check: Callable[[Any], bool]
    location: str = "body"

    def __call__(self, inputs: Inputs) -> Optional[FieldError]:
        value = inputs.get(self.location, {}).get(self.field, MISSING)
        if self.check(value):
            return None
        return FieldError(self.location, self.field, self.msg, value)


# ---- value checks ----

def as_number(value: Any) -> Optional[float]:
    """Read a JSON value as a finite number, or None."""
    if isinstance(value, bool):
        return None
    if not isinstance(value, (int, float)) and not (isinstance(value, str) and _NUMBER.match(value)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


def _present(value: Any) -> bool:
    return value is not MISSING and value is not None and value != ""


def _numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return math.isfinite(value)
    return isinstance(value, str) and bool(_DECIMAL.match(value))


def _positive(value: Any) -> bool:
    number = as_number(value)
    return number is not None and number > 0


def _boolean(value: Any) -> bool:
    return isinstance(value, bool)


def _integer(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, str) and bool(_INTEGER.match(value))


# type and length checks leave absent values to not_empty

def _text(value: Any) -> bool:
    return value is MISSING or value is None or isinstance(value, str)


# ---- rule factories ----

def not_empty(field: str, msg: str, **kw) -> Rule:
    return Rule(field, msg, _present, **kw)


def is_numeric(field: str, msg: str, **kw) -> Rule:
    return Rule(field, msg, _numeric, **kw)


def is_positive(field: str, msg: str, **kw) -> Rule:
    return Rule(field, msg, _positive, **kw)


def is_boolean(field: str, msg: str, **kw) -> Rule:
    return Rule(field, msg, _boolean, **kw)


def is_int(field: str, msg: str, **kw) -> Rule:
    return Rule(field, msg, _integer, **kw)


def is_text(field: str, msg: str, **kw) -> Rule:
    return Rule(field, msg, _text, **kw)


def max_length(field: str, limit: int, msg: str, **kw) -> Rule:
    return Rule(field, msg, lambda value: not isinstance(value, str) or len(value) <= limit, **kw)


def run_rules(rules: Sequence[Rule], inputs: Inputs) -> List[FieldError]:
    errors = []
    for rule in rules:
        error = rule(inputs)
        if error is not None:
            errors.append(error)
    return errors


# ---- error-collection gate ----

async def read_json_body(request: Request) -> dict:
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        body = json.loads(raw)
    except ValueError:
        body = None
    if not isinstance(body, dict):
        raise ValidationFailed([FieldError("body", "", INVALID_BODY).to_dict()])
    return body


def validate(*rules: Rule):
    """Build the dependency that runs `rules` and stops the request on any failure."""
    needs_body = any(rule.location == "body" for rule in rules)

    async def gate(request: Request) -> Inputs:
        inputs = {
            "params": dict(request.path_params),
            "body": await read_json_body(request) if needs_body else {},
        }
        errors = run_rules(rules, inputs)
        if errors:
            raise ValidationFailed([e.to_dict() for e in errors])
        return inputs

    return gate
