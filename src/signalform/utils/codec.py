"""
Schema-driven decoding and encoding of declared resource configs.

Resource configs are plain dataclasses. Field metadata (set with
:func:`config_field`) says how a field is validated on the way in and how it
maps to the SignalFx JSON payload on the way out:

    max_delay: Optional[int] = config_field("maxDelay", validate=validate_max_delay, encode=to_ms)

``decode_config(cls, raw)`` turns a raw mapping (YAML/JSON) into an instance,
checking unknown keys, required fields, types and per-field validators. All
problems are collected and raised together as one :class:`ValidationError`,
each message prefixed with its dotted field path.

``encode_payload(obj)`` emits ``{api_name: value}`` for every field that has
an API name, skipping ``None`` unless the field is marked ``keep_none``.
"""
from __future__ import annotations

import dataclasses
import types
from typing import Any, Callable, Dict, List, Mapping, Optional, Type, TypeVar, Union, get_args, get_origin, get_type_hints

from .validators import ValidationError, Validator

T = TypeVar("T")

_MISSING = dataclasses.MISSING


def config_field(
    api: Optional[str] = None,
    *,
    default: Any = None,
    default_factory: Any = _MISSING,
    required: bool = False,
    validate: Union[Validator, List[Validator], None] = None,
    parse: Optional[Callable[[Any], Any]] = None,
    encode: Optional[Callable[[Any], Any]] = None,
    keep_none: bool = False,
) -> Any:
    """Declare a config field with its payload name and validation hooks.

    Args:
        api: JSON key in the SignalFx payload (``None``: not emitted by ``encode_payload``).
        default: Default value when the key is absent (ignored when *required*).
        default_factory: Factory for mutable defaults (lists).
        required: The key must be present in the raw config.
        validate: Validator(s) run on the decoded value when it is not ``None``.
        parse: Replaces type coercion; receives the raw value, raises ``ValueError``.
        encode: Transforms the value before it is put in the payload.
        keep_none: Emit ``null`` instead of skipping the key when the value is ``None``.
    """
    if validate is None:
        validators: List[Validator] = []
    elif callable(validate):
        validators = [validate]
    else:
        validators = list(validate)
    metadata = {
        "api": api,
        "validate": validators,
        "parse": parse,
        "encode": encode,
        "keep_none": keep_none,
    }
    if required:
        return dataclasses.field(metadata=metadata)
    if default_factory is not _MISSING:
        return dataclasses.field(default_factory=default_factory, metadata=metadata)
    return dataclasses.field(default=default, metadata=metadata)


def _type_name(tp: Any) -> str:
    return getattr(tp, "__name__", str(tp))


def _coerce(tp: Any, value: Any, path: str, errors: List[str]) -> Any:
    if tp is Any:
        return value

    origin = get_origin(tp)
    if origin in (Union, types.UnionType):
        args = [a for a in get_args(tp) if a is not type(None)]
        if value is None:
            if len(args) != len(get_args(tp)):
                return None
            errors.append(f"{path}: must not be null")
            return None
        return _coerce(args[0], value, path, errors)

    if origin is list:
        (item_tp,) = get_args(tp) or (Any,)
        if not isinstance(value, list):
            errors.append(f"{path}: expected a list, got {type(value).__name__}")
            return None
        return [_coerce(item_tp, item, f"{path}[{i}]", errors) for i, item in enumerate(value)]

    if dataclasses.is_dataclass(tp):
        return _decode(tp, value, path, errors)

    if tp is bool:
        if isinstance(value, bool):
            return value
    elif tp is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    elif tp is float:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    elif tp is str:
        if isinstance(value, str):
            return value
    else:
        raise TypeError(f"unsupported config field type {tp!r} at {path}")

    errors.append(f"{path}: expected {_type_name(tp)}, got {type(value).__name__}")
    return None


def _decode(cls: Type[T], raw: Any, path: str, errors: List[str]) -> Optional[T]:
    prefix = f"{path}." if path else ""
    if not isinstance(raw, Mapping):
        errors.append(f"{path or '<root>'}: expected a mapping, got {type(raw).__name__}")
        return None

    hints = get_type_hints(cls)
    known = {f.name: f for f in dataclasses.fields(cls) if f.init}
    start = len(errors)

    for key in raw:
        if key not in known:
            errors.append(f"{prefix}{key}: unknown field")

    kwargs: Dict[str, Any] = {}
    for name, f in known.items():
        fpath = f"{prefix}{name}"
        if name not in raw:
            if f.default is _MISSING and f.default_factory is _MISSING:
                errors.append(f"{fpath}: required field is not set")
            continue

        raw_value = raw[name]
        parse = f.metadata.get("parse")
        if parse is not None and raw_value is not None:
            try:
                value = parse(raw_value)
            except ValueError as exc:
                errors.append(f"{fpath}: {exc}")
                continue
        else:
            before = len(errors)
            value = _coerce(hints[name], raw_value, fpath, errors)
            if len(errors) != before:
                continue

        if value is not None:
            for check in f.metadata.get("validate", ()):
                errors.extend(f"{fpath}: {msg}" for msg in check(value))
        kwargs[name] = value

    if len(errors) != start:
        return None

    obj = cls(**kwargs)
    check = getattr(obj, "check", None)
    if callable(check):
        errors.extend(f"{prefix}{msg}" for msg in check())
    return obj


def decode_config(cls: Type[T], raw: Any) -> T:
    """Decode *raw* into an instance of dataclass *cls*.

    Raises:
        ValidationError: With every problem found, not just the first.
    """
    errors: List[str] = []
    obj = _decode(cls, raw, "", errors)
    if errors or obj is None:
        raise ValidationError(errors)
    return obj


def _encode_value(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return encode_payload(value)
    if isinstance(value, list):
        return [_encode_value(v) for v in value]
    return value


def encode_payload(obj: Any) -> Dict[str, Any]:
    """Map the API-named fields of dataclass *obj* onto a JSON-ready dict."""
    out: Dict[str, Any] = {}
    for f in dataclasses.fields(obj):
        api = f.metadata.get("api")
        if not api:
            continue
        value = getattr(obj, f.name)
        if value is None:
            if f.metadata.get("keep_none"):
                out[api] = None
            continue
        encode = f.metadata.get("encode")
        out[api] = encode(value) if encode else _encode_value(value)
    return out
