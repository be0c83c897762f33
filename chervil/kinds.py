"""
Chervil kinds: the closed set of value types an argument can declare, and the
conversion of raw text into them.

Overview
- Kind: enumeration of the supported kinds (bool, signed/unsigned integers of
  8/16/32/64 bits, 32/64-bit floats, string). Each member knows its label,
  bit width and signedness.
- Width markers: Int8 … Int64, UInt8 … UInt64, Float32, Float64 are NewType
  aliases to annotate dataclass fields with a precise kind. The plain builtins
  map as bool → BOOL, int → INT64, float → FLOAT64, str → STRING.
- kindof(annotation): resolve an annotation to its Kind (None when unsupported).
- convert(kind, value): parse a raw string into a Python value of that kind.

Conversion rules
- bool: "1", "t", "true", "0", "f", "false" (case-insensitive).
- integers: base-10 ASCII digits, optional leading sign for signed kinds only,
  range-checked against the kind's width.
- floats: decimal with optional exponent, or inf/infinity/nan with optional
  sign. FLOAT32 results are rounded to single precision.
- string: returned verbatim.

Errors
- InvalidLiteralError: the text is not a literal of the kind.
- OutOfRangeError: the literal is well-formed but does not fit the kind.
"""
import math
import re
import struct
from enum import Enum
from typing import NewType

from .faults import InvalidLiteralError, OutOfRangeError

Int8 = NewType("Int8", int)
Int16 = NewType("Int16", int)
Int32 = NewType("Int32", int)
Int64 = NewType("Int64", int)
UInt8 = NewType("UInt8", int)
UInt16 = NewType("UInt16", int)
UInt32 = NewType("UInt32", int)
UInt64 = NewType("UInt64", int)
Float32 = NewType("Float32", float)
Float64 = NewType("Float64", float)


class Kind(Enum):
    """
    supported argument kinds.

    each value is a (label, width, signed) triple; width is 0 for kinds where
    the bit width is meaningless (bool, string).
    """
    BOOL    = ("bool", 0, False)
    INT8    = ("int8", 8, True)
    INT16   = ("int16", 16, True)
    INT32   = ("int32", 32, True)
    INT64   = ("int64", 64, True)
    UINT8   = ("uint8", 8, False)
    UINT16  = ("uint16", 16, False)
    UINT32  = ("uint32", 32, False)
    UINT64  = ("uint64", 64, False)
    FLOAT32 = ("float32", 32, True)
    FLOAT64 = ("float64", 64, True)
    STRING  = ("string", 0, False)

    @property
    def label(self):
        return self.value[0]

    @property
    def width(self):
        return self.value[1]

    @property
    def signed(self):
        return self.value[2]

    @property
    def integral(self):
        return self.name.startswith(("INT", "UINT"))

    @property
    def floating(self):
        return self.name.startswith("FLOAT")

    def __repr__(self):
        return f"Kind.{self.name}"


_ANNOTATIONS = {
    bool: Kind.BOOL,
    int: Kind.INT64,
    float: Kind.FLOAT64,
    str: Kind.STRING,
    Int8: Kind.INT8,
    Int16: Kind.INT16,
    Int32: Kind.INT32,
    Int64: Kind.INT64,
    UInt8: Kind.UINT8,
    UInt16: Kind.UINT16,
    UInt32: Kind.UINT32,
    UInt64: Kind.UINT64,
    Float32: Kind.FLOAT32,
    Float64: Kind.FLOAT64,
}

_BOOLEANS = {
    "1": True,
    "t": True,
    "true": True,
    "0": False,
    "f": False,
    "false": False,
}

_SIGNED = re.compile(r"[+-]?[0-9]+", re.ASCII)
_UNSIGNED = re.compile(r"[0-9]+", re.ASCII)
_DECIMAL = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?", re.ASCII)
_SPECIAL = re.compile(r"[+-]?(?:inf|infinity|nan)", re.IGNORECASE)


def kindof(annotation, /):
    """
    Return the Kind for a field annotation, or None when the annotation is unsupported.
    """
    try:
        return _ANNOTATIONS.get(annotation)
    except TypeError:
        return None


def _integer(kind, value):
    pattern = _SIGNED if kind.signed else _UNSIGNED
    if not pattern.fullmatch(value):
        raise InvalidLiteralError(f"invalid {kind.label} literal {value!r}", kind=kind, value=value)

    number = int(value, 10)
    if kind.signed:
        lower, upper = -(1 << (kind.width - 1)), (1 << (kind.width - 1)) - 1
    else:
        lower, upper = 0, (1 << kind.width) - 1
    if not lower <= number <= upper:
        raise OutOfRangeError(
            f"{kind.label} value {value!r} out of range [{lower}, {upper}]", kind=kind, value=value
        )
    return number


def _floating(kind, value):
    if _SPECIAL.fullmatch(value):
        # inf/nan literals are representable at both precisions
        return float(value)
    if not _DECIMAL.fullmatch(value):
        raise InvalidLiteralError(f"invalid {kind.label} literal {value!r}", kind=kind, value=value)

    number = float(value)
    if math.isinf(number):
        raise OutOfRangeError(f"{kind.label} value {value!r} out of range", kind=kind, value=value)
    if kind is Kind.FLOAT32:
        try:
            number, = struct.unpack("f", struct.pack("f", number))
        except OverflowError:
            raise OutOfRangeError(f"{kind.label} value {value!r} out of range", kind=kind, value=value) from None
    return number


def convert(kind, value, /):
    """
    Convert raw text into a Python value of the given kind.

    Parameters
    - kind: Kind
    - value: str

    Returns
    - bool | int | float | str

    Raises
    - TypeError: when kind is not a Kind or value is not a string.
    - InvalidLiteralError / OutOfRangeError: when the text does not convert.
    """
    if not isinstance(kind, Kind):
        raise TypeError("convert() first argument must be a kind")
    if not isinstance(value, str):
        raise TypeError("convert() second argument must be a string")

    match kind:
        case Kind.STRING:
            return value
        case Kind.BOOL:
            try:
                return _BOOLEANS[value.lower()]
            except KeyError:
                raise InvalidLiteralError(f"invalid bool literal {value!r}", kind=kind, value=value) from None
        case _ if kind.integral:
            return _integer(kind, value)
        case _ if kind.floating:
            return _floating(kind, value)

    raise RuntimeError("unreachable")


__all__ = (
    "Kind",
    "kindof",
    "convert",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "Float32",
    "Float64",
)
