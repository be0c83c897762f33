r"""
Chervil argument specifications.

Overview
- Argument: one declared field of a command's arguments record (name, kind,
  default literal, description, declaration index). Read-only once built.
- argument(...): field tag helper for dataclass records; attaches the
  ``default`` literal and ``description`` text as field metadata.
- schema(record): derive the ordered tuple of Argument from a dataclass type.

Declaring a record
    >>> from dataclasses import dataclass
    >>> from chervil import argument, UInt8
    >>> @dataclass
    ... class GreetArgs:
    ...     target: str = argument(default="world", descr="Target of the greeting.")
    ...     times: UInt8 = argument(default="1")
    ...
    >>> [a.name for a in schema(GreetArgs)]
    ['target', 'times']

Field tag metadata
- "default": literal string substituted when no value is supplied; its absence
  marks the argument required. Defaults are converted like user input, so they
  are spelled as text ("1", "true", "0.5").
- A plain dataclass default (``target: str = "world"``) counts as the default
  literal when no "default" tag is given; default factories are rejected.
- "description": free text shown by introspection/help.
Plain ``dataclasses.field(metadata={"default": ..., "description": ...})`` is
accepted as well; argument() only validates and spells it for you.
"""
import dataclasses
import functools
import operator
import re
import typing

from .kinds import Kind, kindof
from .utils import *


class ArgumentType(type):
    """
    Metaclass that turns specs into introspectable, read-only records.

    Responsibilities
    - Expose selected fields as read-only properties using mirror() for all
      names listed in __introspectable__.
    - Provide stable, readable __repr__/__rich_repr__ implementations for
      diagnostics and help output.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - argument(name='target', kind=Kind.STRING, default='world', ...)
            """
            return "%s(%s)" % (
                type(self).__typename__,
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__())),
            )
        self.__repr__ = __repr__

        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: validate and normalize argument metadata in place.

    - name: non-empty identifier string.
    - kind: a Kind member.
    - default: None or a string literal (may be empty).
    - descr: None or a string; blank strings collapse to None.
    - index: non-negative integer.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not name.isidentifier():
        raise ValueError(f"{cls.__typename__} 'name' must be a valid identifier")

    if not isinstance(metadata["kind"], Kind):
        raise TypeError(f"{cls.__typename__} 'kind' must be a kind")

    if not isinstance(metadata["default"], str | None):
        raise TypeError(f"{cls.__typename__} 'default' must be a string literal")

    if not isinstance(descr := metadata["descr"], str | None):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    metadata["descr"] = descr.strip() or None if isinstance(descr, str) else None

    if not isinstance(index := metadata["index"], int) or isinstance(index, bool):
        raise TypeError(f"{cls.__typename__} 'index' must be an integer")
    elif index < 0:
        raise ValueError(f"{cls.__typename__} 'index' cannot be negative")


class Argument(metaclass=ArgumentType):
    """
    One declared argument of a command.

    Properties
    - name: field name (also the keyword used as ``name=value``).
    - kind: Kind the raw text is converted into.
    - default: default literal, or None when the argument is required.
    - descr: description text, or None.
    - index: declaration order; selects the positional token for this argument.
    - required: True when no default is declared.
    """

    __introspectable__ = (
        "name",
        "kind",
        "default",
        "descr",
        "index",
    )

    def __new__(cls, name, kind, /, default=None, descr=None, index=0):
        metadata = {
            "name": name,
            "kind": kind,
            "default": default,
            "descr": descr,
            "index": index,
        }
        _sanitize_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def required(self):
        return self._default is None

    def __eq__(self, other):
        if not isinstance(other, Argument):
            return NotImplemented
        return all(getattr(self, name) == getattr(other, name) for name in type(self).__introspectable__)

    def __hash__(self):
        return hash(tuple(getattr(self, name) for name in type(self).__introspectable__))


def argument(*, default=Unset, descr=Unset, **options):
    """
    Build a dataclass field carrying argument tag metadata.

    Parameters
    - default: str
      Literal used when the user supplies no value. Omit to make the argument required.
    - descr: str
      Description shown by introspection/help.
    - **options: forwarded to dataclasses.field (e.g. repr=False, kw_only=True).

    Notes
    - No dataclass default is set: the engine always passes every field, and
      records stay free to order required and optional arguments as they like.
    """
    if not isinstance(default, str | Unset):
        raise TypeError("argument() 'default' must be a string literal")
    if not isinstance(descr, str | Unset):
        raise TypeError("argument() 'descr' must be a string")
    if "default" in options or "default_factory" in options:
        raise TypeError("argument() cannot set a dataclass default")

    metadata = dict(options.pop("metadata", None) or {})
    if default is not Unset:
        metadata["default"] = default
    if descr is not Unset:
        metadata["description"] = descr
    return dataclasses.field(metadata=metadata, **options)


def _default_literal(field, /):
    """
    Return the default literal of a field, or None when it has none.

    The "default" tag wins; otherwise a plain dataclass default of bool, int,
    float or str is spelled as text and converted like user input.
    """
    if "default" in field.metadata:
        return field.metadata["default"]
    if field.default_factory is not dataclasses.MISSING:
        raise TypeError("default factories are not supported")
    if field.default is dataclasses.MISSING:
        return None
    if isinstance(field.default, bool):
        return "true" if field.default else "false"
    if isinstance(field.default, int | float | str):
        return str(field.default)
    raise TypeError(f"default {field.default!r} is not a bool, number or string")


def schema(record, /):
    """
    Derive the ordered argument specs from a dataclass type.

    Raises
    - TypeError: when record is not a dataclass type, a field cannot be passed
      to the constructor (init=False), a field annotation has no supported kind,
      tag metadata has the wrong type, or a dataclass default is not a literal.
    """
    if not isinstance(record, type) or not dataclasses.is_dataclass(record):
        raise TypeError(f"{getattr(record, '__qualname__', type(record).__qualname__)!r} is not a dataclass type")

    try:
        hints = typing.get_type_hints(record)
    except Exception as error:
        raise TypeError(f"cannot resolve annotations of {record.__qualname__!r}: {error}") from error

    arguments = []
    for index, field in enumerate(dataclasses.fields(record)):
        if not field.init:
            raise TypeError(f"field {field.name!r} of {record.__qualname__!r} must be an init field")

        if (kind := kindof(hints.get(field.name, field.type))) is None:
            raise TypeError(
                f"field {field.name!r} of {record.__qualname__!r} has unsupported type {hints.get(field.name, field.type)!r}"
            )

        try:
            arguments.append(Argument(
                field.name,
                kind,
                default=_default_literal(field),
                descr=field.metadata.get("description"),
                index=index,
            ))
        except (TypeError, ValueError) as error:
            raise TypeError(f"field {field.name!r} of {record.__qualname__!r}: {error}") from error

    return tuple(arguments)


__all__ = (
    "Argument",
    "argument",
    "schema",
)
