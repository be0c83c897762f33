"""
Chervil faults (errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue.
  Codes are grouped by domain (routing, tokens, arguments, handlers) so that
  logs and searches stay predictable.
- CommandException: base type that carries a message + options and knows how
  to render itself (rich) in a short, lowercased, actionable way.
- ConversionError: plain ValueError family raised by the coercion layer;
  commands wrap it into ArgumentCoercionError.
- trigger(): central entry point to surface a fault with extra options.
- getdoc(): optional description lookup for a code from the host application.

UX goals
- Position-first messages: token-related messages include the ordinal position
  ("at third position") so chat users can learn by trying.
- Soft but technical language: short titles, one-sentence bodies, a single clear hint.
- Readable styling, configurable via __styles__ in __main__.

Integration
- The parser raises faults from run() or hands them to its fallback; the
  embedding transport decides how to show them (fault.render() gives plain text).
"""
import copy
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce


class FaultCode(IntEnum):
    """
    canonical fault codes used across the engine (stable identifiers).

    grouping (by high-level domain)
    - routing (1110x)
      • UNKNOWN_COMMAND, NO_COMMAND
    - tokens (1111x)
      • MALFORMED_TOKEN
    - arguments (1112x)
      • KEYWORD_ORDER, MISSING_ARGUMENT, UNCASTABLE_ARGUMENT
    - handlers / registration (1113x)
      • HANDLER_NOT_CALLABLE, HANDLER_ARITY, HANDLER_CONTEXT,
        HANDLER_ARGUMENTS, REGISTRATION

    spacing leaves room for future additions without reshuffling existing codes.
    """
    # --- routing errors (11xxx) ---
    UNKNOWN_COMMAND      = 11101
    NO_COMMAND           = 11103

    # --- token errors (11xxx) ---
    MALFORMED_TOKEN      = 11111

    # --- argument errors (11xxx) ---
    KEYWORD_ORDER        = 11121
    MISSING_ARGUMENT     = 11125
    UNCASTABLE_ARGUMENT  = 11126

    # --- handler/registration errors (11xxx) ---
    HANDLER_NOT_CALLABLE = 11131
    HANDLER_ARITY        = 11132
    HANDLER_CONTEXT      = 11133
    HANDLER_ARGUMENTS    = 11134
    REGISTRATION         = 11135

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class CommandException(Exception):
    """
    Base class of every engine fault.

    The message is the first positional argument; everything else lives in the
    read-only ``options`` mapping. Well-known options:
    - code (FaultCode), title, hint, docs: rendering metadata.
    - command, argument, token, index, kind, value, reason: context about what failed.
    - prog, colorful, fancy: runtime rendering flags merged in by the parser.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", False)

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
            "docs": "dim",
        } | getattr(main, "__styles__", {}))

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if isinstance(fragment, Text):
                return fragment if colorful else Text(fragment.plain)
            return Text(str(fragment), styles[style] if colorful else "")

        code = self.options.get("code")
        header = Text.assemble(
            "[ ",
            text(getattr(main, "__prog__", self.options.get("prog", "chervil")), "prog-name"),
            " — ",
            text(code.normalize() if isinstance(code, FaultCode) else "?", "code"),
            " | ",
            text(str(self.options.get("title", "fault")).title(), "error-title"),
            " ]"
        )
        renders = [text(coalesce(self.message, ""), "error-message")]
        if hint := self.options.get("hint"):
            renders.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))
        if docs := self.options.get("docs"):
            renders.append(text(docs, "docs"))

        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def render(self, /, width=80):
        """
        Render the fault as plain text (no colors), e.g. for a chat reply.
        """
        console = Console(width=width, color_system=None, highlight=False)
        with console.capture() as capture:
            console.print(copy.replace(self, colorful=False))
        return capture.get().rstrip()

    def __trigger__(self):
        raise self from self.options.get("reason")

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class MalformedTokenError(CommandException): ...
class NoCommandError(CommandException): ...
class UnknownCommandError(CommandException): ...
class KeywordOrderError(CommandException): ...
class MissingArgumentError(CommandException): ...
class ArgumentCoercionError(CommandException, ValueError): ...


class HandlerError(CommandException, TypeError): ...
class HandlerNotCallableError(HandlerError): ...
class HandlerArityError(HandlerError): ...
class HandlerContextError(HandlerError): ...
class HandlerArgumentsError(HandlerError): ...


class RegistrationError(CommandException, TypeError):
    """
    Raised by Parser.register() when a handler fails validation.

    The underlying HandlerError is both the ``reason`` option and ``__cause__``.
    """

    @property
    def reason(self):
        return self.options.get("reason")


class ConversionError(ValueError):
    """
    A textual value could not be converted into a kind.

    Attributes
    - kind: the target chervil.kinds.Kind.
    - value: the raw text that failed.
    """

    def __init__(self, message, /, kind, value):
        super().__init__(message)
        self.kind = kind
        self.value = value


class InvalidLiteralError(ConversionError): ...
class OutOfRangeError(ConversionError): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see CommandException).
    - options are merged into the fault via copy.replace() before triggering.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings.
    when not found, returns None (renderers treat docs as optional).
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "CommandException",
    "MalformedTokenError",
    "NoCommandError",
    "UnknownCommandError",
    "KeywordOrderError",
    "MissingArgumentError",
    "ArgumentCoercionError",
    "HandlerError",
    "HandlerNotCallableError",
    "HandlerArityError",
    "HandlerContextError",
    "HandlerArgumentsError",
    "RegistrationError",
    "ConversionError",
    "InvalidLiteralError",
    "OutOfRangeError",
    "trigger",
    "getdoc",
)
