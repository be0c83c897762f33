"""
Chervil command layer: register chat commands and dispatch message text to them.

What this module provides
- Parser: a registry of named commands bound to one message prefix.
  • register()/command(): validate a handler and store it under a name.
  • run(): prefix check → shell-style tokenization → command lookup →
    argument resolution → conversion → handler call.
  • describe()/describe_all()/helptext(): introspection for help output.
  • fallback(): hand per-message faults to a callback instead of raising.
- Command: the immutable record of one registered command.

Handlers
- A handler takes exactly two positional parameters:
    def greet(context: Message, args: GreetArgs) -> None: ...
  The first receives the transport's event context unchanged; when the parser
  was given a ``context`` type, its annotation (if any) must accept it. The
  second must be annotated with a dataclass whose fields declare the
  command's arguments (see chervil.arguments).

Quick start
    from dataclasses import dataclass
    from chervil import Parser, argument

    parser = Parser("!")

    @dataclass
    class GreetArgs:
        target: str = argument(default="world", descr="Target of the greeting.")

    @parser.command
    def greet(context, args: GreetArgs):
        \"\"\"Greets something.\"\"\"
        context.reply(f"Hello {args.target}!")

    parser.run(context, '!greet "big world"')   # target == "big world"
    parser.run(context, "!greet target=you")    # target == "you"
    parser.run(context, "hello there")          # not addressed to us: no-op

Argument resolution
- Tokens of the form ``name=value`` whose name is a declared argument are
  keywords; every other token (including ``other=value`` for undeclared names)
  is positional and kept verbatim.
- Positional tokens must all come before the first keyword.
- Each argument takes, in order of preference: its keyword value, the
  positional token at its declaration index, its default literal. Otherwise
  the first such argument (in declaration order) is reported missing.
- Surplus positional tokens are ignored.

Concurrency
- run() is synchronous and keeps all state local to the call, so concurrent
  runs are independent. The registry itself is a plain dict without locking:
  finish registration before dispatching concurrently, or guard register()
  and run() with your own read-write lock if commands change at runtime.
"""
import difflib
import inspect
import logging
import re
import shlex
import typing
from inspect import Parameter

from rich.console import Console, Group
from rich.table import Table
from rich.text import Text

from .arguments import schema
from .details import CommandDetails
from .faults import *
from .kinds import convert
from .utils import *

logger = logging.getLogger(__name__)

_KEYWORD = re.compile(r"([A-Za-z_0-9]+)=(.*)")


class CommandType(type):
    """
    Metaclass exposing __introspectable__ names as read-only properties and
    providing compact __repr__/__rich_repr__ implementations.
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
            return "%s(%s)" % (
                type(self).__typename__,
                ", ".join("%s=%r" % pair for pair in self.__rich_repr__()),
            )
        self.__repr__ = __repr__

        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _validate_handler(handler, context, /):
    """
    Inspect a candidate handler and return (record, arguments).

    Checks, in order
    - handler is callable and inspectable                   → HandlerNotCallableError
    - exactly two positional-capable parameters             → HandlerArityError
    - first annotation absent, Any, or a supertype of context (unchecked when
      context is Unset)                                       → HandlerContextError
    - second annotation is a dataclass with supported fields  → HandlerArgumentsError

    No side effects; the returned arguments tuple is the command's schema.
    """
    if not callable(handler):
        raise HandlerNotCallableError(
            "command handler %r is not a function" % (handler,),
            title="handler not callable",
            code=FaultCode.HANDLER_NOT_CALLABLE,
            hint="register a function taking (context, arguments)",
            docs=getdoc(FaultCode.HANDLER_NOT_CALLABLE),
        )

    try:
        parameters = list(inspect.signature(handler).parameters.values())
    except (TypeError, ValueError):
        raise HandlerNotCallableError(
            "command handler %r has no inspectable signature" % (handler,),
            title="handler not callable",
            code=FaultCode.HANDLER_NOT_CALLABLE,
            hint="register a plain python function or method",
            docs=getdoc(FaultCode.HANDLER_NOT_CALLABLE),
        ) from None

    if len(parameters) != 2 or any(
        parameter.kind not in (Parameter.POSITIONAL_ONLY, Parameter.POSITIONAL_OR_KEYWORD)
        for parameter in parameters
    ):
        raise HandlerArityError(
            "command handler expects %d parameter(s), two positional parameters are required" % len(parameters),
            title="handler parameter count",
            code=FaultCode.HANDLER_ARITY,
            hint="declare the handler as handler(context, arguments)",
            docs=getdoc(FaultCode.HANDLER_ARITY),
        )

    try:
        first, second = inspect.signature(handler, eval_str=True).parameters.values()
    except Exception as error:
        raise HandlerArgumentsError(
            "command handler annotations cannot be resolved: %s" % error,
            title="handler annotations",
            code=FaultCode.HANDLER_ARGUMENTS,
            hint="make sure every annotation name is importable from the handler's module",
            docs=getdoc(FaultCode.HANDLER_ARGUMENTS),
        ) from error

    annotation = first.annotation
    if not (
        context is Unset or
        annotation is Parameter.empty or
        annotation is typing.Any or
        isinstance(annotation, type) and issubclass(context, annotation)
    ):
        raise HandlerContextError(
            "command handler first parameter %r must accept %s, not %r" % (first.name, context.__qualname__, annotation),
            title="handler context parameter",
            code=FaultCode.HANDLER_CONTEXT,
            hint="annotate the first parameter with %s (or leave it unannotated)" % context.__qualname__,
            docs=getdoc(FaultCode.HANDLER_CONTEXT),
        )

    record = second.annotation
    try:
        arguments = schema(record)
    except TypeError as error:
        raise HandlerArgumentsError(
            "command handler second parameter %r must be a dataclass of arguments: %s" % (second.name, error),
            title="handler arguments parameter",
            code=FaultCode.HANDLER_ARGUMENTS,
            hint="annotate the second parameter with a @dataclass whose fields are bool, int, float, str or a chervil width type",
            docs=getdoc(FaultCode.HANDLER_ARGUMENTS),
        ) from error

    return record, arguments


class Command(metaclass=CommandType):
    """
    One registered command (immutable).

    Properties
    - name: the first token that selects this command.
    - descr: description text.
    - handler: the validated callable.
    - record: the dataclass type handed to the handler.
    - arguments: ordered tuple of chervil.arguments.Argument.
    """

    __introspectable__ = (
        "name",
        "descr",
        "handler",
        "record",
        "arguments",
    )

    def __new__(cls, name, descr, handler, record, arguments, /):
        self = super().__new__(cls)
        self._name = name
        self._descr = descr
        self._handler = handler
        self._record = record
        self._arguments = tuple(arguments)
        return self

    def __invoke__(self, context, values, /):
        """
        Build the arguments record from converted values and call the handler.

        The handler's return value is discarded; its own exceptions propagate.
        """
        self._handler(context, self._record(**values))


class Parser(metaclass=CommandType):
    """
    Command registry and dispatcher bound to a message prefix.

    Parameters
    - prefix: str
      Literal text a message must start with to be handled (e.g. "!").
    - context: type
      Type of the event context values passed to run(); handler first-parameter
      annotations are checked against it. When omitted, any annotation is
      accepted and context values are not constrained.
    - colorful, fancy: bool
      Rendering flags merged into every fault (colors / rich panel).

    Instances are independent; there is no module-level registry.
    """

    __introspectable__ = (
        "prefix",
        "context",
        "colorful",
        "fancy",
    )

    def __new__(cls, prefix, /, context=Unset, *, colorful=False, fancy=False):
        if not isinstance(prefix, str):
            raise TypeError(f"{cls.__typename__} 'prefix' must be a string")
        elif not prefix:
            raise ValueError(f"{cls.__typename__} 'prefix' cannot be empty")
        if context is not Unset and not isinstance(context, type):
            raise TypeError(f"{cls.__typename__} 'context' must be a type")

        self = super().__new__(cls)
        self._prefix = prefix
        self._context = context
        self._colorful = bool(colorful)
        self._fancy = bool(fancy)
        self._commands = {}
        self._fallback = Unset
        return self

    @property
    def commands(self):
        """
        Snapshot mapping of command names to Command records.
        """
        return dict(self._commands)

    def register(self, name, descr, handler, /):
        """
        Validate ``handler`` and store it under ``name``.

        Re-registering a name silently replaces the previous command. On
        validation failure a RegistrationError (chained from the HandlerError)
        is raised and the registry is left untouched.

        Returns
        - the new Command.
        """
        if not isinstance(name, str):
            raise TypeError(f"{type(self).__typename__} command name must be a string")
        elif not name or any(character.isspace() for character in name):
            raise ValueError(f"{type(self).__typename__} command name must be a non-empty word")
        if not isinstance(descr, str):
            raise TypeError(f"{type(self).__typename__} command description must be a string")

        try:
            record, arguments = _validate_handler(handler, self._context)
        except HandlerError as error:
            logger.debug("rejected handler for command %r: %s", name, error)
            raise RegistrationError(
                "cannot register command %r: %s" % (name, error.message),
                title="registration failed",
                code=FaultCode.REGISTRATION,
                hint=error.options.get("hint"),
                command=name,
                reason=error,
                docs=getdoc(FaultCode.REGISTRATION),
            ) from error

        command = Command(name, descr, handler, record, arguments)
        if name in self._commands:
            logger.debug("replacing command %r", name)
        self._commands[name] = command
        logger.debug("registered command %r with %d argument(s)", name, len(arguments))
        return command

    def command(self, source=Unset, /, name=Unset, descr=Unset):
        """
        Register a handler, or return a decorator that will.

        - @parser.command                        → name from __name__, descr from docstring
        - @parser.command(name="hi", descr="…")  → explicit metadata
        - parser.command(handler, "hi")          → direct call

        Returns the handler unchanged so it stays callable as a plain function.
        """
        def wrapper(source, /):
            self.register(
                coalesce(name, getattr(source, "__name__", Unset)),
                coalesce(descr, inspect.getdoc(source) or ""),
                source,
            )
            return source

        return wrapper(source) if source is not Unset else wrapper

    def fallback(self, fallback, /):
        """
        Register a fault handler for run().

        Contract
        - fallback(context, fault) is called with every per-message fault
          (tokenization, routing, argument and conversion faults) instead of
          raising it; run() then returns None.
        - Registration faults are never routed here.

        Returns
        - The same callable, enabling decorator-style usage: @parser.fallback
        """
        if not callable(fallback):
            raise TypeError(f"{type(self).__typename__} fallback must be callable")
        if self._fallback is not Unset:
            raise TypeError(f"{type(self).__typename__} fallback cannot be overridden")
        self._fallback = fallback
        return fallback

    def trigger(self, fault, /, **options):
        """
        Raise ``fault`` with this parser's rendering options merged in.
        """
        trigger(fault, **options, prog=self._prefix, colorful=self._colorful, fancy=self._fancy)

    def lookup(self, name, /):
        """
        Return the Command registered under ``name`` or raise UnknownCommandError.
        """
        try:
            return self._commands[name]
        except KeyError:
            pass

        suggestions = difflib.get_close_matches(name, self._commands.keys(), 3)
        try:
            hint = "did you mean %r?" % suggestions[0]
        except IndexError:
            hint = "check the spelling of the command name"
        self.trigger(UnknownCommandError(
            "unknown command %r" % name,
            title="unknown command",
            code=FaultCode.UNKNOWN_COMMAND,
            command=name,
            suggestions=suggestions,
            hint=hint,
            docs=getdoc(FaultCode.UNKNOWN_COMMAND),
        ))

    def _tokenize(self, source):
        """
        Split text into tokens with POSIX shell quoting rules.
        """
        try:
            return shlex.split(source)
        except ValueError as error:
            self.trigger(MalformedTokenError(
                "malformed input: %s" % str(error).lower(),
                title="malformed input",
                code=FaultCode.MALFORMED_TOKEN,
                input=source,
                hint="close every quote and do not end the message with a backslash",
                reason=error,
                docs=getdoc(FaultCode.MALFORMED_TOKEN),
            ))

    def _resolve(self, command, tokens):
        """
        Map argument tokens onto the command's arguments and convert them.

        Returns
        - dict[str, object]: converted value per argument name.
        """
        names = {argument.name for argument in command.arguments}
        keywords = {}
        positionals = []
        parsing_keywords = False

        # position 1 is the command name itself
        for index, token in enumerate(tokens, 2):
            if (match := _KEYWORD.fullmatch(token)) and match[1] in names:
                parsing_keywords = True
                keywords[match[1]] = match[2]
            elif parsing_keywords:
                self.trigger(KeywordOrderError(
                    "positional argument %r at %s position follows keyword arguments" % (token, ordinal(index)),
                    title="keyword arguments must be at the end",
                    code=FaultCode.KEYWORD_ORDER,
                    command=command.name,
                    token=token,
                    index=index,
                    hint="move positional values before the first name=value pair",
                    docs=getdoc(FaultCode.KEYWORD_ORDER),
                ))
            else:
                positionals.append(token)

        values = {}
        for argument in command.arguments:
            if argument.name in keywords:
                source, value = "keyword", keywords[argument.name]
            elif argument.index < len(positionals):
                source, value = "positional", positionals[argument.index]
            elif argument.default is not None:
                source, value = "default", argument.default
            else:
                self.trigger(MissingArgumentError(
                    "required argument %r missing" % argument.name,
                    title="missing argument",
                    code=FaultCode.MISSING_ARGUMENT,
                    command=command.name,
                    argument=argument.name,
                    hint="pass it as the %s value or as %s=<%s>" % (
                        ordinal(argument.index + 1), argument.name, argument.kind.label
                    ),
                    docs=getdoc(FaultCode.MISSING_ARGUMENT),
                ))

            try:
                values[argument.name] = convert(argument.kind, value)
            except ConversionError as error:
                self.trigger(ArgumentCoercionError(
                    "%s value %r for argument %r: %s" % (source, value, argument.name, error),
                    title="invalid argument value",
                    code=FaultCode.UNCASTABLE_ARGUMENT,
                    command=command.name,
                    argument=argument.name,
                    kind=argument.kind,
                    value=value,
                    source=source,
                    reason=error,
                    hint="%r expects a %s value" % (argument.name, argument.kind.label),
                    docs=getdoc(FaultCode.UNCASTABLE_ARGUMENT),
                ))

        return values

    def _parseargs(self, source):
        tokens = self._tokenize(source)
        if not tokens:
            self.trigger(NoCommandError(
                "no command provided",
                title="no command",
                code=FaultCode.NO_COMMAND,
                hint="write a command name right after %r" % self._prefix,
                docs=getdoc(FaultCode.NO_COMMAND),
            ))

        name, *tokens = tokens
        command = self.lookup(name)
        return command, self._resolve(command, tokens)

    def run(self, context, text, /):
        """
        Dispatch one message.

        Parameters
        - context: the transport's event context, passed to the handler unchanged.
        - text: full message content.

        Behavior
        - Text not starting with the prefix is ignored (returns None, no call).
        - Otherwise the matching handler is called once with (context, record).

        Raises
        - MalformedTokenError, NoCommandError, UnknownCommandError,
          KeywordOrderError, MissingArgumentError, ArgumentCoercionError;
          unless a fallback is registered, which receives them instead.
        - Whatever the handler itself raises.
        """
        if not isinstance(text, str):
            raise TypeError(f"{type(self).__typename__} run() text must be a string")
        if not text.startswith(self._prefix):
            logger.debug("ignoring message without prefix %r", self._prefix)
            return

        try:
            command, values = self._parseargs(text[len(self._prefix):])
        except CommandException as fault:
            logger.debug("fault while parsing %r: %s", text, fault)
            if self._fallback is Unset:
                raise
            self._fallback(context, fault)
            return

        logger.debug("dispatching command %r", command.name)
        command.__invoke__(context, values)

    def describe(self, name, /):
        """
        Return CommandDetails for one command (UnknownCommandError when missing).
        """
        return CommandDetails.of(self.lookup(name))

    def describe_all(self):
        """
        Return CommandDetails for every command, sorted by name.
        """
        return [self.describe(name) for name in sorted(self._commands)]

    def helptext(self, name=Unset, /, width=80):
        """
        Render help as plain text: one command when ``name`` is given, otherwise all.
        """
        if name is not Unset:
            render = self.describe(name)
        elif details := self.describe_all():
            table = Table(box=None, show_header=False, pad_edge=False)
            table.add_column("usage", no_wrap=True)
            table.add_column("description")
            for detail in details:
                table.add_row(Text(detail.usage), Text(detail.descr))
            render = Group(Text("commands"), table)
        else:
            render = Text("no commands registered")

        console = Console(width=width, color_system=None, highlight=False)
        with console.capture() as capture:
            console.print(render)
        return capture.get().rstrip()


__all__ = (
    "Command",
    "Parser",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del CommandType
