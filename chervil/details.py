"""
Introspection snapshots for help output.

- ArgumentDetails: (name, type, descr, required, default) projection of one Argument.
- CommandDetails: (name, descr, arguments) projection of one Command.

Both are plain named tuples recomputed on every Parser.describe() call. They
render through rich (``__rich__``), so ``Console().print(details)`` shows a
usage line and an argument table; Parser.helptext() captures that as text.
"""
from collections import defaultdict, namedtuple

from rich.console import Group
from rich.table import Table
from rich.text import Text

NO_DESCRIPTION = "No description provided."


def _styles():
    return defaultdict(str, {
        "command-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
        "command-description": "italic #A3A3A3",  # Neutral gray
        "argument-name": "bold #00E6FF",  # CYAN for arguments
        "argument-type": "bold #FFD600",  # AMBER for kinds
        "argument-required": "bold #22C55E",
        "argument-default": "#9CA3AF",
        "argument-description": "#9CA3AF",  # Muted gray
        "table-header": "bold #FFFFFF",
    } | getattr(__import__("__main__"), "__styles__", {}))


class ArgumentDetails(namedtuple("ArgumentDetails", ("name", "type", "descr", "required", "default"))):
    __slots__ = ()

    @classmethod
    def of(cls, argument, /):
        return cls(
            argument.name,
            argument.kind.label,
            argument.descr or NO_DESCRIPTION,
            argument.required,
            argument.default,
        )

    @property
    def usage(self):
        """
        Usage fragment: ``<name>`` when required, ``[name=default]`` otherwise.
        """
        if self.required:
            return f"<{self.name}>"
        return f"[{self.name}={self.default}]"


class CommandDetails(namedtuple("CommandDetails", ("name", "descr", "arguments"))):
    __slots__ = ()

    @classmethod
    def of(cls, command, /):
        return cls(
            command.name,
            command.descr,
            tuple(map(ArgumentDetails.of, command.arguments)),
        )

    @property
    def usage(self):
        return " ".join((self.name, *(argument.usage for argument in self.arguments)))

    def __rich__(self):
        styles = _styles()

        head = Text.assemble(
            (self.name, styles["command-name"]),
            *((" " + argument.usage, styles["argument-name"]) for argument in self.arguments),
        )
        renders = [head]
        if self.descr:
            renders.append(Text(self.descr, styles["command-description"]))

        if not self.arguments:
            return Group(*renders)

        table = Table(box=None, show_edge=False, pad_edge=False, header_style=styles["table-header"])
        table.add_column("argument", style=styles["argument-name"], no_wrap=True)
        table.add_column("type", style=styles["argument-type"], no_wrap=True)
        table.add_column("required", style=styles["argument-required"], no_wrap=True)
        table.add_column("default", style=styles["argument-default"])
        table.add_column("description", style=styles["argument-description"])
        for argument in self.arguments:
            table.add_row(
                Text(argument.name),
                Text(argument.type),
                Text("yes" if argument.required else "no"),
                Text("" if argument.default is None else repr(argument.default)),
                Text(argument.descr),
            )
        renders.append(table)
        return Group(*renders)


__all__ = (
    "ArgumentDetails",
    "CommandDetails",
    "NO_DESCRIPTION",
)
