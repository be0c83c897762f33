from dataclasses import dataclass

from rich import print
from rich.pretty import pprint

from chervil import *

__prog__ = "chervil-demo"

parser = Parser("!", fancy=True)


@dataclass
class GreetArgs:
    target: str = argument(default="world", descr="Target of the greeting.")
    times: UInt8 = argument(default="1", descr="How many times to greet.")


@parser.command
def greet(context, args: GreetArgs):
    """Greets something."""
    for _ in range(args.times):
        print(f"{context}: Hello {args.target}!")


@parser.fallback
def fallback(context, fault):
    print(fault)


if __name__ == '__main__':
    pprint(parser.lookup("greet"))
    print(parser.describe("greet"))
    parser.run("demo", '!greet "big world" times=2')
    parser.run("demo", "!gret")
    parser.run("demo", "!greet times=300")
