# Shell.py
"""Terminal front end: interactive REPL, piped input and one-shot expressions.

The shell owns the session Environment and only talks to the engine through
MathEngine.calculate, printing either the result or the coded error.
"""

import code
import logging
import os
import sys
from pathlib import Path
from types import ModuleType
from typing import Optional

from . import MathEngine
from . import error as E
from .Environment import new_environment

readline: Optional[ModuleType]
try:
    # REPL line editing and history.
    import readline
except ImportError:
    readline = None

logger = logging.getLogger(__name__)

HISTFILE_NAME = ".calc_history"
HISTFILE_SIZE = 4096
PROMPT = "> "
EXIT_COMMANDS = ("exit", "quit")


def format_error(error):
    return f"error {error.code}: {error}"


def history_file():
    home = os.environ.get("CALC_HOME", Path.home())
    return Path(home) / HISTFILE_NAME


class Session:
    """One environment plus the settings every line is evaluated with."""

    def __init__(self, settings, out=None, err=None):
        self.settings = settings
        self.env = new_environment()
        self.out = out or sys.stdout
        self.err = err or sys.stderr

    def run_line(self, line):
        """Evaluate one line; returns True on success. Errors are printed, not raised."""
        line = line.strip()
        if not line:
            return True
        if line == "vars":
            self.print_variables()
            return True
        try:
            result = MathEngine.calculate(line, self.env, self.settings)
        except E.MathError as e:
            print(format_error(e), file=self.err)
            return False
        print(result, file=self.out)
        return True

    def print_variables(self):
        for name, value in self.env.constants().items():
            print(f"{name} = {MathEngine.format_decimal(value, self.settings.decimal_places)} (constant)", file=self.out)
        for name, value in self.env.variables().items():
            print(f"{name} = {MathEngine.format_decimal(value)}", file=self.out)

    def run_all(self, lines):
        """Evaluate every line; returns the process exit status."""
        status = 0
        for line in lines:
            if not self.run_line(line):
                status = 1
        return status


class Repl(code.InteractiveConsole):
    def __init__(self, session):
        super().__init__()
        self.session = session

    def runsource(self, source, filename="<input>", symbol="single"):
        if source.strip() in EXIT_COMMANDS:
            raise SystemExit(0)
        self.session.run_line(source)
        # Never wait for continuation lines.
        return False


def interact(session):
    """Run the REPL until EOF or 'exit', keeping readline history on disk."""
    histfile = history_file()
    if readline and histfile.exists():
        try:
            readline.read_history_file(histfile)
        except OSError as e:
            logger.warning("Could not read history %s: %s", histfile, e)

    sys.ps1 = PROMPT
    repl = Repl(session)
    try:
        repl.interact(banner="", exitmsg="")
    except SystemExit:
        pass
    finally:
        if readline:
            readline.set_history_length(HISTFILE_SIZE)
            try:
                readline.write_history_file(histfile)
            except OSError as e:
                logger.warning("Could not write history %s: %s", histfile, e)
    return 0


def run(expressions, settings, stdin=None):
    """Choose the mode: one-shot expressions, REPL on a terminal, or piped lines."""
    stdin = stdin or sys.stdin
    session = Session(settings)
    if expressions:
        return session.run_all(expressions)
    if stdin.isatty():
        return interact(session)
    return session.run_all(stdin)
