import sys
from collections import deque

from basic_errors import BasicRuntimeError


class ConsoleIO:
    """Line I/O bound to stdin/stdout."""

    def __init__(self, stdin=None, stdout=None):
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout

    def write(self, text):
        self.stdout.write(text)
        self.stdout.flush()

    def write_line(self, text=""):
        self.write(text + "\n")

    def prompt(self, text):
        self.write(text)

    def read_line(self):
        line = self.stdin.readline()
        if line == "":
            raise BasicRuntimeError("INPUT reached end of input")
        return line.rstrip("\r\n")


class BufferedIO:
    """In-memory I/O for test mode.

    Input comes from a pre-seeded FIFO of strings; every value written lands
    as its own entry in `output`, so one PRINT with three arguments appends
    three entries. Line ends and prompts are not recorded.
    """

    def __init__(self, inputs=None):
        self.inputs = deque(inputs or [])
        self.output = []

    def write(self, text):
        self.output.append(text)

    def write_line(self, text=""):
        if text:
            self.output.append(text)

    def prompt(self, text):
        pass

    def read_line(self):
        if not self.inputs:
            raise BasicRuntimeError("INPUT has no more test input")
        return self.inputs.popleft()
