import logging
import math
import random
from collections import deque

from ast_nodes import (
    INTEGER, FLOAT, STRING,
    Program, IntegerLiteral, FloatLiteral, StringLiteral, Variable, FunctionCall, MathOp, BooleanCompare,
    Expression, Term, Factor,
    Assignment, Print, Input, Read, Data, If, GoTo, GoSub, Return, For, Next, While, Labeled, End,
)
from basic_errors import BasicRuntimeError
from basic_io import BufferedIO, ConsoleIO
from builtin_functions import (
    call_builtin, format_value, is_int, is_number, parse_int32, to_float32, to_int32, type_name,
)

logger = logging.getLogger("simplebasic.interpreter")
logger.addHandler(logging.NullHandler())


# ---------- CONTROL STACK FRAMES ----------

class GoSubFrame:
    def __init__(self, return_index):
        self.return_index = return_index

    def __repr__(self):
        return f"GoSubFrame(return={self.return_index})"


class ForFrame:
    def __init__(self, index, var_name):
        self.index = index
        self.var_name = var_name

    def __repr__(self):
        return f"ForFrame({self.var_name} @ {self.index})"


class WhileFrame:
    def __init__(self, index):
        self.index = index

    def __repr__(self):
        return f"WhileFrame(@ {self.index})"


class Interpreter:
    def __init__(self, program, io=None, *, test_mode=False, test_input=None, rng=None, max_steps=None):
        if not isinstance(program, Program):
            raise TypeError("Interpreter expects a Program node")
        self.program = program
        self.statements = program.statements

        self.test_mode = test_mode
        if io is None:
            io = BufferedIO(test_input) if test_mode else ConsoleIO()
        self.io = io
        self.rng = rng or random.Random()
        self.max_steps = max_steps  # set to an int to guard against infinite loops

        self.variables = {}          # name -> int | float | str
        self.labels = {}             # label -> statement index
        self.while_labels = set()    # end labels of WHILE loops
        self.data_queue = deque()    # literal nodes from every DATA statement
        self.stack = []              # GoSubFrame | ForFrame | WhileFrame

        self.pc = 0
        self.done = False
        self._linked = False

    @property
    def output(self):
        return getattr(self.io, "output", None)

    # ---------- LINKING ----------
    def link(self):
        if self._linked:
            return
        for index, stmt in enumerate(self.statements):
            self._register(stmt, index)
        self._linked = True
        logger.debug(
            "Linked %d statements: %d labels, %d DATA values, %d WHILE end labels",
            len(self.statements), len(self.labels), len(self.data_queue), len(self.while_labels),
        )

    def _register(self, stmt, index):
        if isinstance(stmt, Labeled):
            if stmt.label in self.labels:
                raise BasicRuntimeError(f"Duplicate label '{stmt.label}'", stmt)
            self.labels[stmt.label] = index
            if stmt.statement is not None:
                self._register(stmt.statement, index)
        elif isinstance(stmt, Data):
            self.data_queue.extend(stmt.values)
        elif isinstance(stmt, While):
            self.while_labels.add(stmt.end_label)

    # ---------- RUN LOOP ----------
    def interpret(self):
        self.link()
        steps = 0
        while not self.done and self.pc is not None and self.pc < len(self.statements):
            if self.max_steps is not None and steps >= self.max_steps:
                raise BasicRuntimeError(f"Step limit exceeded ({self.max_steps})", self.statements[self.pc])
            steps += 1
            stmt = self.statements[self.pc]
            self.pc = self.execute(stmt, self.pc)
        return self.output

    def execute(self, stmt, index):
        # returns the index of the next statement, or None to stop
        nxt = index + 1

        if isinstance(stmt, Assignment):
            self.store(stmt.target, self.evaluate(stmt.value), stmt)
            return nxt

        if isinstance(stmt, Print):
            for arg in stmt.args:
                self.io.write(format_value(self.evaluate(arg)))
            self.io.write_line()
            return nxt

        if isinstance(stmt, Input):
            if not self.test_mode:
                self.io.prompt(stmt.prompt.value)
            for target in stmt.targets:
                self.store_input(target, self.io.read_line(), stmt)
            return nxt

        if isinstance(stmt, Read):
            for target in stmt.targets:
                self.read_data(target, stmt)
            return nxt

        if isinstance(stmt, Data):
            return nxt

        if isinstance(stmt, If):
            if self.evaluate_boolean(stmt.condition):
                target = self.lookup_label(stmt.label, stmt, "IF")
                logger.debug("IF jumps to '%s' (statement %d)", stmt.label, target)
                return target
            return nxt

        if isinstance(stmt, GoTo):
            return self.lookup_label(stmt.label, stmt, "GOTO")

        if isinstance(stmt, GoSub):
            target = self.lookup_label(stmt.label, stmt, "GOSUB")
            self.stack.append(GoSubFrame(nxt))
            return target

        if isinstance(stmt, Return):
            if not self.stack or not isinstance(self.stack[-1], GoSubFrame):
                raise BasicRuntimeError("'RETURN' statement without matching 'GOSUB'", stmt)
            return self.stack.pop().return_index

        if isinstance(stmt, For):
            return self.for_statement(stmt, index)

        if isinstance(stmt, Next):
            return self.next_statement(stmt)

        if isinstance(stmt, While):
            return self.while_statement(stmt, index)

        if isinstance(stmt, Labeled):
            return self.labeled_statement(stmt, index)

        if isinstance(stmt, End):
            self.done = True
            return None

        raise BasicRuntimeError(f"Unsupported statement: {stmt!r}", stmt)

    # ---------- STATEMENTS ----------
    def lookup_label(self, label, stmt, context):
        if label not in self.labels:
            raise BasicRuntimeError(f"No matching labeled statement '{label}' in '{context}' statement", stmt)
        return self.labels[label]

    def store(self, target, value, stmt):
        name = target.name
        if target.var_type == INTEGER and is_int(value):
            self.variables[name] = value
        elif target.var_type == FLOAT and isinstance(value, float):
            self.variables[name] = value
        elif target.var_type == FLOAT and is_int(value):
            self.variables[name] = to_float32(float(value))
        elif target.var_type == STRING and isinstance(value, str):
            self.variables[name] = value
        else:
            raise BasicRuntimeError(
                f"Cannot assign {type_name(value)} '{format_value(value)}' to variable '{name}' of type {target.var_type}",
                stmt,
            )

    def store_input(self, target, text, stmt):
        try:
            if target.var_type == INTEGER:
                value = parse_int32(text.strip())
            elif target.var_type == FLOAT:
                value = to_float32(float(text.strip()))
            else:
                value = text
        except ValueError as e:
            raise BasicRuntimeError(f"Cannot read '{text}' into {target.var_type} variable '{target.name}'", stmt) from e
        self.variables[target.name] = value

    def read_data(self, target, stmt):
        if not self.data_queue:
            raise BasicRuntimeError("Cannot read from empty DATA queue", stmt)
        literal = self.data_queue.popleft()
        expected = {INTEGER: IntegerLiteral, FLOAT: FloatLiteral, STRING: StringLiteral}[target.var_type]
        if not isinstance(literal, expected):
            raise BasicRuntimeError(
                f"Cannot assign DATA value '{format_value(literal.value)}' to variable '{target.name}' "
                f"of type {target.var_type}",
                stmt,
            )
        self.variables[target.name] = literal.value

    def for_statement(self, stmt, index):
        name = stmt.variable.name
        # an unset loop variable marks the first visit
        first_visit = name not in self.variables
        if first_visit:
            self.store(stmt.variable, self.evaluate(stmt.start), stmt)

        counter = self.lookup(stmt.variable)
        limit = self.evaluate(stmt.limit)
        step = self.evaluate(stmt.step)
        if not (is_number(counter) and is_number(limit) and is_number(step)):
            raise BasicRuntimeError("FOR loop bounds and step must be numeric", stmt)

        # bounds are checked before stepping; the first visit keeps the start value
        within = counter > limit if step < 0 else counter < limit
        if within:
            self.stack.append(ForFrame(index, name))
            if not first_visit:
                self.store(stmt.variable, self.arithmetic("+", counter, step, stmt), stmt)
            return index + 1

        logger.debug("FOR %s finished at %s", name, format_value(counter))
        return self.skip_past(index, stmt, lambda s: isinstance(s, Next) and s.variable.name == name, f"NEXT {name}")

    def next_statement(self, stmt):
        name = stmt.variable.name
        if not self.stack or not isinstance(self.stack[-1], ForFrame):
            raise BasicRuntimeError("NEXT statement must have a matching FOR loop declaration", stmt)
        frame = self.stack[-1]
        if frame.var_name != name:
            raise BasicRuntimeError(f"'NEXT {name}' does not match FOR loop iterator: '{frame.var_name}'", stmt)
        self.stack.pop()
        return frame.index

    def while_statement(self, stmt, index):
        if self.evaluate_boolean(stmt.condition):
            self.stack.append(WhileFrame(index))
            return index + 1

        logger.debug("WHILE loop exits to '%s'", stmt.end_label)
        return self.skip_past(
            index, stmt, lambda s: isinstance(s, Labeled) and s.label == stmt.end_label, f"{stmt.end_label}:",
        )

    def labeled_statement(self, stmt, index):
        if stmt.label in self.while_labels:
            if not self.stack or not isinstance(self.stack[-1], WhileFrame):
                raise BasicRuntimeError(f"End label '{stmt.label}' reached without an open WHILE loop", stmt)
            return self.stack.pop().index
        if stmt.statement is not None:
            # the inner statement's own successor is discarded
            self.execute(stmt.statement, index)
        return index + 1

    def skip_past(self, index, stmt, matches, wanted):
        # scan forward along the chain and continue after the first match
        for i in range(index + 1, len(self.statements)):
            candidate = self.statements[i]
            if matches(candidate):
                return i + 1
            if isinstance(candidate, Labeled) and candidate.statement is not None and matches(candidate.statement):
                return i + 1
        raise BasicRuntimeError(f"No '{wanted}' found to close the loop", stmt)

    # ---------- EXPRESSIONS ----------
    def lookup(self, var):
        if var.name not in self.variables:
            raise BasicRuntimeError(f"Variable '{var.name}' is not defined", var)
        return self.variables[var.name]

    def evaluate(self, node):
        if isinstance(node, (Expression, Term, Factor)):
            return self.evaluate(node.node)

        if isinstance(node, (IntegerLiteral, FloatLiteral, StringLiteral)):
            return node.value

        if isinstance(node, Variable):
            return self.lookup(node)

        if isinstance(node, MathOp):
            left = self.evaluate(node.left)
            right = self.evaluate(node.right)
            return self.arithmetic(node.op, left, right, node)

        if isinstance(node, BooleanCompare):
            return self.evaluate_boolean(node)

        if isinstance(node, FunctionCall):
            args = [self.evaluate(arg) for arg in node.args]
            try:
                return call_builtin(node.name, args, self.rng)
            except BasicRuntimeError as e:
                if e.statement is None and e.line is None:
                    raise BasicRuntimeError(e.message, node) from e
                raise

        raise BasicRuntimeError(f"Unsupported node: {node!r}", node)

    def arithmetic(self, op, left, right, node):
        if not (is_number(left) and is_number(right)):
            raise BasicRuntimeError(
                f"Illegal math operation {type_name(left)} '{format_value(left)}' {op} "
                f"{type_name(right)} '{format_value(right)}'",
                node,
            )

        if is_int(left) and is_int(right):
            if op == "+":
                return to_int32(left + right)
            if op == "-":
                return to_int32(left - right)
            if op == "*":
                return to_int32(left * right)
            if right == 0:
                raise BasicRuntimeError("Integer division by zero", node)
            quotient = abs(left) // abs(right)
            # truncate toward zero
            if (left < 0) != (right < 0):
                quotient = -quotient
            return to_int32(quotient)

        a = to_float32(float(left))
        b = to_float32(float(right))
        if op == "+":
            return to_float32(a + b)
        if op == "-":
            return to_float32(a - b)
        if op == "*":
            return to_float32(a * b)
        if b == 0:
            if a == 0 or math.isnan(a):
                return math.nan
            return math.copysign(math.inf, a) * math.copysign(1.0, b)
        return to_float32(a / b)

    def evaluate_boolean(self, node):
        left = self.evaluate(node.left)
        right = self.evaluate(node.right)
        if not (is_number(left) and is_number(right)):
            raise BasicRuntimeError(
                f"Unsupported comparison {type_name(left)} '{format_value(left)}' {node.op} "
                f"{type_name(right)} '{format_value(right)}'",
                node,
            )
        if not (is_int(left) and is_int(right)):
            left = to_float32(float(left))
            right = to_float32(float(right))

        if node.op == ">":
            return left > right
        if node.op == ">=":
            return left >= right
        if node.op == "<":
            return left < right
        if node.op == "<=":
            return left <= right
        if node.op == "<>":
            return left != right
        if node.op == "=":
            return left == right
        raise BasicRuntimeError(f"Invalid comparison operator: {node.op}", node)


def run_program(program, **kwargs):
    interpreter = Interpreter(program, **kwargs)
    interpreter.interpret()
    return interpreter
