from dataclasses import dataclass, field

INTEGER = "integer"
FLOAT = "float"
STRING = "string"


def type_for_name(name: str) -> str:
    # suffix typing: NAME$ is a string, NAME% a float, anything else an integer
    if name.endswith("$"):
        return STRING
    if name.endswith("%"):
        return FLOAT
    return INTEGER


@dataclass(frozen=True)
class ASTNode:
    # Optional source line (1-based). Parser sets this; never part of equality.
    line: int | None = field(default=None, compare=False, kw_only=True)


# ---------- EXPRESSIONS ----------

@dataclass(frozen=True)
class IntegerLiteral(ASTNode):
    value: int


@dataclass(frozen=True)
class FloatLiteral(ASTNode):
    value: float


@dataclass(frozen=True)
class StringLiteral(ASTNode):
    value: str


@dataclass(frozen=True)
class Variable(ASTNode):
    name: str
    var_type: str = field(init=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "var_type", type_for_name(self.name))


@dataclass(frozen=True)
class FunctionCall(ASTNode):
    name: str    # canonical built-in name, e.g. "LEFT$"
    args: tuple  # expression nodes


@dataclass(frozen=True)
class MathOp(ASTNode):
    op: str  # + - * /
    left: ASTNode
    right: ASTNode


@dataclass(frozen=True)
class BooleanCompare(ASTNode):
    op: str  # > >= < <= <> =
    left: ASTNode
    right: ASTNode


# Grammar-layer wrappers: one child each, evaluated straight through.

@dataclass(frozen=True)
class Expression(ASTNode):
    node: ASTNode


@dataclass(frozen=True)
class Term(ASTNode):
    node: ASTNode


@dataclass(frozen=True)
class Factor(ASTNode):
    node: ASTNode


# ---------- STATEMENTS ----------

@dataclass(frozen=True)
class Assignment(ASTNode):
    target: Variable
    value: ASTNode


@dataclass(frozen=True)
class Print(ASTNode):
    args: tuple = ()


@dataclass(frozen=True)
class Input(ASTNode):
    prompt: StringLiteral
    targets: tuple = ()


@dataclass(frozen=True)
class Read(ASTNode):
    targets: tuple


@dataclass(frozen=True)
class Data(ASTNode):
    values: tuple  # IntegerLiteral | FloatLiteral | StringLiteral


@dataclass(frozen=True)
class If(ASTNode):
    condition: BooleanCompare
    label: str


@dataclass(frozen=True)
class GoTo(ASTNode):
    label: str


@dataclass(frozen=True)
class GoSub(ASTNode):
    label: str


@dataclass(frozen=True)
class Return(ASTNode):
    pass


@dataclass(frozen=True)
class For(ASTNode):
    variable: Variable
    start: ASTNode
    limit: ASTNode
    step: ASTNode


@dataclass(frozen=True)
class Next(ASTNode):
    variable: Variable


@dataclass(frozen=True)
class While(ASTNode):
    condition: BooleanCompare
    end_label: str


@dataclass(frozen=True)
class Labeled(ASTNode):
    label: str
    statement: ASTNode | None = None


@dataclass(frozen=True)
class End(ASTNode):
    pass


@dataclass(frozen=True)
class Program(ASTNode):
    statements: tuple = ()
