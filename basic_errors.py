class BasicError(Exception):
    kind = "Basic"

    def __init__(self, message: str, line: int | None = None, column: int | None = None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column

    def format(self, indent: str = "") -> str:
        text = f"{indent}{self.kind} error: {self.message}"
        if self.line is not None and self.column is not None:
            text += f" (line {self.line}, col {self.column})"
        elif self.line is not None:
            text += f" (line {self.line})"
        return text

    def __str__(self) -> str:
        return self.format()


class LexError(BasicError):
    kind = "Lex"


class ParseError(BasicError):
    kind = "Parse"

    def __init__(self, message: str, token=None):
        line = token.line if token is not None else None
        column = token.column if token is not None else None
        super().__init__(message, line, column)
        self.token = token  # None when input ran out


class BasicRuntimeError(BasicError):
    kind = "Runtime"

    def __init__(self, message: str, statement=None):
        super().__init__(message, getattr(statement, "line", None))
        self.statement = statement
