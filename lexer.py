from dataclasses import dataclass
from enum import Enum

from basic_errors import LexError


class TokenKind(Enum):
    WORD = "WORD"
    NUMBER = "NUMBER"
    STRINGLITERAL = "STRINGLITERAL"
    LABEL = "LABEL"
    FUNCTIONNAME = "FUNCTIONNAME"

    # keywords
    IF = "IF"
    PRINT = "PRINT"
    READ = "READ"
    INPUT = "INPUT"
    DATA = "DATA"
    GOSUB = "GOSUB"
    GOTO = "GOTO"
    FOR = "FOR"
    TO = "TO"
    STEP = "STEP"
    NEXT = "NEXT"
    RETURN = "RETURN"
    THEN = "THEN"
    WHILE = "WHILE"
    END = "END"

    # operators / punctuation
    LESSTHANEQUALTO = "<="
    GREATERTHANEQUALTO = ">="
    NOTEQUALS = "<>"
    EQUALS = "="
    LESSTHAN = "<"
    GREATERTHAN = ">"
    LPAREN = "("
    RPAREN = ")"
    PLUS = "+"
    MINUS = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    COMMA = ","

    ENDOFLINE = "ENDOFLINE"


KEYWORDS = {
    "if": TokenKind.IF,
    "print": TokenKind.PRINT,
    "read": TokenKind.READ,
    "input": TokenKind.INPUT,
    "data": TokenKind.DATA,
    "gosub": TokenKind.GOSUB,
    "goto": TokenKind.GOTO,
    "for": TokenKind.FOR,
    "to": TokenKind.TO,
    "step": TokenKind.STEP,
    "next": TokenKind.NEXT,
    "return": TokenKind.RETURN,
    "then": TokenKind.THEN,
    "while": TokenKind.WHILE,
    "end": TokenKind.END,
}

TWO_CHAR_SYMBOLS = {
    "<=": TokenKind.LESSTHANEQUALTO,
    ">=": TokenKind.GREATERTHANEQUALTO,
    "<>": TokenKind.NOTEQUALS,
}

ONE_CHAR_SYMBOLS = {
    "=": TokenKind.EQUALS,
    "<": TokenKind.LESSTHAN,
    ">": TokenKind.GREATERTHAN,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.MULTIPLY,
    "/": TokenKind.DIVIDE,
}

# a word ends right after one of these
WORD_TERMINATORS = "$%:"

VALID_ESCAPES = "nr\""


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str | None = None
    line: int = 1
    column: int = 0

    def __repr__(self):
        if self.text is not None:
            return f"{self.kind.name}({self.text})"
        return f"{self.kind.name}"


class Lexer:
    def __init__(self, text):
        self.text = text
        self.pos = 0
        self.current_char = text[0] if text else None
        self.line = 1
        self.column = 0

    def advance(self):
        # line/column are updated by the caller on "\n"
        self.column += 1
        self.pos += 1
        if self.pos >= len(self.text):
            self.current_char = None
        else:
            self.current_char = self.text[self.pos]

    def peek(self):
        nxt = self.pos + 1
        if nxt >= len(self.text):
            return None
        return self.text[nxt]

    def error_here(self, message):
        raise LexError(message, self.line, self.column)

    def tokenize(self):
        tokens = []

        while self.current_char is not None:
            ch = self.current_char

            if ch == "\n":
                tokens.append(Token(TokenKind.ENDOFLINE, line=self.line, column=self.column))
                self.advance()
                self.line += 1
                self.column = 0
                continue

            # carriage returns vanish so CRLF gives a single ENDOFLINE
            if ch == "\r":
                self.pos += 1
                self.current_char = self.text[self.pos] if self.pos < len(self.text) else None
                continue

            if ch.isspace():
                self.advance()
                continue

            if ch == ",":
                tokens.append(Token(TokenKind.COMMA, ",", self.line, self.column))
                self.advance()
                continue

            if ch.isalpha():
                tokens.append(self.read_word())
                continue

            if ch.isdigit() or (ch == "." and self.peek() is not None and self.peek().isdigit()):
                tokens.append(self.read_number())
                continue

            if ch == '"':
                tokens.append(self.read_string())
                continue

            tokens.append(self.read_symbol())

        if tokens and tokens[-1].kind != TokenKind.ENDOFLINE:
            tokens.append(Token(TokenKind.ENDOFLINE, line=self.line, column=self.column))

        return tokens

    def read_word(self):
        start_line, start_col = self.line, self.column
        result = ""
        while self.current_char is not None and (
            self.current_char.isalnum() or self.current_char == "_" or self.current_char in WORD_TERMINATORS
        ):
            ch = self.current_char
            result += ch
            self.advance()
            if ch in WORD_TERMINATORS:
                break

        keyword = KEYWORDS.get(result.lower())
        if keyword is not None:
            return Token(keyword, line=start_line, column=start_col)
        if result.endswith(":"):
            return Token(TokenKind.LABEL, result, start_line, start_col)
        if self.current_char == "(":
            return Token(TokenKind.FUNCTIONNAME, result, start_line, start_col)
        return Token(TokenKind.WORD, result, start_line, start_col)

    def read_number(self):
        # letters are let through here; the parser rejects them on conversion
        start_line, start_col = self.line, self.column
        result = ""
        has_dot = False

        while self.current_char is not None and (self.current_char.isalnum() or self.current_char == "."):
            if self.current_char == ".":
                if has_dot:
                    self.error_here(f"Invalid character for number '{result}.'")
                has_dot = True
            result += self.current_char
            self.advance()

        return Token(TokenKind.NUMBER, result, start_line, start_col)

    def read_string(self):
        start_line, start_col = self.line, self.column
        self.advance()  # skip opening quote
        result = ""
        quote_open = False
        escape_next = False

        while True:
            ch = self.current_char

            if ch is None or ch == "\n":
                raise LexError(f"Unterminated string literal: '{result}'", start_line, start_col)

            if ch == "\r":
                self.advance()
                continue

            if escape_next:
                if ch not in VALID_ESCAPES:
                    self.error_here(f"Invalid escaped character '{ch}' in string '{result}'")
                escape_next = False
                if ch == "n":
                    result += "\n"
                elif ch == '"':
                    quote_open = not quote_open
                    result += '"'
                # \r is dropped
                self.advance()
                continue

            if ch == "\\":
                escape_next = True
                self.advance()
                continue

            if ch == '"':
                self.advance()  # skip closing quote
                break

            result += ch
            self.advance()

        if quote_open:
            raise LexError(f"Unterminated string literal: '{result}'", start_line, start_col)

        return Token(TokenKind.STRINGLITERAL, result, start_line, start_col)

    def read_symbol(self):
        start_line, start_col = self.line, self.column
        pair = self.current_char + (self.peek() or "")
        if pair in TWO_CHAR_SYMBOLS:
            self.advance()
            self.advance()
            return Token(TWO_CHAR_SYMBOLS[pair], pair, start_line, start_col)

        ch = self.current_char
        if ch in ONE_CHAR_SYMBOLS:
            self.advance()
            return Token(ONE_CHAR_SYMBOLS[ch], ch, start_line, start_col)

        self.error_here(f"Unrecognized symbol '{ch}'")


def tokenize(source):
    return Lexer(source).tokenize()
