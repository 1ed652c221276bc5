from ast_nodes import (
    Program, IntegerLiteral, FloatLiteral, StringLiteral, Variable, FunctionCall, MathOp, BooleanCompare,
    Expression, Term, Factor,
    Assignment, Print, Input, Read, Data, If, GoTo, GoSub, Return, For, Next, While, Labeled, End,
)
from basic_errors import ParseError
from builtin_functions import parse_int32, resolve_builtin, to_float32
from lexer import TokenKind

COMPARATORS = {
    TokenKind.GREATERTHAN: ">",
    TokenKind.GREATERTHANEQUALTO: ">=",
    TokenKind.LESSTHAN: "<",
    TokenKind.LESSTHANEQUALTO: "<=",
    TokenKind.NOTEQUALS: "<>",
    TokenKind.EQUALS: "=",
}

EXPRESSION_OPS = {
    TokenKind.PLUS: "+",
    TokenKind.MINUS: "-",
    TokenKind.MULTIPLY: "*",
    TokenKind.DIVIDE: "/",
}

TERM_OPS = {
    TokenKind.MULTIPLY: "*",
    TokenKind.DIVIDE: "/",
}


class TokenCursor:
    """Position-indexed view over a token list."""

    def __init__(self, tokens):
        self.tokens = list(tokens)
        self.index = 0

    def peek(self, offset=0):
        i = self.index + offset
        if i < len(self.tokens):
            return self.tokens[i]
        return None

    def more_tokens(self):
        return self.index < len(self.tokens)

    def match_and_remove(self, kind):
        # consume and return the head token only if it has the given kind
        tok = self.peek()
        if tok is not None and tok.kind == kind:
            self.index += 1
            return tok
        return None


class Parser:
    def __init__(self, tokens):
        self.tokens = TokenCursor(tokens)

    # ---------- HELPERS ----------
    def peek_is(self, kind):
        tok = self.tokens.peek()
        return tok is not None and tok.kind == kind

    def accept(self, kind):
        return self.tokens.match_and_remove(kind)

    def expect(self, kind, context, message):
        tok = self.accept(kind)
        if tok is None:
            self.error_here(context, message)
        return tok

    def error_here(self, context, message):
        tok = self.tokens.peek()
        got = repr(tok) if tok is not None else "end of input"
        raise ParseError(f"Invalid token {got} in '{context}' statement: {message}", tok)

    # ignore runs of ENDOFLINE between statements
    def accept_separators(self):
        found = False
        while self.accept(TokenKind.ENDOFLINE):
            found = True
        return found

    # ---------- TOP LEVEL ----------
    def parse(self):
        statements = []
        self.accept_separators()

        while True:
            stmt = self.statement()
            if stmt is None:
                break
            statements.append(stmt)
            self.accept_separators()

        if self.tokens.more_tokens():
            tok = self.tokens.peek()
            raise ParseError(f"Unexpected token {tok!r} at start of statement", tok)

        return Program(tuple(statements))

    def parse_expressions(self):
        # expression-only mode: one expression per line
        expressions = []
        self.accept_separators()
        while self.tokens.more_tokens():
            expressions.append(self.expression())
            if not self.accept_separators() and self.tokens.more_tokens():
                self.error_here("Expression", "Expected end of line after expression")
        return expressions

    # ---------- STATEMENTS ----------
    def statement(self):
        tok = self.tokens.peek()
        if tok is None:
            return None

        if tok.kind == TokenKind.LABEL:
            return self.labeled_statement()
        if tok.kind == TokenKind.READ:
            return self.read_statement()
        if tok.kind == TokenKind.DATA:
            return self.data_statement()
        if tok.kind == TokenKind.PRINT:
            return self.print_statement()
        if tok.kind == TokenKind.INPUT:
            return self.input_statement()
        if tok.kind == TokenKind.GOTO:
            return self.goto_statement()
        if tok.kind == TokenKind.GOSUB:
            return self.gosub_statement()
        if tok.kind == TokenKind.RETURN:
            return self.return_statement()
        if tok.kind == TokenKind.WORD:
            return self.assignment()
        if tok.kind == TokenKind.FOR:
            return self.for_statement()
        if tok.kind == TokenKind.NEXT:
            return self.next_statement()
        if tok.kind == TokenKind.IF:
            return self.if_statement()
        if tok.kind == TokenKind.WHILE:
            return self.while_statement()
        if tok.kind == TokenKind.END:
            self.accept(TokenKind.END)
            return End(line=tok.line)

        return None

    def labeled_statement(self):
        tok = self.accept(TokenKind.LABEL)
        label = tok.text[:-1]  # stored without the colon

        # a bare label marks the end of a WHILE loop
        if self.peek_is(TokenKind.ENDOFLINE):
            return Labeled(label, None, line=tok.line)

        return Labeled(label, self.statement(), line=tok.line)

    def read_statement(self):
        tok = self.accept(TokenKind.READ)
        if not self.peek_is(TokenKind.WORD):
            self.error_here("READ", "Expected a variable name after 'READ'")

        variables = []
        while True:
            node = self.factor()
            if not isinstance(node, Variable):
                self.error_here("READ", "Expected a variable name")
            variables.append(node)
            if not self.accept(TokenKind.COMMA):
                break

        return Read(tuple(variables), line=tok.line)

    def data_statement(self):
        tok = self.accept(TokenKind.DATA)
        if not (self.peek_is(TokenKind.STRINGLITERAL) or self.peek_is(TokenKind.NUMBER)
                or self.peek_is(TokenKind.MINUS)):
            self.error_here("DATA", "Expected one or more number or string literals")

        values = []
        while True:
            node = self.factor()
            if isinstance(node, Factor):
                node = node.node
            if not isinstance(node, (IntegerLiteral, FloatLiteral, StringLiteral)):
                self.error_here("DATA", "Expected a literal value")
            values.append(node)
            if not self.accept(TokenKind.COMMA):
                break

        return Data(tuple(values), line=tok.line)

    def print_statement(self):
        tok = self.accept(TokenKind.PRINT)
        args = []
        while self.tokens.more_tokens() and not self.peek_is(TokenKind.ENDOFLINE):
            string_tok = self.accept(TokenKind.STRINGLITERAL)
            if string_tok is not None:
                args.append(StringLiteral(string_tok.text, line=string_tok.line))
            else:
                args.append(self.expression())

            if self.accept(TokenKind.COMMA):
                continue
            if not self.peek_is(TokenKind.ENDOFLINE):
                self.error_here("PRINT", "Multiple arguments must be comma separated")

        return Print(tuple(args), line=tok.line)

    def input_statement(self):
        tok = self.accept(TokenKind.INPUT)
        prompt_tok = self.expect(TokenKind.STRINGLITERAL, "INPUT", "Expected a prompt string after 'INPUT'")
        prompt = StringLiteral(prompt_tok.text, line=prompt_tok.line)

        targets = []
        while self.accept(TokenKind.COMMA):
            word = self.expect(TokenKind.WORD, "INPUT", "Expected a variable name after ','")
            targets.append(Variable(word.text, line=word.line))
        if self.tokens.more_tokens() and not self.peek_is(TokenKind.ENDOFLINE):
            self.error_here("INPUT", "Expected variable names separated by commas")

        return Input(prompt, tuple(targets), line=tok.line)

    def goto_statement(self):
        tok = self.accept(TokenKind.GOTO)
        label = self.expect(TokenKind.WORD, "GOTO", "Expected a label after 'GOTO'")
        return GoTo(label.text, line=tok.line)

    def gosub_statement(self):
        tok = self.accept(TokenKind.GOSUB)
        label = self.expect(TokenKind.WORD, "GOSUB", "Expected a label after 'GOSUB'")
        return GoSub(label.text, line=tok.line)

    def return_statement(self):
        tok = self.accept(TokenKind.RETURN)
        if not self.peek_is(TokenKind.ENDOFLINE):
            self.error_here("RETURN", "'RETURN' must be the only token in a RETURN statement")
        return Return(line=tok.line)

    def assignment(self):
        tok = self.tokens.peek()
        target = self.factor()
        if not self.accept(TokenKind.EQUALS):
            self.error_here("Assignment", "Statements starting with a variable must be assignments")
        return Assignment(target, self.expression(), line=tok.line)

    def for_statement(self):
        tok = self.accept(TokenKind.FOR)
        word = self.expect(TokenKind.WORD, "FOR", "Expected a loop variable name")
        variable = Variable(word.text, line=word.line)
        self.expect(TokenKind.EQUALS, "FOR", "Expected '=' after the loop variable")
        start = self.factor()
        self.expect(TokenKind.TO, "FOR", "Expected 'TO'")
        limit = self.factor()

        step = Factor(IntegerLiteral(1))
        if self.accept(TokenKind.STEP):
            negative = self.accept(TokenKind.MINUS) is not None
            number = self.expect(TokenKind.NUMBER, "FOR", "Expected a number after 'STEP'")
            step = self.number(number, negative)

        return For(variable, start, limit, step, line=tok.line)

    def next_statement(self):
        tok = self.accept(TokenKind.NEXT)
        word = self.expect(TokenKind.WORD, "NEXT", "Expected the loop variable after 'NEXT'")
        return Next(Variable(word.text, line=word.line), line=tok.line)

    def if_statement(self):
        tok = self.accept(TokenKind.IF)
        condition = self.boolean_expression()
        self.expect(TokenKind.THEN, "IF", "Expected 'THEN'")
        label = self.expect(TokenKind.WORD, "IF", "Expected a label after 'THEN'")
        return If(condition, label.text, line=tok.line)

    def while_statement(self):
        tok = self.accept(TokenKind.WHILE)
        condition = self.boolean_expression()
        end_label = self.expect(TokenKind.WORD, "WHILE", "Expected the loop's end label after the condition")
        return While(condition, end_label.text, line=tok.line)

    # ---------- EXPRESSIONS ----------
    # boolean -> expression comparator expression
    def boolean_expression(self):
        left = self.expression()
        tok = self.tokens.peek()
        if tok is None or tok.kind not in COMPARATORS:
            self.error_here("Boolean expression", "Expected a comparison operator ('>', '>=', '<', '<=', '<>', '=')")
        self.accept(tok.kind)
        right = self.expression()
        return BooleanCompare(COMPARATORS[tok.kind], left, right, line=tok.line)

    # expression -> (call | term) ((+|-|*|/) term)*
    def expression(self):
        if self.peek_is(TokenKind.FUNCTIONNAME):
            node = self.function_call()
        else:
            node = self.term()

        while True:
            tok = self.tokens.peek()
            if tok is None or tok.kind not in EXPRESSION_OPS:
                break
            self.accept(tok.kind)
            node = MathOp(EXPRESSION_OPS[tok.kind], node, self.term(), line=tok.line)

        return Expression(node)

    # term -> factor ((*|/) factor)*
    def term(self):
        node = self.factor()

        while self.tokens.more_tokens():
            tok = self.tokens.peek()
            if tok.kind not in TERM_OPS:
                break
            self.accept(tok.kind)
            node = MathOp(TERM_OPS[tok.kind], node, self.factor(), line=tok.line)

        return Term(node)

    # factor -> call | WORD | STRINGLITERAL | [-] (NUMBER | '(' expression ')')
    def factor(self):
        if self.peek_is(TokenKind.FUNCTIONNAME):
            return self.function_call()

        word = self.accept(TokenKind.WORD)
        if word is not None:
            return Variable(word.text, line=word.line)

        string_tok = self.accept(TokenKind.STRINGLITERAL)
        if string_tok is not None:
            return StringLiteral(string_tok.text, line=string_tok.line)

        negative = self.accept(TokenKind.MINUS) is not None

        if self.accept(TokenKind.LPAREN):
            inner = self.expression()
            if not self.accept(TokenKind.RPAREN):
                self.error_here("Factor", "Mismatched parentheses")
            if negative:
                # -(expr) is written as (-1) * (expr)
                inner = Expression(Term(MathOp("*", Factor(IntegerLiteral(-1)), Factor(inner))))
            return Factor(inner)

        number = self.accept(TokenKind.NUMBER)
        if number is None:
            self.error_here("Factor", "Expected a number, variable, string, function call or '('")
        return self.number(number, negative)

    def function_call(self):
        tok = self.accept(TokenKind.FUNCTIONNAME)
        name = resolve_builtin(tok.text)
        if name is None:
            raise ParseError(f"Unknown built-in function '{tok.text}'", tok)

        self.expect(TokenKind.LPAREN, "Built-in function", "Expected '('")
        args = []
        while not self.peek_is(TokenKind.RPAREN):
            if not self.tokens.more_tokens():
                self.error_here("Built-in function", "Expected ')'")
            string_tok = self.accept(TokenKind.STRINGLITERAL)
            if string_tok is not None:
                args.append(StringLiteral(string_tok.text, line=string_tok.line))
            else:
                args.append(self.expression())

            if not self.accept(TokenKind.COMMA) and not self.peek_is(TokenKind.RPAREN):
                self.error_here("Built-in function", "Expected ',' or ')' in argument list")
        self.accept(TokenKind.RPAREN)

        return FunctionCall(name, tuple(args), line=tok.line)

    def number(self, tok, negative):
        text = tok.text
        try:
            if "." in text:
                # digits around a single point; no exponent forms
                digits = text.replace(".", "", 1)
                if not (digits.isascii() and digits.isdigit()):
                    raise ValueError(text)
                value = to_float32(float(text))
                return Factor(FloatLiteral(-value if negative else value, line=tok.line))
            value = parse_int32(("-" if negative else "") + text)
        except ValueError:
            raise ParseError(f"Invalid number literal '{text}'", tok) from None
        return Factor(IntegerLiteral(value, line=tok.line))


def parse(tokens):
    return Parser(tokens).parse()
