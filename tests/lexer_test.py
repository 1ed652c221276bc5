import pytest

from basic_errors import LexError
from lexer import Token, TokenKind, tokenize


def kinds(tokens):
    return [t.kind for t in tokens]


def test_hello_world_program():
    tokens = tokenize('10 PRINT "Hello, World!"\n20 END')
    assert tokens == [
        Token(TokenKind.NUMBER, "10", 1, 0),
        Token(TokenKind.PRINT, None, 1, 3),
        Token(TokenKind.STRINGLITERAL, "Hello, World!", 1, 9),
        Token(TokenKind.ENDOFLINE, None, 1, 24),
        Token(TokenKind.NUMBER, "20", 2, 0),
        Token(TokenKind.END, None, 2, 3),
        Token(TokenKind.ENDOFLINE, None, 2, 6),
    ]


def test_word_and_number_positions():
    tokens = tokenize("Hello 12345")
    assert tokens[0] == Token(TokenKind.WORD, "Hello", 1, 0)
    assert tokens[1] == Token(TokenKind.NUMBER, "12345", 1, 6)


def test_newline_resets_column():
    tokens = tokenize("12345 \n 54321")
    assert tokens[0] == Token(TokenKind.NUMBER, "12345", 1, 0)
    assert tokens[1] == Token(TokenKind.ENDOFLINE, None, 1, 6)
    assert tokens[2] == Token(TokenKind.NUMBER, "54321", 2, 1)


def test_crlf_gives_one_end_of_line():
    tokens = tokenize("x = 1\r\ny = 2\r\n")
    assert kinds(tokens).count(TokenKind.ENDOFLINE) == 2
    assert tokens[3] == Token(TokenKind.ENDOFLINE, None, 1, 5)
    assert tokens[4] == Token(TokenKind.WORD, "y", 2, 0)


def test_trailing_end_of_line_added_once():
    assert kinds(tokenize("x")) == [TokenKind.WORD, TokenKind.ENDOFLINE]
    assert kinds(tokenize("x\n")) == [TokenKind.WORD, TokenKind.ENDOFLINE]
    assert tokenize("") == []


def test_decimal_numbers():
    assert tokenize("123.45")[0] == Token(TokenKind.NUMBER, "123.45", 1, 0)
    assert tokenize(".5")[0] == Token(TokenKind.NUMBER, ".5", 1, 0)


def test_number_with_letters_is_left_to_the_parser():
    assert tokenize("123abc")[0] == Token(TokenKind.NUMBER, "123abc", 1, 0)


@pytest.mark.parametrize("source", ["123.34.55", "123_345", "123:"])
def test_invalid_numbers(source):
    with pytest.raises(LexError):
        tokenize(source)


def test_keywords_are_case_insensitive():
    tokens = tokenize("print Print PRINT goto Then")
    assert kinds(tokens) == [
        TokenKind.PRINT, TokenKind.PRINT, TokenKind.PRINT, TokenKind.GOTO, TokenKind.THEN, TokenKind.ENDOFLINE,
    ]


def test_suffixes_end_words():
    tokens = tokenize("name$ rate% total")
    assert [t.text for t in tokens[:3]] == ["name$", "rate%", "total"]
    assert tokens[1] == Token(TokenKind.WORD, "rate%", 1, 6)


def test_labels_keep_their_colon():
    tokens = tokenize("Hello: World: Testing testing")
    assert tokens[0] == Token(TokenKind.LABEL, "Hello:", 1, 0)
    assert tokens[1] == Token(TokenKind.LABEL, "World:", 1, 7)
    assert tokens[2] == Token(TokenKind.WORD, "Testing", 1, 14)


def test_double_colon_is_an_error():
    with pytest.raises(LexError):
        tokenize("InvalidSymbol:: World:")
    with pytest.raises(LexError):
        tokenize(":: World:")


def test_function_name_needs_parenthesis():
    tokens = tokenize("random()")
    assert kinds(tokens) == [TokenKind.FUNCTIONNAME, TokenKind.LPAREN, TokenKind.RPAREN, TokenKind.ENDOFLINE]
    assert tokens[0].text == "random"
    assert tokenize("LEFT$(a$, 2)")[0] == Token(TokenKind.FUNCTIONNAME, "LEFT$", 1, 0)
    assert tokenize("random")[0].kind == TokenKind.WORD


def test_operators():
    tokens = tokenize("<= >= <> = < > ( ) + - * /")
    assert [(t.kind, t.column) for t in tokens[:-1]] == [
        (TokenKind.LESSTHANEQUALTO, 0),
        (TokenKind.GREATERTHANEQUALTO, 3),
        (TokenKind.NOTEQUALS, 6),
        (TokenKind.EQUALS, 9),
        (TokenKind.LESSTHAN, 11),
        (TokenKind.GREATERTHAN, 13),
        (TokenKind.LPAREN, 15),
        (TokenKind.RPAREN, 17),
        (TokenKind.PLUS, 19),
        (TokenKind.MINUS, 21),
        (TokenKind.MULTIPLY, 23),
        (TokenKind.DIVIDE, 25),
    ]
    assert tokens[0].text == "<="


def test_operators_without_spaces():
    tokens = tokenize("(4+5)")
    assert kinds(tokens) == [
        TokenKind.LPAREN, TokenKind.NUMBER, TokenKind.PLUS, TokenKind.NUMBER, TokenKind.RPAREN, TokenKind.ENDOFLINE,
    ]
    assert [t.column for t in tokens[:5]] == [0, 1, 2, 3, 4]


def test_comma_separates_print_items():
    tokens = tokenize('PRINT "a",b')
    assert kinds(tokens) == [
        TokenKind.PRINT, TokenKind.STRINGLITERAL, TokenKind.COMMA, TokenKind.WORD, TokenKind.ENDOFLINE,
    ]


def test_unknown_symbol():
    with pytest.raises(LexError) as info:
        tokenize("x = 1 # 2")
    assert info.value.line == 1
    assert info.value.column == 6


def test_string_escapes():
    tokens = tokenize(r'10 PRINT "Hello,\n\n\nWorld!"')
    assert tokens[2] == Token(TokenKind.STRINGLITERAL, "Hello,\n\n\nWorld!", 1, 9)

    assert tokenize(r'"Hello, \rWorld!"')[0].text == "Hello, World!"
    assert tokenize(r'"Hello, \"Hi\" World!"')[0].text == 'Hello, "Hi" World!'
    assert tokenize(r'"\"Hello world\"\"\""')[0].text == '"Hello world"""'


def test_empty_string():
    assert tokenize('""')[0] == Token(TokenKind.STRINGLITERAL, "", 1, 0)


def test_string_column_points_at_opening_quote():
    source = r'PRINT "a\"b\"c" x'
    tokens = tokenize(source)
    assert tokens[1].column == 6
    assert tokens[2] == Token(TokenKind.WORD, "x", 1, len(source) - 1)


@pytest.mark.parametrize("source", [
    r'"bad \t escape"',
    '"never closed',
    '"closed on the next line\n"',
    r'"dangling escape\"',
    r'"inner \" quote left open"',
])
def test_bad_strings(source):
    with pytest.raises(LexError):
        tokenize(source)


def test_lexing_is_deterministic():
    source = 'x = 1\nloop: PRINT x, "done"\nIF x <= 3 THEN loop\n'
    assert tokenize(source) == tokenize(source)
