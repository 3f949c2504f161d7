import dataclasses

import pytest

from errors import FlowScriptLexicalError
from lexer import Lexer, Token, tokenize


def types_of(source):
    return [tok.type for tok in tokenize(source)]


def test_variable_declaration_tokens():
    assert types_of("Create a number called age with value 25") == [
        "CREATE", "A", "TYPE_NUMBER", "CALLED", "IDENTIFIER", "WITH", "VALUE", "NUMBER", "EOF",
    ]


def test_keywords_are_case_insensitive_and_keep_text():
    tokens = tokenize("SAY Hello")
    assert tokens[0].type == "SAY"
    assert tokens[0].value == "SAY"
    assert tokens[1].type == "IDENTIFIER"
    assert tokens[1].value == "Hello"


def test_booleans():
    tokens = tokenize("true FALSE")
    assert [t.type for t in tokens[:2]] == ["BOOLEAN", "BOOLEAN"]
    assert tokens[1].value == "FALSE"


def test_positions_mark_token_start():
    tokens = tokenize("say x\n  say y")
    positions = [(t.type, t.line, t.column) for t in tokens]
    assert positions == [
        ("SAY", 1, 1),
        ("IDENTIFIER", 1, 5),
        ("SAY", 2, 3),
        ("IDENTIFIER", 2, 7),
        ("EOF", 2, 8),
    ]


def test_numbers():
    tokens = tokenize("3.14 42")
    assert (tokens[0].type, tokens[0].value) == ("NUMBER", "3.14")
    assert (tokens[1].type, tokens[1].value) == ("NUMBER", "42")


def test_trailing_dot_is_not_part_of_number():
    tokens = tokenize("7.")
    assert [(t.type, t.value) for t in tokens[:2]] == [("NUMBER", "7"), ("UNKNOWN", ".")]


def test_string_escapes():
    tokens = tokenize(r'"a\nb\t\"q\"\\ \z\r"')
    assert tokens[0].type == "STRING"
    assert tokens[0].value == 'a\nb\t"q"\\ z\r'


def test_unterminated_string_reports_start():
    with pytest.raises(FlowScriptLexicalError) as exc:
        tokenize('\nsay "abc')
    assert exc.value.line == 2
    assert exc.value.column == 5
    assert "line 2" in str(exc.value)


def test_comments_are_dropped():
    assert types_of("# heading\nsay 1 # trailing note") == ["SAY", "NUMBER", "EOF"]


def test_unknown_character_does_not_stop_lexing():
    tokens = tokenize("say 5 @ 3")
    assert [(t.type, t.value) for t in tokens] == [
        ("SAY", "say"), ("NUMBER", "5"), ("UNKNOWN", "@"), ("NUMBER", "3"), ("EOF", None),
    ]


def test_punctuation():
    assert types_of("greet(x, y): ") == ["IDENTIFIER", "LPAREN", "IDENTIFIER", "COMMA", "IDENTIFIER", "RPAREN", "COLON", "EOF"]


def test_newlines_only_come_from_get_next_token():
    lexer = Lexer("a\nb")
    seen = []
    while True:
        tok = lexer.get_next_token()
        seen.append(tok.type)
        if tok.type == "EOF":
            break
    assert seen == ["IDENTIFIER", "NEWLINE", "IDENTIFIER", "EOF"]
    assert "NEWLINE" not in types_of("a\nb")


def test_empty_source_is_just_eof():
    tokens = tokenize("")
    assert len(tokens) == 1
    assert tokens[0].type == "EOF"


def test_tokens_are_immutable_and_deterministic():
    source = 'Say "hi" plus name'
    first = tokenize(source)
    assert first == tokenize(source)
    with pytest.raises(dataclasses.FrozenInstanceError):
        first[0].value = "changed"


def test_reset_rewinds():
    lexer = Lexer("say 1")
    first = lexer.tokenize()
    assert lexer.get_position()["position"] == 5
    lexer.reset()
    assert lexer.get_position() == {"position": 0, "line": 1, "column": 1}
    assert lexer.tokenize() == first


def test_token_helpers():
    tok = Token("SAY", "say", 1, 1)
    assert tok.is_("SAY")
    assert tok.is_one_of("DISPLAY", "SAY")
    assert not tok.is_one_of("IF", "THEN")
