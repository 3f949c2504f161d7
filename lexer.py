from dataclasses import dataclass

from errors import FlowScriptLexicalError


# Keyword table; lookup is on the lower-cased identifier text.
KEYWORDS = {
    "create": "CREATE",
    "a": "A",
    "an": "AN",
    "the": "THE",
    "called": "CALLED",
    "with": "WITH",
    "value": "VALUE",

    # data types
    "number": "TYPE_NUMBER",
    "text": "TYPE_TEXT",
    "boolean": "TYPE_BOOLEAN",

    # output
    "say": "SAY",
    "display": "DISPLAY",

    # operator words
    "plus": "PLUS",
    "minus": "MINUS",
    "times": "TIMES",
    "divided": "DIVIDED",
    "by": "BY",
    "is": "IS",
    "equals": "EQUALS",
    "greater": "GREATER",
    "less": "LESS",
    "than": "THAN",

    "true": "BOOLEAN",
    "false": "BOOLEAN",

    # control flow
    "if": "IF",
    "then": "THEN",
    "else": "ELSE",
    "repeat": "REPEAT",

    # functions
    "define": "DEFINE",
    "function": "FUNCTION",
    "that": "THAT",
    "takes": "TAKES",
    "and": "AND",
    "returns": "RETURNS",
}

DIGITS = "0123456789"

PUNCTUATION = {
    ":": "COLON",
    ",": "COMMA",
    "(": "LPAREN",
    ")": "RPAREN",
}

TOKEN_TYPES = frozenset(
    {"NUMBER", "STRING", "BOOLEAN", "IDENTIFIER", "NEWLINE", "EOF", "UNKNOWN"}
    | set(KEYWORDS.values())
    | set(PUNCTUATION.values())
)


@dataclass(frozen=True)
class Token:
    type: str
    value: str | None = None
    line: int = 1
    column: int = 1

    def is_(self, token_type):
        return self.type == token_type

    def is_one_of(self, *token_types):
        return self.type in token_types

    def __repr__(self):
        if self.value is not None:
            return f"{self.type}({self.value!r}) @{self.line}:{self.column}"
        return f"{self.type} @{self.line}:{self.column}"


class Lexer:
    def __init__(self, text):
        self.text = text
        self.reset()

    def reset(self):
        self.pos = 0
        self.line = 1
        self.column = 1
        self.current_char = self.text[0] if self.text else None

    def get_position(self):
        return {"position": self.pos, "line": self.line, "column": self.column}

    def advance(self):
        # track line/column based on current_char before moving
        if self.current_char == "\n":
            self.line += 1
            self.column = 1
        else:
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

    # spaces/tabs only (NOT newlines)
    def skip_whitespace(self):
        while self.current_char and self.current_char in " \t\r":
            self.advance()

    def skip_comment(self):
        while self.current_char and self.current_char != "\n":
            self.advance()

    def read_identifier(self):
        start_line, start_col = self.line, self.column
        result = ""
        while self.current_char and (self.current_char.isascii() and self.current_char.isalnum() or self.current_char == "_"):
            result += self.current_char
            self.advance()

        token_type = KEYWORDS.get(result.lower(), "IDENTIFIER")
        return Token(token_type, result, line=start_line, column=start_col)

    def read_number(self):
        start_line, start_col = self.line, self.column
        result = ""
        while self.current_char and self.current_char in DIGITS:
            result += self.current_char
            self.advance()

        # the dot belongs to the number only when a digit follows it
        if self.current_char == "." and self.peek() is not None and self.peek() in DIGITS:
            result += "."
            self.advance()
            while self.current_char and self.current_char in DIGITS:
                result += self.current_char
                self.advance()

        return Token("NUMBER", result, line=start_line, column=start_col)

    def read_string(self):
        start_line, start_col = self.line, self.column
        self.advance()  # skip opening quote
        result = ""

        while self.current_char is not None and self.current_char != '"':
            if self.current_char == "\\":
                self.advance()  # consume backslash
                if self.current_char is None:
                    break

                esc = self.current_char
                if esc == "n":
                    result += "\n"
                elif esc == "t":
                    result += "\t"
                elif esc == "r":
                    result += "\r"
                else:
                    # covers \\ and \" too; unknown escapes are kept literally
                    result += esc
                self.advance()
                continue

            result += self.current_char
            self.advance()

        if self.current_char != '"':
            raise FlowScriptLexicalError(
                f"Unterminated string (started at line {start_line}, col {start_col})",
                line=start_line,
                column=start_col,
            )

        self.advance()  # skip closing quote
        return Token("STRING", result, line=start_line, column=start_col)

    def get_next_token(self):
        while self.current_char:

            if self.current_char == "\n":
                start_line, start_col = self.line, self.column
                self.advance()
                return Token("NEWLINE", "\n", line=start_line, column=start_col)

            if self.current_char in " \t\r":
                self.skip_whitespace()
                continue

            if self.current_char == "#":
                self.skip_comment()
                continue

            if self.current_char in DIGITS:
                return self.read_number()

            if self.current_char == '"':
                return self.read_string()

            if self.current_char.isascii() and self.current_char.isalpha() or self.current_char == "_":
                return self.read_identifier()

            start_line, start_col = self.line, self.column
            ch = self.current_char
            self.advance()
            if ch in PUNCTUATION:
                return Token(PUNCTUATION[ch], ch, line=start_line, column=start_col)

            # left for the parser to report in context
            return Token("UNKNOWN", ch, line=start_line, column=start_col)

        return Token("EOF", line=self.line, column=self.column)

    def tokenize(self):
        tokens = []
        token = self.get_next_token()
        while token.type != "EOF":
            # statement boundaries come from the grammar, not from line breaks
            if token.type != "NEWLINE":
                tokens.append(token)
            token = self.get_next_token()
        tokens.append(token)
        return tokens


def tokenize(source):
    return Lexer(source).tokenize()
