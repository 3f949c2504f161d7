from ast_nodes import (
    Program, VariableDeclaration, Output, Conditional, Loop, FunctionDefinition, FunctionCall,
    BinaryExpression, Literal, Identifier,
)
from lexer import Token, tokenize


TYPE_NAMES = {
    "TYPE_NUMBER": "number",
    "TYPE_TEXT": "text",
    "TYPE_BOOLEAN": "boolean",
}

# tokens that can begin a primary expression
PRIMARY_START = ("NUMBER", "STRING", "BOOLEAN", "IDENTIFIER", "LPAREN")

# nested statements, parentheses and call arguments, counted together
MAX_NESTING = 100


class NestingTooDeep(Exception):
    pass


def describe(tok):
    if tok.type in ("IDENTIFIER", "UNKNOWN", "NUMBER"):
        return f"{tok.type} '{tok.value}'"
    if tok.type == "STRING":
        return f'STRING "{tok.value}"'
    return tok.type


class Parser:
    def __init__(self, tokens):
        self.tokens = list(tokens)
        if not self.tokens or self.tokens[-1].type != "EOF":
            last = self.tokens[-1] if self.tokens else None
            line = last.line if last else 1
            column = last.column + len(last.value or "") if last else 1
            self.tokens.append(Token("EOF", line=line, column=column))
        self.pos = 0
        self.current_token = self.tokens[0]
        self.errors = []
        self.depth = 0

    def advance(self):
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        self.current_token = self.tokens[self.pos]

    def peek(self, n=1):
        idx = min(self.pos + n, len(self.tokens) - 1)
        return self.tokens[idx]

    # Consume the expected token. On a mismatch the error is recorded and the
    # token is treated as present, so parsing carries on from the same spot.
    def eat(self, token_type):
        tok = self.current_token
        if tok.type == token_type:
            self.advance()
            return tok
        self.error_here(f"Expected {token_type}, found {describe(tok)}")
        return None

    def error_here(self, message):
        tok = self.current_token
        self.errors.append(f"{message} at line {tok.line}, col {tok.column}")

    def nested(self, parse_rule):
        if self.depth >= MAX_NESTING:
            raise NestingTooDeep()
        self.depth += 1
        try:
            return parse_rule()
        finally:
            self.depth -= 1

    def skip_article(self):
        if self.current_token.type in ("A", "AN"):
            self.advance()

    # ---------- TOP LEVEL ----------
    def parse(self):
        first = self.current_token
        statements = []

        while self.current_token.type != "EOF":
            start = self.pos
            errors_before = len(self.errors)

            try:
                stmt = self.statement()
            except NestingTooDeep:
                # no safe place to resume inside the nest, give up on the rest
                self.error_here(f"Nesting too deep (more than {MAX_NESTING} levels)")
                self.pos = len(self.tokens) - 1
                self.current_token = self.tokens[self.pos]
                break

            if stmt is not None:
                statements.append(stmt)

            # always make progress, even on garbage
            if self.pos == start:
                if len(self.errors) == errors_before:
                    self.error_here(f"Unexpected token {describe(self.current_token)}")
                self.advance()

        return Program(statements).at(first)

    # ---------- STATEMENTS ----------
    def statement(self):
        tok = self.current_token

        if tok.type == "CREATE":
            return self.variable_declaration()

        if tok.type in ("SAY", "DISPLAY"):
            return self.output_statement()

        if tok.type == "IF":
            return self.conditional()

        if tok.type == "REPEAT":
            return self.loop()

        if tok.type == "DEFINE":
            return self.function_definition()

        if tok.type == "IDENTIFIER" and self.peek().type == "LPAREN":
            # a call may still continue as a larger expression: f(1) plus 2
            return self.expr(self.function_call())

        return self.expr()

    # Create a <type> called <identifier> with value <expr>
    def variable_declaration(self):
        tok = self.current_token
        self.eat("CREATE")
        self.skip_article()

        data_type = None
        if self.current_token.type in TYPE_NAMES:
            data_type = TYPE_NAMES[self.current_token.type]
            self.advance()
        else:
            self.error_here(f"Expected type name (number, text or boolean), found {describe(self.current_token)}")
            # skip a misspelled type word so the rest of the line still lines up
            if self.current_token.type == "IDENTIFIER" and self.peek().type == "CALLED":
                self.advance()

        self.eat("CALLED")
        name_tok = self.eat("IDENTIFIER")
        self.eat("WITH")
        self.eat("VALUE")
        value = self.expr()

        name = name_tok.value if name_tok else None
        return VariableDeclaration(data_type, name, value).at(tok)

    # Say <expr> | Display <expr>
    def output_statement(self):
        tok = self.current_token
        self.advance()
        expression = self.expr()
        return Output(tok.type.lower(), expression).at(tok)

    # If <expr> then <statement> [else <statement>]
    def conditional(self):
        tok = self.current_token
        self.eat("IF")
        condition = self.expr()
        self.eat("THEN")
        then_statement = self.nested(self.statement)

        else_statement = None
        if self.current_token.type == "ELSE":
            self.eat("ELSE")
            else_statement = self.nested(self.statement)

        return Conditional(condition, then_statement, else_statement).at(tok)

    # Repeat <expr> times: <statement>
    def loop(self):
        tok = self.current_token
        self.eat("REPEAT")
        count = self.expr()
        self.eat("TIMES")
        self.eat("COLON")
        body = self.nested(self.statement)
        return Loop(count, body).at(tok)

    # Define a function called <name> that takes <params> and <body>
    def function_definition(self):
        tok = self.current_token
        self.eat("DEFINE")
        self.skip_article()
        self.eat("FUNCTION")
        self.eat("CALLED")
        name_tok = self.eat("IDENTIFIER")
        self.eat("THAT")
        self.eat("TAKES")
        params = self.parameter_list()
        self.eat("AND")

        if self.current_token.type == "RETURNS":
            self.eat("RETURNS")
            body = self.nested(self.expr)
        else:
            body = self.nested(self.statement)

        name = name_tok.value if name_tok else None
        return FunctionDefinition(name, params, body).at(tok)

    def parameter_list(self):
        params = []
        tok = self.current_token
        if tok.type != "IDENTIFIER" or self.peek().type == "LPAREN":
            return params

        # soft keyword: "takes nothing and ..."
        if tok.value.lower() == "nothing":
            self.advance()
            return params

        self.add_parameter(params)
        while True:
            if self.current_token.type == "COMMA":
                self.eat("COMMA")
                if self.current_token.type != "IDENTIFIER":
                    self.error_here(f"Expected parameter name, found {describe(self.current_token)}")
                    break
                self.add_parameter(params)
            elif (
                self.current_token.type == "AND"
                and self.peek().type == "IDENTIFIER"
                and self.peek(2).type != "LPAREN"
            ):
                self.eat("AND")
                self.add_parameter(params)
            else:
                break
        return params

    def add_parameter(self, params):
        name = self.current_token.value
        if name in params:
            self.error_here(f"Duplicate parameter '{name}'")
        params.append(name)
        self.eat("IDENTIFIER")

    # <name>(<args>)
    def function_call(self):
        tok = self.current_token
        self.eat("IDENTIFIER")
        self.eat("LPAREN")
        args = []
        if self.current_token.type != "RPAREN":
            args.append(self.nested(self.expr))
            while self.current_token.type == "COMMA":
                self.eat("COMMA")
                args.append(self.nested(self.expr))
        self.eat("RPAREN")
        return FunctionCall(tok.value, args).at(tok)

    # ---------- EXPRESSIONS ----------
    # expr -> primary (operator primary)*
    # One precedence tier, folded left to right: a plus b times c == (a plus b) times c
    def expr(self, left=None):
        node = left if left is not None else self.primary()

        while True:
            op_token = self.current_token
            op = self.binary_operator()
            if op is None:
                break
            right = self.primary()
            binary = BinaryExpression(node, op, right)
            binary.at(node if node is not None else op_token)
            node = binary

        return node

    def binary_operator(self):
        tok = self.current_token

        if tok.type == "PLUS":
            self.advance()
            return "plus"
        if tok.type == "MINUS":
            self.advance()
            return "minus"
        if tok.type == "TIMES":
            # "Repeat 3 times: ..." -- here times closes the count instead
            if self.peek().type not in PRIMARY_START:
                return None
            self.advance()
            return "times"
        if tok.type == "DIVIDED":
            self.advance()
            self.eat("BY")
            return "divided by"
        if tok.type == "EQUALS":
            self.advance()
            return "equals"
        if tok.type == "IS":
            self.advance()
            if self.current_token.type == "GREATER":
                self.advance()
                self.eat("THAN")
                return "is greater than"
            if self.current_token.type == "LESS":
                self.advance()
                self.eat("THAN")
                return "is less than"
            return "is"

        return None

    # primary -> NUMBER | STRING | BOOLEAN | IDENTIFIER | call | (expr)
    def primary(self):
        tok = self.current_token

        if tok.type == "NUMBER":
            try:
                value = float(tok.value) if "." in tok.value else int(tok.value)
            except ValueError:
                self.error_here(f"Number literal too long ({len(tok.value)} digits)")
                value = None
            self.advance()
            return Literal(value, "number").at(tok)

        if tok.type == "STRING":
            self.advance()
            return Literal(tok.value, "text").at(tok)

        if tok.type == "BOOLEAN":
            self.advance()
            return Literal(tok.value.lower() == "true", "boolean").at(tok)

        if tok.type == "IDENTIFIER":
            if self.peek().type == "LPAREN":
                return self.function_call()
            self.advance()
            return Identifier(tok.value).at(tok)

        if tok.type == "LPAREN":
            self.eat("LPAREN")
            node = self.nested(self.expr)
            self.eat("RPAREN")
            return node

        self.error_here(f"Expected expression, found {describe(tok)}")
        return None


def parse(tokens):
    """Parse a token list (or raw source text) into ``(Program, errors)``.

    A non-empty error list means the tree may be partial and must not be run.
    """
    if isinstance(tokens, str):
        tokens = tokenize(tokens)
    parser = Parser(tokens)
    program = parser.parse()
    return program, parser.errors
