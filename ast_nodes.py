class ASTNode:
    # Source position (1-based) of the node's first token. Parser sets these.
    line: int | None = None
    column: int | None = None

    def at(self, token):
        self.line = token.line
        self.column = token.column
        return self


class Program(ASTNode):
    def __init__(self, statements):
        self.statements = statements


class VariableDeclaration(ASTNode):
    def __init__(self, data_type, identifier, value):
        self.data_type = data_type    # number, text, boolean
        self.identifier = identifier  # variable name
        self.value = value            # initializer expression


class Output(ASTNode):
    def __init__(self, output_type, expression):
        self.output_type = output_type  # say, display
        self.expression = expression


class Conditional(ASTNode):
    def __init__(self, condition, then_statement, else_statement=None):
        self.condition = condition
        self.then_statement = then_statement
        self.else_statement = else_statement


class Loop(ASTNode):
    def __init__(self, count, body):
        self.count = count  # expr
        self.body = body    # single statement


class FunctionDefinition(ASTNode):
    def __init__(self, name, parameters, body):
        self.name = name
        self.parameters = parameters  # list[str]
        self.body = body              # statement or expression (returns ...)


class FunctionCall(ASTNode):
    def __init__(self, name, arguments):
        self.name = name
        self.arguments = arguments  # list[expr]


class BinaryExpression(ASTNode):
    def __init__(self, left, operator, right):
        self.left = left
        self.operator = operator  # "plus", "divided by", "is greater than", ...
        self.right = right


class Literal(ASTNode):
    def __init__(self, value, value_type):
        self.value = value
        self.value_type = value_type  # number, text, boolean


class Identifier(ASTNode):
    def __init__(self, name):
        self.name = name


EXPRESSION_NODES = (FunctionCall, BinaryExpression, Literal, Identifier)
