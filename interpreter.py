import math

from ast_nodes import (
    Program, VariableDeclaration, Output, Conditional, Loop, FunctionDefinition, FunctionCall,
    BinaryExpression, Literal, Identifier, EXPRESSION_NODES,
)
from errors import FlowScriptRuntimeError, FlowScriptSyntaxError
from lexer import tokenize
from parser import parse
from symbol_table import SymbolTable


SCOPING_MODES = ("dynamic", "lexical")


def is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def type_name(value) -> str:
    if isinstance(value, bool):
        return "boolean"
    if is_number(value):
        return "number"
    if isinstance(value, str):
        return "text"
    if value is None:
        return "nothing"
    return type(value).__name__


def value_to_string(value) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, int):
        try:
            return str(value)
        except ValueError:
            # past sys.get_int_max_str_digits()
            raise FlowScriptRuntimeError("Number too large to display") from None
    if value is None:
        return "null"
    if isinstance(value, list):
        # results collected by a loop body
        return ",".join(value_to_string(v) for v in value)
    return str(value)


def is_truthy(value) -> bool:
    if isinstance(value, bool):
        return value
    if is_number(value):
        return value != 0
    if isinstance(value, str):
        return len(value) > 0
    return False


def values_equal(left, right) -> bool:
    # no coercion: 1 equals "1" is false, 2 equals 2.0 is true
    return type_name(left) == type_name(right) and left == right


class Context:
    """State for one interpretation session: the global scope, the function table and the limits.

    Pass the same Context to successive Interpreter runs (a REPL does this) to carry
    variables and functions over; a fresh one starts from nothing.
    """

    def __init__(self, max_call_depth: int | None = 100, max_loop_iterations: int | None = 1000, scoping: str = "dynamic"):
        if scoping not in SCOPING_MODES:
            raise ValueError(f"scoping must be one of {SCOPING_MODES}, got {scoping!r}")
        self.max_call_depth = max_call_depth
        self.max_loop_iterations = max_loop_iterations
        self.scoping = scoping

        self.global_scope = SymbolTable()
        self.functions = {}  # name -> (FunctionDefinition, scope active at definition)

    def reset(self):
        self.global_scope.clear()
        self.functions.clear()


class Interpreter:
    def __init__(self, context: Context | None = None, echo: bool = True, trace: bool = False):
        self.context = context if context is not None else Context()
        self.current_scope = self.context.global_scope
        self.output = []
        self.call_stack = []  # list of frames, innermost last

        self.current_function_name = "<main>"
        self.echo = echo             # also print output lines to stdout
        self.trace_enabled = trace

    # ---------- entry points ----------
    def interpret(self, program):
        if not isinstance(program, Program):
            raise FlowScriptRuntimeError(f"Interpreter expects a Program node, got {type(program).__name__}")

        self.output = []
        self.call_stack = []
        self.current_scope = self.context.global_scope
        self.current_function_name = "<main>"

        try:
            for statement in program.statements:
                self.execute(statement)
        except FlowScriptRuntimeError as e:
            e.output = list(self.output)
            raise
        except RecursionError:
            err = FlowScriptRuntimeError("Stack exhausted: program nests too deeply")
            err.output = list(self.output)
            raise err from None
        finally:
            self.current_scope = self.context.global_scope
            self.current_function_name = "<main>"

        return {
            "output": list(self.output),
            "variables": self.context.global_scope.get_all_symbols(),
        }

    def get_output(self):
        return self.output

    def clear_output(self):
        self.output = []

    def reset(self):
        self.context.reset()
        self.current_scope = self.context.global_scope
        self.call_stack = []
        self.output = []

    def build_stacktrace(self, line):
        if not self.call_stack:
            return []

        frames = [{"func": self.current_function_name, "line": line}]
        # callers (most recent first)
        for fr in reversed(self.call_stack):
            frames.append({"func": fr["caller_func"], "line": fr["call_line"]})
        return frames

    # ---------- statements ----------
    def execute(self, node):
        line = getattr(node, "line", None)
        if self.trace_enabled:
            print(f"TRACE line {line}: {type(node).__name__}")

        try:
            return self.execute_node(node)
        except FlowScriptRuntimeError as e:
            # innermost statement wins; the call stack is still intact here
            if e.line is None:
                e.line = line
                e.column = getattr(node, "column", None)
                e.frames = self.build_stacktrace(line)
            raise

    def execute_node(self, node):
        if isinstance(node, VariableDeclaration):
            return self.execute_variable_declaration(node)
        if isinstance(node, Output):
            return self.execute_output(node)
        if isinstance(node, Conditional):
            return self.execute_conditional(node)
        if isinstance(node, Loop):
            return self.execute_loop(node)
        if isinstance(node, FunctionDefinition):
            return self.execute_function_definition(node)
        if isinstance(node, EXPRESSION_NODES):
            # expression statement
            return self.evaluate(node)

        raise FlowScriptRuntimeError(f"Unknown statement type: {type(node).__name__}")

    def execute_variable_declaration(self, node):
        value = self.evaluate(node.value)

        if not self.check_type(value, node.data_type):
            raise FlowScriptRuntimeError(
                f"Type mismatch: cannot assign {type_name(value)} to {node.data_type} variable '{node.identifier}'"
            )

        self.current_scope.define(node.identifier, value, node.data_type)
        return value

    def execute_output(self, node):
        value = self.evaluate(node.expression)
        text = value_to_string(value)
        self.output.append(text)
        if self.echo:
            print(text)
        return text

    def execute_conditional(self, node):
        condition = self.evaluate(node.condition)

        if is_truthy(condition):
            return self.execute(node.then_statement)
        if node.else_statement is not None:
            return self.execute(node.else_statement)
        return None

    def execute_loop(self, node):
        count = self.evaluate(node.count)

        if not is_number(count) or isinstance(count, float) and not math.isfinite(count) or count < 0:
            raise FlowScriptRuntimeError(f"Loop count must be a non-negative number, got: {value_to_string(count)}")

        times = math.floor(count)
        limit = self.context.max_loop_iterations
        if limit is not None and times > limit:
            raise FlowScriptRuntimeError(f"Loop count {times} exceeds the limit of {limit} iterations")

        results = []
        for _ in range(times):
            results.append(self.execute(node.body))
        return results

    def execute_function_definition(self, node):
        # later definitions replace earlier ones
        self.context.functions[node.name] = (node, self.current_scope)
        return node.name

    def call_function(self, node):
        entry = self.context.functions.get(node.name)
        if entry is None:
            raise FlowScriptRuntimeError(f"Unknown function: {node.name}")
        func, defining_scope = entry

        expected, got = len(func.parameters), len(node.arguments)
        if expected != got:
            raise FlowScriptRuntimeError(f"Function {node.name} expects {expected} arguments, got {got}")

        limit = self.context.max_call_depth
        if limit is not None and len(self.call_stack) >= limit:
            raise FlowScriptRuntimeError(f"Maximum call depth exceeded ({limit}) calling {node.name}")

        # arguments see the caller's scope only
        args = [self.evaluate(arg) for arg in node.arguments]

        if self.context.scoping == "lexical":
            function_scope = defining_scope.create_child()
        else:
            function_scope = self.current_scope.create_child()
        for param, value in zip(func.parameters, args):
            function_scope.define(param, value, type_name(value))

        saved_scope = self.current_scope
        saved_func = self.current_function_name
        self.call_stack.append({"func": node.name, "caller_func": saved_func, "call_line": node.line})
        self.current_scope = function_scope
        self.current_function_name = node.name
        try:
            return self.execute(func.body)
        finally:
            self.current_scope = saved_scope
            self.current_function_name = saved_func
            self.call_stack.pop()

    # ---------- expressions ----------
    def evaluate(self, node):
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, Identifier):
            return self.current_scope.get(node.name).value
        if isinstance(node, BinaryExpression):
            return self.evaluate_binary(node)
        if isinstance(node, FunctionCall):
            return self.call_function(node)

        raise FlowScriptRuntimeError(f"Unknown expression type: {type(node).__name__}")

    def evaluate_binary(self, node):
        # both sides always evaluated, no short-circuit
        left = self.evaluate(node.left)
        right = self.evaluate(node.right)

        try:
            return self.apply_operator(node.operator, left, right)
        except OverflowError:
            # int results that no longer fit a float
            raise FlowScriptRuntimeError(f"Number too large: result of '{node.operator}' is out of range") from None

    def apply_operator(self, op, left, right):
        if op == "plus":
            if isinstance(left, str) or isinstance(right, str):
                return value_to_string(left) + value_to_string(right)
            self.require_numbers(op, left, right)
            return left + right

        if op == "minus":
            self.require_numbers(op, left, right)
            return left - right

        if op == "times":
            self.require_numbers(op, left, right)
            return left * right

        if op == "divided by":
            self.require_numbers(op, left, right)
            if right == 0:
                raise FlowScriptRuntimeError("Division by zero")
            if isinstance(left, int) and isinstance(right, int) and left % right == 0:
                return left // right
            return left / right

        if op == "is greater than":
            self.require_numbers(op, left, right)
            return left > right

        if op == "is less than":
            self.require_numbers(op, left, right)
            return left < right

        if op in ("equals", "is"):
            return values_equal(left, right)

        raise FlowScriptRuntimeError(f"Unknown operator: {op}")

    # ---------- helpers ----------
    def require_numbers(self, op, left, right):
        if is_number(left) and is_number(right):
            return
        raise FlowScriptRuntimeError(f"Operator '{op}' expects numbers, got {type_name(left)} and {type_name(right)}")

    def check_type(self, value, expected_type) -> bool:
        if expected_type == "number":
            return is_number(value)
        if expected_type == "text":
            return isinstance(value, str)
        if expected_type == "boolean":
            return isinstance(value, bool)
        return True


def run(source, context: Context | None = None, echo: bool = True, trace: bool = False):
    """Lex, parse and interpret FlowScript source.

    Raises FlowScriptLexicalError for an unterminated string, FlowScriptSyntaxError when the
    parser reported anything (nothing is executed then) and FlowScriptRuntimeError from the run.
    """
    tokens = tokenize(source)
    program, errors = parse(tokens)
    if errors:
        raise FlowScriptSyntaxError(errors)
    return Interpreter(context, echo=echo, trace=trace).interpret(program)
