import sys
import traceback

from colorama import Fore, Style, just_fix_windows_console

from errors import FlowScriptError, FlowScriptLexicalError, FlowScriptRuntimeError, FlowScriptSyntaxError
from interpreter import Context, Interpreter, value_to_string
from lexer import Lexer
from parser import Parser


# Simple AST printer (so you can SEE what the parser built)
def ast_to_dict(node):
    if node is None:
        return None

    t = node.__class__.__name__
    d = {"type": t}
    if node.line is not None:
        d["at"] = f"{node.line}:{node.column}"

    if t == "Program":
        d["statements"] = [ast_to_dict(s) for s in node.statements]
    elif t == "VariableDeclaration":
        d["data_type"] = node.data_type
        d["identifier"] = node.identifier
        d["value"] = ast_to_dict(node.value)
    elif t == "Output":
        d["output_type"] = node.output_type
        d["expression"] = ast_to_dict(node.expression)
    elif t == "Conditional":
        d["condition"] = ast_to_dict(node.condition)
        d["then"] = ast_to_dict(node.then_statement)
        d["else"] = ast_to_dict(node.else_statement)
    elif t == "Loop":
        d["count"] = ast_to_dict(node.count)
        d["body"] = ast_to_dict(node.body)
    elif t == "FunctionDefinition":
        d["name"] = node.name
        d["parameters"] = list(node.parameters)
        d["body"] = ast_to_dict(node.body)
    elif t == "FunctionCall":
        d["name"] = node.name
        d["arguments"] = [ast_to_dict(a) for a in node.arguments]
    elif t == "BinaryExpression":
        d["operator"] = node.operator
        d["left"] = ast_to_dict(node.left)
        d["right"] = ast_to_dict(node.right)
    elif t == "Literal":
        d["value_type"] = node.value_type
        d["value"] = repr(node.value)
    elif t == "Identifier":
        d["name"] = node.name
    else:
        d["raw"] = str(node)

    return d


def pretty(obj, indent=0):
    sp = "  " * indent
    if isinstance(obj, dict):
        lines = []
        for k, v in obj.items():
            if isinstance(v, (dict, list)):
                lines.append(f"{sp}{k}:")
                lines.append(pretty(v, indent + 1))
            else:
                lines.append(f"{sp}{k}: {v}")
        return "\n".join(lines)
    if isinstance(obj, list):
        lines = []
        for item in obj:
            lines.append(f"{sp}-")
            lines.append(pretty(item, indent + 1))
        return "\n".join(lines)
    return f"{sp}{obj}"


def print_error(e, debug=False):
    if debug:
        traceback.print_exc()
    if isinstance(e, (FlowScriptRuntimeError, FlowScriptSyntaxError)):
        text = e.format()
    elif isinstance(e, FlowScriptLexicalError):
        text = f"Lexical error: {e.message}"
    else:
        text = str(e)
    print(f"{Fore.RED}{text}{Style.RESET_ALL}", file=sys.stderr)


def read_source(path):
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def cmd_tokens(path):
    try:
        tokens = Lexer(read_source(path)).tokenize()
    except (OSError, FlowScriptError) as e:
        print_error(e)
        sys.exit(1)

    for tok in tokens:
        value = "" if tok.value is None else f" {tok.value!r}"
        print(f"  {tok.line:4d}:{tok.column:<4d} {tok.type}{value}")


def cmd_parse(path):
    try:
        tokens = Lexer(read_source(path)).tokenize()
    except (OSError, FlowScriptError) as e:
        print_error(e)
        sys.exit(1)

    parser = Parser(tokens)
    program = parser.parse()
    print(pretty(ast_to_dict(program)))

    if parser.errors:
        print_error(FlowScriptSyntaxError(parser.errors))
        sys.exit(1)


def cmd_run(path, context, debug=False, trace=False):
    try:
        tokens = Lexer(read_source(path)).tokenize()
        parser = Parser(tokens)
        program = parser.parse()
        if parser.errors:
            raise FlowScriptSyntaxError(parser.errors)

        Interpreter(context, echo=True, trace=trace).interpret(program)
    except (OSError, FlowScriptError) as e:
        print_error(e, debug=debug)
        sys.exit(1)


REPL_HELP = """\
FlowScript Examples:
  Create a number called age with value 25
  Create a text called name with value "Alice"
  Say "Hello " plus name
  If age is greater than 18 then say "Adult"
  Repeat 3 times: say "Hello"
  Define a function called double that takes x and returns x times 2

Commands:
  help  - Show this help
  vars  - Show current variables
  clear - Reset interpreter
  exit  - Quit REPL"""


def show_variables(interpreter):
    variables = interpreter.context.global_scope.get_all_symbols()
    if not variables:
        print("No variables defined.")
        return
    print("Current variables:")
    for name, symbol in variables.items():
        print(f"  {name}: {value_to_string(symbol.value)} ({symbol.type})")


def cmd_repl(context, debug: bool = False, trace: bool = False):
    # one interpreter (and context) lives across all inputs
    interpreter = Interpreter(context, echo=True, trace=trace)

    print("FlowScript REPL. Type 'help' for examples, 'exit' to quit.")

    while True:
        try:
            line = input("flowscript> ")
        except (EOFError, KeyboardInterrupt):
            print()
            break

        stripped = line.strip()
        if not stripped:
            continue

        command = stripped.lower()
        if command in ("exit", "quit", ":q", ":quit"):
            break
        if command == "help":
            print(REPL_HELP)
            continue
        if command == "vars":
            show_variables(interpreter)
            continue
        if command == "clear":
            interpreter.reset()
            print("Interpreter reset.")
            continue

        try:
            tokens = Lexer(line).tokenize()
            parser = Parser(tokens)
            program = parser.parse()
            if parser.errors:
                raise FlowScriptSyntaxError(parser.errors)
            if not program.statements:
                print("No statements to execute.")
                continue
            interpreter.interpret(program)
        except FlowScriptError as e:
            print_error(e, debug=debug)


USAGE = """\
Usage:
  flowscript run <file.flow>
  flowscript tokens <file.flow>
  flowscript parse <file.flow>
  flowscript repl
Options:
  --debug          show Python traceback on errors
  --trace          print each statement as it runs
  --lexical        resolve function bodies against their definition scope
  --max-depth N    call depth ceiling (0 disables)
  --max-loops N    loop iteration ceiling (0 disables)"""


def usage_exit():
    print(USAGE)
    sys.exit(1)


def pop_flag(argv, flag):
    if flag in argv:
        argv.remove(flag)
        return True
    return False


def pop_int_option(argv, option, default):
    if option not in argv:
        return default
    i = argv.index(option)
    if i + 1 >= len(argv):
        print(f"{option} expects a number")
        sys.exit(1)
    raw = argv[i + 1]
    del argv[i : i + 2]
    try:
        value = int(raw)
    except ValueError:
        print(f"{option} expects a number, got {raw}")
        sys.exit(1)
    return value if value > 0 else None


def main(argv=None):
    just_fix_windows_console()

    argv = list(sys.argv[1:] if argv is None else argv)
    debug = pop_flag(argv, "--debug")
    trace = pop_flag(argv, "--trace")
    lexical = pop_flag(argv, "--lexical")
    max_depth = pop_int_option(argv, "--max-depth", 100)
    max_loops = pop_int_option(argv, "--max-loops", 1000)

    context = Context(
        max_call_depth=max_depth,
        max_loop_iterations=max_loops,
        scoping="lexical" if lexical else "dynamic",
    )

    if not argv:
        usage_exit()

    cmd = argv[0]

    if cmd == "repl":
        if len(argv) != 1:
            usage_exit()
        cmd_repl(context, debug=debug, trace=trace)
        return

    if len(argv) != 2:
        usage_exit()
    path = argv[1]

    if cmd == "run":
        cmd_run(path, context, debug=debug, trace=trace)
    elif cmd == "tokens":
        cmd_tokens(path)
    elif cmd == "parse":
        cmd_parse(path)
    else:
        print(f"Unknown command: {cmd}")
        sys.exit(1)


if __name__ == "__main__":
    main()
