class FlowScriptError(Exception):
    pass


class FlowScriptLexicalError(FlowScriptError):
    def __init__(self, message: str, line: int | None = None, column: int | None = None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column


class FlowScriptSyntaxError(FlowScriptError):
    """Raised when the parser reported diagnostics and the program must not run."""

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("\n".join(self.errors))

    def format(self, indent: str = "") -> str:
        lines = [f"{indent}Syntax error:" if len(self.errors) == 1 else f"{indent}Syntax errors ({len(self.errors)}):"]
        for err in self.errors:
            lines.append(f"{indent}  {err}")
        return "\n".join(lines)


class FlowScriptRuntimeError(FlowScriptError):
    def __init__(self, message: str, line: int | None = None, column: int | None = None, frames=None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column
        self.frames = frames or []  # most recent first
        self.output = []            # lines emitted before the failure

    def format(self, indent: str = "") -> str:
        head = f"{indent}Runtime error: {self.message}"
        if self.line is not None:
            head += f" (line {self.line})"
        lines = [head]
        for fr in self.frames:
            func = fr.get("func", "<unknown>")
            line = fr.get("line")
            loc = "line ?" if line is None else f"line {line}"
            lines.append(f"{indent}  at func {func} ({loc})")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.format()


class UndefinedVariableError(FlowScriptRuntimeError):
    def __init__(self, name: str):
        super().__init__(f"Undefined variable: {name}")
        self.name = name
