"""
Symbol table for the FlowScript interpreter.
Each SymbolTable is one scope; child scopes point at their parent for lookups.
"""

from errors import UndefinedVariableError


class Symbol:
    """A bound variable: its current value and the type tag it was declared with"""

    def __init__(self, name, value, type="unknown"):
        self.name = name
        self.value = value
        self.type = type

    def __repr__(self):
        return f"Symbol({self.name!r}, {self.value!r}, {self.type!r})"

    def __eq__(self, other):
        if not isinstance(other, Symbol):
            return NotImplemented
        return (self.name, self.value, self.type) == (other.name, other.value, other.type)


class SymbolTable:
    """One scope in the chain. The parent is shared, never owned."""

    def __init__(self, parent=None):
        self.symbols = {}
        self.parent = parent

    def define(self, name, value, type="unknown"):
        """Bind name in this scope, replacing any earlier binding here"""
        symbol = Symbol(name, value, type)
        self.symbols[name] = symbol
        return symbol

    def get(self, name):
        """Resolve name in this scope, then in the ancestors"""
        scope = self
        while scope is not None:
            if name in scope.symbols:
                return scope.symbols[name]
            scope = scope.parent
        raise UndefinedVariableError(name)

    def set(self, name, value):
        """Update an existing binding found along the chain. The declared type is left alone."""
        symbol = self.get(name)
        symbol.value = value
        return symbol

    def exists(self, name):
        try:
            self.get(name)
        except UndefinedVariableError:
            return False
        return True

    def create_child(self):
        return SymbolTable(self)

    def get_all_symbols(self):
        """Merged view of the chain; nearer scopes shadow farther ones"""
        result = {}
        if self.parent is not None:
            result.update(self.parent.get_all_symbols())
        result.update(self.symbols)
        return result

    def clear(self):
        self.symbols.clear()

    def __str__(self):
        symbol_list = ", ".join(f"{s.name}: {s.value} ({s.type})" for s in self.symbols.values())
        return f"SymbolTable{{{symbol_list}}}"
