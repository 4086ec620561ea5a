# src/mq_kit/query/errors.py

"""Error taxonomy for lexing, parsing and evaluating queries.

Every failure a query can produce derives from ``QueryError`` so callers
have a single channel to catch.
"""


class QueryError(Exception):
    """Base class for all query failures."""


class LexError(QueryError):
    def __init__(self, message: str, line: int, column: int) -> None:
        self.message = message
        self.line = line
        self.column = column
        super().__init__(f"lex error at line {line}, column {column}: {message}")


class ParseError(QueryError):
    """Structural error in a query. ``hint`` holds a literal usage example."""

    def __init__(self, message: str, line: int, column: int, hint: str = "") -> None:
        self.message = message
        self.line = line
        self.column = column
        self.hint = hint
        text = f"parse error at line {line}, column {column}: {message}"
        if hint:
            text = f"{text}\n{hint}"
        super().__init__(text)


class EvaluationError(QueryError):
    """A well-formed query that cannot be evaluated against the document."""


class UnknownNameError(EvaluationError):
    """Unknown selector, function or property name.

    ``suggestion`` is a best-effort nearest name or None; ``available``
    lists every valid name for the failed lookup.
    """

    def __init__(
        self,
        message: str,
        name: str,
        available: tuple[str, ...],
        suggestion: str | None = None,
    ) -> None:
        self.name = name
        self.available = available
        self.suggestion = suggestion
        super().__init__(message)

    @classmethod
    def for_selector(
        cls, name: str, available: tuple[str, ...], suggestion: str | None
    ) -> "UnknownNameError":
        message = f"unknown selector: .{name}"
        if suggestion:
            message += f"\nDid you mean: .{suggestion}?"
        else:
            message += "\nAvailable selectors: " + ", ".join(f".{n}" for n in available)
        return cls(message, name, available, suggestion)

    @classmethod
    def for_function(
        cls, name: str, available: tuple[str, ...], suggestion: str | None
    ) -> "UnknownNameError":
        message = f"unknown function: {name}()"
        if suggestion:
            message += f"\nDid you mean: {suggestion}()?"
        else:
            message += "\nAvailable functions: " + ", ".join(f"{n}()" for n in available)
        return cls(message, name, available, suggestion)

    @classmethod
    def for_property(
        cls, owner: str, name: str, available: tuple[str, ...], suggestion: str | None
    ) -> "UnknownNameError":
        message = f"{owner} has no property: .{name}"
        if suggestion:
            message += f"\nDid you mean: .{suggestion}?"
        message += "\nAvailable: " + ", ".join(f".{n}" for n in available)
        return cls(message, name, available, suggestion)


class QueryTypeError(EvaluationError):
    """An operation applied to a value of the wrong type."""


class IndexOutOfRangeError(EvaluationError):
    def __init__(self, index: int, length: int) -> None:
        self.index = index
        self.length = length
        super().__init__(f"index out of range: {index} (length {length})")


class SectionNotFoundError(EvaluationError):
    def __init__(self, title: str) -> None:
        self.title = title
        super().__init__(f"section not found: {title}")


class AmbiguousSectionError(EvaluationError):
    def __init__(self, title: str, count: int) -> None:
        self.title = title
        self.count = count
        super().__init__(
            f"section title is ambiguous: {title} ({count} sections share it)"
        )
