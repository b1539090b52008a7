from typing import Any


class TablegateError(Exception):
    """Base class for errors raised by tablegate models."""


class FieldError(TablegateError):
    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class FieldNotExists(FieldError):
    def __init__(self, field: str):
        super().__init__(field, f'Field "{field}" does not exist')


class InvalidFieldValue(FieldError):
    def __init__(self, field: str, value: Any):
        super().__init__(
            field, f'Invalid value {value!r} ({type(value).__name__}) of field "{field}"'
        )
        self.value = value


class MissingRequiredField(FieldError):
    def __init__(self, field: str):
        super().__init__(field, f'Missing required field "{field}"')


class ValidationFailed(TablegateError):
    """
    Raised when one or more fields fail a pipeline check.

    Every failing field is reported at once; inspect ``errors`` for the
    individual FieldError instances, in the order they were found.
    """

    def __init__(self, errors: list[FieldError]):
        self.errors = list(errors)
        super().__init__("; ".join(str(e) for e in self.errors))

    @property
    def fields(self) -> list[str]:
        return [e.field for e in self.errors]


class IncompatibleConnection(TablegateError, TypeError):
    def __init__(self, operation: str):
        super().__init__(
            f"Model.{operation}(): connection does not provide find_one(); "
            "it must implement tablegate.connection.Connection"
        )
        self.operation = operation
