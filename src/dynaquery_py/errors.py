from __future__ import annotations


class DynaqueryPyError(Exception):
    pass


class ConditionFailedError(DynaqueryPyError):
    pass


class NotFoundError(DynaqueryPyError):
    pass


class ValidationError(DynaqueryPyError):
    pass


class InvalidFieldNameError(ValidationError):
    def __init__(self, *, prefix: str) -> None:
        super().__init__(f"{prefix}: field name must be a non-empty string")
        self.prefix = prefix


class UnsupportedOperationError(DynaqueryPyError, AttributeError):
    def __init__(self, *, name: str, owner: str) -> None:
        super().__init__(f"method {owner}.{name} does not exist (expected set<Field> or has<Field>)")
        self.name = name
        self.owner = owner


class TransactionCanceledError(DynaqueryPyError):
    def __init__(self, *, message: str, reason_codes: tuple[str, ...]) -> None:
        super().__init__(message)
        self.reason_codes = reason_codes


class AwsError(DynaqueryPyError):
    def __init__(self, *, code: str, message: str) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message
