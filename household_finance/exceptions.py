class AppError(Exception):
    def __init__(self, message: str, code: str = "INTERNAL_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class NotFoundError(AppError):
    def __init__(self, resource: str, resource_id: str):
        super().__init__(f"{resource} '{resource_id}' not found", code="NOT_FOUND")


class ValidationError(AppError):
    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")


class InvalidTransitionError(ValidationError):
    def __init__(self, message: str):
        super().__init__(message)
        self.code = "INVALID_TRANSITION"


class UnauthorizedError(AppError):
    def __init__(self, message: str):
        super().__init__(message, code="UNAUTHORIZED")


class ToolLoopLimitError(AppError):
    def __init__(self, agent: str, max_iterations: int):
        super().__init__(
            f"{agent} agent exceeded {max_iterations} model calls without a final answer",
            code="TOOL_LOOP_LIMIT",
        )
