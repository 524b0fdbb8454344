"""
Error kinds surfaced by the generation pipeline and the practice service
"""


class QuizGenError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(QuizGenError):
    """Unsupported upload or a request parameter outside its bounds"""
    status_code = 400


class ParseError(QuizGenError):
    """Model output could not be reduced to the expected question structure"""
    status_code = 502


class GenerationError(QuizGenError):
    """The model call failed, or a multi-type generation could not complete"""
    status_code = 502


class NotFound(QuizGenError):
    status_code = 404


class StateConflict(QuizGenError):
    status_code = 409
