"""Exception types raised by tools, the validation gate and the turn loop"""


class DirectorError(Exception):
    """Base class for agent errors"""


class SafetyRejection(DirectorError):
    """A tool call tried to leave the project root or target a missing artifact"""


class ValidationFailed(DirectorError):
    """Generated source failed the validation pipeline"""

    def __init__(self, message: str, report=None):
        super().__init__(message)
        self.report = report


class ToolTimeout(DirectorError):
    """A tool call exceeded its execution timeout"""


class UnknownTool(DirectorError):
    """The model requested a tool name that could not be resolved"""


class BackendError(DirectorError):
    """The model backend call itself failed"""


class IllegalTransitionError(DirectorError):
    """Publication state machine received a transition it does not allow"""
