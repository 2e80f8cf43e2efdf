"""Exception taxonomy for agent runs"""


class AguiServerError(Exception):
    """Base class for errors raised by the run orchestration core"""


class ConstructionError(AguiServerError):
    """Building the graph for a thread failed"""

    def __init__(self, thread_id: str, message: str | None = None):
        self.thread_id = thread_id
        super().__init__(message or f"Could not build graph for thread '{thread_id}'")


class ApprovalPreconditionError(AguiServerError):
    """A suspended thread was resumed without a tool result message"""

    def __init__(self, thread_id: str):
        self.thread_id = thread_id
        super().__init__(f"last result message not found after interruption (thread '{thread_id}')")


class ModelTransientError(AguiServerError):
    """A backend failure worth retrying (network-level symptom)"""


class ModelPermanentError(AguiServerError):
    """A backend failure that retrying will not fix (e.g. bad credentials)"""


class TranslationError(AguiServerError):
    """A graph step output could not be interpreted"""
