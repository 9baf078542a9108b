class ChatError(Exception):
    """Failure scoped to a single inbound event.

    ``message`` is the text delivered to the originating connection as
    ``error_msg``. Silent errors are logged and dropped at the event boundary
    unless REPORT_IGNORED_ACTIONS is enabled.
    """

    message = "Something went wrong."
    silent = False

    def __init__(self, message: str = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class RoomNotFound(ChatError):
    message = "Room does not exist."


class IncorrectPassword(ChatError):
    message = "Incorrect Password."


class NotAuthorized(ChatError):
    message = "Only the group creator can kick members."
    silent = True


class TargetNotConnected(ChatError):
    message = "That user is no longer connected."
    silent = True


class NotRegistered(ChatError):
    message = "Please log in first."
    silent = True


class InvalidPayload(ChatError):
    def __init__(self, event: str):
        self.event = event
        super().__init__(f"Invalid {event} payload.")


class UnknownEvent(ChatError):
    def __init__(self, event: str):
        self.event = event
        super().__init__(f"Unknown event: {event}")
