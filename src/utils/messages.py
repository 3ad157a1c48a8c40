from textual.message import Message


class QuitRequestedMessage(Message):
    """
    posted by the quit dialog once the user confirmed
    """

    bubble = True


class SignOutMessage(Message):
    """
    The user asked to end the session. Handled by the app, which clears the
    local session store and shows the login screen again.
    """

    bubble = True

    def __init__(self, notice: str = "Logout successful.") -> None:
        super().__init__()
        self.notice = notice


class SessionChangedMessage(Message):
    """
    Fired after login, impersonation start/stop, so screens and the sidebar
    recompute what the current roles allow.
    """

    bubble = True

    def __init__(self, reason: str = "") -> None:
        super().__init__()
        self.reason = reason
