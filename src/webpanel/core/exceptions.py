# src/webpanel/core/exceptions.py
"""
Panel error types

Messages are human-readable and go to the API caller verbatim;
status_code picks the HTTP status.
"""


class PanelError(Exception):
    """Base error for all panel failures"""

    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def __str__(self):
        return self.message


class ValidationError(PanelError):
    """Invalid request data, rejected before any side effect"""

    status_code = 400


class NotFoundError(PanelError):
    status_code = 404


class ConflictError(PanelError):
    """Duplicate resource or capacity ceiling reached"""

    status_code = 409


class ExternalToolError(PanelError):
    """An external command failed, timed out or is missing"""

    status_code = 500

    def __init__(self, message, command=None, returncode=None, output=""):
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.output = output


class ProviderError(PanelError):
    """The DNS provider API returned an error or could not be reached"""

    status_code = 502

    def __init__(self, message, http_status=None, status_code=None):
        super().__init__(message, status_code)
        self.http_status = http_status
