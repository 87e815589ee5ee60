"""Outcome taxonomy for the public endpoints.

Every failure a public handler can produce is one of the classes below. The
application-level exception handler turns them into the message page with
the class's status code, so no raw internal error ever reaches a recipient.
"""

from fastapi import status


class PublicError(Exception):
    """Base class for outcomes rendered as a message page."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    title_key: str = "public.errorTitle"
    message_key: str = "public.errorProcessingRequest"

    def __init__(self, message_key: str | None = None, detail: str | None = None):
        if message_key:
            self.message_key = message_key
        # Pre-translated text, used instead of message_key when set
        self.detail = detail
        super().__init__(detail or self.message_key)


class InvalidInput(PublicError):
    """Malformed form or query payload."""

    status_code = status.HTTP_400_BAD_REQUEST
    message_key = "public.invalidInput"


class NotFound(PublicError):
    """A well-formed identifier that resolves to nothing."""

    status_code = status.HTTP_404_NOT_FOUND
    title_key = "public.notFoundTitle"
    message_key = "public.notFound"


class InvalidIdentifier(InvalidInput):
    """A malformed identifier. Rendered exactly like NotFound."""

    status_code = NotFound.status_code
    title_key = NotFound.title_key
    message_key = NotFound.message_key


class FeatureDisabled(PublicError):
    """A privacy toggle is off. Indistinguishable from a missing feature."""

    status_code = status.HTTP_404_NOT_FOUND
    message_key = "public.invalidFeature"


class NoPendingAction(PublicError):
    """Nothing left to do, e.g. every targeted list is already confirmed."""

    status_code = status.HTTP_200_OK
    title_key = "public.noSubTitle"
    message_key = "public.noSubInfo"


class InternalError(PublicError):
    """Store or transport failure."""
