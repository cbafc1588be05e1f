"""
Domain error taxonomy.

Every rejected operation raises one of these. The caller's prior state is
unchanged whenever one is raised: validation and reference checks happen
before any write, and a write rejected by a constraint is rolled back.
"""

from fastapi import status


class SliichError(Exception):
    """Base class for all domain errors."""

    code: str = "error"
    status_code: int = status.HTTP_400_BAD_REQUEST
    retryable: bool = False
    message: str = "Request rejected"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.detail = message or self.message


# =============================================================================
# Validation - rejected before any write, fixable by correcting the input
# =============================================================================


class InputValidationError(SliichError):
    code = "validation_error"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class EmptyContent(InputValidationError):
    code = "empty_content"
    message = "Message content must not be empty"


class ContentTooLong(InputValidationError):
    code = "content_too_long"
    message = "Message content is too long"


class EmptyQuestion(InputValidationError):
    code = "empty_question"
    message = "Poll question must not be empty"


class TooFewOptions(InputValidationError):
    code = "too_few_options"
    message = "A poll needs at least 2 options"


class TooManyOptions(InputValidationError):
    code = "too_many_options"
    message = "Too many poll options"


class RespondentRequired(InputValidationError):
    code = "respondent_required"
    message = "Votes must identify the respondent"


# =============================================================================
# Reference - the referenced record does not exist or does not match
# =============================================================================


class InvalidReferenceError(SliichError):
    code = "invalid_reference"
    status_code = status.HTTP_404_NOT_FOUND


class UnknownRecipient(InvalidReferenceError):
    code = "unknown_recipient"
    message = "Recipient not found"


class ProfileNotFound(InvalidReferenceError):
    code = "profile_not_found"
    message = "Profile not found"


class MessageNotFound(InvalidReferenceError):
    code = "message_not_found"
    message = "Message not found"


class PollNotFound(InvalidReferenceError):
    code = "poll_not_found"
    message = "Poll not found"


class OptionNotInPoll(InvalidReferenceError):
    code = "option_not_in_poll"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Option does not belong to this poll"


# =============================================================================
# Conflict - existing state wins, not a transient failure
# =============================================================================


class ConflictError(SliichError):
    code = "conflict"
    status_code = status.HTTP_409_CONFLICT


class DuplicateVote(ConflictError):
    code = "duplicate_vote"
    message = "Already voted on this poll"


class PollInactive(ConflictError):
    code = "poll_inactive"
    message = "This poll is not accepting votes"


class UsernameTaken(ConflictError):
    code = "username_taken"
    message = "Username is already taken"


class ProfileExists(ConflictError):
    code = "profile_exists"
    message = "Profile already exists"


# =============================================================================
# Authorization
# =============================================================================


class AuthorizationError(SliichError):
    code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class NotOwner(AuthorizationError):
    code = "not_owner"
    message = "Only the owner can do this"


class MessagesDisabled(AuthorizationError):
    code = "messages_disabled"
    message = "This profile is not accepting anonymous messages"


# =============================================================================
# Transient - safe to retry
# =============================================================================


class TransientError(SliichError):
    code = "transient_error"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True


class StorageUnavailable(TransientError):
    code = "storage_unavailable"
    message = "Storage is temporarily unavailable"


class FanoutPublishFailed(TransientError):
    code = "fanout_publish_failed"
    message = "Realtime notification could not be delivered"
