from __future__ import annotations


class CoachError(Exception):
    status_code = 500
    code = "coach_error"

    def __init__(self, message: str, *, status_code: int | None = None, code: str | None = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code


class InvalidRequestError(CoachError):
    status_code = 400
    code = "invalid_request"


class ResumeTooShortError(InvalidRequestError):
    code = "resume_too_short"


class AccessDeniedError(CoachError):
    status_code = 403
    code = "access_denied"

    def __init__(self, message: str, *, trial_expired: bool = False, days_remaining: int | None = None):
        super().__init__(message)
        self.trial_expired = trial_expired
        self.days_remaining = days_remaining
