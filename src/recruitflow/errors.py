"""Error taxonomy shared by the tracker service, the API and the CLI.

Each error carries the HTTP status it maps to; the API layer renders any
``RecruitFlowError`` as ``{"error": message}``.
"""

from __future__ import annotations


class RecruitFlowError(Exception):
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RecruitFlowError):
    status_code = 400


class AuthenticationError(RecruitFlowError):
    status_code = 401


class NotFoundError(RecruitFlowError):
    status_code = 404


class InternalError(RecruitFlowError):
    status_code = 500
