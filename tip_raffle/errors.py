"""
Raffle Exceptions
Every error the raffle raises carries a short machine-readable code
"""


class RaffleError(Exception):
    """Base class for all raffle errors"""
    code = "raffle_error"
    status_code = 500


# -------------------------
# Submission validation
# -------------------------

class SubmissionRejected(RaffleError, ValueError):
    """A visitor submission was refused; nothing was written"""
    code = "rejected"
    status_code = 400


class SubmissionsClosed(SubmissionRejected):
    code = "closed"
    status_code = 403


class MissingFieldsError(SubmissionRejected):
    code = "missing_fields"

    def __init__(self, field_ids):
        self.field_ids = list(field_ids)
        super().__init__(f"Missing required fields: {', '.join(self.field_ids)}")


class RulesNotAcceptedError(SubmissionRejected):
    code = "rules_not_accepted"


class BannedParticipantError(SubmissionRejected):
    code = "blocked"
    status_code = 403


class DuplicateAccountError(SubmissionRejected):
    code = "already_exists"
    status_code = 409

    def __init__(self, account_id):
        self.account_id = account_id
        super().__init__(f"Account ID {account_id} is already registered")


# -------------------------
# Tips
# -------------------------

class TipAssignmentError(RaffleError, ValueError):
    code = "invalid_tip"
    status_code = 400


class TipAlreadyAssigned(TipAssignmentError):
    code = "tip_already_assigned"
    status_code = 409


class TipBudgetExceeded(TipAssignmentError):
    code = "tip_budget_exceeded"
    status_code = 409


# -------------------------
# Lookups, persistence, delivery
# -------------------------

class RecordNotFound(RaffleError, LookupError):
    code = "not_found"
    status_code = 404


class StoreError(RaffleError):
    """A remote persistence call failed"""
    code = "store_unavailable"
    status_code = 503


class NotificationError(RaffleError):
    code = "notification_failed"
    status_code = 502


class EmailRelayError(NotificationError):
    """The email provider rejected or failed the request"""

    def __init__(self, message, status_code=502, payload=None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload or {}
