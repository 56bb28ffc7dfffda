from django.core.exceptions import PermissionDenied


class MentoringError(Exception):
    """Base class for domain errors returned to the caller."""


class RoleMismatch(MentoringError):
    def __init__(self, account, expected):
        self.account = account
        self.expected = expected
        super().__init__(f"{account} has role '{getattr(account, 'role', None)}', expected {expected}")


class SlotOccupied(MentoringError):
    def __init__(self, slot, by_whom):
        self.slot = slot
        self.by_whom = by_whom
        super().__init__(f"The {slot} slot is already held by {by_whom}")


class NoRecipients(MentoringError):
    def __init__(self):
        super().__init__("None of the requested roles has a current holder")


class NoMentorAssigned(MentoringError):
    def __init__(self, mentee):
        self.mentee = mentee
        super().__init__(f"{mentee} does not have an assigned mentor")


class DuplicateEnrollment(MentoringError):
    def __init__(self, enrollment_no):
        self.enrollment_no = enrollment_no
        super().__init__(f"A mentee with enrollment number {enrollment_no} already exists")


class AuthenticationFailed(MentoringError):
    """Switch failed after the original session was ended. The caller must log in again."""

    def __init__(self, email):
        self.email = email
        super().__init__(f"Could not authenticate as {email}")


class EditWindowClosed(PermissionDenied):
    pass
