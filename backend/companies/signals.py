"""
Notification hooks for the application workflow.

Receivers get ``application`` and ``reviewed_by`` keyword arguments; approval
also sends ``company``. Both signals fire only after the review has been
committed.
"""
from django.dispatch import Signal

application_submitted = Signal()
application_approved = Signal()
application_rejected = Signal()
