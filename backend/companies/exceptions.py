class ApplicationWorkflowError(Exception):
    """Base class for company application workflow errors"""


class InvalidApplicationTransition(ApplicationWorkflowError):
    """Raised when an application is moved out of a terminal state"""

    def __init__(self, application, target_status):
        self.application = application
        self.target_status = target_status
        super().__init__(
            f"Application {application.pk} is already {application.status} "
            f"and cannot be {target_status}."
        )


class RejectionReasonRequired(ApplicationWorkflowError, ValueError):
    """Raised when an application is rejected without a reason"""

    def __init__(self):
        super().__init__('A rejection reason is required.')
