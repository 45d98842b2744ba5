"""Services package."""

from hrms_api.services.document_workflow import DocumentWorkflowOrchestrator
from hrms_api.services.draft_state import DraftStateManager
from hrms_api.services.employee_submitter import DraftSession, EmployeeAggregateSubmitter
from hrms_api.services.onboarding_service import OnboardingLifecycleController

__all__ = [
    "DocumentWorkflowOrchestrator",
    "DraftSession",
    "DraftStateManager",
    "EmployeeAggregateSubmitter",
    "OnboardingLifecycleController",
]
