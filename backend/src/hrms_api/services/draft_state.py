"""Step navigation state for the multi-step employee and onboarding wizards."""

import inspect
import logging
from collections.abc import Awaitable, Callable, Sequence

logger = logging.getLogger(__name__)

StepValidator = Callable[[], bool | Awaitable[bool]]

EMPLOYEE_FORM_STEPS: tuple[str, ...] = (
    "Personal Info",
    "Professional Info",
    "Credentials",
    "Additional Info",
    "Education & Employment",
    "Licenses",
    "Certifications",
    "References & Contacts",
    "Documents Submission",
    "Training & Payer",
    "Forms",
    "Incidents",
    "Review",
)

ONBOARDING_STEPS: tuple[str, ...] = (
    "Personal Information",
    "Professional Details",
    "Credentials",
    "Additional Information",
    "Education & Employment History",
    "Professional Licenses",
    "Board Certifications",
    "References & Emergency Contacts",
    "Tax Documentation",
    "Training & Payer Enrollment",
    "Required Forms",
    "Review & Submit",
)


class DraftStateManager:
    """Tracks the active wizard step and gates navigation.

    The active step may register one validator. Async content on the step
    (uploads in flight, for instance) can close the navigation gate
    independently. Both are cleared whenever the step changes.
    """

    def __init__(self, steps: Sequence[str] = EMPLOYEE_FORM_STEPS, start: int = 1) -> None:
        """Initialize at ``start`` (1-based).

        Raises:
            ValueError: If there are no steps or ``start`` is out of range
        """
        if not steps:
            raise ValueError("A wizard needs at least one step")
        if not 1 <= start <= len(steps):
            raise ValueError(f"Start step must be between 1 and {len(steps)}")
        self.steps = tuple(steps)
        self._step = start
        self._validators: dict[int, StepValidator] = {}
        self._gate_open = True
        self._gate_reason: str | None = None

    @property
    def step(self) -> int:
        """Current 1-based step index."""
        return self._step

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @property
    def step_title(self) -> str:
        return self.steps[self._step - 1]

    @property
    def is_first(self) -> bool:
        return self._step == 1

    @property
    def is_last(self) -> bool:
        return self._step == len(self.steps)

    @property
    def progress(self) -> int:
        """Completion percentage of the current position."""
        return round(self._step / len(self.steps) * 100)

    @property
    def gate_reason(self) -> str | None:
        """Why the gate is closed, if it is."""
        return None if self._gate_open else self._gate_reason

    def register_validator(self, validator: StepValidator) -> None:
        """Set the sole validator of the current step, replacing any earlier one."""
        self._validators[self._step] = validator

    def set_gate(self, allowed: bool, reason: str | None = None) -> None:
        """Open or close navigation for the current step."""
        self._gate_open = allowed
        self._gate_reason = None if allowed else reason

    async def can_advance(self) -> bool:
        """Whether the current step allows moving forward.

        Never raises: a validator that raises counts as a failed validation.
        """
        if not self._gate_open:
            return False
        validator = self._validators.get(self._step)
        if validator is None:
            return True
        try:
            result = validator()
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.debug(f"Validator for step {self._step} raised {type(e).__name__}")
            return False
        return bool(result)

    async def advance(self) -> bool:
        """Move one step forward if the current step allows it.

        Returns:
            True if the step changed
        """
        if self.is_last or not await self.can_advance():
            return False
        self._move_to(self._step + 1)
        return True

    def back(self) -> bool:
        """Move one step back. Going back is never validated.

        Returns:
            True if the step changed
        """
        if self.is_first:
            return False
        self._move_to(self._step - 1)
        return True

    def _move_to(self, step: int) -> None:
        self._validators.pop(self._step, None)
        self._step = step
        self._gate_open = True
        self._gate_reason = None
