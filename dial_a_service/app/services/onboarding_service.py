"""
Provider onboarding wizard.

:class:`OnboardingWizard` is a linear sequence of steps with a cursor.
It knows nothing about HTTP or the database: each :class:`WizardStep`
carries a ``check`` that inspects the provider and returns the message
to show while the step is unfinished, and the wizard calls
``on_complete`` when the last step is passed.

:class:`OnboardingService` builds the provider wizard (Basic
Information, Skills & Experience, ID Verification), stores the cursor
in ``providers.onboarding_step`` and runs the completion logic that
queues the provider for admin review.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, List, Optional, Sequence

from dial_a_service.app.core.db import get_connection
from dial_a_service.app.schemas.onboarding import OnboardingState, OnboardingStepRead
from dial_a_service.app.schemas.provider import ProviderRead
from dial_a_service.app.services.provider_service import (
    fetch_provider_row,
    provider_from_row,
    publish_provider,
)


logger = logging.getLogger(__name__)


@dataclass
class WizardStep:
    key: str
    title: str
    check: Callable[[Any], Optional[str]]


class OnboardingWizard:
    """A linear multi-step flow.

    Parameters
    ----------
    steps : Sequence[WizardStep]
        The steps in order; at least one is required.
    on_complete : Callable
        Called with the wizard context when ``next`` is invoked on the
        last step.  Its return value is returned by ``next``.
    current : int
        Initial cursor position; out-of-range values start at 0.
    """

    def __init__(self, steps: Sequence[WizardStep], on_complete: Callable[[Any], Any], current: int = 0) -> None:
        if not steps:
            raise ValueError("A wizard needs at least one step")
        self.steps: List[WizardStep] = list(steps)
        self.on_complete = on_complete
        self.current = current if 0 <= current < len(self.steps) else 0

    @property
    def step(self) -> WizardStep:
        return self.steps[self.current]

    @property
    def is_first(self) -> bool:
        return self.current == 0

    @property
    def is_last(self) -> bool:
        return self.current == len(self.steps) - 1

    def go_to(self, index: int) -> bool:
        """Jump to ``index``; out-of-range indices are ignored."""
        if 0 <= index < len(self.steps):
            self.current = index
            return True
        return False

    def back(self) -> bool:
        if self.is_first:
            return False
        self.current -= 1
        return True

    def next(self, context: Any = None) -> Any:
        """Advance past the current step, or complete on the last one.

        Raises ``ValueError`` with the step's message if the current
        step is unfinished.
        """
        reason = self.step.check(context)
        if reason:
            raise ValueError(reason)
        if not self.is_last:
            self.current += 1
            return None
        return self.on_complete(context)

    def first_incomplete(self, context: Any = None) -> Optional[int]:
        for index, step in enumerate(self.steps):
            if step.check(context):
                return index
        return None

    def finish(self, context: Any = None) -> Any:
        """Complete the wizard from any step.

        Moves the cursor to the first unfinished step and raises its
        message if there is one.
        """
        index = self.first_incomplete(context)
        if index is not None:
            self.current = index
            raise ValueError(self.step.check(context))
        self.current = len(self.steps) - 1
        return self.on_complete(context)


def _check_basic_info(provider: ProviderRead) -> Optional[str]:
    if not provider.business_name:
        return "Please enter your business name"
    if not provider.business_email:
        return "Please enter a valid business email"
    return None


def _check_skills(provider: ProviderRead) -> Optional[str]:
    if not provider.skills:
        return "Please select at least one skill"
    return None


def _check_id_document(provider: ProviderRead) -> Optional[str]:
    if not provider.id_url:
        return "Please select an ID document"
    return None


PROVIDER_STEPS = [
    WizardStep("basic_info", "Basic Information", _check_basic_info),
    WizardStep("skills", "Skills & Experience", _check_skills),
    WizardStep("id_verification", "ID Verification", _check_id_document),
]


def complete_onboarding(provider_id: int) -> str:
    """Mark onboarding done and queue the provider for review.

    A provider who never asked for review, or whose last review was a
    rejection, goes back to ``pending`` with a fresh request time.
    Returns the route to continue to.
    """
    now = datetime.utcnow().isoformat()
    conn = get_connection()
    try:
        cursor = conn.cursor()
        row = fetch_provider_row(cursor, provider_id)
        if row["verification_requested_at"] is None or row["verification_status"] == "rejected":
            cursor.execute(
                """
                UPDATE providers
                SET onboarding_completed_at = ?, verification_status = 'pending',
                    verification_requested_at = ?, updated_at = CURRENT_TIMESTAMP
                WHERE id = ?
                """,
                (now, now, provider_id),
            )
        else:
            cursor.execute(
                "UPDATE providers SET onboarding_completed_at = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (now, provider_id),
            )
        conn.commit()
        row = fetch_provider_row(cursor, provider_id)
    finally:
        conn.close()
    publish_provider(row)
    logger.info("Provider %s completed onboarding", provider_id)
    return "/provider/dashboard" if row["verified"] else "/provider/pending"


class OnboardingService:
    """Drive the provider onboarding wizard and persist its cursor."""

    @classmethod
    def _load(cls, provider_id: int):
        conn = get_connection()
        try:
            provider = provider_from_row(fetch_provider_row(conn.cursor(), provider_id))
        finally:
            conn.close()
        wizard = OnboardingWizard(
            PROVIDER_STEPS,
            on_complete=lambda _provider: complete_onboarding(provider_id),
            current=provider.onboarding_step,
        )
        return wizard, provider

    @classmethod
    def _save_step(cls, provider_id: int, step: int) -> None:
        conn = get_connection()
        try:
            conn.execute(
                "UPDATE providers SET onboarding_step = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (step, provider_id),
            )
            conn.commit()
        finally:
            conn.close()

    @classmethod
    def _state(
        cls,
        wizard: OnboardingWizard,
        provider: ProviderRead,
        message: Optional[str] = None,
        redirect_to: Optional[str] = None,
    ) -> OnboardingState:
        return OnboardingState(
            current_step=wizard.current,
            steps=[
                OnboardingStepRead(index=i, key=s.key, title=s.title, complete=s.check(provider) is None)
                for i, s in enumerate(wizard.steps)
            ],
            is_first=wizard.is_first,
            is_last=wizard.is_last,
            completed=provider.onboarding_completed_at is not None or redirect_to is not None,
            message=message,
            redirect_to=redirect_to,
        )

    @classmethod
    async def get_state(cls, provider_id: int) -> OnboardingState:
        wizard, provider = cls._load(provider_id)
        return cls._state(wizard, provider)

    @classmethod
    async def next_step(cls, provider_id: int) -> OnboardingState:
        """Advance the wizard; on the last step this completes onboarding."""
        wizard, provider = cls._load(provider_id)
        redirect_to = wizard.next(provider)
        cls._save_step(provider_id, wizard.current)
        if redirect_to is not None:
            _, provider = cls._load(provider_id)
        return cls._state(wizard, provider, redirect_to=redirect_to)

    @classmethod
    async def previous_step(cls, provider_id: int) -> OnboardingState:
        wizard, provider = cls._load(provider_id)
        if wizard.back():
            cls._save_step(provider_id, wizard.current)
        return cls._state(wizard, provider)

    @classmethod
    async def go_to_step(cls, provider_id: int, index: int) -> OnboardingState:
        wizard, provider = cls._load(provider_id)
        if wizard.go_to(index):
            cls._save_step(provider_id, wizard.current)
        return cls._state(wizard, provider)

    @classmethod
    async def complete(cls, provider_id: int) -> OnboardingState:
        """Finish onboarding from whatever step the provider is on.

        If a step is unfinished the cursor is moved there and its
        message raised as ``ValueError``.
        """
        wizard, provider = cls._load(provider_id)
        try:
            redirect_to = wizard.finish(provider)
        finally:
            cls._save_step(provider_id, wizard.current)
        _, provider = cls._load(provider_id)
        return cls._state(wizard, provider, redirect_to=redirect_to)
