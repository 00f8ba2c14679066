"""
Saga helper for multi-step writes that cannot share one transaction
(e.g. BaaS auth user + database rows). Steps run in order; when a step fails,
the compensations of every completed step run in reverse order.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class SagaFailed(Exception):
    """Raised after compensation when a saga step fails"""

    def __init__(self, step: str, error: Exception, compensation_errors: Optional[list] = None):
        self.step = step
        self.error = error
        self.compensation_errors = compensation_errors or []
        super().__init__(f"Step '{step}' failed: {error}")


@dataclass
class SagaStep:
    name: str
    action: Callable[[dict], Any]
    compensation: Optional[Callable[[dict, Any], None]] = None


class Saga:
    """
    Ordered list of (action, compensation) pairs.

    Each action receives the shared context dict and its return value is stored
    under the step name. Compensations receive the context and that value.
    """

    def __init__(self, name: str):
        self.name = name
        self.steps: list[SagaStep] = []

    def step(
        self,
        name: str,
        action: Callable[[dict], Any],
        compensation: Optional[Callable[[dict, Any], None]] = None,
    ) -> "Saga":
        self.steps.append(SagaStep(name=name, action=action, compensation=compensation))
        return self

    def execute(self, context: Optional[dict] = None) -> dict:
        context = {} if context is None else context
        completed: list[tuple[SagaStep, Any]] = []

        for step in self.steps:
            try:
                result = step.action(context)
            except Exception as e:
                logger.error(f"❌ Saga {self.name}: step '{step.name}' failed: {e}")
                errors = self._compensate(context, completed)
                raise SagaFailed(step.name, e, errors) from e

            context[step.name] = result
            completed.append((step, result))
            logger.debug(f"✅ Saga {self.name}: step '{step.name}' done")

        return context

    def _compensate(self, context: dict, completed: list) -> list:
        errors = []
        for step, result in reversed(completed):
            if step.compensation is None:
                continue
            try:
                step.compensation(context, result)
                logger.info(f"↩️ Saga {self.name}: compensated '{step.name}'")
            except Exception as e:
                # Keep unwinding past a failed compensation
                logger.error(f"❌ Saga {self.name}: compensation for '{step.name}' failed: {e}")
                errors.append((step.name, e))
        return errors
