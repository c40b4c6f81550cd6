import logging
import time
from typing import Any, Mapping

from .errors import RuleFailure
from .models import FieldSpec, RuleSpec, Signal, ValidationResult
from .registry import RuleRegistry

logger = logging.getLogger(__name__)


class RuleExecutor:
    """Executes a field's rules in order and reports control signals"""

    def __init__(
        self,
        registry: RuleRegistry,
        record: Mapping[str, Any],
        result: ValidationResult,
        stop_on_first_error: bool = True,
    ):
        """
        Initialize rule executor for a single validate() run.

        Args:
            registry: Registry used to resolve each rule
            record: The input record being validated
            result: Result that failures are recorded into
            stop_on_first_error: Abort the whole run at the first failure
        """
        self.registry = registry
        self.record = record
        self.result = result
        self.stop_on_first_error = stop_on_first_error

    def execute_field(self, field: FieldSpec) -> Signal:
        """
        Run every rule of a field until one fails or skips the field.

        Returns:
            ABORT_RUN if a rule failed under stop-on-first-error, otherwise
            CONTINUE (the engine moves on to the next field either way)
        """
        for rule in field.rules:
            signal = self._execute_rule(rule)
            if signal is Signal.ABORT_RUN:
                return signal
            if signal is Signal.SKIP_FIELD:
                logger.debug("Skipping remaining rules of field '%s'", field.name)
                break
        return Signal.CONTINUE

    def _execute_rule(self, rule: RuleSpec) -> Signal:
        """Resolve and invoke one rule, recording a failure if it has one."""
        start = time.perf_counter()
        try:
            predicate = self.registry.resolve(rule)
            signal = predicate(self.record, rule.field, rule.parameter)
        except RuleFailure as e:
            return self._fail(rule, e.message)
        finally:
            elapsed_ms = round((time.perf_counter() - start) * 1000, 3)
            logger.debug(
                "Rule '%s' on field '%s' ran in %sms", rule.describe(), rule.field, elapsed_ms
            )

        if signal is Signal.SKIP_FIELD:
            return Signal.SKIP_FIELD
        return Signal.CONTINUE

    def _fail(self, rule: RuleSpec, message: str) -> Signal:
        self.result.record(rule.field, message)
        logger.debug("Rule '%s' failed on field '%s': %s", rule.describe(), rule.field, message)

        if self.stop_on_first_error:
            return Signal.ABORT_RUN
        # The rest of this field is skipped; later fields still run
        return Signal.SKIP_FIELD
