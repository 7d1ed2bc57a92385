"""
Pipeline Base Module
====================
Defines the base class for all pipeline stages.

Each stage:
- Has a name and description
- Takes a PipelineContext and modifies it
- Tracks execution time and status
"""

import time
from abc import ABC, abstractmethod

from .context import PipelineContext
from ..logging_config import get_research_logger, log_stage_complete, log_stage_error

logger = get_research_logger("pipeline")


class PipelineStage(ABC):
    """
    Abstract base class for pipeline stages.

    Subclasses must implement:
    - name: Stage identifier
    - description: Human-readable description
    - _execute(): The actual stage logic

    The base class handles:
    - Timing and logging
    - Error handling
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this stage."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description of what this stage does."""
        pass

    @abstractmethod
    def _execute(self, context: PipelineContext) -> None:
        """
        Execute the stage logic.

        This method should modify the context in place, adding its outputs
        to the appropriate context fields.

        Args:
            context: The pipeline context to read from and write to

        Raises:
            Any exception on failure (will be caught by run())
        """
        pass

    def _get_output_summary(self, context: PipelineContext) -> str:
        """
        Get a summary of what this stage produced.

        Override in subclasses for meaningful summaries.
        """
        return "completed"

    def run(self, context: PipelineContext) -> bool:
        """
        Run this pipeline stage.

        Handles timing, logging and error handling.

        Returns:
            True if stage completed successfully, False otherwise
        """
        logger.debug(f"Starting stage: {self.name}", extra={'run_id': context.run_id})
        start_time = time.time()

        try:
            self._execute(context)

            duration = time.time() - start_time
            summary = self._get_output_summary(context)
            context.record_stage(
                self.name,
                success=True,
                duration=duration,
                summary=summary
            )
            log_stage_complete(self.name, context.run_id, duration, summary, logger=logger)
            return True

        except Exception as e:
            duration = time.time() - start_time
            error_msg = str(e)
            logger.exception(f"Stage {self.name} failed: {error_msg}")
            context.record_stage(
                self.name,
                success=False,
                duration=duration,
                error=error_msg
            )
            log_stage_error(self.name, context.run_id, error_msg, duration, logger=logger)
            return False

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}: {self.name}>"


class ConditionalStage(PipelineStage):
    """
    A pipeline stage that only runs if a condition is met.

    Used for stages whose input may already be present, such as frame
    classification when the caller passes classified signals.
    """

    @abstractmethod
    def should_run(self, context: PipelineContext) -> bool:
        """
        Determine if this stage should run.

        Returns:
            True if the stage should execute, False to skip
        """
        pass

    def run(self, context: PipelineContext) -> bool:
        """Run the stage only if condition is met."""
        if not self.should_run(context):
            logger.debug(f"Skipping stage {self.name}: condition not met")
            context.record_stage(
                self.name,
                success=True,
                duration=0.0,
                summary="skipped (condition not met)"
            )
            return True

        return super().run(context)
