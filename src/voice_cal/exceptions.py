"""Local (non-remote) exceptions for the voice-cal workflow.

Remote-call failures live in :mod:`voice_cal.backend.exceptions`; the
exceptions here never originate from the network.
"""

from __future__ import annotations


class ValidationGap(ValueError):
    """Raised when a required draft field is missing at the point of use.

    The resolution controller checks for these gaps itself and answers
    them with a spoken prompt, so in normal operation this only fires
    when a backend client is called directly with an incomplete draft.
    No network call is made when it is raised.

    Attributes:
        missing: Names of the fields that were missing or invalid.
    """

    def __init__(self, message: str, missing: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.missing = missing


class WorkflowBusyError(RuntimeError):
    """Raised when a controller operation starts while another is running.

    Only one workflow run may be in flight per controller; the reschedule
    loop in particular must never overlap with itself.
    """
