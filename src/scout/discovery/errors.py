"""Discovery exceptions.

Recoverable-local failures never raise past the component that absorbs
them; everything here is either fatal to a round or a caller error.
"""

from scout.discovery.models import JobFailure


class DiscoveryError(RuntimeError):
    """Base class for discovery failures."""


class StructuredOutputError(DiscoveryError):
    """An analysis call returned nothing that parses and validates."""


class AllAnalysesFailedError(DiscoveryError):
    """Every planned analysis job failed after exhausting its attempts."""

    def __init__(self, failures: list[JobFailure]) -> None:
        self.failures = failures
        detail = "; ".join(
            f"{f.job_id} ({f.attempts} attempt(s)): {f.error}" for f in failures
        )
        super().__init__(f"All {len(failures)} discovery analyses failed. {detail}")


class SynthesisError(DiscoveryError):
    """The merge call produced no valid interview result."""


class SessionNotFoundError(DiscoveryError):
    """No stored session matches the requested id."""


class SessionInactiveError(DiscoveryError):
    """The session exists but can no longer be continued."""
