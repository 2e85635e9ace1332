"""Models for the flaky test report."""

from typing import Self

from pydantic import Field

from flakiness_reporter.models.base import Model
from flakiness_reporter.walker import TestIdentity


class FlakyTest(Model):
    """A test that passed only after being retried."""

    module_name: str = Field(..., description="Name or path of the test module")
    suite_path: tuple[str, ...] = Field(
        default=(), description="Enclosing suite labels, outer to inner"
    )
    test_name: str = Field(..., description="Name of the test itself")
    retries: int = Field(..., gt=0, description="Retries before the test passed")

    @classmethod
    def from_identity(cls, identity: TestIdentity, retries: int) -> Self:
        """Build a record for the test identified by ``identity``."""
        return cls(
            module_name=identity.module_name,
            suite_path=identity.suite_path,
            test_name=identity.test_name,
            retries=retries,
        )


class Report(Model):
    """Flaky tests found during one run, in enumeration order.

    An empty report is meaningful: the run finished and nothing was flaky.
    """

    flaky_tests: tuple[FlakyTest, ...] = Field(
        default=(), description="Flaky tests found in this run"
    )

    def to_json(self) -> str:
        """Serialize the report as indented, human-readable JSON."""
        return self.model_dump_json(indent=2, by_alias=True)
