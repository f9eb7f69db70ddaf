"""Test factories for generating checklist data."""

from collections.abc import Sequence

from polyfactory.factories import DataclassFactory
from polyfactory.factories.pydantic_factory import ModelFactory

from onboarding_preflight.models.definition import Checklist, TestDefinition, TestKind
from onboarding_preflight.models.result import ProbeResult
from onboarding_preflight.models.selection import SelectedFile


class ProbeResultFactory(DataclassFactory[ProbeResult]):
    """Factory for ProbeResult."""

    __model__ = ProbeResult

    error = None
    measurements = None


class SelectedFileFactory(DataclassFactory[SelectedFile]):
    """Factory for SelectedFile."""

    __model__ = SelectedFile

    size = 1024
    path = None


class TestDefinitionFactory(ModelFactory[TestDefinition]):
    """Factory for TestDefinition."""

    __test__ = False

    verification_timeout = 0.1


def build_checklist(
    kinds: Sequence[TestKind], verification_timeout: float = 0.1
) -> Checklist:
    """Build a checklist running the given kinds in order."""
    return Checklist(
        tests=tuple(
            TestDefinitionFactory.build(
                id=index, kind=kind, verification_timeout=verification_timeout
            )
            for index, kind in enumerate(kinds, start=1)
        )
    )
