"""Unit processor boundary and the generation context handed to it.

The unit processor parses and annotates one translation unit. It is a
pluggable collaborator: the dispatcher only relies on the contract below.

    process(job, context) -> bool

On success every shared artifact has already been written through
``context.output``. On failure nothing is guaranteed; the dispatcher logs
the failure and moves on.
"""

import importlib
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from codebrowser.utils.constants import DEFAULT_DATA_PATH

from .dedup import ProcessedSet
from .exceptions import ConfigurationError
from .output import OutputAggregator
from .projects import ProjectRegistry

if TYPE_CHECKING:
    from .jobs import Job

DEFAULT_PROCESSOR = "codebrowser.generator.libclang_processor:LibclangProcessor"


@dataclass
class GenerationContext:
    """Everything a worker may touch, created once per run.

    Leaving the ``with`` block closes every output stream.
    """

    registry: ProjectRegistry
    output: OutputAggregator
    processed: ProcessedSet = field(default_factory=ProcessedSet)
    data_path: str = DEFAULT_DATA_PATH

    @classmethod
    def create(
        cls,
        output_root: str,
        data_path: str = DEFAULT_DATA_PATH,
        registry: ProjectRegistry | None = None,
    ) -> "GenerationContext":
        """Open the output layout. A prepared ``registry`` must use the same root."""
        return cls(
            registry=registry if registry is not None else ProjectRegistry(output_root),
            output=OutputAggregator(output_root),
            data_path=data_path,
        )

    @property
    def output_root(self) -> str:
        return self.registry.output_root

    def close(self) -> None:
        self.output.close()

    def __enter__(self) -> "GenerationContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class UnitProcessor(ABC):
    """Parses and annotates one translation unit."""

    @abstractmethod
    def process(self, job: "Job", context: GenerationContext) -> bool:
        """Process ``job``. Returns True on success."""


def load_processor(spec: str | None = None) -> UnitProcessor:
    """Instantiate a processor from ``module:attribute``.

    The attribute may be a UnitProcessor subclass or a factory returning one.
    """
    spec = spec or DEFAULT_PROCESSOR
    module_name, sep, attribute = spec.partition(":")
    if not sep or not module_name or not attribute:
        raise ConfigurationError(f"Processor must be given as 'module:attribute', got '{spec}'")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import processor module '{module_name}': {e}") from e

    factory = getattr(module, attribute, None)
    if factory is None:
        raise ConfigurationError(f"Module '{module_name}' has no attribute '{attribute}'")

    processor = factory()
    if not isinstance(processor, UnitProcessor):
        raise ConfigurationError(f"'{spec}' did not produce a UnitProcessor")
    return processor
