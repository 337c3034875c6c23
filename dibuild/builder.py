"""
Build orchestration

Builder runs the pipeline in a fixed order:

    find compiler passes -> read compiler passes -> find service files
    -> read service files -> compile -> write

Any error aborts the whole build. The error that surfaces is always a
BuildException whose context names the failing step and what was being
scanned.
"""

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from dibuild.compiler import ServiceCompiler
from dibuild.container import ContainerBuilder, ContainerException
from dibuild.exceptions import BuildException, CompileError, wrap_exception
from dibuild.finder import CompilerPassFinder, ServiceFileFinder
from dibuild.logging import get_logger
from dibuild.options import (
    CompilerPassFinderOptions,
    CompilerPassReaderOptions,
    ContainerWriterOptions,
    ServiceCompilerOptions,
    ServiceFileFinderOptions,
    ServiceReaderOptions,
)
from dibuild.reader import CompilerPassReader, ServiceFileReader, SkippedFile
from dibuild.writer import ContainerFileWriter

logger = get_logger(__name__)


class BuildStep(str, Enum):
    FIND_COMPILER_PASSES = "find_compiler_passes"
    READ_COMPILER_PASSES = "read_compiler_passes"
    FIND_SERVICE_FILES = "find_service_files"
    READ_SERVICE_FILES = "read_service_files"
    COMPILE = "compile"
    WRITE = "write"


@dataclass
class BuildResult:
    """Outcome of a completed build"""
    filename: str
    written: bool
    files: List[str] = field(default_factory=list)
    compiler_pass_files: List[str] = field(default_factory=list)
    skipped: List[SkippedFile] = field(default_factory=list)
    services: int = 0
    parameters: int = 0
    elapsed: float = 0.0


class Builder:
    """Sequences finding, reading, compiling and writing"""

    def __init__(
        self,
        finder: ServiceFileFinder,
        compiler: ServiceCompiler,
        writer: ContainerFileWriter,
        reader: ServiceFileReader,
        compiler_pass_finder: CompilerPassFinder,
        compiler_pass_reader: CompilerPassReader,
        container: Optional[ContainerBuilder] = None,
    ):
        self.finder = finder
        self.compiler = compiler
        self.writer = writer
        self.reader = reader
        self.compiler_pass_finder = compiler_pass_finder
        self.compiler_pass_reader = compiler_pass_reader
        self._container = container
        self.container: Optional[ContainerBuilder] = None

    @classmethod
    def create(
        cls,
        finder_options: ServiceFileFinderOptions,
        reader_options: ServiceReaderOptions,
        compiler_options: ServiceCompilerOptions,
        writer_options: ContainerWriterOptions,
        compiler_pass_finder_options: CompilerPassFinderOptions,
        compiler_pass_reader_options: CompilerPassReaderOptions,
        cwd: Optional[str] = None,
    ) -> 'Builder':
        """Wire the default components from options objects."""
        return cls(
            ServiceFileFinder(finder_options, cwd),
            ServiceCompiler(compiler_options),
            ContainerFileWriter(writer_options),
            ServiceFileReader(reader_options),
            CompilerPassFinder(compiler_pass_finder_options, cwd),
            CompilerPassReader(compiler_pass_reader_options),
        )

    def build(self) -> BuildResult:
        """
        Run the full pipeline once.

        Raises:
            BuildException: Any step failed (FinderError, ReadError,
                CompileError, WriteError)
        """
        start = time.perf_counter()
        container = self._container if self._container is not None else ContainerBuilder()
        self.container = container
        self.reader.skipped = []
        self.compiler_pass_reader.skipped = []

        with self._step(BuildStep.FIND_COMPILER_PASSES, self.compiler_pass_finder):
            pass_files = self.compiler_pass_finder.find()

        with self._step(BuildStep.READ_COMPILER_PASSES, self.compiler_pass_finder):
            for file in pass_files:
                self.compiler_pass_reader.read(container, file)

        with self._step(BuildStep.FIND_SERVICE_FILES, self.finder):
            files = self.finder.find()

        with self._step(BuildStep.READ_SERVICE_FILES, self.finder):
            processed = self.compiler.read(container, files, self.reader)

        with self._step(BuildStep.COMPILE, self.finder):
            summary = self.compiler.compile(
                container, processed, [skipped.path for skipped in self.reader.skipped]
            )

        with self._step(BuildStep.WRITE, self.finder):
            written = self.writer.write(self.compiler.dump(container))

        result = BuildResult(
            filename=self.writer.filename,
            written=written,
            files=files,
            compiler_pass_files=pass_files,
            skipped=self.compiler_pass_reader.skipped + self.reader.skipped,
            services=summary['services'],
            parameters=summary['parameters'],
            elapsed=time.perf_counter() - start,
        )
        logger.info(
            "Build completed in %.2fs: %d service(s), %d skipped file(s)",
            result.elapsed, result.services, len(result.skipped)
        )
        return result

    @contextmanager
    def _step(self, step: BuildStep, finder):
        logger.debug("Build step: %s", step.value)
        try:
            yield
        except BuildException as e:
            raise self._annotate(e, step, finder)
        except ContainerException as e:
            raise self._annotate(wrap_exception(e, CompileError), step, finder) from e

    @staticmethod
    def _annotate(error: BuildException, step: BuildStep, finder) -> BuildException:
        error.with_context(
            step=step.value,
            directories=list(finder.options.directories),
            files=list(finder.options.files),
        )
        logger.debug("Build failed at %s: %s", step.value, error, extra={'step': step.value})
        return error
