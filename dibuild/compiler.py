"""
Service compiler

Feeds service files through a reader into the container builder, compiles
it and dumps it in the configured format, reporting progress to the
configured BuildObserver.
"""

from typing import Any, Dict, List, Sequence

from dibuild.container import ContainerBuilder, ContainerException, get_dumper
from dibuild.exceptions import CompileError
from dibuild.logging import get_logger
from dibuild.options import ServiceCompilerOptions
from dibuild.reader import FileReader

logger = get_logger(__name__)


class ServiceCompiler:
    """Reads, compiles and dumps"""

    def __init__(self, options: ServiceCompilerOptions):
        self.options = options

    @property
    def observer(self):
        return self.options.observer

    def read(
        self,
        container: ContainerBuilder,
        files: Sequence[str],
        reader: FileReader,
    ) -> List[str]:
        """
        Read every service file into the container.

        Returns:
            The files that were read (skipped files excluded)

        Raises:
            ReadError: A file is malformed and errors are not ignored
        """
        files = list(files)
        self.observer.on_before_compile(files)

        processed: List[str] = []
        for file in files:
            if reader.read(container, file):
                processed.append(file)
                self.observer.on_compile(file)
            else:
                self.observer.on_skip(file, reader.skipped[-1].reason)
        return processed

    def compile(
        self,
        container: ContainerBuilder,
        files: Sequence[str],
        skipped: Sequence[str] = (),
    ) -> Dict[str, Any]:
        """
        Run the container compilation (passes, resolution, checks).

        Returns:
            Summary of the compiled container

        Raises:
            CompileError: The container failed to compile
        """
        try:
            container.compile()
        except ContainerException as e:
            raise CompileError(f"Container compilation failed: {e}", original_error=e)
        except Exception as e:
            raise CompileError(
                f"Container compilation failed: {type(e).__name__}: {e}", original_error=e
            )

        summary = {
            'files': len(files),
            'services': len(container.get_definitions()),
            'aliases': len(container.get_aliases()),
            'parameters': len(container.get_parameters()),
            'compiler_passes': len(container.get_compiler_passes()),
            'skipped': list(skipped),
        }
        logger.info(
            "Compiled %d service(s) from %d file(s)", summary['services'], summary['files']
        )
        self.observer.on_after_compile(list(files), summary)
        return summary

    def dump(self, container: ContainerBuilder) -> str:
        """Serialize the compiled container in the configured format."""
        try:
            return get_dumper(self.options.dump_format.value).dump(
                container, **self.options.dump_options
            )
        except (ContainerException, ValueError, TypeError) as e:
            raise CompileError(
                f"Cannot dump container as {self.options.dump_format.value}: {e}",
                original_error=e,
            )
