"""
Service and compiler pass readers

Readers hand one file at a time to the container builder. A file that
cannot be read raises ReadError, unless the reader was configured with
ignore_errors, in which case the file is recorded in `skipped` and the
build continues.
"""

import importlib.util
import inspect
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from hashlib import sha1
from typing import List

from dibuild.container import ContainerBuilder, CompilerPass, CallablePass, ContainerException, load_file
from dibuild.exceptions import ReadError
from dibuild.logging import get_logger
from dibuild.options import ReaderOptions, ServiceReaderOptions, CompilerPassReaderOptions

logger = get_logger(__name__)


@dataclass(frozen=True)
class SkippedFile:
    """A file ignored because of ignore_errors"""
    path: str
    reason: str
    kind: str = 'service'


class FileReader(ABC):
    """Reads one file into the builder, applying the ignore/abort policy"""

    kind = 'file'

    def __init__(self, options: ReaderOptions):
        self.options = options
        self.skipped: List[SkippedFile] = []

    def read(self, container: ContainerBuilder, file: str) -> bool:
        """
        Read `file` into `container`.

        Returns:
            True when the file was read, False when it was skipped

        Raises:
            ReadError: The file is malformed and errors are not ignored
        """
        try:
            self._read(container, file)
        except ReadError as e:
            return self._fail(file, e)
        except (ContainerException, OSError, ValueError, SyntaxError, ImportError) as e:
            return self._fail(file, ReadError(
                f"Cannot read {self.kind} file '{file}': {e}",
                file=file,
                original_error=e,
            ))
        logger.debug("Read %s file %s", self.kind, file)
        return True

    def _fail(self, file: str, error: ReadError) -> bool:
        if not self.options.ignore_errors:
            raise error
        logger.warning("Skipping %s file %s: %s", self.kind, file, error.message)
        self.skipped.append(SkippedFile(file, error.message, self.kind))
        return False

    @abstractmethod
    def _read(self, container: ContainerBuilder, file: str) -> None:
        pass


class ServiceFileReader(FileReader):
    """Loads YAML, XML and JSON service definition files"""

    kind = 'service'

    def __init__(self, options: ServiceReaderOptions):
        super().__init__(options)

    def _read(self, container: ContainerBuilder, file: str) -> None:
        load_file(container, file)


class CompilerPassReader(FileReader):
    """
    Imports compiler pass files.

    Every CompilerPass subclass defined in the file is instantiated and
    registered with its `priority`. A module level process(container)
    function is registered as a CallablePass. A file defining neither is
    an error.
    """

    kind = 'compiler pass'

    def __init__(self, options: CompilerPassReaderOptions):
        super().__init__(options)

    def _read(self, container: ContainerBuilder, file: str) -> None:
        module = self._import(file)

        passes = [
            obj for _, obj in inspect.getmembers(module, inspect.isclass)
            if issubclass(obj, CompilerPass)
            and not inspect.isabstract(obj)
            and obj.__module__ == module.__name__
        ]
        process = getattr(module, 'process', None)

        if not passes and not inspect.isfunction(process):
            raise ReadError(
                f"Compiler pass file '{file}' defines no CompilerPass subclass "
                f"and no process(container) function",
                file=file,
            )

        for pass_class in passes:
            try:
                instance = pass_class()
            except Exception as e:
                raise ReadError(
                    f"Cannot instantiate compiler pass {pass_class.__name__} from '{file}': {type(e).__name__}: {e}",
                    file=file,
                    original_error=e,
                )
            container.add_compiler_pass(instance, getattr(instance, 'priority', 0))
        if inspect.isfunction(process):
            container.add_compiler_pass(
                CallablePass(process, name=f"{file}:process"),
                getattr(module, 'PRIORITY', 0),
            )

    @staticmethod
    def _import(file: str):
        module_name = f"dibuild_cpass_{sha1(file.encode('utf-8')).hexdigest()[:12]}"
        spec = importlib.util.spec_from_file_location(module_name, file)
        if spec is None or spec.loader is None:
            raise ReadError(f"Cannot import compiler pass file '{file}'", file=file)

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            sys.modules.pop(module_name, None)
            raise ReadError(
                f"Cannot import compiler pass file '{file}': {type(e).__name__}: {e}",
                file=file,
                original_error=e,
            )
        return module
