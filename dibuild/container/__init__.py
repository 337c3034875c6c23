"""
Embedded dependency injection container framework

The build pipeline talks to it through four operations only:
ContainerBuilder.add_compiler_pass, ContainerBuilder.set_definition
(directly or through the file loaders), ContainerBuilder.compile and
get_dumper(format).dump.
"""

from .builder import ContainerBuilder
from .definition import Definition, Reference, InvalidBehavior
from .dumper import Dumper, DUMPERS, get_dumper
from .loader import load_file, get_loader
from .passes import CompilerPass, CallablePass
from .runtime import Container
from .exceptions import (
    ContainerException,
    ServiceNotFoundException,
    CircularReferenceException,
    ParameterNotFoundException,
    ParameterCircularReferenceException,
    FrozenContainerException,
    InvalidDefinitionException,
    LoaderException,
    DumperException,
)

__all__ = [
    'ContainerBuilder',
    'Definition',
    'Reference',
    'InvalidBehavior',
    'Dumper',
    'DUMPERS',
    'get_dumper',
    'load_file',
    'get_loader',
    'CompilerPass',
    'CallablePass',
    'Container',
    'ContainerException',
    'ServiceNotFoundException',
    'CircularReferenceException',
    'ParameterNotFoundException',
    'ParameterCircularReferenceException',
    'FrozenContainerException',
    'InvalidDefinitionException',
    'LoaderException',
    'DumperException',
]
