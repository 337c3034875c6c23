"""
Container framework exceptions
"""


class ContainerException(Exception):
    """Base exception of the container framework"""

    def __init__(self, message: str, service_id: str = None):
        super().__init__(message)
        self.service_id = service_id
        self.message = message

    def __str__(self):
        if self.service_id:
            return f"[{self.service_id}] {self.message}"
        return self.message


class ServiceNotFoundException(ContainerException):
    """A service id is neither defined nor aliased"""

    def __init__(self, service_id: str, source_id: str = None):
        self.source_id = source_id
        if source_id:
            message = f"Service '{source_id}' depends on non-existent service '{service_id}'"
        else:
            message = f"Service '{service_id}' is not defined in the container"
        super().__init__(message, service_id)


class CircularReferenceException(ContainerException):
    """A service depends on itself through its constructor graph"""

    def __init__(self, chain: list):
        self.chain = chain
        super().__init__(
            f"Circular reference detected: {' -> '.join(chain)}",
            chain[0] if chain else None
        )


class ParameterNotFoundException(ContainerException):
    """A %placeholder% names an undefined parameter"""

    def __init__(self, name: str, source_id: str = None):
        self.name = name
        self.source_id = source_id
        message = f"Parameter '{name}' is not defined"
        if source_id:
            message += f" (referenced by '{source_id}')"
        super().__init__(message, source_id)


class ParameterCircularReferenceException(ContainerException):
    """Parameters reference each other in a loop"""

    def __init__(self, chain: list):
        self.chain = chain
        super().__init__(f"Circular parameter reference: {' -> '.join(chain)}")


class FrozenContainerException(ContainerException):
    """The builder was modified after compile()"""

    def __init__(self, operation: str):
        super().__init__(f"Cannot {operation} on a compiled container")


class InvalidDefinitionException(ContainerException):
    """A service definition is structurally invalid"""


class LoaderException(ContainerException):
    """A definition file could not be parsed"""

    def __init__(self, message: str, path: str = None):
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


class DumperException(ContainerException):
    """The compiled container could not be serialized"""
