"""
Request Dispatcher

Routes operation names and resource URIs to their handlers. Every failure,
including an unexpected exception inside a handler, is turned into a
CommandResult error here, so one bad request never takes the server down.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..commands.base import CommandResult
from ..errors import GeoclueMcpError, InvalidParameter, UnknownOperation, UnknownResource

logger = logging.getLogger(__name__)

_NO_DEFAULT = object()

JSON_TYPES = ('string', 'integer', 'number', 'boolean', 'object')


@dataclass(frozen=True)
class Parameter:
    """One named, typed operation parameter."""
    name: str
    type: str
    description: str = ""
    default: Any = _NO_DEFAULT
    required: bool = False
    enum: Optional[Tuple[Any, ...]] = None

    def __post_init__(self):
        if self.type not in JSON_TYPES:
            raise ValueError(f"Unsupported parameter type: {self.type}")

    @property
    def has_default(self) -> bool:
        return self.default is not _NO_DEFAULT

    def schema(self) -> Dict[str, Any]:
        schema: Dict[str, Any] = {'type': self.type, 'description': self.description}
        if self.has_default:
            schema['default'] = self.default
        if self.enum:
            schema['enum'] = list(self.enum)
        return schema

    def coerce(self, value: Any) -> Any:
        """Convert a caller value to the declared type."""
        try:
            if self.type == 'string':
                if not isinstance(value, str):
                    raise TypeError
            elif self.type == 'integer':
                if isinstance(value, bool):
                    raise TypeError
                if isinstance(value, float) and not value.is_integer():
                    raise TypeError
                value = int(value)
            elif self.type == 'number':
                if isinstance(value, bool):
                    raise TypeError
                value = float(value)
            elif self.type == 'boolean':
                if isinstance(value, str) and value.lower() in ('true', 'false'):
                    value = value.lower() == 'true'
                elif not isinstance(value, bool):
                    raise TypeError
            elif self.type == 'object':
                if not isinstance(value, dict):
                    raise TypeError
        except (TypeError, ValueError):
            raise InvalidParameter(f"{self.name} must be of type {self.type}, got {value!r}")

        if self.enum and value not in self.enum:
            allowed = ", ".join(str(v) for v in self.enum)
            raise InvalidParameter(f"{self.name} must be one of: {allowed}")
        return value


Handler = Callable[..., CommandResult]


@dataclass(frozen=True)
class OperationDescriptor:
    """A registered operation. Immutable once built."""
    name: str
    description: str
    handler: Handler
    parameters: Tuple[Parameter, ...] = ()

    def input_schema(self) -> Dict[str, Any]:
        return {
            'type': 'object',
            'properties': {p.name: p.schema() for p in self.parameters},
            'required': [p.name for p in self.parameters if p.required],
        }

    def resolve_arguments(self, args: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Caller arguments merged over declared defaults, coerced and checked."""
        args = dict(args or {})
        known = {p.name for p in self.parameters}
        unknown = sorted(set(args) - known)
        if unknown:
            raise InvalidParameter(f"Unknown argument(s) for {self.name}: {', '.join(unknown)}")

        resolved: Dict[str, Any] = {}
        for param in self.parameters:
            if param.name in args and args[param.name] is not None:
                resolved[param.name] = param.coerce(args[param.name])
            elif param.required:
                raise InvalidParameter(f"Missing required argument: {param.name}")
            elif param.has_default:
                resolved[param.name] = param.default
        return resolved


@dataclass(frozen=True)
class ResourceDescriptor:
    """A registered read-only resource."""
    uri: str
    name: str
    description: str
    mime_type: str
    reader: Callable[[], str]


class Dispatcher:
    """Operation and resource catalog for one server instance."""

    def __init__(self, name: str, version: str):
        self.name = name
        self.version = version
        self._operations: Dict[str, OperationDescriptor] = {}
        self._resources: Dict[str, ResourceDescriptor] = {}

    # === Registration ===

    def register_operation(self, descriptor: OperationDescriptor):
        if descriptor.name in self._operations:
            raise ValueError(f"Operation already registered: {descriptor.name}")
        self._operations[descriptor.name] = descriptor

    def operation(self, name: str, description: str, *parameters: Parameter):
        """Decorator form of register_operation."""
        def decorator(handler: Handler) -> Handler:
            self.register_operation(OperationDescriptor(name, description, handler, tuple(parameters)))
            return handler
        return decorator

    def register_resource(self, descriptor: ResourceDescriptor):
        if descriptor.uri in self._resources:
            raise ValueError(f"Resource already registered: {descriptor.uri}")
        self._resources[descriptor.uri] = descriptor

    # === Catalogs ===

    def list_operations(self) -> List[OperationDescriptor]:
        return list(self._operations.values())

    def list_resources(self) -> List[ResourceDescriptor]:
        return list(self._resources.values())

    # === Requests ===

    def invoke(self, name: str, args: Optional[Dict[str, Any]] = None) -> CommandResult:
        """Run an operation; never raises."""
        try:
            descriptor = self._operations.get(name)
            if descriptor is None:
                raise UnknownOperation(name)
            arguments = descriptor.resolve_arguments(args)
            logger.info(f"Executing tool: {name}")
            result = descriptor.handler(**arguments)
        except GeoclueMcpError as e:
            logger.warning(f"Tool {name} failed ({e.kind}): {e.message}")
            return CommandResult.from_error(e)
        except Exception as e:
            logger.exception(f"Unexpected error in tool {name}")
            return CommandResult.fail(f"Tool execution failed: {e}", kind="internal_error")

        if not isinstance(result, CommandResult):
            logger.error(f"Tool {name} returned {type(result).__name__}, not a CommandResult")
            return CommandResult.fail(
                f"Tool execution failed: handler returned {type(result).__name__}",
                kind="internal_error",
            )
        if not result.success:
            logger.warning(f"Tool {name} returned an error: {result.error}")
        return result

    def read_resource(self, uri: str) -> CommandResult:
        """Read a resource; never raises. The body is in ``raw_output``."""
        try:
            descriptor = self._resources.get(uri)
            if descriptor is None:
                raise UnknownResource(uri)
            text = descriptor.reader()
        except GeoclueMcpError as e:
            logger.warning(f"Resource {uri} failed ({e.kind}): {e.message}")
            return CommandResult.fail(
                f"Failed to read resource {uri}: {e.message}",
                kind=e.kind,
                data={'uri': uri},
            )
        except Exception as e:
            logger.exception(f"Unexpected error reading resource {uri}")
            return CommandResult.fail(
                f"Failed to read resource {uri}: {e}",
                kind="internal_error",
                data={'uri': uri},
            )

        return CommandResult.ok(
            f"Read {uri}",
            data={'uri': uri, 'mime_type': descriptor.mime_type},
            raw=text,
        )
