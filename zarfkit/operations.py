"""JSON patch operations and admission hook dispatch for the mutating webhook."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

log = logging.getLogger(__name__)

_ADD = "add"
_REMOVE = "remove"
_REPLACE = "replace"
_COPY = "copy"
_MOVE = "move"


@dataclass
class PatchOperation:
    """One operation of a JSON patch (RFC 6902)."""

    op: str
    path: str
    from_path: str = ""
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        """The JSON object form, leaving out an empty 'from' and a missing value."""
        data: dict[str, Any] = {"op": self.op, "path": self.path}
        if self.from_path:
            data["from"] = self.from_path
        if self.value is not None:
            data["value"] = self.value
        return data


def add_patch_operation(path: str, value: Any) -> PatchOperation:
    """An 'add' JSON patch operation."""
    return PatchOperation(op=_ADD, path=path, value=value)


def remove_patch_operation(path: str) -> PatchOperation:
    """A 'remove' JSON patch operation."""
    return PatchOperation(op=_REMOVE, path=path)


def replace_patch_operation(path: str, value: Any) -> PatchOperation:
    """A 'replace' JSON patch operation."""
    return PatchOperation(op=_REPLACE, path=path, value=value)


def copy_patch_operation(from_path: str, path: str) -> PatchOperation:
    """A 'copy' JSON patch operation."""
    return PatchOperation(op=_COPY, path=path, from_path=from_path)


def move_patch_operation(from_path: str, path: str) -> PatchOperation:
    """A 'move' JSON patch operation."""
    return PatchOperation(op=_MOVE, path=path, from_path=from_path)


class Operation(str, enum.Enum):
    """Admission request operations."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    CONNECT = "CONNECT"


@dataclass
class AdmissionRequest:
    """The parts of an admission request the hooks use."""

    uid: str = ""
    kind: dict[str, Any] = field(default_factory=dict)
    namespace: str = ""
    name: str = ""
    operation: str = ""
    object_raw: bytes = b""


@dataclass
class Result:
    """The outcome of an admission request."""

    allowed: bool = False
    msg: str = ""
    patch_ops: list[PatchOperation] = field(default_factory=list)


class InvalidOperationError(Exception):
    """Raised when a hook has no handler bound for the requested operation."""


def _invalid_op_message(operation: Any) -> str:
    value = operation.value if isinstance(operation, Operation) else operation
    return f"invalid operation: {value}"


AdmitFunc = Callable[[AdmissionRequest], Result]


@dataclass
class Hook:
    """Handlers for each operation of an admission webhook."""

    create: Optional[AdmitFunc] = None
    delete: Optional[AdmitFunc] = None
    update: Optional[AdmitFunc] = None
    connect: Optional[AdmitFunc] = None

    def execute(self, request: AdmissionRequest) -> Result:
        """Run the handler bound to the request's operation.

        An unknown operation gives a disallowed result; a known operation
        with no handler raises InvalidOperationError.
        """
        log.debug(
            "operations.execute - %r, %s/%s: %r",
            request.kind,
            request.namespace,
            request.name,
            request.operation,
        )
        try:
            operation = Operation(request.operation)
        except ValueError:
            return Result(msg=_invalid_op_message(request.operation))

        handlers = {
            Operation.CREATE: self.create,
            Operation.UPDATE: self.update,
            Operation.DELETE: self.delete,
            Operation.CONNECT: self.connect,
        }
        handler = handlers[operation]
        if handler is None:
            raise InvalidOperationError(_invalid_op_message(operation))
        return handler(request)