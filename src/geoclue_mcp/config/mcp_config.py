"""
MCP configuration document.

The document is a plain value: parsing, validation and merging are pure
functions that return new objects. Only ConfigStore touches the disk, and
ConfigManager is the single place that strings LOAD, VALIDATE, MERGE and
PERSIST together.

Document layout (JSON):

    {
      "mcpVersion": "2024-11-05",
      "servers": {
        "geoclue-metrics": {"command": "geoclue-mcp-metrics", "args": []}
      }
    }
"""

import copy
import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..errors import (
    ConfigLoadFailure,
    ConfigPersistFailure,
    ConfigValidationFailure,
    InvalidParameter,
    UnknownServer,
)

logger = logging.getLogger(__name__)

PROTOCOL_VERSION_KEY = "mcpVersion"
SERVERS_KEY = "servers"


# === Document model ===

@dataclass(frozen=True)
class ServerEntry:
    """
    One MCP server invocation.

    ``command`` is required by validation but may be missing here so that
    an incomplete document can still be parsed and reported on. Any field
    other than command/args is kept verbatim in ``extensions``.
    """
    command: Optional[str] = None
    args: Optional[List[Any]] = None
    extensions: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> 'ServerEntry':
        if not isinstance(data, dict):
            return cls()
        extensions = {k: copy.deepcopy(v) for k, v in data.items() if k not in ('command', 'args')}
        args = data.get('args')
        return cls(
            command=data.get('command'),
            args=list(args) if isinstance(args, list) else args,
            extensions=extensions,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.command is not None:
            data['command'] = self.command
        if self.args is not None:
            data['args'] = copy.deepcopy(self.args)
        data.update(copy.deepcopy(self.extensions))
        return data


@dataclass(frozen=True)
class McpConfigDocument:
    """Whole config file: protocol version, server entries, other top-level fields."""
    protocol_version: Optional[Any] = None
    servers: Dict[str, ServerEntry] = field(default_factory=dict)
    extensions: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'McpConfigDocument':
        if not isinstance(data, dict):
            raise ConfigLoadFailure("MCP configuration must be a JSON object")
        raw_servers = data.get(SERVERS_KEY)
        servers = {}
        if isinstance(raw_servers, dict):
            servers = {name: ServerEntry.from_dict(entry) for name, entry in raw_servers.items()}
        extensions = {
            k: copy.deepcopy(v) for k, v in data.items()
            if k not in (PROTOCOL_VERSION_KEY, SERVERS_KEY)
        }
        return cls(
            protocol_version=data.get(PROTOCOL_VERSION_KEY),
            servers=servers,
            extensions=extensions,
        )

    @classmethod
    def from_json(cls, text: str) -> 'McpConfigDocument':
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigLoadFailure(f"Invalid JSON in MCP config: {e}")
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.protocol_version is not None:
            data[PROTOCOL_VERSION_KEY] = self.protocol_version
        data[SERVERS_KEY] = {name: entry.to_dict() for name, entry in self.servers.items()}
        data.update(copy.deepcopy(self.extensions))
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2) + "\n"


# === Validation ===

@dataclass(frozen=True)
class ValidationFinding:
    """Outcome of one validation rule."""
    rule: str
    message: str
    passed: bool
    server: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "rule": self.rule,
            "message": self.message,
            "passed": self.passed,
            "server": self.server,
        }

    def to_line(self) -> str:
        return f"{'✅' if self.passed else '❌'} {self.message}"


@dataclass(frozen=True)
class ValidationReport:
    findings: List[ValidationFinding]

    @property
    def violations(self) -> List[ValidationFinding]:
        return [f for f in self.findings if not f.passed]

    @property
    def is_valid(self) -> bool:
        return not self.violations

    def to_dict(self) -> dict:
        return {
            "valid": self.is_valid,
            "findings": [f.to_dict() for f in self.findings],
        }

    def to_text(self, config_type: str = "mcp") -> str:
        body = "\n".join(f.to_line() for f in self.findings)
        return f"Configuration Validation ({config_type}):\n\n{body}"


def _present(value: Any) -> bool:
    return value is not None and str(value).strip() != ""


def validate_document(document: McpConfigDocument) -> ValidationReport:
    """
    Evaluate every rule; no rule stops the others.

    Rules: protocol version present, at least one server, every server
    has a command.
    """
    findings: List[ValidationFinding] = []

    if _present(document.protocol_version):
        findings.append(ValidationFinding('protocol_version', f"{PROTOCOL_VERSION_KEY} present", True))
    else:
        findings.append(ValidationFinding('protocol_version', f"Missing {PROTOCOL_VERSION_KEY} field", False))

    if document.servers:
        findings.append(ValidationFinding(
            'servers', f"{len(document.servers)} servers configured", True
        ))
    else:
        findings.append(ValidationFinding('servers', "No servers configured", False))

    for name, entry in document.servers.items():
        if isinstance(entry.command, str) and entry.command.strip():
            findings.append(ValidationFinding(
                'server_command', f"Server {name}: Command configured", True, server=name
            ))
        else:
            findings.append(ValidationFinding(
                'server_command', f"Server {name}: Missing command", False, server=name
            ))

    return ValidationReport(findings)


# === Merge ===

def merge_server_config(document: McpConfigDocument, server_name: str,
                        partial: Dict[str, Any]) -> McpConfigDocument:
    """
    Shallow field-wise merge of ``partial`` over one server entry.

    Returns a new document; ``document`` is not modified. Never creates
    entries.

    Raises:
        UnknownServer: server_name is not in the document
        InvalidParameter: partial is not a mapping
    """
    if not isinstance(partial, dict):
        raise InvalidParameter("config must be an object")
    if server_name not in document.servers:
        raise UnknownServer(server_name)

    merged = document.servers[server_name].to_dict()
    merged.update(copy.deepcopy(partial))

    servers = dict(document.servers)
    servers[server_name] = ServerEntry.from_dict(merged)
    return McpConfigDocument(
        protocol_version=document.protocol_version,
        servers=servers,
        extensions=copy.deepcopy(document.extensions),
    )


# === Storage ===

class ConfigStore:
    """JSON file holding one McpConfigDocument."""

    def __init__(self, path):
        self.path = Path(path).expanduser()

    def read_text(self) -> str:
        try:
            return self.path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigLoadFailure(f"Failed to read {self.path}: {e}")

    def load(self) -> McpConfigDocument:
        return McpConfigDocument.from_json(self.read_text())

    def save(self, document: McpConfigDocument):
        """
        Atomically replace the file with ``document``.

        Raises:
            ConfigPersistFailure: directory missing, permission denied, ...
        """
        content = document.to_json()
        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
            )
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(content)
            if self.path.exists():
                os.chmod(tmp_name, self.path.stat().st_mode & 0o777)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            raise ConfigPersistFailure(f"Failed to write {self.path}: {e}")
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
        logger.info(f"Saved MCP configuration to {self.path}")


class ConfigManager:
    """
    Load, validate, merge and persist the MCP config document.

    ``document`` is always the last version known to match storage: the
    last successful load or persist.
    """

    def __init__(self, store: ConfigStore):
        self.store = store
        self._document: Optional[McpConfigDocument] = None

    @property
    def document(self) -> Optional[McpConfigDocument]:
        return self._document

    def load(self) -> McpConfigDocument:
        self._document = self.store.load()
        return self._document

    def validate(self) -> ValidationReport:
        return validate_document(self.load())

    def update_server(self, server_name: str, partial: Dict[str, Any]) -> McpConfigDocument:
        """
        Merge ``partial`` into one server entry and persist the document.

        Raises:
            ConfigLoadFailure: current document cannot be read
            UnknownServer: server_name is absent
            ConfigValidationFailure: merged document breaks a rule
            ConfigPersistFailure: merged document could not be written
        """
        current = self.load()
        candidate = merge_server_config(current, server_name, partial)

        report = validate_document(candidate)
        if not report.is_valid:
            logger.warning(f"Rejected update for {server_name}: {len(report.violations)} violation(s)")
            raise ConfigValidationFailure(report.violations)

        self.store.save(candidate)
        self._document = candidate
        logger.info(f"Updated MCP configuration for server {server_name}")
        return candidate
