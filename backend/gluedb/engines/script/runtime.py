"""
ScriptRuntime: run a script in the sandbox with database access.

The running script's globals are its variable scope: ``:name`` placeholders
in database calls are bound from them. fork() creates a nested run that
shares the script name, environment, registry and validation results, but
gets its own copy of the variables.
"""

import logging
import signal
import threading
from typing import Any

from gluedb.core.config import Settings, settings as default_settings
from gluedb.core.pool import DatasourceRegistry, get_registry
from gluedb.engines.sql import QueryExecutor
from gluedb.engines.verify.validation import ValidationResult, Validator, cell, row_size

from .modules import make_database_module, make_env_module, make_log_module
from .sandbox import build_restricted_globals, compile_script

_log = logging.getLogger(__name__)


class ScriptTimeoutError(TimeoutError):
    """Raised when script execution exceeds SCRIPT_EXEC_TIMEOUT."""


def _exec_with_timeout(code: object, g: dict[str, Any], timeout_sec: int) -> None:
    """Run exec(code, g) under signal.SIGALRM (Unix, main thread only)."""

    def _handler(signum: int, frame: Any) -> None:
        raise ScriptTimeoutError(f"Script execution timed out after {timeout_sec}s")

    old = signal.signal(signal.SIGALRM, _handler)
    try:
        signal.alarm(timeout_sec)
        try:
            exec(code, g)
        finally:
            signal.alarm(0)
    finally:
        signal.signal(signal.SIGALRM, old)


class ScriptRuntime:
    """One script run: source, name, environment, variables and recorded validations."""

    def __init__(
        self,
        script: str,
        *,
        name: str = "<script>",
        environment: str | None = None,
        registry: DatasourceRegistry | None = None,
        variables: dict[str, Any] | None = None,
        settings: Settings | None = None,
        logger: logging.Logger | None = None,
        validations: list[ValidationResult] | None = None,
        parent: "ScriptRuntime | None" = None,
    ) -> None:
        self.script = script
        self.name = name
        self.settings = settings or default_settings
        self.environment = environment or self.settings.ENVIRONMENT
        self.registry = registry or get_registry()
        self.parent = parent
        self.validations: list[ValidationResult] = validations if validations is not None else []
        self.executor = QueryExecutor(
            self.registry,
            self.environment,
            strict_binding=self.settings.STRICT_BINDING,
        )
        self.logger = logger or _log
        # Replaced by the live globals dict once run() starts
        self.scope: dict[str, Any] = dict(variables or {})
        self._reserved: frozenset[str] = frozenset()

    def variables(self) -> dict[str, Any]:
        """User variables of the scope (context objects and guards excluded)."""
        return {
            k: v
            for k, v in self.scope.items()
            if k not in self._reserved and not k.startswith("_")
        }

    def fork(self, script: str, *, variables: dict[str, Any] | None = None) -> "ScriptRuntime":
        """Nested run of *script* with a copy of this run's variables plus *variables*."""
        seeded = self.variables()
        seeded.update(variables or {})
        return ScriptRuntime(
            script,
            name=self.name,
            environment=self.environment,
            registry=self.registry,
            variables=seeded,
            settings=self.settings,
            logger=self.logger,
            validations=self.validations,
            parent=self,
        )

    def to_dict(self) -> dict[str, Any]:
        """Context injected into the script globals."""
        ctx: dict[str, Any] = {
            "database": make_database_module(self),
            "log": make_log_module(logger_instance=self.logger, extra={"script": self.name}),
            "env": make_env_module(self.environment, self.registry.config_lookup, self.settings.ENV_WHITELIST),
            "cell": cell,
            "row_size": row_size,
            "result": None,
        }
        ctx.update(Validator(self.validations).functions())
        return ctx

    def run(self) -> Any:
        """Compile and execute the script; returns its ``result`` variable."""
        code = compile_script(self.script, self.name)
        g = build_restricted_globals(self.to_dict())
        self._reserved = frozenset(g)
        g.update(self.scope)
        self.scope = g

        timeout = self.settings.SCRIPT_EXEC_TIMEOUT
        use_signal = (
            self.parent is None
            and timeout is not None
            and timeout > 0
            and hasattr(signal, "SIGALRM")
            and threading.current_thread() is threading.main_thread()
        )
        if use_signal:
            _exec_with_timeout(code, g, timeout)
        else:
            exec(code, g)
        return g.get("result")
