"""
Node.js script sandbox.

Javascript blocks run in a separate ``node`` process, inside a ``vm``
context that only sees an allow-listed set of bindings:

- ``module`` / ``exports`` scoped to the script
- ``require`` limited to the configured module names
- ``console`` redirected to stderr, so stdout only carries the result
- ``fetch``, timers, ``Buffer``, ``URL`` and ``URLSearchParams``

The harness reads the source from stdin, awaits the exported
``handler()`` and prints ``{"ok": true, "data": ...}`` or
``{"ok": false, "error": "..."}`` as a single JSON document.
"""

import asyncio
import json
import os
from typing import Any, Optional, Sequence

import structlog

from actionforce.core.domain.errors import ScriptExecutionError

ALLOWED_MODULES_ENV = "ACTIONFORCE_ALLOWED_MODULES"

HARNESS = r"""
const vm = require('vm');
const chunks = [];
process.stdin.on('data', (chunk) => chunks.push(chunk));
process.stdin.on('end', async () => {
  const allowed = new Set(JSON.parse(process.env.ACTIONFORCE_ALLOWED_MODULES || '[]'));
  const log = (...args) => console.error(...args);
  const sandbox = {
    module: { exports: {} },
    require: (id) => {
      if (!allowed.has(id)) throw new Error(`Module not allowed: ${id}`);
      return require(id);
    },
    console: { log, info: log, warn: log, error: log, debug: log },
    fetch: globalThis.fetch,
    setTimeout, clearTimeout, setInterval, clearInterval,
    Buffer, URL, URLSearchParams,
  };
  sandbox.exports = sandbox.module.exports;
  let out;
  try {
    vm.createContext(sandbox);
    new vm.Script(Buffer.concat(chunks).toString('utf8')).runInContext(sandbox);
    const handler = sandbox.module.exports && sandbox.module.exports.handler;
    if (typeof handler !== 'function') throw new Error('handler is not a function');
    const data = await handler();
    out = { ok: true, data: data === undefined ? null : data };
  } catch (err) {
    out = { ok: false, error: String((err && err.message) || err) };
  }
  process.stdout.write(JSON.stringify(out), () => process.exit(0));
});
"""


class NodeScriptRunner:
    """Implements ScriptRunnerProtocol with a Node.js subprocess per script."""

    def __init__(
        self,
        node_binary: str = "node",
        allowed_modules: Sequence[str] = (),
        env: Optional[dict[str, str]] = None,
    ):
        self.node_binary = node_binary
        self.allowed_modules = list(allowed_modules)
        self.env = env
        self.logger = structlog.get_logger().bind(component="node_runner")

    def _build_env(self) -> dict[str, str]:
        # Only PATH is inherited; the script never sees the host environment
        env = {"PATH": os.environ.get("PATH", "")}
        env.update(self.env or {})
        env[ALLOWED_MODULES_ENV] = json.dumps(self.allowed_modules)
        return env

    async def run(self, source: str) -> Any:
        """
        Execute source and return what its handler resolved to.

        Raises:
            ScriptExecutionError: If node cannot start, the script throws,
                or the harness output cannot be decoded
        """
        try:
            process = await asyncio.create_subprocess_exec(
                self.node_binary,
                "-e",
                HARNESS,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._build_env(),
            )
        except OSError as e:
            raise ScriptExecutionError(f"Unable to start {self.node_binary}: {e}") from e

        stdout, stderr = await process.communicate(source.encode("utf-8"))
        stderr_text = stderr.decode("utf-8", errors="replace") if stderr else ""
        if stderr_text:
            self.logger.debug("script.console", output=stderr_text[-2000:])

        try:
            outcome = json.loads(stdout.decode("utf-8")) if stdout else None
        except ValueError:
            outcome = None

        if not isinstance(outcome, dict):
            raise ScriptExecutionError(
                stderr_text.strip() or f"Script exited with code {process.returncode}"
            )
        if not outcome.get("ok"):
            self.logger.warning("script.failed", error=outcome.get("error"))
            raise ScriptExecutionError(outcome.get("error") or "Script failed")

        return outcome.get("data")
