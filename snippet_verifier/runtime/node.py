"""JavaScript runtime backed by a long-lived ``node`` subprocess.

The subprocess runs a small harness that keeps one ``vm`` context per
isolation group and answers JSON requests, one per line, over stdin/stdout.
"""

from __future__ import annotations

import itertools
import json
import logging
import queue
import subprocess
import threading
from typing import IO, Any, Dict

from ..errors import InternalError, RuntimeUnavailableError
from .base import ContextHandle, EvaluationRuntime, RawOutcome

logger = logging.getLogger("snippet_verifier")

NODE_HARNESS = r"""
'use strict';
const vm = require('vm');
const util = require('util');
const readline = require('readline');

const contexts = new Map();
let active = null;

function describe(err) {
  if (err !== null && typeof err === 'object' && typeof err.name === 'string' && 'message' in err) {
    return err.message ? `${err.name}: ${err.message}` : err.name;
  }
  return `Uncaught ${util.inspect(err)}`;
}

function format(args) {
  return util.formatWithOptions({ breakLength: Infinity, compact: true }, ...args);
}

function clearTimers(entry) {
  for (const { timer, repeat } of entry.timers.values()) {
    (repeat ? clearInterval : clearTimeout)(timer);
  }
  entry.timers.clear();
}

function createEntry(id) {
  const entry = { id, run: null, timers: new Map(), nextTimer: 1 };
  const fail = (err) => {
    if (entry.run !== null && entry.run.error === null) entry.run.error = describe(err);
  };
  const emit = (...args) => {
    if (entry.run === null || entry.run.error !== null) return;
    for (const line of format(args).split('\n')) entry.run.lines.push(line);
  };
  const schedule = (fn, delay, args, repeat) => {
    if (typeof fn !== 'function') throw new TypeError('The "callback" argument must be of type function');
    const token = entry.nextTimer++;
    const callback = () => {
      if (!repeat) entry.timers.delete(token);
      if (entry.run === null || entry.run.error !== null) return;
      try { fn(...args); } catch (err) { fail(err); }
    };
    const timer = repeat ? setInterval(callback, delay) : setTimeout(callback, delay);
    entry.timers.set(token, { timer, repeat });
    return token;
  };
  const clear = (token) => {
    const scheduled = entry.timers.get(token);
    if (scheduled === undefined) return;
    (scheduled.repeat ? clearInterval : clearTimeout)(scheduled.timer);
    entry.timers.delete(token);
  };
  const sandbox = {
    console: { log: emit, info: emit, warn: emit, error: emit, debug: emit },
    setTimeout: (fn, delay, ...args) => schedule(fn, delay, args, false),
    setInterval: (fn, delay, ...args) => schedule(fn, delay, args, true),
    clearTimeout: clear,
    clearInterval: clear,
    queueMicrotask: (fn) => queueMicrotask(() => { try { fn(); } catch (err) { fail(err); } }),
  };
  entry.fail = fail;
  entry.context = vm.createContext(sandbox, { name: id });
  return entry;
}

function settle(entry, deadline) {
  return new Promise((resolve) => {
    const check = () => {
      if (entry.run.error !== null || entry.timers.size === 0) return resolve(true);
      if (Date.now() >= deadline) return resolve(false);
      setTimeout(check, 1);
    };
    setImmediate(check);
  });
}

async function evaluate(entry, source, timeoutMs) {
  const run = { lines: [], error: null };
  entry.run = run;
  active = entry;
  const deadline = Date.now() + timeoutMs;
  let timedOut = false;
  try {
    vm.runInContext(source, entry.context, { timeout: timeoutMs, filename: `${entry.id}.js` });
  } catch (err) {
    if (err !== null && typeof err === 'object' && err.code === 'ERR_SCRIPT_EXECUTION_TIMEOUT') timedOut = true;
    else entry.fail(err);
  }
  if (!timedOut) timedOut = !(await settle(entry, deadline));
  clearTimers(entry);
  entry.run = null;
  active = null;
  return { lines: run.lines, error: run.error, timed_out: timedOut };
}

function reply(message) {
  process.stdout.write(JSON.stringify(message) + '\n');
}

async function handle(line) {
  const request = JSON.parse(line);
  const { op, id } = request;
  if (op === 'create') {
    contexts.set(id, createEntry(id));
    return reply({ ok: true });
  }
  const entry = contexts.get(id);
  if (entry === undefined) return reply({ ok: false, error: `unknown context ${id}` });
  if (op === 'discard') {
    clearTimers(entry);
    contexts.delete(id);
    return reply({ ok: true });
  }
  if (op === 'eval') {
    const result = await evaluate(entry, String(request.source), Math.max(1, Math.trunc(request.timeout_ms)));
    if (result.timed_out) contexts.delete(id);
    return reply({ ok: true, ...result });
  }
  return reply({ ok: false, error: `unknown op ${op}` });
}

process.on('unhandledRejection', (reason) => { if (active !== null) active.fail(reason); });
process.on('uncaughtException', (err) => { if (active !== null) active.fail(err); });

const input = readline.createInterface({ input: process.stdin });
let pending = Promise.resolve();
input.on('line', (line) => {
  pending = pending.then(() => handle(line)).catch((err) => reply({ ok: false, error: describe(err) }));
});
input.on('close', () => { pending.then(() => process.exit(0)); });
"""

_EOF = object()


class NodeRuntime(EvaluationRuntime):
    """Evaluate JavaScript snippets in per-group ``vm`` contexts of one node process."""

    name = "node"
    languages = frozenset({"javascript", "js", "node"})

    def __init__(self, node_binary: str = "node", *, grace_ms: int = 1000) -> None:
        self.node_binary = node_binary
        self.grace_ms = grace_ms
        self._process: subprocess.Popen[str] | None = None
        self._responses: queue.Queue[Any] | None = None
        self._generation = 0
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def create_context(self, namespace: str) -> ContextHandle:
        with self._lock:
            self._ensure_process()
            handle = ContextHandle(
                context_id=f"ctx-{next(self._ids)}",
                namespace=namespace,
                generation=self._generation,
            )
            response = self._request({"op": "create", "id": handle.context_id}, self.grace_ms)
        if response is None:
            raise RuntimeUnavailableError("node harness did not acknowledge a new context")
        self._check(response)
        logger.debug("Created node context %s for %s", handle.context_id, namespace)
        return handle

    def evaluate(self, handle: ContextHandle, source: str, timeout_ms: int) -> RawOutcome:
        with self._lock:
            if not self._owns(handle):
                raise InternalError(f"Context {handle.context_id} no longer exists")
            response = self._request(
                {"op": "eval", "id": handle.context_id, "source": source, "timeout_ms": timeout_ms},
                timeout_ms + self.grace_ms,
            )
        if response is None:
            logger.warning(
                "node harness unresponsive after %d ms; process reclaimed", timeout_ms + self.grace_ms
            )
            handle.alive = False
            return RawOutcome(timed_out=True)
        self._check(response)
        if response.get("timed_out"):
            handle.alive = False
        return RawOutcome(
            lines=tuple(str(line) for line in response.get("lines") or ()),
            error=response.get("error"),
            timed_out=bool(response.get("timed_out")),
        )

    def discard(self, handle: ContextHandle) -> None:
        if not handle.alive:
            return
        handle.alive = False
        with self._lock:
            if not self._owns(handle):
                return
            response = self._request({"op": "discard", "id": handle.context_id}, self.grace_ms)
        if response is None:
            logger.warning("node harness did not confirm discarding %s", handle.context_id)

    def close(self) -> None:
        with self._lock:
            self._terminate()

    def _owns(self, handle: ContextHandle) -> bool:
        return (
            handle.generation == self._generation
            and self._process is not None
            and self._process.poll() is None
        )

    def _ensure_process(self) -> None:
        if self._process is not None and self._process.poll() is None:
            return

        cmd = [self.node_binary, "-e", NODE_HARNESS]
        logger.debug("Starting node harness with %s", self.node_binary)
        try:
            process = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                bufsize=1,
            )
        except OSError as exc:
            raise RuntimeUnavailableError(f"Unable to start {self.node_binary}: {exc}") from exc

        responses: queue.Queue[Any] = queue.Queue()
        threading.Thread(
            target=_pump_stdout, args=(process.stdout, responses), daemon=True, name="node-stdout"
        ).start()
        threading.Thread(
            target=_pump_stderr, args=(process.stderr,), daemon=True, name="node-stderr"
        ).start()

        self._process = process
        self._responses = responses
        self._generation += 1

    def _request(self, payload: Dict[str, Any], timeout_ms: int) -> Dict[str, Any] | None:
        """Send one request; ``None`` means the harness overran and was killed."""
        process, responses = self._process, self._responses
        if process is None or responses is None or process.stdin is None:
            raise RuntimeUnavailableError("node harness is not running")

        try:
            process.stdin.write(json.dumps(payload) + "\n")
            process.stdin.flush()
        except (BrokenPipeError, OSError) as exc:
            self._terminate()
            raise RuntimeUnavailableError(f"node harness closed its input: {exc}") from exc

        try:
            raw = responses.get(timeout=timeout_ms / 1000)
        except queue.Empty:
            self._terminate(force=True)
            return None

        if raw is _EOF:
            self._terminate()
            raise RuntimeUnavailableError("node harness exited unexpectedly")

        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise InternalError(f"Malformed reply from node harness: {raw!r}") from exc

    @staticmethod
    def _check(response: Dict[str, Any]) -> None:
        if not response.get("ok"):
            raise InternalError(f"node harness rejected request: {response.get('error')}")

    def _terminate(self, *, force: bool = False) -> None:
        process = self._process
        self._process = None
        self._responses = None
        if process is None:
            return
        if force:
            process.kill()
            process.wait()
            return
        if process.stdin is not None:
            try:
                process.stdin.close()
            except OSError:
                pass
        try:
            process.wait(timeout=self.grace_ms / 1000)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()


def _pump_stdout(stream: IO[str], responses: "queue.Queue[Any]") -> None:
    for line in stream:
        line = line.strip()
        if line:
            responses.put(line)
    responses.put(_EOF)


def _pump_stderr(stream: IO[str]) -> None:
    for line in stream:
        logger.debug("node: %s", line.rstrip())


__all__ = ["NodeRuntime", "NODE_HARNESS"]
