"""
launcher.py
-----------
Start, stop and inspect the mock Drive daemon from the shell.

The daemon is located through psutil by its module name on the command
line, so no PID file is kept. Every command prints one JSON line.
"""

import json
import logging
import os
import subprocess
import sys
from pathlib import Path

import httpx
import psutil
import typer

from common.app_setup import setup_logging

logger = logging.getLogger("mock_drive.launcher")

DAEMON_MODULE = "mock_drive.daemon"
PORT_EVENTS = ("port_selected", "port_used")

app = typer.Typer(add_completion=False, help="Manage the local mock Drive API. Without a command, status is shown.")


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    setup_logging(app_name="filepilot", logfile=os.environ.get("FILEPILOT_LOG_FILE"))
    if ctx.invoked_subcommand is None:
        ctx.invoke(status)


def _emit(result: dict, returncode: int = 0) -> None:
    print(json.dumps({"returncode": returncode, **result}))
    if returncode:
        raise typer.Exit(returncode)


@app.command()
def start(port: int | None = typer.Option(None, help="Port to listen on (a free one when omitted)"),
          seed: Path | None = typer.Option(None, exists=True, dir_okay=False, help="Folders to preload (YAML/JSON)")):
    """Launch the daemon in the background, unless one is already running."""
    proc = _find_daemon()
    if proc is not None:
        _emit({"msg": "A mock_drive daemon is already running", "pid": proc.pid, "port": _listening_port(proc) or "unknown"}, 1)
        return
    pid, used_port = _spawn(port, seed)
    _emit({"msg": "Started daemon", "pid": pid, "port": used_port})


@app.command()
def stop(timeout: float = typer.Option(3.0, help="Seconds to wait for the daemon to exit")):
    """Ask the daemon to shut down over HTTP, terminating the process if it lingers."""
    proc = _find_daemon()
    if proc is None:
        _emit({"msg": "Daemon not running."}, 1)
        return
    port = _listening_port(proc)
    if port:
        try:
            httpx.post(f"http://127.0.0.1:{port}/shutdown", timeout=2)
        except httpx.HTTPError as e:
            logger.warning(f"Shutdown request to port {port} failed: {e}")
    _, alive = psutil.wait_procs([proc], timeout=timeout)
    if alive:
        logger.info(f"Daemon {proc.pid} still running, terminating it")
        proc.terminate()
        _, alive = psutil.wait_procs(alive, timeout=timeout)
    if alive:
        _emit({"msg": f"Failed to stop daemon (PID {proc.pid})"}, 1)
        return
    _emit({"msg": f"Stopped daemon (PID {proc.pid})"})


@app.command()
def status():
    """Report whether the daemon runs and what its /status endpoint answers."""
    proc = _find_daemon()
    if proc is None:
        result = {"msg": "Daemon not running.", "running": False, "pid": None, "port": None, "api_status": None}
        print(json.dumps({"returncode": 1, **result}))
        return
    port = _listening_port(proc)
    result = {"msg": f"Daemon running with PID {proc.pid}", "running": False, "pid": proc.pid,
              "port": port or "unknown", "api_status": None}
    if port is None:
        result["msg"] += ", but no listening port found"
    else:
        try:
            resp = httpx.get(f"http://127.0.0.1:{port}/status", timeout=2)
            resp.raise_for_status()
            result.update(api_status=resp.json(), running=True)
        except httpx.HTTPError as e:
            result.update(msg=f"{result['msg']}, but REST API error", api_status={"error": str(e)})
    print(json.dumps({"returncode": 0 if result["running"] else 1, **result}))


def _spawn(port: int | None, seed: Path | None) -> tuple[int, int | None]:
    """Run the daemon module in a child process and read the port it announces."""
    cmd = [sys.executable, "-m", DAEMON_MODULE, "--port", str(port or 0)]
    if seed is not None:
        cmd += ["--seed", str(seed)]
    proc = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=subprocess.DEVNULL, text=True, close_fds=True)
    assert proc.stdout is not None
    announced = None
    for line in proc.stdout:
        try:
            event = json.loads(line)
        except json.JSONDecodeError:
            continue
        if event.get("event") in PORT_EVENTS:
            announced = int(event["port"])
            break
    if proc.poll() is not None:
        _emit({"msg": f"Daemon exited with code {proc.returncode}"}, 1)
    return proc.pid, announced or port


def _find_daemon() -> psutil.Process | None:
    for proc in psutil.process_iter(["cmdline"]):
        cmdline = proc.info["cmdline"] or []
        if DAEMON_MODULE in cmdline and proc.pid != os.getpid():
            return proc
    logger.debug("No mock_drive daemon process found")
    return None


def _listening_port(proc: psutil.Process) -> int | None:
    try:
        for conn in proc.net_connections(kind="inet"):
            if conn.status == psutil.CONN_LISTEN:
                return conn.laddr.port
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        pass
    return None


if __name__ == "__main__":
    app()
