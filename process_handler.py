# process_handler.py
import subprocess
import os
import sys
import threading
from pathlib import Path
import psutil

import constants
from errors import ScriptAlreadyRunningError, ScriptNotRunningError, ScriptStartError


def build_script_command(script_name):
    return [constants.NPM_CMD, "run", script_name]

def build_install_command():
    return [constants.NPM_CMD, "install"]

def process_key(tab_id, script_name):
    return f"{tab_id}:{script_name}"

def _spawn(cmd_list, cwd):
    process_flags = 0
    if os.name == 'nt': process_flags = subprocess.CREATE_NO_WINDOW

    env = dict(os.environ)
    env["FORCE_COLOR"] = "1"

    return subprocess.Popen(
        cmd_list, cwd=cwd, env=env, stdout=subprocess.PIPE, stderr=subprocess.PIPE,
        text=True, bufsize=1, encoding='utf-8', errors='replace',
        creationflags=process_flags
    )


def terminate_process_tree(app, process, label=""):
    """Stops a Popen child and all of its descendants. Returns True once the child has exited.

    Descendants are handled through psutil; the child itself only through the
    Popen object, so its exit status is still collected by whoever waits on it.
    """
    try:
        children = psutil.Process(process.pid).children(recursive=True)
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        children = []

    for child in children:
        try: child.terminate()
        except psutil.Error: pass
    _, alive = psutil.wait_procs(children, timeout=constants.STOP_KILL_TIMEOUT)
    for child in alive:
        try: child.kill()
        except psutil.Error: pass

    if process.poll() is not None:
        return True
    process.terminate()
    try:
        process.wait(timeout=constants.STOP_TERMINATE_TIMEOUT)
    except subprocess.TimeoutExpired:
        app._log(f"Process {label} (PID: {process.pid}) did not terminate, killing...", warning=True)
        process.kill()
        try:
            process.wait(timeout=constants.STOP_KILL_TIMEOUT)
        except subprocess.TimeoutExpired:
            app._log(f"Process {label} (PID: {process.pid}) could not be killed.", error=True)
            return False
    return True


class ScriptRunner:
    """Owns the child processes of running scripts, keyed "<tab_id>:<script>".

    Output and exit notifications are handed to the UI thread through
    app.after(0, ...) and arrive at app.on_script_output / app.on_script_exit.
    Each event carries the pid of the run it belongs to.

    A key stays registered until its process has exited, including while it is
    being stopped, so the same script cannot be started twice in a tab.
    """

    def __init__(self, app):
        self.app = app
        self.processes = {}
        self._stopping = set()
        self._lock = threading.Lock()
        self.closing = False

    # --- Events ---
    def _emit_output(self, script_name, tab_id, pid, stream_type, line):
        if self.closing:
            return
        event = {"script": script_name, "type": stream_type,
                 "data": line.rstrip("\r\n") + "\n", "tab_id": tab_id, "pid": pid}
        self.app.after(0, lambda ev=event: self.app.on_script_output(ev))

    def _emit_exit(self, script_name, tab_id, pid, code):
        if self.closing:
            return
        event = {"script": script_name, "code": code, "tab_id": tab_id, "pid": pid}
        self.app.after(0, lambda ev=event: self.app.on_script_exit(ev))

    def _start_readers(self, process, script_name, tab_id):
        def read_stream(stream, stream_type):
            try:
                for line in iter(stream.readline, ''):
                    self._emit_output(script_name, tab_id, process.pid, stream_type, line)
            except (OSError, ValueError) as e:
                self.app._log(f"Output stream for '{script_name}' ({stream_type}) closed unexpectedly: {e}", warning=True)
            finally:
                stream.close()

        readers = [
            threading.Thread(target=read_stream, args=(process.stdout, "stdout"), daemon=True),
            threading.Thread(target=read_stream, args=(process.stderr, "stderr"), daemon=True),
        ]
        for reader in readers:
            reader.start()
        return readers

    def _register(self, key, process):
        with self._lock:
            if key in self.processes:
                return False
            self.processes[key] = process
            return True

    def _unregister(self, key, process):
        with self._lock:
            if self.processes.get(key) is process:
                del self.processes[key]
                self._stopping.discard(key)

    # --- Scripts ---
    def run_script(self, project_path, script_name, tab_id):
        key = process_key(tab_id, script_name)
        with self._lock:
            if key in self.processes:
                raise ScriptAlreadyRunningError(f"Script '{script_name}' is already running in this tab")

        if script_name in constants.SERVER_SCRIPTS:
            cleanup_dev_environment(self.app, project_path)

        cmd_list = build_script_command(script_name)
        try:
            process = _spawn(cmd_list, project_path)
        except (OSError, ValueError) as e:
            self.app._log(f"Failed to start '{script_name}' in {project_path}: {e}", error=True)
            raise ScriptStartError(f"Failed to start script: {e}") from e

        if not self._register(key, process):
            # Lost a race with another start of the same script
            terminate_process_tree(self.app, process, label=f"'{script_name}'")
            raise ScriptAlreadyRunningError(f"Script '{script_name}' is already running in this tab")
        self.app._log(f"Started '{' '.join(cmd_list)}' for {tab_id} (PID: {process.pid}).")

        readers = self._start_readers(process, script_name, tab_id)

        def monitor():
            return_code = process.wait()
            for reader in readers:
                reader.join()
            self._unregister(key, process)
            code = return_code if return_code is not None else -1
            self.app._log(f"'{script_name}' for {tab_id} exited with code {code}.")
            self._emit_exit(script_name, tab_id, process.pid, code)

        threading.Thread(target=monitor, daemon=True).start()
        return True

    def stop_script(self, script_name, tab_id):
        key = process_key(tab_id, script_name)
        with self._lock:
            process = self.processes.get(key)
            if process is None:
                raise ScriptNotRunningError("Script not running")
            already_stopping = key in self._stopping
            self._stopping.add(key)

        if already_stopping:
            self.app._log(f"'{script_name}' for {tab_id} (PID: {process.pid}) is already stopping.")
            return True

        self.app._log(f"Stopping '{script_name}' for {tab_id} (PID: {process.pid})...")
        if process.poll() is None:
            stopped = terminate_process_tree(self.app, process, label=f"'{script_name}'")
            if not stopped:
                self.app._log(f"'{script_name}' for {tab_id} may still be running.", warning=True)
        return True

    def get_running_scripts(self):
        with self._lock:
            return list(self.processes.keys())

    def running_pid(self, tab_id, script_name):
        """Pid of the process currently registered for the script, or None."""
        with self._lock:
            process = self.processes.get(process_key(tab_id, script_name))
        return process.pid if process else None

    def stop_all(self):
        """Stops every registered process in parallel and waits for the stops to finish."""
        def stop(key):
            tab_id, script_name = key.split(":", 1)
            try:
                self.stop_script(script_name, tab_id)
            except ScriptNotRunningError:
                pass # Exited on its own meanwhile

        stoppers = [threading.Thread(target=stop, args=(key,), daemon=True) for key in self.get_running_scripts()]
        for stopper in stoppers:
            stopper.start()
        for stopper in stoppers:
            stopper.join(timeout=constants.STOP_TERMINATE_TIMEOUT + constants.STOP_KILL_TIMEOUT * 2)

    def shutdown(self):
        """Drops further events and stops everything. Used when the window is closing."""
        self.closing = True
        self.stop_all()

    def install_deps(self, project_path, tab_id):
        """Runs the package install, streaming its output. Blocks until it exits.

        The install process is registered under the "install" key while it runs,
        so stop_all() covers it.
        """
        key = process_key(tab_id, constants.INSTALL_SCRIPT_NAME)
        with self._lock:
            if key in self.processes:
                raise ScriptAlreadyRunningError("Dependencies are already being installed in this tab")

        try:
            process = _spawn(build_install_command(), project_path)
        except (OSError, ValueError) as e:
            self.app._log(f"Failed to run install in {project_path}: {e}", error=True)
            raise ScriptStartError(f"Failed to run npm install: {e}") from e

        if not self._register(key, process):
            terminate_process_tree(self.app, process, label="install")
            raise ScriptAlreadyRunningError("Dependencies are already being installed in this tab")

        try:
            readers = self._start_readers(process, constants.INSTALL_SCRIPT_NAME, tab_id)
            return_code = process.wait()
            for reader in readers:
                reader.join()
        finally:
            self._unregister(key, process)
        self.app._log(f"Install in {project_path} finished (code {return_code}).",
                      error=(return_code != 0))
        return return_code == 0


# --- Ports ---
def find_pids_on_port(port, listening_only=False):
    pids = set()
    for conn in psutil.net_connections(kind='inet'):
        if not conn.laddr or conn.laddr.port != port or not conn.pid:
            continue
        if listening_only and conn.status != psutil.CONN_LISTEN:
            continue
        pids.add(conn.pid)
    pids.discard(os.getpid())
    return sorted(pids)

def kill_port(app, port):
    try:
        pids = find_pids_on_port(port)
    except psutil.AccessDenied as e:
        app._log(f"Access denied listing connections for port {port}: {e}", error=True)
        return 0

    killed_count = 0
    for pid in pids:
        try:
            app._log(f"Killing process {pid} on port {port}")
            psutil.Process(pid).kill()
            killed_count += 1
        except psutil.NoSuchProcess:
            pass
        except psutil.AccessDenied:
            app._log(f"Access denied killing PID {pid} on port {port}", warning=True)
    return killed_count

def kill_all_ports(app):
    for port in constants.COMMON_DEV_PORTS:
        kill_port(app, port)
    return "Cleanup command sent for all ports"

def kill_single_port(app, port):
    killed_count = kill_port(app, port)
    if killed_count > 0:
        return f"Killed {killed_count} process(es) on port {port}"
    return f"No process found on port {port}"

def list_open_ports(app):
    results = []
    try:
        connections = psutil.net_connections(kind='inet')
    except psutil.AccessDenied as e:
        app._log(f"Access denied listing open ports: {e}", error=True)
        return results

    listening = {}
    for conn in connections:
        if conn.status == psutil.CONN_LISTEN and conn.laddr and conn.pid:
            listening.setdefault(conn.laddr.port, []).append(conn.pid)

    for port in constants.COMMON_DEV_PORTS:
        for pid in listening.get(port, []):
            if any(r["port"] == port and r["pid"] == pid for r in results):
                continue
            try:
                process_name = psutil.Process(pid).name()
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                process_name = "?"
            results.append({"port": port, "pid": pid, "process_name": process_name})
    return results

def cleanup_dev_environment(app, project_path):
    lock_file = Path(project_path) / constants.DEV_LOCK_FILE
    if lock_file.exists():
        try:
            lock_file.unlink()
            app._log(f"Removed stale lock file: {lock_file}")
        except OSError as e:
            app._log(f"Failed to remove lock file {lock_file}: {e}", warning=True)

    kill_port(app, constants.DEV_CLEANUP_PORT)


# --- Browser ---
RELOAD_BROWSER_SCRIPT = """
try
    tell application "Google Chrome"
        repeat with w in windows
            repeat with t in tabs of w
                if URL of t starts with "http://localhost:{port}" then
                    reload t
                end if
            end repeat
        end repeat
    end tell
end try
try
    tell application "Safari"
        repeat with w in windows
            repeat with t in tabs of w
                if URL of t starts with "http://localhost:{port}" then
                    tell t to do JavaScript "location.reload();"
                end if
            end repeat
        end repeat
    end tell
end try
"""

def reload_browser_tab(app, port):
    if sys.platform != "darwin":
        app._log(f"Browser reload for port {port} is only supported on macOS.", warning=True)
        return False
    try:
        subprocess.run([constants.OSASCRIPT_CMD, "-e", RELOAD_BROWSER_SCRIPT.format(port=port)],
                       capture_output=True, text=True, check=False)
    except OSError as e:
        app._log(f"Could not reload browser tabs for port {port}: {e}", error=True)
        return False
    return True
