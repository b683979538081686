# main.py
import tkinter as tk
from tkinter import ttk, filedialog, messagebox, Menu
import os
import subprocess
import threading
import time
from datetime import datetime
from pathlib import Path
from urllib.parse import urlparse
import sys
import webbrowser

# --- Local Imports ---
import constants
from config_manager import ConfigManager
from errors import CommanderError, ProjectLoadError, ScriptNotRunningError
from ui_widgets import ConsoleView, ToolTip
import console_output
import process_handler
import project_loader
import ui_dialogs
from tab_manager import TabManager


# --- DPI Awareness (primarily for Windows) ---
if sys.platform == "win32":
    try:
        from ctypes import windll
        if hasattr(windll, 'shcore') and hasattr(windll.shcore, 'SetProcessDpiAwareness'):
            windll.shcore.SetProcessDpiAwareness(1)
        elif hasattr(windll, 'user32') and hasattr(windll.user32, 'SetProcessDPIAware'):
            windll.user32.SetProcessDPIAware()
    except (ImportError, OSError, AttributeError) as e:
        print(f"DPI awareness could not be set automatically: {e}")


# --- Main Application Class ---
_BaseTk = constants.ThemedTk if constants.TTKTHEMES_AVAILABLE else tk.Tk

if constants.TKDND_AVAILABLE:
    class _CommanderTk(constants.TkinterDnD.DnDWrapper, _BaseTk):
        pass
else:
    class _CommanderTk(_BaseTk):
        pass


class NpmCommander(_CommanderTk):
    def __init__(self, initial_path=None):
        if constants.TTKTHEMES_AVAILABLE:
            super().__init__(theme=constants.DEFAULT_THEME)
        else:
            super().__init__()

        self.title("NPM Commander")
        self.geometry("1200x800")

        self.all_log_messages = []

        self.dnd_enabled = False
        if constants.TKDND_AVAILABLE:
            try:
                self.TkdndVersion = constants.TkinterDnD._require(self)
                self.dnd_enabled = True
            except (RuntimeError, tk.TclError) as e:
                self._log(f"Drag and drop unavailable: {e}", warning=True)

        self.config_manager = ConfigManager(self)
        self.config_data = self.config_manager.load_config()
        self.config_manager.load_history()

        if constants.TTKTHEMES_AVAILABLE and "theme" in self.config_data:
            try:
                self.set_theme(self.config_data["theme"])
            except tk.TclError:
                self._log(f"Failed to set saved theme '{self.config_data['theme']}'. Using default.", warning=True)
                self.set_theme(constants.DEFAULT_THEME)

        self.tab_manager = TabManager()
        self.runner = process_handler.ScriptRunner(self)
        self.tab_widgets = {} # tab_id -> ConsoleView inside the notebook

        self._setup_style()
        self._setup_menu()
        self._setup_ui()
        self._setup_shortcuts()

        self.create_new_tab()
        self.load_project(initial_path or self.config_manager.get_default_path())

    def _setup_style(self):
        self.style = ttk.Style(self)
        try:
            self.style.configure("Header.TLabel", font=('TkDefaultFont', 14, 'bold'))
            self.style.configure("Path.TLabel", foreground="#7F8C8D")
            self.style.configure("Running.TButton", foreground="#C0392B")
            self.style.configure("Treeview.Heading", font=('TkDefaultFont', 10, 'bold'))
        except tk.TclError:
            self._log("Note: some styling might not be supported by the current theme/OS.", warning=True)

    def _setup_menu(self):
        menubar = Menu(self)
        self.config(menu=menubar)

        file_menu = Menu(menubar, tearoff=0)
        menubar.add_cascade(label="File", menu=file_menu)
        file_menu.add_command(label="Open Project...", command=self._select_folder)
        self.history_menu = Menu(file_menu, tearoff=0, postcommand=self._render_history_menu)
        file_menu.add_cascade(label="Recent Projects", menu=self.history_menu)
        file_menu.add_separator()
        file_menu.add_command(label="New Tab", command=self.create_new_tab)
        file_menu.add_command(label="Close Tab", command=self.close_tab, accelerator="Ctrl+W")
        file_menu.add_separator()
        file_menu.add_command(label="Exit", command=self.on_closing)

        tools_menu = Menu(menubar, tearoff=0)
        menubar.add_cascade(label="Tools", menu=tools_menu)
        tools_menu.add_command(label="Kill All Dev Ports...", command=self._kill_all_ports)
        tools_menu.add_command(label="Open Ports...", command=lambda: ui_dialogs.show_open_ports_dialog(self))
        tools_menu.add_separator()
        tools_menu.add_command(label="Activity Log", command=lambda: ui_dialogs.show_activity_log(self))

        view_menu = Menu(menubar, tearoff=0)
        menubar.add_cascade(label="View", menu=view_menu)
        view_menu.add_command(label="Toggle Sidebar", command=self.toggle_sidebar, accelerator="Ctrl+B")
        if constants.TTKTHEMES_AVAILABLE and hasattr(self, 'get_themes'):
            view_menu.add_separator()
            theme_menu = Menu(view_menu, tearoff=0)
            view_menu.add_cascade(label="Themes", menu=theme_menu)
            for theme_name in sorted(self.get_themes()):
                theme_menu.add_command(label=theme_name, command=lambda t=theme_name: self._change_theme(t))

    def _setup_ui(self):
        self.configure(padx=5, pady=5)

        # --- Header ---
        header_frame = ttk.Frame(self, padding="10")
        header_frame.pack(fill=tk.X)
        title_frame = ttk.Frame(header_frame)
        title_frame.pack(side=tk.LEFT, fill=tk.X, expand=True)
        self.project_name_label = ttk.Label(title_frame, text="Select a Project", style="Header.TLabel")
        self.project_name_label.pack(anchor=tk.W)
        self.project_path_label = ttk.Label(title_frame, text="No project loaded", style="Path.TLabel")
        self.project_path_label.pack(anchor=tk.W)

        self.kill_ports_button = ttk.Button(header_frame, text="Kill All Ports", command=self._kill_all_ports)
        ToolTip(self.kill_ports_button, "Kill every process listening on the common dev server ports.")
        self.clear_project_button = ttk.Button(header_frame, text="Clear Project", command=self._clear_project)
        ToolTip(self.clear_project_button, "Stop this tab's scripts and close its project.")
        self.view_pkg_button = ttk.Button(header_frame, text="package.json", command=self._view_package_json)
        ToolTip(self.view_pkg_button, "Display the content of package.json in a new window.")
        self.open_folder_button = ttk.Button(header_frame, text="Open Folder", command=self._open_project_folder)
        ToolTip(self.open_folder_button, "Open the project's directory in the file explorer.")
        self.select_folder_text = tk.StringVar(value="Open Project")
        select_folder_button = ttk.Button(header_frame, textvariable=self.select_folder_text, command=self._select_folder)
        select_folder_button.pack(side=tk.RIGHT, padx=2)
        self.project_buttons = [self.open_folder_button, self.view_pkg_button,
                                self.clear_project_button, self.kill_ports_button]

        # --- Scripts Bar ---
        self.scripts_bar = ttk.LabelFrame(self, text="Scripts", padding="8")
        self.scripts_bar.pack(fill=tk.X, padx=10)

        # --- URL Bar ---
        self.url_bar = ttk.Frame(self, padding=(10, 5))
        self.url_var = tk.StringVar()
        ttk.Label(self.url_bar, text="🚀 Server:").pack(side=tk.LEFT)
        ttk.Label(self.url_bar, textvariable=self.url_var, foreground="#2ECC71").pack(side=tk.LEFT, padx=5)
        ttk.Button(self.url_bar, text="Reload Browser", command=self._reload_browser_tab).pack(side=tk.RIGHT, padx=2)
        ttk.Button(self.url_bar, text="Copy URL", command=self._copy_url).pack(side=tk.RIGHT, padx=2)
        ttk.Button(self.url_bar, text="Open in Browser", command=self._open_url).pack(side=tk.RIGHT, padx=2)

        # --- Tabs + Sidebar ---
        self.main_pane = ttk.PanedWindow(self, orient=tk.HORIZONTAL)
        self.main_pane.pack(fill=tk.BOTH, expand=True, padx=10, pady=10)

        console_frame = ttk.Frame(self.main_pane)
        self.main_pane.add(console_frame, weight=3)
        self.notebook = ttk.Notebook(console_frame)
        self.notebook.pack(fill=tk.BOTH, expand=True)
        self.notebook.bind("<<NotebookTabChanged>>", self._on_tab_changed)

        console_actions = ttk.Frame(console_frame)
        console_actions.pack(fill=tk.X, pady=(5, 0))
        ttk.Button(console_actions, text="New Tab", command=self.create_new_tab).pack(side=tk.LEFT)
        ttk.Button(console_actions, text="Clear Console", command=self._clear_console).pack(side=tk.LEFT, padx=5)
        ttk.Button(console_actions, text="Copy All", command=self._copy_all).pack(side=tk.RIGHT)
        self.copy_errors_button = ttk.Button(console_actions, text="Copy Errors", command=self._copy_errors)
        self.copy_errors_button.pack(side=tk.RIGHT, padx=5)
        ToolTip(self.copy_errors_button, "Copy errors and warnings. Right-click for more options.")

        self.copy_menu = Menu(self, tearoff=0)
        self.copy_menu.add_command(label="Copy All", command=self._copy_all)
        self.copy_menu.add_command(label="Copy Errors", command=lambda: self._copy_kinds({"error"}))
        self.copy_menu.add_command(label="Copy Warnings", command=lambda: self._copy_kinds({"warning"}))
        context_button = "<Button-2>" if sys.platform == "darwin" else "<Button-3>"
        self.copy_errors_button.bind(context_button, lambda e: self.copy_menu.tk_popup(e.x_root, e.y_root))

        self.sidebar = sidebar = ttk.LabelFrame(self.main_pane, text="Dependencies", padding="10")
        self.main_pane.add(sidebar, weight=1)
        self.sidebar_visible = True
        deps_status_frame = ttk.Frame(sidebar)
        deps_status_frame.pack(fill=tk.X, pady=(0, 5))
        self.deps_status_label = ttk.Label(deps_status_frame, text="⚪ Not loaded")
        self.deps_status_label.pack(side=tk.LEFT)
        self.install_button = ttk.Button(deps_status_frame, text="Install", command=self.install_dependencies)

        self.deps_tree = self._make_deps_tree(sidebar, "dependencies")
        self.dev_deps_tree = self._make_deps_tree(sidebar, "devDependencies")

        # --- Status Bar ---
        self.status_bar = ttk.Label(self, text="Initializing...", relief=tk.SUNKEN, anchor=tk.W, padding=3)
        self.status_bar.pack(side=tk.BOTTOM, fill=tk.X)

    def _make_deps_tree(self, parent, title):
        ttk.Label(parent, text=title).pack(anchor=tk.W, pady=(5, 0))
        tree = ttk.Treeview(parent, columns=("Name", "Version"), show="headings", height=8)
        tree.heading("Name", text="Package")
        tree.heading("Version", text="Version")
        tree.column("Name", width=160, anchor=tk.W, stretch=tk.YES)
        tree.column("Version", width=80, anchor=tk.W, stretch=tk.NO)
        tree.pack(fill=tk.BOTH, expand=True)
        return tree

    def _setup_shortcuts(self):
        self.bind_all("<Control-w>", lambda e: self.close_tab())
        self.bind_all("<Control-b>", lambda e: self.toggle_sidebar())
        if sys.platform == "darwin":
            self.bind_all("<Command-w>", lambda e: self.close_tab())
            self.bind_all("<Command-b>", lambda e: self.toggle_sidebar())

    def toggle_sidebar(self):
        if self.sidebar_visible:
            self.main_pane.forget(self.sidebar)
        else:
            self.main_pane.add(self.sidebar, weight=1)
        self.sidebar_visible = not self.sidebar_visible
        return self.sidebar_visible

    # --- Logging ---
    def _log(self, message, error=False, warning=False):
        timestamp = time.strftime("%Y-%m-%d %H:%M:%S")
        prefix = constants.LOG_PREFIX_ERROR if error else constants.LOG_PREFIX_WARNING if warning else constants.LOG_PREFIX_INFO

        full_message = f"[{timestamp}] {prefix}{message}"
        self.all_log_messages.append(full_message)

        if error:
            print(full_message)

    def update_status_bar(self, message):
        if hasattr(self, 'status_bar') and self.status_bar:
            self.status_bar.config(text=message)

    def _change_theme(self, theme_name):
        try:
            self.set_theme(theme_name)
            self._setup_style()
            self._log(f"Theme changed to: {theme_name}")
            self.config_manager.save_config()
        except tk.TclError as e:
            messagebox.showerror("Theme Error", f"Could not apply theme '{theme_name}':\n{e}", parent=self)
            self._log(f"Error changing theme to {theme_name}: {e}", error=True)

    # --- Tabs ---
    def _console_for(self, tab_id=None):
        return self.tab_widgets.get(tab_id or self.tab_manager.active_tab_id)

    def append_to_active_console(self, text, kind=""):
        console = self._console_for()
        if console:
            console.append(text, kind)

    def _add_tab_widget(self, tab_id):
        welcome_text = constants.CONSOLE_WELCOME_DROP_TEXT if self.dnd_enabled else constants.CONSOLE_WELCOME_TEXT
        console = ConsoleView(self.notebook, welcome_text=welcome_text, padding=2)
        if self.dnd_enabled:
            console.text.drop_target_register(constants.DND_FILES)
            console.text.dnd_bind("<<Drop>>", lambda e, t=tab_id: self._on_drop(e, t))
        self.tab_widgets[tab_id] = console
        self.notebook.add(console, text="New Project")
        return console

    def _on_drop(self, event, tab_id=None):
        folder = project_loader.project_folder_from_drop(self.tk.splitlist(event.data))
        if folder:
            self._log(f"Project folder dropped: {folder}")
            self.load_project(folder, tab_id)
        return event.action

    def create_new_tab(self):
        tab = self.tab_manager.create_tab()
        console = self._add_tab_widget(tab["id"])
        self.notebook.select(console)
        self._refresh_project_view()
        return tab["id"]

    def _on_tab_changed(self, event=None):
        selected = self.notebook.select()
        for tab_id, console in self.tab_widgets.items():
            if str(console) == selected:
                if tab_id != self.tab_manager.active_tab_id:
                    self.tab_manager.switch_tab(tab_id)
                    self._refresh_project_view()
                return

    def close_tab(self, tab_id=None):
        tab = self.tab_manager.get_tab(tab_id)
        if tab is None:
            return
        tab_id = tab["id"]
        project = tab["project"]
        if project:
            if not ui_dialogs.ask_confirm(self, "Close Project",
                                          f"Closing this tab will close the project \"{project['name']}\". Are you sure?"):
                return
            self.config_manager.mark_closed(project["projectPath"])

        for script_name in list(tab["running_scripts"]):
            self.stop_script(script_name, tab_id)
        if self.runner.running_pid(tab_id, constants.INSTALL_SCRIPT_NAME):
            self.stop_script(constants.INSTALL_SCRIPT_NAME, tab_id)

        console = self.tab_widgets.pop(tab_id)
        self.notebook.forget(console)
        console.destroy()

        new_active_id = self.tab_manager.close_tab(tab_id)
        if new_active_id not in self.tab_widgets:
            self._add_tab_widget(new_active_id)
        self.notebook.select(self.tab_widgets[new_active_id])
        self._refresh_project_view()

    def _set_tab_title(self, tab_id, title):
        console = self.tab_widgets.get(tab_id)
        if console:
            self.notebook.tab(console, text=title)

    # --- Project ---
    def _select_folder(self):
        folder = filedialog.askdirectory(title="Select Project Folder", parent=self,
                                         initialdir=self.config_manager.get_default_path())
        if folder:
            self.load_project(folder)

    def load_project(self, project_path, tab_id=None):
        tab = self.tab_manager.get_tab(tab_id)
        if tab is None:
            return
        tab_id = tab["id"]
        console = self.tab_widgets[tab_id]

        previous = tab["project"]
        if previous and previous["projectPath"] != str(project_path):
            self.config_manager.mark_closed(previous["projectPath"])
            for script_name in list(tab["running_scripts"]):
                self.stop_script(script_name, tab_id)

        console.clear()
        self.tab_manager.clear_console_state(tab_id)
        console.append(f"→ Loading project from: {project_path}\n", "info")

        try:
            project = project_loader.load_project(project_path)
        except ProjectLoadError as e:
            self._log(f"Could not load project at {project_path}: {e}", warning=True)
            console.append(f"✗ {e}\n", "error")
            self.tab_manager.clear_project(tab_id)
            self._set_tab_title(tab_id, "New Project")
            if tab_id == self.tab_manager.active_tab_id:
                self._refresh_project_view(failed_path=project_path)
            return

        self.tab_manager.set_project(tab_id, project)
        self.config_manager.add_to_history(project["name"], project["projectPath"])
        self.config_manager.save_last_path(project["projectPath"])
        self._log(f"Loaded project '{project['name']}' from {project['projectPath']}")
        self._set_tab_title(tab_id, project["name"])
        if tab_id == self.tab_manager.active_tab_id:
            self._refresh_project_view()
        console.append(f"✓ Project loaded: {project['name']} v{project['version']}\n", "success")
        self.update_status_bar(f"Loaded {project['name']}.")

    def _clear_project(self):
        tab = self.tab_manager.get_tab()
        if tab is None or tab["project"] is None:
            return
        if not ui_dialogs.ask_confirm(self, "Clear Project", f"Close project \"{tab['project']['name']}\" in this tab?"):
            return

        for script_name in list(tab["running_scripts"]):
            self.stop_script(script_name, tab["id"])
        self.config_manager.mark_closed(tab["project"]["projectPath"])
        self.tab_manager.clear_project(tab["id"])
        self._set_tab_title(tab["id"], "New Project")
        self.tab_widgets[tab["id"]].show_welcome()
        self._refresh_project_view()

    def _refresh_project_view(self, failed_path=None):
        tab = self.tab_manager.get_tab()
        project = tab["project"] if tab else None

        if project:
            self.project_name_label.config(text=project["name"])
            self.project_path_label.config(text=project["projectPath"])
            self.select_folder_text.set("Change Project")
            for button in self.project_buttons:
                button.pack(side=tk.RIGHT, padx=2)
            self._render_deps_status(project)
            self._render_dependencies(self.deps_tree, project["dependencies"])
            self._render_dependencies(self.dev_deps_tree, project["devDependencies"])
        else:
            self.project_name_label.config(text="No Project" if failed_path else "Select a Project")
            self.project_path_label.config(text=str(failed_path) if failed_path else "No project loaded")
            self.select_folder_text.set("Open Project")
            for button in self.project_buttons:
                button.pack_forget()
            self.install_button.pack_forget()
            self.deps_status_label.config(text="⚪ Not loaded")
            self._render_dependencies(self.deps_tree, {} if failed_path else None)
            self._render_dependencies(self.dev_deps_tree, {} if failed_path else None)

        self._render_scripts(tab, failed=bool(failed_path))
        self._update_url_bar()

    def _render_deps_status(self, project):
        if project["nodeModulesInstalled"]:
            self.deps_status_label.config(text="🟢 All dependencies installed")
            self.install_button.pack_forget()
        else:
            self.deps_status_label.config(text="🔴 Dependencies not installed")
            self.install_button.config(text="Install", state=tk.NORMAL)
            self.install_button.pack(side=tk.RIGHT)

    def _render_dependencies(self, tree, deps):
        tree.delete(*tree.get_children())
        if deps is None:
            return
        for name, version in deps.items():
            tree.insert("", tk.END, values=(name, version))
        if not deps:
            tree.insert("", tk.END, values=("None", ""))

    # --- Scripts ---
    def _render_scripts(self, tab, failed=False):
        for child in self.scripts_bar.winfo_children():
            child.destroy()
        self.script_buttons = {}

        project = tab["project"] if tab else None
        if project is None:
            message = "No package.json found" if failed else "Load a project to see available scripts"
            ttk.Label(self.scripts_bar, text=message, style="Path.TLabel").grid(row=0, column=0, sticky="w")
            return

        column = 0
        if not project["nodeModulesInstalled"]:
            install_btn = ttk.Button(self.scripts_bar, text="📦 Install Dependencies", command=self.install_dependencies)
            install_btn.grid(row=0, column=0, padx=2, pady=2, sticky="ew")
            column = 1
        elif not project["scripts"]:
            ttk.Label(self.scripts_bar, text="No scripts defined", style="Path.TLabel").grid(row=0, column=0, sticky="w")
            return

        per_row = 6
        for script_name, script_cmd in project["scripts"].items():
            btn = ttk.Button(self.scripts_bar, command=lambda n=script_name, t=tab["id"]: self.toggle_script(n, t))
            btn.grid(row=column // per_row, column=column % per_row, padx=2, pady=2, sticky="ew")
            ToolTip(btn, script_cmd)
            self.script_buttons[script_name] = btn
            column += 1
        self._update_script_buttons()

    def _update_script_buttons(self):
        tab = self.tab_manager.get_tab()
        if tab is None:
            return
        for script_name, btn in getattr(self, "script_buttons", {}).items():
            if script_name in tab["running_scripts"]:
                btn.config(text=f"{constants.SYMBOL_STOP} {script_name}", style="Running.TButton")
            else:
                btn.config(text=f"{constants.SYMBOL_RUN} {script_name}", style="TButton")

    def toggle_script(self, script_name, tab_id=None):
        tab = self.tab_manager.get_tab(tab_id)
        if tab is None:
            return
        if script_name in tab["running_scripts"]:
            self.stop_script(script_name, tab["id"])
        else:
            self.run_script(script_name, tab["id"])

    def run_script(self, script_name, tab_id):
        tab = self.tab_manager.get_tab(tab_id)
        if tab is None or tab["project"] is None:
            return
        console = self.tab_widgets[tab_id]
        project_path = tab["project"]["projectPath"]
        console.append(f"\n{constants.SYMBOL_RUN} Starting: npm run {script_name}\n", "info")

        # Marked before spawning so a very short script's exit cannot arrive first
        self.tab_manager.mark_script_started(tab_id, script_name)
        self._update_script_buttons()

        def task():
            try:
                self.runner.run_script(project_path, script_name, tab_id)
            except CommanderError as e:
                self.after(0, lambda msg=str(e): self._on_run_failed(tab_id, script_name, msg))

        threading.Thread(target=task, daemon=True).start()

    def _on_run_failed(self, tab_id, script_name, message):
        console = self.tab_widgets.get(tab_id)
        if console:
            console.append(f"✗ {message}\n", "error")
        if not any(key == process_handler.process_key(tab_id, script_name) for key in self.runner.get_running_scripts()):
            self.tab_manager.mark_script_exited(tab_id, script_name)
        self._update_script_buttons()
        self._update_url_bar()

    def stop_script(self, script_name, tab_id):
        console = self.tab_widgets.get(tab_id)
        if console:
            console.append(f"\n{constants.SYMBOL_STOP} Stopping: {script_name}\n", "warning")

        def task():
            try:
                self.runner.stop_script(script_name, tab_id)
            except ScriptNotRunningError as e:
                self._log(f"Failed to stop script '{script_name}' ({tab_id}): {e}", warning=True)
                self.after(0, lambda: self._on_stop_failed(tab_id, script_name))

        threading.Thread(target=task, daemon=True).start()

    def _on_stop_failed(self, tab_id, script_name):
        # No process behind it, so there is no exit event to wait for
        self.tab_manager.mark_script_exited(tab_id, script_name)
        self._update_script_buttons()
        self._update_url_bar()

    def on_script_output(self, event):
        tab = self.tab_manager.get_tab(event["tab_id"])
        console = self.tab_widgets.get(event["tab_id"])
        if tab is None or console is None:
            return

        clean_text = console_output.strip_ansi(event["data"])
        console.append(clean_text, console_output.classify_stream_line(clean_text, event["type"]))

        url = self.tab_manager.record_output(tab["id"], clean_text)
        if url:
            console.append(f"\n🚀 Server ready at: {url}\n", "success")
            if tab["id"] == self.tab_manager.active_tab_id:
                self._update_url_bar()

    def on_script_exit(self, event):
        tab = self.tab_manager.get_tab(event["tab_id"])
        console = self.tab_widgets.get(event["tab_id"])
        if tab is None or console is None:
            return

        current_pid = self.runner.running_pid(tab["id"], event["script"])
        if current_pid is not None and current_pid != event.get("pid"):
            # An earlier run of a script that has been started again
            self._log(f"Ignoring exit of earlier '{event['script']}' run (PID: {event.get('pid')}) in {tab['id']}.")
        else:
            self.tab_manager.mark_script_exited(tab["id"], event["script"])
        if tab["id"] == self.tab_manager.active_tab_id:
            self._update_script_buttons()
            self._update_url_bar()
        kind = "success" if event["code"] == 0 else "error"
        console.append(f"\n✓ Script '{event['script']}' exited with code {event['code']}\n", kind)

    def install_dependencies(self):
        tab = self.tab_manager.get_tab()
        if tab is None or tab["project"] is None:
            return
        tab_id = tab["id"]
        project_path = tab["project"]["projectPath"]
        console = self.tab_widgets[tab_id]

        self.install_button.config(text="Installing...", state=tk.DISABLED)
        console.append("\n📦 Installing dependencies...\n", "info")
        self.update_status_bar("Installing dependencies...")

        def task():
            try:
                success = self.runner.install_deps(project_path, tab_id)
            except CommanderError as e:
                self.after(0, lambda msg=str(e): self._on_install_finished(tab_id, project_path, False, msg))
                return
            self.after(0, lambda ok=success: self._on_install_finished(tab_id, project_path, ok))

        threading.Thread(target=task, daemon=True).start()

    def _on_install_finished(self, tab_id, project_path, success, message=None):
        console = self.tab_widgets.get(tab_id)
        self.update_status_bar("Dependency install finished.")
        if console is None:
            return
        if success:
            console.append("✓ Dependencies installed successfully\n", "success")
            self.load_project(project_path, tab_id)
            return
        console.append(f"✗ Failed to install dependencies: {message or 'npm install exited with an error'}\n", "error")
        if tab_id == self.tab_manager.active_tab_id:
            self.install_button.config(text="Install", state=tk.NORMAL)

    # --- Console Actions ---
    def _clear_console(self):
        tab = self.tab_manager.get_tab()
        if tab is None:
            return
        self.tab_widgets[tab["id"]].clear()
        self.tab_manager.clear_console_state(tab["id"])
        self._update_url_bar()

    def _copy_to_clipboard(self, text):
        if not text:
            return False
        self.clipboard_clear()
        self.clipboard_append(text)
        self.update_status_bar("Copied!")
        return True

    def _copy_all(self):
        console = self._console_for()
        if console:
            self._copy_to_clipboard(console.get_all_text())

    def _copy_errors(self):
        console = self._console_for()
        if console and not self._copy_to_clipboard(console.get_tagged_text({"error", "warning"})):
            console.append("\nNo errors or warnings to copy.\n", "info")

    def _copy_kinds(self, kinds):
        console = self._console_for()
        if console:
            self._copy_to_clipboard(console.get_tagged_text(kinds))

    # --- URL Bar ---
    def _update_url_bar(self):
        tab = self.tab_manager.get_tab()
        url = tab["detected_url"] if tab else None
        if url:
            self.url_var.set(url)
            self.url_bar.pack(fill=tk.X, after=self.scripts_bar)
        else:
            self.url_bar.pack_forget()

    def _open_url(self):
        tab = self.tab_manager.get_tab()
        if tab and tab["detected_url"]:
            try:
                webbrowser.open(tab["detected_url"], new=2)
            except webbrowser.Error as e:
                self._log(f"Error opening browser: {e}", error=True)
                messagebox.showerror("Browser Error", f"Could not open browser: {e}", parent=self)

    def _copy_url(self):
        tab = self.tab_manager.get_tab()
        if tab and tab["detected_url"]:
            self._copy_to_clipboard(tab["detected_url"])

    def _reload_browser_tab(self):
        tab = self.tab_manager.get_tab()
        if not tab or not tab["detected_url"]:
            return
        port = urlparse(tab["detected_url"]).port
        if port:
            threading.Thread(target=process_handler.reload_browser_tab, args=(self, port), daemon=True).start()

    # --- Ports ---
    def _kill_all_ports(self):
        port_list = ", ".join(str(p) for p in constants.COMMON_DEV_PORTS)
        if not ui_dialogs.ask_confirm(self, "Kill All Ports",
                                      f"Are you sure you want to kill all processes on ports {port_list}? "
                                      "This may stop other running applications."):
            return
        self.kill_ports_button.config(text="Killing Ports...", state=tk.DISABLED)
        tab_id = self.tab_manager.active_tab_id

        def task():
            result = process_handler.kill_all_ports(self)
            self.after(0, lambda msg=result: self._on_ports_killed(tab_id, msg))

        threading.Thread(target=task, daemon=True).start()

    def _on_ports_killed(self, tab_id, message):
        self.kill_ports_button.config(text="Kill All Ports", state=tk.NORMAL)
        console = self.tab_widgets.get(tab_id) or self._console_for()
        if console:
            console.append(f"\n⚡ {message}\n", "success")

    # --- History ---
    def _render_history_menu(self):
        self.history_menu.delete(0, tk.END)
        if not self.config_manager.history:
            self.history_menu.add_command(label="No history yet", state=tk.DISABLED)
            return
        for entry in self.config_manager.history:
            closed_at = entry.get("closedAt")
            if closed_at:
                try:
                    sub_text = f"Last closed: {datetime.fromisoformat(closed_at):%Y-%m-%d %H:%M}"
                except ValueError:
                    sub_text = f"Last closed: {closed_at}"
            else:
                sub_text = "Currently Open"
            self.history_menu.add_command(label=f"{entry.get('name', '?')}  ({sub_text})",
                                          command=lambda p=entry["path"]: self._open_from_history(p))

    def _open_from_history(self, project_path):
        for tab_id, tab in self.tab_manager.tabs.items():
            if tab["project"] and tab["project"]["projectPath"] == project_path:
                self.notebook.select(self.tab_widgets[tab_id])
                return
        current = self.tab_manager.get_tab()
        if current and current["project"]:
            self.create_new_tab()
        self.load_project(project_path)

    # --- Folder / package.json ---
    def _open_project_folder(self):
        tab = self.tab_manager.get_tab()
        if not tab or not tab["project"]:
            return
        proj_path_str = tab["project"]["projectPath"]
        if not Path(proj_path_str).exists():
            messagebox.showerror("Error", f"Project folder not found:\n{proj_path_str}", parent=self)
            return
        try:
            if sys.platform == "win32": os.startfile(proj_path_str)
            elif sys.platform == "darwin": subprocess.run(['open', proj_path_str], check=True)
            else: subprocess.run(['xdg-open', proj_path_str], check=True)
        except (OSError, subprocess.CalledProcessError) as e:
            self._log(f"Error opening folder {proj_path_str}: {e}", error=True)
            messagebox.showerror("Error", f"Could not open folder '{proj_path_str}':\n{e}", parent=self)

    def _view_package_json(self):
        tab = self.tab_manager.get_tab()
        if tab and tab["project"]:
            ui_dialogs.show_package_json_viewer(self, tab["project"])

    def on_closing(self):
        running = self.runner.get_running_scripts()
        if running:
            self.update_status_bar(f"Stopping {len(running)} running script(s)...")
            self.update_idletasks()
            self._log(f"Stopping {len(running)} running script(s) before exit...")
        # Monitor threads must not call after() on a destroyed window
        self.runner.shutdown()
        for tab in self.tab_manager.tabs.values():
            if tab["project"]:
                self.config_manager.mark_closed(tab["project"]["projectPath"])
        self.config_manager.save_config()
        self.destroy()


def main():
    app = NpmCommander(initial_path=sys.argv[1] if len(sys.argv) > 1 else None)
    app.protocol("WM_DELETE_WINDOW", app.on_closing)
    app.mainloop()


if __name__ == "__main__":
    main()
