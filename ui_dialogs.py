# ui_dialogs.py
import tkinter as tk
from tkinter import ttk, scrolledtext, messagebox
import json
import sys
import threading
from pathlib import Path

import process_handler

def _make_modal(app, window, description):
    try:
        window.transient(app)
        window.grab_set()
    except tk.TclError:
        app._log(f"Could not make {description} transient or grab_set.", warning=True)

def ask_confirm(app, title, message):
    return messagebox.askyesno(title, message, parent=app, icon='warning')


def show_package_json_viewer(app, project):
    pkg_window = tk.Toplevel(app)
    pkg_window.title(f"package.json - {project['name']}")
    pkg_window.geometry("600x500")
    _make_modal(app, pkg_window, "package.json viewer")

    text_area = scrolledtext.ScrolledText(pkg_window, wrap=tk.WORD,
                                          font=("Consolas", 9) if sys.platform == "win32" else ("Monaco", 10))
    text_area.pack(fill=tk.BOTH, expand=True, padx=10, pady=10)

    package_json_path = Path(project["projectPath"]) / "package.json"
    try:
        with open(package_json_path, 'r', encoding='utf-8') as f:
            text_area.insert(tk.END, json.dumps(json.load(f), indent=2))
    except (OSError, json.JSONDecodeError) as e:
        text_area.insert(tk.END, f"Could not read {package_json_path}: {e}")
    text_area.config(state=tk.DISABLED)

    ttk.Button(pkg_window, text="Close", command=pkg_window.destroy).pack(pady=(0, 10))
    pkg_window.focus_set()


def show_open_ports_dialog(app):
    dialog = tk.Toplevel(app)
    dialog.title("Open Dev Ports")
    dialog.geometry("460x340")
    _make_modal(app, dialog, "open ports dialog")

    tree = ttk.Treeview(dialog, columns=("Port", "PID", "Process"), show="headings", selectmode="browse")
    tree.heading("Port", text="Port")
    tree.heading("PID", text="PID")
    tree.heading("Process", text="Process")
    tree.column("Port", width=70, anchor=tk.CENTER, stretch=tk.NO)
    tree.column("PID", width=80, anchor=tk.CENTER, stretch=tk.NO)
    tree.column("Process", width=200, anchor=tk.W, stretch=tk.YES)
    tree.pack(fill=tk.BOTH, expand=True, padx=10, pady=(10, 5))

    status_label = ttk.Label(dialog, text="Scanning ports...")
    status_label.pack(fill=tk.X, padx=10)

    buttons_frame = ttk.Frame(dialog)
    buttons_frame.pack(fill=tk.X, padx=10, pady=10)

    def populate(port_infos):
        if not dialog.winfo_exists():
            return
        tree.delete(*tree.get_children())
        for info in port_infos:
            tree.insert("", tk.END, values=(info["port"], info["pid"], info["process_name"]))
        status_label.config(text=f"{len(port_infos)} listening process(es) on common dev ports.")

    def refresh():
        status_label.config(text="Scanning ports...")
        def task():
            port_infos = process_handler.list_open_ports(app)
            app.after(0, lambda infos=port_infos: populate(infos))
        threading.Thread(target=task, daemon=True).start()

    def kill_selected():
        selection = tree.selection()
        if not selection:
            return
        port = int(tree.item(selection[0], "values")[0])
        def task():
            result = process_handler.kill_single_port(app, port)
            app.after(0, lambda msg=result: [app.append_to_active_console(f"\n⚡ {msg}\n", "success"), refresh()])
        threading.Thread(target=task, daemon=True).start()

    ttk.Button(buttons_frame, text="Kill Selected", command=kill_selected).pack(side=tk.LEFT)
    ttk.Button(buttons_frame, text="Refresh", command=refresh).pack(side=tk.LEFT, padx=5)
    ttk.Button(buttons_frame, text="Close", command=dialog.destroy).pack(side=tk.RIGHT)

    refresh()


def show_activity_log(app):
    log_window = tk.Toplevel(app)
    log_window.title("Activity Log")
    log_window.geometry("760x420")

    text_area = scrolledtext.ScrolledText(log_window, wrap=tk.WORD,
                                          font=("Consolas", 9) if sys.platform == "win32" else ("Monaco", 10))
    text_area.pack(fill=tk.BOTH, expand=True, padx=10, pady=10)
    text_area.insert(tk.END, "\n".join(app.all_log_messages))
    text_area.see(tk.END)
    text_area.config(state=tk.DISABLED)

    ttk.Button(log_window, text="Close", command=log_window.destroy).pack(pady=(0, 10))
