# ui_widgets.py
import sys
import tkinter as tk
from tkinter import ttk, scrolledtext

import constants
import console_output


class ToolTip:
    def __init__(self, widget, text, delay=500):
        self.widget = widget
        self.text = text
        self.delay = delay
        self.tooltip_window = None
        self._after_id = None
        widget.bind("<Enter>", self._schedule, add="+")
        widget.bind("<Leave>", self.hide, add="+")
        widget.bind("<ButtonPress>", self.hide, add="+")

    def _schedule(self, event=None):
        self.hide()
        if self.text:
            self._after_id = self.widget.after(self.delay, self._show)

    def _show(self):
        if self.tooltip_window or not self.text:
            return
        x = self.widget.winfo_pointerx() + 12
        y = self.widget.winfo_pointery() + 12

        self.tooltip_window = tw = tk.Toplevel(self.widget)
        tw.wm_overrideredirect(True)
        tw.wm_geometry(f"+{x}+{y}")
        ttk.Label(tw, text=self.text, justify=tk.LEFT, relief=tk.SOLID, borderwidth=1,
                  background="#ffffe0", foreground="#000000").pack(ipadx=2, ipady=2)

    def hide(self, event=None):
        if self._after_id:
            self.widget.after_cancel(self._after_id)
            self._after_id = None
        if self.tooltip_window:
            self.tooltip_window.destroy()
        self.tooltip_window = None


class ConsoleView(ttk.Frame):
    """Read-only output console for one tab.

    Besides the text widget it keeps every appended (text, tag) segment, which is
    what the copy actions filter on.
    """

    def __init__(self, parent, welcome_text=constants.CONSOLE_WELCOME_TEXT, **kwargs):
        super().__init__(parent, **kwargs)
        self.welcome_text = welcome_text
        self.text = scrolledtext.ScrolledText(self, wrap=tk.WORD, state=tk.DISABLED,
                                              font=("Consolas", 9) if sys.platform == "win32" else ("Monaco", 10))
        self.text.pack(fill=tk.BOTH, expand=True)
        for tag_name, style in constants.CONSOLE_TAG_STYLES.items():
            self.text.tag_configure(tag_name, **style)
        self.text.tag_configure("welcome", foreground="#7F8C8D", justify=tk.CENTER)
        self.segments = []
        self.show_welcome()

    def show_welcome(self):
        self.clear()
        self._insert("\n\n" + self.welcome_text, "welcome")
        self._has_welcome = True

    def append(self, text, kind=""):
        if self._has_welcome:
            self.clear()
        tag = kind or console_output.auto_tag(text)
        self.segments.append((text, tag))
        self._insert(text, tag)
        self.text.see(tk.END)

    def _insert(self, text, tag):
        self.text.config(state=tk.NORMAL)
        self.text.insert(tk.END, text, (tag,) if tag else ())
        self.text.config(state=tk.DISABLED)

    def clear(self):
        self.text.config(state=tk.NORMAL)
        self.text.delete("1.0", tk.END)
        self.text.config(state=tk.DISABLED)
        self.segments = []
        self._has_welcome = False

    def get_all_text(self):
        return "".join(text for text, _ in self.segments)

    def get_tagged_text(self, kinds):
        return console_output.collect_tagged(self.segments, kinds)
