# constants.py
import re
import sys

# --- TTKThemes ---
TTKTHEMES_AVAILABLE = False
try:
    from ttkthemes import ThemedTk
    TTKTHEMES_AVAILABLE = True
except ImportError:
    pass # Will be handled in main app

# --- Drag and drop (tkinterdnd2) ---
TKDND_AVAILABLE = False
try:
    from tkinterdnd2 import DND_FILES, TkinterDnD
    TKDND_AVAILABLE = True
except ImportError:
    pass # Folders can still be opened from the menu

DEFAULT_THEME = "arc"

# --- Paths & Config ---
APP_NAME_FOR_CONFIG = "NpmCommander" # Used for creating app-specific config folder
SETTINGS_FILE_NAME = "settings.json"
HISTORY_FILE_NAME = "history.json"
MAX_HISTORY = 10

# --- Commands ---
NPM_CMD = "npm.cmd" if sys.platform == "win32" else "npm"
OSASCRIPT_CMD = "osascript"

# --- Scripts ---
SERVER_SCRIPTS = {"dev", "start", "serve"} # Trigger dev cleanup before launch
URL_SCRIPTS = {"dev", "preview", "start", "serve"} # Keep the detected URL alive
INSTALL_SCRIPT_NAME = "install"

# --- Dev Environment Cleanup ---
DEV_CLEANUP_PORT = 3000
DEV_LOCK_FILE = ".next/dev/lock"
COMMON_DEV_PORTS = [
    3000, 3001, 3002, 3003, 3004, 3005, 3006, 3007, 3008, 3009, 3010,
    5173, # Vite
    8000, 8080,
    5560, 8877,
]

# --- Process Stop Timeouts (seconds) ---
STOP_TERMINATE_TIMEOUT = 3
STOP_KILL_TIMEOUT = 2

# --- Output Scanning ---
ANSI_PATTERN = re.compile(r"[\u001b\u009b][\[()#;?]*(?:[0-9]{1,4}(?:;[0-9]{0,4})*)?[0-9A-ORZcf-nqry=><]")
SERVER_URL_PATTERNS = [
    re.compile(r"https?://localhost:\d+", re.IGNORECASE),
    re.compile(r"https?://127\.0\.0\.1:\d+", re.IGNORECASE),
    re.compile(r"https?://\[?::1\]?:\d+", re.IGNORECASE),
]

# --- Console Visuals ---
CONSOLE_TAG_STYLES = {
    "info": {"foreground": "#3498DB"},
    "success": {"foreground": "#2ECC71"},
    "warning": {"foreground": "#F39C12"},
    "error": {"foreground": "#E74C3C"},
}
CONSOLE_WELCOME_TEXT = "NO PROJECT LOADED\n\nUse 'Open Project' or the Recent Projects menu to get started.\n"
CONSOLE_WELCOME_DROP_TEXT = "NO PROJECT LOADED\n\nDrop a project folder here, or use 'Open Project' or the Recent Projects menu.\n"

SYMBOL_RUN = "▶"
SYMBOL_STOP = "■"

# --- Log Prefixes ---
LOG_PREFIX_INFO = ""
LOG_PREFIX_WARNING = "[WARN] "
LOG_PREFIX_ERROR = "[ERR] "
