# console_output.py
import constants

def strip_ansi(text):
    return constants.ANSI_PATTERN.sub("", text)

def classify_stream_line(text, stream):
    """Console tag for a line of script output: "error", "warning" or ""."""
    lower = text.lower()
    if stream == "stderr":
        if "warning" in lower or "WARN" in text:
            return "warning"
        return "error"

    if "error:" in lower or "fail" in lower or "exception" in lower:
        return "error"
    if "warn" in lower or "warning:" in lower:
        return "warning"
    return ""

def auto_tag(text):
    # Used for messages appended without an explicit kind
    lower = text.lower()
    if lower.startswith("error") or "error:" in lower:
        return "error"
    if lower.startswith("warn") or "warning:" in lower:
        return "warning"
    return ""

def detect_server_url(text):
    for pattern in constants.SERVER_URL_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(0)
    return None

def collect_tagged(segments, kinds):
    """Joins the text of (text, tag) console segments whose tag is in kinds."""
    kinds = set(kinds)
    return "\n".join(text.strip("\n") for text, tag in segments if tag in kinds)
