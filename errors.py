# errors.py
# The message of each exception is shown to the user as-is in the tab console.

class CommanderError(Exception):
    pass

class ProjectLoadError(CommanderError):
    pass

class ScriptAlreadyRunningError(CommanderError):
    pass

class ScriptNotRunningError(CommanderError):
    pass

class ScriptStartError(CommanderError):
    pass
