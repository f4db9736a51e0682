"""Default layout script written by ``celeris create``."""

import re

DEFAULT_LAYOUT = '''\
# Layout for the "{{session_name}}" session.
#
# Runs as Python with the celeris API already imported:
#   Session, Window, Pane, Direction, Percentage, Absolute, tmux,
#   SESSION_NAME, SESSION_ROOT

session_root = "{{session_root}}"

# Create the session; root is the working directory windows start in
session = Session(root=session_root)

# Create a window; every option is optional
window = Window(session, {
    # "name": "editor",          # window name
    # "root": "<window_root>",   # window's working directory
    # "raw_command": "htop",     # run instead of the shell
})

# Run a command in a pane
# window.default_pane().run_command("nvim")

# Split a pane; direction is "horizontal" or "vertical"
# other = window.default_pane().split("horizontal", {
#     "size": {"type": "percentage", "value": 30},  # or "absolute"
#     "root": "<pane_root>",
# })

# Anything the API doesn't cover goes straight to tmux
# tmux("set-option", "-t", session.target(), "status-style", "bg=blue")

window.select()

# Attach last; the session is attached anyway if the script doesn't
session.attach()
'''

_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")


def render(template: str, values: dict[str, str]) -> str:
    """Substitute ``{{key}}`` placeholders; unknown keys are left as they are."""

    def _sub(match: re.Match) -> str:
        key = match.group(1)
        return values[key] if key in values else match.group(0)

    return _PLACEHOLDER.sub(_sub, template)


def default_layout(session_name: str, session_root: str) -> str:
    # Values land inside a Python string literal
    quote = {k: v.replace("\\", "\\\\").replace('"', '\\"')
             for k, v in (("session_name", session_name), ("session_root", session_root))}
    return render(DEFAULT_LAYOUT, quote)
