"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = ["add", "queue", "upload", "list", "show", "download", "info", "clear", "exit", "help"]

STYLE = Style.from_dict(
    {
        "prompt": "#94B4C1 bold",
        "command": "#0088ff bold",
    }
)

STEEL_BLUE = "\033[38;2;148;180;193m"
GREEN = "\033[32m"
RED = "\033[31m"
RESET = "\033[0m"

LOGO = f"""{STEEL_BLUE}
 ██████╗ ██╗████████╗███████╗████████╗ ██████╗ ██████╗ ███████╗
 ██╔══██╗██║╚══██╔══╝██╔════╝╚══██╔══╝██╔═══██╗██╔══██╗██╔════╝
 ██████╔╝██║   ██║   ███████╗   ██║   ██║   ██║██████╔╝█████╗
 ██╔══██╗██║   ██║   ╚════██║   ██║   ██║   ██║██╔══██╗██╔══╝
 ██████╔╝██║   ██║   ███████║   ██║   ╚██████╔╝██║  ██║███████╗
 ╚═════╝ ╚═╝   ╚═╝   ╚══════╝   ╚═╝    ╚═════╝ ╚═╝  ╚═╝╚══════╝
{RESET}"""

WELCOME_TITLE = "BitStore CLI - Content-addressed block storage"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "bitstore> "

HELP_TEXT = """Available commands:
  add <file> [file ...]               Queue files for upload
  queue                               Show queued files
  upload                              Upload all queued files, one at a time (Ctrl-C cancels)
  list                                List stored files
  show <file-id>                      Show a stored file and its block fingerprints
  download <file-id> [output_path]    Download a file (defaults to the configured download directory)
  info                                Show storage settings (block size)
  clear                               Clear screen and redisplay welcome message
  help                                Show this help
  exit                                Exit REPL

Examples:
  add report.pdf photos/cat.png
  upload
  list
  download 3f2a9c1e-... downloads/report.pdf"""
