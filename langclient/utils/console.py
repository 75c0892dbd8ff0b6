"""Global console singleton with consistent color scheme for Rich output."""

from typing import Optional

from rich.console import Console
from rich.theme import Theme


class LangClientConsole:
    """Singleton console class with consistent color scheme and styling."""

    _instance: Optional["LangClientConsole"] = None
    _console: Optional[Console] = None

    COLOR_SCHEME = {
        # Status colors
        "success": "bold green",
        "error": "bold red",
        "warning": "bold yellow",
        "info": "bold blue",
        "process": "bold cyan",
        # Text colors
        "dim": "dim white",
        # Semantic colors
        "path": "bright_yellow",
        "command": "bright_green",
        "key": "cyan",
    }

    def __new__(cls) -> "LangClientConsole":
        """Singleton pattern implementation."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize the console only once."""
        if self._console is None:
            theme = Theme(self.COLOR_SCHEME)
            # stderr keeps stdout free for command output
            self._console = Console(theme=theme, stderr=True)

    @property
    def console(self) -> Console:
        """Get the rich console instance."""
        return self._console

    def print(self, *args, **kwargs):
        """Print with the global console."""
        return self._console.print(*args, **kwargs)

    def success(self, message: str):
        """Print success message."""
        self._console.print(f"✅ {message}", style="success")

    def error(self, message: str):
        """Print error message."""
        self._console.print(f"❌ {message}", style="error")

    def warning(self, message: str):
        """Print warning message."""
        self._console.print(f"⚠️  {message}", style="warning")

    def info(self, message: str):
        """Print info message."""
        self._console.print(f"ℹ️  {message}", style="info")

    def process(self, message: str):
        """Print process/loading message."""
        self._console.print(f"🔄 {message}", style="process")

    def path(self, message: str):
        """Print path with consistent styling."""
        self._console.print(message, style="path")

    def dim(self, message: str):
        """Print dimmed text."""
        self._console.print(message, style="dim")


# Global singleton instance
console = LangClientConsole()
