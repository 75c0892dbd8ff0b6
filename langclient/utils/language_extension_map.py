"""
Mapping of LSP language identifiers to file extensions and file names.
"""

LANGUAGE_EXTENSION_MAP = {
    "javascript": [".js", ".mjs", ".cjs"],
    "javascriptreact": [".jsx"],
    "typescript": [".ts", ".mts", ".cts"],
    "typescriptreact": [".tsx"],
    "json": [".json", ".jsonc"],
    "python": [".py", ".pyi"],
    "rust": [".rs"],
    "go": [".go"],
    "java": [".java"],
    "markdown": [".md"],
    "dockerfile": ["Dockerfile"],
    "makefile": ["Makefile", "GNUmakefile"],
}
