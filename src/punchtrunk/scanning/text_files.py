"""Decide whether a file is text worth scanning."""

from __future__ import annotations

from pathlib import Path

# Extensions treated as source/text without further evidence
TEXT_EXTENSIONS = frozenset(
    {
        ".py", ".pyi", ".go", ".rs", ".java", ".kt", ".kts", ".scala", ".groovy",
        ".c", ".h", ".cc", ".cpp", ".cxx", ".hpp", ".hh", ".m", ".mm", ".cs",
        ".fs", ".swift", ".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx", ".vue",
        ".svelte", ".rb", ".php", ".pl", ".pm", ".lua", ".r", ".jl", ".dart",
        ".ex", ".exs", ".erl", ".hs", ".clj", ".elm", ".sh", ".bash", ".zsh",
        ".fish", ".ps1", ".sql", ".html", ".htm", ".css", ".scss", ".sass",
        ".less", ".json", ".yaml", ".yml", ".toml", ".ini", ".cfg", ".xml",
        ".md", ".rst", ".txt", ".proto", ".graphql", ".tf", ".hcl", ".cmake",
        ".gradle", ".bzl", ".nix",
    }
)

# Extensionless file names that are conventionally text
TEXT_FILENAMES = frozenset(
    {"Makefile", "Dockerfile", "Containerfile", "Jenkinsfile", "Rakefile", "Gemfile",
     "BUILD", "WORKSPACE", "Vagrantfile", "Procfile"}
)

# Extensions never scanned, whatever the content looks like
BINARY_EXTENSIONS = frozenset(
    {
        ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".ico", ".webp", ".pdf", ".zip",
        ".gz", ".tgz", ".bz2", ".xz", ".7z", ".tar", ".jar", ".war", ".class",
        ".so", ".dylib", ".dll", ".exe", ".o", ".a", ".lib", ".bin", ".pyc",
        ".pyo", ".whl", ".woff", ".woff2", ".ttf", ".otf", ".eot", ".mp3",
        ".mp4", ".mov", ".avi", ".wav", ".sqlite", ".db", ".parquet", ".lock",
    }
)

SNIFF_BYTES = 8192


def looks_binary(sample: bytes) -> bool:
    """NUL bytes never appear in text files we care about."""
    return b"\x00" in sample


def is_text_file(path: Path) -> bool:
    """Extension allow/deny lists first, then a content sniff.

    Files with an unknown extension must also decode as UTF-8 in their first
    block. Unreadable files are not text.
    """
    suffix = path.suffix.lower()
    if suffix in BINARY_EXTENSIONS:
        return False
    known = suffix in TEXT_EXTENSIONS or path.name in TEXT_FILENAMES

    try:
        with open(path, "rb") as f:
            sample = f.read(SNIFF_BYTES)
    except OSError:
        return False

    if looks_binary(sample):
        return False
    if known:
        return True

    try:
        sample.decode("utf-8")
    except UnicodeDecodeError as e:
        # A multi-byte character cut at the sample boundary is still text
        if e.start < len(sample) - 3:
            return False
    return True
