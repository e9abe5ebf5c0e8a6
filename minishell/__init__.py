"""A small interactive shell with pipes, redirections, here-documents and built-ins."""

__version__ = "0.1.0"

__all__ = ["builtins", "environment", "executor", "expand", "lexer", "shell", "syntax"]