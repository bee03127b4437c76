"""splitsnap: split a photographed bill between two people."""

__version__ = "0.1.0"
