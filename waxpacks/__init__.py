"""Language packs that scan source trees for design-system component usage."""

__version__ = "0.1.0"
__all__ = ["__version__"]