"""Configuration handling and label, custom, cpu, battery and clock module logic for a Wayland status bar."""

__version__ = "0.1.0"

__all__ = ["__version__"]