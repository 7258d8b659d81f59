"""D&D Beyond class progression synthesis."""

__version__ = "0.1.0"
