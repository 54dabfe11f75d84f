"""Convert tailored resume markdown into styled Word documents."""

__version__ = "1.0.0"
