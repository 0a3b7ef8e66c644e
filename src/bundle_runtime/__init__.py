"""Bundle runtime: executes one action of a bundle through its mixins and collects bundle outputs."""

__version__ = "0.1.0"
