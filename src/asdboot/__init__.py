"""asdboot - bootstrap pipelines for bringing ASD live in a lending-protocol deployment."""

__version__ = "0.1.0"
