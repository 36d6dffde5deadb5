"""Security-flow CFG extraction for TypeScript codebases."""

__version__ = "0.1.0"
