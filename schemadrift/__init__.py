"""schemadrift — drift detection and failure policy for schema compilers in CI."""

__version__ = "0.1.0"
