"""ApsaraDB for MongoDB instance provisioner."""

__version__ = "1.0.0"
