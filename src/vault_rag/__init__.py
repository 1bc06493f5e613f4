"""Document ingestion and tenant-isolated retrieval for question answering."""

__version__ = "0.1.0"
