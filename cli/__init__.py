"""Command-line wrappers around the cleaner and the JSON-LD extractor."""
