"""Infrastructure helpers (encryption, custom model fields)."""
