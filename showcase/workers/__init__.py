"""QRunnable workers used by the Qt host (image decode, fragment fetch)."""
