"""notesync — keeps a note store and its vector similarity index in step."""

__version__ = "0.1.0"
