"""ftclean - Safe selection and cleanup of ftrack asset versions and media."""

__version__ = "0.1.0"
