"""hyperMILL settings import and server file cache tracking."""

__version__ = "0.1.0"
