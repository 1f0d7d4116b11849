"""Page builder conversion service - component recognition and multi-target export"""

__version__ = "0.1.0"
