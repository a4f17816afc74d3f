"""Wire-level helpers for the MrCool cloud service."""
