"""refsweep: reference-checked asynchronous deletion of registry contacts and hosts."""

__version__ = "0.1.0"
