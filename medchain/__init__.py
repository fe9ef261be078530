"""In-memory ledger of labs, hospitals, services, certifications and orders."""

__version__ = "0.1.0"