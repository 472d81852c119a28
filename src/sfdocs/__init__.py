"""Keyword search over Salesforce developer documentation PDFs."""

__version__ = "0.1.0"
