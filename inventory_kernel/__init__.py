"""
Inventory Kernel

An append-only stock ledger with:
- Draft / Posted / Voided document lifecycle shared by every document type
- Gap-free document numbering
- Serial and batch identity tracking
- On-hand and cost derived purely from ledger history
"""

__version__ = "0.1.0"
