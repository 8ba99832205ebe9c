"""Credit Ingest - canonical field mapping and report fingerprinting service"""
__version__ = "1.0.0"
