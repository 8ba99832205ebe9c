"""Credit Ingest - admin scripts"""
