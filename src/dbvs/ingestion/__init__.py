"""Feed ingestion: NVD payload schema and collectors"""
