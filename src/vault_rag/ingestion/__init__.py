"""
Ingestion — text extraction, chunking, embedding and upsert of uploaded files.

This module is responsible for the pipeline that turns an upload batch
(PDF or plain text) into embedded chunks stored in the tenant's
vector-store namespace.
"""
