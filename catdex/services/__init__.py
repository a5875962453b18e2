"""
Catdex — Services Layer
=========================

Service Inventory:
    - CatRepository:  list / get_by_id / insert (blocking, runs on worker threads)
    - UploadIngestor: multipart partitioning and collision-free image writes
    - validation:     id range and required form fields
    - CatService:     orchestrates the three endpoints
"""
