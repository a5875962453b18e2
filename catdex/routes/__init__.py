"""
Catdex — API Routes Package
=============================

Route Inventory:
    - cats.py:    GET  /api/cats          (list, at most 100)
                  GET  /api/cat/{id}      (single record)
                  POST /api/add_cat       (multipart create)
    - health.py:  GET  /health            (database connectivity)

Routes are thin: they extract request data, call CatService, and return a
status code. Business rules and side-effect ordering live in services.
"""
