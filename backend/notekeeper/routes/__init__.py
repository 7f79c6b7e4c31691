# Routes package init
"""
Notekeeper Backend: API Routes Package
=======================================

Route Inventory:
    - notes.py:   POST   /api/v1/notes         (create)
                  GET    /api/v1/notes         (list, newest first)
                  GET    /api/v1/notes/{id}    (get)
                  PATCH  /api/v1/notes/{id}    (update, PUT also accepted)
                  DELETE /api/v1/notes/{id}    (delete)
    - health.py:  GET    /health               (service health check)
    - dependencies.py: store and request-context injection

Routes stay thin: extract the input, call the injected NoteStore with a
deadline-bearing RequestContext, return the result.
"""
