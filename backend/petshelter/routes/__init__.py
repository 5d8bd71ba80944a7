# Routes package init
"""
Shelter Pets Backend: API Routes Package
=========================================

Route Inventory:
    - pets.py:     /pets CRUD, adoption, mood filter, image upload/removal
    - uploads.py:  GET /uploads/{path} (stored pet images)
    - health.py:   GET / and GET /health

Routes are thin: they extract request data, call PetService, and return
the response model. Errors are raised, never formatted here.
"""
