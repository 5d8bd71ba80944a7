# Services package init
"""
Shelter Pets Backend: Services Layer
=====================================

What:  Business logic between routes (HTTP) and repositories (persistence).

Service Inventory:
    - mood:        derive_mood(), the pure mood policy
    - PetService:  CRUD, adoption and mood filtering over pet records
    - FileService: image validation, storage and reclamation
"""
