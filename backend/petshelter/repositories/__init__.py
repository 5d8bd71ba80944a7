# Repositories package init
"""
Shelter Pets Backend: Persistence Layer
========================================

What:  Per-record storage for pets behind a small abstract interface.
How:   PetService talks to a PetRepository; the SQLAlchemy implementation is
       built per request around the request's AsyncSession.

Repository Inventory:
    - PetRepository (abstract): add / get / list_newest_first / save / delete
    - SqlAlchemyPetRepository: implementation over the `pets` table
"""
