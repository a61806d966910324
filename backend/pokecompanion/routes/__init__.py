"""
PokéCompanion Backend: API Routes Package
==========================================

Route Inventory:
    - auth.py:      /api/auth/register, /login, /me, /change-password
    - favorites.py: /api/favorites
    - history.py:   /api/search-history
    - lists.py:     /api/lists
    - health.py:    /health

Routes stay thin: extract input, authenticate, check ownership, call a
service, shape the response.
"""
