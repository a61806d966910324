"""
PokéCompanion Backend: Services Layer
======================================

Business logic between the routes (HTTP) and the database.

Service Inventory:
    - HistoryStore: bounded, de-duplicated per-user search history
    - AuthService: registration, login, profile, password change
    - FavoritesService: favorite Pokémon per user
    - CustomListsService: named Pokémon lists per user

Instances are built once by create_app() and stored on app.state; routes get
them through the providers in pokecompanion.dependencies.
"""
