from artverse.controllers.data import DataController
from artverse.controllers.galleries import ArtworkController, GalleryController, UserController
from artverse.controllers.storage import StorageController

__all__ = [
    "ArtworkController",
    "DataController",
    "GalleryController",
    "StorageController",
    "UserController",
]
