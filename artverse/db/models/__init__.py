from artverse.db.models.artwork import Artwork
from artverse.db.models.file_record import FileRecord
from artverse.db.models.gallery import Gallery
from artverse.db.models.user import User

__all__ = ["Artwork", "FileRecord", "Gallery", "User"]
