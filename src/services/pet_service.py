import logging

from core.errors import InvalidInput, NotFound
from data_access.pets import PetRepository
from models.ids import is_object_id
from models.pet import Pet
from models.user import AuthContext

logger = logging.getLogger(__name__)


class PetService:
    def __init__(self, pets: PetRepository):
        self.pets = pets

    def create_pet(self, owner: AuthContext, **fields) -> Pet:
        # Ownership comes from the caller, never from the payload.
        fields.pop("owner_email", None)
        fields.pop("adopted", None)
        pet = Pet(owner_email=owner.email, **fields)
        return self.pets.create_pet(pet)

    def get_pet(self, pet_id: str) -> Pet:
        if not is_object_id(pet_id):
            raise InvalidInput("Invalid pet id")
        pet = self.pets.get_pet(pet_id)
        if pet is None:
            raise NotFound("Pet not found")
        return pet

    def list_available_pets(self, search: str | None = None, category: str | None = None) -> list[Pet]:
        return self.pets.list_available_pets(search=search, category=category)
