import logging

from core.errors import Conflict, InvalidInput, NotFound
from data_access.adoptions import AdoptionRepository
from data_access.pets import PetRepository
from models.adoption import ACCEPTED, PENDING, REJECTED, AdoptionRequest, ContactInfo
from models.ids import is_object_id
from models.pet import Pet
from models.user import AuthContext
from services.auth_service import ensure_owner

logger = logging.getLogger(__name__)


class AdoptionService:
    """
    Adoption requests move pending -> accepted or pending -> rejected, never back.

    Authorization on a request is derived from the referenced pet's owner;
    the pet is always reloaded from the store before the check.
    """

    def __init__(self, adoptions: AdoptionRepository, pets: PetRepository):
        self.adoptions = adoptions
        self.pets = pets

    def _load_pet(self, pet_id: str) -> Pet:
        if not is_object_id(pet_id):
            raise InvalidInput("Invalid pet id")
        pet = self.pets.get_pet(pet_id)
        if pet is None:
            raise NotFound("Pet not found")
        return pet

    def _load_request(self, adoption_id: str) -> AdoptionRequest:
        if not is_object_id(adoption_id):
            raise InvalidInput("Invalid adoption request id")
        request = self.adoptions.get_request(adoption_id)
        if request is None:
            raise NotFound("Adoption request not found")
        return request

    def submit(self, pet_id: str, requester: AuthContext, contact: ContactInfo) -> AdoptionRequest:
        if not contact.phone.strip() or not contact.address.strip():
            raise InvalidInput("Phone and address are required")

        pet = self._load_pet(pet_id)
        if pet.adopted:
            raise Conflict("Pet is already adopted")

        request = AdoptionRequest(
            pet_id=pet.pet_id,
            pet_name=pet.name,
            pet_image=pet.image,
            requester_email=requester.email,
            requester_name=requester.name,
            phone=contact.phone.strip(),
            address=contact.address.strip(),
        )
        self.adoptions.create_request(request)
        logger.info(
            f"Adoption request {request.adoption_id} submitted for pet {pet.pet_id}",
            extra={"actor": requester.email, "adoption_id": request.adoption_id, "pet_id": pet.pet_id},
        )
        return request

    def accept(self, adoption_id: str, actor: AuthContext) -> AdoptionRequest:
        request = self._load_request(adoption_id)
        pet = self.pets.get_pet(request.pet_id)
        if pet is None:
            raise NotFound("Pet not found")
        ensure_owner(actor, pet.owner_email)

        if request.status != PENDING:
            raise Conflict(f"Adoption request is already {request.status}")
        if pet.adopted:
            raise Conflict("Pet is already adopted")

        if not self.adoptions.accept_request(request.adoption_id, pet.pet_id):
            # Lost a race against another accept or reject; report what changed.
            current = self.adoptions.get_request(request.adoption_id)
            if current is not None and current.status != PENDING:
                raise Conflict(f"Adoption request is already {current.status}")
            raise Conflict("Pet is already adopted")

        logger.info(
            f"Adoption request {adoption_id} accepted, pet {pet.pet_id} adopted",
            extra={"actor": actor.email, "adoption_id": adoption_id, "pet_id": pet.pet_id},
        )
        self._close_siblings(pet.pet_id, accepted_id=request.adoption_id)
        return request.model_copy(update={"status": ACCEPTED})

    def _close_siblings(self, pet_id: str, accepted_id: str) -> None:
        for sibling in self.adoptions.list_requests_for_pet(pet_id):
            if sibling.adoption_id == accepted_id or sibling.status != PENDING:
                continue
            if self.adoptions.update_status_if_pending(sibling.adoption_id, REJECTED):
                logger.info(
                    f"Adoption request {sibling.adoption_id} closed, pet {pet_id} was adopted",
                    extra={"adoption_id": sibling.adoption_id, "pet_id": pet_id},
                )

    def reject(self, adoption_id: str, actor: AuthContext) -> AdoptionRequest:
        request = self._load_request(adoption_id)
        pet = self.pets.get_pet(request.pet_id)
        if pet is None:
            raise NotFound("Pet not found")
        ensure_owner(actor, pet.owner_email)

        if request.status != PENDING or not self.adoptions.update_status_if_pending(adoption_id, REJECTED):
            current = self.adoptions.get_request(adoption_id) or request
            raise Conflict(f"Adoption request is already {current.status}")

        logger.info(
            f"Adoption request {adoption_id} rejected",
            extra={"actor": actor.email, "adoption_id": adoption_id, "pet_id": pet.pet_id},
        )
        return request.model_copy(update={"status": REJECTED})

    def list_owner_inbox(self, owner: AuthContext) -> list[AdoptionRequest]:
        requests = []
        for pet in self.pets.list_pets_by_owner(owner.email):
            requests.extend(self.adoptions.list_requests_for_pet(pet.pet_id))
        return sorted(requests, key=lambda r: r.created_at, reverse=True)

    def list_my_requests(self, requester: AuthContext) -> list[AdoptionRequest]:
        return self.adoptions.list_requests_by_requester(requester.email)
