"""
Key material service: registers and loads Verifier/Decryptor documents.
"""
import logging

from securedrive.core.exceptions import AlreadyExists, InvalidArgument, NotFound
from securedrive.crypto.homomorphic.paillier import Decryptor, Verifier, derive_key_pair
from securedrive.ledger import keys
from securedrive.ledger.world_state import WorldState
from securedrive.schemas.keys import DecryptorRecord, VerifierRecord


logger = logging.getLogger(__name__)


class KeyService:
    """Service for key material operations."""

    def __init__(self, state: WorldState):
        self.state = state

    async def add_verifier(self, owner_id: str, n: int, nsquare: int) -> Verifier:
        """Store the public role of ``owner_id``; fails if one already exists."""
        key = keys.verifier_key(owner_id)
        if await self.state.exists(key):
            raise AlreadyExists(f"Verifier for owner '{owner_id}' already exists")

        verifier = Verifier(n=n, nsquare=nsquare, owner_id=owner_id)
        await self.state.put_record(key, VerifierRecord.from_verifier(verifier))
        await self.state.commit()

        logger.info("Verifier for owner %s added", owner_id)
        return verifier

    async def add_decryptor(
        self,
        owner_id: str,
        p: int,
        q: int,
        n: int,
        lam: int
    ) -> Decryptor:
        """Store the private role of ``owner_id``; fails if one already exists."""
        key = keys.decryptor_key(owner_id)
        if await self.state.exists(key):
            raise AlreadyExists(f"Decryptor for owner '{owner_id}' already exists")

        decryptor = Decryptor(p=p, q=q, n=n, lam=lam, owner_id=owner_id)

        verifier_record = await self.state.get_record(keys.verifier_key(owner_id), VerifierRecord)
        if verifier_record is not None and verifier_record.n != n:
            raise InvalidArgument(f"Decryptor modulus does not match Verifier of owner '{owner_id}'")

        await self.state.put_record(key, DecryptorRecord.from_decryptor(decryptor))
        await self.state.commit()

        logger.info("Decryptor for owner %s added", owner_id)
        return decryptor

    async def register_key_pair(self, owner_id: str, p: int, q: int) -> Verifier:
        """Derive and store both roles from supplied primes."""
        verifier_key = keys.verifier_key(owner_id)
        decryptor_key = keys.decryptor_key(owner_id)
        if await self.state.exists(verifier_key) or await self.state.exists(decryptor_key):
            raise AlreadyExists(f"Key material for owner '{owner_id}' already exists")

        verifier, decryptor = derive_key_pair(p, q, owner_id)
        await self.state.put_record(verifier_key, VerifierRecord.from_verifier(verifier))
        await self.state.put_record(decryptor_key, DecryptorRecord.from_decryptor(decryptor))
        await self.state.commit()

        logger.info("Key pair for owner %s registered", owner_id)
        return verifier

    async def get_verifier(self, owner_id: str) -> Verifier:
        record = await self.state.require_record(
            keys.verifier_key(owner_id), VerifierRecord, f"Verifier for owner '{owner_id}'"
        )
        return record.to_verifier()

    async def get_decryptor(self, owner_id: str) -> Decryptor:
        record = await self.state.require_record(
            keys.decryptor_key(owner_id), DecryptorRecord, f"Decryptor for owner '{owner_id}'"
        )
        return record.to_decryptor()

    async def delete_verifier(self, owner_id: str) -> None:
        key = keys.verifier_key(owner_id)
        if not await self.state.exists(key):
            raise NotFound(f"Verifier for owner '{owner_id}' not found")
        await self.state.delete(key)
        await self.state.commit()
        logger.info("Verifier for owner %s deleted", owner_id)
