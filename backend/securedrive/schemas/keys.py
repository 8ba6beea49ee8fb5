"""
Key material schemas.

The Verifier and Decryptor documents are stored under separate keys so the
Verifier's document can never carry lambda.
"""
from pydantic import BaseModel, ConfigDict, Field

from securedrive.crypto.homomorphic.paillier import Decryptor, Verifier
from securedrive.schemas.common import BigInt, LedgerRecord


class VerifierRecord(LedgerRecord):
    """Stored public key material."""

    owner_id: str = Field(..., alias="ownerID", min_length=1)
    n: BigInt = Field(..., description="Public modulus N")
    nsquare: BigInt = Field(..., description="N squared")

    def to_verifier(self) -> Verifier:
        return Verifier(n=self.n, nsquare=self.nsquare, owner_id=self.owner_id)

    @classmethod
    def from_verifier(cls, verifier: Verifier) -> "VerifierRecord":
        return cls(owner_id=verifier.owner_id, n=verifier.n, nsquare=verifier.nsquare)


class DecryptorRecord(LedgerRecord):
    """Stored private key material."""

    owner_id: str = Field(..., alias="ownerID", min_length=1)
    p: BigInt
    q: BigInt
    n: BigInt
    lam: BigInt = Field(..., alias="lambda")

    def __repr__(self) -> str:
        return f"DecryptorRecord(owner_id={self.owner_id!r})"

    __str__ = __repr__

    def to_decryptor(self) -> Decryptor:
        return Decryptor(p=self.p, q=self.q, n=self.n, lam=self.lam, owner_id=self.owner_id)

    @classmethod
    def from_decryptor(cls, decryptor: Decryptor) -> "DecryptorRecord":
        return cls(
            owner_id=decryptor.owner_id,
            p=decryptor.p,
            q=decryptor.q,
            n=decryptor.n,
            lam=decryptor.lam,
        )


class VerifierCreate(BaseModel):
    """Request to register a Verifier."""

    owner_id: str = Field(..., min_length=1, description="Owning identity")
    n: BigInt = Field(..., description="Public modulus N (decimal string)")
    nsquare: BigInt = Field(..., description="N squared (decimal string)")


class DecryptorCreate(BaseModel):
    """Request to register a Decryptor."""

    model_config = ConfigDict(populate_by_name=True)

    owner_id: str = Field(..., min_length=1, description="Owning identity")
    p: BigInt
    q: BigInt
    n: BigInt
    lam: BigInt = Field(..., alias="lambda")


class KeyPairCreate(BaseModel):
    """Request to register both roles from supplied primes."""

    owner_id: str = Field(..., min_length=1, description="Owning identity")
    p: BigInt = Field(..., description="First prime factor")
    q: BigInt = Field(..., description="Second prime factor")


class VerifierResponse(BaseModel):
    """Public key material."""

    owner_id: str
    n: BigInt
    nsquare: BigInt
