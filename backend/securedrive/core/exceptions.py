"""
Error taxonomy for the cryptosystem, the premium aggregator and the services.

Every error carries a short machine-readable ``code`` so the dispatch layer
and the HTTP layer can report the precise reason without exposing ciphertext
internals.
"""


class SecureDriveError(Exception):
    """Base class for all SecureDrive errors."""

    code = "error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class RangeError(SecureDriveError):
    """Plaintext, scalar or randomness outside its valid interval."""

    code = "range_error"


class InvalidRandomness(SecureDriveError):
    """Caller-supplied encryption randomness is unusable."""

    code = "invalid_randomness"


class NoInverse(SecureDriveError):
    """A modular inverse mod N² does not exist."""

    code = "no_inverse"


class CorruptCiphertext(NoInverse):
    """Ciphertext or decryption hint is malformed or has been tampered with."""

    code = "corrupt_ciphertext"


class VerificationFailed(SecureDriveError):
    """Decryption hint does not correspond to the ciphertext."""

    code = "verification_failed"


class NoModularInverse(SecureDriveError):
    """N and lambda are not coprime: the key material is defective."""

    code = "no_modular_inverse"


class NotFound(SecureDriveError):
    """Referenced record is absent from the world state."""

    code = "not_found"


class AlreadyExists(SecureDriveError):
    """A record already exists under the identifier."""

    code = "already_exists"


class InvalidArgument(SecureDriveError, ValueError):
    """Malformed input from an external caller."""

    code = "invalid_argument"


class ConcurrentModification(SecureDriveError):
    """A conditional write lost a race against another writer."""

    code = "concurrent_modification"
