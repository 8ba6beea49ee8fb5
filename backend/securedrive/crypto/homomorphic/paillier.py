"""
Paillier-family additively homomorphic cryptosystem with split decryption.

Ciphertexts live in the multiplicative group mod N² and plaintexts in Z_N:

    E(m, r) = (1 + m*N) * r^N mod N²

which supports, without decryption:

    E(m1) * E(m2)   = E(m1 + m2)
    E(m1) * E(m2)^-1 = E(m1 - m2)
    E(m)^a          = E(a * m)

Decryption is split between two roles derived from one key pair:

- The Verifier holds only N. It can encrypt and combine ciphertexts, and it
  hands the public projection R = C mod N to the Decryptor.
- The Decryptor holds lambda = lcm(p-1, q-1) and returns
  R' = R^(N^-1 mod lambda) mod N, which is the N-th root of R, i.e. the
  randomness r of the ciphertext reduced mod N.
- The Verifier checks R'^N == C (mod N) before it strips r^N from C and
  reads m off (1 + m*N).

All plaintext arithmetic is mod N: a "negative" intermediate value such as
-2 is carried as N - 2.
"""
import math
import secrets
from dataclasses import dataclass, field
from typing import Iterable, Tuple

from securedrive.core.exceptions import (
    CorruptCiphertext,
    InvalidArgument,
    InvalidRandomness,
    NoModularInverse,
    RangeError,
    VerificationFailed,
)


def _check_plaintext(m: int, n: int) -> None:
    if m < 0 or m >= n:
        raise RangeError(f"plaintext must be in [0, N-1], got {m}")


def _check_ciphertext(c: int, nsquare: int) -> None:
    if c <= 0 or c >= nsquare:
        raise CorruptCiphertext("ciphertext outside [1, N²-1]")


def _encrypt(m: int, r: int, n: int, nsquare: int) -> int:
    return ((1 + m * n) * pow(r, n, nsquare)) % nsquare


def _random_unit(n: int) -> int:
    """Draw r uniformly from [1, N-1] with gcd(r, N) = 1."""
    while True:
        r = secrets.randbelow(n - 1) + 1
        if math.gcd(r, n) == 1:
            return r


def encrypt(m: int, n: int) -> int:
    """Encrypt ``m`` under modulus ``n`` with fresh randomness."""
    _check_plaintext(m, n)
    return _encrypt(m, _random_unit(n), n, n * n)


def encrypt_with_custom_random(m: int, r: int, n: int) -> int:
    """
    Encrypt ``m`` with caller-supplied randomness ``r``.

    Equal ``(m, r)`` pairs give equal ciphertexts, so ``r`` must never be
    reused across unrelated plaintexts whose combination an observer sees.
    """
    if r < 1 or r > n - 1:
        raise InvalidRandomness("r must be in the range [1, N-1]")
    if math.gcd(r, n) != 1:
        raise InvalidRandomness("r must be coprime to N")
    _check_plaintext(m, n)
    return _encrypt(m, r, n, n * n)


def homomorphic_addition(c1: int, c2: int, n: int) -> int:
    """Ciphertext of the sum of the two underlying plaintexts."""
    nsquare = n * n
    _check_ciphertext(c1, nsquare)
    _check_ciphertext(c2, nsquare)
    return (c1 * c2) % nsquare


def homomorphic_sum(ciphertexts: Iterable[int], n: int) -> int:
    """Left fold of homomorphic_addition starting from 1."""
    nsquare = n * n
    result = 1
    count = 0
    for c in ciphertexts:
        _check_ciphertext(c, nsquare)
        result = (result * c) % nsquare
        count += 1
    if count == 0:
        raise InvalidArgument("homomorphic sum of an empty list")
    return result


def homomorphic_subtraction(c1: int, c2: int, n: int) -> int:
    """Ciphertext of (m1 - m2) mod N."""
    nsquare = n * n
    _check_ciphertext(c1, nsquare)
    _check_ciphertext(c2, nsquare)
    try:
        c2_inverse = pow(c2, -1, nsquare)
    except ValueError:
        raise CorruptCiphertext("subtrahend ciphertext is not invertible mod N²")
    return (c1 * c2_inverse) % nsquare


def homomorphic_multiplication(c: int, alpha: int, n: int) -> int:
    """Ciphertext of (alpha * m) mod N for a public scalar alpha >= 0."""
    nsquare = n * n
    _check_ciphertext(c, nsquare)
    if alpha < 0:
        raise RangeError(f"scalar must be non-negative, got {alpha}")
    return pow(c, alpha, nsquare)


def compute_r(c: int, n: int) -> int:
    """Public projection of a ciphertext handed to the Decryptor."""
    _check_ciphertext(c, n * n)
    return c % n


def compute_r_prime(r: int, n: int, lam: int) -> int:
    """N-th root of ``r`` mod N; needs the secret ``lam``."""
    try:
        n_inverse = pow(n, -1, lam)
    except ValueError:
        raise NoModularInverse("N is not invertible modulo lambda")
    return pow(r, n_inverse, n)


def verify_and_decrypt(c: int, r_prime: int, n: int) -> int:
    """
    Check that ``r_prime`` belongs to ``c`` and recover the plaintext.

    Raises:
        VerificationFailed: r_prime^N mod N differs from c mod N.
        CorruptCiphertext: the unblinded value is not of the form 1 + m*N.
    """
    nsquare = n * n
    _check_ciphertext(c, nsquare)

    if pow(r_prime, n, n) != c % n:
        raise VerificationFailed("decryption hint does not match ciphertext")

    s = pow(r_prime, n, nsquare)
    try:
        s_inverse = pow(s, -1, nsquare)
    except ValueError:
        raise CorruptCiphertext("blinding factor is not invertible mod N²")

    unblinded = (c * s_inverse) % nsquare
    m, remainder = divmod(unblinded - 1, n)
    if remainder != 0 or m < 0:
        raise CorruptCiphertext("unblinded ciphertext is not of the form 1 + m*N")
    return m


def decode_signed(m: int, n: int) -> int:
    """Centered representative of a residue: values above N//2 read as m - N."""
    return m - n if m > n // 2 else m


@dataclass(frozen=True)
class Verifier:
    """Public-capability view of a key pair."""

    n: int
    owner_id: str
    nsquare: int = field(default=0)

    def __post_init__(self):
        if self.n < 3 or self.n % 2 == 0:
            raise InvalidArgument("N must be an odd integer greater than 2")
        if self.nsquare == 0:
            object.__setattr__(self, "nsquare", self.n * self.n)
        elif self.nsquare != self.n * self.n:
            raise InvalidArgument("nsquare does not equal N²")

    def encrypt(self, m: int) -> int:
        return encrypt(m, self.n)

    def encrypt_with_custom_random(self, m: int, r: int) -> int:
        return encrypt_with_custom_random(m, r, self.n)

    def homomorphic_addition(self, c1: int, c2: int) -> int:
        return homomorphic_addition(c1, c2, self.n)

    def homomorphic_sum(self, ciphertexts: Iterable[int]) -> int:
        return homomorphic_sum(ciphertexts, self.n)

    def homomorphic_subtraction(self, c1: int, c2: int) -> int:
        return homomorphic_subtraction(c1, c2, self.n)

    def homomorphic_multiplication(self, c: int, alpha: int) -> int:
        return homomorphic_multiplication(c, alpha, self.n)

    def compute_r(self, c: int) -> int:
        return compute_r(c, self.n)

    def verify_and_decrypt(self, c: int, r_prime: int) -> int:
        return verify_and_decrypt(c, r_prime, self.n)


@dataclass(frozen=True, repr=False)
class Decryptor:
    """Private-capability view of a key pair. Only computes R'."""

    p: int
    q: int
    n: int
    lam: int
    owner_id: str

    def __post_init__(self):
        if self.p * self.q != self.n:
            raise InvalidArgument("N does not equal p*q")
        expected = math.lcm(self.p - 1, self.q - 1)
        if self.lam != expected:
            raise InvalidArgument("lambda does not equal lcm(p-1, q-1)")

    def __repr__(self) -> str:
        return f"<Decryptor(owner_id={self.owner_id!r})>"

    def compute_r_prime(self, r: int) -> int:
        return compute_r_prime(r, self.n, self.lam)


def derive_key_pair(p: int, q: int, owner_id: str) -> Tuple[Verifier, Decryptor]:
    """
    Build both roles from supplied primes.

    Primality of p and q is the provisioner's responsibility; this only
    checks the structural conditions the protocol depends on.
    """
    if p <= 2 or q <= 2:
        raise InvalidArgument("p and q must be odd primes")
    if p == q:
        raise InvalidArgument("p and q must be distinct")

    n = p * q
    lam = math.lcm(p - 1, q - 1)
    if math.gcd(n, lam) != 1:
        raise NoModularInverse("gcd(N, lambda) != 1")

    verifier = Verifier(n=n, owner_id=owner_id)
    decryptor = Decryptor(p=p, q=q, n=n, lam=lam, owner_id=owner_id)
    return verifier, decryptor
