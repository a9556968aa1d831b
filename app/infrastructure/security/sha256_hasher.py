import hashlib
import hmac

from ...application.ports.credential_hasher import CredentialHasher


class Sha256CredentialHasher(CredentialHasher):
    def digest(self, secret: str) -> str:
        return hashlib.sha256(secret.encode("utf-8")).hexdigest()

    def matches(self, secret: str, digest: str) -> bool:
        return hmac.compare_digest(self.digest(secret), digest or "")
