from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

logger = logging.getLogger(__name__)

DEFAULT_DAYS = 3650
DEFAULT_KEY_BITS = 2048
DEFAULT_SUBJECT = "/C=US/ST=State/L=City/O=AI-Premise/CN=localhost"


@dataclass(frozen=True)
class CertSpec:
    """Self-signed certificate parameters."""

    subject: str = DEFAULT_SUBJECT
    subject_alt_names: List[str] = field(default_factory=lambda: ["DNS:localhost", "IP:127.0.0.1"])
    days: int = DEFAULT_DAYS
    key_bits: int = DEFAULT_KEY_BITS

    @classmethod
    def from_manifest(cls, raw: Dict[str, Any]) -> "CertSpec":
        sans = raw.get("subject_alt_names")
        return cls(
            subject=str(raw.get("subject") or DEFAULT_SUBJECT),
            subject_alt_names=[str(s) for s in sans] if sans else ["DNS:localhost", "IP:127.0.0.1"],
            days=int(raw.get("days") or DEFAULT_DAYS),
            key_bits=int(raw.get("key_bits") or DEFAULT_KEY_BITS),
        )

    @property
    def san_extension(self) -> str:
        return "subjectAltName=" + ",".join(self.subject_alt_names)


def openssl_req_argv(spec: CertSpec, key_path: str, cert_path: str) -> list[str]:
    return [
        "openssl",
        "req",
        "-x509",
        "-nodes",
        "-days",
        str(spec.days),
        "-newkey",
        f"rsa:{spec.key_bits}",
        "-keyout",
        key_path,
        "-out",
        cert_path,
        "-subj",
        spec.subject,
        "-addext",
        spec.san_extension,
    ]


def generate_self_signed(host, spec: CertSpec, *, ssl_dir: str, key_name: str, cert_name: str) -> Tuple[str, str]:
    """Write a fresh key pair, replacing any previous one."""

    key_path = f"{ssl_dir.rstrip('/')}/{key_name}"
    cert_path = f"{ssl_dir.rstrip('/')}/{cert_name}"

    host.make_dirs(ssl_dir)
    host.run(openssl_req_argv(spec, key_path, cert_path), privileged=True)
    host.chmod(key_path, 0o600)
    host.chmod(cert_path, 0o644)

    logger.info("Generated self-signed certificate %s (%d days, %s)", cert_path, spec.days, spec.san_extension)
    return key_path, cert_path
