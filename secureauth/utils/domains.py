"""Hostname normalization utilities."""

from __future__ import annotations

from urllib.parse import urlparse

import idna
import tldextract

# Bundled public suffix snapshot only; never fetch the list at analysis time.
_extract = tldextract.TLDExtract(suffix_list_urls=())


def canonicalize_host(value: str) -> str:
    """
    Normalize a hostname/URL to a bare lowercase host.

    - Lowercase
    - Strip leading "www."
    - Drop port, path, query and fragment
    """
    raw = (value or "").strip()
    if not raw:
        return ""

    candidate = raw if "://" in raw else f"https://{raw}"
    try:
        host = urlparse(candidate).hostname or ""
    except ValueError:
        host = raw.split("/")[0].split(":")[0]
    host = host.strip().lower().strip(".")

    if host.startswith("www.") and len(host) > 4:
        host = host[4:]
    return host


def decode_host(host: str) -> str:
    """Decode punycode (xn--) labels to Unicode, best-effort."""
    if "xn--" not in (host or ""):
        return host or ""
    labels = []
    for label in host.split("."):
        if label.startswith("xn--"):
            try:
                label = idna.decode(label)
            except (idna.IDNAError, UnicodeError):
                pass
        labels.append(label)
    return ".".join(labels)


def host_tld(host: str) -> str:
    """Return the public suffix for a host, or its last label."""
    host = canonicalize_host(host)
    if not host:
        return ""
    suffix = _extract(host).suffix
    if suffix:
        return suffix.rsplit(".", 1)[-1].lower()
    return host.rsplit(".", 1)[-1]


def trusted_match(host: str, trusted: set[str] | frozenset[str]) -> str | None:
    """Return the trusted entry a host equals or is a subdomain of."""
    host = canonicalize_host(host)
    if not host or not trusted:
        return None
    for entry in trusted:
        if host == entry or host.endswith("." + entry):
            return entry
    return None


def is_trusted_host(host: str, trusted: set[str] | frozenset[str]) -> bool:
    return trusted_match(host, trusted) is not None


def normalize_trusted_domains(values) -> frozenset[str]:
    """Normalize allowlist entries (lowercase, no scheme/port/www)."""
    entries = set()
    for value in values or []:
        if value is None:
            continue
        host = canonicalize_host(str(value))
        if host:
            entries.add(host)
    return frozenset(entries)
