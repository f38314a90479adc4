"""JID helpers: bare/domain extraction and validation via slixmpp."""

from __future__ import annotations

from slixmpp import JID
from slixmpp.jid import InvalidJID

from tuenti_bosh.core.errors import InvalidJIDError


def get_bare_jid(jid: str) -> str:
    """Strip the resource part: 'u@d/res' -> 'u@d'."""
    return jid.split("/", 1)[0]


def get_domain(jid: str) -> str:
    """Domain part of a JID, case preserved ('u@xmppA.example.com' -> 'xmppA.example.com')."""
    bare = get_bare_jid(jid)
    if "@" not in bare:
        return bare
    return bare.split("@", 1)[1]


def validate_jid(jid: str) -> JID:
    """Parse jid with slixmpp; raise InvalidJIDError if malformed or domainless."""
    try:
        parsed = JID(jid)
    except InvalidJID as exc:
        raise InvalidJIDError(
            f"Invalid JID: {jid!r}",
            code="invalid_jid",
            details={"jid": jid},
            original_error=exc,
        ) from exc
    if not parsed.domain or not get_domain(jid):
        raise InvalidJIDError(
            f"JID has no domain: {jid!r}",
            code="missing_domain",
            details={"jid": jid},
        )
    return parsed
